from __future__ import annotations


class SimulationError(ValueError):
    pass


class EmptyDebtSet(SimulationError):
    def __init__(self, message: str = "Enter a debt balance greater than zero.") -> None:
        super().__init__(message)


class DuplicateDebtId(SimulationError):
    pass
