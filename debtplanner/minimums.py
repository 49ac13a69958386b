from __future__ import annotations

from decimal import Decimal

from .amounts import ZERO, amount_or_zero


MINIMUM_PAYMENT_FLOOR = Decimal("500")
DEFAULT_MIN_PERCENT = Decimal("5")


def suggested_minimum(balance, min_percent=DEFAULT_MIN_PERCENT) -> Decimal:
    """Default minimum payment for a debt.

    ``min_percent`` of the balance, but never below the 500 floor, and never
    more than the balance itself when the balance is under the floor. The
    result is computed once per run and held fixed while the balance shrinks.
    """

    balance = amount_or_zero(balance)
    if balance <= ZERO:
        return ZERO
    if balance < MINIMUM_PAYMENT_FLOOR:
        return balance

    calculated = balance * (amount_or_zero(min_percent) / Decimal("100"))
    return max(calculated, MINIMUM_PAYMENT_FLOOR)
