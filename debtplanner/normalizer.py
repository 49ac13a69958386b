from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Hashable, Iterable, List, Mapping, Optional

from .amounts import ZERO, amount_or_zero, parse_amount
from .errors import DuplicateDebtId
from .minimums import DEFAULT_MIN_PERCENT, suggested_minimum


@dataclass(frozen=True)
class ValidatedDebt:
    id: Hashable
    name: str
    balance: Decimal
    rate: Decimal
    min_payment: Decimal
    position: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "balance": str(self.balance),
            "rate": str(self.rate),
            "minPayment": str(self.min_payment),
        }


def _numeric_id(debt_id) -> Optional[int]:
    if isinstance(debt_id, bool):
        return None
    try:
        return int(str(debt_id))
    except ValueError:
        return None


def normalize_debts(
    raw_debts: Iterable[Mapping], min_percent=DEFAULT_MIN_PERCENT
) -> List[ValidatedDebt]:
    """Turn editor rows into simulation inputs, dropping debts with nothing owed.

    Blank or non-numeric balances and rates count as zero. A blank, zero,
    negative or non-numeric ``minPay`` falls back to the suggested minimum for
    the balance. Entries without an id get one above the largest numeric id;
    an id used twice raises ``DuplicateDebtId``.
    """

    entries = list(raw_debts)
    numeric_ids = [_numeric_id(entry.get("id")) for entry in entries]
    next_id = max((value for value in numeric_ids if value is not None), default=0) + 1

    validated: List[ValidatedDebt] = []
    seen = set()
    for position, entry in enumerate(entries, start=1):
        debt_id = entry.get("id")
        if debt_id is None or debt_id == "":
            debt_id = next_id
            next_id += 1
        key = str(debt_id)
        if key in seen:
            raise DuplicateDebtId(f"Debt id {debt_id!r} is used more than once")
        seen.add(key)

        balance = amount_or_zero(entry.get("balance"))
        if balance <= ZERO:
            continue

        rate = amount_or_zero(entry.get("rate"))
        explicit_min = parse_amount(entry.get("minPay"))
        if explicit_min is None or explicit_min <= ZERO:
            min_payment = suggested_minimum(balance, min_percent)
        else:
            min_payment = explicit_min

        validated.append(
            ValidatedDebt(
                id=debt_id,
                name=str(entry.get("name") or ""),
                balance=balance,
                rate=rate,
                min_payment=min_payment,
                position=position,
            )
        )
    return validated
