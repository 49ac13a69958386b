from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Hashable, List, Optional

from .amounts import ZERO, parse_amount


logger = logging.getLogger(__name__)

TOTAL_SLOT = "total"


@dataclass
class MonthOverride:
    total: Optional[Decimal] = None
    debts: Dict[str, Decimal] = field(default_factory=dict)

    def is_active(self) -> bool:
        return self.total is not None or bool(self.debts)

    def payment_for(self, debt_id: Hashable) -> Optional[Decimal]:
        return self.debts.get(str(debt_id))


def _month_key(month) -> int:
    if isinstance(month, float) and not month.is_integer():
        raise ValueError(f"Month must be an integer, got {month!r}")
    try:
        value = int(month)
    except (TypeError, ValueError):
        raise ValueError(f"Month must be an integer, got {month!r}") from None
    if value < 1:
        raise ValueError(f"Month must be >= 1, got {month!r}")
    return value


def _active_value(raw) -> Optional[Decimal]:
    value = parse_amount(raw)
    if value is None or value < ZERO:
        logger.debug("Discarding inactive override value %r", raw)
        return None
    return value


class OverrideStore:
    """Per-month manual edits to the plan.

    Only values that parse to a finite, non-negative number are kept. Setting
    a slot to a blank or non-numeric value removes it, so the month falls back
    to the automatic plan rather than paying zero.
    """

    def __init__(self) -> None:
        self._months: Dict[int, MonthOverride] = {}

    def set_total(self, month, raw_value) -> None:
        key = _month_key(month)
        value = _active_value(raw_value)
        entry = self._months.setdefault(key, MonthOverride())
        entry.total = value
        self._prune(key)

    def set_debt_payment(self, month, debt_id: Hashable, raw_value) -> None:
        key = _month_key(month)
        value = _active_value(raw_value)
        entry = self._months.setdefault(key, MonthOverride())
        if value is None:
            entry.debts.pop(str(debt_id), None)
        else:
            entry.debts[str(debt_id)] = value
        self._prune(key)

    def clear(self, month, slot: Optional[Hashable] = None) -> None:
        """Remove one slot (``"total"`` or a debt id) or the whole month."""

        key = _month_key(month)
        entry = self._months.get(key)
        if entry is None:
            return
        if slot is None:
            del self._months[key]
            return
        if slot == TOTAL_SLOT:
            entry.total = None
        else:
            entry.debts.pop(str(slot), None)
        self._prune(key)

    def reset(self) -> None:
        self._months.clear()

    def active_overrides_for(self, month) -> MonthOverride:
        entry = self._months.get(_month_key(month))
        if entry is None:
            return MonthOverride()
        return MonthOverride(total=entry.total, debts=dict(entry.debts))

    def touched_months(self) -> List[int]:
        return sorted(month for month, entry in self._months.items() if entry.is_active())

    def is_empty(self) -> bool:
        return not self.touched_months()

    def _prune(self, key: int) -> None:
        entry = self._months.get(key)
        if entry is not None and not entry.is_active():
            del self._months[key]

    def to_dict(self) -> dict:
        result = {}
        for month in self.touched_months():
            entry = self._months[month]
            item: dict = {}
            if entry.total is not None:
                item["total"] = str(entry.total)
            if entry.debts:
                item["debts"] = {debt_id: str(amount) for debt_id, amount in entry.debts.items()}
            result[str(month)] = item
        return result

    @classmethod
    def from_dict(cls, payload) -> "OverrideStore":
        """Build a store from ``{"<month>": {"total": raw, "debts": {id: raw}}}``."""

        store = cls()
        if not payload:
            return store
        if not isinstance(payload, dict):
            raise ValueError("overrides must be an object keyed by month")
        for month, item in payload.items():
            if not isinstance(item, dict):
                raise ValueError(f"override for month {month} must be an object")
            if "total" in item:
                store.set_total(month, item["total"])
            debts = item.get("debts") or {}
            if not isinstance(debts, dict):
                raise ValueError(f"debt overrides for month {month} must be an object")
            for debt_id, raw in debts.items():
                store.set_debt_payment(month, debt_id, raw)
        return store
