from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

from .amounts import ZERO, format_money
from .overrides import OverrideStore
from .simulation import Report


# Above this many edited months the summary gives a count instead of a list.
MAX_LISTED_MONTHS = 3


@dataclass(frozen=True)
class Comparison:
    months_delta: int
    interest_delta: Decimal
    touched_months: Tuple[int, ...]

    @property
    def has_change(self) -> bool:
        return self.months_delta != 0 or self.interest_delta != ZERO

    @property
    def is_modified(self) -> bool:
        return bool(self.touched_months)

    def to_dict(self) -> dict:
        return {
            "monthsDelta": self.months_delta,
            "interestDelta": format_money(self.interest_delta),
            "touchedMonths": list(self.touched_months),
            "hasChange": self.has_change,
        }


def diff(baseline: Report, overridden: Report, overrides: OverrideStore) -> Comparison:
    return Comparison(
        months_delta=overridden.total_months - baseline.total_months,
        interest_delta=overridden.total_interest - baseline.total_interest,
        touched_months=tuple(overrides.touched_months()),
    )


def describe_changes(comparison: Comparison, overrides: OverrideStore) -> Optional[str]:
    """Explain which manual edits moved the payoff time and interest."""

    months = comparison.touched_months
    if not months:
        return None
    if len(months) > MAX_LISTED_MONTHS:
        return (
            "Payoff time and total interest changed because of manual edits "
            f"in {len(months)} months"
        )

    parts: List[str] = []
    for month in months:
        active = overrides.active_overrides_for(month)
        part = f"month {month}"
        if active.total is not None:
            part += " (total payment edited)"
        if active.debts:
            part += " (per-debt payment edited)"
        parts.append(part)
    return "Payoff time and total interest changed because of edits in: " + ", ".join(parts)
