from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Hashable, Iterable, List, Mapping, Optional, Tuple

from .amounts import ZERO, amount_or_zero, format_money
from .errors import EmptyDebtSet
from .minimums import DEFAULT_MIN_PERCENT
from .normalizer import ValidatedDebt, normalize_debts
from .overrides import MonthOverride, OverrideStore


logger = logging.getLogger(__name__)

MAX_MONTHS = 600
PAID_OFF_THRESHOLD = Decimal("0.01")
MONTHS_PER_YEAR = Decimal("12")

PAID_OFF = "paid_off"
MONTH_CAP = "month_cap"


@dataclass
class DebtState:
    debt: ValidatedDebt
    balance: Decimal
    rate: Decimal
    min_payment: Decimal
    paid: Decimal = ZERO
    is_manual: bool = False
    interest: Decimal = ZERO
    payoff_month: Optional[int] = None

    def monthly_rate(self) -> Decimal:
        return self.rate / Decimal("100") / MONTHS_PER_YEAR

    def pay(self, amount: Decimal) -> Decimal:
        self.paid += amount
        self.balance -= amount
        return amount


@dataclass(frozen=True)
class DebtMonth:
    paid: Decimal
    balance: Decimal

    def to_dict(self) -> dict:
        return {"paid": format_money(self.paid), "balance": format_money(self.balance)}


@dataclass(frozen=True)
class MonthlyRow:
    month: int
    total_balance: Decimal
    total_paid: Decimal
    debts: Mapping[Hashable, DebtMonth]

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "totalBalance": format_money(self.total_balance),
            "totalPaid": format_money(self.total_paid),
            "debts": {str(debt_id): state.to_dict() for debt_id, state in self.debts.items()},
        }


@dataclass(frozen=True)
class DebtSummary:
    id: Hashable
    name: str
    interest: Decimal
    payoff_month: Optional[int]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "interest": format_money(self.interest),
            "payoffMonth": self.payoff_month,
        }


@dataclass(frozen=True)
class Report:
    total_months: int
    total_interest: Decimal
    rows: Tuple[MonthlyRow, ...]
    original_columns: Tuple[ValidatedDebt, ...]
    termination: str
    debts: Tuple[DebtSummary, ...] = field(default=())

    @property
    def paid_off(self) -> bool:
        return self.termination == PAID_OFF

    def to_dict(self) -> dict:
        return {
            "totalMonths": self.total_months,
            "totalInterest": format_money(self.total_interest),
            "termination": self.termination,
            "columns": [debt.to_dict() for debt in self.original_columns],
            "debts": [summary.to_dict() for summary in self.debts],
            "rows": [row.to_dict() for row in self.rows],
        }


def order_debts(states: Iterable[DebtState]) -> List[DebtState]:
    # sorted() is stable, so equal rates keep their entry order.
    return sorted(states, key=lambda state: -state.rate)


def _apply_manual_payments(
    ordered: List[DebtState], month_override: MonthOverride, available: Decimal
) -> Decimal:
    for state in ordered:
        amount = month_override.payment_for(state.debt.id)
        if amount is None or state.balance <= ZERO:
            continue
        available -= state.pay(min(amount, available, state.balance))
        state.is_manual = True
    return available


def _apply_minimum_payments(ordered: List[DebtState], available: Decimal) -> Decimal:
    for state in ordered:
        if state.is_manual or state.balance <= ZERO:
            continue
        available -= state.pay(min(state.min_payment, state.balance, available))
    return available


def _apply_avalanche(ordered: List[DebtState], available: Decimal) -> Decimal:
    if available <= PAID_OFF_THRESHOLD:
        return available
    for state in ordered:
        if state.is_manual or state.balance <= ZERO:
            continue
        available -= state.pay(min(state.balance, available))
        if available <= PAID_OFF_THRESHOLD:
            break
    return available


def run_simulation(
    debts: Iterable[ValidatedDebt],
    budget,
    overrides: Optional[OverrideStore] = None,
) -> Report:
    """Simulate the avalanche plan month by month.

    Each month interest accrues first, then the month's budget (or its total
    override) pays manual per-debt overrides, then every other debt's fixed
    minimum, and finally all that is left goes to the highest-rate unpaid debt
    before cascading to the next. The run stops once the total balance is at
    most 0.01 or after ``MAX_MONTHS`` months; ``Report.termination`` says which.
    """

    debt_list = list(debts)
    if not debt_list:
        raise EmptyDebtSet()

    if overrides is None:
        overrides = OverrideStore()

    base_budget = amount_or_zero(budget)
    states = [
        DebtState(debt=debt, balance=debt.balance, rate=debt.rate, min_payment=debt.min_payment)
        for debt in debt_list
    ]
    ordered = order_debts(states)

    rows: List[MonthlyRow] = []
    total_interest = ZERO
    remaining_total = sum((state.balance for state in states), ZERO)
    month = 0

    while remaining_total > PAID_OFF_THRESHOLD and month < MAX_MONTHS:
        month += 1
        month_override = overrides.active_overrides_for(month)

        # Accrue interest first.
        for state in ordered:
            interest = state.balance * state.monthly_rate()
            state.balance += interest
            state.interest += interest
            total_interest += interest
            state.paid = ZERO
            state.is_manual = False

        available = base_budget if month_override.total is None else month_override.total
        available = _apply_manual_payments(ordered, month_override, available)
        available = _apply_minimum_payments(ordered, available)
        _apply_avalanche(ordered, available)

        month_debts: Dict[Hashable, DebtMonth] = {}
        for state in ordered:
            if state.balance < ZERO:
                state.balance = ZERO
            if state.payoff_month is None and state.balance <= PAID_OFF_THRESHOLD:
                state.payoff_month = month
            month_debts[state.debt.id] = DebtMonth(paid=state.paid, balance=state.balance)

        remaining_total = sum((state.balance for state in ordered), ZERO)
        rows.append(
            MonthlyRow(
                month=month,
                total_balance=remaining_total,
                total_paid=sum((state.paid for state in ordered), ZERO),
                debts=month_debts,
            )
        )

    termination = PAID_OFF if remaining_total <= PAID_OFF_THRESHOLD else MONTH_CAP
    if termination == MONTH_CAP:
        logger.warning(
            "Plan not paid off after %d months; remaining balance %s",
            MAX_MONTHS,
            format_money(remaining_total),
        )

    return Report(
        total_months=len(rows),
        total_interest=total_interest,
        rows=tuple(rows),
        original_columns=tuple(debt_list),
        termination=termination,
        debts=tuple(
            DebtSummary(
                id=state.debt.id,
                name=state.debt.name,
                interest=state.interest,
                payoff_month=state.payoff_month,
            )
            for state in states
        ),
    )


def build_plan(
    raw_debts: Iterable[Mapping],
    budget,
    min_percent=DEFAULT_MIN_PERCENT,
    overrides: Optional[OverrideStore] = None,
) -> Report:
    return run_simulation(normalize_debts(raw_debts, min_percent), budget, overrides)
