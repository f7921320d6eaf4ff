"""Balance derivation and spend aggregates.

Every function here is pure: results depend only on the arguments, so the
session can recompute them on each read instead of caching.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date as dt_date
from datetime import timedelta

from .records import (
    BalanceState,
    DepositRecord,
    PaymentMethod,
    SpendRecord,
    WalletBaseline,
)
from .validation import parse_month, parse_ymd

GROWTH_FROM_ZERO = 100.0
BUDGET_NEAR_PERCENT = 80.0


@dataclass(frozen=True)
class DailySpend:
    date: dt_date
    amount: float


@dataclass(frozen=True)
class PeriodComparison:
    current: float
    previous: float

    @property
    def percent_change(self) -> float:
        return percent_change(self.previous, self.current)

    # Dashboard naming
    @property
    def this_week(self) -> float:
        return self.current

    @property
    def last_week(self) -> float:
        return self.previous

    @property
    def this_month(self) -> float:
        return self.current

    @property
    def last_month(self) -> float:
        return self.previous


@dataclass(frozen=True)
class BudgetStatus:
    spent: float
    limit: float
    percentage: float
    is_over: bool
    is_near: bool

    @property
    def should_alert(self) -> bool:
        return self.is_over or self.is_near


def _sum_amounts(records: Iterable) -> float:
    return round(sum(record.amount for record in records), 2)


def totals_by_method(records: Iterable) -> dict[PaymentMethod, float]:
    totals = {PaymentMethod.HAND: 0.0, PaymentMethod.GPAY: 0.0}
    for record in records:
        totals[record.method] += record.amount
    return {method: round(total, 2) for method, total in totals.items()}


def compute_balance(
    baseline: WalletBaseline,
    deposits: Iterable[DepositRecord],
    spends: Iterable[SpendRecord],
) -> BalanceState:
    added = totals_by_method(deposits)
    spent = totals_by_method(spends)
    hand = round(baseline.initial_hand + added[PaymentMethod.HAND] - spent[PaymentMethod.HAND], 2)
    gpay = round(baseline.initial_gpay + added[PaymentMethod.GPAY] - spent[PaymentMethod.GPAY], 2)
    return BalanceState(hand=hand, gpay=gpay, total=round(hand + gpay, 2))


def available_balance(
    method: PaymentMethod | str,
    baseline: WalletBaseline,
    deposits: Iterable[DepositRecord],
    spends: Iterable[SpendRecord],
    *,
    exclude_id: str | None = None,
) -> float:
    """Balance left on one channel, optionally ignoring the spend being edited."""
    if exclude_id is not None:
        spends = [spend for spend in spends if spend.id != exclude_id]
    return compute_balance(baseline, deposits, spends).for_method(method)


def total_in_range(records: Iterable, start: dt_date | str, end: dt_date | str) -> float:
    """Sum of amounts whose calendar date lies in [start, end]."""
    start = parse_ymd(start)
    end = parse_ymd(end)
    if start > end:
        return 0.0
    return _sum_amounts(record for record in records if start <= record.date <= end)


def daily_series(
    spends: Iterable[SpendRecord], start: dt_date | str, end: dt_date | str
) -> list[DailySpend]:
    start = parse_ymd(start)
    end = parse_ymd(end)
    if start > end:
        return []
    days = (end - start).days + 1
    buckets = [0.0 for _ in range(days)]
    for spend in spends:
        if start <= spend.date <= end:
            buckets[(spend.date - start).days] += spend.amount
    return [
        DailySpend(date=start + timedelta(days=offset), amount=round(amount, 2))
        for offset, amount in enumerate(buckets)
    ]


def week_bounds(day: dt_date) -> tuple[dt_date, dt_date]:
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def month_bounds(year: int, month: int) -> tuple[dt_date, dt_date]:
    last_day = calendar.monthrange(year, month)[1]
    return dt_date(year, month, 1), dt_date(year, month, last_day)


def month_range(label: str) -> tuple[dt_date, dt_date]:
    return month_bounds(*parse_month(label))


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def weekly_comparison(
    spends: Iterable[SpendRecord], today: dt_date | None = None
) -> PeriodComparison:
    today = today or dt_date.today()
    spends = list(spends)
    this_start, this_end = week_bounds(today)
    last_start, last_end = week_bounds(today - timedelta(days=7))
    return PeriodComparison(
        current=total_in_range(spends, this_start, this_end),
        previous=total_in_range(spends, last_start, last_end),
    )


def monthly_comparison(
    spends: Iterable[SpendRecord], today: dt_date | None = None
) -> PeriodComparison:
    today = today or dt_date.today()
    spends = list(spends)
    this_start, this_end = month_bounds(today.year, today.month)
    last_start, last_end = month_bounds(*previous_month(today.year, today.month))
    return PeriodComparison(
        current=total_in_range(spends, this_start, this_end),
        previous=total_in_range(spends, last_start, last_end),
    )


def percent_change(previous: float, current: float) -> float:
    """Change from previous to current in percent.

    Growth from a zero base has no ratio; it is reported as GROWTH_FROM_ZERO.
    """
    if previous > 0:
        return round((current - previous) / previous * 100, 1)
    if current > 0:
        return GROWTH_FROM_ZERO
    return 0.0


def spends_for_month(spends: Iterable[SpendRecord], month: str) -> list[SpendRecord]:
    start, end = month_range(month)
    selected = [spend for spend in spends if start <= spend.date <= end]
    return sorted(selected, key=lambda spend: (spend.date, spend.created_at))


def budget_status(
    spends: Iterable[SpendRecord],
    budget_limit: float,
    today: dt_date | None = None,
    near_percent: float = BUDGET_NEAR_PERCENT,
) -> BudgetStatus:
    today = today or dt_date.today()
    start, end = month_bounds(today.year, today.month)
    spent = total_in_range(spends, start, end)
    if budget_limit <= 0:
        return BudgetStatus(spent=spent, limit=0.0, percentage=0.0, is_over=False, is_near=False)
    percentage = spent / budget_limit * 100
    is_over = spent > budget_limit
    return BudgetStatus(
        spent=spent,
        limit=float(budget_limit),
        percentage=round(percentage, 1),
        is_over=is_over,
        is_near=percentage >= near_percent and not is_over,
    )
