from __future__ import annotations

from collections.abc import Iterable

from domain.balance import DailySpend, PeriodComparison, percent_change
from domain.records import BalanceState, PaymentMethod


def balance_distribution(balance: BalanceState) -> list[tuple[str, float]]:
    """Pie slices for the two channels; empty when there is nothing to draw."""
    if balance.hand + balance.gpay <= 0:
        return []
    return [
        (PaymentMethod.HAND.label, balance.hand),
        (PaymentMethod.GPAY.label, balance.gpay),
    ]


def daily_points(series: Iterable[DailySpend]) -> list[tuple[str, float]]:
    """(`"Jan 05"`, amount) pairs for the spending line chart."""
    return [(point.date.strftime("%b %d"), point.amount) for point in series]


def comparison_bars(
    comparison: PeriodComparison, previous_label: str, current_label: str
) -> list[tuple[str, float]]:
    return [
        (previous_label, comparison.previous),
        (current_label, comparison.current),
    ]


def format_percent_change(comparison: PeriodComparison) -> str:
    """Signed one-decimal label, e.g. "+12.5%", "-3.0%", "0%"."""
    change = percent_change(comparison.previous, comparison.current)
    if comparison.previous > 0:
        return f"{change:+.1f}%"
    # Growth from a zero base is a flat sentinel, shown without decimals.
    return f"{change:+.0f}%" if change else "0%"
