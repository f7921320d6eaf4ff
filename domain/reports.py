from collections.abc import Iterable
from datetime import date as dt_date

from prettytable import PrettyTable

from .balance import (
    BUDGET_NEAR_PERCENT,
    BudgetStatus,
    DailySpend,
    PeriodComparison,
    budget_status,
    compute_balance,
    daily_series,
    month_range,
    monthly_comparison,
    previous_month,
    total_in_range,
    weekly_comparison,
)
from .records import BalanceState, DepositRecord, SpendRecord, WalletBaseline


def _money(value: float) -> str:
    return f"{value:.2f}" if value >= 0 else f"({abs(value):.2f})"


def _signed_percent(value: float) -> str:
    return f"+{value:.1f}%" if value > 0 else f"{value:.1f}%"


def month_options(today: dt_date | None = None, count: int = 12) -> list[tuple[str, str]]:
    """Last `count` months, newest first, as ("YYYY-MM", "Month YYYY")."""
    today = today or dt_date.today()
    year, month = today.year, today.month
    options: list[tuple[str, str]] = []
    for _ in range(count):
        options.append((f"{year:04d}-{month:02d}", dt_date(year, month, 1).strftime("%B %Y")))
        year, month = previous_month(year, month)
    return options


class MonthReport:
    """Dashboard figures for one selected month."""

    def __init__(
        self,
        baseline: WalletBaseline,
        deposits: Iterable[DepositRecord],
        spends: Iterable[SpendRecord],
        month: str,
        budget_limit: float = 0.0,
        today: dt_date | None = None,
        near_percent: float = BUDGET_NEAR_PERCENT,
    ):
        self._baseline = baseline
        self._deposits = list(deposits)
        self._spends = list(spends)
        self._month = month
        self._start, self._end = month_range(month)
        self._budget_limit = float(budget_limit)
        self._today = today or dt_date.today()
        self._near_percent = near_percent

    @property
    def month(self) -> str:
        return self._month

    @staticmethod
    def label_for(month: str) -> str:
        """Display label for a month value, e.g. "2025-01" -> "January 2025"."""
        return month_range(month)[0].strftime("%B %Y")

    @property
    def title(self) -> str:
        return f"Dashboard ({self.label_for(self._month)})"

    def balance(self) -> BalanceState:
        return compute_balance(self._baseline, self._deposits, self._spends)

    def total_spent(self) -> float:
        return total_in_range(self._spends, self._start, self._end)

    def total_deposited(self) -> float:
        return total_in_range(self._deposits, self._start, self._end)

    def daily_spending(self) -> list[DailySpend]:
        return daily_series(self._spends, self._start, self._end)

    def weekly(self) -> PeriodComparison:
        return weekly_comparison(self._spends, self._today)

    def monthly(self) -> PeriodComparison:
        return monthly_comparison(self._spends, self._today)

    def budget(self) -> BudgetStatus:
        return budget_status(self._spends, self._budget_limit, self._today, self._near_percent)

    def as_table(self) -> str:
        balance = self.balance()
        table = PrettyTable()
        table.field_names = ["Item", "Amount"]
        table.align["Item"] = "l"
        table.align["Amount"] = "r"

        table.add_row(["Hand balance", _money(balance.hand)])
        table.add_row(["GPay balance", _money(balance.gpay)])
        table.add_row(["Total balance", _money(balance.total)], divider=True)

        table.add_row(["Spent this period", _money(self.total_spent())])
        table.add_row(["Added this period", _money(self.total_deposited())], divider=True)

        weekly = self.weekly()
        table.add_row(["This week", _money(weekly.this_week)])
        table.add_row(["Last week", _money(weekly.last_week)])
        table.add_row(["Weekly change", _signed_percent(weekly.percent_change)], divider=True)

        monthly = self.monthly()
        budget = self.budget()
        table.add_row(["This month", _money(monthly.this_month)])
        table.add_row(["Last month", _money(monthly.last_month)])
        table.add_row(
            ["Monthly change", _signed_percent(monthly.percent_change)],
            divider=budget.limit > 0,
        )

        if budget.limit > 0:
            table.add_row(["Budget limit", _money(budget.limit)])
            table.add_row(["Budget used", f"{budget.percentage:.0f}%"])
            if budget.is_over:
                table.add_row(["Budget status", "OVER BUDGET"])
            elif budget.is_near:
                table.add_row(["Budget status", "NEAR LIMIT"])

        return f"{self.title}\n{table}"

    def daily_table(self) -> str:
        table = PrettyTable()
        table.field_names = ["Date", "Spent"]
        table.align["Spent"] = "r"
        for day in self.daily_spending():
            table.add_row([day.date.isoformat(), f"{day.amount:.2f}"])
        table.add_row(["TOTAL", f"{self.total_spent():.2f}"], divider=True)
        return str(table)
