from datetime import date

import pytest

from domain.errors import ValidationError
from domain.records import DepositRecord, SpendRecord, WalletBaseline
from domain.reports import MonthReport, month_options


def _report(budget_limit=0.0):
    baseline = WalletBaseline(initial_hand=1000, initial_gpay=500)
    deposits = [
        DepositRecord(amount=200, method="hand", date="2025-03-02"),
        DepositRecord(amount=50, method="gpay", date="2025-02-20"),
    ]
    spends = [
        SpendRecord(purpose="Groceries", amount=300, method="hand", date="2025-03-03"),
        SpendRecord(purpose="Taxi", amount=120, method="gpay", date="2025-03-10"),
        SpendRecord(purpose="Rent", amount=100, method="gpay", date="2025-02-10"),
    ]
    return MonthReport(
        baseline,
        deposits,
        spends,
        "2025-03",
        budget_limit=budget_limit,
        today=date(2025, 3, 12),
    )


class TestMonthReport:
    def test_figures(self):
        report = _report()
        balance = report.balance()
        assert (balance.hand, balance.gpay, balance.total) == (900.0, 330.0, 1230.0)
        assert report.total_spent() == 420.0
        assert report.total_deposited() == 200.0
        assert len(report.daily_spending()) == 31

    def test_comparisons_use_today(self):
        report = _report()
        assert report.weekly().this_week == 120.0
        assert report.weekly().last_week == 300.0
        assert report.monthly().this_month == 420.0
        assert report.monthly().last_month == 100.0

    def test_title_and_label(self):
        report = _report()
        assert report.month == "2025-03"
        assert report.title == "Dashboard (March 2025)"
        assert MonthReport.label_for("2024-12") == "December 2024"

    def test_invalid_month(self):
        with pytest.raises(ValidationError):
            MonthReport(WalletBaseline(), [], [], "2025-3")

    def test_as_table_without_budget(self):
        text = _report().as_table()
        assert text.startswith("Dashboard (March 2025)")
        assert "Total balance" in text
        assert "1230.00" in text
        assert "+320.0%" in text
        assert "Budget limit" not in text

    def test_as_table_flags_budget(self):
        assert "NEAR LIMIT" in _report(budget_limit=500).as_table()
        assert "OVER BUDGET" in _report(budget_limit=400).as_table()
        assert "Budget status" not in _report(budget_limit=10000).as_table()

    def test_daily_table_has_total_row(self):
        text = _report().daily_table()
        assert "2025-03-03" in text
        assert "TOTAL" in text
        assert "420.00" in text


def test_month_options_last_twelve_months():
    options = month_options(today=date(2025, 2, 14))
    assert len(options) == 12
    assert options[0] == ("2025-02", "February 2025")
    assert options[1] == ("2025-01", "January 2025")
    assert options[2] == ("2024-12", "December 2024")
    assert options[-1] == ("2024-03", "March 2024")


def test_month_options_count():
    assert [value for value, _ in month_options(date(2025, 1, 1), count=2)] == [
        "2025-01",
        "2024-12",
    ]
