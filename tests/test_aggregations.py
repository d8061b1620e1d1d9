"""Tests for the aggregation engine."""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from pocketbook.models import BudgetLevel
from pocketbook.queries import (
    ChartPeriod,
    PeriodKind,
    budget_status,
    build_chart_report,
    build_month_summary,
    category_breakdown,
    current_month_total,
    daily_average,
    month_total,
    previous_month_total,
    recent_expenses,
    time_series,
)

from conftest import make_expense


class TestMonthTotals:
    """Tests for month totals and averages."""

    def test_current_and_previous_month(self, today):
        expenses = [
            make_expense(100, date(2024, 5, 3)),
            make_expense(50, date(2024, 4, 20)),
        ]
        assert current_month_total(expenses, today) == Decimal("100.00")
        assert previous_month_total(expenses, today) == Decimal("50.00")

    def test_previous_month_wraps_year(self):
        january = date(2024, 1, 10)
        expenses = [
            make_expense(70, date(2023, 12, 31)),
            make_expense(30, date(2024, 1, 2)),
            make_expense(99, date(2024, 12, 5)),
        ]
        assert previous_month_total(expenses, january) == Decimal("70.00")
        assert current_month_total(expenses, january) == Decimal("30.00")

    def test_empty_input_is_zero(self, today):
        assert current_month_total([], today) == Decimal("0")
        assert month_total([], 2024, 1) == Decimal("0")
        assert daily_average([], today) == Decimal("0.00")

    def test_decimal_sum_is_exact(self, today):
        expenses = [make_expense("0.1", today), make_expense("0.2", today)]
        assert current_month_total(expenses, today) == Decimal("0.30")

    def test_daily_average_divides_by_day_of_month(self, today):
        expenses = [make_expense(150, date(2024, 5, 1))]
        assert daily_average(expenses, today) == Decimal("10.00")


class TestBudgetStatus:
    """Tests for budget percentage and remaining."""

    def test_month_total_100_budget_200(self, today):
        """Records of 100 this month and 50 last month with budget 200."""
        expenses = [
            make_expense(100, today),
            make_expense(50, date(2024, 4, 10)),
        ]
        status = budget_status(200, current_month_total(expenses, today))
        assert status.month_total == Decimal("100.00")
        assert status.percentage == 50.0
        assert status.remaining == 100.0
        assert status.level == BudgetLevel.OK

    def test_unset_budget_has_zero_percentage(self):
        status = budget_status(0, Decimal("500"))
        assert status.percentage == 0.0
        assert status.remaining == 0.0
        assert status.level == BudgetLevel.UNSET
        assert status.is_set is False

    def test_warning_level(self):
        status = budget_status(100, Decimal("80"))
        assert status.level == BudgetLevel.WARNING

    def test_overspend(self):
        status = budget_status(100, Decimal("130"))
        assert status.level == BudgetLevel.OVER
        assert status.is_over_budget is True
        assert status.remaining == -30.0
        assert status.exceeded_amount == 30.0
        assert status.bar_fill == 100.0
        assert status.percentage == pytest.approx(130.0)


class TestCategoryBreakdown:
    """Tests for per-category totals."""

    def test_sorted_descending_with_percentages(self, today, categories):
        expenses = [
            make_expense(30, today, "food"),
            make_expense(60, today, "market"),
            make_expense(10, today, "food"),
        ]
        shares = category_breakdown(expenses, categories)
        assert [s.category_id for s in shares] == ["market", "food"]
        assert shares[0].total == Decimal("60.00")
        assert shares[0].percentage == pytest.approx(60.0)
        assert shares[1].total == Decimal("40.00")
        assert shares[1].name == "Restaurante"
        assert sum(s.percentage for s in shares) == pytest.approx(100.0)

    def test_deleted_category_renders_as_unknown(self, today, categories):
        shares = category_breakdown([make_expense(10, today, "gone")], categories)
        assert shares[0].category_id == "gone"
        assert shares[0].name == "Unknown"
        assert shares[0].color == "#cbd5e1"
        assert shares[0].is_known is False

    def test_empty(self, categories):
        assert category_breakdown([], categories) == []


class TestTimeSeries:
    """Tests for chart bucketing."""

    def test_short_window_buckets_by_day(self, today):
        expenses = [
            make_expense(10, today),
            make_expense(5, today),
            make_expense(7, today - timedelta(days=3)),
            make_expense(99, today - timedelta(days=60)),
        ]
        series = time_series(expenses, ChartPeriod(kind=PeriodKind.LAST_30_DAYS), today)
        assert [b.key for b in series] == ["2024-05-12", "2024-05-15"]
        assert [b.label for b in series] == ["12/05", "15/05"]
        assert series[1].total == Decimal("15.00")

    def test_long_window_buckets_by_month(self, today):
        expenses = [
            make_expense(10, date(2024, 1, 5)),
            make_expense(20, date(2024, 1, 25)),
            make_expense(5, date(2024, 3, 1)),
            make_expense(50, date(2023, 12, 31)),
        ]
        series = time_series(expenses, ChartPeriod(kind=PeriodKind.THIS_YEAR), today)
        assert [(b.key, b.label, b.total) for b in series] == [
            ("2024-01", "jan/24", Decimal("30.00")),
            ("2024-03", "mar/24", Decimal("5.00")),
        ]

    def test_category_selection_applies(self, today):
        expenses = [make_expense(10, today, "food"), make_expense(5, today, "fuel")]
        series = time_series(expenses, ChartPeriod(kind=PeriodKind.TODAY), today, ["fuel"])
        assert series[0].total == Decimal("5.00")

    def test_empty_window(self, today):
        assert time_series([], ChartPeriod(kind=PeriodKind.LAST_7_DAYS), today) == []


class TestReports:
    """Tests for the combined home and chart reports."""

    def test_chart_report(self, today, categories):
        expenses = [
            make_expense(40, today, "food"),
            make_expense(60, today - timedelta(days=1), "market"),
            make_expense(1000, date(2020, 1, 1), "market"),
        ]
        report = build_chart_report(
            expenses,
            categories,
            ChartPeriod(kind=PeriodKind.LAST_7_DAYS),
            today=today,
        )
        assert report.period_key == "last_7_days"
        assert report.total == Decimal("100.00")
        assert report.expense_count == 2
        assert report.categories[0].category_id == "market"
        assert len(report.series) == 2

    def test_recent_expenses_newest_date_first(self, today):
        older = make_expense(1, today - timedelta(days=2), description="older")
        newest = make_expense(1, today, description="newest")
        same_day = make_expense(1, today, description="same day")
        result = recent_expenses([older, newest, same_day], limit=2)
        assert [e.description for e in result] == ["newest", "same day"]

    def test_month_summary(self, today):
        expenses = [make_expense(100, today), make_expense(50, date(2024, 4, 1))]
        summary = build_month_summary(expenses, budget=200, today=today)
        assert summary.month_total == Decimal("100.00")
        assert summary.previous_month_total == Decimal("50.00")
        assert summary.budget.percentage == 50.0
        assert len(summary.recent) == 2

    def test_month_summary_empty(self, today):
        summary = build_month_summary([], budget=0, today=today)
        assert summary.month_total == Decimal("0")
        assert summary.budget.percentage == 0.0
        assert summary.recent == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
