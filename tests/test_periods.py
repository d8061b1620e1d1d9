"""Tests for chart windows and the scope filter."""

import pytest
from datetime import date, timedelta

from pocketbook.models import Scope
from pocketbook.queries import (
    ChartPeriod,
    PeriodKind,
    available_years,
    filter_by_categories,
    filter_by_period,
    filter_by_scope,
    period_options,
)
from pocketbook.queries.periods import one_year_before

from conftest import make_expense


class TestChartPeriod:
    """Tests for period parsing and labels."""

    def test_from_key_fixed(self):
        period = ChartPeriod.from_key("last_30_days")
        assert period.kind == PeriodKind.LAST_30_DAYS
        assert period.key == "last_30_days"
        assert period.is_long is False

    def test_from_key_year(self):
        period = ChartPeriod.from_key("year_2023")
        assert period.year == 2023
        assert period.key == "year_2023"
        assert period.is_long is True
        assert period.label == "Ano 2023"

    @pytest.mark.parametrize("key", ["year", "year_abc", "last_90_days", ""])
    def test_from_key_rejects_unknown(self, key):
        with pytest.raises(ValueError):
            ChartPeriod.from_key(key)

    def test_one_year_before_leap_day(self):
        assert one_year_before(date(2024, 2, 29)) == date(2023, 2, 28)
        assert one_year_before(date(2024, 5, 15)) == date(2023, 5, 15)


class TestWindows:
    """Tests for window membership at calendar-day granularity."""

    def test_last_7_days_is_inclusive_at_both_ends(self, today):
        period = ChartPeriod(kind=PeriodKind.LAST_7_DAYS)
        assert period.contains(today, today)
        assert period.contains(today - timedelta(days=7), today)
        assert not period.contains(today - timedelta(days=8), today)
        assert not period.contains(today + timedelta(days=1), today)

    def test_last_30_days_boundary(self, today):
        period = ChartPeriod(kind=PeriodKind.LAST_30_DAYS)
        assert period.contains(today - timedelta(days=30), today)
        assert not period.contains(today - timedelta(days=31), today)

    def test_today(self, today):
        period = ChartPeriod(kind=PeriodKind.TODAY)
        assert period.contains(today, today)
        assert not period.contains(today - timedelta(days=1), today)

    def test_this_year_includes_future_days_of_the_year(self, today):
        period = ChartPeriod(kind=PeriodKind.THIS_YEAR)
        assert period.contains(date(2024, 12, 31), today)
        assert not period.contains(date(2023, 12, 31), today)

    def test_last_12_months(self, today):
        period = ChartPeriod(kind=PeriodKind.LAST_12_MONTHS)
        assert period.contains(date(2023, 5, 15), today)
        assert not period.contains(date(2023, 5, 14), today)

    def test_specific_year(self, today):
        period = ChartPeriod.for_year(2022)
        assert period.contains(date(2022, 6, 1), today)
        assert not period.contains(date(2023, 1, 1), today)

    def test_filter_by_period_keeps_order(self, today):
        recent = make_expense(10, today, description="a")
        old = make_expense(20, today - timedelta(days=40), description="b")
        also_recent = make_expense(30, today - timedelta(days=2), description="c")
        result = filter_by_period([recent, old, also_recent], ChartPeriod(kind=PeriodKind.LAST_30_DAYS), today)
        assert result == [recent, also_recent]


class TestFilters:
    """Tests for scope and category filters."""

    def test_filter_by_scope(self, today):
        personal = make_expense(10, today)
        business = make_expense(20, today, scope=Scope.BUSINESS)
        assert filter_by_scope([personal, business], Scope.PERSONAL) == [personal]
        assert filter_by_scope([personal, business], Scope.BUSINESS) == [business]
        assert filter_by_scope([], Scope.PERSONAL) == []

    def test_category_filter_none_means_all(self, today):
        expenses = [make_expense(10, today, "food"), make_expense(5, today, "fuel")]
        assert filter_by_categories(expenses, None) == expenses

    def test_category_filter_empty_selection_matches_nothing(self, today):
        expenses = [make_expense(10, today, "food")]
        assert filter_by_categories(expenses, []) == []

    def test_category_filter_selection(self, today):
        food = make_expense(10, today, "food")
        fuel = make_expense(5, today, "fuel")
        assert filter_by_categories([food, fuel], ["fuel"]) == [fuel]

    def test_available_years_newest_first(self):
        expenses = [
            make_expense(1, date(2022, 1, 1)),
            make_expense(1, date(2024, 1, 1)),
            make_expense(1, date(2022, 6, 1)),
        ]
        assert available_years(expenses) == [2024, 2022]
        keys = [p.key for p in period_options(expenses)]
        assert keys[-2:] == ["year_2024", "year_2022"]
        assert keys[0] == "today"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
