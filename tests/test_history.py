"""Tests for history search, grouping and the calculator."""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from pocketbook.queries import (
    HistoryFilter,
    category_month_counts,
    group_by_day,
    search_history,
    tithe,
)

from conftest import make_expense


class TestSearchHistory:
    """Tests for the history search."""

    def test_matches_description_case_insensitive(self, today, categories):
        lunch = make_expense(45, today, description="Almoço no centro")
        other = make_expense(10, today, description="Pão")
        assert search_history([lunch, other], categories, "almoço", today=today) == [lunch]

    def test_matches_category_name(self, today, categories):
        fuel = make_expense(200, today, "fuel", description="Posto")
        food = make_expense(30, today, "food", description="Jantar")
        assert search_history([fuel, food], categories, "gasolina", today=today) == [fuel]

    def test_matches_formatted_amount(self, today, categories):
        expense = make_expense("1234.5", today, description="TV")
        assert search_history([expense], categories, "1.234,50", today=today) == [expense]

    def test_blank_term_matches_everything_newest_first(self, today, categories):
        old = make_expense(1, today - timedelta(days=5))
        new = make_expense(1, today)
        assert search_history([old, new], categories, "  ", today=today) == [new, old]

    def test_week_window(self, today, categories):
        inside = make_expense(1, today - timedelta(days=7))
        outside = make_expense(1, today - timedelta(days=8))
        result = search_history([inside, outside], categories, window=HistoryFilter.WEEK, today=today)
        assert result == [inside]

    def test_month_and_year_windows(self, today, categories):
        this_month = make_expense(1, date(2024, 5, 1))
        this_year = make_expense(1, date(2024, 1, 1))
        last_year = make_expense(1, date(2023, 5, 15))
        expenses = [this_month, this_year, last_year]
        assert search_history(expenses, categories, window=HistoryFilter.MONTH, today=today) == [this_month]
        assert search_history(expenses, categories, window=HistoryFilter.YEAR, today=today) == [this_month, this_year]
        assert len(search_history(expenses, categories, window=HistoryFilter.ALL, today=today)) == 3


class TestGrouping:
    """Tests for day grouping and monthly counts."""

    def test_group_by_day(self, today):
        a = make_expense(10, today, description="a")
        b = make_expense(5, today - timedelta(days=1), description="b")
        c = make_expense(2, today, description="c")
        days = group_by_day([a, b, c])
        assert [d.day for d in days] == [today, today - timedelta(days=1)]
        assert [e.description for e in days[0].expenses] == ["a", "c"]
        assert days[0].total == Decimal("12.00")

    def test_group_by_day_empty(self):
        assert group_by_day([]) == []

    def test_category_month_counts(self):
        counts = category_month_counts([
            make_expense(1, date(2024, 1, 1), "food"),
            make_expense(1, date(2024, 1, 9), "food"),
            make_expense(1, date(2024, 2, 1), "food"),
        ])
        assert counts[("2024-01", "food")] == 2
        assert counts[("2024-02", "food")] == 1
        assert counts[("2024-03", "food")] == 0


class TestTithe:
    """Tests for the income/expense calculator."""

    def test_positive_balance(self):
        result = tithe("5000", "3000")
        assert result.balance == Decimal("2000.00")
        assert result.tithe == Decimal("200.00")

    def test_negative_balance_has_no_tithe(self):
        result = tithe(1000, 1500)
        assert result.balance == Decimal("-500.00")
        assert result.tithe == Decimal("0.00")

    def test_blank_inputs_count_as_zero(self):
        result = tithe("", None)
        assert result.balance == Decimal("0.00")
        assert result.tithe == Decimal("0.00")

    def test_rounds_to_cents(self):
        assert tithe("100.05", 0).tithe == Decimal("10.01")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
