"""History screen queries: text search, time filter and grouping by day."""

from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional

from pocketbook.models.expense import Category, Expense
from pocketbook.models.report import HistoryDay
from pocketbook.utils.formatting import format_currency


class HistoryFilter(str, Enum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


def _in_window(day: date, window: HistoryFilter, today: date) -> bool:
    if window == HistoryFilter.TODAY:
        return day == today
    if window == HistoryFilter.WEEK:
        return today - timedelta(days=7) <= day <= today
    if window == HistoryFilter.MONTH:
        return day.year == today.year and day.month == today.month
    if window == HistoryFilter.YEAR:
        return day.year == today.year
    return True


def _matches(expense: Expense, term: str, category_names: dict[str, str]) -> bool:
    needle = term.lower()
    return (
        needle in expense.description.lower()
        or needle in category_names.get(expense.category_id, "").lower()
        or needle in format_currency(expense.amount).lower()
    )


def search_history(
    expenses: Iterable[Expense],
    categories: Sequence[Category],
    term: str = "",
    window: HistoryFilter = HistoryFilter.ALL,
    today: Optional[date] = None,
) -> list[Expense]:
    """
    Expenses matching a search term and time filter, newest date first.

    The term is matched case-insensitively against the description, the
    category name and the formatted amount ("R$ 45,90").
    """
    today = today or date.today()
    term = (term or "").strip()
    names = {category.id: category.name for category in categories}

    found = [
        e for e in expenses
        if _in_window(e.spent_on, window, today)
        and (not term or _matches(e, term, names))
    ]
    found.sort(key=lambda e: e.spent_on, reverse=True)
    return found


def group_by_day(expenses: Iterable[Expense]) -> list[HistoryDay]:
    """Group expenses by date, newest day first, keeping order within a day."""
    days: dict[date, list[Expense]] = {}
    for expense in expenses:
        days.setdefault(expense.spent_on, []).append(expense)

    return [
        HistoryDay(
            day=day,
            expenses=items,
            total=sum((e.amount for e in items), Decimal("0")),
        )
        for day, items in sorted(days.items(), key=lambda item: item[0], reverse=True)
    ]


def category_month_counts(expenses: Iterable[Expense]) -> Counter:
    """How many expenses each category got per month: {(YYYY-MM, category_id): n}."""
    return Counter((e.month_key, e.category_id) for e in expenses)
