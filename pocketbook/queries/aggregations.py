"""
Aggregation Engine

DESIGN DECISION: Every figure on the home and charts screens is computed
here by pure functions over an already scope-filtered expense list.
Nothing is cached: the lists are small and a fresh single pass is always
correct.

GUARANTEES:
- Empty input gives zero totals, zero percentages and empty lists
- A percentage whose denominator is zero is defined as 0 (never NaN)
- Money is summed as Decimal; only percentages are floats
- "Today" is always a parameter so results are reproducible in tests
"""

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pocketbook.models.defaults import UNKNOWN_CATEGORY_COLOR, UNKNOWN_CATEGORY_NAME
from pocketbook.models.expense import Category, Expense
from pocketbook.models.report import (
    BudgetLevel,
    BudgetStatus,
    CategoryShare,
    ChartReport,
    MonthSummary,
    TimeBucket,
)
from pocketbook.queries.periods import (
    ChartPeriod,
    filter_by_categories,
    filter_by_period,
)
from pocketbook.utils.formatting import format_day, format_month_label


ZERO = Decimal("0")
HUNDRED = Decimal("100")


def total_amount(expenses: Iterable[Expense]) -> Decimal:
    return sum((e.amount for e in expenses), ZERO)


def previous_month(year: int, month: int) -> tuple[int, int]:
    """Calendar month before (year, month); January wraps to December."""
    if month == 1:
        return year - 1, 12
    return year, month - 1


def month_total(expenses: Iterable[Expense], year: int, month: int) -> Decimal:
    """Sum of the expenses dated in the given calendar month."""
    return total_amount(
        e for e in expenses
        if e.spent_on.year == year and e.spent_on.month == month
    )


def current_month_total(
    expenses: Iterable[Expense],
    today: Optional[date] = None,
) -> Decimal:
    today = today or date.today()
    return month_total(expenses, today.year, today.month)


def previous_month_total(
    expenses: Iterable[Expense],
    today: Optional[date] = None,
) -> Decimal:
    today = today or date.today()
    year, month = previous_month(today.year, today.month)
    return month_total(expenses, year, month)


def daily_average(
    expenses: Iterable[Expense],
    today: Optional[date] = None,
) -> Decimal:
    """
    Running daily average: this month's total over today's day number.

    Day numbers start at 1, so the divisor is never zero.
    """
    today = today or date.today()
    average = current_month_total(expenses, today) / Decimal(today.day)
    return average.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def budget_status(
    budget: float,
    spent: Decimal,
    warning_percentage: float = 75.0,
) -> BudgetStatus:
    """
    Budget consumption for one month.

    A budget of 0 means "not set": percentage and remaining are both 0.
    """
    if budget <= 0:
        return BudgetStatus(
            budget=max(budget, 0.0),
            month_total=spent,
            percentage=0.0,
            remaining=0.0,
            level=BudgetLevel.UNSET,
        )

    limit = Decimal(str(budget))
    percentage = float(spent / limit * HUNDRED)
    remaining = float(limit - spent)

    if percentage > 100:
        level = BudgetLevel.OVER
    elif percentage > warning_percentage:
        level = BudgetLevel.WARNING
    else:
        level = BudgetLevel.OK

    return BudgetStatus(
        budget=budget,
        month_total=spent,
        percentage=percentage,
        remaining=remaining,
        level=level,
    )


def category_breakdown(
    expenses: Iterable[Expense],
    categories: Sequence[Category],
) -> list[CategoryShare]:
    """
    Totals per category, largest first.

    Expenses pointing at a deleted category still aggregate under their
    raw category id; they are rendered with a neutral placeholder.
    """
    sums: dict[str, Decimal] = {}
    for expense in expenses:
        sums[expense.category_id] = sums.get(expense.category_id, ZERO) + expense.amount

    total = sum(sums.values(), ZERO)
    by_id = {category.id: category for category in categories}

    shares = []
    for category_id, value in sums.items():
        category = by_id.get(category_id)
        percentage = float(value / total * HUNDRED) if total > 0 else 0.0
        shares.append(CategoryShare(
            category_id=category_id,
            name=category.name if category else UNKNOWN_CATEGORY_NAME,
            color=category.color if category else UNKNOWN_CATEGORY_COLOR,
            icon=category.icon if category else None,
            total=value,
            percentage=percentage,
            is_known=category is not None,
        ))

    shares.sort(key=lambda share: share.total, reverse=True)
    return shares


def bucket_series(expenses: Iterable[Expense], period: ChartPeriod) -> list[TimeBucket]:
    """
    Group already-windowed expenses into chart buckets.

    Short windows bucket by day (YYYY-MM-DD), long ones by month (YYYY-MM).
    Only buckets with data are returned, in ascending key order.
    """
    sums: dict[str, Decimal] = {}
    for expense in expenses:
        key = expense.month_key if period.is_long else expense.spent_on.isoformat()
        sums[key] = sums.get(key, ZERO) + expense.amount

    buckets = []
    for key in sorted(sums):
        label = format_month_label(key) if period.is_long else format_day(key)
        buckets.append(TimeBucket(key=key, label=label, total=sums[key]))
    return buckets


def time_series(
    expenses: Iterable[Expense],
    period: ChartPeriod,
    today: Optional[date] = None,
    selected_category_ids: Optional[Iterable[str]] = None,
) -> list[TimeBucket]:
    """Window filter, category filter, then bucket."""
    windowed = filter_by_period(expenses, period, today)
    return bucket_series(filter_by_categories(windowed, selected_category_ids), period)


def build_chart_report(
    expenses: Iterable[Expense],
    categories: Sequence[Category],
    period: ChartPeriod,
    selected_category_ids: Optional[Iterable[str]] = None,
    today: Optional[date] = None,
) -> ChartReport:
    """Everything the charts screen shows for one selection."""
    filtered = filter_by_categories(
        filter_by_period(expenses, period, today),
        selected_category_ids,
    )
    return ChartReport(
        period_key=period.key,
        total=total_amount(filtered),
        expense_count=len(filtered),
        categories=category_breakdown(filtered, categories),
        series=bucket_series(filtered, period),
    )


def recent_expenses(expenses: Iterable[Expense], limit: int = 5) -> list[Expense]:
    """Newest expense dates first; same-day entries keep their stored order."""
    return sorted(expenses, key=lambda e: e.spent_on, reverse=True)[:limit]


def build_month_summary(
    expenses: Sequence[Expense],
    budget: float,
    today: Optional[date] = None,
    recent_limit: int = 5,
    warning_percentage: float = 75.0,
) -> MonthSummary:
    """Home screen figures for one scope."""
    today = today or date.today()
    this_month = current_month_total(expenses, today)

    return MonthSummary(
        reference_date=today,
        month_total=this_month,
        previous_month_total=previous_month_total(expenses, today),
        daily_average=daily_average(expenses, today),
        budget=budget_status(budget, this_month, warning_percentage),
        recent=recent_expenses(expenses, recent_limit),
    )
