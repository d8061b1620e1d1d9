"""Read-side queries: scope and period filters, aggregations, history."""

from pocketbook.queries.aggregations import (
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
from pocketbook.queries.calculator import tithe
from pocketbook.queries.history import (
    HistoryFilter,
    category_month_counts,
    group_by_day,
    search_history,
)
from pocketbook.queries.periods import (
    DEFAULT_CHART_PERIOD,
    ChartPeriod,
    PeriodKind,
    available_years,
    filter_by_categories,
    filter_by_period,
    period_options,
)
from pocketbook.queries.scope import filter_by_scope

__all__ = [
    "DEFAULT_CHART_PERIOD",
    "ChartPeriod",
    "HistoryFilter",
    "PeriodKind",
    "available_years",
    "budget_status",
    "build_chart_report",
    "build_month_summary",
    "category_breakdown",
    "category_month_counts",
    "current_month_total",
    "daily_average",
    "filter_by_categories",
    "filter_by_period",
    "filter_by_scope",
    "group_by_day",
    "month_total",
    "period_options",
    "previous_month_total",
    "recent_expenses",
    "search_history",
    "time_series",
    "tithe",
]
