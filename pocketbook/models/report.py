"""
Result Models for Summaries, Charts and History

These are the read-side shapes produced by the query layer.
They are never persisted; they exist so the UI renders typed data
instead of ad-hoc dicts.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from pocketbook.models.expense import Expense


class BudgetLevel(str, Enum):
    """Traffic-light state of the budget card."""
    UNSET = "unset"
    OK = "ok"
    WARNING = "warning"
    OVER = "over"


class BudgetStatus(BaseModel):
    """
    Budget consumption for the current month of one scope.

    `remaining` is negative on overspend; `exceeded_amount` is its
    magnitude, which is what the UI shows as "amount exceeded".
    """

    budget: float = Field(ge=0)
    month_total: Decimal
    percentage: float = Field(
        ge=0,
        description="month_total / budget * 100, or 0 when the budget is unset"
    )
    remaining: float = Field(
        description="budget - month_total, or 0 when the budget is unset"
    )
    level: BudgetLevel

    @property
    def is_set(self) -> bool:
        return self.budget > 0

    @property
    def is_over_budget(self) -> bool:
        return self.remaining < 0

    @property
    def exceeded_amount(self) -> float:
        return abs(self.remaining) if self.remaining < 0 else 0.0

    @property
    def bar_fill(self) -> float:
        """Progress bar width, capped at 100."""
        return min(self.percentage, 100.0)


class CategoryShare(BaseModel):
    """Total spent in one category and its share of the filtered total."""

    category_id: str
    name: str
    color: str
    icon: Optional[str] = None
    total: Decimal
    percentage: float = Field(ge=0)
    is_known: bool = True


class TimeBucket(BaseModel):
    """One bar of a chart series."""

    key: str = Field(
        ...,
        description="YYYY-MM-DD for day buckets, YYYY-MM for month buckets"
    )
    label: str
    total: Decimal


class ChartReport(BaseModel):
    """Everything the charts screen needs for one period/category selection."""

    period_key: str
    total: Decimal
    expense_count: int = Field(ge=0)
    categories: list[CategoryShare] = Field(default_factory=list)
    series: list[TimeBucket] = Field(default_factory=list)


class MonthSummary(BaseModel):
    """Home screen figures for the active scope."""

    reference_date: date
    month_total: Decimal
    previous_month_total: Decimal
    daily_average: Decimal
    budget: BudgetStatus
    recent: list[Expense] = Field(default_factory=list)


class HistoryDay(BaseModel):
    """Expenses of one calendar day, as listed on the history screen."""

    day: date
    expenses: list[Expense] = Field(default_factory=list)
    total: Decimal


class TitheResult(BaseModel):
    """Calculator output: balance and the 10% "devolução" of any surplus."""

    income: Decimal
    expense: Decimal
    balance: Decimal
    tithe: Decimal
