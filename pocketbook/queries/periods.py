"""
Time Windows

DESIGN DECISION: Windows compare calendar dates only. An expense date is
a plain `date` parsed from its YYYY-MM-DD string, and "now" is reduced to
today's date, so no timezone or time-of-day can move a record across a
window boundary.

Window rules:
- today:           d == today
- last_7_days:     today - 7 <= d <= today
- last_30_days:    today - 30 <= d <= today
- this_year:       d.year == today.year
- last_12_months:  same calendar day one year ago <= d <= today
- year_<YYYY>:     d.year == YYYY
"""

from collections.abc import Iterable
from datetime import date, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from pocketbook.models.expense import Expense


class PeriodKind(str, Enum):
    TODAY = "today"
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    THIS_YEAR = "this_year"
    LAST_12_MONTHS = "last_12_months"
    YEAR = "year"


_TRAILING_DAYS = {
    PeriodKind.LAST_7_DAYS: 7,
    PeriodKind.LAST_30_DAYS: 30,
}

_LONG_KINDS = {PeriodKind.THIS_YEAR, PeriodKind.LAST_12_MONTHS, PeriodKind.YEAR}

_LABELS = {
    PeriodKind.TODAY: "Hoje",
    PeriodKind.LAST_7_DAYS: "Últimos 7 dias",
    PeriodKind.LAST_30_DAYS: "Últimos 30 dias",
    PeriodKind.THIS_YEAR: "Este Ano (Completo)",
    PeriodKind.LAST_12_MONTHS: "Últimos 12 meses",
}


def one_year_before(day: date) -> date:
    """Same calendar day a year earlier; Feb 29 maps to Feb 28."""
    try:
        return day.replace(year=day.year - 1)
    except ValueError:
        return day.replace(year=day.year - 1, day=28)


class ChartPeriod(BaseModel):
    """A selectable chart window."""
    model_config = ConfigDict(frozen=True)

    kind: PeriodKind
    year: Optional[int] = None

    @model_validator(mode="after")
    def year_matches_kind(self) -> "ChartPeriod":
        if self.kind == PeriodKind.YEAR and self.year is None:
            raise ValueError("A specific-year period needs a year")
        if self.kind != PeriodKind.YEAR and self.year is not None:
            raise ValueError(f"Period '{self.kind.value}' does not take a year")
        return self

    @classmethod
    def from_key(cls, key: str) -> "ChartPeriod":
        """Parse 'last_30_days', 'year_2023', ..."""
        if key.startswith("year_"):
            try:
                year = int(key[len("year_"):])
            except ValueError:
                raise ValueError(f"Unknown period: {key!r}")
            return cls(kind=PeriodKind.YEAR, year=year)
        try:
            return cls(kind=PeriodKind(key))
        except ValueError:
            raise ValueError(f"Unknown period: {key!r}")

    @classmethod
    def for_year(cls, year: int) -> "ChartPeriod":
        return cls(kind=PeriodKind.YEAR, year=year)

    @property
    def key(self) -> str:
        if self.kind == PeriodKind.YEAR:
            return f"year_{self.year}"
        return self.kind.value

    @property
    def is_long(self) -> bool:
        """Long windows are bucketed by month, short ones by day."""
        return self.kind in _LONG_KINDS

    @property
    def label(self) -> str:
        if self.kind == PeriodKind.YEAR:
            return f"Ano {self.year}"
        return _LABELS[self.kind]

    def contains(self, day: date, today: date) -> bool:
        if self.kind == PeriodKind.TODAY:
            return day == today
        if self.kind in _TRAILING_DAYS:
            return today - timedelta(days=_TRAILING_DAYS[self.kind]) <= day <= today
        if self.kind == PeriodKind.THIS_YEAR:
            return day.year == today.year
        if self.kind == PeriodKind.LAST_12_MONTHS:
            return one_year_before(today) <= day <= today
        return day.year == self.year


DEFAULT_CHART_PERIOD = ChartPeriod(kind=PeriodKind.LAST_30_DAYS)

FIXED_PERIODS: tuple[ChartPeriod, ...] = (
    ChartPeriod(kind=PeriodKind.TODAY),
    ChartPeriod(kind=PeriodKind.LAST_7_DAYS),
    ChartPeriod(kind=PeriodKind.LAST_30_DAYS),
    ChartPeriod(kind=PeriodKind.THIS_YEAR),
    ChartPeriod(kind=PeriodKind.LAST_12_MONTHS),
)


def filter_by_period(
    expenses: Iterable[Expense],
    period: ChartPeriod,
    today: Optional[date] = None,
) -> list[Expense]:
    """Expenses whose date falls in the window, original order kept."""
    today = today or date.today()
    return [e for e in expenses if period.contains(e.spent_on, today)]


def filter_by_categories(
    expenses: Iterable[Expense],
    selected_ids: Optional[Iterable[str]] = None,
) -> list[Expense]:
    """
    Expenses in the selected categories.

    None means "all categories"; an empty selection matches nothing.
    """
    if selected_ids is None:
        return list(expenses)
    selected = set(selected_ids)
    return [e for e in expenses if e.category_id in selected]


def available_years(expenses: Iterable[Expense]) -> list[int]:
    """Years that have data, newest first."""
    return sorted({e.spent_on.year for e in expenses}, reverse=True)


def period_options(expenses: Iterable[Expense]) -> list[ChartPeriod]:
    """Every period the charts screen can offer for this data."""
    return list(FIXED_PERIODS) + [ChartPeriod.for_year(y) for y in available_years(expenses)]
