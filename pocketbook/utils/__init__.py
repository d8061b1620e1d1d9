"""Shared helpers."""

from pocketbook.utils.formatting import (
    format_currency,
    format_day,
    format_month_label,
    format_timestamp,
)

__all__ = [
    "format_currency",
    "format_day",
    "format_month_label",
    "format_timestamp",
]
