"""Display formatting (Brazilian Real, dd/mm dates)."""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Union


MONTH_ABBREVIATIONS = (
    "jan", "fev", "mar", "abr", "mai", "jun",
    "jul", "ago", "set", "out", "nov", "dez",
)

Number = Union[int, float, Decimal]


def format_currency(value: Number) -> str:
    """
    Format an amount as BRL, e.g. 1234.5 -> "R$ 1.234,50".
    """
    amount = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    integer, _, cents = f"{abs(amount):.2f}".partition(".")

    groups = []
    while len(integer) > 3:
        groups.insert(0, integer[-3:])
        integer = integer[:-3]
    groups.insert(0, integer)

    return f"{sign}R$ {'.'.join(groups)},{cents}"


def format_day(value: Union[date, str]) -> str:
    """dd/mm for a calendar date or a YYYY-MM-DD key."""
    if isinstance(value, str):
        value = date.fromisoformat(value)
    return value.strftime("%d/%m")


def format_month_label(month_key: str) -> str:
    """'2024-01' -> 'jan/24'."""
    year, month = month_key.split("-")
    return f"{MONTH_ABBREVIATIONS[int(month) - 1]}/{year[-2:]}"


def format_timestamp(epoch_ms: int) -> str:
    """dd/mm HH:MM in local time; empty for a missing stamp."""
    if not epoch_ms:
        return ""
    return datetime.fromtimestamp(epoch_ms / 1000).strftime("%d/%m %H:%M")
