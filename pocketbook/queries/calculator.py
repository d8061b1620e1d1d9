"""Income/expense calculator."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pocketbook.models.expense import to_money
from pocketbook.models.report import TitheResult


TITHE_RATE = Decimal("0.10")


def tithe(income: Any, expense: Any) -> TitheResult:
    """
    Balance of income minus expense, and 10% of it when positive.

    Blank inputs count as zero.
    """
    income_value = to_money(income) if income not in (None, "") else Decimal("0.00")
    expense_value = to_money(expense) if expense not in (None, "") else Decimal("0.00")
    balance = income_value - expense_value

    if balance > 0:
        share = (balance * TITHE_RATE).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    else:
        share = Decimal("0.00")

    return TitheResult(
        income=income_value,
        expense=expense_value,
        balance=balance,
        tithe=share,
    )
