"""Scope filtering."""

from collections.abc import Iterable

from pocketbook.models.expense import Expense, Scope


def filter_by_scope(expenses: Iterable[Expense], scope: Scope) -> list[Expense]:
    """
    Expenses belonging to one scope, in their original order.

    Legacy records have already been given the personal scope at load
    time, so the comparison is direct.
    """
    return [expense for expense in expenses if expense.scope == scope]
