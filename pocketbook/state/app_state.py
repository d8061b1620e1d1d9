"""
Application State

DESIGN DECISION: The whole app state is one immutable value. Every user
action is a pure transition returning a new AppState; persistence is a
separate step (see StateRepository.commit) that diffs the old and new
values. This keeps the rules testable without any storage at all.

RULES ENFORCED HERE:
- New expenses are prepended (the list is kept newest-entry first)
- `id` and `created_at` of an expense never change on edit
- Each scope keeps at least one category
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from pocketbook.models.defaults import default_categories
from pocketbook.models.expense import (
    Category,
    Expense,
    Scope,
    ScopeNames,
    Theme,
    UserSettings,
)
from pocketbook.queries.scope import filter_by_scope


class StateError(Exception):
    """Base exception for refused state transitions."""
    pass


class ExpenseNotFoundError(StateError):
    """No expense with the given id."""

    def __init__(self, expense_id: str):
        self.expense_id = expense_id
        super().__init__(f"Expense {expense_id!r} not found")


class CategoryNotFoundError(StateError):
    """No category with the given id in the scope."""

    def __init__(self, category_id: str, scope: Scope):
        self.category_id = category_id
        self.scope = scope
        super().__init__(f"Category {category_id!r} not found in scope '{scope.value}'")


class MinimumCategoryError(StateError):
    """Raised when deleting the last category of a scope."""

    def __init__(self, scope: Scope):
        self.scope = scope
        super().__init__(
            f"Scope '{scope.value}' must keep at least one category"
        )


def _default_category_map() -> dict[Scope, list[Category]]:
    return {scope: default_categories(scope) for scope in Scope}


class AppState(BaseModel):
    """Everything the app holds in memory."""
    model_config = ConfigDict(frozen=True)

    expenses: list[Expense] = Field(default_factory=list)
    categories: dict[Scope, list[Category]] = Field(default_factory=_default_category_map)
    settings: UserSettings = Field(default_factory=UserSettings)
    current_scope: Scope = Scope.PERSONAL

    # =========================================================================
    # READS
    # =========================================================================

    def categories_for(self, scope: Scope) -> list[Category]:
        return self.categories.get(scope, [])

    @property
    def active_categories(self) -> list[Category]:
        return self.categories_for(self.current_scope)

    @property
    def scope_expenses(self) -> list[Expense]:
        """Expenses of the active scope."""
        return filter_by_scope(self.expenses, self.current_scope)

    @property
    def active_budget(self) -> float:
        return self.settings.budget_for(self.current_scope)

    def find_expense(self, expense_id: str) -> Optional[Expense]:
        return next((e for e in self.expenses if e.id == expense_id), None)

    def find_category(self, scope: Scope, category_id: str) -> Optional[Category]:
        return next((c for c in self.categories_for(scope) if c.id == category_id), None)

    # =========================================================================
    # EXPENSES
    # =========================================================================

    def add_expense(self, expense: Expense) -> "AppState":
        return self.model_copy(update={"expenses": [expense] + self.expenses})

    def update_expense(self, expense_id: str, **changes: Any) -> "AppState":
        """
        Replace fields of an existing expense.

        `id` and `created_at` are kept from the stored record whatever
        `changes` says. The result is re-validated.

        Raises:
            ExpenseNotFoundError: If no expense has that id
        """
        current = self.find_expense(expense_id)
        if current is None:
            raise ExpenseNotFoundError(expense_id)

        data = current.model_dump()
        data.update(changes)
        data["id"] = current.id
        data["created_at"] = current.created_at
        updated = Expense.model_validate(data)

        return self.model_copy(update={
            "expenses": [updated if e.id == expense_id else e for e in self.expenses]
        })

    def delete_expense(self, expense_id: str) -> "AppState":
        if self.find_expense(expense_id) is None:
            raise ExpenseNotFoundError(expense_id)
        return self.model_copy(update={
            "expenses": [e for e in self.expenses if e.id != expense_id]
        })

    def replace_expenses(self, expenses: list[Expense]) -> "AppState":
        return self.model_copy(update={"expenses": list(expenses)})

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    def _with_categories(self, scope: Scope, items: list[Category]) -> "AppState":
        categories = dict(self.categories)
        categories[scope] = items
        return self.model_copy(update={"categories": categories})

    def add_category(self, scope: Scope, category: Category) -> "AppState":
        return self._with_categories(scope, self.categories_for(scope) + [category])

    def delete_category(self, scope: Scope, category_id: str) -> "AppState":
        """
        Remove a category from a scope.

        Expenses that reference it are left alone; they render as
        "Unknown" from then on.

        Raises:
            CategoryNotFoundError: If the scope has no such category
            MinimumCategoryError: If it is the scope's last category
        """
        items = self.categories_for(scope)
        if not any(c.id == category_id for c in items):
            raise CategoryNotFoundError(category_id, scope)
        if len(items) <= 1:
            raise MinimumCategoryError(scope)
        return self._with_categories(scope, [c for c in items if c.id != category_id])

    def replace_categories(self, scope: Scope, items: list[Category]) -> "AppState":
        return self._with_categories(scope, list(items))

    # =========================================================================
    # SETTINGS
    # =========================================================================

    def with_settings(self, settings: UserSettings) -> "AppState":
        return self.model_copy(update={"settings": settings})

    def _update_settings(self, **changes: Any) -> "AppState":
        return self.with_settings(self.settings.model_copy(update=changes))

    def set_budget(self, scope: Scope, value: float) -> "AppState":
        if value < 0:
            raise ValueError("Budget cannot be negative")
        budgets = self.settings.monthly_budgets.with_budget(scope, value)
        return self._update_settings(monthly_budgets=budgets)

    def set_theme(self, theme: Theme) -> "AppState":
        return self._update_settings(theme=Theme(theme))

    def set_user_name(self, name: str) -> "AppState":
        name = (name or "").strip()
        if not name:
            raise ValueError("Name cannot be empty")
        return self._update_settings(name=name)

    def set_scope_name(self, scope: Scope, name: str) -> "AppState":
        # Blank is allowed: the label then falls back to the user's name
        name = (name or "").strip()
        names = self.settings.names or ScopeNames(
            personal=self.settings.name,
            business=self.settings.name,
        )
        return self._update_settings(names=names.model_copy(update={scope.value: name}))

    def set_auto_sync(self, enabled: bool) -> "AppState":
        return self._update_settings(auto_sync=bool(enabled))

    def mark_synced(self, epoch_ms: int) -> "AppState":
        return self._update_settings(last_synced_at=epoch_ms)

    # =========================================================================
    # NAVIGATION
    # =========================================================================

    def switch_scope(self, scope: Scope) -> "AppState":
        return self.model_copy(update={"current_scope": Scope(scope)})
