"""In-memory application state and its persistence adapter."""

from pocketbook.state.app_state import (
    AppState,
    CategoryNotFoundError,
    ExpenseNotFoundError,
    MinimumCategoryError,
    StateError,
)
from pocketbook.state.repository import StateRepository

__all__ = [
    "AppState",
    "CategoryNotFoundError",
    "ExpenseNotFoundError",
    "MinimumCategoryError",
    "StateError",
    "StateRepository",
]
