"""Shared fixtures."""

from datetime import date

import pytest

from pocketbook.config import get_settings
from pocketbook.models import Category, Expense, Scope


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """No real API key and a throwaway data directory for every test."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("POCKETBOOK_STORAGE_DATA_DIR", str(tmp_path / "data"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def today() -> date:
    return date(2024, 5, 15)


@pytest.fixture
def categories() -> list[Category]:
    return [
        Category(id="food", name="Restaurante", color="#F97316", icon="utensils"),
        Category(id="market", name="Mercado", color="#10B981", icon="shopping-cart"),
        Category(id="fuel", name="Gasolina Carro", color="#EF4444", icon="car"),
    ]


def make_expense(
    amount,
    day: date,
    category_id: str = "food",
    description: str = "Despesa",
    scope: Scope = Scope.PERSONAL,
    **extra,
) -> Expense:
    return Expense(
        amount=amount,
        category_id=category_id,
        spent_on=day,
        description=description,
        scope=scope,
        **extra,
    )
