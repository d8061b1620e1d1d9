"""
Seed data for a fresh install.

A scope whose category key has never been written starts with these sets.
"""

from pocketbook.models.expense import Category, Scope


DEFAULT_PERSONAL_CATEGORIES: tuple[Category, ...] = (
    Category(id="1", name="Restaurante", color="#F97316", icon="utensils"),
    Category(id="2", name="Gasolina Carro", color="#EF4444", icon="car"),
    Category(id="3", name="Gasolina Moto", color="#8B5CF6", icon="bike"),
    Category(id="4", name="Mercado", color="#10B981", icon="shopping-cart"),
    Category(id="5", name="Lazer", color="#3B82F6", icon="gamepad-2"),
    Category(id="7", name="Internet", color="#06B6D4", icon="wifi"),
    Category(id="8", name="Energia", color="#F59E0B", icon="zap"),
    Category(id="9", name="Farmácia", color="#E11D48", icon="pill"),
    Category(id="10", name="Hospital", color="#DC2626", icon="activity"),
    Category(id="11", name="Loja", color="#4F46E5", icon="store"),
    Category(id="12", name="Compra Online", color="#8B5CF6", icon="globe"),
    Category(id="13", name="Construção", color="#EA580C", icon="hammer"),
    Category(id="14", name="Manutenção", color="#65A30D", icon="wrench"),
    Category(id="15", name="Vestuário", color="#DB2777", icon="shirt"),
    Category(id="16", name="Crédito Celular", color="#0891B2", icon="smartphone"),
    Category(id="17", name="Lava Jato", color="#0EA5E9", icon="droplets"),
    Category(id="18", name="Serviços", color="#64748B", icon="briefcase"),
    Category(id="19", name="Viagem", color="#14B8A6", icon="plane"),
)

DEFAULT_BUSINESS_CATEGORIES: tuple[Category, ...] = (
    Category(id="mv_1", name="Gasolina Carro", color="#EF4444", icon="car"),
    Category(id="mv_2", name="Gasolina Moto", color="#8B5CF6", icon="bike"),
    Category(id="mv_3", name="Fretes SP", color="#3B82F6", icon="truck"),
    Category(id="mv_4", name="Outros Fretes", color="#64748B", icon="truck"),
    Category(id="mv_5", name="Insumos / Embalagens", color="#F59E0B", icon="package"),
    Category(id="mv_6", name="Funcionários", color="#10B981", icon="users"),
    Category(id="mv_7", name="Manutenção", color="#F43F5E", icon="zap"),
    Category(id="mv_8", name="Energia", color="#F59E0B", icon="zap"),
)

# Colours offered when creating a category
CATEGORY_COLORS: tuple[str, ...] = (
    "#EF4444", "#F97316", "#F59E0B", "#84CC16", "#10B981",
    "#06B6D4", "#3B82F6", "#6366F1", "#8B5CF6", "#D946EF",
    "#F43F5E", "#64748B", "#78350F", "#111827",
    "#E11D48", "#DC2626", "#4F46E5", "#EA580C", "#65A30D", "#DB2777", "#0891B2",
    "#0EA5E9",
)

# Rendering for expenses whose category no longer exists
UNKNOWN_CATEGORY_NAME = "Unknown"
UNKNOWN_CATEGORY_COLOR = "#cbd5e1"


def default_categories(scope: Scope) -> list[Category]:
    if scope == Scope.BUSINESS:
        return list(DEFAULT_BUSINESS_CATEGORIES)
    return list(DEFAULT_PERSONAL_CATEGORIES)
