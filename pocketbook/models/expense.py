"""
Core Data Models for Pocketbook

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Serialize to the exact JSON shape kept in local storage and backups
4. Tolerate older persisted shapes without losing unknown fields

DESIGN DECISION: Python attributes are snake_case, the persisted JSON is
camelCase. The alias generator bridges the two so storage files written by
earlier versions of the app keep loading unchanged.
"""

import time
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


CENTS = Decimal("0.01")
HEX_COLOR_PATTERN = r"^#(?:[0-9a-fA-F]{3}){1,2}$"


def generate_id() -> str:
    """New record identifier. Never reused."""
    return uuid4().hex


def epoch_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def to_money(value: Any) -> Decimal:
    """
    Coerce a JSON number / text into a 2-decimal Decimal.

    Floats go through str() so 0.1 stays 0.1 and not its binary expansion.
    """
    if isinstance(value, bool):
        raise ValueError("Amount must be a number")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip().replace(",", "."))
        except (InvalidOperation, ValueError):
            raise ValueError(f"Not a valid amount: {value!r}")
    if not amount.is_finite():
        raise ValueError("Amount must be finite")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Scope(str, Enum):
    """
    Independent accounting contexts.

    Both scopes share one expense collection (told apart by the `scope`
    tag) but each has its own categories and budget.
    """
    PERSONAL = "personal"
    BUSINESS = "business"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class CategoryIcon(str, Enum):
    """Icon keys a category may carry."""
    UTENSILS = "utensils"
    CAR = "car"
    BIKE = "bike"
    SHOPPING_CART = "shopping-cart"
    COFFEE = "coffee"
    HOME = "home"
    ZAP = "zap"
    FUEL = "fuel"
    WIFI = "wifi"
    TRUCK = "truck"
    PACKAGE = "package"
    USERS = "users"
    BADGE_CHECK = "badge-check"
    BRIEFCASE = "briefcase"
    GIFT = "gift"
    MUSIC = "music"
    HEART = "heart"
    DOLLAR_SIGN = "dollar-sign"
    BUS = "bus"
    PLANE = "plane"
    GRADUATION_CAP = "graduation-cap"
    GAMEPAD_2 = "gamepad-2"
    PILL = "pill"
    ACTIVITY = "activity"
    STORE = "store"
    GLOBE = "globe"
    HAMMER = "hammer"
    WRENCH = "wrench"
    SHIRT = "shirt"
    SMARTPHONE = "smartphone"
    DROPLETS = "droplets"


FALLBACK_ICON = "tag"
ICON_KEYS: tuple[str, ...] = tuple(icon.value for icon in CategoryIcon)


def resolve_icon(icon: Optional[str]) -> str:
    """Map a stored icon key to a renderable one ("tag" when unknown)."""
    if icon in ICON_KEYS:
        return icon
    return FALLBACK_ICON


# =============================================================================
# BASE
# =============================================================================

class StoredModel(BaseModel):
    """Base for everything that is persisted as camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_storage(self) -> dict[str, Any]:
        """JSON-ready dict in the persisted (camelCase) shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# CATEGORIES AND EXPENSES
# =============================================================================

class Category(StoredModel):
    """
    A user-defined expense category, owned by exactly one scope.

    Identity is `id`. The icon is free text on purpose: unknown keys are
    kept as-is and only resolved to the fallback icon when rendered.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        default_factory=generate_id,
        min_length=1,
        description="Unique category ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        description="Display name"
    )
    color: str = Field(
        ...,
        pattern=HEX_COLOR_PATTERN,
        description="Hex colour, e.g. #F97316"
    )
    icon: Optional[str] = Field(
        default=None,
        description="Icon key from the icon registry"
    )

    @property
    def display_icon(self) -> str:
        return resolve_icon(self.icon)


class Expense(StoredModel):
    """
    A single recorded expense.

    `created_at` is set once when the record is created and never changes.
    Every other field except `id` may be replaced by an edit.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        default_factory=generate_id,
        min_length=1,
        description="Unique expense ID"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount in currency units, two decimals"
    )
    category_id: str = Field(
        ...,
        min_length=1,
        description="Category in the owning scope's collection"
    )
    spent_on: date = Field(
        ...,
        alias="date",
        description="Calendar date of the expense (no time component)"
    )
    description: str = Field(..., min_length=1)
    created_at: int = Field(
        default_factory=epoch_millis,
        ge=0,
        description="Creation instant, epoch milliseconds"
    )
    scope: Scope = Field(
        default=Scope.PERSONAL,
        description="Owning scope"
    )
    receipt_image: Optional[str] = Field(
        default=None,
        description="Encoded receipt image payload (data URL)"
    )

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return to_money(v)

    @field_serializer("amount", when_used="json")
    def serialize_amount(self, amount: Decimal) -> float:
        return float(amount)

    @property
    def month_key(self) -> str:
        """YYYY-MM bucket of the expense date."""
        return self.spent_on.strftime("%Y-%m")


# =============================================================================
# USER SETTINGS
# =============================================================================

class MonthlyBudgets(StoredModel):
    """Monthly spending ceiling per scope. 0 means unset."""
    model_config = ConfigDict(frozen=True)

    personal: float = Field(default=0.0, ge=0)
    business: float = Field(default=0.0, ge=0)

    def for_scope(self, scope: Scope) -> float:
        return self.personal if scope == Scope.PERSONAL else self.business

    def with_budget(self, scope: Scope, value: float) -> "MonthlyBudgets":
        return self.model_copy(update={scope.value: float(value)})


class ScopeNames(StoredModel):
    """
    User-chosen display names for the two scopes.

    A blank name is a normal stored value and means "show the user's name".
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    personal: Optional[str] = None
    business: Optional[str] = None

    def for_scope(self, scope: Scope) -> Optional[str]:
        return self.personal if scope == Scope.PERSONAL else self.business


DEFAULT_USER_NAME = "Usuário"


class UserSettings(StoredModel):
    """
    Process-wide user settings.

    DESIGN DECISION: Unknown fields are kept (extra="allow") so settings
    written by a newer version of the app survive a round trip through an
    older one. Shape upgrades happen in the settings migrator, never here.
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    name: str = Field(default=DEFAULT_USER_NAME)
    theme: Theme = Field(default=Theme.LIGHT)
    auto_sync: Optional[bool] = Field(default=True)
    last_synced_at: Optional[int] = Field(
        default=None,
        ge=0,
        description="Last persistence stamp, epoch milliseconds"
    )
    monthly_budgets: MonthlyBudgets = Field(default_factory=MonthlyBudgets)
    names: Optional[ScopeNames] = None

    def budget_for(self, scope: Scope) -> float:
        return self.monthly_budgets.for_scope(scope)

    def scope_label(self, scope: Scope) -> str:
        """The scope's own name, or the user's name when it has none."""
        label = self.names.for_scope(scope) if self.names is not None else None
        return label or self.name


# =============================================================================
# DRAFTS (proposed, not yet saved)
# =============================================================================

class ExpenseDraft(BaseModel):
    """
    Raw expense form input.

    CRITICAL: This is PROPOSED data. It becomes an Expense only after the
    validator accepts it, so every field is optional here.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Optional[str] = None
    category_id: Optional[str] = None
    description: Optional[str] = None
    spent_on: Optional[date] = None
    receipt_image: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def amount_as_text(cls, v: Union[str, int, float, Decimal, None]) -> Optional[str]:
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @classmethod
    def from_expense(cls, expense: Expense) -> "ExpenseDraft":
        """Pre-fill a draft for editing an existing expense."""
        return cls(
            amount=str(expense.amount),
            category_id=expense.category_id,
            description=expense.description,
            spent_on=expense.spent_on,
            receipt_image=expense.receipt_image,
        )


class SmartParseResult(BaseModel):
    """
    Best-effort structured guess from free-form text.

    Advisory only: it pre-fills a draft, the user still has to save it.
    """
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    amount: Optional[Decimal] = Field(default=None, gt=0)
    category_name: Optional[str] = Field(default=None, alias="categoryName")
    description: Optional[str] = None
    spent_on: Optional[date] = Field(default=None, alias="date")

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Optional[Decimal]:
        if v is None or v == "":
            return None
        return to_money(v)

    @field_validator("category_name", "description", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def to_draft(
        self,
        category_id: Optional[str] = None,
        fallback_date: Optional[date] = None,
    ) -> ExpenseDraft:
        return ExpenseDraft(
            amount=str(self.amount) if self.amount is not None else None,
            category_id=category_id,
            description=self.description,
            spent_on=self.spent_on or fallback_date,
        )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_reference')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Outcome of validating an expense draft."""

    is_valid: bool = Field(
        ...,
        description="True when no error-level issue was found"
    )
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
