"""
Data Models Package

This package contains all Pydantic models used in Pocketbook.
All data flowing through the system must conform to these schemas.
"""

from pocketbook.models.expense import (
    FALLBACK_ICON,
    ICON_KEYS,
    Category,
    CategoryIcon,
    Expense,
    ExpenseDraft,
    MonthlyBudgets,
    Scope,
    ScopeNames,
    SmartParseResult,
    Theme,
    UserSettings,
    ValidationIssue,
    ValidationResult,
    resolve_icon,
)
from pocketbook.models.report import (
    BudgetLevel,
    BudgetStatus,
    CategoryShare,
    ChartReport,
    HistoryDay,
    MonthSummary,
    TimeBucket,
    TitheResult,
)
from pocketbook.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Domain models
    "FALLBACK_ICON",
    "ICON_KEYS",
    "Category",
    "CategoryIcon",
    "Expense",
    "ExpenseDraft",
    "MonthlyBudgets",
    "Scope",
    "ScopeNames",
    "SmartParseResult",
    "Theme",
    "UserSettings",
    "ValidationIssue",
    "ValidationResult",
    "resolve_icon",
    # Report models
    "BudgetLevel",
    "BudgetStatus",
    "CategoryShare",
    "ChartReport",
    "HistoryDay",
    "MonthSummary",
    "TimeBucket",
    "TitheResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
