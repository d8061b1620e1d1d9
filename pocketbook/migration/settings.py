"""
Settings Migration

Persisted settings have changed shape over time:
- v1 stored a single numeric `monthlyBudget` (personal only)
- v2 stores `monthlyBudgets: {personal, business}` and `autoSync`

DESIGN DECISION: Migration works on the raw JSON dict, before typed
validation, so that it can read shapes the current model no longer
describes. It never drops unknown fields and it is idempotent:
migrating an already-migrated payload changes nothing.

Expense records have their own one-time upgrade here too: records
written before scopes existed carry no `scope` and belong to "personal".
"""

from collections.abc import Mapping
from typing import Any, Optional

from pocketbook.models.expense import DEFAULT_USER_NAME, Scope, Theme


LEGACY_BUDGET_KEY = "monthlyBudget"
BUDGETS_KEY = "monthlyBudgets"
AUTO_SYNC_KEY = "autoSync"


def default_settings_payload() -> dict[str, Any]:
    """Settings for a first run."""
    return {
        "name": DEFAULT_USER_NAME,
        "theme": Theme.LIGHT.value,
        AUTO_SYNC_KEY: True,
        BUDGETS_KEY: {Scope.PERSONAL.value: 0, Scope.BUSINESS.value: 0},
    }


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def migrate_settings_with_report(
    raw: Optional[Mapping[str, Any]],
) -> tuple[dict[str, Any], list[str]]:
    """
    Upgrade a persisted settings payload to the current shape.

    Returns:
        (migrated_payload, list_of_changes_applied)

    Raises:
        TypeError: If the payload is present but is not a JSON object
    """
    if raw is None:
        return default_settings_payload(), ["created_defaults"]

    if not isinstance(raw, Mapping):
        raise TypeError(f"Settings must be a JSON object, got {type(raw).__name__}")

    data = dict(raw)
    changes = []

    budgets = data.get(BUDGETS_KEY)
    if isinstance(budgets, Mapping):
        budgets = dict(budgets)
    else:
        if budgets is not None:
            changes.append("reset_malformed_budgets")
        budgets = {}

    for scope in Scope:
        if budgets.get(scope.value) is None:
            budgets[scope.value] = 0
            changes.append(f"defaulted_{scope.value}_budget")

    # v1 -> v2: the single budget was the personal one
    if _is_number(data.get(LEGACY_BUDGET_KEY)):
        legacy = data.pop(LEGACY_BUDGET_KEY)
        if legacy:
            budgets[Scope.PERSONAL.value] = legacy
            changes.append("folded_legacy_budget")
        else:
            changes.append("dropped_empty_legacy_budget")

    data[BUDGETS_KEY] = budgets

    if AUTO_SYNC_KEY not in data:
        data[AUTO_SYNC_KEY] = True
        changes.append("defaulted_auto_sync")

    return data, changes


def migrate_settings(raw: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Upgrade a persisted settings payload (see migrate_settings_with_report)."""
    migrated, _ = migrate_settings_with_report(raw)
    return migrated


def normalize_legacy_expenses(raw: list[Any]) -> tuple[list[Any], int]:
    """
    Give every scope-less expense record the personal scope.

    Non-dict items are passed through untouched; the decoder reports them.

    Returns:
        (records, number_of_records_changed)
    """
    normalized = []
    changed = 0

    for item in raw:
        if isinstance(item, Mapping) and item.get("scope") is None:
            item = {**item, "scope": Scope.PERSONAL.value}
            changed += 1
        normalized.append(item)

    return normalized, changed
