"""Schema migration package."""

from pocketbook.migration.settings import (
    default_settings_payload,
    migrate_settings,
    migrate_settings_with_report,
    normalize_legacy_expenses,
)

__all__ = [
    "default_settings_payload",
    "migrate_settings",
    "migrate_settings_with_report",
    "normalize_legacy_expenses",
]
