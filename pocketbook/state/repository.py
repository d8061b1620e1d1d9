"""
State Repository

Loads AppState from a key-value store and writes it back.

DESIGN DECISION: Loading is lenient. A damaged key never locks the user
out: bad records are skipped, an unreadable section falls back to its
first-run value, and every such fallback is audited. Writing is a
whole-collection overwrite of each section that changed.
"""

from typing import Optional
from uuid import UUID

import structlog

from pocketbook.audit import AuditLogger
from pocketbook.models.audit import AuditEventBuilder
from pocketbook.models.defaults import default_categories
from pocketbook.models.expense import Scope, UserSettings, epoch_millis
from pocketbook.services.storage import (
    EXPENSES_KEY,
    SETTINGS_KEY,
    CorruptValueError,
    KeyValueStoreInterface,
    StorageError,
    categories_key,
)
from pocketbook.state.app_state import AppState
from pocketbook.validation import (
    DecodeResult,
    decode_categories,
    decode_expenses,
    decode_settings,
)


logger = structlog.get_logger(__name__)


class StateRepository:
    """
    Persistence adapter between AppState and a KeyValueStoreInterface.

    Keys:
    - expenses              : every expense, both scopes
    - categories_personal   : personal categories
    - categories_business   : business categories
    - userSettings          : the settings object
    """

    def __init__(
        self,
        store: KeyValueStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def store(self) -> KeyValueStoreInterface:
        return self._store

    def _read(self, key: str):
        """Raw value under a key; an unreadable value counts as invalid."""
        try:
            return self._store.get(key), None
        except CorruptValueError as e:
            self._audit_logger.log(AuditEventBuilder.storage_error(key, str(e)))
            return None, str(e)

    def _report(self, key: str, result: DecodeResult) -> None:
        for issue in result.issues:
            logger.warning(
                "stored_value_issue",
                key=key,
                field=issue.field,
                issue_type=issue.issue_type,
                message=issue.message,
            )

    # =========================================================================
    # LOAD
    # =========================================================================

    def load(self) -> AppState:
        """
        Build the in-memory state from storage.

        - Settings are migrated to the current shape
        - Scope-less legacy expenses become personal
        - A scope whose categories were never saved (or are unusable)
          starts with the default set

        Sections that were upgraded on the way in are written back so
        the upgrade happens once.
        """
        raw_settings, settings_error = self._read(SETTINGS_KEY)
        settings_result = decode_settings(raw_settings)
        self._report(SETTINGS_KEY, settings_result)
        if settings_result.is_valid:
            settings = settings_result.value
        else:
            settings = UserSettings()
        settings_changes = [n for n in settings_result.notes if n != "created_defaults"]
        if settings_changes:
            self._audit_logger.log(AuditEventBuilder.settings_migrated(settings_changes))
            self._write(SETTINGS_KEY, settings.to_storage())

        raw_expenses, _ = self._read(EXPENSES_KEY)
        expenses_result = decode_expenses(raw_expenses)
        self._report(EXPENSES_KEY, expenses_result)
        expenses = expenses_result.value if expenses_result.value is not None else []
        normalized = _normalized_count(expenses_result.notes)
        if normalized:
            self._audit_logger.log(AuditEventBuilder.legacy_records_normalized(normalized))
            self._write(EXPENSES_KEY, [e.to_storage() for e in expenses])

        categories = {}
        for scope in Scope:
            key = categories_key(scope)
            raw, _ = self._read(key)
            result = decode_categories(raw, section=key)
            self._report(key, result)
            categories[scope] = result.value if result.value else default_categories(scope)

        logger.info(
            "state_loaded",
            expenses=len(expenses),
            skipped_expenses=expenses_result.skipped,
            settings_fallback=settings_error is not None or not settings_result.is_valid,
        )

        return AppState(expenses=expenses, categories=categories, settings=settings)

    # =========================================================================
    # COMMIT
    # =========================================================================

    def commit(
        self,
        previous: AppState,
        current: AppState,
        now_ms: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AppState:
        """
        Persist every section that differs between two states.

        With auto-sync on, a change to records or categories also stamps
        `lastSyncedAt`. The returned state carries that stamp.

        Raises:
            StorageError: If a write fails
        """
        data_changed = False

        if current.expenses != previous.expenses:
            self._write(
                EXPENSES_KEY,
                [e.to_storage() for e in current.expenses],
                correlation_id,
            )
            data_changed = True

        for scope in Scope:
            if current.categories_for(scope) != previous.categories_for(scope):
                self._write(
                    categories_key(scope),
                    [c.to_storage() for c in current.categories_for(scope)],
                    correlation_id,
                )
                data_changed = True

        if data_changed and current.settings.auto_sync:
            current = current.mark_synced(now_ms if now_ms is not None else epoch_millis())

        if current.settings != previous.settings:
            self._write(SETTINGS_KEY, current.settings.to_storage(), correlation_id)

        return current

    def save_all(self, state: AppState, correlation_id: Optional[UUID] = None) -> None:
        """Overwrite every key with the given state (used after an import)."""
        self._write(EXPENSES_KEY, [e.to_storage() for e in state.expenses], correlation_id)
        for scope in Scope:
            self._write(
                categories_key(scope),
                [c.to_storage() for c in state.categories_for(scope)],
                correlation_id,
            )
        self._write(SETTINGS_KEY, state.settings.to_storage(), correlation_id)

    def _write(self, key: str, value, correlation_id: Optional[UUID] = None) -> None:
        try:
            self._store.set(key, value)
        except StorageError as e:
            self._audit_logger.log(AuditEventBuilder.storage_error(key, str(e), correlation_id))
            raise


def _normalized_count(notes: list[str]) -> int:
    for note in notes:
        if note.startswith("normalized_scope:"):
            return int(note.split(":", 1)[1])
    return 0
