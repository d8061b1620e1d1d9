"""
Backup Codec

A backup is one JSON object holding the four persisted sections under
their storage keys:

    {
      "expenses": [...],
      "categories_personal": [...],
      "categories_business": [...],
      "userSettings": {...}
    }

DESIGN DECISION: Import is all-or-nothing. The whole document is decoded
strictly first; only if every present section is valid is any of it
applied. Absent (or null) sections are skipped and keep their current
value.
"""

import json
from datetime import date
from typing import Any, Optional, Union

import structlog

from pocketbook.config import get_settings
from pocketbook.models.expense import Scope
from pocketbook.services.storage import EXPENSES_KEY, SETTINGS_KEY, categories_key
from pocketbook.state import AppState
from pocketbook.validation import decode_categories, decode_expenses, decode_settings


logger = structlog.get_logger(__name__)

Payload = Union[str, bytes, bytearray, dict]


class BackupImportError(Exception):
    """The backup document cannot be applied. Nothing was changed."""

    def __init__(self, message: str, problems: Optional[list[str]] = None):
        self.problems = problems or []
        super().__init__(message)


def export_document(state: AppState) -> dict[str, Any]:
    """JSON-ready backup document for the given state."""
    document: dict[str, Any] = {
        EXPENSES_KEY: [e.to_storage() for e in state.expenses],
    }
    for scope in Scope:
        document[categories_key(scope)] = [
            c.to_storage() for c in state.categories_for(scope)
        ]
    document[SETTINGS_KEY] = state.settings.to_storage()
    return document


def dumps_document(document: dict[str, Any]) -> str:
    """Pretty-printed JSON text (2-space indent) of a backup document."""
    return json.dumps(document, indent=2, ensure_ascii=False)


def backup_filename(today: Optional[date] = None) -> str:
    """e.g. financas_backup_2024-05-31.json"""
    today = today or date.today()
    prefix = get_settings().app.backup_filename_prefix
    return f"{prefix}_{today.isoformat()}.json"


def parse_document(payload: Payload) -> dict[str, Any]:
    """
    Turn raw backup input into a dict.

    Raises:
        BackupImportError: If the payload is not JSON or not a JSON object
    """
    if isinstance(payload, dict):
        return payload

    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise BackupImportError(f"Backup is not UTF-8 text: {e}")

    try:
        document = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise BackupImportError(f"Backup is not valid JSON: {e}")

    if not isinstance(document, dict):
        raise BackupImportError(
            f"Backup must be a JSON object, got {type(document).__name__}"
        )
    return document


def import_document(payload: Payload, state: AppState) -> AppState:
    """
    Apply a backup document to a state.

    Present sections replace their counterpart wholesale. Settings are
    run through the migrator, legacy expenses get the personal scope.

    Returns:
        The new state

    Raises:
        BackupImportError: If the document or any present section is invalid
    """
    document = parse_document(payload)
    problems: list[str] = []
    updated = state

    raw_expenses = document.get(EXPENSES_KEY)
    if raw_expenses is not None:
        result = decode_expenses(raw_expenses, strict=True)
        if result.is_valid:
            updated = updated.replace_expenses(result.value)
        else:
            problems.extend(result.error_messages)

    for scope in Scope:
        key = categories_key(scope)
        raw = document.get(key)
        if raw is None:
            continue
        result = decode_categories(raw, section=key, strict=True)
        if not result.is_valid:
            problems.extend(result.error_messages)
        elif not result.value:
            problems.append(f"'{key}' must hold at least one category")
        else:
            updated = updated.replace_categories(scope, result.value)

    raw_settings = document.get(SETTINGS_KEY)
    if raw_settings is not None:
        result = decode_settings(raw_settings, strict=True)
        if result.is_valid:
            updated = updated.with_settings(result.value)
        else:
            problems.extend(result.error_messages)

    if problems:
        logger.warning("backup_rejected", problems=problems)
        raise BackupImportError("Backup contains invalid data", problems)

    return updated


def applied_sections(payload: Payload) -> list[str]:
    """Keys of a (parsed) backup document that an import would apply."""
    document = parse_document(payload)
    keys = [EXPENSES_KEY] + [categories_key(s) for s in Scope] + [SETTINGS_KEY]
    return [key for key in keys if document.get(key) is not None]
