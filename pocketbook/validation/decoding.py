"""
Tagged Decoding of Persisted and Imported JSON

DESIGN DECISION: Nothing read from disk or from a backup file is trusted.
Every payload goes through a decoder that returns a DecodeResult:
either a typed value, or an explicit invalid result listing what was
wrong. Callers decide what to do with an invalid result; decoders
never raise for bad data.

Two modes:
- lenient (loading local storage): bad records are skipped and reported
  as warnings so one damaged row cannot lock the user out of the app
- strict (importing a backup): any bad record makes the whole section
  invalid, because an import must apply completely or not at all
"""

import copy
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field, ValidationError

from pocketbook.migration import migrate_settings_with_report, normalize_legacy_expenses
from pocketbook.models.expense import (
    Category,
    Expense,
    UserSettings,
    ValidationIssue,
)


T = TypeVar("T")


class DecodeResult(BaseModel, Generic[T]):
    """Either a decoded value or the reasons it could not be decoded."""

    value: Optional[T] = None
    issues: list[ValidationIssue] = Field(default_factory=list)
    skipped: int = Field(default=0, ge=0)
    notes: list[str] = Field(
        default_factory=list,
        description="Non-error remarks (e.g. migration steps applied)"
    )

    @property
    def is_valid(self) -> bool:
        return self.value is not None and not any(
            issue.severity == "error" for issue in self.issues
        )

    @property
    def error_messages(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "error"]


def _error(field: str, issue_type: str, message: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="error",
    )


def _summarize(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ())) or "value"
        parts.append(f"{location}: {err.get('msg')}")
    return "; ".join(parts)


def _decode_list(
    raw: Any,
    section: str,
    model: type[BaseModel],
    strict: bool,
) -> DecodeResult:
    if not isinstance(raw, list):
        return DecodeResult(issues=[_error(
            section,
            "invalid_type",
            f"'{section}' must be a list, got {type(raw).__name__}",
        )])

    items = []
    issues = []
    seen_ids = set()
    skipped = 0

    for index, item in enumerate(raw):
        field = f"{section}[{index}]"
        try:
            record = model.model_validate(item)
        except ValidationError as e:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_record",
                message=f"{field} is invalid: {_summarize(e)}",
                severity="error" if strict else "warning",
            ))
            skipped += 1
            continue

        if record.id in seen_ids:
            issues.append(ValidationIssue(
                field=field,
                issue_type="duplicate_id",
                message=f"{field} repeats id {record.id!r}",
                severity="error" if strict else "warning",
            ))
            skipped += 1
            continue

        seen_ids.add(record.id)
        items.append(record)

    if strict and skipped:
        return DecodeResult(issues=issues, skipped=skipped)

    return DecodeResult(value=items, issues=issues, skipped=skipped)


def decode_expenses(raw: Any, strict: bool = False) -> DecodeResult[list[Expense]]:
    """
    Decode a list of expense records.

    Legacy records without a scope are assigned to "personal" first.
    """
    if raw is None:
        return DecodeResult(value=[])

    notes = []
    if isinstance(raw, list):
        raw, normalized = normalize_legacy_expenses(raw)
        if normalized:
            notes.append(f"normalized_scope:{normalized}")

    result = _decode_list(raw, "expenses", Expense, strict)
    result.notes.extend(notes)
    return result


def decode_categories(
    raw: Any,
    section: str = "categories",
    strict: bool = False,
) -> DecodeResult[list[Category]]:
    """Decode one scope's category collection. None means "never saved"."""
    if raw is None:
        return DecodeResult()
    return _decode_list(raw, section, Category, strict)


def _drop_invalid_fields(payload: dict, exc: ValidationError) -> list[str]:
    """Remove every value the error points at; returns the dotted paths removed."""
    dropped = []
    for err in exc.errors():
        location = list(err.get("loc", ()))
        if not location:
            continue
        parent = payload
        for part in location[:-1]:
            parent = parent.get(part) if isinstance(parent, dict) else None
        if isinstance(parent, dict) and location[-1] in parent:
            del parent[location[-1]]
            dropped.append(".".join(str(p) for p in location))
    return dropped


def decode_settings(raw: Any, strict: bool = False) -> DecodeResult[UserSettings]:
    """
    Migrate and decode a settings payload (None yields defaults).

    In lenient mode a field that fails validation is dropped (so it takes
    its default) and reported as a warning; the rest of the object, unknown
    fields included, is kept. Strict mode rejects the whole payload.
    """
    try:
        migrated, changes = migrate_settings_with_report(raw)
    except TypeError as e:
        return DecodeResult(issues=[_error("userSettings", "invalid_type", str(e))])

    payload = copy.deepcopy(migrated)
    issues = []
    while True:
        try:
            settings = UserSettings.model_validate(payload)
            break
        except ValidationError as e:
            dropped = [] if strict else _drop_invalid_fields(payload, e)
            if not dropped:
                return DecodeResult(issues=[_error(
                    "userSettings",
                    "invalid_record",
                    f"userSettings is invalid: {_summarize(e)}",
                )])
            issues.extend(
                ValidationIssue(
                    field=f"userSettings.{path}",
                    issue_type="invalid_value",
                    message=f"userSettings.{path} was unreadable and reset to its default",
                    severity="warning",
                )
                for path in dropped
            )

    return DecodeResult(value=settings, issues=issues, notes=changes)
