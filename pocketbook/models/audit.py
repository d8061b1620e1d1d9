"""
Audit Models for Pocketbook

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of every mutation of the local data
2. Debugging information when a backup or upload goes wrong
3. Ability to reconstruct what happened to a record

DESIGN DECISION: Audit events are append-only structured log lines.
They are never edited after being emitted.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Expenses
    EXPENSE_SAVED = "expense_saved"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    EXPENSE_SAVE_REFUSED = "expense_save_refused"

    # Categories
    CATEGORY_ADDED = "category_added"
    CATEGORY_DELETED = "category_deleted"
    CATEGORY_DELETE_REFUSED = "category_delete_refused"

    # Settings
    SETTINGS_MIGRATED = "settings_migrated"
    SETTINGS_UPDATED = "settings_updated"
    LEGACY_RECORDS_NORMALIZED = "legacy_records_normalized"

    # Backups
    BACKUP_EXPORTED = "backup_exported"
    BACKUP_IMPORTED = "backup_imported"
    BACKUP_IMPORT_FAILED = "backup_import_failed"

    # Receipt images
    IMAGE_NORMALIZED = "image_normalized"
    IMAGE_REJECTED = "image_rejected"
    IMAGE_SUPERSEDED = "image_superseded"

    # Smart parse
    SMART_PARSE_COMPLETED = "smart_parse_completed"
    SMART_PARSE_UNAVAILABLE = "smart_parse_unavailable"
    SMART_PARSE_FAILED = "smart_parse_failed"

    # System events
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'category', 'backup')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one save action)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_saved(expense_id, scope, amount, correlation_id)
        event = AuditEventBuilder.backup_import_failed(reason, correlation_id)
    """

    @staticmethod
    def expense_saved(
        expense_id: str,
        scope: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_SAVED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense saved in {scope}",
            details={"scope": scope, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def expense_updated(
        expense_id: str,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Expense updated",
            details={"changed_fields": changed_fields},
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Expense deleted",
            is_user_action=True,
        )

    @staticmethod
    def expense_save_refused(
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_SAVE_REFUSED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            correlation_id=correlation_id,
            description=f"Expense save refused with {len(issues)} issue(s)",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def category_added(
        category_id: str,
        scope: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_ADDED,
            entity_type="category",
            entity_id=category_id,
            correlation_id=correlation_id,
            description=f"Category added to {scope}: {name}",
            details={"scope": scope, "name": name},
            is_user_action=True,
        )

    @staticmethod
    def category_deleted(
        category_id: str,
        scope: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETED,
            entity_type="category",
            entity_id=category_id,
            correlation_id=correlation_id,
            description=f"Category deleted from {scope}",
            details={"scope": scope},
            is_user_action=True,
        )

    @staticmethod
    def category_delete_refused(
        category_id: str,
        scope: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETE_REFUSED,
            severity=AuditSeverity.WARNING,
            entity_type="category",
            entity_id=category_id,
            correlation_id=correlation_id,
            description=f"Category delete refused in {scope}",
            details={"scope": scope, "reason": reason},
            is_user_action=True,
        )

    @staticmethod
    def settings_migrated(
        changes: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_MIGRATED,
            entity_type="settings",
            description="Persisted settings upgraded to the current shape",
            details={"changes": changes},
        )

    @staticmethod
    def settings_updated(
        fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            entity_type="settings",
            correlation_id=correlation_id,
            description="Settings updated",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def legacy_records_normalized(count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEGACY_RECORDS_NORMALIZED,
            entity_type="expense",
            description=f"{count} legacy expense(s) assigned to the personal scope",
            details={"count": count},
        )

    @staticmethod
    def backup_exported(
        filename: str,
        expense_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_EXPORTED,
            entity_type="backup",
            correlation_id=correlation_id,
            description=f"Backup exported: {filename}",
            details={"filename": filename, "expense_count": expense_count},
            is_user_action=True,
        )

    @staticmethod
    def backup_imported(
        applied_keys: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_IMPORTED,
            entity_type="backup",
            correlation_id=correlation_id,
            description="Backup restored",
            details={"applied_keys": applied_keys},
            is_user_action=True,
        )

    @staticmethod
    def backup_import_failed(
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_IMPORT_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="backup",
            correlation_id=correlation_id,
            description="Backup could not be read; nothing was changed",
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def image_normalized(
        original_size: tuple[int, int],
        stored_size: tuple[int, int],
        encoded_bytes: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMAGE_NORMALIZED,
            entity_type="image",
            correlation_id=correlation_id,
            description=(
                f"Receipt image normalized from {original_size[0]}x{original_size[1]} "
                f"to {stored_size[0]}x{stored_size[1]}"
            ),
            details={
                "original_size": list(original_size),
                "stored_size": list(stored_size),
                "encoded_bytes": encoded_bytes,
            },
        )

    @staticmethod
    def image_rejected(
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMAGE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="image",
            correlation_id=correlation_id,
            description="Receipt image could not be read; expense saved without it",
            error_message=reason,
        )

    @staticmethod
    def image_superseded(token: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMAGE_SUPERSEDED,
            severity=AuditSeverity.DEBUG,
            entity_type="image",
            description="Receipt upload superseded by a newer one",
            details={"token": token},
        )

    @staticmethod
    def smart_parse_completed(
        matched_category: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SMART_PARSE_COMPLETED,
            entity_type="smart_parse",
            correlation_id=correlation_id,
            description="Text parsed into an expense suggestion",
            details={"matched_category": matched_category},
        )

    @staticmethod
    def smart_parse_unavailable() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SMART_PARSE_UNAVAILABLE,
            severity=AuditSeverity.WARNING,
            entity_type="smart_parse",
            description="Smart parse unavailable: no API key configured",
        )

    @staticmethod
    def smart_parse_failed(
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SMART_PARSE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="smart_parse",
            correlation_id=correlation_id,
            description="Smart parse call failed; manual entry continues",
            error_message=error_message,
        )

    @staticmethod
    def storage_error(
        key: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type="storage",
            entity_id=key,
            correlation_id=correlation_id,
            description=f"Storage operation failed for key {key}",
            error_message=error_message,
        )
