"""Backup export and import."""

from pocketbook.services.backup.codec import (
    BackupImportError,
    applied_sections,
    backup_filename,
    dumps_document,
    export_document,
    import_document,
    parse_document,
)

__all__ = [
    "BackupImportError",
    "applied_sections",
    "backup_filename",
    "dumps_document",
    "export_document",
    "import_document",
    "parse_document",
]
