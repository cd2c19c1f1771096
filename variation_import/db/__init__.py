"""Audit log storage."""

from .import_log import ImportLog, ImportLogError, NullImportLog, PostgresImportLog

__all__ = [
    "ImportLog",
    "ImportLogError",
    "NullImportLog",
    "PostgresImportLog",
]
