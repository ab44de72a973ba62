"""Services package."""

from household_ledger.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsStorage,
    InMemoryAuditStorage,
    InMemoryStorage,
    JsonFileStorage,
    NotFoundError,
    PersistenceInterface,
    StorageError,
    build_audit_storage,
    build_persistence,
)
from household_ledger.services.workbook import (
    OpenpyxlWorkbookCodec,
    WorkbookCodecInterface,
    WorkbookError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsStorage",
    "InMemoryAuditStorage",
    "InMemoryStorage",
    "JsonFileStorage",
    "NotFoundError",
    "PersistenceInterface",
    "StorageError",
    "build_audit_storage",
    "build_persistence",
    # Workbook services
    "OpenpyxlWorkbookCodec",
    "WorkbookCodecInterface",
    "WorkbookError",
]
