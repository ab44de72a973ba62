"""
Storage Services Package

Provides the abstract persistence interface and its backends.
JSON files are the default; Google Sheets and in-memory storage are swappable.
"""

from household_ledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    PersistenceInterface,
    StorageError,
)
from household_ledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryStorage,
)
from household_ledger.services.storage.json_file import JsonFileStorage
from household_ledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsStorage,
)
from household_ledger.services.storage.factory import (
    build_audit_storage,
    build_persistence,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "PersistenceInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsStorage",
    "InMemoryAuditStorage",
    "InMemoryStorage",
    "JsonFileStorage",
    # Factories
    "build_audit_storage",
    "build_persistence",
]
