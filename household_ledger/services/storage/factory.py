"""Build the configured persistence and audit backends."""

from typing import Optional

from household_ledger.config.settings import Settings, get_settings
from household_ledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsStorage,
)
from household_ledger.services.storage.interface import (
    AuditStorageInterface,
    PersistenceInterface,
)
from household_ledger.services.storage.json_file import JsonFileStorage
from household_ledger.services.storage.memory import InMemoryStorage


def build_persistence(settings: Optional[Settings] = None) -> PersistenceInterface:
    """Create the persistence backend named by LEDGER_STORAGE_BACKEND."""
    settings = settings or get_settings()
    backend = settings.storage.backend

    if backend == "memory":
        return InMemoryStorage()
    if backend == "json":
        return JsonFileStorage(settings.storage.data_path)
    if backend == "google_sheets":
        return GoogleSheetsStorage(GoogleSheetsClient(settings.google_sheets))

    raise ValueError(f"Unknown storage backend: {backend}")


def build_audit_storage(
    settings: Optional[Settings] = None,
) -> Optional[AuditStorageInterface]:
    """
    Audit events are only persisted for the Google Sheets backend.

    Other backends rely on the structured log alone.
    """
    settings = settings or get_settings()
    if settings.storage.backend == "google_sheets":
        return GoogleSheetsAuditStorage(GoogleSheetsClient(settings.google_sheets))
    return None
