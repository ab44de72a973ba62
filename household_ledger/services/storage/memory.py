"""
In-Memory Storage

Used by tests and by short-lived sessions that should not touch disk.
Payloads are kept as encoded text so corruption handling behaves exactly
as it does for the real backends.
"""

from typing import Optional

from household_ledger.models.audit import AuditEvent
from household_ledger.services.storage.interface import (
    AuditStorageInterface,
    PersistenceInterface,
)


class InMemoryStorage(PersistenceInterface):
    """Dictionary-backed persistence."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._payloads: dict[str, str] = dict(initial or {})

    async def read_raw(self, key: str) -> Optional[str]:
        return self._payloads.get(key)

    async def write_raw(self, key: str, payload: str) -> None:
        self._payloads[key] = payload

    async def discard(self, key: str) -> None:
        self._payloads.pop(key, None)

    def raw_payload(self, key: str) -> Optional[str]:
        """Inspect what is stored under a key without decoding it."""
        return self._payloads.get(key)


class InMemoryAuditStorage(AuditStorageInterface):
    """List-backed audit log."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = sorted(self.events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
