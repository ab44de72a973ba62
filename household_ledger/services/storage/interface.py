"""
Abstract Storage Interface

DESIGN DECISION: The ledger persists whole collections under a handful of
keys ("penerimaan", "pengeluaran", "options"). Every backend therefore only
has to read, write and discard one opaque payload per key. This allows us to:
1. Swap Google Sheets for local JSON files (or anything else)
2. Use in-memory storage for testing
3. Handle corrupted payloads in exactly one place

Backends implement the three raw operations. load()/save() are shared and
own JSON encoding, model validation and corruption recovery.
"""

import copy
import json
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

import structlog
from pydantic import TypeAdapter, ValidationError

from household_ledger.models.audit import AuditEvent


logger = structlog.get_logger(__name__)

CorruptionHandler = Callable[[str, str], Awaitable[None]]


class PersistenceInterface(ABC):
    """
    Abstract key/value persistence for ledger collections.

    Any storage implementation (JSON files, Google Sheets, etc.)
    must implement the raw methods below.
    """

    _corruption_handler: Optional[CorruptionHandler] = None

    @abstractmethod
    async def read_raw(self, key: str) -> Optional[str]:
        """
        Read the stored payload for a key.

        Returns:
            The payload text, or None if nothing is stored under the key

        Raises:
            StorageError: If the backend cannot be read
            UnicodeDecodeError: If the stored bytes are not UTF-8
        """
        pass

    @abstractmethod
    async def write_raw(self, key: str, payload: str) -> None:
        """
        Store a payload under a key, replacing any previous payload.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def discard(self, key: str) -> None:
        """
        Remove whatever is stored under a key. Missing keys are ignored.

        Raises:
            StorageError: If the backend cannot be written
        """
        pass

    def set_corruption_handler(self, handler: Optional[CorruptionHandler]) -> None:
        """Register a coroutine called with (key, error) when a payload is discarded."""
        self._corruption_handler = handler

    async def load(
        self,
        key: str,
        default: Any,
        adapter: Optional[TypeAdapter] = None,
    ) -> Any:
        """
        Load and decode the value stored under a key.

        A payload that does not decode as UTF-8 JSON, or that fails
        validation against `adapter`, is treated as corrupted: it is logged,
        discarded, and the default is returned. Corruption is never raised to
        the caller.

        Args:
            key: Storage key
            default: Value returned when nothing usable is stored
            adapter: Optional pydantic TypeAdapter to validate the payload

        Returns:
            The decoded value, or a copy of the default
        """
        try:
            raw = await self.read_raw(key)
        except UnicodeDecodeError as e:
            await self._recover_from_corruption(key, e)
            return copy.deepcopy(default)
        if raw is None:
            return copy.deepcopy(default)

        try:
            data = json.loads(raw)
            if adapter is not None:
                data = adapter.validate_python(data)
            return data
        except (ValueError, ValidationError) as e:
            await self._recover_from_corruption(key, e)
            return copy.deepcopy(default)

    async def save(
        self,
        key: str,
        value: Any,
        adapter: Optional[TypeAdapter] = None,
    ) -> None:
        """
        Encode and store a value under a key.

        Raises:
            StorageError: If the write fails
        """
        if adapter is not None:
            payload = adapter.dump_json(value).decode("utf-8")
        else:
            payload = json.dumps(value, ensure_ascii=False)
        await self.write_raw(key, payload)

    async def _recover_from_corruption(self, key: str, error: Exception) -> None:
        logger.warning(
            "persistence_corrupted",
            key=key,
            error=str(error),
        )
        try:
            await self.discard(key)
        except StorageError as discard_error:
            # The default is still returned; the next save overwrites the payload
            logger.error(
                "persistence_discard_failed",
                key=key,
                error=str(discard_error),
            )

        if self._corruption_handler is not None:
            await self._corruption_handler(key, str(error))


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
