"""
Transaction Store

The canonical in-memory collection of one transaction kind, backed by a
PersistenceInterface key. Income and expense each get their own store.

DESIGN DECISION: A store is an explicit object with a lifecycle:

    store = await TransactionStore.open(TransactionKind.INCOME, persistence, "penerimaan")
    ...
    await store.close()   # final flush

There is no module-level store. Every method runs inside the store's
asyncio.Lock so no caller ever sees a half-applied change, and every
reader gets deep copies so nothing outside the store can mutate it.

Writes persist the whole collection. If persisting fails, the in-memory
change is undone before the error propagates, so memory and storage never
disagree.

Role checks are NOT done here. See household_ledger.access.
"""

from __future__ import annotations

import asyncio
import datetime as dt
from typing import Optional
from uuid import uuid4

import structlog

from household_ledger.models.transaction import (
    TRANSACTION_LIST_ADAPTER,
    Transaction,
    TransactionDraft,
    TransactionKind,
    transaction_model,
)
from household_ledger.services.storage.interface import (
    NotFoundError,
    PersistenceInterface,
)


logger = structlog.get_logger(__name__)


def generate_transaction_code(prefix: str, on: dt.date, sequence: int) -> str:
    """
    Build an advisory transaction code, e.g. DP20240815-003.

    `sequence` is the number of records already dated `on`, plus one.
    The code is for display only; it is never checked for collisions.
    """
    return f"{prefix}{on.strftime('%Y%m%d')}-{sequence:03d}"


class StoreClosedError(Exception):
    """An operation was attempted on a store after close()."""
    pass


class TransactionStore:
    """Owns the collection of one transaction kind."""

    def __init__(
        self,
        kind: TransactionKind,
        persistence: PersistenceInterface,
        key: str,
        transactions: Optional[list[Transaction]] = None,
    ):
        self._kind = kind
        self._persistence = persistence
        self._key = key
        self._items: list[Transaction] = [
            t.model_copy(deep=True) for t in (transactions or [])
        ]
        self._lock = asyncio.Lock()
        self._closed = False

    @classmethod
    async def open(
        cls,
        kind: TransactionKind,
        persistence: PersistenceInterface,
        key: str,
    ) -> "TransactionStore":
        """Load the persisted snapshot for `key` and build a store around it."""
        loaded = await persistence.load(key, [], adapter=TRANSACTION_LIST_ADAPTER)

        items = [t for t in loaded if t.transaction_kind == kind]
        if len(items) != len(loaded):
            logger.warning(
                "foreign_records_dropped",
                key=key,
                kind=kind.value,
                dropped=len(loaded) - len(items),
            )

        logger.info("store_opened", key=key, kind=kind.value, count=len(items))
        return cls(kind, persistence, key, items)

    @property
    def kind(self) -> TransactionKind:
        return self._kind

    @property
    def key(self) -> str:
        return self._key

    @property
    def closed(self) -> bool:
        return self._closed

    # =========================================================================
    # READS
    # =========================================================================

    async def list(self) -> list[Transaction]:
        """Snapshot of every transaction. Mutating it never affects the store."""
        async with self._lock:
            self._ensure_open()
            return [t.model_copy(deep=True) for t in self._items]

    async def get(self, transaction_id: str) -> Optional[Transaction]:
        async with self._lock:
            self._ensure_open()
            idx = self._index_of(transaction_id)
            if idx is None:
                return None
            return self._items[idx].model_copy(deep=True)

    async def suggest_code(self, on: dt.date) -> str:
        """Advisory code for a new record dated `on`, from the current state."""
        async with self._lock:
            self._ensure_open()
            same_day = sum(1 for t in self._items if t.date == on)
            return generate_transaction_code(self._kind.code_prefix, on, same_day + 1)

    # =========================================================================
    # WRITES
    # =========================================================================

    async def create(self, draft: TransactionDraft) -> Transaction:
        """
        Store a new transaction under a fresh id.

        Returns:
            A copy of the stored transaction

        Raises:
            ValueError: If the draft is of the other kind
            StorageError: If persisting fails (the store is left unchanged)
        """
        self._check_kind(draft)
        async with self._lock:
            self._ensure_open()
            data = draft.model_dump()
            data["id"] = f"{self._kind.id_prefix}{uuid4().hex}"
            record = transaction_model(self._kind).model_validate(data)

            self._items.append(record)
            try:
                await self._persist()
            except Exception:
                self._items.pop()
                raise

            logger.info(
                "transaction_created",
                kind=self._kind.value,
                transaction_id=record.id,
            )
            return record.model_copy(deep=True)

    async def update(self, transaction: Transaction) -> Transaction:
        """
        Replace a stored transaction wholesale.

        Raises:
            NotFoundError: If no stored transaction has this id
            StorageError: If persisting fails (the store is left unchanged)
        """
        self._check_kind(transaction)
        async with self._lock:
            self._ensure_open()
            idx = self._index_of(transaction.id)
            if idx is None:
                raise NotFoundError(
                    f"{self._kind.label} transaction not found: {transaction.id}"
                )

            previous = self._items[idx]
            record = transaction.model_copy(deep=True)
            self._items[idx] = record
            try:
                await self._persist()
            except Exception:
                self._items[idx] = previous
                raise

            logger.info(
                "transaction_updated",
                kind=self._kind.value,
                transaction_id=record.id,
            )
            return record.model_copy(deep=True)

    async def delete(self, transaction_id: str) -> bool:
        """
        Remove a transaction if present. Missing ids are not an error.

        Returns:
            True if something was removed
        """
        async with self._lock:
            self._ensure_open()
            idx = self._index_of(transaction_id)
            if idx is None:
                logger.debug(
                    "delete_missing_ignored",
                    kind=self._kind.value,
                    transaction_id=transaction_id,
                )
                return False

            removed = self._items.pop(idx)
            try:
                await self._persist()
            except Exception:
                self._items.insert(idx, removed)
                raise

            logger.info(
                "transaction_deleted",
                kind=self._kind.value,
                transaction_id=transaction_id,
            )
            return True

    async def replace_all(self, transactions: list[Transaction]) -> None:
        """
        Overwrite the whole collection.

        Used by bulk import only; the rows must already be validated.
        """
        async with self._lock:
            self._ensure_open()
            previous = self._items
            self._items = [t.model_copy(deep=True) for t in transactions]
            try:
                await self._persist()
            except Exception:
                self._items = previous
                raise

            logger.info(
                "collection_replaced",
                kind=self._kind.value,
                count=len(self._items),
            )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def flush(self) -> None:
        """Persist the current collection."""
        async with self._lock:
            self._ensure_open()
            await self._persist()

    async def close(self) -> None:
        """Final flush. Closing twice is a no-op."""
        async with self._lock:
            if self._closed:
                return
            await self._persist()
            self._closed = True
            logger.info("store_closed", key=self._key, count=len(self._items))

    # =========================================================================
    # INTERNALS (call with the lock held)
    # =========================================================================

    async def _persist(self) -> None:
        await self._persistence.save(
            self._key, self._items, adapter=TRANSACTION_LIST_ADAPTER
        )

    def _index_of(self, transaction_id: str) -> Optional[int]:
        for idx, item in enumerate(self._items):
            if item.id == transaction_id:
                return idx
        return None

    def _check_kind(self, record) -> None:
        if record.transaction_kind != self._kind:
            raise ValueError(
                f"Cannot store a {record.transaction_kind.value} record "
                f"in the {self._kind.value} store"
            )

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError(f"Store for {self._key} is closed")
