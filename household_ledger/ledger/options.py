"""
Option Registry

Keeps the open-ended value lists behind each taxonomy key (fund sources,
categories, accounts, counterparties). The list a form offers for a key is
the union of:

- values registered explicitly (seeded defaults plus add_option), and
- values observed in the stored transactions for the fields mapped to it.

So a value that only ever arrived through an import still shows up as an
option, without anyone registering it.

The set of keys is fixed (TaxonomyKey). Adding to an unknown key is
ignored, not raised.
"""

import asyncio
from typing import Optional, Union

import structlog
from pydantic import TypeAdapter

from household_ledger.ledger.store import TransactionStore
from household_ledger.models.transaction import (
    TaxonomyKey,
    TransactionKind,
    observed_fields,
)
from household_ledger.services.storage.interface import PersistenceInterface


logger = structlog.get_logger(__name__)

DEFAULT_OPTIONS: dict[TaxonomyKey, list[str]] = {
    TaxonomyKey.FUND_SOURCE: [
        "Gaji Bulanan",
        "Proyek Freelance",
        "Bonus Kinerja",
        "Penjualan Barang Bekas",
    ],
    TaxonomyKey.INCOME_CATEGORY: [
        "Pendapatan Tetap",
        "Pendapatan Tidak Tetap",
        "Lain-lain",
    ],
    TaxonomyKey.ACCOUNT: [
        "Bank BCA",
        "Bank Mandiri",
        "GoPay",
        "OVO",
        "Tunai",
    ],
    TaxonomyKey.COUNTERPARTY: [
        "Superindo",
        "PLN",
        "Warung Padang",
        "Bengkel Maju Jaya",
        "Cinema XXI",
    ],
    TaxonomyKey.EXPENSE_CATEGORY: [
        "Kebutuhan Pokok",
        "Tagihan",
        "Hiburan",
        "Transportasi",
        "Lain-lain",
    ],
}

# Persisted shape: {"sumberDana": [...], "akun": [...], ...}
OPTIONS_ADAPTER = TypeAdapter(dict[str, list[str]])


def _unique(values: list[str]) -> list[str]:
    """Drop duplicates, keeping the first occurrence."""
    return list(dict.fromkeys(values))


def _default_registered() -> dict[TaxonomyKey, list[str]]:
    return {key: list(values) for key, values in DEFAULT_OPTIONS.items()}


class OptionRegistry:
    """Registered and observed option values per taxonomy key."""

    def __init__(
        self,
        persistence: PersistenceInterface,
        stores: dict[TransactionKind, TransactionStore],
        key: str = "options",
        registered: Optional[dict[TaxonomyKey, list[str]]] = None,
    ):
        self._persistence = persistence
        self._stores = stores
        self._key = key
        self._registered = registered if registered is not None else _default_registered()
        self._lock = asyncio.Lock()

    @classmethod
    async def open(
        cls,
        persistence: PersistenceInterface,
        stores: dict[TransactionKind, TransactionStore],
        key: str = "options",
    ) -> "OptionRegistry":
        """Load registered values, falling back to the defaults."""
        raw = await persistence.load(key, None, adapter=OPTIONS_ADAPTER)

        registered = _default_registered()
        if raw is not None:
            for name, values in raw.items():
                try:
                    taxonomy_key = TaxonomyKey(name)
                except ValueError:
                    logger.debug("unknown_option_key_dropped", key=name)
                    continue
                registered[taxonomy_key] = _unique(
                    [v.strip() for v in values if v.strip()]
                )

        return cls(persistence, stores, key, registered)

    async def get_options(self) -> dict[TaxonomyKey, list[str]]:
        """Registered values followed by observed ones, per key, deduplicated."""
        observed = await self._observed()
        async with self._lock:
            return {
                key: _unique(self._registered[key] + observed[key])
                for key in TaxonomyKey
            }

    async def add_option(self, key: Union[TaxonomyKey, str], value: str) -> bool:
        """
        Register a value under a key and persist.

        Unknown keys and blank values are ignored. A value already offered
        (registered or observed) is not added again.

        Returns:
            True if the value was added
        """
        try:
            taxonomy_key = TaxonomyKey(key)
        except ValueError:
            logger.debug("unknown_option_key_ignored", key=str(key))
            return False

        value = (value or "").strip()
        if not value:
            return False

        observed = await self._observed()
        async with self._lock:
            if value in self._registered[taxonomy_key] or value in observed[taxonomy_key]:
                return False

            self._registered[taxonomy_key].append(value)
            try:
                await self._persist()
            except Exception:
                self._registered[taxonomy_key].pop()
                raise

        logger.info("option_added", key=taxonomy_key.value, value=value)
        return True

    async def flush(self) -> None:
        async with self._lock:
            await self._persist()

    async def _persist(self) -> None:
        payload = {key.value: values for key, values in self._registered.items()}
        await self._persistence.save(self._key, payload, adapter=OPTIONS_ADAPTER)

    async def _observed(self) -> dict[TaxonomyKey, list[str]]:
        """Values used by stored transactions, per key."""
        snapshots = {}
        for kind, store in self._stores.items():
            snapshots[kind] = await store.list()

        observed: dict[TaxonomyKey, list[str]] = {}
        for key in TaxonomyKey:
            values = []
            for kind, field in observed_fields(key):
                for transaction in snapshots.get(kind, []):
                    value = getattr(transaction, field)
                    if value:
                        values.append(value)
            observed[key] = _unique(values)
        return observed
