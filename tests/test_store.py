"""Tests for TransactionStore."""

import asyncio
import json
from datetime import date

import pytest

from household_ledger.ledger import StoreClosedError, TransactionStore, generate_transaction_code
from household_ledger.models import TransactionKind
from household_ledger.services.storage import InMemoryStorage, NotFoundError, StorageError


class FlakyStorage(InMemoryStorage):
    """In-memory storage whose writes can be made to fail."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False

    async def write_raw(self, key, payload):
        if self.fail_writes:
            raise StorageError("disk full")
        await super().write_raw(key, payload)


def _open(storage, kind=TransactionKind.INCOME, key="penerimaan"):
    return asyncio.run(TransactionStore.open(kind, storage, key))


class TestCreate:
    """Tests for creating transactions."""

    def test_assigns_unique_prefixed_ids(self, storage, income_draft):
        """Test each record gets a fresh id with the kind prefix."""
        store = _open(storage)
        first = asyncio.run(store.create(income_draft()))
        second = asyncio.run(store.create(income_draft()))
        assert first.id != second.id
        assert first.id.startswith("p")

    def test_derives_period(self, storage, income_draft):
        """Test month/year follow the date."""
        store = _open(storage)
        created = asyncio.run(store.create(income_draft(on=date(2024, 8, 15))))
        assert (created.year, created.month) == (2024, 8)

    def test_persists_collection(self, storage, income_draft):
        """Test the whole collection is written under the store key."""
        store = _open(storage)
        created = asyncio.run(store.create(income_draft()))
        payload = json.loads(storage.raw_payload("penerimaan"))
        assert [item["id"] for item in payload] == [created.id]
        assert payload[0]["kind"] == "penerimaan"

    def test_rejects_other_kind(self, storage, expense_draft):
        """Test an expense cannot enter the income store."""
        store = _open(storage)
        with pytest.raises(ValueError):
            asyncio.run(store.create(expense_draft()))

    def test_failed_save_rolls_back(self, income_draft):
        """Test a failed write leaves no phantom record behind."""
        storage = FlakyStorage()
        store = _open(storage)
        asyncio.run(store.create(income_draft()))

        storage.fail_writes = True
        with pytest.raises(StorageError):
            asyncio.run(store.create(income_draft()))
        assert len(asyncio.run(store.list())) == 1


class TestList:
    """Tests for snapshot semantics."""

    def test_mutating_snapshot_does_not_leak(self, storage, income_draft):
        """Test returned records and lists are copies."""
        store = _open(storage)
        asyncio.run(store.create(income_draft(amount=100)))

        snapshot = asyncio.run(store.list())
        snapshot[0].amount = 999
        snapshot.clear()

        fresh = asyncio.run(store.list())
        assert len(fresh) == 1
        assert fresh[0].amount == 100

    def test_reopen_loads_persisted(self, storage, income_draft):
        """Test a new store sees what the previous one saved."""
        store = _open(storage)
        created = asyncio.run(store.create(income_draft()))
        asyncio.run(store.close())

        reopened = _open(storage)
        assert asyncio.run(reopened.list()) == [created]

    def test_corrupted_payload_opens_empty(self):
        """Test corrupted persistence yields an empty store."""
        storage = InMemoryStorage({"penerimaan": "not json"})
        store = _open(storage)
        assert asyncio.run(store.list()) == []


class TestUpdate:
    """Tests for wholesale replacement."""

    def test_replaces_record(self, storage, income_draft):
        """Test the stored record is overwritten."""
        store = _open(storage)
        created = asyncio.run(store.create(income_draft(amount=100)))

        changed = created.model_copy(update={"amount": 250, "note": "revisi"})
        asyncio.run(store.update(changed))

        stored = asyncio.run(store.get(created.id))
        assert stored.amount == 250
        assert stored.note == "revisi"

    def test_missing_id_raises_and_leaves_collection(self, storage, income_draft):
        """Test NotFound on update of an unknown id."""
        store = _open(storage)
        created = asyncio.run(store.create(income_draft()))
        before = asyncio.run(store.list())

        ghost = created.model_copy(update={"id": "p-does-not-exist", "amount": 1})
        with pytest.raises(NotFoundError):
            asyncio.run(store.update(ghost))

        assert asyncio.run(store.list()) == before


class TestDelete:
    """Tests for deletion."""

    def test_removes_record(self, storage, income_draft):
        """Test a stored record can be deleted."""
        store = _open(storage)
        created = asyncio.run(store.create(income_draft()))
        assert asyncio.run(store.delete(created.id)) is True
        assert asyncio.run(store.list()) == []

    def test_missing_id_is_noop(self, storage, income_draft):
        """Test deleting an unknown id succeeds and changes nothing."""
        store = _open(storage)
        asyncio.run(store.create(income_draft()))
        assert asyncio.run(store.delete("p-unknown")) is False
        assert len(asyncio.run(store.list())) == 1


class TestReplaceAll:
    """Tests for wholesale collection overwrite."""

    def test_overwrites_everything(self, storage, income_draft):
        """Test the previous collection is gone."""
        store = _open(storage)
        old = asyncio.run(store.create(income_draft()))
        new = old.model_copy(update={"id": "pimported-1-0"})

        asyncio.run(store.replace_all([new]))
        assert [t.id for t in asyncio.run(store.list())] == ["pimported-1-0"]

    def test_failed_write_restores_previous(self, income_draft):
        """Test a failed overwrite keeps the prior collection."""
        storage = FlakyStorage()
        store = _open(storage)
        old = asyncio.run(store.create(income_draft()))

        storage.fail_writes = True
        with pytest.raises(StorageError):
            asyncio.run(store.replace_all([]))
        assert asyncio.run(store.list()) == [old]


class TestTransactionCode:
    """Tests for advisory codes."""

    def test_generate_transaction_code(self):
        """Test the code layout."""
        assert generate_transaction_code("DP", date(2024, 8, 15), 1) == "DP20240815-001"
        assert generate_transaction_code("DK", date(2024, 1, 2), 12) == "DK20240102-012"

    def test_counts_same_day_records(self, storage, income_draft):
        """Test the sequence uses the state before insertion."""
        store = _open(storage)
        day = date(2024, 8, 15)
        assert asyncio.run(store.suggest_code(day)) == "DP20240815-001"

        asyncio.run(store.create(income_draft(on=day)))
        asyncio.run(store.create(income_draft(on=date(2024, 8, 16))))
        assert asyncio.run(store.suggest_code(day)) == "DP20240815-002"

    def test_expense_prefix(self, storage):
        """Test expense codes use their own prefix."""
        store = _open(storage, TransactionKind.EXPENSE, "pengeluaran")
        assert asyncio.run(store.suggest_code(date(2024, 8, 15))) == "DK20240815-001"


class TestLifecycle:
    """Tests for open/close."""

    def test_close_flushes(self, storage):
        """Test closing writes the collection even if nothing changed."""
        store = _open(storage)
        asyncio.run(store.close())
        assert storage.raw_payload("penerimaan") == "[]"

    def test_closed_store_refuses_work(self, storage, income_draft):
        """Test operations after close fail loudly."""
        store = _open(storage)
        asyncio.run(store.close())
        asyncio.run(store.close())
        with pytest.raises(StoreClosedError):
            asyncio.run(store.create(income_draft()))
