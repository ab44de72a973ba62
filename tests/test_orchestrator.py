"""
Tests for LedgerService.

These run the whole stack on in-memory persistence: write gating,
auditing, workbook import/export and the session lifecycle.
"""

import asyncio
import json
from datetime import date

import pytest

from household_ledger.access import PermissionDeniedError, Role
from household_ledger.models import (
    AuditEventType,
    TaxonomyKey,
    TransactionFilter,
    TransactionKind,
    TransactionStatus,
)
from household_ledger.orchestrator import LedgerService
from household_ledger.services.storage import InMemoryStorage, NotFoundError, StorageError
from household_ledger.services.workbook import OpenpyxlWorkbookCodec, WorkbookError
from household_ledger.validation import InvalidAmountError


def _open(storage, role_provider, audit_logger, settings, **kwargs):
    return asyncio.run(LedgerService.open(
        storage,
        role_provider,
        audit_logger=audit_logger,
        settings=settings,
        **kwargs,
    ))


def _event_types(audit_storage):
    return [e.event_type for e in audit_storage.events]


class TestWriteGate:
    """Tests for role enforcement on writes."""

    def test_user_cannot_create(self, storage, user, audit_logger, audit_storage, settings, income_draft):
        """Test a USER create is refused, audited and not stored."""
        ledger = _open(storage, user, audit_logger, settings)

        with pytest.raises(PermissionDeniedError) as excinfo:
            asyncio.run(ledger.create_transaction(income_draft()))

        assert excinfo.value.role == Role.USER
        assert asyncio.run(ledger.list_transactions(TransactionKind.INCOME)) == []
        assert storage.raw_payload("penerimaan") is None
        [event] = audit_storage.events
        assert event.event_type == AuditEventType.PERMISSION_DENIED
        assert event.details == {"operation": "create"}
        assert event.role == "user"

    def test_user_cannot_delete_or_import(self, storage, user, audit_logger, audit_storage, settings):
        """Test every write entry point is gated."""
        ledger = _open(storage, user, audit_logger, settings)

        with pytest.raises(PermissionDeniedError):
            asyncio.run(ledger.delete_transaction(TransactionKind.INCOME, "p1"))
        with pytest.raises(PermissionDeniedError):
            asyncio.run(ledger.import_rows(TransactionKind.EXPENSE, [{"Tanggal": "1/1/2024"}]))
        with pytest.raises(PermissionDeniedError):
            asyncio.run(ledger.import_workbook(TransactionKind.EXPENSE, b""))

        assert _event_types(audit_storage) == [AuditEventType.PERMISSION_DENIED] * 3

    def test_nobody_signed_in(self, storage, audit_logger, settings, income_draft):
        """Test a provider without a role cannot write."""
        ledger = _open(storage, lambda: None, audit_logger, settings)
        with pytest.raises(PermissionDeniedError) as excinfo:
            asyncio.run(ledger.create_transaction(income_draft()))
        assert excinfo.value.role is None

    def test_user_can_read(self, storage, admin, user, audit_logger, settings, income_draft):
        """Test reads are not gated."""
        ledger = _open(storage, admin, audit_logger, settings)
        asyncio.run(ledger.create_transaction(income_draft()))
        asyncio.run(ledger.close())

        reader = _open(storage, user, audit_logger, settings)
        assert len(asyncio.run(reader.list_transactions(TransactionKind.INCOME))) == 1
        assert asyncio.run(reader.monthly_report())[0].income == 100_000


class TestTransactions:
    """Tests for admin writes."""

    def test_create_update_delete_are_audited(
        self, storage, admin, audit_logger, audit_storage, settings, expense_draft
    ):
        """Test each successful write leaves one audit event."""
        ledger = _open(storage, admin, audit_logger, settings)

        created = asyncio.run(ledger.create_transaction(expense_draft(amount=45_000)))
        changed = created.model_copy(update={"amount": 50_000})
        asyncio.run(ledger.update_transaction(changed))
        assert asyncio.run(ledger.get_transaction(TransactionKind.EXPENSE, created.id)).amount == 50_000

        assert asyncio.run(ledger.delete_transaction(TransactionKind.EXPENSE, created.id)) is True
        assert asyncio.run(ledger.delete_transaction(TransactionKind.EXPENSE, created.id)) is False

        assert _event_types(audit_storage) == [
            AuditEventType.TRANSACTION_CREATED,
            AuditEventType.TRANSACTION_UPDATED,
            AuditEventType.TRANSACTION_DELETED,
        ]
        assert audit_storage.events[0].entity_id == created.id
        assert audit_storage.events[0].entity_type == "pengeluaran"
        assert audit_storage.events[0].role == "admin"

    def test_update_unknown_id(self, storage, admin, audit_logger, audit_storage, settings, income_draft):
        """Test NotFound propagates without a save failure event."""
        ledger = _open(storage, admin, audit_logger, settings)
        created = asyncio.run(ledger.create_transaction(income_draft()))
        ghost = created.model_copy(update={"id": "p-missing"})

        with pytest.raises(NotFoundError):
            asyncio.run(ledger.update_transaction(ghost))
        assert AuditEventType.SAVE_FAILED not in _event_types(audit_storage)

    def test_save_failure_is_audited(self, admin, audit_logger, audit_storage, settings, income_draft):
        """Test a storage failure is recorded and re-raised."""

        class BrokenStorage(InMemoryStorage):
            async def write_raw(self, key, payload):
                raise StorageError("quota exceeded")

        ledger = _open(BrokenStorage(), admin, audit_logger, settings)
        with pytest.raises(StorageError):
            asyncio.run(ledger.create_transaction(income_draft()))

        [event] = audit_storage.events
        assert event.event_type == AuditEventType.SAVE_FAILED
        assert event.error_message == "quota exceeded"
        assert asyncio.run(ledger.list_transactions(TransactionKind.INCOME)) == []

    def test_suggest_code(self, storage, admin, audit_logger, settings, income_draft):
        """Test the advisory code reflects existing same-day records."""
        ledger = _open(storage, admin, audit_logger, settings)
        asyncio.run(ledger.create_transaction(income_draft(on=date(2024, 8, 15))))
        code = asyncio.run(ledger.suggest_code(TransactionKind.INCOME, date(2024, 8, 15)))
        assert code == "DP20240815-002"


class TestImportExport:
    """Tests for workbook round trips through the service."""

    def test_import_workbook(self, storage, admin, audit_logger, audit_storage, settings):
        """Test an uploaded workbook replaces the collection and is audited."""
        codec = OpenpyxlWorkbookCodec()
        data = codec.write_workbook(
            [
                {"Tanggal": "15/08/2024", "Sumber Dana": "Gaji", "Jumlah": 1_000_000, "Status": "Lunas"},
                {"Tanggal": "16/08/2024", "Sumber Dana": "Bonus", "Jumlah": 250_000, "Status": "Pending"},
            ],
            "Data",
        )
        ledger = _open(storage, admin, audit_logger, settings, clock=lambda: 1.0)

        imported = asyncio.run(ledger.import_workbook(TransactionKind.INCOME, data))

        assert [t.id for t in imported] == ["pimported-1000-0", "pimported-1000-1"]
        assert asyncio.run(ledger.dashboard_stats()).total_income == 1_000_000
        [event] = audit_storage.events
        assert event.event_type == AuditEventType.IMPORT_COMPLETED
        assert event.details == {"row_count": 2}

    def test_rejected_import_is_audited(
        self, storage, admin, audit_logger, audit_storage, settings, income_draft
    ):
        """Test a bad row rejects the batch and records its row number."""
        ledger = _open(storage, admin, audit_logger, settings)
        existing = asyncio.run(ledger.create_transaction(income_draft()))

        rows = [
            {"Tanggal": "1/1/2024", "Jumlah": 1},
            {"Tanggal": "2/1/2024", "Jumlah": 2},
            {"Tanggal": "3/1/2024", "Jumlah": "tiga"},
        ]
        with pytest.raises(InvalidAmountError):
            asyncio.run(ledger.import_rows(TransactionKind.INCOME, rows))

        assert asyncio.run(ledger.list_transactions(TransactionKind.INCOME)) == [existing]
        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.IMPORT_REJECTED
        assert event.details == {"row_number": 4}

    def test_unreadable_workbook(self, storage, admin, audit_logger, audit_storage, settings):
        """Test garbage uploads are rejected and audited."""
        ledger = _open(storage, admin, audit_logger, settings)
        with pytest.raises(WorkbookError):
            asyncio.run(ledger.import_workbook(TransactionKind.EXPENSE, b"not a workbook"))
        assert audit_storage.events[-1].event_type == AuditEventType.IMPORT_REJECTED
        assert audit_storage.events[-1].details == {"row_number": None}

    def test_export_imports_back(self, storage, admin, audit_logger, settings, expense_draft):
        """Test an exported workbook can be imported unchanged."""
        ledger = _open(storage, admin, audit_logger, settings)
        original = asyncio.run(ledger.create_transaction(
            expense_draft(amount=75_000, on=date(2024, 3, 9), note="belanja")
        ))

        data = asyncio.run(ledger.export_transactions(TransactionKind.EXPENSE))
        [imported] = asyncio.run(ledger.import_workbook(TransactionKind.EXPENSE, data))

        for field in ("transaction_code", "date", "amount", "status", "counterparty",
                      "item_name", "category", "account", "note"):
            assert getattr(imported, field) == getattr(original, field)

    def test_empty_export_has_header(self, storage, admin, audit_logger, settings):
        """Test exporting an empty collection still yields the columns."""
        ledger = _open(storage, admin, audit_logger, settings)
        data = asyncio.run(ledger.export_transactions(TransactionKind.INCOME))
        assert OpenpyxlWorkbookCodec().read_workbook(data) == []

    def test_export_monthly_report(self, storage, admin, audit_logger, settings, income_draft, expense_draft):
        """Test the report export matches the report rows."""
        ledger = _open(storage, admin, audit_logger, settings)
        asyncio.run(ledger.create_transaction(income_draft(amount=100)))
        asyncio.run(ledger.create_transaction(expense_draft(amount=30)))

        data = asyncio.run(ledger.export_monthly_report())
        assert OpenpyxlWorkbookCodec().read_workbook(data) == [{
            "Bulan": "Januari 2024",
            "Penerimaan": 100,
            "Pengeluaran": 30,
            "Saldo Bulanan": 70,
            "Saldo Akhir": 70,
        }]


class TestListing:
    """Tests for the filtered list view, its totals and filter choices."""

    def _seed(self, ledger, income_draft):
        for draft in (
            income_draft(amount=500, on=date(2024, 1, 15)),
            income_draft(amount=200, on=date(2024, 8, 1), fund_source="Bonus"),
            income_draft(amount=300, on=date(2023, 8, 20), fund_source="Bonus",
                         status=TransactionStatus.PENDING),
        ):
            asyncio.run(ledger.create_transaction(draft))

    def test_list_is_newest_first(self, storage, admin, audit_logger, settings, income_draft):
        """Test the unfiltered list is ordered by date, latest first."""
        ledger = _open(storage, admin, audit_logger, settings)
        self._seed(ledger, income_draft)
        listed = asyncio.run(ledger.list_transactions(TransactionKind.INCOME))
        assert [t.date for t in listed] == [date(2024, 8, 1), date(2024, 1, 15), date(2023, 8, 20)]

    def test_filtered_list_and_stats(self, storage, admin, user, audit_logger, settings, income_draft):
        """Test list and totals narrow together, for any role."""
        self._seed(_open(storage, admin, audit_logger, settings), income_draft)
        ledger = _open(storage, user, audit_logger, settings)
        filters = TransactionFilter(fund_source="Bonus", month=8)

        listed = asyncio.run(ledger.list_transactions(TransactionKind.INCOME, filters))
        stats = asyncio.run(ledger.list_stats(TransactionKind.INCOME, filters))

        assert [t.amount for t in listed] == [200, 300]
        assert (stats.total, stats.settled, stats.pending, stats.count) == (500, 200, 300, 2)

    def test_filter_options(self, storage, admin, audit_logger, settings, income_draft):
        """Test the choices come from the stored data."""
        ledger = _open(storage, admin, audit_logger, settings)
        self._seed(ledger, income_draft)
        options = asyncio.run(ledger.filter_options(TransactionKind.INCOME))
        assert options["fund_source"] == ["Bonus", "Gaji Bulanan"]

    def test_filtered_export_matches_list(self, storage, admin, audit_logger, settings, income_draft):
        """Test the export holds exactly the listed rows, in list order."""
        ledger = _open(storage, admin, audit_logger, settings)
        self._seed(ledger, income_draft)
        filters = TransactionFilter(fund_source="Bonus")

        data = asyncio.run(ledger.export_transactions(TransactionKind.INCOME, filters))
        rows = OpenpyxlWorkbookCodec().read_workbook(data)
        listed = asyncio.run(ledger.list_transactions(TransactionKind.INCOME, filters))

        assert [row["ID Transaksi"] for row in rows] == [t.transaction_code for t in listed]
        assert [row["Jumlah"] for row in rows] == [200, 300]


class TestOptions:
    """Tests for option registration through the service."""

    def test_user_can_add_option(self, storage, user, audit_logger, audit_storage, settings):
        """Test option registration is not gated and is audited."""
        ledger = _open(storage, user, audit_logger, settings)
        assert asyncio.run(ledger.add_option("akun", "  Bank Jago ")) is True
        assert "Bank Jago" in asyncio.run(ledger.get_options())[TaxonomyKey.ACCOUNT]

        [event] = audit_storage.events
        assert event.event_type == AuditEventType.OPTION_ADDED
        assert event.details == {"key": "akun", "value": "Bank Jago"}
        assert event.role == "user"

    def test_noop_add_is_not_audited(self, storage, user, audit_logger, audit_storage, settings):
        """Test unknown keys leave no trace."""
        ledger = _open(storage, user, audit_logger, settings)
        assert asyncio.run(ledger.add_option("bukanKunci", "x")) is False
        assert audit_storage.events == []


class TestLifecycle:
    """Tests for opening and closing a session."""

    def test_corruption_at_open_is_audited(self, admin, audit_logger, audit_storage, settings):
        """Test discarded payloads are recorded and the ledger opens empty."""
        storage = InMemoryStorage({"penerimaan": "{{{", "options": json.dumps({"akun": ["Dompet"]})})
        ledger = _open(storage, admin, audit_logger, settings)

        assert asyncio.run(ledger.list_transactions(TransactionKind.INCOME)) == []
        assert asyncio.run(ledger.get_options())[TaxonomyKey.ACCOUNT] == ["Dompet"]
        [event] = audit_storage.events
        assert event.event_type == AuditEventType.PERSISTENCE_CORRUPTED
        assert event.entity_id == "penerimaan"

    def test_context_manager_flushes(self, storage, admin, audit_logger, settings):
        """Test leaving the async context writes both collections."""

        async def go():
            ledger = await LedgerService.open(storage, admin, audit_logger=audit_logger, settings=settings)
            async with ledger:
                pass
            await ledger.close()

        asyncio.run(go())
        assert storage.raw_payload("penerimaan") == "[]"
        assert storage.raw_payload("pengeluaran") == "[]"

    def test_from_settings_memory_backend(self, monkeypatch, admin):
        """Test the configured backend is used."""
        monkeypatch.setenv("LEDGER_STORAGE_BACKEND", "memory")

        async def go():
            from household_ledger.config import Settings

            async with await LedgerService.from_settings(admin, Settings()) as ledger:
                return await ledger.year_dashboard()

        dashboard = asyncio.run(go())
        assert dashboard.available_years == []


class TestFormatting:
    """Tests for amount display helpers."""

    def test_amount_in_words(self, storage, admin, audit_logger, settings):
        """Test the configured currency name is used."""
        ledger = _open(storage, admin, audit_logger, settings)
        assert ledger.amount_in_words(1_500_000) == "Satu Juta Lima Ratus Ribu Rupiah"
        assert ledger.amount_in_words(-1) is None

    def test_format_amount(self, storage, admin, audit_logger, settings):
        """Test id-ID currency formatting."""
        ledger = _open(storage, admin, audit_logger, settings)
        assert ledger.format_amount(1_500_000) == "Rp 1.500.000"
