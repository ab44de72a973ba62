"""
Ledger Service

This module ties the ledger components together behind one object that a
host application (web handler, desktop UI, script) holds for the length
of a session:

    async with await LedgerService.from_settings(role_provider) as ledger:
        await ledger.create_transaction(draft)
        report = await ledger.monthly_report()

DESIGN DECISION: The service is the boundary that enforces:
- Only roles that can write may create, update, delete or import
- Every write, refusal and storage failure is audited
- Stores are opened from persistence and flushed on close, never global

Everything below the service (stores, importer, reports) assumes these
checks already happened.
"""

import datetime as dt
import time
from typing import Awaitable, Callable, Optional, Union

import structlog

from household_ledger.access.roles import (
    PermissionDeniedError,
    Role,
    RoleProvider,
    require_write,
)
from household_ledger.audit.logger import AuditLogger, configure_logging
from household_ledger.config.settings import Settings, get_settings
from household_ledger.formatting.terbilang import format_currency, to_words
from household_ledger.ledger.options import OptionRegistry
from household_ledger.ledger.store import TransactionStore
from household_ledger.models.report import (
    DashboardStats,
    ListStats,
    MonthlyBalanceRow,
    TransactionFilter,
    YearDashboard,
)
from household_ledger.models.transaction import (
    TaxonomyKey,
    Transaction,
    TransactionDraft,
    TransactionKind,
)
from household_ledger.queries.dashboard import DashboardBuilder
from household_ledger.queries.export import (
    REPORT_COLUMNS,
    report_export_rows,
    transaction_export_rows,
)
from household_ledger.queries.listing import (
    build_list_stats,
    filter_options,
    filter_transactions,
)
from household_ledger.queries.reports import ReportEngine
from household_ledger.services.storage.factory import (
    build_audit_storage,
    build_persistence,
)
from household_ledger.services.storage.interface import (
    NotFoundError,
    PersistenceInterface,
    StorageError,
)
from household_ledger.services.workbook.interface import (
    SheetRow,
    WorkbookCodecInterface,
    WorkbookError,
)
from household_ledger.services.workbook.openpyxl_codec import OpenpyxlWorkbookCodec
from household_ledger.validation.importer import (
    COLUMNS,
    ImportPipeline,
    ImportPipelineError,
)


logger = structlog.get_logger(__name__)


class LedgerService:
    """
    Session-scoped entry point to the ledger.

    Build it with LedgerService.open() (explicit persistence) or
    LedgerService.from_settings() (backend chosen by configuration).
    """

    def __init__(
        self,
        stores: dict[TransactionKind, TransactionStore],
        options: OptionRegistry,
        role_provider: RoleProvider,
        audit_logger: Optional[AuditLogger] = None,
        codec: Optional[WorkbookCodecInterface] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.time,
        today: Callable[[], dt.date] = dt.date.today,
    ):
        self._stores = stores
        self._options = options
        self._role_provider = role_provider
        self._audit = audit_logger or AuditLogger()
        self._codec = codec or OpenpyxlWorkbookCodec()
        self._settings = settings or get_settings()

        self._importer = ImportPipeline(stores, self._codec, clock)
        self._reports = ReportEngine(stores)
        self._dashboard = DashboardBuilder(stores, today)
        self._closed = False

    @classmethod
    async def open(
        cls,
        persistence: PersistenceInterface,
        role_provider: RoleProvider,
        audit_logger: Optional[AuditLogger] = None,
        codec: Optional[WorkbookCodecInterface] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.time,
        today: Callable[[], dt.date] = dt.date.today,
    ) -> "LedgerService":
        """
        Load both stores and the option lists from persistence.

        Corrupted payloads are replaced by empty collections (or the
        default options) and recorded in the audit trail.
        """
        settings = settings or get_settings()
        audit_logger = audit_logger or AuditLogger()
        persistence.set_corruption_handler(audit_logger.log_persistence_corrupted)

        stores = {
            TransactionKind.INCOME: await TransactionStore.open(
                TransactionKind.INCOME, persistence, settings.storage.income_key
            ),
            TransactionKind.EXPENSE: await TransactionStore.open(
                TransactionKind.EXPENSE, persistence, settings.storage.expense_key
            ),
        }
        options = await OptionRegistry.open(
            persistence, stores, settings.storage.options_key
        )

        logger.info("ledger_opened", backend=type(persistence).__name__)
        return cls(
            stores,
            options,
            role_provider,
            audit_logger=audit_logger,
            codec=codec,
            settings=settings,
            clock=clock,
            today=today,
        )

    @classmethod
    async def from_settings(
        cls,
        role_provider: RoleProvider,
        settings: Optional[Settings] = None,
    ) -> "LedgerService":
        """Open the ledger on the backend named by configuration."""
        settings = settings or get_settings()
        configure_logging(settings.app.log_level)
        persistence = build_persistence(settings)
        audit_logger = AuditLogger(build_audit_storage(settings))
        return await cls.open(
            persistence,
            role_provider,
            audit_logger=audit_logger,
            settings=settings,
        )

    async def close(self) -> None:
        """Flush both stores. Closing twice is a no-op."""
        if self._closed:
            return
        for store in self._stores.values():
            await store.close()
        self._closed = True
        logger.info("ledger_closed")

    async def __aenter__(self) -> "LedgerService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    async def list_transactions(
        self,
        kind: TransactionKind,
        filters: Optional[TransactionFilter] = None,
    ) -> list[Transaction]:
        """
        Transactions of `kind` matching `filters`, newest first.

        Raises:
            FilterNotApplicableError: If a filter targets the other kind's field
        """
        return filter_transactions(kind, await self._stores[kind].list(), filters)

    async def list_stats(
        self,
        kind: TransactionKind,
        filters: Optional[TransactionFilter] = None,
    ) -> ListStats:
        """Totals over the same transactions list_transactions returns."""
        return build_list_stats(await self.list_transactions(kind, filters))

    async def filter_options(self, kind: TransactionKind) -> dict[str, list[str]]:
        """Values present in the data for each filterable field of `kind`."""
        return filter_options(kind, await self._stores[kind].list())

    async def get_transaction(
        self, kind: TransactionKind, transaction_id: str
    ) -> Optional[Transaction]:
        return await self._stores[kind].get(transaction_id)

    async def suggest_code(self, kind: TransactionKind, on: dt.date) -> str:
        """Advisory transaction code for a new record dated `on`."""
        return await self._stores[kind].suggest_code(on)

    async def create_transaction(self, draft: TransactionDraft) -> Transaction:
        """
        Store a new transaction.

        Raises:
            PermissionDeniedError: If the current role cannot write
            StorageError: If persisting fails (nothing was added)
        """
        role = await self._require_write("create")
        try:
            created = await self._stores[draft.transaction_kind].create(draft)
        except StorageError as e:
            await self._audit.log_save_failed("create", str(e), role=role.value)
            raise
        await self._audit.log_transaction_created(created, role=role.value)
        return created

    async def update_transaction(self, transaction: Transaction) -> Transaction:
        """
        Replace a stored transaction wholesale.

        Raises:
            PermissionDeniedError: If the current role cannot write
            NotFoundError: If the id is not stored
            StorageError: If persisting fails (nothing was changed)
        """
        role = await self._require_write("update")
        try:
            updated = await self._stores[transaction.transaction_kind].update(transaction)
        except NotFoundError:
            raise
        except StorageError as e:
            await self._audit.log_save_failed("update", str(e), role=role.value)
            raise
        await self._audit.log_transaction_updated(updated, role=role.value)
        return updated

    async def delete_transaction(self, kind: TransactionKind, transaction_id: str) -> bool:
        """
        Delete a transaction. Unknown ids are a no-op.

        Raises:
            PermissionDeniedError: If the current role cannot write
        """
        role = await self._require_write("delete")
        try:
            removed = await self._stores[kind].delete(transaction_id)
        except StorageError as e:
            await self._audit.log_save_failed("delete", str(e), role=role.value)
            raise
        if removed:
            await self._audit.log_transaction_deleted(
                kind.value, transaction_id, role=role.value
            )
        return removed

    # =========================================================================
    # IMPORT / EXPORT
    # =========================================================================

    async def import_rows(self, kind: TransactionKind, rows: list[SheetRow]) -> list[Transaction]:
        """
        Replace the whole collection of `kind` with the given rows.

        Raises:
            PermissionDeniedError: If the current role cannot write
            ImportPipelineError: For the first row that cannot be imported
        """
        role = await self._require_write("import")
        return await self._guarded_import(
            kind, role, self._importer.run(kind, rows)
        )

    async def import_workbook(self, kind: TransactionKind, data: bytes) -> list[Transaction]:
        """
        Decode an .xlsx file and import its first sheet.

        Raises:
            PermissionDeniedError: If the current role cannot write
            WorkbookError: If the file cannot be read
            ImportPipelineError: For the first row that cannot be imported
        """
        role = await self._require_write("import")
        return await self._guarded_import(
            kind, role, self._importer.import_workbook(kind, data)
        )

    async def export_transactions(
        self,
        kind: TransactionKind,
        filters: Optional[TransactionFilter] = None,
    ) -> bytes:
        """Workbook of the listed transactions of `kind`, importable again."""
        rows = transaction_export_rows(kind, await self.list_transactions(kind, filters))
        return self._codec.write_workbook(
            rows, self._settings.app.export_sheet_name, headers=COLUMNS[kind]
        )

    async def export_monthly_report(self) -> bytes:
        """Workbook of the monthly balance report, newest period first."""
        rows = report_export_rows(await self._reports.monthly_report())
        return self._codec.write_workbook(
            rows, self._settings.app.export_sheet_name, headers=REPORT_COLUMNS
        )

    # =========================================================================
    # OPTIONS
    # =========================================================================

    async def get_options(self) -> dict[TaxonomyKey, list[str]]:
        return await self._options.get_options()

    async def add_option(self, key: Union[TaxonomyKey, str], value: str) -> bool:
        """Register an option value. Not gated: any signed-in role may add."""
        added = await self._options.add_option(key, value)
        if added:
            role = self._role_provider()
            await self._audit.log_option_added(
                TaxonomyKey(key).value,
                value.strip(),
                role=role.value if role else None,
            )
        return added

    # =========================================================================
    # REPORTS
    # =========================================================================

    async def monthly_report(self) -> list[MonthlyBalanceRow]:
        return await self._reports.monthly_report()

    async def dashboard_stats(self) -> DashboardStats:
        return await self._reports.dashboard_stats()

    async def year_dashboard(self, year: Optional[int] = None) -> YearDashboard:
        return await self._dashboard.build(year)

    # =========================================================================
    # FORMATTING
    # =========================================================================

    def amount_in_words(self, amount: int) -> Optional[str]:
        """Amount spelled out in Indonesian, or None if it cannot be."""
        return to_words(amount, currency=self._settings.app.currency_name)

    def format_amount(self, amount: int) -> str:
        return format_currency(amount)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    async def _require_write(self, operation: str) -> Role:
        try:
            return require_write(self._role_provider, operation)
        except PermissionDeniedError as e:
            await self._audit.log_permission_denied(
                operation, role=e.role.value if e.role else None
            )
            raise

    async def _guarded_import(
        self,
        kind: TransactionKind,
        role: Role,
        run: Awaitable[list[Transaction]],
    ) -> list[Transaction]:
        try:
            imported = await run
        except (ImportPipelineError, WorkbookError) as e:
            await self._audit.log_import_rejected(
                kind.value,
                getattr(e, "row_number", None),
                str(e),
                role=role.value,
            )
            raise
        except StorageError as e:
            await self._audit.log_save_failed("import", str(e), role=role.value)
            raise
        await self._audit.log_import_completed(kind.value, len(imported), role=role.value)
        return imported
