"""
Bulk Import Pipeline

Turns spreadsheet rows (header label -> raw cell value) into validated
transactions and swaps them in as the whole collection of one kind.

DESIGN DECISION: Import is all-or-nothing.

STAGE 1 - VALIDATE (pure, in memory):
- Every row is converted in order
- The first bad row aborts the batch with a row-numbered error
- Nothing is written

STAGE 2 - REPLACE:
- One replace_all() call with the complete batch
- Readers never see a partially imported collection

Only the date and the amount are hard requirements. Every other missing
cell falls back to a documented literal so messy household spreadsheets
still import.

Row numbers in errors are what a spreadsheet user sees: the first data
row directly below the header is row 2.
"""

import time
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional

import structlog
from pydantic import ValidationError

from household_ledger.ledger.store import TransactionStore
from household_ledger.models.transaction import (
    Transaction,
    TransactionKind,
    TransactionStatus,
    transaction_model,
)
from household_ledger.parsing.dates import resolve_date
from household_ledger.services.workbook.interface import (
    SheetRow,
    WorkbookCodecInterface,
)


logger = structlog.get_logger(__name__)


# =============================================================================
# COLUMN LABELS
# =============================================================================

COL_DATE = "Tanggal"
COL_CODE = "ID Transaksi"
COL_FUND_SOURCE = "Sumber Dana"
COL_COUNTERPARTY = "Rekanan"
COL_ITEM_NAME = "Nama Barang"
COL_AMOUNT = "Jumlah"
COL_STATUS = "Status"
COL_CATEGORY = "Kategori"
COL_ACCOUNT = "Akun"
COL_NOTE = "Keterangan"

COLUMNS: dict[TransactionKind, list[str]] = {
    TransactionKind.INCOME: [
        COL_DATE, COL_CODE, COL_FUND_SOURCE, COL_AMOUNT,
        COL_STATUS, COL_CATEGORY, COL_ACCOUNT, COL_NOTE,
    ],
    TransactionKind.EXPENSE: [
        COL_DATE, COL_CODE, COL_COUNTERPARTY, COL_ITEM_NAME, COL_AMOUNT,
        COL_STATUS, COL_CATEGORY, COL_ACCOUNT, COL_NOTE,
    ],
}

# Model field -> column label, for reporting model validation failures
FIELD_COLUMNS = {
    "transaction_code": COL_CODE,
    "date": COL_DATE,
    "amount": COL_AMOUNT,
    "status": COL_STATUS,
    "fund_source": COL_FUND_SOURCE,
    "counterparty": COL_COUNTERPARTY,
    "item_name": COL_ITEM_NAME,
    "category": COL_CATEGORY,
    "account": COL_ACCOUNT,
    "note": COL_NOTE,
}

UNKNOWN = "Tidak Diketahui"
MISC_CATEGORY = "Lain-lain"

# First data row sits below the header row, and rows are 1-based
ROW_NUMBER_OFFSET = 2


# =============================================================================
# CELL COERCION
# =============================================================================

def coerce_amount(value: Any) -> Optional[int]:
    """
    Read an amount cell as whole, non-negative rupiah.

    Returns None for missing, non-numeric, fractional or negative input.
    Integral floats such as 50000.0 (how workbooks store numbers) pass.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    try:
        number = Decimal(str(value)) if not isinstance(value, Decimal) else value
    except (InvalidOperation, ValueError):
        return None

    if not number.is_finite() or number != number.to_integral_value():
        return None
    if number < 0:
        return None
    return int(number)


def cell_text(value: Any, default: str = "") -> str:
    """Render a text cell, or the default when it is missing or blank."""
    if value is None:
        return default
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or default


# =============================================================================
# ERRORS
# =============================================================================

class ImportPipelineError(Exception):
    """Base exception for bulk import."""
    pass


class EmptyImportError(ImportPipelineError):
    """The batch has no data rows."""

    def __init__(self):
        super().__init__("Tidak ada data untuk diimpor.")


class ImportRowError(ImportPipelineError):
    """A row could not be imported. Carries the user-facing row number."""

    def __init__(self, row_number: int, field: str, message: str):
        self.row_number = row_number
        self.field = field
        super().__init__(f"Baris {row_number}: {message}")


class InvalidDateError(ImportRowError):
    """The date cell could not be resolved to a calendar date."""

    def __init__(self, row_number: int):
        super().__init__(row_number, COL_DATE, "Format tanggal tidak valid.")


class InvalidAmountError(ImportRowError):
    """The amount cell is not a whole, non-negative number."""

    def __init__(self, row_number: int):
        super().__init__(row_number, COL_AMOUNT, "Jumlah harus berupa angka.")


# =============================================================================
# PIPELINE
# =============================================================================

class ImportPipeline:
    """
    Validates spreadsheet rows and replaces a store's collection with them.

    Args:
        stores: The store for each transaction kind
        codec: Workbook codec, needed only for import_workbook()
        clock: Returns the current time in seconds; batch ids derive from it
    """

    def __init__(
        self,
        stores: dict[TransactionKind, TransactionStore],
        codec: Optional[WorkbookCodecInterface] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._stores = stores
        self._codec = codec
        self._clock = clock

    def validate(
        self,
        kind: TransactionKind,
        rows: list[SheetRow],
        batch_ms: Optional[int] = None,
    ) -> list[Transaction]:
        """
        Convert every row, stopping at the first bad one.

        Raises:
            EmptyImportError: If there are no rows
            ImportRowError: For the first row that cannot be imported
        """
        if not rows:
            raise EmptyImportError()

        if batch_ms is None:
            batch_ms = int(self._clock() * 1000)

        return [
            self._convert_row(kind, row, index, batch_ms)
            for index, row in enumerate(rows)
        ]

    async def run(self, kind: TransactionKind, rows: list[SheetRow]) -> list[Transaction]:
        """
        Validate the whole batch, then replace the collection in one write.

        On any validation error the store is left untouched.
        """
        transactions = self.validate(kind, rows)
        await self._stores[kind].replace_all(transactions)
        logger.info("import_completed", kind=kind.value, count=len(transactions))
        return transactions

    async def import_workbook(self, kind: TransactionKind, data: bytes) -> list[Transaction]:
        """
        Decode a workbook's first sheet and import it.

        Raises:
            WorkbookError: If the bytes are not a readable workbook
        """
        if self._codec is None:
            raise RuntimeError("ImportPipeline was built without a workbook codec")
        rows = self._codec.read_workbook(data)
        return await self.run(kind, rows)

    def _convert_row(
        self,
        kind: TransactionKind,
        row: SheetRow,
        index: int,
        batch_ms: int,
    ) -> Transaction:
        row_number = index + ROW_NUMBER_OFFSET

        resolved = resolve_date(row.get(COL_DATE))
        if resolved is None:
            raise InvalidDateError(row_number)

        amount = coerce_amount(row.get(COL_AMOUNT))
        if amount is None:
            raise InvalidAmountError(row_number)

        data = {
            "kind": kind.value,
            "id": f"{kind.id_prefix}imported-{batch_ms}-{index}",
            "transaction_code": cell_text(
                row.get(COL_CODE), f"{kind.import_code_prefix}-{batch_ms}-{index}"
            ),
            "date": resolved,
            "amount": amount,
            # Only the exact settled literal counts; anything else is pending
            "status": (
                TransactionStatus.SETTLED
                if row.get(COL_STATUS) == TransactionStatus.SETTLED.value
                else TransactionStatus.PENDING
            ),
            "category": cell_text(row.get(COL_CATEGORY), MISC_CATEGORY),
            "account": cell_text(row.get(COL_ACCOUNT), UNKNOWN),
            "note": cell_text(row.get(COL_NOTE)),
        }
        if kind == TransactionKind.INCOME:
            data["fund_source"] = cell_text(row.get(COL_FUND_SOURCE), UNKNOWN)
        else:
            data["counterparty"] = cell_text(row.get(COL_COUNTERPARTY), UNKNOWN)
            data["item_name"] = cell_text(row.get(COL_ITEM_NAME))

        try:
            return transaction_model(kind).model_validate(data)
        except ValidationError as e:
            error = e.errors()[0]
            field_name = str(error["loc"][0]) if error["loc"] else ""
            raise ImportRowError(
                row_number,
                FIELD_COLUMNS.get(field_name, field_name),
                f"Kolom {FIELD_COLUMNS.get(field_name, field_name)} tidak valid.",
            )
