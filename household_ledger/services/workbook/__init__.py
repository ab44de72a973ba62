"""Spreadsheet file codecs."""

from household_ledger.services.workbook.interface import (
    SheetRow,
    WorkbookCodecInterface,
    WorkbookError,
)
from household_ledger.services.workbook.openpyxl_codec import OpenpyxlWorkbookCodec

__all__ = [
    "OpenpyxlWorkbookCodec",
    "SheetRow",
    "WorkbookCodecInterface",
    "WorkbookError",
]
