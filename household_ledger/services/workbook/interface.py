"""
Abstract Workbook Codec Interface

DESIGN DECISION: Spreadsheet files only enter and leave the ledger as
rows of header -> cell value. The importer and exporters never see the
file format, so a CSV codec could be added without touching them.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


# A decoded sheet row, keyed by header text
SheetRow = dict[str, Any]


class WorkbookCodecInterface(ABC):
    """Abstract interface for reading and writing spreadsheet files."""

    @abstractmethod
    def read_workbook(self, data: bytes) -> list[SheetRow]:
        """
        Decode the first sheet of a workbook.

        The first row is the header row. Fully empty rows are skipped.

        Args:
            data: Raw file content

        Returns:
            One dict per data row, keyed by header

        Raises:
            WorkbookError: If the content is not a readable workbook
        """
        pass

    @abstractmethod
    def write_workbook(
        self,
        rows: list[SheetRow],
        sheet_name: str,
        headers: Optional[list[str]] = None,
    ) -> bytes:
        """
        Encode rows as a single-sheet workbook.

        Headers default to the keys of the first row, in order.

        Args:
            rows: Rows to write
            sheet_name: Title of the sheet
            headers: Column order; lets an empty export keep its header row

        Returns:
            The workbook file content

        Raises:
            WorkbookError: If the workbook cannot be produced
        """
        pass


class WorkbookError(Exception):
    """A workbook could not be read or written."""
    pass
