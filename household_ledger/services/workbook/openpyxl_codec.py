"""
openpyxl Workbook Codec

Reads and writes .xlsx files in memory. Date cells come back as
datetime objects and numeric cells as int/float; text is left for the
importer to interpret.
"""

from io import BytesIO
from typing import Any, Optional

import structlog
from openpyxl import Workbook, load_workbook

from household_ledger.services.workbook.interface import (
    SheetRow,
    WorkbookCodecInterface,
    WorkbookError,
)


logger = structlog.get_logger(__name__)


class OpenpyxlWorkbookCodec(WorkbookCodecInterface):
    """xlsx codec backed by openpyxl."""

    def read_workbook(self, data: bytes) -> list[SheetRow]:
        try:
            wb = load_workbook(BytesIO(data), read_only=True, data_only=True)
        except Exception as e:
            raise WorkbookError(f"Failed to open workbook: {e}")

        try:
            if not wb.sheetnames:
                return []
            if len(wb.sheetnames) > 1:
                logger.info(
                    "workbook_extra_sheets_ignored",
                    used=wb.sheetnames[0],
                    ignored=wb.sheetnames[1:],
                )

            sheet = wb[wb.sheetnames[0]]
            values = sheet.iter_rows(values_only=True)
            header = next(values, None)
            if header is None:
                return []

            columns = [_header_text(cell) for cell in header]
            rows = []
            for raw in values:
                if all(_is_blank(cell) for cell in raw):
                    continue
                row = {}
                for name, cell in zip(columns, raw):
                    if name:
                        row[name] = cell
                rows.append(row)
            return rows
        except Exception as e:
            raise WorkbookError(f"Failed to read workbook: {e}")
        finally:
            wb.close()

    def write_workbook(
        self,
        rows: list[SheetRow],
        sheet_name: str,
        headers: Optional[list[str]] = None,
    ) -> bytes:
        try:
            wb = Workbook()
            sheet = wb.active
            sheet.title = sheet_name

            if headers is None and rows:
                headers = list(rows[0].keys())
            if headers:
                sheet.append(headers)
                for row in rows:
                    sheet.append([row.get(h) for h in headers])

            buffer = BytesIO()
            wb.save(buffer)
            return buffer.getvalue()
        except Exception as e:
            raise WorkbookError(f"Failed to write workbook: {e}")


def _header_text(cell: Any) -> str:
    if cell is None:
        return ""
    return str(cell).strip()


def _is_blank(cell: Any) -> bool:
    return cell is None or (isinstance(cell, str) and not cell.strip())
