"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a shared backend because:
1. A household can look at the raw data in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

Each storage key takes one or more rows of the store worksheet:

    key | chunk | payload_json | updated_at

A cell holds at most 50,000 characters, so a longer payload is split
across rows numbered from chunk 0 and joined in chunk order on read.

TRADEOFFS:
- No transactions (a multi-row key is rewritten row by row)
- Every load re-reads the worksheet (fine for a household ledger)
"""

import json
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from household_ledger.config import get_settings
from household_ledger.config.settings import GoogleSheetsSettings
from household_ledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from household_ledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    PersistenceInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)

# Column mappings for the store sheet
STORE_COLUMNS = [
    "key",
    "chunk",
    "payload_json",
    "updated_at",
]

# Column mappings for the audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "description",
    "details_json",
    "error_message",
    "role",
]

MAX_CELL_CHARACTERS = 50_000


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self, title: str, columns: list[str], rows: int
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_store_sheet(self) -> gspread.Worksheet:
        """Get or create the key/payload worksheet."""
        return self._get_or_create_sheet(
            self._settings.store_sheet_name, STORE_COLUMNS, rows=100
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


class GoogleSheetsStorage(PersistenceInterface):
    """
    Google Sheets implementation of ledger persistence.

    The worksheet is looked up on every call so edits made by hand in
    the spreadsheet are picked up on the next load.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        chunk_size: int = MAX_CELL_CHARACTERS,
    ):
        self._client = client or GoogleSheetsClient()
        self._chunk_size = chunk_size

    def _find_rows(self, rows: list[list[str]], key: str) -> list[int]:
        """1-based sheet row indexes holding a key, skipping the header."""
        return [
            idx for idx, row in enumerate(rows[1:], start=2)
            if row and row[0] == key
        ]

    def _split(self, payload: str) -> list[str]:
        if not payload:
            return [""]
        return [
            payload[start:start + self._chunk_size]
            for start in range(0, len(payload), self._chunk_size)
        ]

    async def read_raw(self, key: str) -> Optional[str]:
        try:
            rows = self._client.get_store_sheet().get_all_values()
        except Exception as e:
            raise StorageError(f"Failed to read {key}: {e}")

        indexes = self._find_rows(rows, key)
        if not indexes:
            return None

        chunks = {}
        for idx in indexes:
            row = rows[idx - 1]
            try:
                number = int(row[1])
            except (IndexError, ValueError):
                # An unreadable chunk number reads as corruption
                return ""
            chunks[number] = row[2] if len(row) > 2 else ""

        if sorted(chunks) != list(range(len(indexes))):
            # Missing or repeated chunks read as corruption
            return ""
        return "".join(chunks[number] for number in range(len(chunks)))

    async def write_raw(self, key: str, payload: str) -> None:
        await self._write_rows(key, self._split(payload))

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _write_rows(self, key: str, chunks: list[str]) -> None:
        try:
            sheet = self._client.get_store_sheet()
            indexes = self._find_rows(sheet.get_all_values(), key)
            updated_at = datetime.now(timezone.utc).isoformat()
            values = [
                [key, str(number), chunk, updated_at]
                for number, chunk in enumerate(chunks)
            ]

            # Reuse the key's rows in place, then grow or shrink
            for idx, row in zip(indexes, values):
                sheet.update(
                    range_name=f"A{idx}:D{idx}",
                    values=[row],
                    value_input_option="RAW",
                )
            if len(values) > len(indexes):
                sheet.append_rows(values[len(indexes):], value_input_option="RAW")
            for idx in reversed(indexes[len(values):]):
                sheet.delete_rows(idx)
        except Exception as e:
            raise StorageError(f"Failed to write {key}: {e}")

    async def discard(self, key: str) -> None:
        try:
            sheet = self._client.get_store_sheet()
            for idx in reversed(self._find_rows(sheet.get_all_values(), key)):
                sheet.delete_rows(idx)
        except Exception as e:
            raise StorageError(f"Failed to discard {key}: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            description=safe_get(6),
            details=json.loads(safe_get(7)) if safe_get(7) else {},
            error_message=safe_get(8) or None,
            role=safe_get(9) or None,
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _append_row(self, row: list) -> None:
        sheet = self._client.get_audit_sheet()
        sheet.append_row(row, value_input_option="RAW")

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            await self._append_row(event.to_sheets_row())
            return True
        except Exception as e:
            # Audit logging must not break the ledger operation that triggered it
            logger.warning(
                "audit_write_failed",
                event_type=event.event_type.value,
                error=str(e),
            )
            return False

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except (ValueError, TypeError) as e:
                    logger.debug("audit_row_skipped", error=str(e))
                    continue

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
