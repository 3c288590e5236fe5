"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the remote backend because:
1. The household can open their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- A single cell holds at most 50,000 characters, so the snapshot JSON is
  split into fixed-size chunks, one per row, and reassembled on load
- No transactions (a save rewrites the whole sheet)

The implementation follows the abstract interface, so we can swap
to another backend later without changing business logic.
"""

import json
from datetime import datetime
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ledger.config import get_settings
from ledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from ledger.models.snapshot import LedgerSnapshot
from ledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    CorruptSnapshotError,
    NotFoundError,
    SnapshotStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)

SNAPSHOT_COLUMNS = [
    "chunk_index",
    "payload",
]

# Column mappings for Audit sheet
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
    "is_user_action",
]


def split_chunks(document: str, chunk_size: int) -> list[str]:
    """Split a document into pieces no longer than chunk_size."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    return [
        document[i:i + chunk_size]
        for i in range(0, len(document), chunk_size)
    ]


def join_chunks(rows: list[list[str]]) -> str:
    """
    Reassemble a document from (chunk_index, payload) rows.

    Rows may come back in any order; blank rows are ignored.
    """
    indexed = []
    for row in rows:
        if not row or not row[0].strip():
            continue
        try:
            index = int(row[0])
        except ValueError:
            raise CorruptSnapshotError(f"Invalid chunk index: {row[0]!r}")
        payload = row[1] if len(row) > 1 else ""
        indexed.append((index, payload))

    indexed.sort(key=lambda pair: pair[0])
    expected = list(range(len(indexed)))
    if [index for index, _ in indexed] != expected:
        raise CorruptSnapshotError("Snapshot chunks are missing or duplicated")

    return "".join(payload for _, payload in indexed)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

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
                raise NotFoundError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_snapshot_sheet(self) -> gspread.Worksheet:
        """Get or create the snapshot worksheet."""
        return self._get_or_create(
            self._settings.snapshot_sheet_name, SNAPSHOT_COLUMNS, rows=100
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


class GoogleSheetsSnapshotStorage(SnapshotStorageInterface):
    """
    Google Sheets implementation of snapshot storage.

    Layout: a header row, then one row per chunk of the JSON document
    as (chunk_index, payload).
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        chunk_size: Optional[int] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self._chunk_size = chunk_size or get_settings().sync.chunk_size

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type((CorruptSnapshotError, NotFoundError)),
        reraise=True,
    )
    async def load(self) -> Optional[LedgerSnapshot]:
        """Load and reassemble the snapshot."""
        try:
            sheet = self._client.get_snapshot_sheet()
            rows = sheet.get_all_values()[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load snapshot: {e}")

        document = join_chunks(rows)
        if not document:
            return None

        try:
            return LedgerSnapshot.from_json(document)
        except ValidationError as e:
            raise CorruptSnapshotError(f"Data corruption during download: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type((CorruptSnapshotError, NotFoundError)),
        reraise=True,
    )
    async def save(self, snapshot: LedgerSnapshot) -> bool:
        """Rewrite the snapshot sheet with the chunked document."""
        chunks = split_chunks(snapshot.to_json(), self._chunk_size)
        values = [SNAPSHOT_COLUMNS] + [
            [str(index), chunk] for index, chunk in enumerate(chunks)
        ]

        try:
            sheet = self._client.get_snapshot_sheet()
            sheet.clear()
            sheet.resize(rows=len(values), cols=len(SNAPSHOT_COLUMNS))
            sheet.update(range_name="A1", values=values, value_input_option="RAW")
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save snapshot: {e}")

        logger.info("snapshot_written", chunks=len(chunks))
        return True


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
            is_user_action=safe_get(9).lower() == "true",
        )

    def _read_events(self) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, ValidationError):
                continue  # Skip malformed rows
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        events = [
            e for e in self._read_events()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        events = self._read_events()
        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
