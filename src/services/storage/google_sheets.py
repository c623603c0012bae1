"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is kept as a storage backend because:
1. A single user can inspect their own chat log directly in Sheets
2. No database setup required for small deployments
3. Easy to export/migrate later

TRADEOFFS:
- No transactions: a bulk delete removes rows one by one, so a failure
  half-way leaves the remaining rows in place (the caller sees a failure
  and can retry; already-deleted rows stay deleted)
- Limited query capabilities (we filter in Python)
- Appends are not retried: a write whose response was lost would
  otherwise be written twice

The implementation follows the abstract interface, so the session
manager works unchanged against it.
"""

import json
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from src.config import get_settings
from src.models.audit import AuditEvent, AuditEventType, AuditSeverity
from src.models.chat import AssistantId, ChatMessage, MessageRole
from src.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    MessageStorageInterface,
    StorageError,
)


MESSAGE_COLUMNS = [
    "id",
    "user_id",
    "assistant_id",
    "role",
    "content",
    "metadata_json",
    "created_at",
    "updated_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "assistant_id",
    "correlation_id",
    "description",
    "details_json",
    "error_type",
    "error_message",
]


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
        """Establish connection using service account credentials."""
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

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns))
            sheet.append_row(columns)
        return sheet

    def get_messages_sheet(self) -> gspread.Worksheet:
        """Get or create the Messages worksheet."""
        return self._get_or_create_sheet(
            self._settings.messages_sheet_name, MESSAGE_COLUMNS, rows=5000
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


def _parse_timestamp(value: str) -> datetime:
    """Rows written before timestamps carried an offset are read as UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def message_to_row(message: ChatMessage) -> list:
    """Convert a ChatMessage to a spreadsheet row."""
    return [
        str(message.id),
        message.user_id,
        message.assistant_id.value,
        message.role.value,
        message.content,
        json.dumps(message.metadata) if message.metadata else "",
        message.created_at.isoformat(),
        message.updated_at.isoformat(),
    ]


def row_to_message(row: list) -> ChatMessage:
    """Convert a spreadsheet row to a ChatMessage."""
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default

    created_at = _parse_timestamp(safe_get(6))
    return ChatMessage(
        id=UUID(safe_get(0)),
        user_id=safe_get(1),
        assistant_id=AssistantId(safe_get(2)),
        role=MessageRole(safe_get(3)),
        content=safe_get(4),
        metadata=json.loads(safe_get(5)) if safe_get(5) else {},
        created_at=created_at,
        updated_at=_parse_timestamp(safe_get(7)) if safe_get(7) else created_at,
    )


def _row_matches(row: list, user_id: str, assistant_id: AssistantId) -> bool:
    return (
        len(row) > 2
        and row[1] == user_id
        and row[2] == assistant_id.value
    )


class GoogleSheetsMessageStorage(MessageStorageInterface):
    """
    Google Sheets implementation of chat history storage.

    One message per row; metadata is JSON-serialized.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    async def append_message(self, message: ChatMessage) -> ChatMessage:
        # append_row is not idempotent; only the sheet lookup is retried
        try:
            sheet = self._client.get_messages_sheet()
            sheet.append_row(message_to_row(message), value_input_option="RAW")
            return message
        except Exception as e:
            raise StorageError(f"Failed to save message: {e}")

    async def list_messages(
        self,
        user_id: str,
        assistant_id: AssistantId,
    ) -> list[ChatMessage]:
        try:
            sheet = self._client.get_messages_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to list messages: {e}")

        messages = []
        for row in all_rows:
            if not _row_matches(row, user_id, assistant_id):
                continue
            try:
                messages.append(row_to_message(row))
            except Exception:
                continue  # Skip malformed rows

        # Sheet order is insertion order; the stable sort keeps it for ties
        messages.sort(key=lambda m: m.created_at)
        return messages

    async def delete_messages(
        self,
        user_id: str,
        assistant_id: AssistantId,
    ) -> int:
        try:
            sheet = self._client.get_messages_sheet()
            all_rows = sheet.get_all_values()

            # Row 1 is the header; sheet rows are 1-based
            matching = [
                idx
                for idx, row in enumerate(all_rows[1:], start=2)
                if _row_matches(row, user_id, assistant_id)
            ]

            # Bottom-up so earlier indices stay valid
            for idx in reversed(matching):
                sheet.delete_rows(idx)

            return len(matching)
        except Exception as e:
            raise StorageError(f"Failed to delete messages: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=_parse_timestamp(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            user_id=safe_get(4) or None,
            assistant_id=safe_get(5) or None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_type=safe_get(9) or None,
            error_message=safe_get(10) or None,
        )

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if len(row) > 6 and row[6] == str(correlation_id):
                try:
                    events.append(self._row_to_event(row))
                except Exception:
                    continue

        events.sort(key=lambda e: e.timestamp)
        return events
