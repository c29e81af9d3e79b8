"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the production storage backend because:
1. Administrators can see registered users and the audit trail directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for a small portal)
- No transactions: the duplicate check and the append are two calls
- Limited query capabilities (we filter in Python)

The implementation follows the abstract interface, so we can swap
to PostgreSQL/SQLite later without changing business logic.
"""

import json
from datetime import datetime
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, retry_if_not_exception_type, stop_after_attempt, wait_exponential

from fundportal.config import get_settings
from fundportal.models.audit import AuditEvent, AuditEventType, AuditSeverity
from fundportal.models.user import UserRecord
from fundportal.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    StorageError,
    UserStorageInterface,
)


logger = structlog.get_logger("fundportal.storage")


# Column mappings for Users sheet
USER_COLUMNS = [
    "id",
    "name",
    "mobile",
    "email",
    "username",
    "password_hash",
    "created_at",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
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

    def _get_or_create_sheet(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
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

    def get_users_sheet(self) -> gspread.Worksheet:
        """Get or create the Users worksheet."""
        return self._get_or_create_sheet(self._settings.users_sheet_name, USER_COLUMNS, 1000)

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, 5000)


def _safe_get(row: list, index: int, default: str = "") -> str:
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsUserStorage(UserStorageInterface):
    """
    Google Sheets implementation of user storage.

    One user per row. The sheet holds bcrypt hashes only, never passwords.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _user_to_row(self, user: UserRecord) -> list:
        """Convert a UserRecord to a spreadsheet row."""
        return [
            str(user.id),
            user.name,
            user.mobile,
            user.email,
            user.username,
            user.password_hash,
            user.created_at.isoformat(),
        ]

    def _row_to_user(self, row: list) -> UserRecord:
        """Convert a spreadsheet row to a UserRecord."""
        return UserRecord(
            id=UUID(_safe_get(row, 0)),
            name=_safe_get(row, 1),
            mobile=_safe_get(row, 2),
            email=_safe_get(row, 3),
            username=_safe_get(row, 4),
            password_hash=_safe_get(row, 5),
            created_at=datetime.fromisoformat(_safe_get(row, 6)),
        )

    def _load_users(self) -> list[UserRecord]:
        sheet = self._client.get_users_sheet()
        users = []
        for row in sheet.get_all_values()[1:]:  # Skip header
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                users.append(self._row_to_user(row))
            except Exception as e:
                logger.warning("skipping_malformed_user_row", error=str(e))
        return users

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(DuplicateError),
        reraise=True,
    )
    async def create_user(self, user: UserRecord) -> bool:
        """Append a new user row."""
        if await self.user_exists(user.email, user.username):
            raise DuplicateError(f"User already exists: {user.username}")
        try:
            sheet = self._client.get_users_sheet()
            sheet.append_row(self._user_to_row(user), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save user: {e}")

    async def get_user_by_id(self, user_id: UUID) -> Optional[UserRecord]:
        try:
            for user in self._load_users():
                if user.id == user_id:
                    return user
            return None
        except Exception as e:
            raise StorageError(f"Failed to get user: {e}")

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        try:
            for user in self._load_users():
                if user.username == username:
                    return user
            return None
        except Exception as e:
            raise StorageError(f"Failed to get user: {e}")

    async def user_exists(self, email: str, username: str) -> bool:
        try:
            return any(
                user.email == email or user.username == username
                for user in self._load_users()
            )
        except Exception as e:
            raise StorageError(f"Failed to check user: {e}")

    async def count_users(self) -> int:
        try:
            return len(self._load_users())
        except Exception as e:
            raise StorageError(f"Failed to count users: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_safe_get(row, 0)),
            timestamp=datetime.fromisoformat(_safe_get(row, 1)),
            event_type=AuditEventType(_safe_get(row, 2)),
            severity=AuditSeverity(_safe_get(row, 3)),
            entity_type=_safe_get(row, 4) or None,
            entity_id=UUID(_safe_get(row, 5)) if _safe_get(row, 5) else None,
            correlation_id=UUID(_safe_get(row, 6)) if _safe_get(row, 6) else None,
            description=_safe_get(row, 7),
            details=json.loads(_safe_get(row, 8)) if _safe_get(row, 8) else {},
            error_message=_safe_get(row, 9) or None,
            is_user_action=_safe_get(row, 10).lower() == "true",
        )

    def _load_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except Exception:
                continue
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Don't raise - audit logging should not break the main flow
            logger.warning(
                "audit_sheet_write_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = [e for e in self._load_events() if e.correlation_id == correlation_id]
            # Sort chronologically
            events.sort(key=lambda e: e.timestamp)
            return events
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = self._load_events()
            # Sort newest first
            events.sort(key=lambda e: e.timestamp, reverse=True)
            return events[:limit]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
