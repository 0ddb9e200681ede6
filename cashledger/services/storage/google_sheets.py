"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the hosted backend because:
1. Small-business users can view their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (hundreds to low thousands of rows per user is fine)
- No transactions (each call is one row operation)
- Limited query capabilities (we filter in Python)
- Row-level isolation is enforced here by filtering on user_id

RETRIES: Only idempotent calls (connect, list, profile lookup) are retried,
and only on transient connection failures. Inserts, updates and deletes
are never retried here; a duplicated insert would create a second row.

The implementation follows the abstract interfaces, so we can swap
to a hosted database later without changing business logic.
"""

import asyncio
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

import gspread
from gspread.utils import rowcol_to_a1
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from cashledger.config import get_settings
from cashledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from cashledger.models.ledger import (
    Profile,
    Transaction,
    TransactionDraft,
    TransactionType,
    generate_id,
)
from cashledger.services.storage.interface import (
    AuditStorageInterface,
    ProfileStorageInterface,
    RecordNotFoundError,
    StorageConnectionError,
    StorageError,
    StoragePermissionError,
    TransactionStorageInterface,
)


# Column mappings for Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "created_at",
    "amount",
    "description",
    "category",
    "type",
    "date",
    "client",
]

# Column mappings for Profiles sheet
PROFILE_COLUMNS = [
    "user_id",
    "is_premium",
    "subscription_status",
    "cancel_at_period_end",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

retry_transient = retry(
    retry=retry_if_exception_type(StorageConnectionError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


def to_storage_error(action: str, error: Exception) -> StorageError:
    """
    Classify a backend exception so callers can pick a retry policy.

    401/403 are permission failures; 429 and 5xx are transient;
    socket-level failures (OSError, which includes requests' errors)
    are transient.
    """
    if isinstance(error, StorageError):
        return error

    message = f"Failed to {action}: {error}"

    if isinstance(error, gspread.exceptions.APIError):
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None)
        if status in (401, 403):
            return StoragePermissionError(message, cause=error)
        if status == 429 or (status is not None and status >= 500):
            return StorageConnectionError(message, cause=error)
        return StorageError(message, cause=error)

    if isinstance(error, OSError):
        return StorageConnectionError(message, cause=error)

    return StorageError(message, cause=error)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet creation.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry_transient
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
                raise StoragePermissionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise to_storage_error("connect to Google Sheets", e)

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
                raise StoragePermissionError(
                    f"Spreadsheet not found or not shared: {self._settings.spreadsheet_id}"
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
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS, 2000
        )

    def get_profiles_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.profiles_sheet_name, PROFILE_COLUMNS, 500
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, 5000
        )

    async def ping(self) -> bool:
        """Connectivity probe: can we open the spreadsheet at all?"""
        # gspread blocks; run it off the loop so the caller's timeout can fire.
        await asyncio.to_thread(self.get_spreadsheet)
        return True


def _safe_get(row: list, index: int, default: str = "") -> str:
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsTransactionStorage(TransactionStorageInterface):
    """
    Google Sheets implementation of transaction storage.

    One transaction per row; every row carries its owner's user_id.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _transaction_to_row(self, user_id: str, transaction: Transaction) -> list:
        """Convert a Transaction to a spreadsheet row."""
        return [
            transaction.id,
            user_id,
            datetime.utcnow().isoformat(),
            str(transaction.amount),
            transaction.description,
            transaction.category,
            transaction.type.value,
            transaction.date.isoformat(),
            transaction.client or "",
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        """Convert a spreadsheet row to a Transaction."""
        return Transaction(
            id=_safe_get(row, 0),
            amount=Decimal(_safe_get(row, 3)),
            description=_safe_get(row, 4),
            category=_safe_get(row, 5),
            type=TransactionType(_safe_get(row, 6)),
            date=date.fromisoformat(_safe_get(row, 7)),
            client=_safe_get(row, 8) or None,
        )

    def _cell_value(self, name: str, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, TransactionType):
            return value.value
        if isinstance(value, date):
            return value.isoformat()
        return str(value)

    def _find_row_index(self, all_rows: list, transaction_id: str, user_id: str) -> int:
        # Row 1 is the header
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == transaction_id and _safe_get(row, 1) == user_id:
                return idx
        raise RecordNotFoundError(f"Transaction not found: {transaction_id}")

    @retry_transient
    async def list_transactions(
        self,
        user_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        type_: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        """List an identity's transactions, newest first."""
        try:
            sheet = self._client.get_transactions_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise to_storage_error("list transactions", e)

        transactions = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            if _safe_get(row, 1) != user_id:
                continue

            try:
                transaction = self._row_to_transaction(row)
            except (ValueError, ArithmeticError) as e:
                raise to_storage_error(f"read transaction row {row[0]}", e)

            # Apply filters
            if date_from and transaction.date < date_from:
                continue
            if date_to and transaction.date > date_to:
                continue
            if type_ and transaction.type != type_:
                continue

            transactions.append(transaction)

        # Sort by date descending (newest first)
        transactions.sort(key=lambda t: t.date, reverse=True)
        return transactions

    async def insert_transaction(
        self,
        user_id: str,
        draft: TransactionDraft,
    ) -> Transaction:
        """Append a new row; the id is assigned here."""
        transaction = draft.with_id(generate_id())
        try:
            sheet = self._client.get_transactions_sheet()
            sheet.append_row(
                self._transaction_to_row(user_id, transaction),
                value_input_option="RAW",
            )
        except Exception as e:
            raise to_storage_error("insert transaction", e)
        return transaction

    async def update_transaction(
        self,
        transaction_id: str,
        user_id: str,
        fields: dict[str, Any],
    ) -> None:
        """
        Rewrite one row owned by user_id with the given columns replaced.

        The whole row goes out in a single RAW write so a failure never
        leaves it half-updated.
        """
        try:
            sheet = self._client.get_transactions_sheet()
            all_rows = sheet.get_all_values()
            row_idx = self._find_row_index(all_rows, transaction_id, user_id)

            row = list(all_rows[row_idx - 1])
            row += [""] * (len(TRANSACTION_COLUMNS) - len(row))
            for name, value in fields.items():
                row[TRANSACTION_COLUMNS.index(name)] = self._cell_value(name, value)

            last_cell = rowcol_to_a1(row_idx, len(TRANSACTION_COLUMNS))
            sheet.update(
                range_name=f"A{row_idx}:{last_cell}",
                values=[row[: len(TRANSACTION_COLUMNS)]],
                value_input_option="RAW",
            )
        except Exception as e:
            raise to_storage_error("update transaction", e)

    async def delete_transaction(self, transaction_id: str, user_id: str) -> None:
        """Delete one row owned by user_id."""
        try:
            sheet = self._client.get_transactions_sheet()
            row_idx = self._find_row_index(sheet.get_all_values(), transaction_id, user_id)
            sheet.delete_rows(row_idx)
        except Exception as e:
            raise to_storage_error("delete transaction", e)


class GoogleSheetsProfileStorage(ProfileStorageInterface):
    """
    Subscription profiles, one row per identity.

    Rows are written by the billing backend; this side only reads.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @retry_transient
    async def get_profile(self, user_id: str) -> Optional[Profile]:
        try:
            sheet = self._client.get_profiles_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise to_storage_error("read profile", e)

        for row in all_rows:
            if row and row[0] == user_id:
                return Profile(
                    user_id=user_id,
                    is_premium=_safe_get(row, 1).lower() == "true",
                    subscription_status=_safe_get(row, 2) or None,
                    cancel_at_period_end=_safe_get(row, 3).lower() == "true",
                )
        return None


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
            user_id=_safe_get(row, 4) or None,
            entity_type=_safe_get(row, 5) or None,
            entity_id=_safe_get(row, 6) or None,
            correlation_id=UUID(_safe_get(row, 7)) if _safe_get(row, 7) else None,
            description=_safe_get(row, 8),
            details=json.loads(_safe_get(row, 9)) if _safe_get(row, 9) else {},
            error_message=_safe_get(row, 10) or None,
            is_user_action=_safe_get(row, 11).lower() == "true",
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise to_storage_error("append audit event", e)

    def _all_events(self) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise to_storage_error("read audit events", e)

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except ValueError:
                continue  # Skip malformed rows
        return events

    @retry_transient
    async def get_events_by_user(self, user_id: str) -> list[AuditEvent]:
        events = [e for e in self._all_events() if e.user_id == user_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    @retry_transient
    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = self._all_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
