"""
Abstract Storage Interfaces

DESIGN DECISION: We define abstract interfaces for every collaborator the
ledger core talks to. This allows us to:
1. Swap Google Sheets for a hosted database later
2. Use in-memory storage for demo mode and for testing
3. Keep business logic decoupled from storage implementation

The interfaces are intentionally small - scoped CRUD keyed by identity id,
a profile lookup, and a key-value store. Implementations are trusted to
enforce row-level isolation: a query for identity A never returns rows of
identity B. The core still passes the identity id on every call.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Optional

from cashledger.models.audit import AuditEvent
from cashledger.models.ledger import (
    Profile,
    Transaction,
    TransactionDraft,
    TransactionType,
)


class TransactionStorageInterface(ABC):
    """
    Remote persistence for transactions, scoped by identity.

    Implementations raise StorageError subclasses on failure.
    """

    @abstractmethod
    async def list_transactions(
        self,
        user_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        type_: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        """
        List an identity's transactions, newest date first.

        Args:
            user_id: Owning identity
            date_from: Only transactions on or after this date
            date_to: Only transactions on or before this date
            type_: Only income or only expense

        Returns:
            All matching transactions (no pagination)
        """
        pass

    @abstractmethod
    async def insert_transaction(
        self,
        user_id: str,
        draft: TransactionDraft,
    ) -> Transaction:
        """
        Insert a transaction for an identity.

        The store assigns the id. Not idempotent: calling twice
        creates two rows.

        Returns:
            The stored transaction, with its id
        """
        pass

    @abstractmethod
    async def update_transaction(
        self,
        transaction_id: str,
        user_id: str,
        fields: dict[str, Any],
    ) -> None:
        """
        Update the mutable fields of one transaction.

        Scoped by both transaction id and identity id.

        Raises:
            RecordNotFoundError: If no such row exists for this identity
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: str, user_id: str) -> None:
        """
        Delete one transaction, scoped by transaction id and identity id.

        Raises:
            RecordNotFoundError: If no such row exists for this identity
        """
        pass


class ProfileStorageInterface(ABC):
    """Subscription profile lookup."""

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[Profile]:
        """
        Get the profile for an identity.

        Returns:
            The profile, or None if the identity has no profile row yet
        """
        pass


class KeyValueStorageInterface(ABC):
    """
    Simple local key-value persistence.

    Used for the category and client lists. Values are plain JSON-able data.
    """

    @abstractmethod
    def load(self, key: str) -> Optional[Any]:
        """Return the stored value, or None if the key was never written."""
        pass

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        """Overwrite the value stored under key."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_user(self, user_id: str) -> list[AuditEvent]:
        """
        Get all events for an identity, in chronological order.
        """
        pass

    @abstractmethod
    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """
    Base exception for remote storage operations.

    ``retryable`` tells the caller whether repeating the call is safe:
    network blips are, permission problems are not.
    """
    retryable = False

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


# The name callers match on for "anything the persistence collaborator raised"
RemoteFailure = StorageError


class StorageConnectionError(StorageError):
    """Could not reach the storage backend. Transient."""
    retryable = True


class StoragePermissionError(StorageError):
    """The backend refused the request (auth, permissions, row policy)."""
    retryable = False


class RecordNotFoundError(StorageError):
    """The targeted row does not exist for this identity."""
    pass
