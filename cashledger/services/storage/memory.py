"""
In-Memory Storage Implementations

Used for demo mode (nothing is persisted, nothing leaves the process)
and as test collaborators. They honour the same contracts as the remote
implementations: identity scoping, newest-first ordering, and
RecordNotFoundError on missing rows.
"""

import asyncio
from datetime import date
from typing import Any, Iterable, Optional

from cashledger.models.audit import AuditEvent
from cashledger.models.ledger import (
    Profile,
    Transaction,
    TransactionDraft,
    TransactionType,
    generate_id,
)
from cashledger.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStorageInterface,
    ProfileStorageInterface,
    RecordNotFoundError,
    TransactionStorageInterface,
)


class InMemoryTransactionStorage(TransactionStorageInterface):
    """Transactions held in a dict of ``user_id -> {id: Transaction}``."""

    def __init__(self, seed: Optional[dict[str, Iterable[Transaction]]] = None):
        self._rows: dict[str, dict[str, Transaction]] = {}
        for user_id, transactions in (seed or {}).items():
            self._rows[user_id] = {t.id: t for t in transactions}

    def _user_rows(self, user_id: str) -> dict[str, Transaction]:
        return self._rows.setdefault(user_id, {})

    async def list_transactions(
        self,
        user_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        type_: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        await asyncio.sleep(0)
        results = []
        for transaction in self._user_rows(user_id).values():
            if date_from and transaction.date < date_from:
                continue
            if date_to and transaction.date > date_to:
                continue
            if type_ and transaction.type != type_:
                continue
            results.append(transaction)

        results.sort(key=lambda t: t.date, reverse=True)
        return results

    async def insert_transaction(
        self,
        user_id: str,
        draft: TransactionDraft,
    ) -> Transaction:
        await asyncio.sleep(0)
        transaction = draft.with_id(generate_id())
        self._user_rows(user_id)[transaction.id] = transaction
        return transaction

    async def update_transaction(
        self,
        transaction_id: str,
        user_id: str,
        fields: dict[str, Any],
    ) -> None:
        await asyncio.sleep(0)
        rows = self._user_rows(user_id)
        if transaction_id not in rows:
            raise RecordNotFoundError(f"Transaction not found: {transaction_id}")
        current = rows[transaction_id]
        rows[transaction_id] = current.model_copy(update=fields)

    async def delete_transaction(self, transaction_id: str, user_id: str) -> None:
        await asyncio.sleep(0)
        rows = self._user_rows(user_id)
        if transaction_id not in rows:
            raise RecordNotFoundError(f"Transaction not found: {transaction_id}")
        del rows[transaction_id]

    def count(self, user_id: str) -> int:
        return len(self._rows.get(user_id, {}))


class InMemoryProfileStorage(ProfileStorageInterface):
    """Profiles keyed by user id. Unknown users have no profile."""

    def __init__(self, profiles: Optional[Iterable[Profile]] = None):
        self._profiles = {p.user_id: p for p in (profiles or [])}

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        return self._profiles.get(user_id)

    def set_profile(self, profile: Profile) -> None:
        self._profiles[profile.user_id] = profile


class InMemoryKeyValueStorage(KeyValueStorageInterface):
    """Dict-backed key-value store."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data = dict(initial or {})

    def load(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def save(self, key: str, value: Any) -> None:
        self._data[key] = value


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_user(self, user_id: str) -> list[AuditEvent]:
        events = [e for e in self._events if e.user_id == user_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
