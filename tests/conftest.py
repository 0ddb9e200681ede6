"""Shared test fixtures."""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from cashledger.config import LedgerSettings
from cashledger.identity import SessionContext
from cashledger.ledger import EntitlementGate, LedgerStore
from cashledger.models.ledger import (
    ConnectivityMode,
    Identity,
    Transaction,
    TransactionDraft,
    TransactionType,
    generate_id,
)
from cashledger.services.storage import (
    InMemoryAuditStorage,
    InMemoryKeyValueStorage,
    InMemoryTransactionStorage,
)
from cashledger.audit import AuditLogger
from cashledger.taxonomy import TaxonomyStore
from cashledger.validation import TransactionValidator


ALICE = Identity(id="user-alice", email="alice@example.com", name="Alice")
BOB = Identity(id="user-bob", email="bob@example.com", name="Bob")


class RecordingTransactionStorage(InMemoryTransactionStorage):
    """
    In-memory remote double that counts calls and can be told to fail.

    Set ``fail_with["insert"] = SomeError(...)`` to make the next inserts raise.
    """

    def __init__(self, seed=None):
        super().__init__(seed)
        self.calls = {"list": 0, "insert": 0, "update": 0, "delete": 0}
        self.update_payloads: list[dict] = []
        self.fail_with: dict[str, Exception] = {}

    def seed(self, user_id: str, transactions) -> None:
        """Put rows in place without counting a call."""
        self._user_rows(user_id).update({t.id: t for t in transactions})

    def _maybe_fail(self, operation: str) -> None:
        self.calls[operation] += 1
        if operation in self.fail_with:
            raise self.fail_with[operation]

    async def list_transactions(self, user_id, date_from=None, date_to=None, type_=None):
        self._maybe_fail("list")
        return await super().list_transactions(user_id, date_from, date_to, type_)

    async def insert_transaction(self, user_id, draft):
        self._maybe_fail("insert")
        return await super().insert_transaction(user_id, draft)

    async def update_transaction(self, transaction_id, user_id, fields):
        self._maybe_fail("update")
        self.update_payloads.append(dict(fields))
        await super().update_transaction(transaction_id, user_id, fields)

    async def delete_transaction(self, transaction_id, user_id):
        self._maybe_fail("delete")
        await super().delete_transaction(transaction_id, user_id)


class BlockingTransactionStorage(InMemoryTransactionStorage):
    """Insert waits until ``release`` is set; ``entered`` fires when it starts."""

    def __init__(self, seed=None):
        super().__init__(seed)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def insert_transaction(self, user_id, draft):
        self.entered.set()
        await self.release.wait()
        return await super().insert_transaction(user_id, draft)


def build_draft(
    amount: str = "100",
    description: str = "Office supplies",
    category: str = "Food",
    type_: TransactionType = TransactionType.EXPENSE,
    day: Optional[date] = None,
    client: Optional[str] = None,
) -> TransactionDraft:
    return TransactionDraft(
        amount=Decimal(amount),
        description=description,
        category=category,
        type=type_,
        date=day or date(2025, 4, 10),
        client=client,
    )


def build_transactions(count: int, start_day: int = 1) -> list[Transaction]:
    """``count`` valid expense transactions spread over 2025."""
    return [
        build_draft(
            amount=str(10 + i),
            description=f"Expense number {i}",
            day=date(2025, 1 + (i % 12), 1 + ((start_day + i) % 28)),
        ).with_id(generate_id())
        for i in range(count)
    ]


@pytest.fixture
def alice():
    return ALICE


@pytest.fixture
def bob():
    return BOB


@pytest.fixture
def make_draft():
    return build_draft


@pytest.fixture
def make_transactions():
    return build_transactions


@pytest.fixture
def ledger_settings():
    return LedgerSettings(
        free_tier_limit=50,
        min_description_length=3,
        max_future_days=365,
        connectivity_probe_timeout_seconds=0.05,
    )


@pytest.fixture
def taxonomy_storage():
    return InMemoryKeyValueStorage()


@pytest.fixture
def taxonomy(taxonomy_storage):
    store = TaxonomyStore(taxonomy_storage)
    store.load()
    return store


@pytest.fixture
def context():
    return SessionContext()


@pytest.fixture
def remote():
    return RecordingTransactionStorage()


@pytest.fixture
def blocking_storage():
    return BlockingTransactionStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def gate(context, ledger_settings):
    return EntitlementGate(context, ledger_settings)


@pytest.fixture
def make_ledger(context, taxonomy, gate, ledger_settings, audit_logger):
    def _make_ledger(remote_storage=None, **kwargs) -> LedgerStore:
        return LedgerStore(
            context,
            taxonomy,
            remote_storage=remote_storage,
            gate=gate,
            validator=TransactionValidator(taxonomy, ledger_settings),
            audit_logger=audit_logger,
            **kwargs,
        )

    return _make_ledger


@pytest.fixture
def ledger(make_ledger, remote):
    return make_ledger(remote)


@pytest.fixture
def sign_in(context):
    """Start an online session directly on the context."""

    def _sign_in(identity: Identity = ALICE, is_premium: bool = False) -> Identity:
        context.initialize(identity, ConnectivityMode.ONLINE, is_premium=is_premium)
        return identity

    return _sign_in
