"""
Main Orchestrator for Cash Ledger

This module ties together all the components and is the only mutation
surface the presentation layer talks to:
1. Session: start (probe connectivity) → sign in / demo mode → sign out
2. Ledger: add / update / delete transactions, each behind an in-flight guard
3. Taxonomy: add / update / delete categories, add / delete clients
4. Premium: JSON export

DESIGN DECISION: The orchestrator enforces the boundaries:
- No double submission (the remote insert is not idempotent)
- Every mode switch reloads the ledger for the new session
- Premium-only features pass through the entitlement gate

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

from typing import Optional

import structlog

from cashledger.audit import AuditLogger
from cashledger.config import get_settings
from cashledger.export import build_json_export
from cashledger.identity import IdentityProvider, SessionContext
from cashledger.ledger import EntitlementGate, InFlightGuard, LedgerStore
from cashledger.models.ledger import (
    Category,
    Client,
    EntitlementState,
    Identity,
    Summary,
    Transaction,
    TransactionDraft,
    TransactionType,
)
from cashledger.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsProfileStorage,
    GoogleSheetsTransactionStorage,
    InMemoryKeyValueStorage,
    JsonFileKeyValueStorage,
    KeyValueStorageInterface,
)
from cashledger.taxonomy import TaxonomyStore


logger = structlog.get_logger(__name__)


class CashLedgerApp:
    """
    Facade over the session, taxonomy and ledger.

    Read-only views are properties; every mutation is a coroutine.
    """

    def __init__(
        self,
        context: SessionContext,
        provider: IdentityProvider,
        taxonomy: TaxonomyStore,
        ledger: LedgerStore,
        gate: EntitlementGate,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._context = context
        self._provider = provider
        self._taxonomy = taxonomy
        self._ledger = ledger
        self._gate = gate
        self._audit_logger = audit_logger

        self._save_guard = InFlightGuard("save_transaction")
        self._update_guard = InFlightGuard("update_transaction")
        self._delete_guard = InFlightGuard("delete_transaction")

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def context(self) -> SessionContext:
        return self._context

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._ledger.transactions

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._taxonomy.categories

    @property
    def clients(self) -> tuple[Client, ...]:
        return self._taxonomy.clients

    @property
    def summary(self) -> Summary:
        return self._ledger.summary

    @property
    def has_reached_limit(self) -> bool:
        return self._ledger.has_reached_limit

    @property
    def entitlement(self) -> EntitlementState:
        return self._ledger.entitlement

    @property
    def is_saving(self) -> bool:
        return self._save_guard.in_flight

    @property
    def ledger(self) -> LedgerStore:
        return self._ledger

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Load the taxonomy and resolve connectivity (checking → online/offline)."""
        self._taxonomy.load()
        mode = await self._provider.resolve_connectivity()
        logger.info("app_started", mode=mode.value)

    async def sign_in(self, identity: Identity) -> tuple[Transaction, ...]:
        """Start a real session and load its ledger from scratch."""
        await self._provider.sign_in(identity)
        return await self._ledger.load()

    async def enter_demo_mode(self) -> tuple[Transaction, ...]:
        """Start a demo session over synthetic, non-persisted data."""
        await self._provider.enter_demo_mode()
        return await self._ledger.load()

    async def sign_out(self) -> None:
        await self._provider.sign_out()

    async def refresh_entitlement(self) -> bool:
        """Re-read the premium flag, e.g. when checkout reports success."""
        return await self._provider.refresh_entitlement()

    async def reload(self) -> tuple[Transaction, ...]:
        return await self._ledger.load()

    # -------------------------------------------------------------------------
    # Ledger mutations
    # -------------------------------------------------------------------------

    async def add_transaction(self, draft: TransactionDraft) -> Transaction:
        async with self._save_guard:
            return await self._ledger.add_transaction(draft)

    async def update_transaction(self, transaction: Transaction) -> Transaction:
        async with self._update_guard:
            return await self._ledger.update_transaction(transaction)

    async def delete_transaction(self, transaction_id: str) -> None:
        async with self._delete_guard:
            await self._ledger.delete_transaction(transaction_id)

    # -------------------------------------------------------------------------
    # Taxonomy mutations
    # -------------------------------------------------------------------------

    async def add_category(
        self,
        name: str,
        type_: TransactionType,
        color: str = "#6B7280",
    ) -> Category:
        return await self._taxonomy.add_category(name, type_, color)

    async def update_category(
        self,
        category_id: str,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Category:
        return await self._taxonomy.update_category(category_id, name=name, color=color)

    async def delete_category(self, category_id: str) -> Category:
        return await self._taxonomy.delete_category(category_id)

    async def add_client(self, name: str) -> Client:
        return await self._taxonomy.add_client(name)

    async def delete_client(self, client_id: str) -> Client:
        return await self._taxonomy.delete_client(client_id)

    # -------------------------------------------------------------------------
    # Premium features
    # -------------------------------------------------------------------------

    async def export_json(self, enterprise_name: Optional[str] = None) -> dict:
        """
        Raises:
            UnauthenticatedError: No identity
            PremiumFeatureRequiredError: Free tier
        """
        identity = self._context.require_identity("export transactions")
        self._gate.require_premium("json_export")

        document = build_json_export(
            self._ledger.transactions,
            enterprise_name=enterprise_name or get_settings().ledger.enterprise_name,
        )
        if self._audit_logger:
            await self._audit_logger.log_export_generated(
                identity.id, "json", len(document["transactions"])
            )
        return document


def create_app_components(
    use_storage: bool = True,
    taxonomy_storage: Optional[KeyValueStorageInterface] = None,
) -> CashLedgerApp:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run with demo mode only.
        taxonomy_storage: Override for the local category/client store.

    Returns:
        A wired CashLedgerApp (call ``await app.start()`` next)
    """
    context = SessionContext()

    sheets_client = None
    transaction_storage = None
    profile_storage = None
    audit_logger = None

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            transaction_storage = GoogleSheetsTransactionStorage(sheets_client)
            profile_storage = GoogleSheetsProfileStorage(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue in offline/demo mode
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            transaction_storage = None
            profile_storage = None

    if audit_logger is None:
        audit_logger = AuditLogger()  # Local-only logging

    if taxonomy_storage is None:
        try:
            taxonomy_storage = JsonFileKeyValueStorage()
        except Exception as e:
            logger.warning("taxonomy_storage_not_configured", error=str(e))
            taxonomy_storage = InMemoryKeyValueStorage()

    taxonomy = TaxonomyStore(taxonomy_storage, audit_logger=audit_logger)
    gate = EntitlementGate(context)
    provider = IdentityProvider(
        context,
        profile_storage=profile_storage,
        probe=sheets_client.ping if sheets_client else None,
        audit_logger=audit_logger,
    )
    ledger = LedgerStore(
        context,
        taxonomy,
        remote_storage=transaction_storage,
        gate=gate,
        audit_logger=audit_logger,
    )

    return CashLedgerApp(
        context=context,
        provider=provider,
        taxonomy=taxonomy,
        ledger=ledger,
        gate=gate,
        audit_logger=audit_logger,
    )
