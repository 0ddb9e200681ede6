"""
Ledger Store

The authoritative in-memory view of the current identity's transactions,
kept in step with a remote store.

CRITICAL RULES:
1. Memory changes only AFTER the remote store confirms. There is no
   optimistic insert and no rollback; on any remote failure the local
   collection is left exactly as it was and the error is re-raised.
2. Each mutation applies only its own delta (prepend / replace / remove).
   Full reloads happen only through load().
3. The entitlement ceiling and the category/type check run before the
   remote call; a rejected add never reaches the remote store.
4. An update identical in every mutable field is skipped entirely.
5. Results that arrive after the session changed (sign-out, demo → online)
   are dropped, so demo data never reaches a real identity's ledger.

ORDERING: load() returns newest date first. add() prepends without
re-sorting, so a back-dated insert sits at the top until the next load().
"""

from typing import Callable, Optional

import structlog

from cashledger.audit import AuditLogger
from cashledger.errors import (
    InvalidCategoryError,
    LimitReachedError,
    SessionChangedError,
    TransactionNotFoundError,
    TransactionValidationError,
)
from cashledger.identity.context import SessionContext
from cashledger.ledger import aggregates
from cashledger.ledger.demo import create_demo_storage
from cashledger.ledger.entitlement import EntitlementGate
from cashledger.models.ledger import (
    MUTABLE_TRANSACTION_FIELDS,
    EntitlementState,
    Identity,
    KeyTotal,
    MonthlyTotal,
    Summary,
    Transaction,
    TransactionDraft,
    TransactionType,
)
from cashledger.services.storage import (
    StorageConnectionError,
    StorageError,
    TransactionStorageInterface,
)
from cashledger.taxonomy import TaxonomyStore
from cashledger.validation import TransactionValidator


logger = structlog.get_logger(__name__)

DemoStorageFactory = Callable[[Identity], TransactionStorageInterface]


class LedgerStore:
    """
    Transactions of the signed-in identity.

    Consumers read ``transactions``, ``summary`` and ``has_reached_limit``
    and mutate only through add/update/delete.
    """

    def __init__(
        self,
        context: SessionContext,
        taxonomy: TaxonomyStore,
        remote_storage: Optional[TransactionStorageInterface] = None,
        gate: Optional[EntitlementGate] = None,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        demo_storage_factory: DemoStorageFactory = create_demo_storage,
    ):
        self._context = context
        self._taxonomy = taxonomy
        self._remote = remote_storage
        self._gate = gate or EntitlementGate(context)
        self._validator = validator or TransactionValidator(taxonomy)
        self._audit_logger = audit_logger
        self._demo_storage_factory = demo_storage_factory

        self._transactions: list[Transaction] = []
        self._backend: Optional[TransactionStorageInterface] = None
        self._loaded = False

        self._on_session_changed(context)
        context.subscribe(self._on_session_changed)

    # -------------------------------------------------------------------------
    # Session handling
    # -------------------------------------------------------------------------

    def _on_session_changed(self, context: SessionContext) -> None:
        """Discard everything held for the previous session and pick a backend."""
        self._transactions = []
        self._loaded = False

        identity = context.identity
        if identity is None:
            self._backend = None
        elif identity.is_demo:
            self._backend = self._demo_storage_factory(identity)
        else:
            self._backend = self._remote

        logger.debug(
            "ledger_reset",
            user_id=identity.id if identity else None,
            generation=context.generation,
        )

    def _require_session(
        self,
        operation: str,
    ) -> tuple[Identity, TransactionStorageInterface, int]:
        identity = self._context.require_identity(operation)
        if self._backend is None:
            raise StorageConnectionError(
                f"Cannot {operation}: no remote transaction storage configured"
            )
        return identity, self._backend, self._context.generation

    def _is_current(self, generation: int) -> bool:
        return generation == self._context.generation

    def _discard_stale(self, operation: str, generation: int) -> None:
        logger.info(
            "stale_result_discarded",
            operation=operation,
            started_generation=generation,
            current_generation=self._context.generation,
        )

    async def _remote_failed(
        self,
        identity: Identity,
        operation: str,
        error: StorageError,
    ) -> None:
        logger.warning(
            "remote_operation_failed",
            operation=operation,
            user_id=identity.id,
            retryable=error.retryable,
            error=str(error),
        )
        if self._audit_logger:
            await self._audit_logger.log_remote_failure(
                user_id=identity.id,
                operation=operation,
                error_message=str(error),
                retryable=error.retryable,
            )

    # -------------------------------------------------------------------------
    # Read views
    # -------------------------------------------------------------------------

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return tuple(self._transactions)

    @property
    def count(self) -> int:
        return len(self._transactions)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def summary(self) -> Summary:
        return aggregates.calculate_summary(self._transactions)

    @property
    def entitlement(self) -> EntitlementState:
        return self._gate.state(self.count)

    @property
    def has_reached_limit(self) -> bool:
        if not self._gate.is_enforced():
            return False
        return self.entitlement.has_reached_limit

    def category_totals(self, type_: Optional[TransactionType] = None) -> list[KeyTotal]:
        return aggregates.category_totals(self._transactions, type_)

    def monthly_totals(self, type_: Optional[TransactionType] = None) -> list[KeyTotal]:
        return aggregates.monthly_totals(self._transactions, type_)

    def monthly_breakdown(self) -> list[MonthlyTotal]:
        return aggregates.monthly_breakdown(self._transactions)

    def get_transaction(self, transaction_id: str) -> Transaction:
        """
        Raises:
            TransactionNotFoundError: If the id is not in the local collection
        """
        for transaction in self._transactions:
            if transaction.id == transaction_id:
                return transaction
        raise TransactionNotFoundError(transaction_id)

    # -------------------------------------------------------------------------
    # Load
    # -------------------------------------------------------------------------

    async def load(self) -> tuple[Transaction, ...]:
        """
        Fetch the identity's whole ledger, newest first.

        With no identity the store stays empty and nothing is fetched.
        """
        identity = self._context.identity
        if identity is None:
            self._transactions = []
            return ()

        identity, backend, generation = self._require_session("load transactions")
        try:
            rows = await backend.list_transactions(identity.id)
        except StorageError as e:
            await self._remote_failed(identity, "list", e)
            raise

        if not self._is_current(generation):
            self._discard_stale("load", generation)
            return self.transactions

        self._transactions = sorted(rows, key=lambda t: t.date, reverse=True)
        self._loaded = True

        if self._audit_logger:
            await self._audit_logger.log_ledger_loaded(
                identity.id, len(self._transactions), identity.is_demo
            )
        return self.transactions

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def _reject(self, identity: Identity, error: Exception) -> None:
        if not self._audit_logger:
            return
        if isinstance(error, TransactionValidationError):
            issues = [issue.model_dump() for issue in error.result.issues]
        else:
            issues = []
        await self._audit_logger.log_transaction_rejected(identity.id, str(error), issues)

    async def add_transaction(self, draft: TransactionDraft) -> Transaction:
        """
        Add a transaction after the remote store accepts it.

        Raises:
            UnauthenticatedError: No identity
            LimitReachedError: Free tier at the ceiling
            SessionChangedError: The session switched while the ledger was loading
            TransactionValidationError: Field rules failed
            InvalidCategoryError: Category/type mismatch
            StorageError: The remote list or insert failed
        """
        identity, backend, generation = self._require_session("add a transaction")

        # The ceiling is counted against the remote rows, so they must be in memory.
        if not self._loaded:
            await self.load()
            if not self._is_current(generation):
                raise SessionChangedError("add a transaction")

        try:
            self._gate.check_can_add(self.count)
        except LimitReachedError as e:
            if self._audit_logger:
                await self._audit_logger.log_limit_reached(identity.id, e.count, e.limit)
            raise

        try:
            self._validator.check(draft)
        except (TransactionValidationError, InvalidCategoryError) as e:
            await self._reject(identity, e)
            raise

        try:
            created = await backend.insert_transaction(identity.id, draft)
        except StorageError as e:
            await self._remote_failed(identity, "insert", e)
            raise

        if not self._is_current(generation):
            self._discard_stale("insert", generation)
            return created

        self._transactions.insert(0, created)

        if self._audit_logger:
            await self._audit_logger.log_transaction_added(
                user_id=identity.id,
                transaction_id=created.id,
                amount=str(created.amount),
                type_=created.type.value,
            )
        return created

    async def update_transaction(self, transaction: Transaction) -> Transaction:
        """
        Replace a transaction wholesale after the remote store accepts it.

        Only the mutable fields are sent; the id never changes. If nothing
        differs from the stored record, no remote call is made.

        Raises:
            UnauthenticatedError: No identity
            TransactionNotFoundError: Id not in the local collection
            TransactionValidationError: Edit rules failed
            InvalidCategoryError: Category/type mismatch
            StorageError: The remote update failed
        """
        identity, backend, generation = self._require_session("update a transaction")
        current = self.get_transaction(transaction.id)

        if not transaction.differs_from(current):
            if self._audit_logger:
                await self._audit_logger.log_transaction_update_skipped(
                    identity.id, transaction.id
                )
            return current

        try:
            self._validator.check(transaction, is_edit=True)
        except (TransactionValidationError, InvalidCategoryError) as e:
            await self._reject(identity, e)
            raise

        changed = [
            name for name in MUTABLE_TRANSACTION_FIELDS
            if getattr(transaction, name) != getattr(current, name)
        ]

        try:
            await backend.update_transaction(
                transaction.id,
                identity.id,
                transaction.mutable_fields(),
            )
        except StorageError as e:
            await self._remote_failed(identity, "update", e)
            raise

        if not self._is_current(generation):
            self._discard_stale("update", generation)
            return transaction

        self._transactions = [
            transaction if t.id == transaction.id else t for t in self._transactions
        ]

        if self._audit_logger:
            await self._audit_logger.log_transaction_updated(
                identity.id, transaction.id, changed
            )
        return transaction

    async def delete_transaction(self, transaction_id: str) -> None:
        """
        Delete a transaction after the remote store confirms.

        Raises:
            UnauthenticatedError: No identity
            TransactionNotFoundError: Id not in the local collection
            StorageError: The remote delete failed
        """
        identity, backend, generation = self._require_session("delete a transaction")
        self.get_transaction(transaction_id)

        try:
            await backend.delete_transaction(transaction_id, identity.id)
        except StorageError as e:
            await self._remote_failed(identity, "delete", e)
            raise

        if not self._is_current(generation):
            self._discard_stale("delete", generation)
            return

        self._transactions = [t for t in self._transactions if t.id != transaction_id]

        if self._audit_logger:
            await self._audit_logger.log_transaction_deleted(identity.id, transaction_id)
