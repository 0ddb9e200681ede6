"""
Error taxonomy for the ledger core.

Every mutating operation raises a distinguishable error so the caller can
tell an upgrade prompt (LimitReachedError) from a validation message
(InvalidCategoryError, TransactionValidationError) from a generic failure.

Remote failures are NOT defined here: collaborators raise the StorageError
hierarchy (see cashledger.services.storage.interface) and the core
propagates those unchanged. The core never retries.
"""

from typing import Optional

from cashledger.models.ledger import TransactionType, ValidationResult


class LedgerError(Exception):
    """Base exception for ledger core errors."""
    pass


class UnauthenticatedError(LedgerError):
    """An operation needing an identity ran without one. Not retryable."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Cannot {operation}: no identity is signed in")


class LimitReachedError(LedgerError):
    """The free-tier ceiling blocks a new transaction. Fixed by upgrading."""

    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(
            f"Free tier limit reached: {count} of {limit} transactions used"
        )


class InvalidCategoryError(LedgerError):
    """The category does not exist for the transaction's type."""

    def __init__(self, category: str, type_: TransactionType):
        self.category = category
        self.type = TransactionType(type_)
        super().__init__(
            f"No {self.type.value} category named '{category}'"
        )


class TransactionNotFoundError(LedgerError):
    """Update/delete target is not in the local collection."""

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction not found: {transaction_id}")


class TransactionValidationError(LedgerError):
    """A transaction failed field validation before any remote call."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(f"Transaction is invalid: {messages}")


class DuplicateCategoryError(LedgerError):
    """A category with this (name, type) already exists."""

    def __init__(self, name: str, type_: TransactionType):
        self.name = name
        self.type = TransactionType(type_)
        super().__init__(
            f"A {self.type.value} category named '{name}' already exists"
        )


class CategoryNotFoundError(LedgerError):
    """No category with this id."""

    def __init__(self, category_id: str):
        self.category_id = category_id
        super().__init__(f"Category not found: {category_id}")


class ClientNotFoundError(LedgerError):
    """No client with this id."""

    def __init__(self, client_id: str):
        self.client_id = client_id
        super().__init__(f"Client not found: {client_id}")


class OperationInProgressError(LedgerError):
    """A second trigger arrived while the same operation was in flight."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"'{operation}' is already in progress")


class PremiumFeatureRequiredError(LedgerError):
    """A premium-only feature was requested on the free tier."""

    def __init__(self, feature: str):
        self.feature = feature
        super().__init__(f"'{feature}' requires a premium subscription")


class OfflineError(LedgerError):
    """A real sign-in was attempted while connectivity is offline."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message or "Cannot sign in while offline; use demo mode instead"
        )


class SessionChangedError(LedgerError):
    """The session changed while an operation was waiting on the remote store."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Cannot {operation}: the session changed")
