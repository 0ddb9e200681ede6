"""
Core Data Models for Cash Ledger

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Be immutable once built, so collections are only changed by the stores

DESIGN DECISION: We use Pydantic v2 with frozen models for ledger records.
An "edit" is always a whole new record replacing the old one.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
)


def generate_id() -> str:
    """Opaque unique identifier for records."""
    return uuid4().hex


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction. Categories carry the same type."""
    INCOME = "income"
    EXPENSE = "expense"


class ConnectivityMode(str, Enum):
    """
    Connectivity / authentication mode.

    CHECKING is the initial state and always resolves to ONLINE or OFFLINE.
    OFFLINE covers both a failed probe and the opt-in demo mode.
    """
    CHECKING = "checking"
    ONLINE = "online"
    OFFLINE = "offline"


# =============================================================================
# LEDGER RECORDS
# =============================================================================

# Fields an update is allowed to send to the remote store. The id is immutable.
MUTABLE_TRANSACTION_FIELDS = (
    "amount",
    "description",
    "category",
    "type",
    "date",
    "client",
)


class TransactionDraft(BaseModel):
    """
    A transaction before the remote store has accepted it.

    The remote store assigns the id (and the owning identity).
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive magnitude, currency agnostic"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="What the money was for"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Name of a taxonomy category of the same type"
    )
    type: TransactionType
    date: dt.date
    client: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Optional client name, not checked against the client list"
    )

    def with_id(self, transaction_id: str) -> "Transaction":
        """Attach an identifier, producing a full Transaction."""
        return Transaction(id=transaction_id, **self.model_dump())


class Transaction(TransactionDraft):
    """A transaction owned by exactly one identity."""

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque unique identifier"
    )

    def mutable_fields(self) -> dict:
        """The fields an update may change, keyed by name."""
        return {name: getattr(self, name) for name in MUTABLE_TRANSACTION_FIELDS}

    def differs_from(self, other: "Transaction") -> bool:
        """True when any mutable field differs from ``other``."""
        return self.mutable_fields() != other.mutable_fields()


class Category(BaseModel):
    """
    A classification bucket for transactions.

    Names are unique per type (case-insensitive); the Taxonomy Store
    enforces this when categories are added or renamed.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(default_factory=generate_id)
    name: str = Field(..., min_length=1, max_length=100)
    type: TransactionType
    color: str = Field(
        default="#6B7280",
        max_length=32,
        description="Display hint, opaque to the core"
    )

    @property
    def key(self) -> tuple[str, TransactionType]:
        """Lookup key used for (name, type) uniqueness."""
        return category_key(self.name, self.type)


def category_key(name: str, type_: TransactionType) -> tuple[str, TransactionType]:
    return name.strip().casefold(), TransactionType(type_)


class Client(BaseModel):
    """A client a transaction may be attributed to."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(default_factory=generate_id)
    name: str = Field(..., min_length=1, max_length=200)
    created_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)


# =============================================================================
# DERIVED VIEWS (never persisted)
# =============================================================================

class Summary(BaseModel):
    """Income, expense and balance over a transaction snapshot."""
    model_config = ConfigDict(frozen=True)

    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")

    @computed_field
    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expense


class KeyTotal(BaseModel):
    """A total for one key of a dimension (category name, month bucket)."""
    model_config = ConfigDict(frozen=True)

    key: str
    total: Decimal


class MonthlyTotal(BaseModel):
    """Income and expense for one ``YYYY-MM`` bucket."""
    model_config = ConfigDict(frozen=True)

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")


# =============================================================================
# IDENTITY & ENTITLEMENT
# =============================================================================

class Identity(BaseModel):
    """An authenticated (or synthetic demo) user."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    email: Optional[str] = None
    name: Optional[str] = None
    is_demo: bool = False


class Profile(BaseModel):
    """
    Subscription profile row, keyed by identity id.

    A missing profile is treated as non-premium.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str
    is_premium: bool = False
    subscription_status: Optional[str] = None
    cancel_at_period_end: bool = False


class EntitlementState(BaseModel):
    """The (is_premium, transaction_count) fact pair."""
    model_config = ConfigDict(frozen=True)

    is_premium: bool
    transaction_count: int = Field(ge=0)
    limit: int = Field(ge=0)

    @computed_field
    @property
    def has_reached_limit(self) -> bool:
        return not self.is_premium and self.transaction_count >= self.limit

    @property
    def remaining(self) -> Optional[int]:
        """Transactions left before the ceiling; None when unlimited."""
        if self.is_premium:
            return None
        return max(self.limit - self.transaction_count, 0)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'too_short', 'future_date')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of validating a transaction before it is sent anywhere."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
