"""
Data Models Package

This package contains all Pydantic models used in the Cash Ledger core.
All data flowing through the system must conform to these schemas.
"""

from cashledger.models.ledger import (
    MUTABLE_TRANSACTION_FIELDS,
    Category,
    Client,
    ConnectivityMode,
    EntitlementState,
    Identity,
    KeyTotal,
    MonthlyTotal,
    Profile,
    Summary,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    category_key,
    generate_id,
)
from cashledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "MUTABLE_TRANSACTION_FIELDS",
    "Category",
    "Client",
    "ConnectivityMode",
    "EntitlementState",
    "Identity",
    "KeyTotal",
    "MonthlyTotal",
    "Profile",
    "Summary",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "category_key",
    "generate_id",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
