"""
Audit Models for Cash Ledger

Every ledger and taxonomy mutation, every entitlement rejection and every
mode switch is logged for audit purposes. This provides:
1. Traceability of who changed what, and in which mode
2. Debugging information when a remote call fails
3. Evidence for limit enforcement disputes

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger
    LEDGER_LOADED = "ledger_loaded"
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_UPDATE_SKIPPED = "transaction_update_skipped"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTION_REJECTED = "transaction_rejected"
    LIMIT_REACHED = "limit_reached"
    REMOTE_FAILURE = "remote_failure"

    # Taxonomy
    CATEGORY_ADDED = "category_added"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"
    CLIENT_ADDED = "client_added"
    CLIENT_DELETED = "client_deleted"

    # Identity / entitlement
    CONNECTIVITY_RESOLVED = "connectivity_resolved"
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"
    DEMO_MODE_ENTERED = "demo_mode_entered"
    ENTITLEMENT_CHANGED = "entitlement_changed"

    # Premium features
    EXPORT_GENERATED = "export_generated"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Who and what
    user_id: Optional[str] = Field(
        default=None,
        description="Identity the event belongs to (None before sign-in)"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'category', 'session')"
    )
    entity_id: Optional[str] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, user_id, entity_type,
         entity_id, correlation_id, description, details_json,
         error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(user_id, transaction)
        event = AuditEventBuilder.limit_reached(user_id, 50, 50)
    """

    @staticmethod
    def ledger_loaded(user_id: str, count: int, is_demo: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            user_id=user_id,
            entity_type="ledger",
            description=f"Ledger loaded with {count} transactions",
            details={"count": count, "is_demo": is_demo},
        )

    @staticmethod
    def transaction_added(
        user_id: str,
        transaction_id: str,
        amount: str,
        type_: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction added: {type_} {amount}",
            details={"amount": amount, "type": type_},
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(
        user_id: str,
        transaction_id: str,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction updated: {', '.join(changed_fields)}",
            details={"changed_fields": changed_fields},
            is_user_action=True,
        )

    @staticmethod
    def transaction_update_skipped(user_id: str, transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATE_SKIPPED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Update skipped: no field changed",
        )

    @staticmethod
    def transaction_deleted(
        user_id: str,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def transaction_rejected(
        user_id: Optional[str],
        reason: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="transaction",
            description=f"Transaction rejected: {reason}",
            details={"issues": issues},
        )

    @staticmethod
    def limit_reached(user_id: str, count: int, limit: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LIMIT_REACHED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="ledger",
            description=f"Free tier limit reached ({count}/{limit})",
            details={"count": count, "limit": limit},
        )

    @staticmethod
    def remote_failure(
        user_id: Optional[str],
        operation: str,
        error_message: str,
        retryable: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_FAILURE,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_type="ledger",
            description=f"Remote {operation} failed",
            details={"operation": operation, "retryable": retryable},
            error_message=error_message,
        )

    @staticmethod
    def taxonomy_changed(
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        name: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} {event_type.value.split('_')[-1]}: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def connectivity_resolved(mode: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONNECTIVITY_RESOLVED,
            entity_type="session",
            description=f"Connectivity resolved to {mode}",
            details={"mode": mode, "reason": reason},
        )

    @staticmethod
    def signed_in(user_id: str, is_premium: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_IN,
            user_id=user_id,
            entity_type="session",
            description="Identity signed in",
            details={"is_premium": is_premium},
            is_user_action=True,
        )

    @staticmethod
    def signed_out(user_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_OUT,
            user_id=user_id,
            entity_type="session",
            description="Session torn down",
            is_user_action=True,
        )

    @staticmethod
    def demo_mode_entered(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEMO_MODE_ENTERED,
            user_id=user_id,
            entity_type="session",
            description="Demo mode entered with synthetic data",
            is_user_action=True,
        )

    @staticmethod
    def entitlement_changed(user_id: str, is_premium: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITLEMENT_CHANGED,
            user_id=user_id,
            entity_type="session",
            description=f"Entitlement changed: premium={is_premium}",
            details={"is_premium": is_premium},
        )

    @staticmethod
    def export_generated(user_id: str, export_format: str, count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_GENERATED,
            user_id=user_id,
            entity_type="export",
            description=f"{export_format} export generated with {count} transactions",
            details={"format": export_format, "count": count},
            is_user_action=True,
        )
