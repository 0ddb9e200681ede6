"""
Audit Logger

DESIGN DECISION: Every ledger mutation, rejection and mode switch is logged.
This provides:
1. Complete traceability
2. Debugging capability when remote calls fail
3. A record of entitlement decisions

The audit logger:
- Is async so it can persist to remote storage
- Gracefully handles failures (a failed audit write never fails the
  ledger operation that triggered it)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from cashledger.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from cashledger.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage backend, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("cashledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_ledger_loaded(self, user_id: str, count: int, is_demo: bool) -> None:
        await self.log(AuditEventBuilder.ledger_loaded(user_id, count, is_demo))

    async def log_transaction_added(
        self,
        user_id: str,
        transaction_id: str,
        amount: str,
        type_: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a confirmed insert."""
        await self.log(AuditEventBuilder.transaction_added(
            user_id=user_id,
            transaction_id=transaction_id,
            amount=amount,
            type_=type_,
            correlation_id=correlation_id,
        ))

    async def log_transaction_updated(
        self,
        user_id: str,
        transaction_id: str,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a confirmed update."""
        await self.log(AuditEventBuilder.transaction_updated(
            user_id=user_id,
            transaction_id=transaction_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        ))

    async def log_transaction_update_skipped(self, user_id: str, transaction_id: str) -> None:
        await self.log(AuditEventBuilder.transaction_update_skipped(user_id, transaction_id))

    async def log_transaction_deleted(
        self,
        user_id: str,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a confirmed delete."""
        await self.log(AuditEventBuilder.transaction_deleted(
            user_id=user_id,
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        ))

    async def log_transaction_rejected(
        self,
        user_id: Optional[str],
        reason: str,
        issues: Optional[list[dict]] = None,
    ) -> None:
        """Log a validation or category rejection."""
        await self.log(AuditEventBuilder.transaction_rejected(
            user_id=user_id,
            reason=reason,
            issues=issues or [],
        ))

    async def log_limit_reached(self, user_id: str, count: int, limit: int) -> None:
        await self.log(AuditEventBuilder.limit_reached(user_id, count, limit))

    async def log_remote_failure(
        self,
        user_id: Optional[str],
        operation: str,
        error_message: str,
        retryable: bool,
    ) -> None:
        """Log a failure raised by the persistence collaborator."""
        await self.log(AuditEventBuilder.remote_failure(
            user_id=user_id,
            operation=operation,
            error_message=error_message,
            retryable=retryable,
        ))

    async def log_taxonomy_changed(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        name: str,
    ) -> None:
        await self.log(AuditEventBuilder.taxonomy_changed(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            name=name,
        ))

    async def log_connectivity_resolved(self, mode: str, reason: str) -> None:
        await self.log(AuditEventBuilder.connectivity_resolved(mode, reason))

    async def log_signed_in(self, user_id: str, is_premium: bool) -> None:
        await self.log(AuditEventBuilder.signed_in(user_id, is_premium))

    async def log_signed_out(self, user_id: Optional[str]) -> None:
        await self.log(AuditEventBuilder.signed_out(user_id))

    async def log_demo_mode_entered(self, user_id: str) -> None:
        await self.log(AuditEventBuilder.demo_mode_entered(user_id))

    async def log_entitlement_changed(self, user_id: str, is_premium: bool) -> None:
        await self.log(AuditEventBuilder.entitlement_changed(user_id, is_premium))

    async def log_export_generated(self, user_id: str, export_format: str, count: int) -> None:
        await self.log(AuditEventBuilder.export_generated(user_id, export_format, count))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., saving a transaction).
    """
    return uuid4()
