"""
Entitlement Gate

Decides whether a new transaction may be added, and whether premium-only
features may be used.

The gate holds no state of its own. Every call reads the premium flag from
the live SessionContext and takes the transaction count from the caller at
the moment of the call, so an upgrade (or a delete) is reflected on the
very next attempt.
"""

from typing import Optional

from cashledger.config import FREE_TIER_LIMIT, LedgerSettings, get_settings
from cashledger.errors import LimitReachedError, PremiumFeatureRequiredError
from cashledger.identity.context import SessionContext
from cashledger.models.ledger import EntitlementState


def can_add_transaction(
    is_premium: bool,
    transaction_count: int,
    limit: int = FREE_TIER_LIMIT,
) -> bool:
    return is_premium or transaction_count < limit


def has_reached_limit(
    is_premium: bool,
    transaction_count: int,
    limit: int = FREE_TIER_LIMIT,
) -> bool:
    return not is_premium and transaction_count >= limit


class EntitlementGate:
    """Policy check consulted before any mutation that grows the ledger."""

    def __init__(
        self,
        context: SessionContext,
        settings: Optional[LedgerSettings] = None,
    ):
        self._context = context
        self._settings = settings or get_settings().ledger

    @property
    def limit(self) -> int:
        return self._settings.free_tier_limit

    def state(self, transaction_count: int) -> EntitlementState:
        return EntitlementState(
            is_premium=self._context.is_premium,
            transaction_count=transaction_count,
            limit=self.limit,
        )

    def is_enforced(self) -> bool:
        """Demo mode has no persistence and no ceiling."""
        return not self._context.is_demo

    def allows_add(self, transaction_count: int) -> bool:
        if not self.is_enforced():
            return True
        return can_add_transaction(self._context.is_premium, transaction_count, self.limit)

    def check_can_add(self, transaction_count: int) -> None:
        """
        Raises:
            LimitReachedError: If a free-tier identity is at the ceiling
        """
        if not self.allows_add(transaction_count):
            raise LimitReachedError(transaction_count, self.limit)

    def require_premium(self, feature: str) -> None:
        """
        Raises:
            PremiumFeatureRequiredError: If the identity is not premium
        """
        if not self._context.is_premium:
            raise PremiumFeatureRequiredError(feature)
