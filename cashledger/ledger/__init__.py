"""Ledger store, aggregates and entitlement gate."""

from cashledger.ledger.entitlement import (
    EntitlementGate,
    can_add_transaction,
    has_reached_limit,
)
from cashledger.ledger.guard import InFlightGuard
from cashledger.ledger.store import LedgerStore

__all__ = [
    "EntitlementGate",
    "InFlightGuard",
    "LedgerStore",
    "can_add_transaction",
    "has_reached_limit",
]
