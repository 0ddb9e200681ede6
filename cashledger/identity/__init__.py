"""Identity, connectivity mode and entitlement flag."""

from cashledger.identity.context import SessionContext
from cashledger.identity.provider import (
    ConnectivityProbe,
    IdentityProvider,
    create_demo_identity,
)

__all__ = [
    "ConnectivityProbe",
    "IdentityProvider",
    "SessionContext",
    "create_demo_identity",
]
