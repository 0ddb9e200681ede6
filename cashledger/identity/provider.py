"""
Identity & Entitlement Provider

Resolves connectivity, signs identities in and out, enters demo mode and
keeps the premium flag current. It writes only to the SessionContext;
everything else reads the context.

CONNECTIVITY:
    checking ──probe ok──────────▶ online
        │
        └──probe failed/timed out─▶ offline

The probe always runs under a timeout, so ``checking`` never lasts longer
than ``connectivity_probe_timeout_seconds``.
"""

import asyncio
from typing import Awaitable, Callable, Optional

import structlog

from cashledger.audit import AuditLogger
from cashledger.config import LedgerSettings, get_settings
from cashledger.errors import OfflineError
from cashledger.identity.context import SessionContext
from cashledger.models.ledger import ConnectivityMode, Identity, generate_id
from cashledger.services.storage import ProfileStorageInterface, RecordNotFoundError


logger = structlog.get_logger(__name__)

ConnectivityProbe = Callable[[], Awaitable[bool]]

DEMO_USER_ID_PREFIX = "demo-"


def create_demo_identity() -> Identity:
    """A fresh synthetic identity; ids never collide with real ones."""
    return Identity(
        id=f"{DEMO_USER_ID_PREFIX}{generate_id()}",
        email="demo@hkmcash.com",
        name="Demo User",
        is_demo=True,
    )


class IdentityProvider:
    """
    Owns the transitions of the SessionContext.

    Args:
        context: The session context to drive
        profile_storage: Subscription profile lookup; None means no
            remote is configured and nobody is premium
        probe: Async callable returning True when the remote is reachable;
            None means offline
    """

    def __init__(
        self,
        context: SessionContext,
        profile_storage: Optional[ProfileStorageInterface] = None,
        probe: Optional[ConnectivityProbe] = None,
        settings: Optional[LedgerSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._context = context
        self._profile_storage = profile_storage
        self._probe = probe
        self._settings = settings or get_settings().ledger
        self._audit_logger = audit_logger
        self._connectivity = ConnectivityMode.CHECKING

    @property
    def context(self) -> SessionContext:
        return self._context

    @property
    def connectivity(self) -> ConnectivityMode:
        """Result of the last probe (CHECKING until the first one finishes)."""
        return self._connectivity

    async def resolve_connectivity(self) -> ConnectivityMode:
        """Probe the remote under a timeout and record online/offline."""
        if self._probe is None:
            mode, reason = ConnectivityMode.OFFLINE, "no remote configured"
        else:
            try:
                reachable = await asyncio.wait_for(
                    self._probe(),
                    timeout=self._settings.connectivity_probe_timeout_seconds,
                )
            except asyncio.TimeoutError:
                mode, reason = ConnectivityMode.OFFLINE, "probe timed out"
            except Exception as e:
                mode, reason = ConnectivityMode.OFFLINE, f"probe failed: {e}"
            else:
                if reachable:
                    mode, reason = ConnectivityMode.ONLINE, "probe succeeded"
                else:
                    mode, reason = ConnectivityMode.OFFLINE, "remote unreachable"

        self._connectivity = mode
        self._context.set_mode(mode)

        if self._audit_logger:
            await self._audit_logger.log_connectivity_resolved(mode.value, reason)
        return mode

    async def _lookup_premium(self, user_id: str) -> bool:
        """Premium flag from the profile; no profile means free tier."""
        if self._profile_storage is None:
            return False
        try:
            profile = await self._profile_storage.get_profile(user_id)
        except RecordNotFoundError:
            profile = None
        if profile is None:
            logger.info("profile_missing_defaulting_to_free", user_id=user_id)
            return False
        return profile.is_premium

    async def sign_in(self, identity: Identity) -> Identity:
        """
        Start an online session for a real identity.

        Replaces any current session, demo or real.

        Raises:
            OfflineError: If connectivity resolved to offline
            StorageError: If the profile lookup failed
        """
        if identity.is_demo:
            raise ValueError("Use enter_demo_mode() for demo identities")

        if self._connectivity != ConnectivityMode.ONLINE:
            await self.resolve_connectivity()
        if self._connectivity != ConnectivityMode.ONLINE:
            raise OfflineError()

        is_premium = await self._lookup_premium(identity.id)
        self._context.initialize(identity, ConnectivityMode.ONLINE, is_premium=is_premium)

        if self._audit_logger:
            await self._audit_logger.log_signed_in(identity.id, is_premium)
        return identity

    async def enter_demo_mode(self) -> Identity:
        """Start an offline session for a new synthetic identity."""
        identity = create_demo_identity()
        self._context.initialize(identity, ConnectivityMode.OFFLINE, is_premium=False)

        if self._audit_logger:
            await self._audit_logger.log_demo_mode_entered(identity.id)
        return identity

    async def refresh_entitlement(self) -> bool:
        """
        Re-read the premium flag (e.g. after checkout completes).

        Returns the current flag. Demo sessions are never premium.
        """
        identity = self._context.require_identity("refresh entitlement")
        if identity.is_demo:
            return False

        is_premium = await self._lookup_premium(identity.id)
        if self._context.set_premium(is_premium) and self._audit_logger:
            await self._audit_logger.log_entitlement_changed(identity.id, is_premium)
        return is_premium

    async def sign_out(self) -> None:
        identity = self._context.identity
        self._context.teardown()
        if self._connectivity != ConnectivityMode.CHECKING:
            self._context.set_mode(self._connectivity)

        if self._audit_logger:
            await self._audit_logger.log_signed_out(identity.id if identity else None)
