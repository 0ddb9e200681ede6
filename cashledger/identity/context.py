"""
Session Context

The single object that carries identity, connectivity mode and the premium
flag. It is injected into the Ledger Store and the Entitlement Gate rather
than read from process globals, so each test (and each mode switch) can
work with its own explicit lifecycle:

    context.initialize(identity, mode, is_premium)  ->  context.teardown()

Every initialize/teardown bumps ``generation``. A ledger operation that
started under one generation and finishes under another belongs to a
session that no longer exists; its result must not be applied.
"""

from typing import Callable, Optional

import structlog

from cashledger.errors import UnauthenticatedError
from cashledger.models.ledger import ConnectivityMode, Identity


logger = structlog.get_logger(__name__)

SessionListener = Callable[["SessionContext"], None]


class SessionContext:
    """Identity, connectivity mode and entitlement for the current session."""

    def __init__(self):
        self._mode = ConnectivityMode.CHECKING
        self._identity: Optional[Identity] = None
        self._is_premium = False
        self._generation = 0
        self._listeners: list[SessionListener] = []

    # -------------------------------------------------------------------------
    # Read-only facts
    # -------------------------------------------------------------------------

    @property
    def mode(self) -> ConnectivityMode:
        return self._mode

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def is_premium(self) -> bool:
        return self._is_premium

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    @property
    def is_demo(self) -> bool:
        return self._identity is not None and self._identity.is_demo

    def require_identity(self, operation: str) -> Identity:
        """
        Raises:
            UnauthenticatedError: If no identity is present
        """
        if self._identity is None:
            raise UnauthenticatedError(operation)
        return self._identity

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def set_mode(self, mode: ConnectivityMode) -> None:
        """
        Record the connectivity probe result.

        Ignored while a session is active: a live session keeps the mode it
        was initialized with until it is torn down.
        """
        if self._identity is not None:
            return
        self._mode = ConnectivityMode(mode)

    def initialize(
        self,
        identity: Identity,
        mode: ConnectivityMode,
        is_premium: bool = False,
    ) -> None:
        """
        Start a session, replacing any previous one.

        Demo identities only exist offline; real identities only online.
        """
        mode = ConnectivityMode(mode)
        if identity.is_demo and mode != ConnectivityMode.OFFLINE:
            raise ValueError("Demo identities can only be used in offline mode")
        if not identity.is_demo and mode != ConnectivityMode.ONLINE:
            raise ValueError("Real identities can only be used in online mode")

        self._identity = identity
        self._mode = mode
        self._is_premium = bool(is_premium)
        self._generation += 1

        logger.info(
            "session_initialized",
            user_id=identity.id,
            mode=mode.value,
            is_demo=identity.is_demo,
            is_premium=self._is_premium,
            generation=self._generation,
        )
        self._notify()

    def teardown(self) -> None:
        """End the current session. Connectivity mode is kept."""
        previous = self._identity
        self._identity = None
        self._is_premium = False
        self._generation += 1

        logger.info(
            "session_torn_down",
            user_id=previous.id if previous else None,
            generation=self._generation,
        )
        self._notify()

    def set_premium(self, is_premium: bool) -> bool:
        """
        Update the entitlement flag for the current session.

        Returns True if the flag changed.
        """
        self.require_identity("change entitlement")
        changed = self._is_premium != bool(is_premium)
        self._is_premium = bool(is_premium)
        return changed

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Call ``listener(context)`` after every initialize/teardown.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
