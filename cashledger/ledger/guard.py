"""
In-flight guard against double submission.

The remote store is not idempotent for inserts: two identical "save"
clicks would create two rows. Each logical operation holds a boolean
flag while it is pending; a second trigger is rejected immediately
instead of being queued.
"""

from types import TracebackType
from typing import Optional

from cashledger.errors import OperationInProgressError


class InFlightGuard:
    """
    Async context manager around one logical operation.

    Usage:
        guard = InFlightGuard("save_transaction")
        async with guard:
            await ledger.add_transaction(draft)
    """

    def __init__(self, operation: str):
        self.operation = operation
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def __aenter__(self) -> "InFlightGuard":
        if self._in_flight:
            raise OperationInProgressError(self.operation)
        self._in_flight = True
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self._in_flight = False
