"""
Cancellation signal for in-flight network waits.

A ``CancellationToken`` is handed to the transport by the caller. Triggering it
aborts the network wait currently raced against it and surfaces as
``OperationCancelledError``. A timeout is expressed by arming the token with
``cancel_after``.

Cancelling the surrounding asyncio task is a different thing: it raises
``asyncio.CancelledError`` and always propagates unchanged.
"""

import asyncio
from typing import Any, Awaitable, Optional, TypeVar

from social.graze.authclient.messages import REQUEST_CANCELLED

T = TypeVar("T")


class OperationCancelledError(Exception):
    """Raised when a cancellation token fires before an operation completed."""

    def __init__(self, reason: Optional[str] = None) -> None:
        super().__init__(reason or REQUEST_CANCELLED)
        self.reason = reason


class CancellationToken:
    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> None:
        """Trigger the signal. Later calls are no-ops."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def cancel_after(self, seconds: float, reason: Optional[str] = None) -> None:
        """Trigger the signal once ``seconds`` have elapsed on the running loop."""
        if seconds < 0:
            raise ValueError("seconds must not be negative")
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(seconds, self.cancel, reason)

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelledError(self._reason)

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` unless the signal fires first.

        When the signal wins, the awaitable is cancelled and awaited before
        ``OperationCancelledError`` is raised. A result that is already
        available wins over a signal that fired at the same time.

        Raises:
            OperationCancelledError: If the signal fired first
        """
        task: asyncio.Future[T] = asyncio.ensure_future(awaitable)
        if self.cancelled:
            await _abandon(task)
            raise OperationCancelledError(self._reason)

        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            await _abandon(task)
            raise
        finally:
            waiter.cancel()

        if task.done():
            return task.result()

        await _abandon(task)
        raise OperationCancelledError(self._reason)

    def __repr__(self) -> str:
        return f"<CancellationToken cancelled={self.cancelled}>"


async def _abandon(task: "asyncio.Future[Any]") -> None:
    if not task.done():
        task.cancel()
        await asyncio.wait({task})
    if not task.cancelled():
        # retrieve the outcome so it is not reported as never retrieved
        task.exception()
