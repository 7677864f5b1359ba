"""
Cancellation token and the gate racing a retry loop against it.

A timeout is just a token that signals itself at a deadline, so the gate
only ever waits on two things: the loop's terminal outcome and the token.
"""

import asyncio
from typing import Any, Coroutine, TypeVar

import structlog

from hardy.exceptions import Cancelled, DeadlineExceeded

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class CancellationToken:
    """
    Externally owned cancellation signal.

    The retry core only observes a token; whoever created it decides when
    it fires. Must be created and signaled from the event loop thread.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Cancelled | None = None
        self._deadline_handle: asyncio.TimerHandle | None = None

    @classmethod
    def with_timeout(cls, seconds: float) -> "CancellationToken":
        """Token that signals ``DeadlineExceeded`` after ``seconds``.

        Must be called from inside a running event loop.
        """
        token = cls()
        loop = asyncio.get_running_loop()
        token._deadline_handle = loop.call_later(
            seconds,
            token.cancel,
            DeadlineExceeded(details={"timeout_seconds": seconds}),
        )
        return token

    def cancel(self, reason: str | Cancelled | None = None) -> None:
        """Signal the token. Only the first call sets the reason."""
        if self._event.is_set():
            return
        if reason is None:
            reason = Cancelled()
        elif isinstance(reason, str):
            reason = Cancelled(reason)
        self._reason = reason
        if self._deadline_handle is not None:
            self._deadline_handle.cancel()
        self._event.set()

    def is_signaled(self) -> bool:
        return self._event.is_set()

    def reason(self) -> Cancelled | None:
        """The cancellation reason once signaled, otherwise None."""
        return self._reason

    async def wait(self) -> Cancelled:
        """Block until the token signals and return its reason."""
        await self._event.wait()
        # cancel() stores the reason before setting the event
        return self._reason or Cancelled()

    def __repr__(self) -> str:
        state = "signaled" if self.is_signaled() else "pending"
        return f"{self.__class__.__name__}({state})"


class CancellationGate:
    """
    First-completed-wins race between a coroutine and a token.

    If the token wins, the coroutine's task is cancelled (which interrupts
    both an in-flight transport call and a backoff sleep), awaited until it
    unwinds, and the token's reason is raised. Its eventual result is
    discarded.
    """

    def __init__(self, token: CancellationToken | None):
        self.token = token

    async def race(self, coro: Coroutine[Any, Any, T]) -> T:
        if self.token is None:
            return await coro

        if self.token.is_signaled():
            coro.close()
            raise self.token.reason()

        work = asyncio.ensure_future(coro)
        waiter = asyncio.ensure_future(self.token.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            # Caller's task was cancelled: tear down both sides
            work.cancel()
            waiter.cancel()
            raise

        # Cancellation is authoritative when both sides finished together
        if self.token.is_signaled():
            reason = self.token.reason()
            logger.info(
                "Request cancelled",
                reason=reason.message,
                error_code=reason.error_code,
                in_flight=not work.done(),
            )
            await _cancel_and_wait(work)
            raise reason

        await _cancel_and_wait(waiter)
        return work.result()


async def _cancel_and_wait(task: "asyncio.Future[Any]") -> None:
    if task.done():
        if not task.cancelled():
            # Retrieve to avoid "exception was never retrieved" noise
            task.exception()
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        # Only swallow the cancellation we requested
        current = asyncio.current_task()
        if current is not None and current.cancelling():
            raise
    except Exception as e:
        logger.debug("Discarded result of cancelled work", error=str(e))
