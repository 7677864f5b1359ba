"""
Attempt observers: the debug-dump channel of the retry client.

Instead of mutating global logging state, the client notifies an injected
observer with attempt metadata. ``StructlogDebugObserver`` dumps requests,
responses and release failures through structlog.
"""

from dataclasses import dataclass
from typing import Literal, Protocol, runtime_checkable

import httpx
import structlog

logger = structlog.get_logger(__name__)

EventKind = Literal["request", "response", "transport_error", "release_failed", "backoff"]


@dataclass(frozen=True)
class AttemptEvent:
    """
    One observable moment of an attempt.

    Attributes:
        kind: What happened (request sent, response received, ...)
        attempt: 1-indexed attempt number
        request: The per-attempt request copy, when relevant
        response: The response, for ``response`` events
        error: The error, for ``transport_error`` and ``release_failed``
        wait_seconds: Upcoming wait, for ``backoff`` events
    """

    kind: EventKind
    attempt: int
    request: httpx.Request | None = None
    response: httpx.Response | None = None
    error: BaseException | None = None
    wait_seconds: float | None = None


@runtime_checkable
class AttemptObserver(Protocol):
    """Receives attempt events. Must not raise."""

    def on_event(self, event: AttemptEvent) -> None: ...


class StructlogDebugObserver:
    """
    Dumps attempt events at debug level.

    Request and response bodies are not dumped: the request body belongs to
    the caller and the response body to the classifier.
    """

    def __init__(self, logger_name: str = "hardy.debug"):
        self._logger = structlog.get_logger(logger_name)

    def on_event(self, event: AttemptEvent) -> None:
        if event.kind == "request" and event.request is not None:
            self._logger.debug(
                "Request dump",
                attempt=event.attempt,
                method=event.request.method,
                url=str(event.request.url),
                headers=dict(event.request.headers),
            )
        elif event.kind == "response" and event.response is not None:
            self._logger.debug(
                "Response dump",
                attempt=event.attempt,
                status_code=event.response.status_code,
                reason_phrase=event.response.reason_phrase,
                headers=dict(event.response.headers),
            )
        elif event.kind == "backoff":
            self._logger.debug(
                "Waiting before next attempt",
                next_attempt=event.attempt,
                wait_seconds=event.wait_seconds,
            )
        else:
            self._logger.debug(
                f"Attempt event: {event.kind}",
                attempt=event.attempt,
                error=str(event.error) if event.error else None,
                error_type=type(event.error).__name__ if event.error else None,
            )


def notify(observer: AttemptObserver | None, event: AttemptEvent) -> None:
    """Deliver ``event``; observer failures are logged, never escalated."""
    if observer is None:
        return
    try:
        observer.on_event(event)
    except Exception as e:
        logger.debug(
            "Attempt observer failed",
            observer=type(observer).__name__,
            kind=event.kind,
            error=str(e),
        )
