"""
Single attempt execution.

An attempt is one full request/response cycle: copy the buffered request,
send it through the Transport, hand the response to the caller's
classifier and release the response body whatever happens.

Classifier contract:
    A classifier receives the ``httpx.Response`` (body not yet read; call
    ``await response.aread()`` if you need it) and returns:

    - ``None`` to accept the response (attempt succeeds),
    - a reason (``str`` or an exception) to request another attempt.

    Raising is a retry too: ``ClassificationRetry`` or any other exception
    (a failed ``aread()`` for instance) becomes a retry reason, so only
    hardy errors ever reach the caller.

    The core never inspects status codes. Treat 4xx responses as final:
    accept them and record the error yourself, except codes you explicitly
    consider retry-worthy such as 429. Reserve retries for 5xx and other
    transient conditions.
"""

import inspect
import typing
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Union

import httpx
import structlog

from hardy.exceptions import ClassificationRetry, ConfigurationError, TransportError
from hardy.monitoring.metrics import attempts_total
from hardy.retry.observer import AttemptEvent, AttemptObserver, notify
from hardy.transport import Transport

logger = structlog.get_logger(__name__)

ClassifierVerdict = Union[None, str, BaseException]
Classifier = Callable[[httpx.Response], Union[ClassifierVerdict, Awaitable[ClassifierVerdict]]]

# Recomputed by httpx from the buffered body on every copy
_FRAMING_HEADERS = ("content-length", "transfer-encoding")


@dataclass(frozen=True)
class Success:
    """The classifier accepted the response."""

    status_code: int


@dataclass(frozen=True)
class Retryable:
    """The classifier asked for another attempt."""

    reason: str
    error: BaseException | None = None


@dataclass(frozen=True)
class Fatal:
    """The attempt failed in a way that must not be retried."""

    error: BaseException


AttemptOutcome = Union[Success, Retryable, Fatal]


@dataclass(frozen=True)
class BufferedRequest:
    """
    Replayable snapshot of an ``httpx.Request``.

    The body is read once, up front; every attempt gets an independent
    ``httpx.Request`` built from this snapshot, so the caller's request is
    never consumed or mutated. Non-replayable streaming bodies are therefore
    read fully into memory before the first attempt.
    """

    method: str
    url: httpx.URL
    headers: httpx.Headers
    content: bytes
    extensions: dict[str, Any] = field(default_factory=dict)

    @classmethod
    async def from_request(cls, request: httpx.Request) -> "BufferedRequest":
        try:
            content = request.content
        except httpx.RequestNotRead:
            try:
                if isinstance(request.stream, typing.AsyncIterable):
                    content = await request.aread()
                else:
                    content = request.read()
            except Exception as e:
                raise ConfigurationError(
                    "request body could not be buffered for retries",
                    details={"error_type": type(e).__name__, "error": str(e)},
                ) from e

        return cls(
            method=request.method,
            url=request.url,
            headers=request.headers.copy(),
            content=content,
            extensions=dict(request.extensions),
        )

    def build(self, user_agent: str | None = None) -> httpx.Request:
        """Fresh request for one attempt, with the identification header if given."""
        headers = self.headers.copy()
        content = None
        if self.content:
            for name in _FRAMING_HEADERS:
                headers.pop(name, None)
            content = self.content
        if user_agent:
            headers["User-Agent"] = user_agent
        return httpx.Request(
            self.method,
            self.url,
            headers=headers,
            content=content,
            extensions=dict(self.extensions),
        )


def _verdict_to_outcome(verdict: ClassifierVerdict, status_code: int) -> AttemptOutcome:
    if verdict is None:
        return Success(status_code=status_code)
    if isinstance(verdict, BaseException):
        return Retryable(reason=str(verdict) or type(verdict).__name__, error=verdict)
    return Retryable(reason=str(verdict))


class AttemptRunner:
    """
    Executes exactly one request/response cycle and reports its outcome.

    Attributes:
        transport: Transport performing the network call
        observer: Optional debug observer
        user_agent: Identification header value, or None to send none
    """

    def __init__(
        self,
        transport: Transport,
        observer: AttemptObserver | None = None,
        user_agent: str | None = None,
    ):
        self.transport = transport
        self.observer = observer
        self.user_agent = user_agent

    async def run(
        self, request: BufferedRequest, classifier: Classifier, attempt: int = 1
    ) -> AttemptOutcome:
        outcome = await self._run(request, classifier, attempt)
        attempts_total.labels(outcome=type(outcome).__name__.lower()).inc()
        return outcome

    async def _run(
        self, request: BufferedRequest, classifier: Classifier, attempt: int
    ) -> AttemptOutcome:
        attempt_request = request.build(self.user_agent)
        notify(self.observer, AttemptEvent("request", attempt, request=attempt_request))

        try:
            response = await self.transport.perform(attempt_request)
        except TransportError as e:
            notify(self.observer, AttemptEvent("transport_error", attempt, request=attempt_request, error=e))
            logger.warning("Attempt failed at transport level", attempt=attempt, error=e.message)
            return Fatal(error=e)

        notify(self.observer, AttemptEvent("response", attempt, request=attempt_request, response=response))

        try:
            verdict = classifier(response)
            if inspect.isawaitable(verdict):
                verdict = await verdict
        except ClassificationRetry as e:
            return Retryable(reason=e.message, error=e)
        except Exception as e:
            logger.info(
                "Classifier raised, treating as retry",
                attempt=attempt,
                status_code=response.status_code,
                error_type=type(e).__name__,
            )
            return Retryable(reason=str(e) or type(e).__name__, error=e)
        finally:
            await self._release(response, attempt)

        return _verdict_to_outcome(verdict, response.status_code)

    async def _release(self, response: httpx.Response, attempt: int) -> None:
        try:
            await response.aclose()
        except Exception as e:
            logger.debug("Failed to release response body", attempt=attempt, error=str(e))
            notify(self.observer, AttemptEvent("release_failed", attempt, response=response, error=e))
