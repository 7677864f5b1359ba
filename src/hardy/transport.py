"""
Transport capability: performs exactly one network call.

The retry core never talks to httpx directly; it goes through a
``Transport``. ``HTTPXTransport`` adapts an ``httpx.AsyncClient`` and maps
network-layer failures (connection refused, DNS, TLS, timeouts) to
``TransportError``. HTTP error statuses are NOT errors here: they are
responses, and judging them is the classifier's job.
"""

from typing import Protocol, runtime_checkable

import httpx
import structlog

from hardy.exceptions import TransportError

logger = structlog.get_logger(__name__)


@runtime_checkable
class Transport(Protocol):
    """Performs one request. Raises TransportError when no response was obtained."""

    async def perform(self, request: httpx.Request) -> httpx.Response: ...


class HTTPXTransport:
    """
    Transport over an ``httpx.AsyncClient``.

    Responses are returned in streaming mode: the body is read only if the
    classifier asks for it, and the caller of ``perform`` owns closing it.
    Redirect and auth settings of the wrapped client apply as configured.
    """

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def perform(self, request: httpx.Request) -> httpx.Response:
        try:
            return await self.client.send(request, stream=True)
        except httpx.RequestError as e:
            logger.warning(
                "Transport failure",
                method=request.method,
                url=str(request.url),
                error_type=type(e).__name__,
                error=str(e),
            )
            raise TransportError(
                f"{type(e).__name__}: {e}",
                details={"error_type": type(e).__name__, "method": request.method},
            ) from e

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(client={self.client!r})"
