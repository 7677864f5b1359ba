"""
Public retry client wrapping an ``httpx.AsyncClient``.

Usage:
    >>> async with HardyClient(httpx.AsyncClient(), max_retries=4) as client:
    ...     request = client.http_client.build_request("GET", "https://example.com/")
    ...     result = await client.try_request(request, classifier, fallback)

Each ``try_request`` call is independent: it owns its attempt counter,
timer and jitter source. Clients are safe to share between concurrent
callers; configuration is immutable once built (``with_*`` builders return
new clients sharing the same connection pool).
"""

from typing import Any

import httpx
import structlog

from hardy import __version__
from hardy.config import (
    DEFAULT_MAX_INTERVAL_MS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MULTIPLIER,
    DEFAULT_WAIT_INTERVAL_MS,
    Settings,
)
from hardy.exceptions import ConfigurationError
from hardy.logging_config import configure_logging
from hardy.retry.backoff import BackoffParameters
from hardy.retry.cancellation import CancellationToken
from hardy.retry.observer import AttemptObserver, StructlogDebugObserver
from hardy.retry.orchestrator import ExecutionResult, Fallback, RetryOrchestrator
from hardy.retry.runner import Classifier
from hardy.transport import HTTPXTransport

logger = structlog.get_logger(__name__)

DEFAULT_USER_AGENT = f"hardy/{__version__}"


class HardyClient:
    """
    Resilient wrapper around ``httpx.AsyncClient``.

    Attributes:
        http_client: Wrapped httpx client (the transport)
        params: Backoff configuration shared by all calls
        user_agent: Identification header value, None when disabled
        observer: Debug observer, None when debug is off
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None,
        *,
        wait_interval: float = DEFAULT_WAIT_INTERVAL_MS / 1000,
        max_interval: float = DEFAULT_MAX_INTERVAL_MS / 1000,
        max_retries: int = DEFAULT_MAX_RETRIES,
        multiplier: float = DEFAULT_MULTIPLIER,
        user_agent: str = DEFAULT_USER_AGENT,
        send_user_agent: bool = True,
        debug: bool = False,
        observer: AttemptObserver | None = None,
    ):
        """
        Initialize the client.

        Args:
            http_client: httpx client performing the requests (required)
            wait_interval: Base wait between attempts, in seconds
            max_interval: Cap for a single wait, in seconds (0 = uncapped)
            max_retries: Total attempts per call, first one included
            multiplier: Backoff growth factor; values below 2.0 are ignored
            user_agent: User-Agent header added to every attempt
            send_user_agent: Set False to leave the User-Agent header untouched
            debug: Dump attempts through a structlog debug observer
            observer: Custom attempt observer (implies debug)

        Raises:
            ConfigurationError: Missing http client, invalid observer or
                invalid backoff values
        """
        if http_client is None:
            raise ConfigurationError("no http client was given")
        if observer is not None and not isinstance(observer, AttemptObserver):
            raise ConfigurationError(
                "observer must implement on_event(event)",
                details={"observer_type": type(observer).__name__},
            )
        if debug and observer is None:
            observer = StructlogDebugObserver()

        self.http_client = http_client
        # Multiplier goes through the builder so low values are silently dropped
        self.params = BackoffParameters(
            base_interval=wait_interval,
            max_interval=max_interval,
            max_attempts=max_retries,
        ).with_multiplier(multiplier)
        self.user_agent = user_agent if send_user_agent else None
        self.observer = observer

        self._orchestrator = RetryOrchestrator(
            HTTPXTransport(http_client),
            self.params,
            observer=self.observer,
            user_agent=self.user_agent,
        )

        logger.debug(
            "Initialized hardy client",
            wait_interval=self.params.base_interval,
            max_interval=self.params.max_interval,
            max_retries=self.params.max_attempts,
            multiplier=self.params.multiplier,
            user_agent=self.user_agent,
            debug=self.observer is not None,
        )

    @classmethod
    def from_settings(
        cls, http_client: httpx.AsyncClient | None, settings: Settings | None = None
    ) -> "HardyClient":
        """Build a client from environment-backed settings.

        With ``CONFIGURE_LOGGING`` set, the ``hardy`` loggers are also set up
        from ``LOG_LEVEL`` and ``ENVIRONMENT``.
        """
        if settings is None:
            from hardy.config import settings as default_settings

            settings = default_settings
        if settings.CONFIGURE_LOGGING:
            configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT)
        params = BackoffParameters.from_settings(settings)
        return cls(
            http_client,
            wait_interval=params.base_interval,
            max_interval=params.max_interval,
            max_retries=params.max_attempts,
            multiplier=params.multiplier,
            user_agent=settings.USER_AGENT or DEFAULT_USER_AGENT,
            send_user_agent=settings.SEND_USER_AGENT,
            debug=settings.DEBUG,
        )

    def _derive(self, **overrides: Any) -> "HardyClient":
        options: dict[str, Any] = {
            "wait_interval": self.params.base_interval,
            "max_interval": self.params.max_interval,
            "max_retries": self.params.max_attempts,
            "multiplier": self.params.multiplier,
            "user_agent": self.user_agent or DEFAULT_USER_AGENT,
            "send_user_agent": self.user_agent is not None,
            "observer": self.observer,
        }
        options.update(overrides)
        return HardyClient(self.http_client, **options)

    def with_wait_interval(self, seconds: float) -> "HardyClient":
        """Client using ``seconds`` as base wait between attempts."""
        return self._derive(wait_interval=seconds)

    def with_max_interval(self, seconds: float) -> "HardyClient":
        """Client capping each wait at ``seconds`` (0 = uncapped)."""
        return self._derive(max_interval=seconds)

    def with_max_retries(self, max_retries: int) -> "HardyClient":
        """Client performing at most ``max_retries`` attempts per call."""
        return self._derive(max_retries=max_retries)

    def with_multiplier(self, multiplier: float) -> "HardyClient":
        """Client using ``multiplier``; values below 2.0 keep the current one."""
        return self._derive(multiplier=self.params.with_multiplier(multiplier).multiplier)

    def with_user_agent(self, user_agent: str) -> "HardyClient":
        return self._derive(user_agent=user_agent, send_user_agent=True)

    def without_user_agent(self) -> "HardyClient":
        return self._derive(send_user_agent=False)

    def with_observer(self, observer: AttemptObserver | None) -> "HardyClient":
        """Client reporting attempts to ``observer`` (None disables debug)."""
        return self._derive(observer=observer)

    async def try_request(
        self,
        request: httpx.Request,
        classifier: Classifier | None,
        fallback: Fallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ExecutionResult:
        """
        Perform ``request`` as per configuration.

        Raises ConfigurationError when no classifier is given, Cancelled when
        ``cancel_token`` signals first, RetriesExhausted when the bound is
        reached without fallback, or whatever the fallback raises.
        See ``RetryOrchestrator.execute``.
        """
        return await self._orchestrator.execute(request, classifier, fallback, cancel_token)

    async def aclose(self) -> None:
        """Close the wrapped httpx client."""
        if not self.http_client.is_closed:
            await self.http_client.aclose()
            logger.debug("Closed hardy client")

    async def __aenter__(self) -> "HardyClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"max_retries={self.params.max_attempts}, "
            f"wait_interval={self.params.base_interval}s, "
            f"max_interval={self.params.max_interval}s, "
            f"multiplier={self.params.multiplier})"
        )
