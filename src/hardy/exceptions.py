"""
Error taxonomy for the hardy retry client.

Every error surfaced by ``HardyClient.try_request`` is one of the classes
below. Each carries a well-known ``error_code`` and a ``details`` dict with
enough context (attempt count, last classifier reason) to diagnose a failure
without leaking transport internals.
"""

import json
from typing import Any


class HardyError(Exception):
    """
    Base exception for all hardy errors.

    Allows catching any retry-client failure with a single except clause.
    """

    error_code = "unexpected_error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Structured representation, suitable for logs and API payloads."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class ConfigurationError(HardyError):
    """
    Raised when the client or a call is misconfigured.

    Examples: no HTTP client given, no classifier given, an observer that
    does not implement ``on_event``, a request body that cannot be buffered.
    Never retried.
    """

    error_code = "invalid_configuration_error"


class TransportError(HardyError):
    """
    Raised when an attempt could not complete at the network layer.

    Connection refused, DNS failure, TLS failure, timeouts. These usually
    point at a local or configuration problem, so they are fatal and
    never retried.
    """

    error_code = "transport_error"


class ClassificationRetry(HardyError):
    """
    Raised (or returned) by a classifier to request another attempt.

    Fully internal to the orchestrator: it is converted into a retry and
    only resurfaces as ``RetriesExhausted.last_reason``.
    """

    error_code = "classification_retry"


class RetriesExhausted(HardyError):
    """
    Raised when the attempt bound was reached and no fallback was given.

    Attributes:
        attempts: Number of attempts performed
        last_reason: Reason given by the classifier on the last attempt
    """

    error_code = "max_retries_reached_error"

    def __init__(self, attempts: int, last_reason: str | None = None):
        self.attempts = attempts
        self.last_reason = last_reason
        super().__init__(
            f"max retries reached after {attempts} attempts",
            details={"attempts": attempts, "last_reason": last_reason},
        )


class Cancelled(HardyError):
    """Raised when the cancellation token signals before a final outcome."""

    error_code = "cancelled_error"

    def __init__(self, message: str = "request cancelled", details: dict | None = None):
        super().__init__(message, details)


class DeadlineExceeded(Cancelled):
    """Cancellation caused by a token deadline."""

    error_code = "deadline_exceeded_error"

    def __init__(self, message: str = "deadline exceeded", details: dict | None = None):
        super().__init__(message, details)


class FallbackError(HardyError):
    """
    Raised when the fallback itself failed.

    Fallbacks may raise this directly; any non-hardy exception raised by a
    fallback is wrapped in it, with the original kept as ``__cause__``.
    """

    error_code = "fallback_error"
