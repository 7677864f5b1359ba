"""
hardy: a resilient retry wrapper around httpx.AsyncClient.

Performs a request, lets a caller-supplied classifier decide whether the
outcome is acceptable, and retries with exponential backoff plus jitter up
to a bound, finally invoking an optional fallback.

Read more: https://aws.amazon.com/blogs/architecture/exponential-backoff-and-jitter/
"""

__version__ = "0.1.0"

from hardy.client import DEFAULT_USER_AGENT, HardyClient
from hardy.exceptions import (
    Cancelled,
    ClassificationRetry,
    ConfigurationError,
    DeadlineExceeded,
    FallbackError,
    HardyError,
    RetriesExhausted,
    TransportError,
)
from hardy.retry import (
    BackoffParameters,
    CancellationToken,
    ExecutionResult,
    IntervalCalculator,
    RetryOrchestrator,
)

__all__ = [
    "__version__",
    "DEFAULT_USER_AGENT",
    "HardyClient",
    "BackoffParameters",
    "CancellationToken",
    "ExecutionResult",
    "IntervalCalculator",
    "RetryOrchestrator",
    "HardyError",
    "ConfigurationError",
    "TransportError",
    "ClassificationRetry",
    "RetriesExhausted",
    "Cancelled",
    "DeadlineExceeded",
    "FallbackError",
]
