"""
Retry core: backoff, single attempts, orchestration and cancellation.

Main Components:
    - RetryOrchestrator: State machine driving sequential attempts
    - AttemptRunner: One request/response cycle plus classification
    - IntervalCalculator: Exponential backoff with jitter and cap
    - CancellationGate: Races the attempt loop against a CancellationToken

Usage:
    >>> from hardy.retry import BackoffParameters, RetryOrchestrator
    >>> orchestrator = RetryOrchestrator(transport, BackoffParameters())
    >>> result = await orchestrator.execute(request, classifier, fallback, token)
"""

from hardy.retry.backoff import BackoffParameters, IntervalCalculator
from hardy.retry.cancellation import CancellationGate, CancellationToken
from hardy.retry.observer import AttemptEvent, AttemptObserver, StructlogDebugObserver
from hardy.retry.orchestrator import ExecutionResult, RetryOrchestrator, RetryState
from hardy.retry.runner import (
    AttemptOutcome,
    AttemptRunner,
    BufferedRequest,
    Fatal,
    Retryable,
    Success,
)

__all__ = [
    "BackoffParameters",
    "IntervalCalculator",
    "CancellationGate",
    "CancellationToken",
    "AttemptEvent",
    "AttemptObserver",
    "StructlogDebugObserver",
    "ExecutionResult",
    "RetryOrchestrator",
    "RetryState",
    "AttemptOutcome",
    "AttemptRunner",
    "BufferedRequest",
    "Success",
    "Retryable",
    "Fatal",
]
