"""Metrics instrumentation for the hardy retry client."""

from hardy.monitoring.metrics import (
    attempts_total,
    backoff_seconds,
    executions_total,
    fallback_invocations_total,
)

__all__ = [
    "attempts_total",
    "executions_total",
    "fallback_invocations_total",
    "backoff_seconds",
]
