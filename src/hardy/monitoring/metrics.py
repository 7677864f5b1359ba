"""Prometheus metrics for the hardy retry client.

Host applications expose these through their own /metrics endpoint.
Useful alert signals:
- hardy_executions_total{result="exhausted"} (dependency consistently failing)
- hardy_attempts_total{outcome="retryable"} (high retry rate, struggling dependency)
- hardy_fallback_invocations_total (callers are being served fallback answers)
"""

from prometheus_client import Counter, Histogram

# === Attempt Metrics ===

attempts_total = Counter(
    "hardy_attempts_total",
    "Total attempts by outcome",
    ["outcome"],
)
"""
Attempts counter by outcome.

Labels:
- outcome: success, retryable, fatal
"""

# === Execution Metrics ===

executions_total = Counter(
    "hardy_executions_total",
    "Total try_request executions by final result",
    ["result"],
)
"""
Executions counter by final result.

Labels:
- result: succeeded, fallback, exhausted, fatal, cancelled, fallback_failed, invalid
"""

fallback_invocations_total = Counter(
    "hardy_fallback_invocations_total",
    "Total fallback invocations by trigger",
    ["trigger"],
)

# === Backoff Metrics ===

backoff_seconds = Histogram(
    "hardy_backoff_seconds",
    "Wait intervals applied between attempts",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)
