"""
Retry orchestrator: the state machine behind ``HardyClient.try_request``.

States:
    Idle -> Attempting -> (Succeeded | Exhausted | Cancelled | Fatal)

- Idle -> Attempting: a classifier was given (otherwise ConfigurationError,
  no attempt made).
- Attempting -> Succeeded: the classifier accepted a response.
- Attempting -> Fatal: the transport failed (TransportError).
- Attempting -> Attempting: the classifier asked for a retry (by returning
  a reason or raising) and the bound was not reached; wait ``interval(attempt_count + 1)`` first.
- Attempting -> Exhausted: ``attempt_count == max_attempts``.
- Any -> Cancelled: the cancellation token signaled.

Fatal and Exhausted both hand over to the fallback when one is given.
Cancelled never does.
"""

import asyncio
import inspect
import random
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Union

import httpx
import structlog

from hardy.exceptions import (
    Cancelled,
    ConfigurationError,
    FallbackError,
    HardyError,
    RetriesExhausted,
)
from hardy.monitoring.metrics import (
    backoff_seconds,
    executions_total,
    fallback_invocations_total,
)
from hardy.retry.backoff import BackoffParameters, IntervalCalculator, JitterSource
from hardy.retry.cancellation import CancellationGate, CancellationToken
from hardy.retry.observer import AttemptEvent, AttemptObserver, notify
from hardy.retry.runner import (
    AttemptOutcome,
    AttemptRunner,
    BufferedRequest,
    Classifier,
    Fatal,
    Retryable,
    Success,
)
from hardy.transport import Transport

logger = structlog.get_logger(__name__)

Fallback = Callable[[], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class ExecutionResult:
    """
    Summary of a successful ``execute`` call.

    Attributes:
        total_attempts: Attempts performed (0 is impossible here)
        final_state: "succeeded" when a response was accepted, "fallback"
            when the fallback provided the final answer
        total_latency_ms: Wall time from call entry to final result
        retry_reasons: Classifier reasons of every retried attempt, in order
        fallback_result: Return value of the fallback, if it ran
    """

    total_attempts: int
    final_state: str
    total_latency_ms: int
    retry_reasons: tuple[str, ...] = ()
    fallback_result: Any = None

    @property
    def used_fallback(self) -> bool:
        return self.final_state == "fallback"


@dataclass
class RetryState:
    """Per-call mutable state. Never shared between calls."""

    attempt_count: int = 0
    last_error: BaseException | None = None
    reasons: list[str] = field(default_factory=list)

    @property
    def last_reason(self) -> str | None:
        return self.reasons[-1] if self.reasons else None


class RetryOrchestrator:
    """
    Drives sequential attempts for one logical request.

    One orchestrator may serve many concurrent ``execute`` calls: the only
    state it shares between them is the read-only ``BackoffParameters``.

    Attributes:
        params: Backoff configuration
        runner: Single attempt executor
    """

    def __init__(
        self,
        transport: Transport,
        params: BackoffParameters,
        *,
        observer: AttemptObserver | None = None,
        user_agent: str | None = None,
        jitter_factory: Callable[[], JitterSource] = random.Random,
    ):
        self.params = params
        self.observer = observer
        self.runner = AttemptRunner(transport, observer=observer, user_agent=user_agent)
        self._jitter_factory = jitter_factory

    async def execute(
        self,
        request: httpx.Request,
        classifier: Classifier | None,
        fallback: Fallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ExecutionResult:
        """
        Perform ``request`` until the classifier accepts it, retrying as configured.

        Args:
            request: Request to send; its body is buffered once and replayed
            classifier: Decides accept vs retry for each response
            fallback: Called with no arguments after exhaustion or a fatal error
            cancel_token: Stops the call (without fallback) when signaled

        Returns:
            ExecutionResult describing how the final answer was obtained

        Raises:
            ConfigurationError: No classifier, or unbufferable request body
            TransportError: The transport failed and no fallback was given
            RetriesExhausted: Bound reached and no fallback was given
            Cancelled: The token signaled first (DeadlineExceeded for timeouts)
            FallbackError: The fallback failed with a non-hardy exception
        """
        start = time.monotonic()

        if classifier is None or not callable(classifier):
            executions_total.labels(result="invalid").inc()
            raise ConfigurationError("no classifier was given")

        state = RetryState()
        gate = CancellationGate(cancel_token)

        try:
            outcome = await gate.race(self._attempt_loop(request, classifier, state))
        except Cancelled:
            executions_total.labels(result="cancelled").inc()
            raise
        except ConfigurationError:
            executions_total.labels(result="invalid").inc()
            raise

        if isinstance(outcome, Success):
            executions_total.labels(result="succeeded").inc()
            return ExecutionResult(
                total_attempts=state.attempt_count + 1,
                final_state="succeeded",
                total_latency_ms=_elapsed_ms(start),
                retry_reasons=tuple(state.reasons),
            )

        if isinstance(outcome, Fatal):
            total_attempts = state.attempt_count + 1
            trigger = "fatal"
        else:
            total_attempts = state.attempt_count
            trigger = "exhausted"

        if fallback is not None:
            result = await self._resolve_fallback(fallback, trigger, state)
            executions_total.labels(result="fallback").inc()
            return ExecutionResult(
                total_attempts=total_attempts,
                final_state="fallback",
                total_latency_ms=_elapsed_ms(start),
                retry_reasons=tuple(state.reasons),
                fallback_result=result,
            )

        executions_total.labels(result=trigger).inc()
        if isinstance(outcome, Fatal):
            raise outcome.error

        raise RetriesExhausted(state.attempt_count, state.last_reason)

    async def _attempt_loop(
        self, request: httpx.Request, classifier: Classifier, state: RetryState
    ) -> AttemptOutcome:
        """Run attempts until a terminal outcome. A returned Retryable means exhausted."""
        buffered = await BufferedRequest.from_request(request)
        calculator = IntervalCalculator(self.params, self._jitter_factory())

        while True:
            outcome = await self.runner.run(buffered, classifier, attempt=state.attempt_count + 1)

            if not isinstance(outcome, Retryable):
                return outcome

            state.attempt_count += 1
            state.last_error = outcome.error
            state.reasons.append(outcome.reason)
            logger.warning(
                f"Attempt {state.attempt_count}/{self.params.max_attempts} asked for retry",
                attempt=state.attempt_count,
                max_attempts=self.params.max_attempts,
                reason=outcome.reason,
            )

            if state.attempt_count == self.params.max_attempts:
                logger.error(
                    "Max retries reached",
                    attempts=state.attempt_count,
                    last_reason=outcome.reason,
                )
                return outcome

            wait = calculator.interval(state.attempt_count + 1)
            backoff_seconds.observe(wait)
            notify(self.observer, AttemptEvent("backoff", state.attempt_count + 1, wait_seconds=wait))
            await asyncio.sleep(wait)

    async def _resolve_fallback(self, fallback: Fallback, trigger: str, state: RetryState) -> Any:
        fallback_invocations_total.labels(trigger=trigger).inc()
        logger.info(
            "Invoking fallback",
            trigger=trigger,
            attempts=state.attempt_count,
            last_reason=state.last_reason,
        )
        try:
            result = fallback()
            if inspect.isawaitable(result):
                result = await result
        except HardyError:
            executions_total.labels(result="fallback_failed").inc()
            raise
        except Exception as e:
            executions_total.labels(result="fallback_failed").inc()
            raise FallbackError(
                f"fallback failed: {e}",
                details={
                    "error_type": type(e).__name__,
                    "trigger": trigger,
                    "attempts": state.attempt_count,
                    "last_reason": state.last_reason,
                },
            ) from e
        return result


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
