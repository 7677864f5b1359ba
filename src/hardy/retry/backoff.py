"""
Backoff parameters and interval calculation.

Delay before attempt N:

    backoff = base_interval * multiplier ** N
    interval = min(backoff + jitter, max_interval)   # when max_interval > 0

Jitter is uniform in [0, 1s) and prevents synchronized retry storms across
many clients.
"""

import math
import random
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Protocol

import structlog

from hardy.config import (
    DEFAULT_MAX_INTERVAL_MS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MULTIPLIER,
    DEFAULT_WAIT_INTERVAL_MS,
    MIN_MULTIPLIER,
)
from hardy.exceptions import ConfigurationError

if TYPE_CHECKING:
    from hardy.config import Settings

logger = structlog.get_logger(__name__)

JITTER_MAX_SECONDS = 1.0


def usable_multiplier(multiplier: float) -> bool:
    return math.isfinite(multiplier) and multiplier >= MIN_MULTIPLIER


class JitterSource(Protocol):
    """Anything exposing ``random() -> float in [0, 1)``, e.g. random.Random."""

    def random(self) -> float: ...


@dataclass(frozen=True)
class BackoffParameters:
    """
    Immutable backoff configuration, shared read-only by concurrent calls.

    Attributes:
        base_interval: Base wait in seconds (> 0)
        max_interval: Upper bound for a single wait in seconds (0 = uncapped)
        multiplier: Exponential growth factor (>= 2.0)
        max_attempts: Total attempts per call, first one included (>= 1)
    """

    base_interval: float = DEFAULT_WAIT_INTERVAL_MS / 1000
    max_interval: float = DEFAULT_MAX_INTERVAL_MS / 1000
    multiplier: float = DEFAULT_MULTIPLIER
    max_attempts: int = DEFAULT_MAX_RETRIES

    def __post_init__(self) -> None:
        if not math.isfinite(self.base_interval) or self.base_interval <= 0:
            raise ConfigurationError(
                "base_interval must be a finite number > 0",
                details={"base_interval": self.base_interval},
            )
        if not math.isfinite(self.max_interval) or self.max_interval < 0:
            raise ConfigurationError(
                "max_interval must be a finite number >= 0",
                details={"max_interval": self.max_interval},
            )
        if self.max_attempts < 1:
            raise ConfigurationError(
                "max_attempts must be >= 1",
                details={"max_attempts": self.max_attempts},
            )
        if not usable_multiplier(self.multiplier):
            logger.warning(
                "Ignoring backoff multiplier below minimum",
                multiplier=self.multiplier,
                using=DEFAULT_MULTIPLIER,
            )
            object.__setattr__(self, "multiplier", DEFAULT_MULTIPLIER)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "BackoffParameters":
        """Build parameters from millisecond-based settings."""
        return cls(
            base_interval=settings.WAIT_INTERVAL_MS / 1000,
            max_interval=settings.MAX_INTERVAL_MS / 1000,
            multiplier=settings.BACKOFF_MULTIPLIER,
            max_attempts=settings.MAX_RETRIES,
        )

    def with_base_interval(self, seconds: float) -> "BackoffParameters":
        return replace(self, base_interval=seconds)

    def with_max_interval(self, seconds: float) -> "BackoffParameters":
        return replace(self, max_interval=seconds)

    def with_max_attempts(self, attempts: int) -> "BackoffParameters":
        return replace(self, max_attempts=attempts)

    def with_multiplier(self, multiplier: float) -> "BackoffParameters":
        """Return parameters using ``multiplier``; unusable values keep the current one."""
        if not usable_multiplier(multiplier):
            return self
        return replace(self, multiplier=multiplier)


class IntervalCalculator:
    """
    Computes the wait before a given attempt.

    Each instance owns its jitter source. The orchestrator builds one
    calculator per call, so concurrent calls never share a random stream.
    """

    def __init__(self, params: BackoffParameters, rng: JitterSource | None = None):
        self.params = params
        # Random() without a seed draws from OS entropy
        self._rng = rng if rng is not None else random.Random()

    def backoff(self, attempt: int) -> float:
        """Non-jittered, uncapped backoff component in seconds."""
        if attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {attempt}")
        try:
            growth = float(self.params.multiplier) ** attempt
        except OverflowError:
            return math.inf
        return self.params.base_interval * growth

    def interval(self, attempt: int) -> float:
        """Wait in seconds before ``attempt`` (1-indexed), jitter and cap applied."""
        total = self.backoff(attempt) + self._rng.random() * JITTER_MAX_SECONDS
        if self.params.max_interval == 0:
            return total
        return min(total, self.params.max_interval)
