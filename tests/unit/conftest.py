"""Unit test fixtures (mocks and stubs).

Provides fake transports, jitter sources and observers so the retry core can
be tested without a network.
"""

import httpx
import pytest

from hardy.retry.observer import AttemptEvent


class FixedJitter:
    """Jitter source always returning the same fraction."""

    def __init__(self, value: float = 0.0):
        self.value = value

    def random(self) -> float:
        return self.value


class RecordingObserver:
    """Observer keeping every event it receives."""

    def __init__(self):
        self.events: list[AttemptEvent] = []

    def on_event(self, event: AttemptEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list[str]:
        return [e.kind for e in self.events]


@pytest.fixture
def zero_jitter():
    """Jitter factory producing deterministic, jitter-free intervals."""
    return lambda: FixedJitter(0.0)


@pytest.fixture
def recording_observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def mock_http_client():
    """Factory fixture wrapping a handler into an httpx.AsyncClient."""
    def _create(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _create

