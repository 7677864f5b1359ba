"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import httpx
import pytest

from hardy.config import Settings

TEST_URL = "http://hardy.test/resource"


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with fast backoff.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.MAX_RETRIES = 5
    """
    return Settings(
        DEBUG=False,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
        WAIT_INTERVAL_MS=1,
        MAX_INTERVAL_MS=1,
        MAX_RETRIES=4,
        BACKOFF_MULTIPLIER=2.0,
    )


@pytest.fixture
def make_request():
    """Factory fixture to create requests.

    Usage:
        def test_something(make_request):
            request = make_request(content=b'{"message": "hi"}')
    """
    def _create(
        method: str = "POST",
        url: str = TEST_URL,
        content: bytes | None = b'{"message": "hello"}',
        headers: dict | None = None,
    ) -> httpx.Request:
        return httpx.Request(method, url, content=content, headers=headers or {})

    return _create


@pytest.fixture
def status_sequence():
    """Factory fixture returning (handler, calls) replying with the given statuses.

    The last status repeats once the sequence is exhausted. ``calls`` records
    every request seen by the handler.

    Usage:
        def test_something(status_sequence):
            handler, calls = status_sequence(503, 503, 200)
            client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    """
    def _create(*statuses: int):
        calls: list[httpx.Request] = []

        async def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            await request.aread()
            index = min(len(calls), len(statuses)) - 1
            return httpx.Response(statuses[index], text=f"reply {len(calls)}")

        return handler, calls

    return _create
