"""Integration test fixtures (service checks and prerequisites).

Integration tests run against a real httpbin instance and are skipped when
it is not reachable. Point HTTPBIN_URL at another instance if needed:

    docker run -p 80:80 kennethreitz/httpbin
"""

import os

import httpx
import pytest

DEFAULT_HTTPBIN_URL = "http://localhost:80"


@pytest.fixture(scope="session")
def httpbin_url() -> str:
    """Base URL of httpbin; skips tests if it is not available."""
    url = os.getenv("HTTPBIN_URL", DEFAULT_HTTPBIN_URL).rstrip("/")
    try:
        response = httpx.get(f"{url}/status/200", timeout=5)
        if response.status_code != 200:
            pytest.skip("httpbin not available (non-200 status)")
    except Exception as e:
        pytest.skip(f"httpbin not available: {e}")
    return url
