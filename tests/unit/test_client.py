"""
Unit tests for HardyClient, the public facade.
"""

from unittest.mock import Mock

import httpx
import pytest

from hardy import DEFAULT_USER_AGENT, HardyClient, __version__
from hardy.exceptions import ConfigurationError, RetriesExhausted
from hardy.retry.observer import StructlogDebugObserver


def accept(response: httpx.Response) -> None:
    return None


def always_retry(response: httpx.Response) -> str:
    return response.reason_phrase


def capturing_handler(status: int = 200):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status)

    return handler, seen


# ============================================================================
# Construction
# ============================================================================


def test_client_requires_http_client():
    """Test a missing http client is an invalid configuration."""
    with pytest.raises(ConfigurationError, match="no http client"):
        HardyClient(None)


def test_client_rejects_observer_without_on_event(mock_http_client):
    with pytest.raises(ConfigurationError) as exc_info:
        HardyClient(mock_http_client(lambda r: httpx.Response(200)), observer=object())

    assert exc_info.value.error_code == "invalid_configuration_error"


def test_client_debug_uses_structlog_observer(mock_http_client):
    client = HardyClient(mock_http_client(lambda r: httpx.Response(200)), debug=True)

    assert isinstance(client.observer, StructlogDebugObserver)


def test_client_debug_disabled_has_no_observer(mock_http_client):
    client = HardyClient(mock_http_client(lambda r: httpx.Response(200)))

    assert client.observer is None


def test_client_ignores_low_multiplier(mock_http_client):
    """Test multipliers below 2.0 are silently dropped at construction and in builders."""
    client = HardyClient(mock_http_client(lambda r: httpx.Response(200)), multiplier=1)

    assert client.params.multiplier == 2.0
    assert client.with_multiplier(3).params.multiplier == 3.0
    assert client.with_multiplier(3).with_multiplier(1).params.multiplier == 3.0


def test_client_builders_return_new_clients(mock_http_client):
    http_client = mock_http_client(lambda r: httpx.Response(200))
    client = HardyClient(http_client)

    derived = (
        client.with_max_retries(4)
        .with_wait_interval(0.001)
        .with_max_interval(0)
        .with_user_agent("custom-agent")
    )

    assert client.params.max_attempts == 3
    assert derived.params.max_attempts == 4
    assert derived.params.base_interval == 0.001
    assert derived.params.max_interval == 0
    assert derived.user_agent == "custom-agent"
    assert derived.http_client is http_client


def test_client_invalid_max_retries(mock_http_client):
    with pytest.raises(ConfigurationError):
        HardyClient(mock_http_client(lambda r: httpx.Response(200)), max_retries=0)


def test_client_from_settings(mock_http_client, test_settings):
    test_settings.USER_AGENT = "settings-agent"
    test_settings.DEBUG = True

    client = HardyClient.from_settings(
        mock_http_client(lambda r: httpx.Response(200)), test_settings
    )

    assert client.params.base_interval == 0.001
    assert client.params.max_interval == 0.001
    assert client.params.max_attempts == 4
    assert client.user_agent == "settings-agent"
    assert isinstance(client.observer, StructlogDebugObserver)


def test_client_from_settings_configures_library_logging(
    mock_http_client, test_settings, monkeypatch
):
    """Test CONFIGURE_LOGGING hands LOG_LEVEL and ENVIRONMENT to configure_logging."""
    configure = Mock()
    monkeypatch.setattr("hardy.client.configure_logging", configure)
    test_settings.CONFIGURE_LOGGING = True
    test_settings.ENVIRONMENT = "production"

    HardyClient.from_settings(mock_http_client(lambda r: httpx.Response(200)), test_settings)

    configure.assert_called_once_with("DEBUG", "production")


def test_client_from_settings_leaves_logging_alone_by_default(
    mock_http_client, test_settings, monkeypatch
):
    configure = Mock()
    monkeypatch.setattr("hardy.client.configure_logging", configure)

    HardyClient.from_settings(mock_http_client(lambda r: httpx.Response(200)), test_settings)

    configure.assert_not_called()


def test_default_user_agent_contains_version():
    assert DEFAULT_USER_AGENT == f"hardy/{__version__}"


# ============================================================================
# Identification header
# ============================================================================


@pytest.mark.asyncio
async def test_default_user_agent_header_sent(mock_http_client, make_request):
    handler, seen = capturing_handler()
    client = HardyClient(mock_http_client(handler))

    await client.try_request(make_request(), accept)

    assert seen[0].headers["User-Agent"] == DEFAULT_USER_AGENT


@pytest.mark.asyncio
async def test_custom_user_agent_header_sent(mock_http_client, make_request):
    handler, seen = capturing_handler()
    client = HardyClient(mock_http_client(handler)).with_user_agent("my-own-user-agent-header")

    await client.try_request(make_request(), accept)

    assert seen[0].headers["User-Agent"] == "my-own-user-agent-header"


@pytest.mark.asyncio
async def test_no_user_agent_header(mock_http_client, make_request):
    """Test the request headers are left untouched when disabled."""
    handler, seen = capturing_handler()
    client = HardyClient(mock_http_client(handler)).without_user_agent()

    await client.try_request(make_request(), accept)

    assert "User-Agent" not in seen[0].headers


# ============================================================================
# try_request
# ============================================================================


@pytest.mark.asyncio
async def test_try_request_success(mock_http_client, make_request):
    handler, seen = capturing_handler(200)
    client = HardyClient(mock_http_client(handler), debug=True)

    result = await client.try_request(make_request(), accept)

    assert result.final_state == "succeeded"
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_try_request_without_classifier(mock_http_client, make_request):
    handler, seen = capturing_handler(200)
    client = HardyClient(mock_http_client(handler))

    with pytest.raises(ConfigurationError, match="no classifier"):
        await client.try_request(make_request(), None)

    assert seen == []


@pytest.mark.asyncio
async def test_try_request_max_retries_reached(mock_http_client, make_request):
    """Test four 503s with max_retries=4 end in RetriesExhausted."""
    handler, seen = capturing_handler(503)
    client = HardyClient(
        mock_http_client(handler),
        max_retries=4,
        wait_interval=0.001,
        max_interval=0.001,
    )

    with pytest.raises(RetriesExhausted) as exc_info:
        await client.try_request(make_request(), always_retry)

    assert len(seen) == 4
    assert exc_info.value.last_reason == "Service Unavailable"


@pytest.mark.asyncio
async def test_try_request_fallback(mock_http_client, make_request):
    handler, seen = capturing_handler(503)
    client = HardyClient(
        mock_http_client(handler), max_retries=2, wait_interval=0.001, max_interval=0.001
    )
    fallback = Mock(return_value="Hello from fallback!")

    result = await client.try_request(make_request(), always_retry, fallback)

    assert result.fallback_result == "Hello from fallback!"
    assert len(seen) == 2


@pytest.mark.asyncio
async def test_client_context_manager_closes_http_client(mock_http_client):
    http_client = mock_http_client(lambda r: httpx.Response(200))

    async with HardyClient(http_client) as client:
        assert not client.http_client.is_closed

    assert http_client.is_closed
