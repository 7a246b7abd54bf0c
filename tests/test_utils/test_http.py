from __future__ import annotations

import httpx
import pytest
from typing import Any, List
from unittest.mock import AsyncMock, MagicMock, patch

from enginekeeper.utils.http import HTTPClient
from enginekeeper.exceptions import NetworkError, RegistryError

URL = "https://registry.npmjs.org/lodash"


def _response(status: int, *, json: Any = None, text: str = "", headers: Any = None) -> httpx.Response:
    request = httpx.Request("GET", URL)
    if json is not None:
        return httpx.Response(status, json=json, headers=headers, request=request)
    return httpx.Response(status, text=text, headers=headers, request=request)


def _client_with(responses: List[Any], **kwargs: Any) -> HTTPClient:
    """HTTPClient whose transport returns (or raises) ``responses`` in order."""
    client = HTTPClient(**kwargs)
    client._client = MagicMock(spec=httpx.AsyncClient)
    client._client.request = AsyncMock(side_effect=responses)
    client._client.aclose = AsyncMock()
    return client


@pytest.fixture(autouse=True)
def no_sleep() -> Any:
    """Skip real backoff delays."""
    with patch("enginekeeper.utils.http.asyncio.sleep", new=AsyncMock()) as mock_sleep:
        yield mock_sleep


@pytest.mark.unit
class TestHTTPClientInit:
    """Tests for HTTPClient initialization and configuration."""

    def test_default_values(self) -> None:
        client = HTTPClient()

        assert client.timeout == 30
        assert client.max_retries == 3
        assert client.rate_limit_delay == 0.0
        assert client.verify_ssl is True
        assert client.max_concurrency == 10
        assert client.user_agent.startswith("enginekeeper/")
        assert client._client is None

    def test_custom_values(self) -> None:
        client = HTTPClient(timeout=5, max_retries=1, user_agent="Agent/1.0", max_concurrency=2)

        assert client.timeout == 5
        assert client.max_retries == 1
        assert client.user_agent == "Agent/1.0"
        assert client._semaphore._value == 2


@pytest.mark.unit
class TestHTTPClientLifecycle:
    """Tests for the async context manager protocol."""

    @pytest.mark.asyncio
    async def test_context_manager_creates_and_closes(self) -> None:
        client = HTTPClient(timeout=15)

        async with client:
            assert isinstance(client._client, httpx.AsyncClient)
            assert client._client.timeout.read == 15
            assert client._client.headers["Accept"] == "application/json"

        assert client._client is None

    @pytest.mark.asyncio
    async def test_close_without_client(self) -> None:
        client = HTTPClient()

        await client.close()

        assert client._client is None


@pytest.mark.unit
class TestRequestWithRetry:
    """Tests for status handling, retries and backoff."""

    @pytest.mark.asyncio
    async def test_success(self) -> None:
        client = _client_with([_response(200, json={"name": "lodash"})])

        response = await client.get(URL)

        assert response.status_code == 200
        client._client.request.assert_awaited_once_with("GET", URL)

    @pytest.mark.asyncio
    async def test_strips_quotes_from_url(self) -> None:
        client = _client_with([_response(200, json={})])

        await client.get(f'"{URL}" ')

        client._client.request.assert_awaited_once_with("GET", URL)

    @pytest.mark.asyncio
    async def test_404_raises_registry_error(self) -> None:
        client = _client_with([_response(404, text="Not Found")])

        with pytest.raises(RegistryError) as exc_info:
            await client.get(URL)

        assert exc_info.value.status_code == 404
        assert client._client.request.await_count == 1

    @pytest.mark.asyncio
    async def test_other_4xx_not_retried(self) -> None:
        client = _client_with([_response(403, text="Forbidden")])

        with pytest.raises(NetworkError) as exc_info:
            await client.get(URL)

        assert exc_info.value.status_code == 403
        assert exc_info.value.response_body == "Forbidden"

    @pytest.mark.asyncio
    async def test_5xx_retried_then_succeeds(self) -> None:
        client = _client_with(
            [_response(503, text="busy"), _response(200, json={"ok": True})],
            max_retries=2,
        )

        response = await client.get(URL)

        assert response.status_code == 200
        assert client._client.request.await_count == 2

    @pytest.mark.asyncio
    async def test_network_errors_exhaust_retries(self) -> None:
        client = _client_with(
            [httpx.ConnectError("refused")] * 3,
            max_retries=2,
        )

        with pytest.raises(NetworkError, match="failed after 3 attempts"):
            await client.get(URL)

    @pytest.mark.asyncio
    async def test_timeout_retried(self) -> None:
        client = _client_with(
            [httpx.ReadTimeout("slow"), _response(200, json={})],
            max_retries=1,
        )

        assert (await client.get(URL)).status_code == 200

    @pytest.mark.asyncio
    async def test_429_honours_retry_after(self, no_sleep: AsyncMock) -> None:
        client = _client_with(
            [_response(429, headers={"Retry-After": "7"}), _response(200, json={})]
        )

        await client.get(URL)

        no_sleep.assert_any_await(7)

    @pytest.mark.asyncio
    async def test_429_limit(self) -> None:
        client = _client_with([_response(429)] * 6, max_retries=10)

        with pytest.raises(NetworkError, match="Rate limit exceeded") as exc_info:
            await client.get(URL)

        assert exc_info.value.status_code == 429

    def test_retry_after_http_date_falls_back(self) -> None:
        response = _response(429, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"})

        assert HTTPClient._retry_after(response) == 1


@pytest.mark.unit
class TestGetJson:
    """Tests for JSON decoding."""

    @pytest.mark.asyncio
    async def test_returns_object(self) -> None:
        client = _client_with([_response(200, json={"versions": {}})])

        assert await client.get_json(URL) == {"versions": {}}

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        client = _client_with([_response(200, text="<html>")])

        with pytest.raises(NetworkError, match="Invalid JSON"):
            await client.get_json(URL)

    @pytest.mark.asyncio
    async def test_non_object_json(self) -> None:
        client = _client_with([_response(200, json=["1.0.0"])])

        with pytest.raises(NetworkError, match="Expected JSON object"):
            await client.get_json(URL)
