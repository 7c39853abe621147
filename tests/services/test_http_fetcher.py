"""Tests for the httpx-based fetch functions."""

from __future__ import annotations

import httpx
import pytest

from thindata.services.cancellation import CancellationTokenSource
from thindata.services.errors import OperationCancelledError, RemoteFetchError
from thindata.services.http_fetcher import USER_AGENT, create_http_client, json_fetcher


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_returns_decoded_json():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"items": [1, 2]})

    async with _client(handler) as client:
        fetch = json_fetcher(client, "https://example.test/feed")
        result = await fetch(CancellationTokenSource().token)

    assert result == {"items": [1, 2]}
    assert str(requests[0].url) == "https://example.test/feed"


@pytest.mark.asyncio
async def test_http_status_error_is_wrapped():
    async with _client(lambda request: httpx.Response(503)) as client:
        fetch = json_fetcher(client, "https://example.test/feed")

        with pytest.raises(RemoteFetchError, match="503") as exc_info:
            await fetch(CancellationTokenSource().token)

    assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)


@pytest.mark.asyncio
async def test_transport_error_is_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler) as client:
        fetch = json_fetcher(client, "https://example.test/feed")

        with pytest.raises(RemoteFetchError):
            await fetch(CancellationTokenSource().token)


@pytest.mark.asyncio
async def test_invalid_json_is_wrapped():
    async with _client(lambda request: httpx.Response(200, text="<html>")) as client:
        fetch = json_fetcher(client, "https://example.test/feed")

        with pytest.raises(RemoteFetchError, match="valid JSON"):
            await fetch(CancellationTokenSource().token)


@pytest.mark.asyncio
async def test_cancelled_token_skips_request():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={})

    source = CancellationTokenSource()
    source.cancel()

    async with _client(handler) as client:
        with pytest.raises(OperationCancelledError):
            await json_fetcher(client, "https://example.test/feed")(source.token)

    assert requests == []


@pytest.mark.asyncio
async def test_shared_client_settings():
    client = create_http_client(3.5)
    try:
        assert client.timeout.connect == 3.5
        assert client.headers["User-Agent"] == USER_AGENT
    finally:
        await client.aclose()
