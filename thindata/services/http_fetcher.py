"""Fetch functions for remote JSON sources."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

import httpx

from thindata.services.cancellation import CancellationToken
from thindata.services.errors import RemoteFetchError

logger = logging.getLogger(__name__)

USER_AGENT = "thindata/0.1"


def create_http_client(timeout_seconds: float) -> httpx.AsyncClient:
    """Build the shared client used by every remote source."""
    return httpx.AsyncClient(
        timeout=timeout_seconds,
        headers={"User-Agent": USER_AGENT},
    )


def json_fetcher(
    client: httpx.AsyncClient, url: str
) -> Callable[[CancellationToken], Awaitable[Any]]:
    """Return a fetch function that GETs ``url`` and decodes its JSON body."""

    async def fetch(token: CancellationToken) -> Any:
        token.raise_if_cancellation_requested()
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RemoteFetchError(
                f"{url} responded with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Request to %s failed: %s", url, exc)
            raise RemoteFetchError(f"Request to {url} failed: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise RemoteFetchError(f"{url} did not return valid JSON") from exc

    return fetch


__all__ = ["create_http_client", "json_fetcher"]
