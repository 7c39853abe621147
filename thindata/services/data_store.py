"""Key-value stores that back data source caches.

A store maps opaque string ids to values. The in-memory store keeps Python
objects as they are; the Valkey store serializes values to JSON, so values
read back from it are plain JSON structures until a cache validates them
against a type.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol, runtime_checkable

import valkey.asyncio as valkey
from pydantic_core import to_json

from thindata.core.config import Settings, get_settings
from thindata.core.metrics import record_store_request
from thindata.models.option import NOTHING, Option, Some
from thindata.services.store_circuit_breaker import StoreCircuitBreaker

logger = logging.getLogger(__name__)


@runtime_checkable
class DataStore(Protocol):
    """Persistent storage for cached values."""

    async def load(self, id: str) -> Option[Any]:
        """Load the value stored under ``id``, if any."""
        ...

    async def store(self, id: str, value: Any) -> None:
        """Store ``value`` under ``id``, replacing any previous value."""
        ...

    async def delete(self, id: str) -> None:
        """Delete the value stored under ``id``, if it exists."""
        ...


class InMemoryDataStore:
    """Process-local store guarded by an asyncio lock."""

    def __init__(self) -> None:
        self._store: dict[str, Any] = {}
        self._lock = asyncio.Lock()

    async def load(self, id: str) -> Option[Any]:
        async with self._lock:
            if id not in self._store:
                return NOTHING
            return Some(self._store[id])

    async def store(self, id: str, value: Any) -> None:
        async with self._lock:
            self._store[id] = value

    async def delete(self, id: str) -> None:
        async with self._lock:
            self._store.pop(id, None)

    def __len__(self) -> int:
        return len(self._store)


class ValkeyDataStore:
    """Store backed by Valkey, with circuit breaker protection.

    Failures are wrapped in ``StoreUnavailableError`` and propagated; there
    is no retry and no silent fallback.
    """

    def __init__(
        self, client: valkey.Valkey, circuit_breaker: StoreCircuitBreaker | None = None
    ) -> None:
        self._client = client
        self._circuit_breaker = circuit_breaker or StoreCircuitBreaker(
            get_settings().store_circuit_breaker_timeout_seconds
        )

    async def load(self, id: str) -> Option[Any]:
        @self._circuit_breaker.protect
        async def _load() -> str | None:
            return await self._client.get(id)

        try:
            payload = await _load()
        except Exception:
            record_store_request("load", "error")
            raise

        if payload is None:
            record_store_request("load", "miss")
            return NOTHING
        record_store_request("load", "hit")
        return Some(json.loads(payload))

    async def store(self, id: str, value: Any) -> None:
        encoded = to_json(value).decode("utf-8")

        @self._circuit_breaker.protect
        async def _store() -> None:
            await self._client.set(id, encoded)

        try:
            await _store()
        except Exception:
            record_store_request("store", "error")
            raise
        record_store_request("store", "success")

    async def delete(self, id: str) -> None:
        @self._circuit_breaker.protect
        async def _delete() -> None:
            await self._client.delete(id)

        try:
            await _delete()
        except Exception:
            record_store_request("delete", "error")
            raise
        record_store_request("delete", "success")


def create_data_store(settings: Settings | None = None) -> DataStore:
    """Build the store selected by the ``STORE_BACKEND`` setting."""
    settings = settings or get_settings()
    if settings.store_backend == "valkey":
        logger.info("Using Valkey data store at %s", settings.valkey_url)
        return ValkeyDataStore(
            valkey.from_url(
                settings.valkey_url,
                encoding="utf-8",
                decode_responses=True,
            ),
            StoreCircuitBreaker(settings.store_circuit_breaker_timeout_seconds),
        )
    logger.info("Using in-memory data store")
    return InMemoryDataStore()


__all__ = [
    "DataStore",
    "InMemoryDataStore",
    "ValkeyDataStore",
    "create_data_store",
]
