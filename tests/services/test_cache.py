"""Tests for the namespaced expiring cache."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from pydantic import BaseModel

from thindata.models.option import NOTHING, Some
from thindata.services.cache import NEVER_EXPIRES, Cache
from thindata.services.data_store import InMemoryDataStore
from thindata.services.errors import StoreUnavailableError


class Item(BaseModel):
    name: str
    count: int


def _future() -> datetime:
    return datetime.now(timezone.utc) + timedelta(hours=1)


def test_cache_requires_store():
    with pytest.raises(TypeError):
        Cache("ns", None)


def test_cache_requires_string_namespace(memory_store):
    with pytest.raises(TypeError):
        Cache(42, memory_store)


def test_cache_key_layout(memory_store):
    cache = Cache("news", memory_store)

    assert cache.value_key("a") == "Cache_news_a"
    assert cache.date_key("a") == "Cache_news_Date_a"


@pytest.mark.asyncio
async def test_get_missing_returns_nothing(memory_store):
    cache = Cache("ns", memory_store)

    assert await cache.get("missing") is NOTHING


@pytest.mark.asyncio
async def test_store_without_expiration_never_expires(memory_store):
    cache = Cache("ns", memory_store)

    await cache.store("id", 42)

    assert await cache.get("id") == Some(42)
    assert (await memory_store.load("Cache_ns_Date_id")).value == NEVER_EXPIRES


@pytest.mark.asyncio
async def test_store_with_future_expiration(memory_store):
    cache = Cache("ns", memory_store)

    await cache.store("id", "value", _future())

    assert await cache.get("id") == Some("value")


@pytest.mark.asyncio
async def test_expired_entries_are_deleted(memory_store):
    cache = Cache("ns", memory_store)
    await cache.store("id", "value", datetime.now(timezone.utc) - timedelta(seconds=1))

    assert await cache.get("id") is NOTHING
    assert await memory_store.load("Cache_ns_id") is NOTHING
    assert await memory_store.load("Cache_ns_Date_id") is NOTHING
    assert len(memory_store) == 0


@pytest.mark.asyncio
async def test_null_and_empty_ids_are_distinct(memory_store):
    cache = Cache("ns", memory_store)

    await cache.store(None, 1)
    await cache.store("", 2)

    assert await cache.get(None) == Some(1)
    assert await cache.get("") == Some(2)


@pytest.mark.asyncio
async def test_store_overwrites_previous_value(memory_store):
    cache = Cache("ns", memory_store)

    await cache.store("id", 1)
    await cache.store("id", 2)

    assert await cache.get("id") == Some(2)


@pytest.mark.asyncio
async def test_namespaces_are_isolated(memory_store):
    await Cache("a", memory_store).store("id", 1)

    assert await Cache("b", memory_store).get("id") is NOTHING


@pytest.mark.asyncio
async def test_json_store_round_trip_with_value_type(valkey_store):
    cache = Cache("ns", valkey_store)

    await cache.store("item", Item(name="x", count=3), _future())

    assert await cache.get("item") == Some({"name": "x", "count": 3})
    assert await cache.get("item", Item) == Some(Item(name="x", count=3))


@pytest.mark.asyncio
async def test_naive_expiration_is_treated_as_utc():
    store = InMemoryDataStore()
    cache = Cache("ns", store)

    naive = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(hours=1)
    await cache.store("id", 1, naive)

    assert await cache.get("id") == Some(1)


@pytest.mark.asyncio
async def test_store_failures_propagate(valkey_store, fake_valkey):
    cache = Cache("ns", valkey_store)
    fake_valkey.should_fail = True

    with pytest.raises(StoreUnavailableError):
        await cache.store("id", 1)
    with pytest.raises(StoreUnavailableError):
        await cache.get("id")


@pytest.mark.asyncio
async def test_distinct_ids_keep_their_own_values(memory_store):
    cache = Cache("ns", memory_store)

    await cache.store("a", 1)
    await cache.store("b", 2)

    assert await cache.get("a") == Some(1)
    assert await cache.get("b") == Some(2)


@pytest.mark.asyncio
async def test_entry_expiring_exactly_now_is_expired(memory_store):
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    cache = Cache("ns", memory_store)
    await cache.store("id", "value", now)

    with patch("thindata.services.cache.datetime") as clock:
        clock.now.return_value = now
        assert await cache.get("id") is NOTHING

    assert len(memory_store) == 0


def test_prefixed_ids_share_keys_across_layouts(memory_store):
    assert Cache("ns", memory_store).value_key("Date_x") == Cache(
        "ns", memory_store
    ).date_key("x")
    assert Cache("a_b", memory_store).value_key("c") == Cache("a", memory_store).value_key(
        "b_c"
    )
