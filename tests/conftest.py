from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from tests.fakes import FakeValkey, StaticFetcher
from thindata.api.v1.dependencies import get_registry
from thindata.core.config import Settings
from thindata.main import create_app
from thindata.services.data_source import DataSource
from thindata.services.data_store import InMemoryDataStore, ValkeyDataStore
from thindata.services.registry import SourceRegistry
from thindata.services.store_circuit_breaker import StoreCircuitBreaker


@pytest.fixture()
def fake_valkey() -> FakeValkey:
    return FakeValkey()


@pytest.fixture()
def memory_store() -> InMemoryDataStore:
    return InMemoryDataStore()


@pytest.fixture()
def valkey_store(fake_valkey: FakeValkey) -> ValkeyDataStore:
    return ValkeyDataStore(fake_valkey, StoreCircuitBreaker(0.0))


@pytest.fixture()
def registry(memory_store: InMemoryDataStore) -> SourceRegistry:
    registry = SourceRegistry()
    registry.register(
        DataSource(StaticFetcher({"answer": 42}), name="alpha").enable_cache(
            "sources", memory_store
        )
    )
    registry.register(DataSource(StaticFetcher(RuntimeError("offline")), name="broken"))
    return registry


@pytest.fixture()
def api_client(registry: SourceRegistry) -> Iterator[TestClient]:
    """Create a test client serving the in-memory registry."""
    app = create_app(Settings(STORE_BACKEND="memory"))
    app.dependency_overrides[get_registry] = lambda: registry
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
