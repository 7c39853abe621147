"""Named data sources built from configuration."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterator

import httpx

from thindata.core.config import Settings
from thindata.models.data import CacheMetadata
from thindata.services.data_source import DataSource
from thindata.services.data_store import DataStore
from thindata.services.error_logging import register_error_logging
from thindata.services.errors import SourceNotFoundError
from thindata.services.http_fetcher import json_fetcher

logger = logging.getLogger(__name__)


class SourceRegistry:
    """Lookup of data sources by name."""

    def __init__(self) -> None:
        self._sources: dict[str, DataSource[Any]] = {}

    def register(self, source: DataSource[Any]) -> None:
        if source.name in self._sources:
            raise ValueError(f"A source named '{source.name}' is already registered.")
        self._sources[source.name] = source

    def get(self, name: str) -> DataSource[Any]:
        try:
            return self._sources[name]
        except KeyError:
            raise SourceNotFoundError(f"Unknown source '{name}'.") from None

    def names(self) -> list[str]:
        return sorted(self._sources)

    def __iter__(self) -> Iterator[DataSource[Any]]:
        return iter(self._sources[name] for name in self.names())

    def __len__(self) -> int:
        return len(self._sources)


def cache_metadata_for(name: str, ttl_seconds: int | None) -> Callable[[], CacheMetadata]:
    """Cache a source under its own name, expiring ``ttl_seconds`` after each load."""

    def create() -> CacheMetadata:
        if not ttl_seconds:
            return CacheMetadata(id=name)
        expires = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
        return CacheMetadata(id=name, expiration_date=expires)

    return create


def build_registry(
    settings: Settings, store: DataStore, client: httpx.AsyncClient
) -> SourceRegistry:
    """Create one cached JSON source per configured ``name=url`` pair."""
    registry = SourceRegistry()
    for name, url in settings.sources.items():
        source: DataSource[Any] = DataSource(json_fetcher(client, url), name=name)
        source.enable_cache(
            "sources",
            store,
            cache_metadata_for(name, settings.source_cache_ttl_seconds),
        )
        register_error_logging(source, logger)
        registry.register(source)
        logger.info("Registered source %s -> %s", name, url)
    return registry


__all__ = ["SourceRegistry", "build_registry", "cache_metadata_for"]
