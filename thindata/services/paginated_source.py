"""Data sources that load their data one page at a time."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, Generic, TypeVar

from pydantic import BaseModel

from thindata.core.metrics import record_source_event
from thindata.models.data import (
    CacheMetadata,
    CacheStatus,
    DataChunk,
    DataStatus,
    PaginatedData,
    SourceStatus,
)
from thindata.models.option import NOTHING, Option, Some
from thindata.services.cancellation import CancellationToken
from thindata.services.data_source import DataSourceBase, last_exception_of
from thindata.services.data_store import DataStore
from thindata.services.errors import NoDataLoadedError, NoMoreDataError
from thindata.services.pipeline import transform_chunk

logger = logging.getLogger(__name__)
T = TypeVar("T")
TToken = TypeVar("TToken")

PageFetcher = Callable[[Option[TToken], CancellationToken], Awaitable[PaginatedData[T, TToken]]]


class CachedPage(BaseModel, Generic[T]):
    """Cache entry of one page, so a cached page keeps its continuation token."""

    value: T
    has_token: bool = False
    token: Any = None

    def to_page(self) -> PaginatedData[T, Any]:
        return PaginatedData(self.value, Some(self.token) if self.has_token else NOTHING)


def _to_entry(page: PaginatedData[Any, Any]) -> dict[str, Any]:
    """Flatten a page into a JSON-friendly cache entry."""
    return {
        "value": page.value,
        "has_token": page.token.has_value,
        "token": page.token.value if page.token.has_value else None,
    }


class PaginatedDataSource(DataSourceBase, Generic[T, TToken]):
    """A source whose data is a list of pages linked by continuation tokens.

    ``fetcher`` receives the token of the page to load (``NOTHING`` for the
    first page) and a cancellation token. ``transformer`` receives each page
    value and whether it extends already published pages.
    """

    def __init__(
        self,
        fetcher: PageFetcher[T, TToken],
        transformer: Callable[[T, bool], T] | None = None,
        *,
        name: str | None = None,
    ) -> None:
        super().__init__(name)
        self._fetcher = fetcher
        self._transformer = transformer or (lambda value, is_incremental: value)
        self._metadata_creator: Callable[[Option[TToken]], CacheMetadata | None] = (
            lambda pagination_token: CacheMetadata.DEFAULT
        )

        self._pagination_token: Option[TToken] = NOTHING
        self._next_token: Option[TToken] = NOTHING
        self._originals: list[DataChunk[T]] = []
        self._data: tuple[DataChunk[T], ...] = ()

    @property
    def data(self) -> tuple[DataChunk[T], ...]:
        return self._data

    @property
    def value(self) -> list[T | None]:
        return [chunk.value for chunk in self._data]

    @property
    def can_fetch_more(self) -> bool:
        return self._next_token.has_value

    def enable_cache(
        self,
        namespace: str,
        store: DataStore,
        metadata_creator: Callable[[Option[TToken]], CacheMetadata | None] | None = None,
        value_type: Any = None,
    ) -> PaginatedDataSource[T, TToken]:
        """Cache each page in ``store`` under ``namespace``.

        ``metadata_creator`` receives the token of the page being loaded, so
        pages can be cached under distinct ids. ``value_type`` validates the
        value of pages read back from the cache.
        """
        entry_type = CachedPage[Any] if value_type is None else CachedPage[value_type]
        self._set_cache(namespace, store, entry_type)
        if metadata_creator is not None:
            self._metadata_creator = metadata_creator
        return self

    async def refresh(self) -> None:
        record_source_event(self._name, "refresh")
        await self._load(
            SourceStatus.LOADING,
            self._reset_pagination,
            self._fetch_page,
            lambda chunk: self._handle_page(chunk, is_incremental=False),
        )

    async def fetch_more(self) -> None:
        if not self.can_fetch_more:
            raise NoMoreDataError(f"{self._name} has no more data to fetch.")
        record_source_event(self._name, "fetch_more")
        await self._load(
            SourceStatus.LOADING_MORE,
            self._continue_pagination,
            self._fetch_page,
            lambda chunk: self._handle_page(chunk, is_incremental=True),
        )

    def update_values(self) -> None:
        """Re-apply the transformer to every successfully loaded page without fetching.

        Pages that failed to load are dropped from the republished data.
        """
        if not self._originals:
            raise NoDataLoadedError(
                f"{self._name} can only update its values after data has been loaded."
            )
        chunks = tuple(
            transform_chunk(page, lambda value: self._transformer(value, False))
            for page in self._originals
        )
        latest = next(
            (chunk for chunk in chunks if chunk.status is DataStatus.ERROR), chunks[-1]
        )
        cache_used = any(page.status is DataStatus.CACHED for page in self._originals)
        self._publish(
            cache_status=CacheStatus.USED if cache_used else CacheStatus.UNUSED,
            last_exception=last_exception_of(latest),
            data=chunks,
            status=SourceStatus.from_data_status(latest.status),
        )

    def _reset_pagination(self) -> None:
        self._pagination_token = NOTHING

    def _continue_pagination(self) -> None:
        self._pagination_token = self._next_token

    async def _fetch_page(self, token: CancellationToken) -> DataChunk[PaginatedData[T, TToken]]:
        pagination_token = self._pagination_token
        fetched: list[PaginatedData[T, TToken]] = []

        async def fetch_entry() -> dict[str, Any]:
            page = await self._fetcher(pagination_token, token)
            fetched.append(page)
            return _to_entry(page)

        chunk = await self._fetch_and_cache(
            fetch_entry, lambda: self._metadata_creator(pagination_token)
        )
        # Cached entries were validated as ``CachedPage`` by the cache step.
        if chunk.status is DataStatus.CACHED:
            return replace(chunk, value=chunk.value.to_page())
        if chunk.status is DataStatus.NORMAL:
            return replace(chunk, value=fetched[0])
        return chunk

    def _handle_page(
        self, chunk: DataChunk[PaginatedData[T, TToken]], is_incremental: bool
    ) -> None:
        if chunk.status is DataStatus.ERROR:
            page = DataChunk.error(chunk.errors)
            self._next_token = NOTHING
        else:
            page = replace(chunk, value=chunk.value.value)
            self._next_token = chunk.value.token

        transformed = transform_chunk(
            page, lambda value: self._transformer(value, is_incremental)
        )

        originals = list(self._originals) if is_incremental else []
        if page.status is not DataStatus.ERROR:
            originals.append(page)
        self._originals = originals
        data = (*self._data, transformed) if is_incremental else (transformed,)

        cache_status = (
            CacheStatus.USED if transformed.status is DataStatus.CACHED else CacheStatus.UNUSED
        )
        if is_incremental and self._cache_status is CacheStatus.USED:
            cache_status = CacheStatus.USED

        self._publish(
            cache_status=cache_status,
            last_exception=last_exception_of(transformed),
            data=data,
            status=SourceStatus.from_data_status(transformed.status),
        )


__all__ = ["CachedPage", "PaginatedDataSource"]
