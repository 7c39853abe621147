"""Observable data sources backed by a fetch, cache and transform pipeline.

A source publishes its ``status``, ``cache_status``, ``last_exception`` and
``data`` together. Every load cancels the token of the previous load and then
waits for the single-slot gate, so at most one load runs at a time and only
the most recent one ever publishes its result.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Generic, TypeVar

from thindata.core.metrics import observe_source_fetch, record_source_event
from thindata.core.telemetry import load_span, set_load_outcome
from thindata.models.data import (
    CacheMetadata,
    CacheStatus,
    DataChunk,
    DataErrors,
    DataStatus,
    SourceStatus,
)
from thindata.services.cache import Cache
from thindata.services.cancellation import CancellationToken, CancellationTokenHolder
from thindata.services.data_store import DataStore
from thindata.services.errors import (
    CacheAlreadyEnabledError,
    NoDataLoadedError,
    NoMoreDataError,
)
from thindata.services.observable import Observable
from thindata.services.pipeline import cache_chunk, fetch_chunk, transform_chunk

logger = logging.getLogger(__name__)
T = TypeVar("T")

ChunkFetcher = Callable[[CancellationToken], Awaitable[DataChunk[Any]]]

_TRANSIENT_STATUSES = (SourceStatus.LOADING, SourceStatus.LOADING_MORE)


def last_exception_of(chunk: DataChunk[Any]) -> Exception | None:
    """Return the error that best explains the status of ``chunk``."""
    if chunk.status is DataStatus.NORMAL:
        return None
    if chunk.status is DataStatus.CACHED:
        return chunk.errors.fetch
    errors = chunk.errors
    for error in (errors.process, errors.cache, errors.fetch):
        if error is not None:
            return error
    return None


class DataSourceBase(Observable):
    """State, gate and publication shared by every kind of data source."""

    def __init__(self, name: str | None = None) -> None:
        super().__init__()
        self._name = name or type(self).__name__
        self._gate = asyncio.Semaphore(1)
        self._tokens = CancellationTokenHolder()

        self._status = SourceStatus.NONE
        self._settled_status = SourceStatus.NONE
        self._cache_status = CacheStatus.UNUSED
        self._last_exception: Exception | None = None

        self._cache: Cache | None = None
        self._value_type: Any = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def status(self) -> SourceStatus:
        return self._status

    @property
    def cache_status(self) -> CacheStatus:
        return self._cache_status

    @property
    def last_exception(self) -> Exception | None:
        return self._last_exception

    @property
    def can_fetch_more(self) -> bool:
        return False

    @property
    def is_cache_enabled(self) -> bool:
        return self._cache is not None

    def _set_cache(self, namespace: str, store: DataStore, value_type: Any) -> None:
        if self._cache is not None:
            raise CacheAlreadyEnabledError(f"Caching is already enabled for {self._name}.")
        self._cache = Cache(namespace, store)
        self._value_type = value_type

    def _publish(self, **changes: Any) -> None:
        status = changes.get("status")
        if status is not None and status not in _TRANSIENT_STATUSES:
            self._settled_status = status
        super()._publish(**changes)

    async def _load(
        self,
        loading_status: SourceStatus,
        initialization: Callable[[], None],
        fetcher: ChunkFetcher,
        result_handler: Callable[[DataChunk[Any]], None],
    ) -> None:
        """Run one load, publishing its result unless a newer load superseded it.

        A load that is interrupted while still current does not leave the
        source in ``loading_status``: a cancelled load restores the last
        settled status, any other failure is published as an ``ERROR`` chunk.
        The exception is re-raised either way.
        """
        self._publish(status=loading_status)
        token = self._tokens.create_and_cancel_previous()

        try:
            async with self._gate:
                with load_span(self._name, loading_status.value) as span:
                    initialization()

                    started = time.monotonic()
                    chunk = await fetcher(token)
                    observe_source_fetch(self._name, time.monotonic() - started)

                    if token.is_cancellation_requested:
                        logger.debug("Discarding superseded load of %s", self._name)
                        set_load_outcome(span, "superseded")
                        record_source_event(self._name, "superseded")
                        return

                    result_handler(chunk)
                    set_load_outcome(span, self._status.value)
                    record_source_event(self._name, self._status.value)
        except BaseException as exc:
            if not token.is_cancellation_requested and self._status is loading_status:
                self._abandon_load(exc, result_handler)
            raise

    def _abandon_load(
        self, exc: BaseException, result_handler: Callable[[DataChunk[Any]], None]
    ) -> None:
        record_source_event(self._name, "interrupted")
        if isinstance(exc, Exception):
            logger.warning("Load of %s failed outside the pipeline: %s", self._name, exc)
            result_handler(DataChunk.error(DataErrors(fetch=exc)))
        else:
            logger.debug("Load of %s was cancelled", self._name)
            self._publish(status=self._settled_status)

    async def _fetch_and_cache(
        self,
        fetcher: Callable[[], Awaitable[Any]],
        metadata_creator: Callable[[], CacheMetadata | None],
    ) -> DataChunk[Any]:
        chunk = await fetch_chunk(fetcher)
        if self._cache is not None:
            chunk = await cache_chunk(chunk, self._cache, metadata_creator, self._value_type)
        return chunk


class DataSource(DataSourceBase, Generic[T]):
    """A source of a single value.

    ``fetcher`` receives a cancellation token and returns the raw value;
    ``transformer`` post-processes it before publication.
    """

    def __init__(
        self,
        fetcher: Callable[[CancellationToken], Awaitable[T]],
        transformer: Callable[[T], T] | None = None,
        *,
        name: str | None = None,
    ) -> None:
        super().__init__(name)
        self._fetcher = fetcher
        self._transformer = transformer or (lambda value: value)
        self._metadata_creator: Callable[[], CacheMetadata | None] = lambda: CacheMetadata.DEFAULT

        self._data: DataChunk[T] | None = None
        self._original: DataChunk[T] | None = None

    @property
    def data(self) -> DataChunk[T] | None:
        return self._data

    @property
    def value(self) -> T | None:
        return None if self._data is None else self._data.value

    def enable_cache(
        self,
        namespace: str,
        store: DataStore,
        metadata_creator: Callable[[], CacheMetadata | None] | None = None,
        value_type: Any = None,
    ) -> DataSource[T]:
        """Cache fetched values in ``store`` under ``namespace``."""
        self._set_cache(namespace, store, value_type)
        if metadata_creator is not None:
            self._metadata_creator = metadata_creator
        return self

    async def refresh(self) -> None:
        record_source_event(self._name, "refresh")
        await self._load(
            SourceStatus.LOADING,
            lambda: None,
            self._fetch,
            self._handle_result,
        )

    async def fetch_more(self) -> None:
        raise NoMoreDataError(f"{self._name} does not support fetching more data.")

    def update_value(self) -> None:
        """Re-apply the transformer to the last fetched value without fetching."""
        if self._original is None:
            raise NoDataLoadedError(
                f"{self._name} can only update its value after data has been loaded."
            )
        self._handle_result(self._original)

    async def _fetch(self, token: CancellationToken) -> DataChunk[T]:
        return await self._fetch_and_cache(
            lambda: self._fetcher(token), lambda: self._metadata_creator()
        )

    def _handle_result(self, chunk: DataChunk[T]) -> None:
        if chunk.status is not DataStatus.ERROR:
            self._original = chunk
        transformed = transform_chunk(chunk, self._transformer)
        self._publish(
            cache_status=CacheStatus.USED
            if transformed.status is DataStatus.CACHED
            else CacheStatus.UNUSED,
            last_exception=last_exception_of(transformed),
            data=transformed,
            status=SourceStatus.from_data_status(transformed.status),
        )


__all__ = ["DataSource", "DataSourceBase", "last_exception_of"]
