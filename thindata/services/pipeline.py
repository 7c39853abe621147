"""Fetch, cache and transform steps applied to a :class:`DataChunk`.

Each step only adds to the error triple of the chunk it receives and only ever
downgrades its status to ``ERROR``; errors recorded by earlier steps are
carried along untouched.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, TypeVar

from thindata.models.data import CacheMetadata, DataChunk, DataErrors, DataStatus
from thindata.services.cache import Cache

logger = logging.getLogger(__name__)
T = TypeVar("T")

Fetcher = Callable[[], Awaitable[T]]
MetadataCreator = Callable[[], CacheMetadata | None]
Transformer = Callable[[T], T]


async def fetch_chunk(fetcher: Fetcher[T]) -> DataChunk[T]:
    """Run ``fetcher`` and wrap its result or failure in a chunk."""
    try:
        value = await fetcher()
    except Exception as exc:
        logger.debug("Fetch failed: %s", exc)
        return DataChunk.error(DataErrors(fetch=exc))
    return DataChunk(value, DataStatus.NORMAL)


async def cache_chunk(
    chunk: DataChunk[T],
    cache: Cache,
    metadata_creator: MetadataCreator,
    value_type: Any = None,
) -> DataChunk[T]:
    """Store a freshly fetched chunk, or fall back to the cache for a failed one."""
    try:
        metadata = metadata_creator()
    except Exception as exc:
        logger.warning("Cache metadata could not be created for %s", cache.namespace, exc_info=exc)
        return replace(chunk, errors=replace(chunk.errors, cache=exc))

    if metadata is None:
        return chunk

    if chunk.status is DataStatus.NORMAL:
        try:
            await cache.store(metadata.id, chunk.value, metadata.expiration_date)
        except Exception as exc:
            logger.warning("Failed to cache %r in %s", metadata.id, cache.namespace, exc_info=exc)
            return replace(chunk, errors=replace(chunk.errors, cache=exc))
        return chunk

    try:
        cached = await cache.get(metadata.id, value_type)
    except Exception as exc:
        logger.warning("Failed to read %r from %s", metadata.id, cache.namespace, exc_info=exc)
        return DataChunk.error(replace(chunk.errors, cache=exc))

    if not cached.has_value:
        return chunk

    logger.warning("Serving cached %r from %s after a failed fetch", metadata.id, cache.namespace)
    return DataChunk(cached.value, DataStatus.CACHED, chunk.errors)


def transform_chunk(chunk: DataChunk[T], transformer: Transformer[T]) -> DataChunk[T]:
    """Apply ``transformer`` to the value of a non-error chunk."""
    if chunk.status is DataStatus.ERROR:
        return chunk
    try:
        value = transformer(chunk.value)
    except Exception as exc:
        logger.debug("Transform failed: %s", exc)
        return DataChunk.error(replace(chunk.errors, process=exc))
    return replace(chunk, value=value)


__all__ = [
    "Fetcher",
    "MetadataCreator",
    "Transformer",
    "cache_chunk",
    "fetch_chunk",
    "transform_chunk",
]
