from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from thindata.models.data import CacheStatus, DataChunk, DataStatus, SourceStatus
from thindata.services.data_source import DataSourceBase


def _describe(error: Exception | None) -> str | None:
    if error is None:
        return None
    message = str(error)
    return f"{type(error).__name__}: {message}" if message else type(error).__name__


class ChunkErrors(BaseModel):
    fetch: str | None = Field(None, description="Error raised while fetching.")
    cache: str | None = Field(None, description="Error raised while caching.")
    process: str | None = Field(None, description="Error raised while transforming.")


class ChunkSnapshot(BaseModel):
    status: DataStatus
    value: Any = None
    errors: ChunkErrors

    @classmethod
    def from_chunk(cls, chunk: DataChunk[Any]) -> "ChunkSnapshot":
        return cls(
            status=chunk.status,
            value=chunk.value,
            errors=ChunkErrors(
                fetch=_describe(chunk.errors.fetch),
                cache=_describe(chunk.errors.cache),
                process=_describe(chunk.errors.process),
            ),
        )


class SourceSnapshot(BaseModel):
    name: str
    status: SourceStatus
    cache_status: CacheStatus
    last_exception: str | None = Field(
        None, description="Error that explains the current status, if any."
    )
    can_fetch_more: bool
    chunks: list[ChunkSnapshot] = Field(
        default_factory=list, description="Published chunks, one per page."
    )

    @classmethod
    def from_source(cls, source: DataSourceBase) -> "SourceSnapshot":
        data = getattr(source, "data", None)
        if data is None:
            chunks: tuple[DataChunk[Any], ...] = ()
        elif isinstance(data, tuple):
            chunks = data
        else:
            chunks = (data,)
        return cls(
            name=source.name,
            status=source.status,
            cache_status=source.cache_status,
            last_exception=_describe(source.last_exception),
            can_fetch_more=source.can_fetch_more,
            chunks=[ChunkSnapshot.from_chunk(chunk) for chunk in chunks],
        )


class HealthResponse(BaseModel):
    status: str
    sources: int


__all__ = ["ChunkErrors", "ChunkSnapshot", "HealthResponse", "SourceSnapshot"]
