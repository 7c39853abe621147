"""Data model shared by the cache, the pipeline and the data sources."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar, Generic, TypeVar

from thindata.models.option import NOTHING, Option

T = TypeVar("T")
TToken = TypeVar("TToken")


class DataStatus(str, Enum):
    """Outcome of a single chunk of data."""

    NORMAL = "normal"
    CACHED = "cached"
    ERROR = "error"


class SourceStatus(str, Enum):
    """States a data source can be in."""

    NONE = "none"
    LOADING = "loading"
    LOADING_MORE = "loading_more"
    NORMAL = "normal"
    CACHED = "cached"
    ERROR = "error"

    @classmethod
    def from_data_status(cls, status: DataStatus) -> SourceStatus:
        return cls(status.value)


class FormStatus(str, Enum):
    """States a form can be in."""

    NONE = "none"
    INITIALIZING = "initializing"
    INITIALIZED = "initialized"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


class CacheStatus(str, Enum):
    """Whether the published value came from the cache."""

    UNUSED = "unused"
    USED = "used"


@dataclass(frozen=True)
class CacheMetadata:
    """How a single chunk of data should be cached.

    ``id`` distinguishes chunks within a cache namespace; ``None`` and ``""``
    are distinct ids. A missing ``expiration_date`` means the entry never
    expires.
    """

    DEFAULT: ClassVar[CacheMetadata]

    id: str | None = None
    expiration_date: datetime | None = None


CacheMetadata.DEFAULT = CacheMetadata()


@dataclass(frozen=True)
class DataErrors:
    """Errors raised while fetching, caching or processing a chunk."""

    fetch: Exception | None = None
    cache: Exception | None = None
    process: Exception | None = None

    @property
    def has_errors(self) -> bool:
        return any(error is not None for error in (self.fetch, self.cache, self.process))


@dataclass(frozen=True)
class DataChunk(Generic[T]):
    """One unit of fetched, cached or transformed data."""

    value: T | None
    status: DataStatus
    errors: DataErrors = field(default_factory=DataErrors)

    def __post_init__(self) -> None:
        if self.status is DataStatus.ERROR and self.value is not None:
            raise ValueError("Chunks with an error status cannot carry a value.")

    @classmethod
    def error(cls, errors: DataErrors) -> DataChunk[T]:
        return cls(None, DataStatus.ERROR, errors)


@dataclass(frozen=True)
class PaginatedData(Generic[T, TToken]):
    """A page of data together with the token for the next page, if any."""

    value: T
    token: Option[TToken] = NOTHING


__all__ = [
    "CacheMetadata",
    "CacheStatus",
    "DataChunk",
    "DataErrors",
    "DataStatus",
    "FormStatus",
    "PaginatedData",
    "SourceStatus",
]
