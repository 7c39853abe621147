"""Exception definitions for data sources and their collaborators."""

from __future__ import annotations


class DataSourceError(Exception):
    """Base class for data source failures."""


class CacheAlreadyEnabledError(DataSourceError):
    """Raised when caching is enabled more than once on a source."""


class NoMoreDataError(DataSourceError):
    """Raised when more data is requested from a source that has none."""


class NoDataLoadedError(DataSourceError):
    """Raised when a loaded value is required before any was published."""


class OperationCancelledError(DataSourceError):
    """Raised by fetch functions that observe their token was cancelled."""


class StoreUnavailableError(DataSourceError):
    """Raised when the backing key-value store cannot be reached."""


class RemoteFetchError(DataSourceError):
    """Generic wrapper for failures of remote HTTP sources."""


class FormStateError(DataSourceError):
    """Raised when a form operation is not allowed in the form's current status."""


class SourceNotFoundError(DataSourceError):
    """Raised when a named source is not registered."""


__all__ = [
    "CacheAlreadyEnabledError",
    "DataSourceError",
    "FormStateError",
    "NoDataLoadedError",
    "NoMoreDataError",
    "OperationCancelledError",
    "RemoteFetchError",
    "SourceNotFoundError",
    "StoreUnavailableError",
]
