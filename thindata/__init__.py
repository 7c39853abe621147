"""Cached, observable asynchronous data sources."""

from thindata.models.data import (
    CacheMetadata,
    CacheStatus,
    DataChunk,
    DataErrors,
    DataStatus,
    FormStatus,
    PaginatedData,
    SourceStatus,
)
from thindata.models.option import NOTHING, Nothing, Option, Some
from thindata.services.cache import Cache
from thindata.services.cancellation import (
    CancellationToken,
    CancellationTokenHolder,
    CancellationTokenSource,
)
from thindata.services.data_source import DataSource
from thindata.services.data_store import DataStore, InMemoryDataStore, ValkeyDataStore
from thindata.services.error_logging import register_error_logging
from thindata.services.errors import (
    CacheAlreadyEnabledError,
    DataSourceError,
    FormStateError,
    NoDataLoadedError,
    NoMoreDataError,
    OperationCancelledError,
    StoreUnavailableError,
)
from thindata.services.form import Form
from thindata.services.paginated_source import PaginatedDataSource

__version__ = "0.1.0"

__all__ = [
    "NOTHING",
    "Cache",
    "CacheAlreadyEnabledError",
    "CacheMetadata",
    "CacheStatus",
    "CancellationToken",
    "CancellationTokenHolder",
    "CancellationTokenSource",
    "DataChunk",
    "DataErrors",
    "DataSource",
    "DataSourceError",
    "DataStatus",
    "DataStore",
    "Form",
    "FormStateError",
    "FormStatus",
    "InMemoryDataStore",
    "NoDataLoadedError",
    "NoMoreDataError",
    "Nothing",
    "OperationCancelledError",
    "Option",
    "PaginatedData",
    "PaginatedDataSource",
    "Some",
    "SourceStatus",
    "StoreUnavailableError",
    "ValkeyDataStore",
    "register_error_logging",
]
