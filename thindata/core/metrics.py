from __future__ import annotations

from prometheus_client import Counter, Histogram

CACHE_EVENTS = Counter(
    "thindata_cache_events_total",
    "Cache operations recorded by thindata.",
    labelnames=("cache", "event"),
)
SOURCE_EVENTS = Counter(
    "thindata_source_events_total",
    "Data source load operations and their outcomes.",
    labelnames=("source", "event"),
)
SOURCE_FETCH_LATENCY = Histogram(
    "thindata_source_fetch_seconds",
    "Latency of data source fetch and cache round-trips.",
    labelnames=("source",),
)
STORE_REQUESTS = Counter(
    "thindata_store_requests_total",
    "Requests issued to the backing key-value store.",
    labelnames=("operation", "result"),
)


def record_cache_event(cache: str, event: str) -> None:
    """Increment a cache event counter."""
    CACHE_EVENTS.labels(cache=cache, event=event).inc()


def record_source_event(source: str, event: str) -> None:
    """Increment a data source event counter."""
    SOURCE_EVENTS.labels(source=source, event=event).inc()


def observe_source_fetch(source: str, duration_seconds: float) -> None:
    """Record fetch round-trip latency for a data source."""
    SOURCE_FETCH_LATENCY.labels(source=source).observe(duration_seconds)


def record_store_request(operation: str, result: str) -> None:
    """Record the result of a key-value store request."""
    STORE_REQUESTS.labels(operation=operation, result=result).inc()
