"""Circuit breaker helper for key-value store operations."""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar

from thindata.services.errors import StoreUnavailableError

logger = logging.getLogger(__name__)
T = TypeVar("T")


class StoreCircuitBreaker:
    """Fail fast while the store is known to be unavailable.

    Unlike a silent fallback, an open circuit raises
    :class:`StoreUnavailableError` so the cache error channel of the calling
    data source records the outage.
    """

    def __init__(self, timeout_seconds: float) -> None:
        if timeout_seconds < 0:
            raise ValueError(f"Circuit breaker timeout cannot be negative: {timeout_seconds}")
        self._timeout_seconds = timeout_seconds
        self._open_until = 0.0

    def is_open(self) -> bool:
        """Check if the circuit breaker is currently open."""
        return time.monotonic() < self._open_until

    def open(self) -> None:
        """Open the circuit breaker for the configured timeout."""
        self._open_until = time.monotonic() + self._timeout_seconds

    def close(self) -> None:
        """Close the circuit breaker immediately."""
        self._open_until = 0.0

    def protect(
        self, func: Callable[..., Awaitable[T]]
    ) -> Callable[..., Awaitable[T]]:
        """Decorator to guard an async store call with circuit breaker logic."""

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            if self.is_open():
                raise StoreUnavailableError(
                    f"Store circuit is open, skipping {func.__name__}."
                )
            try:
                result = await func(*args, **kwargs)
            except Exception as exc:
                logger.warning(
                    "Store circuit breaker opened for %s", func.__name__, exc_info=exc
                )
                self.open()
                raise StoreUnavailableError(str(exc) or type(exc).__name__) from exc
            self.close()
            return result

        return wrapper


__all__ = ["StoreCircuitBreaker"]
