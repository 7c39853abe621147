"""Cancellation primitives for data source operations.

A ``CancellationTokenSource`` owns a ``threading.Event``; the
``CancellationToken`` it hands out is a read-only view that fetch functions
can poll. ``CancellationTokenHolder`` keeps the source of the operation that
currently owns a data source and replaces it atomically.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from thindata.services.errors import OperationCancelledError


@dataclass(frozen=True)
class CancellationToken:
    """Read-only cancellation signal passed to fetch functions."""

    _event: threading.Event

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def raise_if_cancellation_requested(self) -> None:
        """Raise :class:`OperationCancelledError` when cancelled."""
        if self._event.is_set():
            raise OperationCancelledError()


class CancellationTokenSource:
    """Factory and controller for a single :class:`CancellationToken`."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._token = CancellationToken(self._event)

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Signal cancellation to every holder of the token."""
        self._event.set()


class CancellationTokenHolder:
    """Holds the token source of the most recent operation."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._source: CancellationTokenSource | None = None

    def create_and_cancel_previous(self) -> CancellationToken:
        """Cancel the current source, if any, and install a fresh one.

        Cancelling and replacing happen under one lock, so two concurrent
        callers always end up with exactly one live token.
        """
        with self._lock:
            if self._source is not None:
                self._source.cancel()
            self._source = CancellationTokenSource()
            return self._source.token


__all__ = [
    "CancellationToken",
    "CancellationTokenHolder",
    "CancellationTokenSource",
]
