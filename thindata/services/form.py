"""Input forms that load their initial input once and can then be submitted."""

from __future__ import annotations

import logging
import threading
from typing import Awaitable, Callable, Generic, TypeVar

from thindata.core.metrics import record_source_event
from thindata.models.data import DataStatus, FormStatus
from thindata.services.errors import FormStateError
from thindata.services.observable import Observable
from thindata.services.pipeline import fetch_chunk

logger = logging.getLogger(__name__)
T = TypeVar("T")

_NOT_SUBMITTABLE = (FormStatus.NONE, FormStatus.INITIALIZING, FormStatus.SUBMITTING)


class Form(Observable, Generic[T]):
    """A form whose ``input`` is loaded by ``loader`` and sent by ``submitter``.

    ``input`` is usually a mutable object that callers fill in between
    :meth:`initialize` and :meth:`submit`. Listeners are notified of
    ``input`` and ``error`` before ``status``.
    """

    def __init__(
        self,
        loader: Callable[[], Awaitable[T]],
        submitter: Callable[[T], Awaitable[None]],
        *,
        name: str | None = None,
    ) -> None:
        super().__init__()
        self._name = name or type(self).__name__
        self._loader = loader
        self._submitter = submitter
        # Guards the status check of each operation; listeners run outside it.
        self._lock = threading.Lock()

        self._input: T | None = None
        self._status = FormStatus.NONE
        self._error: Exception | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def input(self) -> T | None:
        return self._input

    @property
    def status(self) -> FormStatus:
        return self._status

    @property
    def error(self) -> Exception | None:
        """The error of the last initialization or submission, if any."""
        return self._error

    async def initialize(self) -> None:
        """Load the initial input.

        A failed initialization returns the form to ``NONE`` with ``error``
        set, so it can be initialized again.
        """
        with self._lock:
            if self._status is not FormStatus.NONE:
                raise FormStateError(f"{self._name} cannot be initialized more than once.")
            self._status = FormStatus.INITIALIZING
        self._notify("status")

        try:
            chunk = await fetch_chunk(self._loader)
        except BaseException:
            self._publish(status=FormStatus.NONE)
            raise

        if chunk.status is DataStatus.NORMAL:
            record_source_event(self._name, "form_initialized")
            self._publish(input=chunk.value, error=None, status=FormStatus.INITIALIZED)
        else:
            record_source_event(self._name, "form_initialization_failed")
            self._publish(error=chunk.errors.fetch, status=FormStatus.NONE)

    async def submit(self) -> None:
        """Submit the current input; a failure is kept in ``error``."""
        with self._lock:
            if self._status in _NOT_SUBMITTABLE:
                raise FormStateError(
                    f"{self._name} cannot be submitted while its status is {self._status.value}."
                )
            previous = self._status
            self._status = FormStatus.SUBMITTING
        self._notify("status")

        error: Exception | None = None
        try:
            await self._submitter(self._input)
        except Exception as exc:
            logger.debug("Submission of %s failed: %s", self._name, exc)
            error = exc
        except BaseException:
            self._publish(status=previous)
            raise

        record_source_event(
            self._name, "form_submitted" if error is None else "form_submission_failed"
        )
        self._publish(error=error, status=FormStatus.SUBMITTED)


__all__ = ["Form"]
