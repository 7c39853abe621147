"""Log the errors of data sources and forms as they publish new state."""

from __future__ import annotations

import logging
from typing import Callable

from thindata.models.data import DataChunk, FormStatus, SourceStatus
from thindata.services.data_source import DataSourceBase
from thindata.services.form import Form

_LOADING_STATUSES = (SourceStatus.NONE, SourceStatus.LOADING, SourceStatus.LOADING_MORE)


def _latest_chunk(source: DataSourceBase) -> DataChunk | None:
    data = getattr(source, "data", None)
    if isinstance(data, tuple):
        return data[-1] if data else None
    return data


def register_error_logging(
    target: DataSourceBase | Form, logger: logging.Logger | None = None
) -> Callable[[], None]:
    """Log every error ``target`` publishes.

    For data sources that is each fetch, cache and process error of the
    latest chunk; for forms, failed initializations and submissions.
    Returns the function that unsubscribes the logging hook.
    """
    log = logger or logging.getLogger(__name__)
    if isinstance(target, Form):
        return target.subscribe(_form_hook(target, log))
    return target.subscribe(_source_hook(target, log))


def _source_hook(source: DataSourceBase, log: logging.Logger) -> Callable[[str], None]:
    def on_change(name: str) -> None:
        if name != "status" or source.status in _LOADING_STATUSES:
            return
        chunk = _latest_chunk(source)
        if chunk is None:
            return

        errors = chunk.errors
        if errors.fetch is not None:
            log.error("Fetch error in %s", source.name, exc_info=errors.fetch)
        if errors.cache is not None:
            log.error("Cache error in %s", source.name, exc_info=errors.cache)
        if errors.process is not None:
            log.error("Process error in %s", source.name, exc_info=errors.process)

    return on_change


def _form_hook(form: Form, log: logging.Logger) -> Callable[[str], None]:
    def on_change(name: str) -> None:
        if name != "status" or form.error is None:
            return
        if form.status is FormStatus.NONE:
            log.error("Initialization error in %s", form.name, exc_info=form.error)
        elif form.status is FormStatus.SUBMITTED:
            log.error("Submission error in %s", form.name, exc_info=form.error)

    return on_change


__all__ = ["register_error_logging"]
