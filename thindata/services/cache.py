"""
Namespaced cache with expiration dates.

Each cached chunk is persisted as two store entries under a shared namespace
prefix: ``Cache_<namespace>_<id>`` holds the value and
``Cache_<namespace>_Date_<id>`` holds its expiration timestamp. Values are only
returned while their expiration timestamp lies strictly in the future; stale
entries are deleted when they are read.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter

from thindata.core.metrics import record_cache_event
from thindata.models.option import NOTHING, Option, Some
from thindata.services.data_store import DataStore

logger = logging.getLogger(__name__)

# Entries without an expiration date are stored with this timestamp.
NEVER_EXPIRES = datetime.max.replace(tzinfo=timezone.utc)

# Segment used for the ``None`` id, so that it never shares keys with "".
_NULL_ID = "\0"

_DATE_ADAPTER = TypeAdapter(datetime)


@lru_cache(maxsize=128)
def _adapter_for(value_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(value_type)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class Cache:
    """Stores values with optional expiration dates in a namespace of a store.

    Keys are plain concatenations, so some ids share keys: the value key of id
    ``"Date_x"`` is the date key of id ``"x"``, and namespace ``"a_b"`` with id
    ``"c"`` uses the same keys as namespace ``"a"`` with id ``"b_c"``. Callers
    that need isolation must pick ids and namespaces that avoid these shapes.
    """

    def __init__(self, namespace: str, store: DataStore) -> None:
        if not isinstance(namespace, str):
            raise TypeError("Cache namespace must be a string.")
        if store is None:
            raise TypeError("Cache store cannot be None.")

        self._namespace = namespace
        self._store = store
        self._value_prefix = f"Cache_{namespace}_"
        self._date_prefix = f"{self._value_prefix}Date_"

    @property
    def namespace(self) -> str:
        return self._namespace

    def value_key(self, id: str | None) -> str:
        return self._value_prefix + (_NULL_ID if id is None else id)

    def date_key(self, id: str | None) -> str:
        return self._date_prefix + (_NULL_ID if id is None else id)

    async def get(self, id: str | None, value_type: Any = None) -> Option[Any]:
        """Return the value cached under ``id`` if it has not expired.

        When ``value_type`` is given, the stored payload is validated against
        it, which turns JSON structures from serializing stores back into
        typed values.
        """
        stored_date = await self._store.load(self.date_key(id))
        if not stored_date.has_value:
            record_cache_event(self._namespace, "miss")
            return NOTHING

        expiration_date = _as_utc(_DATE_ADAPTER.validate_python(stored_date.value))
        if expiration_date <= datetime.now(timezone.utc):
            logger.debug("Dropping expired cache entry %r in %s", id, self._namespace)
            await self._store.delete(self.date_key(id))
            await self._store.delete(self.value_key(id))
            record_cache_event(self._namespace, "expired")
            return NOTHING

        stored_value = await self._store.load(self.value_key(id))
        if not stored_value.has_value:
            record_cache_event(self._namespace, "miss")
            return NOTHING

        record_cache_event(self._namespace, "hit")
        if value_type is None:
            return stored_value
        return Some(_adapter_for(value_type).validate_python(stored_value.value))

    async def store(
        self, id: str | None, value: Any, expiration_date: datetime | None = None
    ) -> None:
        """Store ``value`` under ``id``; no expiration date means it never expires."""
        expires = NEVER_EXPIRES if expiration_date is None else _as_utc(expiration_date)
        await self._store.store(self.date_key(id), expires)
        await self._store.store(self.value_key(id), value)
        record_cache_event(self._namespace, "store")


__all__ = ["Cache", "NEVER_EXPIRES"]
