"""Optional values without sentinel defaults.

``Some(value)`` holds a value (which may itself be ``None``); ``NOTHING`` is the
single empty instance. Both expose ``has_value`` so callers can branch without
``isinstance`` checks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Some(Generic[T]):
    """An optional that holds a value."""

    value: T

    @property
    def has_value(self) -> bool:
        return True

    def get_or(self, default: T) -> T:
        return self.value

    def __repr__(self) -> str:
        return f"Some({self.value!r})"


class Nothing:
    """An optional without a value."""

    _instance: Nothing | None = None

    def __new__(cls) -> Nothing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def has_value(self) -> bool:
        return False

    @property
    def value(self):
        raise ValueError("Cannot get the value of an empty optional.")

    def get_or(self, default: T) -> T:
        return default

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOTHING"


NOTHING = Nothing()

Option = Union[Some[T], Nothing]


__all__ = ["NOTHING", "Nothing", "Option", "Some"]
