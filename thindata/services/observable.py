"""Property-change notification shared by data sources and forms."""

from __future__ import annotations

from typing import Any, Callable

Listener = Callable[[str], None]


class Observable:
    """Publishes groups of attribute changes to subscribed listeners.

    Listeners receive the name of each changed property. Within one publish
    every other change is notified before ``status``, so a listener reacting
    to ``status`` always sees the complete new state.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with the name of each property that changes.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, *names: str) -> None:
        for name in names:
            for listener in list(self._listeners):
                listener(name)

    def _publish(self, **changes: Any) -> None:
        """Apply all ``changes`` before notifying listeners, ``status`` last."""
        changed = []
        for name, value in changes.items():
            attribute = f"_{name}"
            if getattr(self, attribute) is not value:
                setattr(self, attribute, value)
                changed.append(name)

        if "status" in changed:
            changed.remove("status")
            changed.append("status")
        self._notify(*changed)


__all__ = ["Listener", "Observable"]
