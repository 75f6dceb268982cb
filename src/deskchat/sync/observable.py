"""Framework-agnostic observer used to publish engine state."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Unsubscribe = Callable[[], None]


class Observable(Generic[T]):
    """Holds a current value and pushes every replacement to subscribers.

    Values are replaced wholesale, never mutated in place, so a subscriber
    always sees a consistent snapshot.
    """

    def __init__(self, initial: T, *, name: str = "observable") -> None:
        self._value = initial
        self._name = name
        self._subscribers: list[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    def subscribe(self, callback: Callable[[T], None], *, replay: bool = True) -> Unsubscribe:
        """Register ``callback``; returns a function that removes it.

        With ``replay`` the callback immediately receives the current value.
        """
        self._subscribers.append(callback)
        if replay:
            self._deliver(callback, self._value)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def set(self, value: T) -> None:
        """Replace the current value and notify subscribers."""
        self._value = value
        for callback in list(self._subscribers):
            self._deliver(callback, value)

    def _deliver(self, callback: Callable[[T], None], value: T) -> None:
        # Subscriber failures must not unwind into polling loops.
        try:
            callback(value)
        except Exception:
            logger.exception("Subscriber of %s raised", self._name)
