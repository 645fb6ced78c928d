"""Observable value with batched change notification."""
from __future__ import annotations

import dataclasses
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")
R = TypeVar("R")

Listener = Callable[[T, T], None]


class Store(Generic[T]):
    """Holds one immutable dataclass instance and notifies on change.

    ``set_state`` replaces fields via ``dataclasses.replace``. Inside
    ``batch`` notifications are held back until the outermost batch
    returns, then listeners get one ``(current, previous)`` call if the
    value differs from the one at batch start.
    """

    def __init__(self, state: T) -> None:
        self._state = state
        self._listeners: list[Listener[T]] = []
        self._depth = 0
        self._batch_start: T = state

    @property
    def state(self) -> T:
        return self._state

    def set_state(self, **changes: Any) -> None:
        new_state = dataclasses.replace(self._state, **changes)
        if new_state == self._state:
            return
        previous = self._state
        self._state = new_state
        if self._depth == 0:
            self._notify(previous)

    def subscribe(self, listener: Listener[T]) -> Callable[[], None]:
        """Add a listener. Returns a callable that removes it."""
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Listener[T]) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def batch(self, fn: Callable[[], R]) -> R:
        """Run ``fn`` with notifications deferred. Nested calls join the outer batch.

        If ``fn`` raises, the outermost batch still notifies for any change
        made before the error, then the error propagates.
        """
        if self._depth == 0:
            self._batch_start = self._state
        self._depth += 1
        try:
            return fn()
        finally:
            self._depth -= 1
            if self._depth == 0 and self._state != self._batch_start:
                self._notify(self._batch_start)

    @property
    def in_batch(self) -> bool:
        return self._depth > 0

    def _notify(self, previous: T) -> None:
        current = self._state
        for listener in list(self._listeners):
            listener(current, previous)
