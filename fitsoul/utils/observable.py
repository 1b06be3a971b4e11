"""Observable value cells for UI-facing state."""

import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Observable(Generic[T]):
    """A slot that pushes its current value and every later assignment.

    Mutation is expected to happen on the event loop that owns the slot;
    reads go through ``value`` or ``subscribe``.
    """

    def __init__(self, initial: T):
        self._value = initial
        self._observers: list[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        """Store a new value and notify every observer."""
        self._value = value
        for observer in list(self._observers):
            try:
                observer(value)
            except Exception:
                logger.exception("Observer raised while handling update")

    def subscribe(self, observer: Callable[[T], None]) -> Callable[[], None]:
        """Register an observer, deliver the current value, return an unsubscriber."""
        self._observers.append(observer)
        observer(self._value)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    @property
    def observer_count(self) -> int:
        return len(self._observers)
