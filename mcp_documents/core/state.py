"""
State store - immutable snapshots with a single writer

Sessions keep their state as a frozen dataclass. Every change goes through
dispatch(), which applies a pure transition function under a lock and hands
the new snapshot to observers. Nothing mutates a snapshot in place.
"""
import logging
import threading
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

S = TypeVar("S")

Transition = Callable[[S], S]
Observer = Callable[[S], None]


class StateStore(Generic[S]):
    """Holds the current snapshot and serializes updates to it"""

    def __init__(self, initial: S):
        self._state = initial
        self._lock = threading.RLock()
        self._observers: list[Observer] = []

    @property
    def state(self) -> S:
        return self._state

    def dispatch(self, transition: Transition) -> S:
        """Apply transition to the current snapshot and publish the result"""
        with self._lock:
            new_state = transition(self._state)
            self._state = new_state
            observers = list(self._observers)

        for observer in observers:
            try:
                observer(new_state)
            except Exception:
                logger.exception("State observer failed")
        return new_state

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer; returns a function that unregisters it"""
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe
