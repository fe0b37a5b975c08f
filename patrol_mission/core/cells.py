"""Thread-safe hand-off between ROS callbacks and the tick loop."""

from __future__ import annotations

import threading
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class LatestValue(Generic[T]):
    """Most-recent-value cell: writers overwrite, readers get a snapshot.

    Callbacks run on executor threads while the state machines read from a
    timer, so every crossing goes through the lock.
    """

    def __init__(self, initial: Optional[T] = None) -> None:
        self._lock = threading.Lock()
        self._value: Optional[T] = initial

    def set(self, value: T) -> None:
        with self._lock:
            self._value = value

    def get(self) -> Optional[T]:
        with self._lock:
            return self._value

    def clear(self) -> None:
        with self._lock:
            self._value = None


__all__ = ["LatestValue"]
