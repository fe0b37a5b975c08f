"""Mission selector latch fed by the marker detector."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from .cells import LatestValue
from .errors import InvalidSignalSelector


class SignalLatch:
    """Last-write-wins holder for the mission selector.

    ``read()`` returns ``None`` until the first value arrives; there is no
    sentinel integer for "unset".
    """

    def __init__(self) -> None:
        self._cell: LatestValue[int] = LatestValue()

    def update(self, value: int) -> None:
        self._cell.set(int(value))

    def read(self) -> Optional[int]:
        return self._cell.get()

    @property
    def is_set(self) -> bool:
        return self._cell.get() is not None


class SelectorTable:
    """Fixed selector -> waypoint lookup."""

    def __init__(self, mapping: Mapping[int, str]) -> None:
        self._mapping: Mapping[int, str] = MappingProxyType(dict(mapping))

    def resolve(self, value: Optional[int]) -> str:
        if value is None or value not in self._mapping:
            raise InvalidSignalSelector(value)
        return self._mapping[value]


__all__ = ["SignalLatch", "SelectorTable"]
