"""Read-only waypoint table used to resolve navigation targets."""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterator, Mapping

from .config import PatrolConfig
from .errors import UnknownWaypointError
from .geometry import Pose


class WaypointRegistry:
    def __init__(self, waypoints: Mapping[str, Pose], *, frame_id: str = "map") -> None:
        self._waypoints: Mapping[str, Pose] = MappingProxyType(dict(waypoints))
        self.frame_id = frame_id

    @classmethod
    def from_config(cls, config: PatrolConfig) -> "WaypointRegistry":
        return cls(config.waypoints, frame_id=config.frame_id)

    def lookup(self, waypoint_id: str) -> Pose:
        try:
            return self._waypoints[waypoint_id]
        except KeyError:
            raise UnknownWaypointError(waypoint_id) from None

    def ids(self) -> Iterator[str]:
        return iter(self._waypoints)

    def as_dict(self) -> Dict[str, Pose]:
        return dict(self._waypoints)

    def __contains__(self, waypoint_id: object) -> bool:
        return waypoint_id in self._waypoints

    def __len__(self) -> int:
        return len(self._waypoints)


__all__ = ["WaypointRegistry"]
