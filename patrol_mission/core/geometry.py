"""Pose helpers shared across navigation and configuration (ROS-free)."""

from __future__ import annotations

import math
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass(frozen=True)
class Orientation:
    """Unit quaternion (x, y, z, w)."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    def norm(self) -> float:
        return math.sqrt(self.x ** 2 + self.y ** 2 + self.z ** 2 + self.w ** 2)


@dataclass(frozen=True)
class Pose:
    position: Position = field(default_factory=Position)
    orientation: Orientation = field(default_factory=Orientation)

    @classmethod
    def from_xy(cls, x: float, y: float, z: float = 0.0) -> "Pose":
        return cls(Position(float(x), float(y), float(z)))


def planar_distance(a: Pose, b: Pose) -> float:
    """Euclidean distance in the XY plane; z and orientation are ignored."""

    dx = a.position.x - b.position.x
    dy = a.position.y - b.position.y
    return math.sqrt(dx * dx + dy * dy)


def progress_fraction(initial: float, remaining: float) -> float:
    """Return 1 - remaining/initial clamped to [0, 1].

    A goal that started at (or inside) the target has nothing left to cover,
    so a non-positive ``initial`` counts as complete.
    """

    if initial <= 0.0:
        return 1.0
    return min(1.0, max(0.0, 1.0 - remaining / initial))


__all__ = [
    "Position",
    "Orientation",
    "Pose",
    "planar_distance",
    "progress_fraction",
]
