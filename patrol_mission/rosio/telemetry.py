"""Telemetry helpers wrapping odometry and the marker selector topic."""

from __future__ import annotations

from typing import Optional

from nav_msgs.msg import Odometry
from std_msgs.msg import Int32

from ..core.cells import LatestValue
from ..core.geometry import Orientation, Pose, Position
from ..core.signal import SignalLatch
from .qos import EVENTS_QOS, TELEMETRY_QOS


def pose_from_msg(msg) -> Pose:
    """Convert a geometry_msgs/Pose into the core Pose."""

    p = msg.position
    q = msg.orientation
    return Pose(Position(p.x, p.y, p.z), Orientation(q.x, q.y, q.z, q.w))


class PoseTracker:
    """Keeps the latest odometry pose for the navigation adapter."""

    def __init__(self, node, *, topic: str = "/odom", cell: Optional[LatestValue[Pose]] = None) -> None:
        self._node = node
        self._cell: LatestValue[Pose] = cell if cell is not None else LatestValue()
        self._first_odom_logged = False
        node.create_subscription(Odometry, topic, self._on_odometry, TELEMETRY_QOS)

    @property
    def cell(self) -> LatestValue[Pose]:
        return self._cell

    def _on_odometry(self, msg: Odometry) -> None:
        pose = pose_from_msg(msg.pose.pose)
        self._cell.set(pose)
        if not self._first_odom_logged:
            self._first_odom_logged = True
            self._node.get_logger().info(
                f"Odometry received: x={pose.position.x:.2f} y={pose.position.y:.2f}"
            )


class SelectorListener:
    """Feeds marker ids into the mission selector latch."""

    def __init__(self, node, latch: SignalLatch, *, topic: str = "aruco_marker_id") -> None:
        self._node = node
        self._latch = latch
        node.create_subscription(Int32, topic, self._on_marker, EVENTS_QOS)

    def _on_marker(self, msg: Int32) -> None:
        previous = self._latch.read()
        self._latch.update(msg.data)
        if previous != msg.data:
            self._node.get_logger().info(f"Mission selector -> {msg.data}")


__all__ = ["PoseTracker", "SelectorListener", "pose_from_msg"]
