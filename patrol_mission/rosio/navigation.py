"""Nav2 NavigateToPose client used by the move action."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from action_msgs.msg import GoalStatus
from geometry_msgs.msg import PoseStamped
from nav2_msgs.action import NavigateToPose
from rclpy.action import ActionClient

from ..core.geometry import Pose


def pose_stamped(node, target: Pose, frame_id: str) -> PoseStamped:
    msg = PoseStamped()
    msg.header.frame_id = frame_id
    msg.header.stamp = node.get_clock().now().to_msg()
    msg.pose.position.x = target.position.x
    msg.pose.position.y = target.position.y
    msg.pose.position.z = target.position.z
    msg.pose.orientation.x = target.orientation.x
    msg.pose.orientation.y = target.orientation.y
    msg.pose.orientation.z = target.orientation.z
    msg.pose.orientation.w = target.orientation.w
    return msg


class Nav2Goal:
    """Handle for one NavigateToPose goal; cancel() works before acceptance too."""

    def __init__(self, node) -> None:
        self._node = node
        self._lock = threading.Lock()
        self._goal_handle = None
        self._cancel_requested = False

    def cancel(self) -> None:
        with self._lock:
            self._cancel_requested = True
            handle = self._goal_handle
        if handle is not None:
            self._node.get_logger().info("Cancelling navigation goal")
            handle.cancel_goal_async()

    def _attach(self, goal_handle) -> bool:
        """Store the accepted handle; returns False when a cancel already arrived."""

        with self._lock:
            self._goal_handle = goal_handle
            cancelled = self._cancel_requested
        if cancelled:
            goal_handle.cancel_goal_async()
        return not cancelled

    @property
    def cancel_requested(self) -> bool:
        with self._lock:
            return self._cancel_requested


class Nav2NavigationService:
    """NavigationService backed by the Nav2 ``navigate_to_pose`` action."""

    def __init__(
        self,
        node,
        *,
        action_name: str = "navigate_to_pose",
        frame_id: str = "map",
        callback_group=None,
    ) -> None:
        self._node = node
        self._frame_id = frame_id
        self._client = ActionClient(node, NavigateToPose, action_name, callback_group=callback_group)

    def server_is_ready(self) -> bool:
        return self._client.server_is_ready()

    def send_goal(
        self,
        target: Pose,
        on_feedback: Callable[[float], None],
        on_aborted: Callable[[str], None],
        on_succeeded: Callable[[], None],
    ) -> Nav2Goal:
        goal = NavigateToPose.Goal()
        goal.pose = pose_stamped(self._node, target, self._frame_id)
        handle = Nav2Goal(self._node)

        def feedback_cb(feedback_msg) -> None:
            on_feedback(float(feedback_msg.feedback.distance_remaining))

        def result_cb(future) -> None:
            response = future.result()
            status: Optional[int] = getattr(response, "status", None)
            if status == GoalStatus.STATUS_SUCCEEDED:
                on_succeeded()
                return
            if status == GoalStatus.STATUS_CANCELED and handle.cancel_requested:
                return
            on_aborted(f"navigation finished with status {status}")

        def goal_response_cb(future) -> None:
            goal_handle = future.result()
            if goal_handle is None or not goal_handle.accepted:
                self._node.get_logger().error("Goal rejected by navigation action server")
                on_aborted("goal rejected")
                return
            if handle._attach(goal_handle):
                self._node.get_logger().info("Goal accepted by navigation action server")
            goal_handle.get_result_async().add_done_callback(result_cb)

        send_future = self._client.send_goal_async(goal, feedback_callback=feedback_cb)
        send_future.add_done_callback(goal_response_cb)
        return handle


__all__ = ["Nav2NavigationService", "Nav2Goal", "pose_stamped"]
