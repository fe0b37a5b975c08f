#!/usr/bin/env python3
"""Patrol controller node that delegates the mission to the core orchestrator."""

from __future__ import annotations

import pathlib
from typing import Optional, Sequence

import rclpy
from rclpy.callback_groups import MutuallyExclusiveCallbackGroup, ReentrantCallbackGroup
from rclpy.executors import MultiThreadedExecutor
from rclpy.node import Node
from std_msgs.msg import String

from ..core import MissionConfigError, PatrolController, SignalLatch, load_config
from ..core.knowledge import ActionExecutionStatus
from ..core.monitor import ExecutionMonitor
from ..core.runtime import PatrolRuntime
from ..rosio import EVENTS_QOS, STATE_QOS, PlanSys2Backend, SelectorListener


class RosPatrolRuntime(PatrolRuntime):
    """Concrete PatrolRuntime backed by rclpy."""

    def __init__(self, node: Node, *, state_topic: str, feedback_topic: str) -> None:
        self._node = node
        self._state_pub = node.create_publisher(String, state_topic, STATE_QOS)
        self._feedback_pub = node.create_publisher(String, feedback_topic, EVENTS_QOS)

    @property
    def logger(self):
        return self._node.get_logger()

    def now(self) -> float:
        return self._node.get_clock().now().nanoseconds / 1e9

    def publish_state(self, name: str) -> None:
        msg = String()
        msg.data = name
        self._state_pub.publish(msg)

    def report_feedback(self, feedback: Sequence[ActionExecutionStatus]) -> None:
        msg = String()
        msg.data = ExecutionMonitor.describe_progress(feedback)
        self._feedback_pub.publish(msg)
        self.logger.debug(msg.data)


class PatrolControllerNode(Node):
    """ROS2 node that loads a mission file and runs the patrol orchestrator."""

    def __init__(self) -> None:
        super().__init__("patrol_controller")
        mission_file_param = self.declare_parameter("mission_file", "").get_parameter_value().string_value
        mission_path = self._resolve_mission_path(mission_file_param)
        if mission_path is None:
            raise RuntimeError("Parameter 'mission_file' must point to a mission YAML file")
        self.get_logger().info(f"Loading mission from {mission_path}")

        tick_period_s = float(self.declare_parameter("tick_period_s", 0.2).value)
        service_timeout_s = float(self.declare_parameter("service_timeout_s", 5.0).value)
        state_topic = self.declare_parameter("state_topic", "patrol/mission_state").value
        feedback_topic = self.declare_parameter("feedback_topic", "patrol/execution_feedback").value
        selector_topic = self.declare_parameter("selector_topic", "aruco_marker_id").value
        if tick_period_s <= 0.0 or service_timeout_s <= 0.0:
            raise RuntimeError("Parameters 'tick_period_s' and 'service_timeout_s' must be positive")

        try:
            config = load_config(mission_path)
        except MissionConfigError as exc:
            raise RuntimeError(f"Failed to load mission: {exc}") from exc

        # Service responses must be processed while the tick waits on them.
        self._client_group = ReentrantCallbackGroup()
        self._tick_group = MutuallyExclusiveCallbackGroup()

        self._latch = SignalLatch()
        self._selector = SelectorListener(self, self._latch, topic=selector_topic)
        backend = PlanSys2Backend(self, timeout_s=service_timeout_s, callback_group=self._client_group)
        runtime = RosPatrolRuntime(self, state_topic=state_topic, feedback_topic=feedback_topic)
        self._controller = PatrolController(runtime, config, backend, self._latch)

        self.get_logger().info(
            "Patrol ready: robot %s, %d waypoints, patrol %s then return to selected waypoint"
            % (config.robot, len(config.waypoints), " -> ".join(config.patrol_waypoints))
        )
        self._timer = self.create_timer(tick_period_s, self._on_timer, callback_group=self._tick_group)

    def _resolve_mission_path(self, value: str) -> Optional[pathlib.Path]:
        if not value:
            return None
        path = pathlib.Path(value).expanduser()
        if not path.is_absolute():
            path = (pathlib.Path.cwd() / path).resolve()
        return path if path.is_file() else None

    def _on_timer(self) -> None:
        self._controller.tick()


def main(args: Optional[Sequence[str]] = None) -> None:
    rclpy.init(args=args)

    controller: Optional[PatrolControllerNode] = None
    executor: Optional[MultiThreadedExecutor] = None
    try:
        controller = PatrolControllerNode()
        executor = MultiThreadedExecutor()
        executor.add_node(controller)

        executor.spin()
    except Exception as exc:  # noqa: BLE001
        if controller is not None:
            controller.get_logger().error(f"Patrol controller failed: {exc}")
        else:
            print(f"Patrol controller failed: {exc}")
        raise
    finally:
        if executor is not None:
            if controller is not None:
                try:
                    executor.remove_node(controller)
                except Exception:  # noqa: BLE001
                    pass
            executor.shutdown()
        if controller is not None:
            controller.destroy_node()
        try:
            if rclpy.ok():
                rclpy.shutdown()
        except Exception:  # noqa: BLE001
            pass


if __name__ == "__main__":
    main()
