#!/usr/bin/env python3
"""Performer for the symbolic ``move`` action, backed by Nav2."""

from __future__ import annotations

import pathlib
from typing import Optional, Sequence

import rclpy
from rclpy.callback_groups import MutuallyExclusiveCallbackGroup, ReentrantCallbackGroup
from rclpy.executors import MultiThreadedExecutor
from rclpy.node import Node

from ..core import MissionConfigError, NavigationActionAdapter, WaypointRegistry, load_config
from ..rosio import ActionHubPerformer, Nav2NavigationService, PoseTracker

ACTION_NAME = "move"


class MoveActionNode(Node):
    """Moves the robot to the destination argument of ``(move robot from to)``."""

    def __init__(self) -> None:
        super().__init__("move_action_node")
        mission_file_param = self.declare_parameter("mission_file", "").get_parameter_value().string_value
        mission_path = self._resolve_mission_path(mission_file_param)
        if mission_path is None:
            raise RuntimeError("Parameter 'mission_file' must point to a mission YAML file")

        tick_period_s = float(self.declare_parameter("tick_period_s", 0.1).value)
        odom_topic = self.declare_parameter("odom_topic", "/odom").value
        nav_action = self.declare_parameter("navigation_action", "navigate_to_pose").value
        hub_topic = self.declare_parameter("actions_hub_topic", "actions_hub").value
        if tick_period_s <= 0.0:
            raise RuntimeError("Parameter 'tick_period_s' must be positive")

        try:
            config = load_config(mission_path)
        except MissionConfigError as exc:
            raise RuntimeError(f"Failed to load mission: {exc}") from exc

        self._io_group = ReentrantCallbackGroup()
        self._tick_group = MutuallyExclusiveCallbackGroup()

        registry = WaypointRegistry.from_config(config)
        self._pose = PoseTracker(self, topic=odom_topic)
        self._performer = ActionHubPerformer(
            self,
            ACTION_NAME,
            on_start=self._on_action_start,
            on_cancel=self._on_action_cancel,
            topic=hub_topic,
            callback_group=self._io_group,
        )
        self._navigation = Nav2NavigationService(
            self,
            action_name=nav_action,
            frame_id=registry.frame_id,
            callback_group=self._io_group,
        )
        self._adapter = NavigationActionAdapter(
            registry,
            self._navigation,
            self._performer,
            self.get_logger(),
            lambda: self.get_clock().now().nanoseconds / 1e9,
            settings=config.navigation,
            pose=self._pose.cell,
        )
        self.get_logger().info(
            "Move action ready: %d waypoints in frame '%s'" % (len(registry), registry.frame_id)
        )
        self._timer = self.create_timer(tick_period_s, self._adapter.tick, callback_group=self._tick_group)

    def _resolve_mission_path(self, value: str) -> Optional[pathlib.Path]:
        if not value:
            return None
        path = pathlib.Path(value).expanduser()
        if not path.is_absolute():
            path = (pathlib.Path.cwd() / path).resolve()
        return path if path.is_file() else None

    def _on_action_start(self, arguments: Sequence[str]) -> None:
        # (move <robot> <from> <to>)
        if len(arguments) < 3:
            self.get_logger().error(f"Move needs robot, origin and destination, got {list(arguments)}")
            self._performer.finish(False, 0.0, "Move failed: missing destination")
            return
        self._adapter.request_goal(arguments[2])

    def _on_action_cancel(self) -> None:
        self._adapter.cancel()


def main(args: Optional[Sequence[str]] = None) -> None:
    rclpy.init(args=args)

    node: Optional[MoveActionNode] = None
    executor: Optional[MultiThreadedExecutor] = None
    try:
        node = MoveActionNode()
        executor = MultiThreadedExecutor()
        executor.add_node(node)

        executor.spin()
    except Exception as exc:  # noqa: BLE001
        if node is not None:
            node.get_logger().error(f"Move action failed: {exc}")
        else:
            print(f"Move action failed: {exc}")
        raise
    finally:
        if executor is not None:
            if node is not None:
                try:
                    executor.remove_node(node)
                except Exception:  # noqa: BLE001
                    pass
            executor.shutdown()
        if node is not None:
            node.destroy_node()
        try:
            if rclpy.ok():
                rclpy.shutdown()
        except Exception:  # noqa: BLE001
            pass


if __name__ == "__main__":
    main()
