"""Launch PlanSys2, the patrol controller and the move action with shared params."""

from __future__ import annotations

from pathlib import Path

import yaml
from ament_index_python.packages import get_package_share_directory
from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument, IncludeLaunchDescription, OpaqueFunction
from launch.launch_description_sources import PythonLaunchDescriptionSource
from launch.substitutions import LaunchConfiguration
from launch_ros.actions import Node


def _load_yaml(path: Path) -> dict:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError):
        return {}


def _section_params(config: dict, section: str) -> dict:
    params = config.get(section, {}).get("ros__parameters", {})
    return params if isinstance(params, dict) else {}


def _launch_setup(context, *args, **kwargs):
    params_file = Path(LaunchConfiguration("params_file").perform(context))
    mission_file = LaunchConfiguration("mission_file").perform(context)
    model_file = LaunchConfiguration("model_file").perform(context)
    namespace = LaunchConfiguration("namespace").perform(context)

    config = _load_yaml(params_file)
    controller_params = dict(_section_params(config, "patrol_controller"))
    move_params = dict(_section_params(config, "move_action_node"))
    controller_params["mission_file"] = mission_file
    move_params["mission_file"] = mission_file

    plansys2_bringup = IncludeLaunchDescription(
        PythonLaunchDescriptionSource(
            str(Path(get_package_share_directory("plansys2_bringup")) / "launch" / "plansys2_bringup_launch_monolithic.py")
        ),
        launch_arguments={"model_file": model_file, "namespace": namespace}.items(),
    )

    return [
        plansys2_bringup,
        Node(
            package="patrol_mission",
            executable="move_action",
            name="move_action_node",
            namespace=namespace,
            output="screen",
            parameters=[move_params],
        ),
        Node(
            package="patrol_mission",
            executable="patrol_controller",
            name="patrol_controller",
            namespace=namespace,
            output="screen",
            parameters=[controller_params],
        ),
    ]


def generate_launch_description() -> LaunchDescription:
    share = Path(get_package_share_directory("patrol_mission"))
    return LaunchDescription(
        [
            DeclareLaunchArgument("namespace", default_value=""),
            DeclareLaunchArgument("params_file", default_value=str(share / "param" / "patrol.yaml")),
            DeclareLaunchArgument("mission_file", default_value=str(share / "missions" / "patrol.yaml")),
            DeclareLaunchArgument("model_file", default_value=str(share / "pddl" / "patrol.pddl")),
            OpaqueFunction(function=_launch_setup),
        ]
    )
