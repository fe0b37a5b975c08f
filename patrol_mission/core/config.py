"""Mission file parser for the v1 patrol mission language."""

from __future__ import annotations

import math
import pathlib
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import yaml

from .errors import MissionConfigError
from .geometry import Orientation, Pose, Position

Connection = Tuple[str, str]


@dataclass
class RetryConfig:
    plan_backoff_initial_s: float = 0.2
    plan_backoff_max_s: float = 5.0
    plan_backoff_multiplier: float = 2.0
    max_replan_attempts: Optional[int] = 10
    startup_timeout_s: float = 60.0


@dataclass
class NavigationConfig:
    arrival_tolerance_m: float = 0.3
    server_attempt_timeout_s: float = 5.0
    server_max_attempts: int = 6
    # Nav2 may report success outside the arrival tolerance; odometry gets this long to agree.
    success_grace_s: float = 2.0
    goal_timeout_s: float = 300.0


@dataclass
class PatrolConfig:
    robot: str
    waypoints: Dict[str, Pose]
    patrol_waypoints: List[str]
    final_waypoint: str
    selector: Dict[int, str]
    home_waypoint: Optional[str] = None
    frame_id: str = "map"
    connections: List[Connection] = field(default_factory=list)
    retry: RetryConfig = field(default_factory=RetryConfig)
    navigation: NavigationConfig = field(default_factory=NavigationConfig)
    raw: Dict[str, object] = field(default_factory=dict)


def load_config(path: pathlib.Path) -> PatrolConfig:
    path = pathlib.Path(path)
    try:
        text = path.read_text()
    except OSError as exc:
        raise MissionConfigError(f"Cannot read mission file {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise MissionConfigError(f"Mission file {path} is not valid YAML: {exc}") from exc
    return parse_config(data or {})


def parse_config(data: object) -> PatrolConfig:
    if not isinstance(data, dict):
        raise MissionConfigError("Mission file must contain a mapping")
    if data.get("api_version") != 1:
        raise MissionConfigError("Mission 'api_version' must be 1")

    robot = data.get("robot")
    if not isinstance(robot, str) or not robot.strip():
        raise MissionConfigError("Mission must name the 'robot' instance")

    waypoints = _parse_waypoints(data.get("waypoints"))

    patrol = data.get("patrol")
    if not isinstance(patrol, dict):
        raise MissionConfigError("Mission 'patrol' must be a mapping")
    patrol_waypoints = patrol.get("waypoints")
    if not isinstance(patrol_waypoints, list) or not patrol_waypoints:
        raise MissionConfigError("Mission 'patrol.waypoints' must be a non-empty list")
    patrol_waypoints = [str(wp) for wp in patrol_waypoints]
    final_waypoint = str(patrol.get("final_waypoint", patrol_waypoints[-1]))

    home = data.get("home_waypoint")
    home_waypoint = str(home) if home is not None else None

    config = PatrolConfig(
        robot=robot.strip(),
        waypoints=waypoints,
        patrol_waypoints=patrol_waypoints,
        final_waypoint=final_waypoint,
        selector=_parse_selector(data.get("selector")),
        home_waypoint=home_waypoint,
        frame_id=str(data.get("frame_id", "map")),
        connections=_parse_connections(data.get("connections")),
        retry=_parse_retry(data.get("retry")),
        navigation=_parse_navigation(data.get("navigation")),
        raw=data,
    )
    _validate_references(config)
    return config


def _parse_waypoints(value: object) -> Dict[str, Pose]:
    if not isinstance(value, dict) or not value:
        raise MissionConfigError("Mission 'waypoints' must be a non-empty mapping")
    parsed: Dict[str, Pose] = {}
    for name, entry in value.items():
        name = str(name)
        if not isinstance(entry, dict):
            raise MissionConfigError(f"Waypoint '{name}' must be a mapping")
        position = entry.get("position")
        if not isinstance(position, (list, tuple)) or len(position) not in (2, 3):
            raise MissionConfigError(f"Waypoint '{name}' position must have 2 or 3 values")
        try:
            coords = [float(v) for v in position]
        except (TypeError, ValueError) as exc:
            raise MissionConfigError(f"Waypoint '{name}' has invalid position values") from exc
        if len(coords) == 2:
            coords.append(0.0)
        orientation = _parse_orientation(name, entry.get("orientation", (0.0, 0.0, 0.0, 1.0)))
        parsed[name] = Pose(Position(*coords), orientation)
    return parsed


def _parse_orientation(name: str, value: object) -> Orientation:
    if not isinstance(value, (list, tuple)) or len(value) != 4:
        raise MissionConfigError(f"Waypoint '{name}' orientation must be a quaternion [x, y, z, w]")
    try:
        quat = Orientation(*(float(v) for v in value))
    except (TypeError, ValueError) as exc:
        raise MissionConfigError(f"Waypoint '{name}' has invalid orientation values") from exc
    if not math.isclose(quat.norm(), 1.0, abs_tol=1e-3):
        raise MissionConfigError(f"Waypoint '{name}' orientation is not a unit quaternion")
    return quat


def _parse_selector(value: object) -> Dict[int, str]:
    if not isinstance(value, dict) or not value:
        raise MissionConfigError("Mission 'selector' must map marker ids to waypoints")
    parsed: Dict[int, str] = {}
    for key, waypoint in value.items():
        if isinstance(key, bool):
            raise MissionConfigError(f"Selector key {key!r} is not an integer")
        try:
            selector = int(key)
        except (TypeError, ValueError) as exc:
            raise MissionConfigError(f"Selector key {key!r} is not an integer") from exc
        parsed[selector] = str(waypoint)
    return parsed


def _parse_connections(value: object) -> List[Connection]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise MissionConfigError("Mission 'connections' must be a list of [from, to] pairs")
    parsed: List[Connection] = []
    for idx, pair in enumerate(value):
        if not isinstance(pair, Sequence) or isinstance(pair, str) or len(pair) != 2:
            raise MissionConfigError(f"Connection #{idx} must be a [from, to] pair")
        parsed.append((str(pair[0]), str(pair[1])))
    return parsed


def _parse_retry(value: object) -> RetryConfig:
    if value is None:
        return RetryConfig()
    if not isinstance(value, dict):
        raise MissionConfigError("Mission 'retry' must be a mapping if provided")
    defaults = RetryConfig()
    max_replans = value.get("max_replan_attempts", defaults.max_replan_attempts)
    if max_replans is not None:
        try:
            max_replans = int(max_replans)
        except (TypeError, ValueError) as exc:
            raise MissionConfigError("Mission parameter 'max_replan_attempts' must be an integer") from exc
        if max_replans < 1:
            raise MissionConfigError("Mission parameter 'max_replan_attempts' must be >= 1 (or null for unlimited)")
    retry = RetryConfig(
        plan_backoff_initial_s=_coerce_float(value, "plan_backoff_initial_s", defaults.plan_backoff_initial_s),
        plan_backoff_max_s=_coerce_float(value, "plan_backoff_max_s", defaults.plan_backoff_max_s),
        plan_backoff_multiplier=_coerce_float(value, "plan_backoff_multiplier", defaults.plan_backoff_multiplier),
        max_replan_attempts=max_replans,
        startup_timeout_s=_coerce_float(value, "startup_timeout_s", defaults.startup_timeout_s),
    )
    if retry.plan_backoff_initial_s < 0 or retry.plan_backoff_max_s < retry.plan_backoff_initial_s:
        raise MissionConfigError("Plan backoff must satisfy 0 <= initial <= max")
    if retry.plan_backoff_multiplier < 1.0:
        raise MissionConfigError("Plan backoff multiplier must be >= 1")
    return retry


def _parse_navigation(value: object) -> NavigationConfig:
    if value is None:
        return NavigationConfig()
    if not isinstance(value, dict):
        raise MissionConfigError("Mission 'navigation' must be a mapping if provided")
    defaults = NavigationConfig()
    attempts = value.get("server_max_attempts", defaults.server_max_attempts)
    try:
        attempts = int(attempts)
    except (TypeError, ValueError) as exc:
        raise MissionConfigError("Mission parameter 'server_max_attempts' must be an integer") from exc
    nav = NavigationConfig(
        arrival_tolerance_m=_coerce_float(value, "arrival_tolerance_m", defaults.arrival_tolerance_m),
        server_attempt_timeout_s=_coerce_float(
            value, "server_attempt_timeout_s", defaults.server_attempt_timeout_s
        ),
        server_max_attempts=attempts,
        success_grace_s=_coerce_float(value, "success_grace_s", defaults.success_grace_s),
        goal_timeout_s=_coerce_float(value, "goal_timeout_s", defaults.goal_timeout_s),
    )
    if nav.arrival_tolerance_m <= 0:
        raise MissionConfigError("Mission parameter 'arrival_tolerance_m' must be positive")
    if nav.server_attempt_timeout_s <= 0 or nav.server_max_attempts < 1:
        raise MissionConfigError("Navigation server wait needs a positive timeout and at least one attempt")
    if nav.success_grace_s < 0 or nav.goal_timeout_s <= 0:
        raise MissionConfigError("Navigation 'success_grace_s' must be >= 0 and 'goal_timeout_s' positive")
    return nav


def _coerce_float(container: Dict[str, object], key: str, default: float) -> float:
    value = container.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise MissionConfigError(f"Mission parameter '{key}' must be a number") from exc


def _validate_references(config: PatrolConfig) -> None:
    known = config.waypoints
    for wp in config.patrol_waypoints:
        if wp not in known:
            raise MissionConfigError(f"Patrol waypoint '{wp}' is not defined in 'waypoints'")
    if config.final_waypoint not in known:
        raise MissionConfigError(f"Final waypoint '{config.final_waypoint}' is not defined in 'waypoints'")
    if config.home_waypoint is not None and config.home_waypoint not in known:
        raise MissionConfigError(f"Home waypoint '{config.home_waypoint}' is not defined in 'waypoints'")
    for selector, wp in config.selector.items():
        if wp not in known:
            raise MissionConfigError(f"Selector {selector} targets unknown waypoint '{wp}'")
    for src, dst in config.connections:
        for wp in (src, dst):
            if wp not in known:
                raise MissionConfigError(f"Connection {src} -> {dst} uses unknown waypoint '{wp}'")


__all__ = [
    "PatrolConfig",
    "RetryConfig",
    "NavigationConfig",
    "load_config",
    "parse_config",
]
