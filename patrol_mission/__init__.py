"""Patrol mission package exposing the ROS nodes and core logic."""

from .core import (
    NavigationActionAdapter,
    PatrolConfig,
    PatrolController,
    PatrolOrchestrator,
    PatrolError,
    MissionConfigError,
    WaypointRegistry,
    load_config,
)

__all__ = [
    "PatrolController",
    "PatrolOrchestrator",
    "NavigationActionAdapter",
    "WaypointRegistry",
    "PatrolConfig",
    "PatrolError",
    "MissionConfigError",
    "load_config",
]
