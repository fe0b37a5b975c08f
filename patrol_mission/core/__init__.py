"""Core patrol logic (ROS-agnostic)."""

from .cells import LatestValue
from .config import NavigationConfig, PatrolConfig, RetryConfig, load_config, parse_config
from .controller import PatrolController, PlanningBackend
from .errors import (
    CollaboratorTimeout,
    CollaboratorUnavailable,
    InvalidSignalSelector,
    MissionConfigError,
    MissionFatalError,
    NavigationServerUnavailable,
    PatrolError,
    PlanInFlightError,
    ReplanLimitExceeded,
    UnknownWaypointError,
)
from .geometry import Orientation, Pose, Position, planar_distance, progress_fraction
from .knowledge import (
    ActionExecutionStatus,
    ActionState,
    ExecutionResult,
    Plan,
    PlanItem,
    seed_problem,
)
from .monitor import ExecutionMonitor
from .navigation import NavigationActionAdapter, NavigationPhase
from .orchestrator import OrchestratorPhase, PatrolOrchestrator
from .planning import PlanRequestPipeline
from .retry import Backoff
from .signal import SelectorTable, SignalLatch
from .waypoints import WaypointRegistry

__all__ = [
    "LatestValue",
    "PatrolConfig",
    "RetryConfig",
    "NavigationConfig",
    "load_config",
    "parse_config",
    "PatrolController",
    "PlanningBackend",
    "PatrolError",
    "MissionConfigError",
    "UnknownWaypointError",
    "InvalidSignalSelector",
    "PlanInFlightError",
    "CollaboratorTimeout",
    "MissionFatalError",
    "NavigationServerUnavailable",
    "ReplanLimitExceeded",
    "CollaboratorUnavailable",
    "Position",
    "Orientation",
    "Pose",
    "planar_distance",
    "progress_fraction",
    "ActionExecutionStatus",
    "ActionState",
    "ExecutionResult",
    "Plan",
    "PlanItem",
    "seed_problem",
    "ExecutionMonitor",
    "NavigationActionAdapter",
    "NavigationPhase",
    "OrchestratorPhase",
    "PatrolOrchestrator",
    "PlanRequestPipeline",
    "Backoff",
    "SelectorTable",
    "SignalLatch",
    "WaypointRegistry",
]
