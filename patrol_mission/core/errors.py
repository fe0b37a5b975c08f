"""Error taxonomy shared by the patrol core and its ROS adapters."""

from __future__ import annotations


class PatrolError(RuntimeError):
    """Base class for every error raised by the patrol mission."""


class MissionConfigError(PatrolError):
    """Raised when the mission file is invalid."""


class UnknownWaypointError(PatrolError, LookupError):
    """Raised when a waypoint id is not registered."""

    def __init__(self, waypoint_id: str) -> None:
        super().__init__(f"Unknown waypoint '{waypoint_id}'")
        self.waypoint_id = waypoint_id


class InvalidSignalSelector(PatrolError):
    """Raised when the latched selector does not map to a waypoint."""

    def __init__(self, value) -> None:
        if value is None:
            message = "No mission selector received yet"
        else:
            message = f"Mission selector {value} does not map to a waypoint"
        super().__init__(message)
        self.value = value


class PlanInFlightError(PatrolError):
    """Raised when a plan is started while another one is still executing."""


class CollaboratorTimeout(PatrolError):
    """A call to an external service did not answer in time."""


class MissionFatalError(PatrolError):
    """Conditions an operator has to look at; these propagate out of tick()."""


class NavigationServerUnavailable(MissionFatalError):
    def __init__(self, attempts: int, waited_s: float) -> None:
        super().__init__(
            f"Navigation action server unavailable after {attempts} attempts ({waited_s:.1f}s)"
        )
        self.attempts = attempts
        self.waited_s = waited_s


class ReplanLimitExceeded(MissionFatalError):
    def __init__(self, attempts: int, goal: str) -> None:
        super().__init__(f"Gave up replanning after {attempts} failed attempts (goal {goal})")
        self.attempts = attempts
        self.goal = goal


class CollaboratorUnavailable(MissionFatalError):
    """Planning services did not come up within the startup timeout."""


__all__ = [
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
]
