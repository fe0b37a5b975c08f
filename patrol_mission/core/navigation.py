"""Single-waypoint navigation action (ROS-free).

The adapter is split in two layers:

* ``transition(state, event, ...)`` is a pure function over immutable states
  that returns the next state plus a list of effects. It never touches a
  service, so every path can be tested with plain values.
* ``NavigationActionAdapter`` feeds it events from the tick loop and from the
  navigation callbacks, then executes the returned effects against the
  navigation service and the action reporter.

Navigation feedback arrives on an executor thread; it is pushed into a
``queue.SimpleQueue`` and drained by ``tick()`` so the state is only ever
touched from the tick.
"""

from __future__ import annotations

import queue
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional, Protocol, Tuple, Union

from .cells import LatestValue
from .config import NavigationConfig
from .errors import NavigationServerUnavailable, UnknownWaypointError
from .geometry import Pose, planar_distance, progress_fraction
from .runtime import LoggerLike
from .waypoints import WaypointRegistry

STATUS_STARTING = "Move starting"
STATUS_RUNNING = "Move running"
STATUS_COMPLETED = "Move completed"


class NavigationPhase(Enum):
    IDLE = "IDLE"
    AWAITING_SERVER = "AWAITING_SERVER"
    NAVIGATING = "NAVIGATING"
    ARRIVED = "ARRIVED"


# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Idle:
    phase = NavigationPhase.IDLE


@dataclass(frozen=True)
class AwaitingServer:
    waypoint_id: str
    started_at: float
    attempts: int = 1

    phase = NavigationPhase.AWAITING_SERVER


@dataclass(frozen=True)
class Navigating:
    waypoint_id: str
    target: Pose
    initial_distance: float
    last_progress: float = 0.0
    started_at: float = 0.0
    # Set once the navigation server reports success; odometry still decides arrival.
    succeeded_at: Optional[float] = None

    phase = NavigationPhase.NAVIGATING


@dataclass(frozen=True)
class Arrived:
    waypoint_id: str
    distance: float

    phase = NavigationPhase.ARRIVED


NavigationState = Union[Idle, AwaitingServer, Navigating, Arrived]


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GoalRequested:
    waypoint_id: str
    now: float


@dataclass(frozen=True)
class FeedbackReceived:
    distance_remaining: float


@dataclass(frozen=True)
class GoalSucceeded:
    now: float


@dataclass(frozen=True)
class GoalAborted:
    reason: str


@dataclass(frozen=True)
class CancelRequested:
    pass


@dataclass(frozen=True)
class Tick:
    now: float
    server_ready: bool
    current_pose: Optional[Pose]


NavigationEvent = Union[GoalRequested, FeedbackReceived, GoalSucceeded, GoalAborted, CancelRequested, Tick]


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReportProgress:
    completion: float
    status: str


@dataclass(frozen=True)
class SubmitGoal:
    waypoint_id: str
    target: Pose


@dataclass(frozen=True)
class CancelGoal:
    pass


@dataclass(frozen=True)
class Finish:
    success: bool
    completion: float
    status: str


@dataclass(frozen=True)
class Log:
    level: str
    message: str


Effect = Union[ReportProgress, SubmitGoal, CancelGoal, Finish, Log]


def transition(
    state: NavigationState,
    event: NavigationEvent,
    *,
    registry: WaypointRegistry,
    settings: NavigationConfig,
) -> Tuple[NavigationState, List[Effect]]:
    """Pure navigation state transition."""

    if isinstance(event, CancelRequested):
        if isinstance(state, Idle):
            return state, []
        effects: List[Effect] = [Log("info", "Navigation cancelled")]
        if isinstance(state, Navigating):
            effects.insert(0, CancelGoal())
        return Idle(), effects

    if isinstance(state, Idle):
        if isinstance(event, GoalRequested):
            return AwaitingServer(event.waypoint_id, event.now), [
                ReportProgress(0.0, STATUS_STARTING),
                Log("info", "Waiting for navigation action server..."),
            ]
        return state, []

    if isinstance(event, GoalRequested):
        return state, [Log("warn", f"Navigation goal '{event.waypoint_id}' ignored: a goal is already active")]

    if isinstance(state, AwaitingServer):
        if isinstance(event, Tick):
            return _await_server(state, event, registry, settings)
        return state, []

    if isinstance(state, Navigating):
        if isinstance(event, FeedbackReceived):
            completion = progress_fraction(state.initial_distance, event.distance_remaining)
            return (
                replace(state, last_progress=completion),
                [ReportProgress(completion, STATUS_RUNNING)],
            )
        if isinstance(event, GoalAborted):
            return Idle(), [
                Log("error", f"Navigation to [{state.waypoint_id}] failed: {event.reason}"),
                Finish(False, state.last_progress, f"Move failed: {event.reason}"),
            ]
        if isinstance(event, GoalSucceeded):
            if state.succeeded_at is not None:
                return state, []
            return replace(state, succeeded_at=event.now), [
                Log("info", f"Navigation server reports [{state.waypoint_id}] reached; confirming with odometry")
            ]
        if isinstance(event, Tick):
            return _check_arrival(state, event, settings)
        return state, []

    if isinstance(state, Arrived):
        if isinstance(event, Tick):
            return Idle(), [
                Log("info", f"Goal [{state.waypoint_id}] reached!"),
                Finish(True, 1.0, STATUS_COMPLETED),
            ]
        return state, []

    return state, []


def _check_arrival(
    state: Navigating,
    event: Tick,
    settings: NavigationConfig,
) -> Tuple[NavigationState, List[Effect]]:
    effects: List[Effect] = []
    distance: Optional[float] = None
    if event.current_pose is not None:
        distance = planar_distance(state.target, event.current_pose)
        effects.append(Log("debug", "Reaching goal, distance: %.3f" % distance))
        if distance < settings.arrival_tolerance_m:
            return Arrived(state.waypoint_id, distance), effects

    reason = None
    if state.succeeded_at is not None and event.now - state.succeeded_at >= settings.success_grace_s:
        where = "at an unknown pose" if distance is None else "%.2fm away" % distance
        reason = f"navigation reported success but the robot is {where}"
    elif event.now - state.started_at >= settings.goal_timeout_s:
        reason = "no arrival within %.1fs" % settings.goal_timeout_s
        effects.append(CancelGoal())
    if reason is None:
        return state, effects
    return Idle(), effects + [
        Log("error", f"Navigation to [{state.waypoint_id}] failed: {reason}"),
        Finish(False, state.last_progress, f"Move failed: {reason}"),
    ]


def _await_server(
    state: AwaitingServer,
    event: Tick,
    registry: WaypointRegistry,
    settings: NavigationConfig,
) -> Tuple[NavigationState, List[Effect]]:
    if event.server_ready and event.current_pose is not None:
        try:
            target = registry.lookup(state.waypoint_id)
        except UnknownWaypointError as exc:
            return Idle(), [Log("error", str(exc)), Finish(False, 0.0, f"Move failed: {exc}")]
        initial = planar_distance(target, event.current_pose)
        return Navigating(state.waypoint_id, target, initial, started_at=event.now), [
            Log("info", "Navigation action server ready"),
            Log("info", f"Start navigation to [{state.waypoint_id}] (distance {initial:.2f})"),
            SubmitGoal(state.waypoint_id, target),
        ]

    waited = event.now - state.started_at
    if waited < settings.server_attempt_timeout_s * state.attempts:
        return state, []
    if state.attempts >= settings.server_max_attempts:
        if event.server_ready:
            reason = f"no pose received after {waited:.1f}s"
        else:
            reason = str(NavigationServerUnavailable(state.attempts, waited))
        return Idle(), [Log("error", reason), Finish(False, 0.0, f"Move failed: {reason}")]
    waiting_for = "current pose" if event.server_ready else "navigation action server"
    return AwaitingServer(state.waypoint_id, state.started_at, state.attempts + 1), [
        Log("warn", f"Waiting for {waiting_for}... (attempt {state.attempts + 1}/{settings.server_max_attempts})")
    ]


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------

class GoalHandle(Protocol):
    def cancel(self) -> None: ...


class NavigationService(Protocol):
    def server_is_ready(self) -> bool: ...

    def send_goal(
        self,
        target: Pose,
        on_feedback: Callable[[float], None],
        on_aborted: Callable[[str], None],
        on_succeeded: Callable[[], None],
    ) -> GoalHandle: ...


class ActionReporter(Protocol):
    def send_feedback(self, completion: float, status: str) -> None: ...

    def finish(self, success: bool, completion: float, status: str) -> None: ...


class NavigationActionAdapter:
    """Drives one navigate-to-waypoint goal at a time."""

    def __init__(
        self,
        registry: WaypointRegistry,
        service: NavigationService,
        reporter: ActionReporter,
        logger: LoggerLike,
        clock: Callable[[], float],
        *,
        settings: Optional[NavigationConfig] = None,
        pose: Optional[LatestValue[Pose]] = None,
    ) -> None:
        self._registry = registry
        self._service = service
        self._reporter = reporter
        self._logger = logger
        self._clock = clock
        self._settings = settings or NavigationConfig()
        self._pose: LatestValue[Pose] = pose if pose is not None else LatestValue()
        self._events: "queue.SimpleQueue[Tuple[Optional[int], NavigationEvent]]" = queue.SimpleQueue()
        self._state: NavigationState = Idle()
        self._handle: Optional[GoalHandle] = None
        self._goal_serial = 0

    @property
    def state(self) -> NavigationState:
        return self._state

    @property
    def phase(self) -> NavigationPhase:
        return self._state.phase

    @property
    def pose(self) -> LatestValue[Pose]:
        return self._pose

    def update_pose(self, pose: Pose) -> None:
        self._pose.set(pose)

    def request_goal(self, waypoint_id: str) -> None:
        self._events.put((None, GoalRequested(waypoint_id, self._clock())))

    def cancel(self) -> None:
        self._events.put((None, CancelRequested()))

    def tick(self) -> None:
        while True:
            try:
                serial, event = self._events.get_nowait()
            except queue.Empty:
                break
            if serial is not None and serial != self._goal_serial:
                continue
            self._apply(event)
        ready = self._state.phase is NavigationPhase.AWAITING_SERVER and self._service.server_is_ready()
        self._apply(Tick(self._clock(), ready, self._pose.get()))

    def _apply(self, event: NavigationEvent) -> None:
        self._state, effects = transition(
            self._state, event, registry=self._registry, settings=self._settings
        )
        for effect in effects:
            self._execute(effect)

    def _execute(self, effect: Effect) -> None:
        if isinstance(effect, ReportProgress):
            self._reporter.send_feedback(effect.completion, effect.status)
        elif isinstance(effect, SubmitGoal):
            self._submit(effect.target)
        elif isinstance(effect, CancelGoal):
            self._drop_goal(cancel=True)
        elif isinstance(effect, Finish):
            self._drop_goal(cancel=False)
            self._reporter.finish(effect.success, effect.completion, effect.status)
        elif isinstance(effect, Log):
            getattr(self._logger, effect.level)(effect.message)

    def _submit(self, target: Pose) -> None:
        self._goal_serial += 1
        serial = self._goal_serial

        # Events carry the goal serial; tick() drops those of a superseded goal.
        def on_feedback(distance_remaining: float) -> None:
            self._events.put((serial, FeedbackReceived(float(distance_remaining))))

        def on_aborted(reason: str) -> None:
            self._events.put((serial, GoalAborted(reason)))

        def on_succeeded() -> None:
            self._events.put((serial, GoalSucceeded(self._clock())))

        self._handle = self._service.send_goal(target, on_feedback, on_aborted, on_succeeded)
        self._logger.info("Goal sent to navigation action server")

    def _drop_goal(self, *, cancel: bool) -> None:
        handle, self._handle = self._handle, None
        self._goal_serial += 1
        if cancel and handle is not None:
            handle.cancel()


__all__ = [
    "NavigationPhase",
    "Idle",
    "AwaitingServer",
    "Navigating",
    "Arrived",
    "NavigationState",
    "GoalRequested",
    "FeedbackReceived",
    "GoalSucceeded",
    "GoalAborted",
    "CancelRequested",
    "Tick",
    "ReportProgress",
    "SubmitGoal",
    "CancelGoal",
    "Finish",
    "Log",
    "transition",
    "NavigationService",
    "ActionReporter",
    "GoalHandle",
    "NavigationActionAdapter",
]
