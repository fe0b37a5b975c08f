"""Phase machine driving the patrol-then-return mission (ROS-free)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Final, List, Optional

from .config import PatrolConfig
from .errors import CollaboratorTimeout, InvalidSignalSelector, ReplanLimitExceeded
from .knowledge import (
    ActionExecutionStatus,
    ActionState,
    ExecutionResult,
    ProblemStore,
    conjunction,
    patrolled,
    robot_at,
)
from .monitor import ExecutionMonitor
from .planning import PlanRequestPipeline
from .retry import Backoff
from .runtime import LoggerLike, PatrolRuntime
from .signal import SelectorTable, SignalLatch
from .stats import PatrolStats

STATE_MISSION_COMPLETE: Final = "MISSION_COMPLETE"


class OrchestratorPhase(Enum):
    STARTING = "STARTING"
    PATROL_MONITORING = "PATROL_MONITORING"
    RETURN_MONITORING = "RETURN_MONITORING"


@dataclass
class PatrolContext:
    runtime: PatrolRuntime
    config: PatrolConfig
    problem: ProblemStore
    pipeline: PlanRequestPipeline
    monitor: ExecutionMonitor
    latch: SignalLatch

    def __post_init__(self) -> None:
        self.selector = SelectorTable(self.config.selector)
        self.backoff = Backoff.from_config(self.config.retry)
        self.stats = PatrolStats()
        self.selected_waypoint: Optional[str] = None
        self.cycle_complete = False
        self._last_log: Dict[str, float] = {}
        self._last_failed_result: Optional[ExecutionResult] = None

    # ------------------------------------------------------------------
    # Convenience helpers

    @property
    def logger(self) -> LoggerLike:
        return self.runtime.logger

    def now(self) -> float:
        return self.runtime.now()

    def publish_state(self, name: str) -> None:
        self.runtime.publish_state(name)

    def log_throttled(self, key: str, message: str, *, warn: bool = False, period_s: float = 1.0) -> None:
        now = self.now()
        last = self._last_log.get(key)
        if last is not None and (now - last) < period_s:
            return
        self._last_log[key] = now
        if warn:
            self.logger.warn(message)
        else:
            self.logger.info(message)

    def set_goal(self, formula: str) -> bool:
        """Write the goal; False (with the backoff armed) when it did not stick."""

        try:
            accepted = self.problem.set_goal(formula)
        except CollaboratorTimeout as exc:
            self._record_write_failure(f"Goal update did not answer: {exc}")
            return False
        if not accepted:
            self._record_write_failure(f"Problem store rejected goal {formula}")
            return False
        self.logger.info(f"Goal set: {formula}")
        return True

    def remove_predicate(self, predicate: str) -> bool:
        try:
            removed = self.problem.remove_predicate(predicate)
        except CollaboratorTimeout as exc:
            self._record_write_failure(f"Removing {predicate} did not answer: {exc}")
            return False
        if not removed:
            self.logger.warn(f"Problem store did not remove {predicate}")
        return True

    def _record_write_failure(self, reason: str) -> None:
        delay = self.backoff.record_failure(self.now())
        self.logger.warn("%s; retrying in %.1fs" % (reason, delay))

    def report_progress(self) -> List[ActionExecutionStatus]:
        feedback = self.monitor.latest_feedback()
        if feedback:
            self.runtime.report_feedback(feedback)
        return feedback

    # Planning ----------------------------------------------------------

    def plan_and_start(self, *, replan: bool) -> bool:
        """Plan from fresh snapshots and hand the plan to the executor.

        Returns True once a plan is executing. Failures arm the backoff so the
        next attempt waits; consecutive replan failures are capped.
        """

        now = self.now()
        if not self.backoff.ready(now):
            return False
        self.stats.plan_requests += 1
        if replan:
            self.stats.replans += 1
        plan = self.pipeline.plan_from_current_state()
        if plan is None:
            self.stats.plans_not_found += 1
            self._record_plan_failure(now, replan, "no plan found")
            return False
        if not self.monitor.start(plan):
            self.stats.plans_rejected += 1
            self._record_plan_failure(now, replan, "executor rejected the plan")
            return False
        self.backoff.reset()
        return True

    def _record_plan_failure(self, now: float, replan: bool, reason: str) -> None:
        delay = self.backoff.record_failure(now)
        attempt = "Replan" if replan else "Plan"
        self.logger.warn(
            "%s attempt %d failed (%s); next attempt in %.1fs" % (attempt, self.backoff.failures, reason, delay)
        )
        limit = self.config.retry.max_replan_attempts
        if replan and limit is not None and self.backoff.failures >= limit:
            raise ReplanLimitExceeded(self.backoff.failures, self._goal_for_report())

    def _goal_for_report(self) -> str:
        try:
            return self.problem.get_goal()
        except CollaboratorTimeout:
            return "<unavailable>"

    # Failure handling --------------------------------------------------

    def handle_failure(self, result: ExecutionResult, feedback: List[ActionExecutionStatus]) -> None:
        if result is not self._last_failed_result:
            self._last_failed_result = result
            failed = ExecutionMonitor.failed_actions(result) or [
                status for status in feedback if status.state is ActionState.FAILED
            ]
            for status in failed:
                self.stats.failed_actions += 1
                self.logger.error(f"[{status.label}] finished with error: {status.message or 'no message'}")
            if not failed:
                self.logger.error("Plan execution failed without a failed action report")
        if self.plan_and_start(replan=True):
            self.logger.info("Replanned; new plan started")


class Phase(ABC):
    """Lifecycle interface for orchestrator phases. Keep persistent data in PatrolContext."""

    phase: OrchestratorPhase

    def enter(self, ctx: PatrolContext) -> None:  # pragma: no cover - default noop
        pass

    @abstractmethod
    def tick(self, ctx: PatrolContext) -> Optional[type["Phase"]]:
        """Return the next phase class or None to remain."""
        raise NotImplementedError

    def exit(self, ctx: PatrolContext) -> None:  # pragma: no cover - default noop
        pass


class StartingPhase(Phase):
    phase = OrchestratorPhase.STARTING

    def __init__(self) -> None:
        self._goal_set = False

    def enter(self, ctx: PatrolContext) -> None:
        ctx.stats.mark_started(ctx.now())

    def tick(self, ctx: PatrolContext) -> Optional[type[Phase]]:
        if ctx.monitor.started and ctx.monitor.is_still_executing():
            ctx.log_throttled("starting_wait", "Waiting for the previous plan to terminate")
            return None
        if not ctx.backoff.ready(ctx.now()):
            return None
        if not self._goal_set:
            robot = ctx.config.robot
            goal = conjunction(
                robot_at(robot, ctx.config.final_waypoint),
                *(patrolled(wp) for wp in ctx.config.patrol_waypoints),
            )
            if not ctx.set_goal(goal):
                return None
            self._goal_set = True
        if ctx.plan_and_start(replan=False):
            ctx.logger.info("Patrol plan started")
            return PatrolMonitoringPhase
        return None


class PatrolMonitoringPhase(Phase):
    phase = OrchestratorPhase.PATROL_MONITORING

    def __init__(self) -> None:
        # Patrol waypoints whose patrolled fact is still in the problem; None until the patrol succeeds.
        self._uncleaned: Optional[List[str]] = None
        self._goal_target: Optional[str] = None

    def tick(self, ctx: PatrolContext) -> Optional[type[Phase]]:
        feedback = ctx.report_progress()
        result = ctx.monitor.finished_result()
        if result is None:
            return None
        if not result.success:
            ctx.handle_failure(result, feedback)
            return None
        return self._on_patrol_complete(ctx)

    def _on_patrol_complete(self, ctx: PatrolContext) -> Optional[type[Phase]]:
        if self._uncleaned is None:
            ctx.logger.info("Patrol finished successfully")
            ctx.stats.patrol_completed_at = ctx.now()
            self._uncleaned = list(ctx.config.patrol_waypoints)
        if not ctx.backoff.ready(ctx.now()):
            return None
        # Stale patrolled facts would satisfy the next patrol goal immediately.
        while self._uncleaned:
            if not ctx.remove_predicate(patrolled(self._uncleaned[0])):
                return None
            self._uncleaned.pop(0)
        try:
            target = ctx.selector.resolve(ctx.latch.read())
        except InvalidSignalSelector as exc:
            ctx.log_throttled("selector", f"Invalid state: {exc}; waiting for a valid selector", warn=True)
            return None
        if target != self._goal_target:
            # Whatever goal the store holds now is not the one for this target.
            self._goal_target = None
            if not ctx.set_goal(conjunction(robot_at(ctx.config.robot, target))):
                return None
            self._goal_target = target
        if ctx.plan_and_start(replan=False):
            ctx.selected_waypoint = target
            ctx.logger.info(f"Return plan to {target} started")
            return ReturnMonitoringPhase
        return None


class ReturnMonitoringPhase(Phase):
    phase = OrchestratorPhase.RETURN_MONITORING

    def tick(self, ctx: PatrolContext) -> Optional[type[Phase]]:
        if ctx.cycle_complete:
            return None
        feedback = ctx.report_progress()
        result = ctx.monitor.finished_result()
        if result is None:
            return None
        if not result.success:
            ctx.handle_failure(result, feedback)
            return None
        target = ctx.selected_waypoint
        if not ctx.backoff.ready(ctx.now()):
            return None
        if target is not None and not ctx.remove_predicate(robot_at(ctx.config.robot, target)):
            return None
        ctx.cycle_complete = True
        ctx.stats.completed_at = ctx.now()
        ctx.logger.info(f"Return to {target} finished successfully")
        ctx.logger.info(f"Mission statistics: {ctx.stats.summary()}")
        ctx.publish_state(STATE_MISSION_COMPLETE)
        return None


class PatrolOrchestrator:
    def __init__(self, ctx: PatrolContext) -> None:
        self._ctx = ctx
        self._state: Phase = StartingPhase()
        self._state.enter(ctx)
        ctx.publish_state(self._state.phase.value)

    @property
    def phase(self) -> OrchestratorPhase:
        return self._state.phase

    @property
    def context(self) -> PatrolContext:
        return self._ctx

    @property
    def mission_complete(self) -> bool:
        return self._ctx.cycle_complete

    def tick(self) -> None:
        next_state_cls = self._state.tick(self._ctx)
        if next_state_cls is not None:
            self._transition(next_state_cls)

    def _transition(self, state_cls: type[Phase]) -> None:
        self._state.exit(self._ctx)
        self._state = state_cls()
        self._state.enter(self._ctx)
        self._ctx.logger.info(f"Orchestrator phase -> {self._state.phase.value}")
        self._ctx.publish_state(self._state.phase.value)


__all__ = [
    "OrchestratorPhase",
    "PatrolContext",
    "PatrolOrchestrator",
    "Phase",
    "StartingPhase",
    "PatrolMonitoringPhase",
    "ReturnMonitoringPhase",
    "STATE_MISSION_COMPLETE",
]
