"""Execution monitoring on top of the plan executor."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .errors import PlanInFlightError
from .knowledge import ActionExecutionStatus, ActionState, ExecutionResult, Executor, Plan


class ExecutionMonitor:
    """Owns the single in-flight plan and exposes its status to the orchestrator."""

    def __init__(self, executor: Executor) -> None:
        self._executor = executor
        self._started = False
        self.plans_started = 0

    def start(self, plan: Plan) -> bool:
        if self._started and self._executor.is_still_executing():
            raise PlanInFlightError("A plan is still executing; wait for it to terminate")
        accepted = bool(self._executor.start_plan_execution(plan))
        if accepted:
            self._started = True
            self.plans_started += 1
        return accepted

    @property
    def started(self) -> bool:
        return self._started

    def is_still_executing(self) -> bool:
        return self._executor.is_still_executing()

    def latest_feedback(self) -> List[ActionExecutionStatus]:
        return list(self._executor.get_feedback())

    def result(self) -> Optional[ExecutionResult]:
        return self._executor.get_result()

    def finished_result(self) -> Optional[ExecutionResult]:
        """Result of the current plan, or None while it runs / before any start."""

        if not self._started or self._executor.is_still_executing():
            return None
        return self._executor.get_result()

    @staticmethod
    def failed_actions(result: ExecutionResult) -> List[ActionExecutionStatus]:
        return [status for status in result.action_outcomes if status.state is ActionState.FAILED]

    @staticmethod
    def describe_progress(feedback: Sequence[ActionExecutionStatus]) -> str:
        return "".join(f"[{status.label} {status.completion * 100.0:.0f}%]" for status in feedback)


__all__ = ["ExecutionMonitor"]
