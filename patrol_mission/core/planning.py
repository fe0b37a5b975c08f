"""Plan requests against the external planner."""

from __future__ import annotations

from typing import Optional

from .errors import CollaboratorTimeout
from .knowledge import DomainSnapshot, DomainSource, Plan, Planner, ProblemSnapshot, ProblemStore
from .runtime import LoggerLike


class PlanRequestPipeline:
    """Turns the current knowledge base into a plan, or ``None`` when infeasible.

    "No plan" is a normal outcome: callers retry later, after the world (or
    the goal) has changed.
    """

    def __init__(
        self,
        domain: DomainSource,
        problem: ProblemStore,
        planner: Planner,
        logger: LoggerLike,
    ) -> None:
        self._domain = domain
        self._problem = problem
        self._planner = planner
        self._logger = logger
        self.requests = 0

    def request_plan(self, domain: DomainSnapshot, problem: ProblemSnapshot) -> Optional[Plan]:
        self.requests += 1
        try:
            plan = self._planner.get_plan(domain, problem)
        except CollaboratorTimeout as exc:
            self._logger.warn(f"Planner did not answer: {exc}")
            return None
        if plan is None:
            self._logger.warn(f"Could not find plan to reach goal {self._current_goal()}")
            return None
        self._logger.info(f"Plan found with {len(plan)} actions")
        return plan

    def plan_from_current_state(self) -> Optional[Plan]:
        """Snapshot domain and problem now (never cached) and request a plan."""

        try:
            domain = self._domain.get_domain()
            problem = self._problem.get_problem()
        except CollaboratorTimeout as exc:
            self._logger.warn(f"Could not snapshot the knowledge base: {exc}")
            return None
        return self.request_plan(domain, problem)

    def _current_goal(self) -> str:
        try:
            return self._problem.get_goal()
        except CollaboratorTimeout:
            return "<unavailable>"


__all__ = ["PlanRequestPipeline"]
