"""Patrol controller that wires a runtime and planning backend with the orchestrator."""

from __future__ import annotations

from typing import List, Optional, Protocol

from .config import PatrolConfig
from .errors import CollaboratorTimeout, CollaboratorUnavailable
from .knowledge import DomainSource, Executor, Planner, ProblemStore, seed_problem
from .monitor import ExecutionMonitor
from .orchestrator import PatrolContext, PatrolOrchestrator
from .planning import PlanRequestPipeline
from .runtime import PatrolRuntime
from .signal import SignalLatch


class PlanningBackend(Protocol):
    @property
    def domain(self) -> DomainSource: ...

    @property
    def problem(self) -> ProblemStore: ...

    @property
    def planner(self) -> Planner: ...

    @property
    def executor(self) -> Executor: ...

    def missing_collaborators(self) -> List[str]: ...


class PatrolController:
    def __init__(
        self,
        runtime: PatrolRuntime,
        config: PatrolConfig,
        backend: PlanningBackend,
        latch: SignalLatch,
    ) -> None:
        self._runtime = runtime
        self._config = config
        self._backend = backend
        pipeline = PlanRequestPipeline(backend.domain, backend.problem, backend.planner, runtime.logger)
        monitor = ExecutionMonitor(backend.executor)
        self._context = PatrolContext(runtime, config, backend.problem, pipeline, monitor, latch)
        self._orchestrator: Optional[PatrolOrchestrator] = None
        self._wait_started: Optional[float] = None
        self._last_wait_log: Optional[float] = None
        self._startup_timeout_s = config.retry.startup_timeout_s

    @property
    def orchestrator(self) -> Optional[PatrolOrchestrator]:
        return self._orchestrator

    @property
    def context(self) -> PatrolContext:
        return self._context

    def tick(self) -> None:
        if self._orchestrator is None and not self._check_collaborators_ready():
            return
        self._orchestrator.tick()

    def _check_collaborators_ready(self) -> bool:
        now = self._runtime.now()
        if self._wait_started is None:
            self._wait_started = now
        missing = self._backend.missing_collaborators()
        if missing:
            elapsed = now - self._wait_started
            if elapsed >= self._startup_timeout_s:
                raise CollaboratorUnavailable(
                    "Planning services not available after %.1fs: %s" % (elapsed, ", ".join(missing))
                )
            self._log_wait_state(f"Waiting for planning services: {', '.join(missing)}")
            return False

        self._runtime.logger.info("Planning services ready; loading initial knowledge")
        try:
            seed_problem(self._backend.problem, self._config)
        except CollaboratorTimeout as exc:
            self._log_wait_state(f"Seeding the problem did not finish: {exc}")
            return False
        self._orchestrator = PatrolOrchestrator(self._context)
        return True

    def _log_wait_state(self, message: str) -> None:
        now = self._runtime.now()
        if self._last_wait_log is None or (now - self._last_wait_log) >= 1.0:
            self._runtime.logger.info(message)
            self._last_wait_log = now


__all__ = ["PatrolController", "PlanningBackend"]
