"""Fakes for the collaborators the patrol core talks to."""

import copy
from typing import List, Optional

import pytest

from patrol_mission.core.config import parse_config
from patrol_mission.core.errors import CollaboratorTimeout
from patrol_mission.core.knowledge import ActionExecutionStatus, ExecutionResult, Plan, PlanItem
from patrol_mission.core.monitor import ExecutionMonitor
from patrol_mission.core.orchestrator import PatrolContext
from patrol_mission.core.planning import PlanRequestPipeline
from patrol_mission.core.signal import SignalLatch


MISSION = {
    "api_version": 1,
    "robot": "r2d2",
    "home_waypoint": "wp_control",
    "waypoints": {
        "wp_control": {"position": [2.0, 2.0]},
        "wp1": {"position": [6.0, 2.0]},
        "wp2": {"position": [7.0, -5.0]},
        "wp3": {"position": [-3.0, -8.0]},
        "wp4": {"position": [-7.0, 1.5]},
    },
    "connections": [["wp_control", "wp1"], ["wp1", "wp2"], ["wp2", "wp3"], ["wp3", "wp4"], ["wp4", "wp1"]],
    "patrol": {"waypoints": ["wp1", "wp2", "wp3", "wp4"], "final_waypoint": "wp4"},
    "selector": {0: "wp1", 1: "wp2", 2: "wp3", 3: "wp4"},
    "retry": {
        "plan_backoff_initial_s": 0.2,
        "plan_backoff_max_s": 1.0,
        "max_replan_attempts": 3,
        "startup_timeout_s": 10.0,
    },
}


class FakeLogger:
    def __init__(self) -> None:
        self.records = []

    def info(self, msg: str) -> None:
        self.records.append(("info", msg))

    def warn(self, msg: str) -> None:
        self.records.append(("warn", msg))

    def error(self, msg: str) -> None:
        self.records.append(("error", msg))

    def debug(self, msg: str) -> None:
        self.records.append(("debug", msg))

    def messages(self, level: str) -> List[str]:
        return [msg for lvl, msg in self.records if lvl == level]


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.t = start

    def __call__(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += dt


class FakeRuntime:
    def __init__(self) -> None:
        self.logger = FakeLogger()
        self.clock = FakeClock()
        self.states: List[str] = []
        self.feedback = []

    def now(self) -> float:
        return self.clock()

    def publish_state(self, name: str) -> None:
        self.states.append(name)

    def report_feedback(self, feedback) -> None:
        self.feedback.append(list(feedback))


class FakeDomain:
    def __init__(self) -> None:
        self.reads = 0

    def get_domain(self) -> str:
        self.reads += 1
        return "(define (domain patrol))"


class FakeProblemStore:
    def __init__(self) -> None:
        self.instances = []
        self.predicates = set()
        self.goal = ""
        self.ops = []
        # (goal, predicates at the moment the goal was set)
        self.goal_history = []
        self.problem_reads = 0
        self.timeout = False
        # Store operations that time out or get refused.
        self.timeout_ops = set()
        self.rejected_ops = set()

    def add_instance(self, name: str, type_name: str) -> bool:
        self._check("add_instance")
        self.instances.append((name, type_name))
        self.ops.append(("add_instance", name, type_name))
        return True

    def add_predicate(self, text: str) -> bool:
        self._check("add_predicate")
        self.predicates.add(text)
        self.ops.append(("add_predicate", text))
        return True

    def remove_predicate(self, text: str) -> bool:
        self._check("remove_predicate")
        self.predicates.discard(text)
        self.ops.append(("remove_predicate", text))
        return True

    def set_goal(self, formula: str) -> bool:
        self._check("set_goal")
        if "set_goal" in self.rejected_ops:
            return False
        self.goal = formula
        self.goal_history.append((formula, frozenset(self.predicates)))
        self.ops.append(("set_goal", formula))
        return True

    def _check(self, op: str) -> None:
        if op in self.timeout_ops:
            raise CollaboratorTimeout(f"{op} did not answer within 5.0s")

    def get_goal(self) -> str:
        return self.goal

    def get_problem(self) -> str:
        if self.timeout:
            raise CollaboratorTimeout("get_problem timed out")
        self.problem_reads += 1
        return " ".join(sorted(self.predicates)) + " goal: " + self.goal


class FakePlanner:
    def __init__(self) -> None:
        self.responses: List[Optional[Plan]] = []
        self.default: Optional[Plan] = make_plan("(move r2d2 wp_control wp1)")
        self.calls = []

    def get_plan(self, domain: str, problem: str) -> Optional[Plan]:
        self.calls.append((domain, problem))
        if self.responses:
            return self.responses.pop(0)
        return self.default


class FakeExecutor:
    def __init__(self) -> None:
        self.accept = True
        self.executing = False
        self.feedback: List[ActionExecutionStatus] = []
        self.result: Optional[ExecutionResult] = None
        self.started: List[Plan] = []

    def start_plan_execution(self, plan: Plan) -> bool:
        if not self.accept:
            return False
        self.started.append(plan)
        self.executing = True
        self.result = None
        self.feedback = []
        return True

    def is_still_executing(self) -> bool:
        return self.executing

    def get_feedback(self):
        return list(self.feedback)

    def get_result(self) -> Optional[ExecutionResult]:
        return self.result

    def finish(self, success: bool, outcomes=()) -> ExecutionResult:
        self.executing = False
        self.result = ExecutionResult(success, tuple(outcomes))
        return self.result


class FakeBackend:
    def __init__(self) -> None:
        self.domain = FakeDomain()
        self.problem = FakeProblemStore()
        self.planner = FakePlanner()
        self.executor = FakeExecutor()
        self.missing: List[str] = []

    def missing_collaborators(self) -> List[str]:
        return list(self.missing)


class FakeGoalHandle:
    def __init__(self, target, on_feedback, on_aborted, on_succeeded) -> None:
        self.target = target
        self.on_feedback = on_feedback
        self.on_aborted = on_aborted
        self.on_succeeded = on_succeeded
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeNavigationService:
    def __init__(self, ready: bool = True) -> None:
        self.ready = ready
        self.goals: List[FakeGoalHandle] = []

    def server_is_ready(self) -> bool:
        return self.ready

    def send_goal(self, target, on_feedback, on_aborted, on_succeeded) -> FakeGoalHandle:
        handle = FakeGoalHandle(target, on_feedback, on_aborted, on_succeeded)
        self.goals.append(handle)
        return handle


class FakeReporter:
    def __init__(self) -> None:
        self.feedback = []
        self.finished = []

    def send_feedback(self, completion: float, status: str) -> None:
        self.feedback.append((completion, status))

    def finish(self, success: bool, completion: float, status: str) -> None:
        self.finished.append((success, completion, status))


def make_plan(*actions: str) -> Plan:
    return Plan(tuple(PlanItem(action, 5.0, float(idx)) for idx, action in enumerate(actions)))


@pytest.fixture
def mission_data():
    return copy.deepcopy(MISSION)


@pytest.fixture
def patrol_config(mission_data):
    return parse_config(mission_data)


@pytest.fixture
def runtime():
    return FakeRuntime()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def context(runtime, patrol_config, backend):
    pipeline = PlanRequestPipeline(backend.domain, backend.problem, backend.planner, runtime.logger)
    monitor = ExecutionMonitor(backend.executor)
    return PatrolContext(runtime, patrol_config, backend.problem, pipeline, monitor, SignalLatch())
