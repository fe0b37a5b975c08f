import pytest

from patrol_mission.core.errors import PlanInFlightError
from patrol_mission.core.knowledge import ActionExecutionStatus, ActionState, ExecutionResult
from patrol_mission.core.monitor import ExecutionMonitor

from conftest import FakeExecutor, make_plan


def test_no_result_before_start_or_while_running():
    executor = FakeExecutor()
    monitor = ExecutionMonitor(executor)
    executor.result = ExecutionResult(True)
    assert monitor.finished_result() is None
    monitor.start(make_plan("(move r2d2 wp1 wp2)"))
    assert monitor.started
    assert monitor.finished_result() is None
    result = executor.finish(True)
    assert monitor.finished_result() is result


def test_second_plan_while_executing_is_refused():
    executor = FakeExecutor()
    monitor = ExecutionMonitor(executor)
    assert monitor.start(make_plan("(move r2d2 wp1 wp2)"))
    with pytest.raises(PlanInFlightError):
        monitor.start(make_plan("(move r2d2 wp2 wp3)"))
    executor.finish(False)
    assert monitor.start(make_plan("(move r2d2 wp2 wp3)"))
    assert monitor.plans_started == 2


def test_rejected_plan_is_not_started():
    executor = FakeExecutor()
    executor.accept = False
    monitor = ExecutionMonitor(executor)
    assert not monitor.start(make_plan("(move r2d2 wp1 wp2)"))
    assert not monitor.started
    assert monitor.plans_started == 0


def test_failed_actions_and_progress_description():
    failed = ActionExecutionStatus("move", ActionState.FAILED, 0.4, ("r2d2", "wp1", "wp2"), "blocked")
    done = ActionExecutionStatus("move", ActionState.SUCCEEDED, 1.0, ("r2d2", "wp_control", "wp1"))
    result = ExecutionResult(False, (done, failed))
    assert ExecutionMonitor.failed_actions(result) == [failed]
    assert ExecutionMonitor.describe_progress([done, failed]) == (
        "[move r2d2 wp_control wp1 100%][move r2d2 wp1 wp2 40%]"
    )
