from patrol_mission.core.errors import CollaboratorTimeout
from patrol_mission.core.planning import PlanRequestPipeline

from conftest import FakeDomain, FakeLogger, FakePlanner, FakeProblemStore, make_plan


def _pipeline():
    logger = FakeLogger()
    store = FakeProblemStore()
    planner = FakePlanner()
    pipeline = PlanRequestPipeline(FakeDomain(), store, planner, logger)
    return pipeline, store, planner, logger


def test_plan_found_is_returned_and_logged():
    pipeline, _, planner, logger = _pipeline()
    planner.default = make_plan("(move r2d2 wp_control wp1)", "(move r2d2 wp1 wp2)")
    plan = pipeline.request_plan("domain", "problem")
    assert len(plan) == 2
    assert planner.calls == [("domain", "problem")]
    assert "Plan found with 2 actions" in logger.messages("info")


def test_no_plan_is_a_normal_outcome():
    pipeline, store, planner, logger = _pipeline()
    store.set_goal("(and (robot_at r2d2 wp9))")
    planner.default = None
    assert pipeline.request_plan("domain", "problem") is None
    assert logger.messages("warn") == ["Could not find plan to reach goal (and (robot_at r2d2 wp9))"]
    assert pipeline.requests == 1


def test_planner_timeout_yields_no_plan():
    pipeline, _, planner, logger = _pipeline()

    def slow(domain, problem):
        raise CollaboratorTimeout("get_plan did not answer")

    planner.get_plan = slow
    assert pipeline.request_plan("domain", "problem") is None
    assert any("did not answer" in msg for msg in logger.messages("warn"))


def test_current_state_is_snapshotted_on_every_request():
    pipeline, store, planner, _ = _pipeline()
    store.add_predicate("(robot_at r2d2 wp1)")
    pipeline.plan_from_current_state()
    store.remove_predicate("(robot_at r2d2 wp1)")
    store.add_predicate("(robot_at r2d2 wp2)")
    pipeline.plan_from_current_state()
    assert store.problem_reads == 2
    assert "(robot_at r2d2 wp1)" in planner.calls[0][1]
    assert "(robot_at r2d2 wp2)" in planner.calls[1][1]
    assert "(robot_at r2d2 wp1)" not in planner.calls[1][1]


def test_snapshot_timeout_skips_the_planner():
    pipeline, store, planner, logger = _pipeline()
    store.timeout = True
    assert pipeline.plan_from_current_state() is None
    assert planner.calls == []
    assert any("snapshot" in msg for msg in logger.messages("warn"))
