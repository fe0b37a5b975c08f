import pytest

from patrol_mission.core.knowledge import (
    ActionExecutionStatus,
    ActionState,
    FormulaSyntaxError,
    conjunction,
    format_formula,
    parse_formula,
    patrolled,
    robot_at,
    seed_problem,
)

from conftest import FakeProblemStore


def test_goal_builders():
    goal = conjunction(robot_at("r2d2", "wp4"), patrolled("wp1"))
    assert goal == "(and (robot_at r2d2 wp4) (patrolled wp1))"


def test_parse_formula_nests_and_lowercases():
    assert parse_formula("(AND (robot_at r2d2 WP1) (patrolled wp2))") == [
        "and",
        ["robot_at", "r2d2", "wp1"],
        ["patrolled", "wp2"],
    ]
    assert format_formula(parse_formula("(patrolled  wp3)")) == "(patrolled wp3)"


@pytest.mark.parametrize("text", ["", "(and (patrolled wp1)", ")", "(patrolled wp1) extra"])
def test_parse_formula_rejects_malformed_text(text):
    with pytest.raises(FormulaSyntaxError):
        parse_formula(text)


def test_seed_problem_loads_instances_home_and_topology(patrol_config):
    store = FakeProblemStore()
    seed_problem(store, patrol_config)
    assert ("r2d2", "robot") in store.instances
    assert ("wp3", "waypoint") in store.instances
    assert "(robot_at r2d2 wp_control)" in store.predicates
    assert "(connected wp1 wp2)" in store.predicates
    assert not any(p.startswith("(patrolled") for p in store.predicates)


def test_action_status_label():
    status = ActionExecutionStatus("move", ActionState.EXECUTING, 0.3, ("r2d2", "wp1", "wp2"))
    assert status.label == "move r2d2 wp1 wp2"
    assert ActionExecutionStatus("patrol", ActionState.PENDING).label == "patrol"
