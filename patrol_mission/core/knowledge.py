"""Symbolic knowledge: predicates, goals, plans and the planning collaborators.

Formulas travel as PDDL text (``"(robot_at r2d2 wp1)"``). The builders below
are the only place that spells predicate names, so the orchestrator never
hand-writes formula strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, Sequence, Tuple, Union

from .config import PatrolConfig

DomainSnapshot = str
ProblemSnapshot = str

PREDICATE_ROBOT_AT = "robot_at"
PREDICATE_PATROLLED = "patrolled"
PREDICATE_CONNECTED = "connected"

TYPE_ROBOT = "robot"
TYPE_WAYPOINT = "waypoint"


# ---------------------------------------------------------------------------
# Formula helpers
# ---------------------------------------------------------------------------

def predicate(name: str, *arguments: str) -> str:
    return "(" + " ".join((name,) + tuple(arguments)) + ")"


def robot_at(robot: str, waypoint: str) -> str:
    return predicate(PREDICATE_ROBOT_AT, robot, waypoint)


def patrolled(waypoint: str) -> str:
    return predicate(PREDICATE_PATROLLED, waypoint)


def connected(src: str, dst: str) -> str:
    return predicate(PREDICATE_CONNECTED, src, dst)


def conjunction(*formulas: str) -> str:
    return "(and " + " ".join(formulas) + ")"


Expression = Union[str, List["Expression"]]


class FormulaSyntaxError(ValueError):
    """Raised when a formula is not a balanced s-expression."""


def parse_formula(text: str) -> Expression:
    """Parse a PDDL formula into nested lists of symbols.

    ``"(and (robot_at r2d2 wp1))"`` -> ``["and", ["robot_at", "r2d2", "wp1"]]``
    """

    tokens = text.replace("(", " ( ").replace(")", " ) ").split()
    if not tokens:
        raise FormulaSyntaxError("Empty formula")
    expression, consumed = _read_expression(tokens, 0)
    if consumed != len(tokens):
        raise FormulaSyntaxError(f"Trailing tokens after formula: {' '.join(tokens[consumed:])}")
    return expression


def _read_expression(tokens: Sequence[str], pos: int) -> Tuple[Expression, int]:
    token = tokens[pos]
    if token == ")":
        raise FormulaSyntaxError("Unexpected ')'")
    if token != "(":
        return token.lower(), pos + 1
    items: List[Expression] = []
    pos += 1
    while pos < len(tokens) and tokens[pos] != ")":
        item, pos = _read_expression(tokens, pos)
        items.append(item)
    if pos >= len(tokens):
        raise FormulaSyntaxError("Unbalanced '(' in formula")
    return items, pos + 1


def format_formula(expression: Expression) -> str:
    if isinstance(expression, str):
        return expression
    return "(" + " ".join(format_formula(item) for item in expression) + ")"


# ---------------------------------------------------------------------------
# Plans and execution status
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlanItem:
    action: str
    duration: float = 0.0
    time: float = 0.0


@dataclass(frozen=True)
class Plan:
    items: Tuple[PlanItem, ...]
    payload: object = field(default=None, compare=False, repr=False)

    def __len__(self) -> int:
        return len(self.items)


class ActionState(Enum):
    PENDING = "pending"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ActionExecutionStatus:
    action: str
    state: ActionState
    completion: float = 0.0
    arguments: Tuple[str, ...] = ()
    message: Optional[str] = None

    @property
    def label(self) -> str:
        if not self.arguments:
            return self.action
        return f"{self.action} {' '.join(self.arguments)}"


@dataclass(frozen=True)
class ExecutionResult:
    success: bool
    action_outcomes: Tuple[ActionExecutionStatus, ...] = ()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

class DomainSource(Protocol):
    def get_domain(self) -> DomainSnapshot: ...


class ProblemStore(Protocol):
    def add_instance(self, name: str, type_name: str) -> bool: ...

    def add_predicate(self, text: str) -> bool: ...

    def remove_predicate(self, text: str) -> bool: ...

    def set_goal(self, formula: str) -> bool: ...

    def get_goal(self) -> str: ...

    def get_problem(self) -> ProblemSnapshot: ...


class Planner(Protocol):
    def get_plan(self, domain: DomainSnapshot, problem: ProblemSnapshot) -> Optional[Plan]: ...


class Executor(Protocol):
    def start_plan_execution(self, plan: Plan) -> bool: ...

    def is_still_executing(self) -> bool: ...

    def get_feedback(self) -> Sequence[ActionExecutionStatus]: ...

    def get_result(self) -> Optional[ExecutionResult]: ...


def seed_problem(store: ProblemStore, config: PatrolConfig) -> None:
    """Load instances, topology and the robot's start location."""

    store.add_instance(config.robot, TYPE_ROBOT)
    for waypoint in config.waypoints:
        store.add_instance(waypoint, TYPE_WAYPOINT)
    if config.home_waypoint is not None:
        store.add_predicate(robot_at(config.robot, config.home_waypoint))
    for src, dst in config.connections:
        store.add_predicate(connected(src, dst))


__all__ = [
    "DomainSnapshot",
    "ProblemSnapshot",
    "predicate",
    "robot_at",
    "patrolled",
    "connected",
    "conjunction",
    "parse_formula",
    "format_formula",
    "FormulaSyntaxError",
    "PlanItem",
    "Plan",
    "ActionState",
    "ActionExecutionStatus",
    "ExecutionResult",
    "DomainSource",
    "ProblemStore",
    "Planner",
    "Executor",
    "seed_problem",
]
