"""PlanSys2 service and action clients implementing the core planning protocols.

Service calls are bounded: ``call_with_timeout`` waits on the response future
for at most ``timeout_s`` and raises ``CollaboratorTimeout`` otherwise. The
clients live in a reentrant callback group so the responses are processed by
another executor thread while the tick timer waits.
"""

from __future__ import annotations

import threading
from typing import List, Optional, Sequence

from plansys2_msgs.action import ExecutePlan
from plansys2_msgs.msg import ActionExecutionInfo, Node as TreeNode, Param, Tree
from plansys2_msgs.msg import Plan as PlanMsg, PlanItem as PlanItemMsg
from plansys2_msgs.srv import (
    AddProblemGoal,
    AffectNode,
    AffectParam,
    GetDomain,
    GetPlan,
    GetProblem,
    GetProblemGoal,
)
from rclpy.action import ActionClient

from ..core.errors import CollaboratorTimeout
from ..core.knowledge import (
    ActionExecutionStatus,
    ActionState,
    ExecutionResult,
    FormulaSyntaxError,
    Plan,
    PlanItem,
    format_formula,
    parse_formula,
)

_STATUS_MAP = {
    ActionExecutionInfo.NOT_EXECUTED: ActionState.PENDING,
    ActionExecutionInfo.EXECUTING: ActionState.EXECUTING,
    ActionExecutionInfo.FAILED: ActionState.FAILED,
    ActionExecutionInfo.SUCCEEDED: ActionState.SUCCEEDED,
    ActionExecutionInfo.CANCELLED: ActionState.FAILED,
}

_CONNECTIVES = {
    "and": TreeNode.AND,
    "or": TreeNode.OR,
    "not": TreeNode.NOT,
}


def call_with_timeout(client, request, timeout_s: float, name: str):
    if not client.service_is_ready():
        raise CollaboratorTimeout(f"Service {name} is not available")
    future = client.call_async(request)
    done = threading.Event()
    future.add_done_callback(lambda _future: done.set())
    if not done.wait(timeout_s):
        client.remove_pending_request(future)
        raise CollaboratorTimeout(f"Service {name} did not answer within {timeout_s:.1f}s")
    response = future.result()
    if response is None:
        raise CollaboratorTimeout(f"Service {name} returned no response")
    return response


# ---------------------------------------------------------------------------
# Formula <-> Tree conversion
# ---------------------------------------------------------------------------

def predicate_node(text: str) -> TreeNode:
    expression = parse_formula(text)
    if isinstance(expression, str) or not expression or not isinstance(expression[0], str):
        raise FormulaSyntaxError(f"Not a predicate: {text}")
    node = TreeNode()
    node.node_type = TreeNode.PREDICATE
    node.name = expression[0]
    node.parameters = [_param(arg) for arg in expression[1:]]
    return node


def formula_to_tree(text: str) -> Tree:
    tree = Tree()
    nodes: List[TreeNode] = []
    _append_expression(parse_formula(text), nodes)
    tree.nodes = nodes
    return tree


def _append_expression(expression, nodes: List[TreeNode]) -> int:
    if isinstance(expression, str) or not expression:
        raise FormulaSyntaxError(f"Unexpected symbol in goal: {format_formula(expression)}")
    head = expression[0]
    node = TreeNode()
    node.node_id = len(nodes)
    nodes.append(node)
    if head in _CONNECTIVES:
        node.node_type = _CONNECTIVES[head]
        node.children = [_append_expression(child, nodes) for child in expression[1:]]
    else:
        if not isinstance(head, str) or any(not isinstance(arg, str) for arg in expression[1:]):
            raise FormulaSyntaxError(f"Malformed predicate: {format_formula(expression)}")
        node.node_type = TreeNode.PREDICATE
        node.name = head
        node.parameters = [_param(arg) for arg in expression[1:]]
    return node.node_id


def tree_to_formula(tree: Tree) -> str:
    if not tree.nodes:
        return ""
    by_id = {node.node_id: node for node in tree.nodes}
    return _node_to_formula(tree.nodes[0], by_id)


def _node_to_formula(node: TreeNode, by_id) -> str:
    for name, node_type in _CONNECTIVES.items():
        if node.node_type == node_type:
            children = " ".join(_node_to_formula(by_id[child], by_id) for child in node.children)
            return f"({name} {children})"
    if node.node_type == TreeNode.PREDICATE:
        return "(" + " ".join([node.name] + [param.name for param in node.parameters]) + ")"
    raise FormulaSyntaxError(f"Unsupported goal node type {node.node_type}")


def _param(name: str, type_name: str = "") -> Param:
    param = Param()
    param.name = name
    param.type = type_name
    return param


# ---------------------------------------------------------------------------
# Message conversion
# ---------------------------------------------------------------------------

def status_from_msg(info: ActionExecutionInfo) -> ActionExecutionStatus:
    return ActionExecutionStatus(
        action=info.action,
        state=_STATUS_MAP.get(info.status, ActionState.PENDING),
        completion=float(info.completion),
        arguments=tuple(info.arguments),
        message=info.message_status or None,
    )


def plan_from_msg(msg: PlanMsg) -> Plan:
    items = tuple(PlanItem(item.action, float(item.duration), float(item.time)) for item in msg.items)
    return Plan(items, payload=msg)


def plan_to_msg(plan: Plan) -> PlanMsg:
    if isinstance(plan.payload, PlanMsg):
        return plan.payload
    msg = PlanMsg()
    for item in plan.items:
        entry = PlanItemMsg()
        entry.time = float(item.time)
        entry.action = item.action
        entry.duration = float(item.duration)
        msg.items.append(entry)
    return msg


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------

class DomainExpertClient:
    def __init__(self, node, *, timeout_s: float, callback_group=None) -> None:
        self._timeout_s = timeout_s
        self._get_domain = node.create_client(GetDomain, "domain_expert/get_domain", callback_group=callback_group)

    def is_ready(self) -> bool:
        return self._get_domain.service_is_ready()

    def get_domain(self) -> str:
        response = call_with_timeout(self._get_domain, GetDomain.Request(), self._timeout_s, "get_domain")
        if not response.success:
            raise CollaboratorTimeout(f"get_domain failed: {response.error_info}")
        return response.domain


class ProblemExpertClient:
    def __init__(self, node, *, timeout_s: float, callback_group=None) -> None:
        self._node = node
        self._timeout_s = timeout_s
        prefix = "problem_expert/"
        self._add_instance = node.create_client(AffectParam, prefix + "add_problem_instance", callback_group=callback_group)
        self._add_predicate = node.create_client(AffectNode, prefix + "add_problem_predicate", callback_group=callback_group)
        self._remove_predicate = node.create_client(
            AffectNode, prefix + "remove_problem_predicate", callback_group=callback_group
        )
        self._add_goal = node.create_client(AddProblemGoal, prefix + "add_problem_goal", callback_group=callback_group)
        self._get_goal = node.create_client(GetProblemGoal, prefix + "get_problem_goal", callback_group=callback_group)
        self._get_problem = node.create_client(GetProblem, prefix + "get_problem", callback_group=callback_group)

    def is_ready(self) -> bool:
        clients = (
            self._add_instance,
            self._add_predicate,
            self._remove_predicate,
            self._add_goal,
            self._get_goal,
            self._get_problem,
        )
        return all(client.service_is_ready() for client in clients)

    def add_instance(self, name: str, type_name: str) -> bool:
        request = AffectParam.Request()
        request.param = _param(name, type_name)
        return self._affect(self._add_instance, request, f"add instance {name} - {type_name}")

    def add_predicate(self, text: str) -> bool:
        request = AffectNode.Request()
        request.node = predicate_node(text)
        return self._affect(self._add_predicate, request, f"add predicate {text}")

    def remove_predicate(self, text: str) -> bool:
        request = AffectNode.Request()
        request.node = predicate_node(text)
        return self._affect(self._remove_predicate, request, f"remove predicate {text}")

    def set_goal(self, formula: str) -> bool:
        request = AddProblemGoal.Request()
        request.tree = formula_to_tree(formula)
        return self._affect(self._add_goal, request, f"set goal {formula}")

    def get_goal(self) -> str:
        response = call_with_timeout(self._get_goal, GetProblemGoal.Request(), self._timeout_s, "get_problem_goal")
        if not response.success:
            return ""
        return tree_to_formula(response.tree)

    def get_problem(self) -> str:
        response = call_with_timeout(self._get_problem, GetProblem.Request(), self._timeout_s, "get_problem")
        if not response.success:
            raise CollaboratorTimeout(f"get_problem failed: {response.error_info}")
        return response.problem

    def _affect(self, client, request, description: str) -> bool:
        response = call_with_timeout(client, request, self._timeout_s, description)
        if not response.success:
            self._node.get_logger().warn(f"Could not {description}: {response.error_info}")
        return bool(response.success)


class PlannerClient:
    def __init__(self, node, *, timeout_s: float, callback_group=None) -> None:
        self._timeout_s = timeout_s
        self._get_plan = node.create_client(GetPlan, "planner/get_plan", callback_group=callback_group)

    def is_ready(self) -> bool:
        return self._get_plan.service_is_ready()

    def get_plan(self, domain: str, problem: str) -> Optional[Plan]:
        request = GetPlan.Request()
        request.domain = domain
        request.problem = problem
        response = call_with_timeout(self._get_plan, request, self._timeout_s, "get_plan")
        if not response.success or not response.plan.items:
            return None
        return plan_from_msg(response.plan)


class PlanExecutorClient:
    """Runs plans through the ``execute_plan`` action and caches its feedback."""

    def __init__(self, node, *, action_name: str = "execute_plan", callback_group=None) -> None:
        self._node = node
        self._client = ActionClient(node, ExecutePlan, action_name, callback_group=callback_group)
        self._lock = threading.Lock()
        self._executing = False
        self._feedback: List[ActionExecutionStatus] = []
        self._result: Optional[ExecutionResult] = None
        self._generation = 0

    def is_ready(self) -> bool:
        return self._client.server_is_ready()

    def start_plan_execution(self, plan: Plan) -> bool:
        if not self._client.server_is_ready():
            self._node.get_logger().warn("Plan executor is not available")
            return False
        goal = ExecutePlan.Goal()
        goal.plan = plan_to_msg(plan)
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._executing = True
            self._feedback = []
            self._result = None

        def feedback_cb(feedback_msg) -> None:
            statuses = [status_from_msg(info) for info in feedback_msg.feedback.action_execution_status]
            with self._lock:
                if generation == self._generation:
                    self._feedback = statuses

        def result_cb(future) -> None:
            response = future.result()
            if response is None:
                self._finish(generation, ExecutionResult(False))
                return
            outcomes = tuple(status_from_msg(info) for info in response.result.action_execution_status)
            self._finish(generation, ExecutionResult(bool(response.result.success), outcomes))

        def goal_response_cb(future) -> None:
            goal_handle = future.result()
            if goal_handle is None or not goal_handle.accepted:
                self._node.get_logger().error("Plan rejected by the executor")
                self._finish(generation, ExecutionResult(False))
                return
            goal_handle.get_result_async().add_done_callback(result_cb)

        send_future = self._client.send_goal_async(goal, feedback_callback=feedback_cb)
        send_future.add_done_callback(goal_response_cb)
        return True

    def is_still_executing(self) -> bool:
        with self._lock:
            return self._executing

    def get_feedback(self) -> Sequence[ActionExecutionStatus]:
        with self._lock:
            return list(self._feedback)

    def get_result(self) -> Optional[ExecutionResult]:
        with self._lock:
            return self._result

    def _finish(self, generation: int, result: ExecutionResult) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._result = result
            self._executing = False


class PlanSys2Backend:
    """Bundles the PlanSys2 clients as the controller's planning backend."""

    def __init__(self, node, *, timeout_s: float = 5.0, callback_group=None) -> None:
        self._domain = DomainExpertClient(node, timeout_s=timeout_s, callback_group=callback_group)
        self._problem = ProblemExpertClient(node, timeout_s=timeout_s, callback_group=callback_group)
        self._planner = PlannerClient(node, timeout_s=timeout_s, callback_group=callback_group)
        self._executor = PlanExecutorClient(node, callback_group=callback_group)

    @property
    def domain(self) -> DomainExpertClient:
        return self._domain

    @property
    def problem(self) -> ProblemExpertClient:
        return self._problem

    @property
    def planner(self) -> PlannerClient:
        return self._planner

    @property
    def executor(self) -> PlanExecutorClient:
        return self._executor

    def missing_collaborators(self) -> List[str]:
        checks = (
            ("domain_expert", self._domain),
            ("problem_expert", self._problem),
            ("planner", self._planner),
            ("executor", self._executor),
        )
        return [name for name, client in checks if not client.is_ready()]


__all__ = [
    "call_with_timeout",
    "predicate_node",
    "formula_to_tree",
    "tree_to_formula",
    "status_from_msg",
    "plan_from_msg",
    "plan_to_msg",
    "DomainExpertClient",
    "ProblemExpertClient",
    "PlannerClient",
    "PlanExecutorClient",
    "PlanSys2Backend",
]
