"""Performer side of the PlanSys2 ``actions_hub`` handshake.

The executor broadcasts REQUEST, an idle performer answers RESPONSE, the
executor CONFIRMs one performer (or REJECTs it), and the performer then
streams FEEDBACK until it sends FINISH. A CANCEL addressed to the performer
stops the running action.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional, Sequence, Tuple

from plansys2_msgs.msg import ActionExecution

from .qos import ACTION_HUB_QOS


class ActionHubPerformer:
    """Implements the core ActionReporter over the actions hub topic."""

    def __init__(
        self,
        node,
        action_name: str,
        *,
        on_start: Callable[[Sequence[str]], None],
        on_cancel: Callable[[], None],
        topic: str = "actions_hub",
        callback_group=None,
    ) -> None:
        self._node = node
        self._action_name = action_name
        self._on_start = on_start
        self._on_cancel = on_cancel
        self._lock = threading.Lock()
        self._committed = False
        self._active = False
        self._arguments: Tuple[str, ...] = ()
        self._pub = node.create_publisher(ActionExecution, topic, ACTION_HUB_QOS)
        node.create_subscription(
            ActionExecution,
            topic,
            self._on_hub_message,
            ACTION_HUB_QOS,
            callback_group=callback_group,
        )

    @property
    def performer_id(self) -> str:
        return self._node.get_name()

    @property
    def active(self) -> bool:
        with self._lock:
            return self._active

    @property
    def arguments(self) -> Tuple[str, ...]:
        with self._lock:
            return self._arguments

    # ------------------------------------------------------------------
    # ActionReporter

    def send_feedback(self, completion: float, status: str) -> None:
        if not self.active:
            return
        self._publish(ActionExecution.FEEDBACK, completion=completion, status=status)

    def finish(self, success: bool, completion: float, status: str) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        self._publish(ActionExecution.FINISH, success=success, completion=completion, status=status)

    # ------------------------------------------------------------------
    # Hub handshake

    def _on_hub_message(self, msg: ActionExecution) -> None:
        if msg.action != self._action_name:
            return
        if msg.type == ActionExecution.REQUEST:
            self._on_request(msg)
        elif msg.type == ActionExecution.CONFIRM and msg.node_id == self.performer_id:
            self._on_confirm(msg)
        elif msg.type == ActionExecution.REJECT and msg.node_id == self.performer_id:
            with self._lock:
                self._committed = False
        elif msg.type == ActionExecution.CANCEL and msg.node_id == self.performer_id:
            self._on_cancel_request()

    def _on_request(self, msg: ActionExecution) -> None:
        with self._lock:
            if self._active or self._committed:
                return
            self._committed = True
            self._arguments = tuple(msg.arguments)
        self._publish(ActionExecution.RESPONSE)

    def _on_confirm(self, msg: ActionExecution) -> None:
        with self._lock:
            if self._active or not self._committed:
                return
            self._committed = False
            self._active = True
            self._arguments = tuple(msg.arguments)
            arguments = self._arguments
        self._node.get_logger().info(f"[{self._action_name} {' '.join(arguments)}] confirmed")
        self._on_start(arguments)

    def _on_cancel_request(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        self._node.get_logger().info(f"[{self._action_name}] cancelled by the executor")
        self._on_cancel()

    def _publish(
        self,
        msg_type: int,
        *,
        success: bool = False,
        completion: float = 0.0,
        status: Optional[str] = None,
    ) -> None:
        msg = ActionExecution()
        msg.type = msg_type
        msg.node_id = self.performer_id
        msg.action = self._action_name
        msg.arguments = list(self.arguments)
        msg.success = success
        msg.completion = float(completion)
        msg.status = status or ""
        self._pub.publish(msg)


__all__ = ["ActionHubPerformer"]
