"""Runtime hooks the core expects from its host (ROS node or test harness)."""

from __future__ import annotations

from typing import Protocol, Sequence

from .knowledge import ActionExecutionStatus


class LoggerLike(Protocol):
    def info(self, msg: str) -> None: ...

    def warn(self, msg: str) -> None: ...

    def error(self, msg: str) -> None: ...

    def debug(self, msg: str) -> None: ...


class PatrolRuntime(Protocol):
    @property
    def logger(self) -> LoggerLike: ...

    def now(self) -> float: ...  # seconds

    def publish_state(self, name: str) -> None: ...

    def report_feedback(self, feedback: Sequence[ActionExecutionStatus]) -> None: ...


__all__ = ["LoggerLike", "PatrolRuntime"]
