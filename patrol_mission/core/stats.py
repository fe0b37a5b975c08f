"""Small helpers to track patrol KPIs in a ROS-free way."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


def mission_duration(start: Optional[float], end: Optional[float]) -> float:
    """Return mission duration (s) guarding against missing timestamps."""

    if start is None or end is None:
        return 0.0
    return max(0.0, end - start)


@dataclass
class PatrolStats:
    plan_requests: int = 0
    plans_not_found: int = 0
    plans_rejected: int = 0
    replans: int = 0
    failed_actions: int = 0
    started_at: Optional[float] = None
    patrol_completed_at: Optional[float] = None
    completed_at: Optional[float] = None

    def mark_started(self, now: float) -> None:
        if self.started_at is None:
            self.started_at = now

    def summary(self) -> str:
        return (
            "duration=%.1fs patrol=%.1fs plan_requests=%d not_found=%d rejected=%d replans=%d failed_actions=%d"
            % (
                mission_duration(self.started_at, self.completed_at),
                mission_duration(self.started_at, self.patrol_completed_at),
                self.plan_requests,
                self.plans_not_found,
                self.plans_rejected,
                self.replans,
                self.failed_actions,
            )
        )


__all__ = ["PatrolStats", "mission_duration"]
