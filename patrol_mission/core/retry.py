"""Bounded exponential backoff for planning retries."""

from __future__ import annotations

from typing import Optional

from .config import RetryConfig


class Backoff:
    def __init__(self, initial_s: float, max_s: float, multiplier: float = 2.0) -> None:
        self._initial_s = max(0.0, initial_s)
        self._max_s = max(self._initial_s, max_s)
        self._multiplier = max(1.0, multiplier)
        self._failures = 0
        self._not_before: Optional[float] = None

    @classmethod
    def from_config(cls, retry: RetryConfig) -> "Backoff":
        return cls(retry.plan_backoff_initial_s, retry.plan_backoff_max_s, retry.plan_backoff_multiplier)

    @property
    def failures(self) -> int:
        return self._failures

    def ready(self, now: float) -> bool:
        return self._not_before is None or now >= self._not_before

    def delay(self) -> float:
        if self._failures == 0:
            return 0.0
        return min(self._max_s, self._initial_s * self._multiplier ** (self._failures - 1))

    def record_failure(self, now: float) -> float:
        self._failures += 1
        delay = self.delay()
        self._not_before = now + delay
        return delay

    def reset(self) -> None:
        self._failures = 0
        self._not_before = None


__all__ = ["Backoff"]
