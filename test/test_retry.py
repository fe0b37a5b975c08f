import pytest

from patrol_mission.core.config import RetryConfig
from patrol_mission.core.retry import Backoff


def test_backoff_grows_and_caps():
    backoff = Backoff(0.2, 1.0, 2.0)
    delays = [backoff.record_failure(0.0) for _ in range(5)]
    assert delays == pytest.approx([0.2, 0.4, 0.8, 1.0, 1.0])
    assert backoff.failures == 5


def test_backoff_gates_attempts_until_delay_elapsed():
    backoff = Backoff.from_config(RetryConfig(plan_backoff_initial_s=0.5))
    assert backoff.ready(0.0)
    backoff.record_failure(10.0)
    assert not backoff.ready(10.4)
    assert backoff.ready(10.5)


def test_reset_clears_failures():
    backoff = Backoff(0.2, 5.0)
    backoff.record_failure(0.0)
    backoff.reset()
    assert backoff.failures == 0
    assert backoff.delay() == 0.0
    assert backoff.ready(0.0)
