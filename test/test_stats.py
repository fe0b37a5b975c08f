from patrol_mission.core.stats import PatrolStats, mission_duration


def test_mission_duration_handles_missing_timestamps():
    assert mission_duration(None, 5.0) == 0.0
    assert mission_duration(2.0, None) == 0.0
    assert mission_duration(5.0, 2.0) == 0.0
    assert mission_duration(2.0, 7.5) == 5.5


def test_summary_reports_counters_and_durations():
    stats = PatrolStats()
    stats.mark_started(10.0)
    stats.mark_started(20.0)
    stats.plan_requests = 3
    stats.replans = 1
    stats.patrol_completed_at = 40.0
    stats.completed_at = 55.0

    summary = stats.summary()
    assert stats.started_at == 10.0
    assert "duration=45.0s" in summary
    assert "patrol=30.0s" in summary
    assert "plan_requests=3" in summary
    assert "replans=1" in summary
