import pytest

from patrol_mission.core.geometry import Orientation, Pose, Position, planar_distance, progress_fraction


def test_planar_distance_is_symmetric():
    a = Pose.from_xy(6.0, 2.0)
    b = Pose.from_xy(-3.0, -8.0)
    assert planar_distance(a, b) == pytest.approx(planar_distance(b, a))
    assert planar_distance(a, a) == 0.0


def test_planar_distance_ignores_height_and_orientation():
    a = Pose(Position(0.0, 0.0, 0.0))
    b = Pose(Position(3.0, 4.0, 12.0), Orientation(0.0, 0.0, 0.7071, 0.7071))
    assert planar_distance(a, b) == pytest.approx(5.0)


@pytest.mark.parametrize(
    "remaining, expected",
    [(10.0, 0.0), (7.0, 0.3), (3.0, 0.7), (0.2, 0.98), (0.0, 1.0), (-4.0, 1.0), (25.0, 0.0)],
)
def test_progress_fraction_is_clamped(remaining, expected):
    assert progress_fraction(10.0, remaining) == pytest.approx(expected)


def test_progress_fraction_with_no_initial_distance_is_complete():
    assert progress_fraction(0.0, 0.0) == 1.0
    assert progress_fraction(-1.0, 3.0) == 1.0
