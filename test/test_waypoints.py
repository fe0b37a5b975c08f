import pytest

from patrol_mission.core.errors import UnknownWaypointError
from patrol_mission.core.geometry import Pose
from patrol_mission.core.waypoints import WaypointRegistry


def test_lookup_returns_configured_pose(patrol_config):
    registry = WaypointRegistry.from_config(patrol_config)
    pose = registry.lookup("wp2")
    assert (pose.position.x, pose.position.y) == (7.0, -5.0)
    assert pose.orientation.w == 1.0
    assert "wp_control" in registry
    assert len(registry) == 5
    assert registry.frame_id == "map"


def test_unknown_waypoint_raises():
    registry = WaypointRegistry({"wp1": Pose.from_xy(1.0, 1.0)})
    with pytest.raises(UnknownWaypointError) as excinfo:
        registry.lookup("wp9")
    assert excinfo.value.waypoint_id == "wp9"
    assert isinstance(excinfo.value, LookupError)


def test_registry_is_read_only():
    source = {"wp1": Pose.from_xy(1.0, 1.0)}
    registry = WaypointRegistry(source)
    source["wp2"] = Pose.from_xy(2.0, 2.0)
    assert "wp2" not in registry
    copy = registry.as_dict()
    copy.clear()
    assert list(registry.ids()) == ["wp1"]
