import pytest

from patrol_mission.core.errors import InvalidSignalSelector
from patrol_mission.core.signal import SelectorTable, SignalLatch

SELECTOR = {0: "wp1", 1: "wp2", 2: "wp3", 3: "wp4"}


def test_latch_is_unset_until_first_update():
    latch = SignalLatch()
    assert latch.read() is None
    assert not latch.is_set


def test_latch_keeps_last_write():
    latch = SignalLatch()
    latch.update(3)
    latch.update(0)
    assert latch.read() == 0
    assert latch.is_set


@pytest.mark.parametrize("value, waypoint", sorted(SELECTOR.items()))
def test_selector_maps_marker_ids(value, waypoint):
    assert SelectorTable(SELECTOR).resolve(value) == waypoint


@pytest.mark.parametrize("value", [None, -1, 4, 99])
def test_selector_rejects_unmapped_values(value):
    with pytest.raises(InvalidSignalSelector) as excinfo:
        SelectorTable(SELECTOR).resolve(value)
    assert excinfo.value.value == value
