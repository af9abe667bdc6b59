from __future__ import annotations

import pytest
from conftest import FakePanorama

from pygeorec.bus import EventBus
from pygeorec.geodesy import destination_point
from pygeorec.models.pose import Coordinate, Pose
from pygeorec.navigator import DistanceLadder, LookupPreference, Navigator
from pygeorec.state.events import EventName
from pygeorec.state.store import LiveState


@pytest.fixture
def state(panorama: FakePanorama) -> LiveState:
    live = LiveState()
    live.update_pose(panorama.get_pose())
    return live


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def navigator(panorama: FakePanorama, state: LiveState, bus: EventBus) -> Navigator:
    return Navigator(state, panorama, panorama, bus, ladder=DistanceLadder(initial=100))


def test_ladder_clamps_at_both_ends() -> None:
    ladder = DistanceLadder(initial=100)

    for _ in range(20):
        assert ladder.increase() <= 1000
    assert ladder.distance == 1000
    for _ in range(20):
        assert ladder.increase() == 1000

    for _ in range(20):
        assert ladder.decrease() >= 25
    assert ladder.distance == 25
    for _ in range(20):
        assert ladder.decrease() == 25

    assert ladder.increase() == 50


def test_ladder_rejects_unknown_initial_distance() -> None:
    with pytest.raises(ValueError):
        DistanceLadder(initial=42)
    with pytest.raises(ValueError):
        DistanceLadder((100, 50))


def test_increase_emits_distance_changed(navigator: Navigator, bus: EventBus) -> None:
    seen: list[int] = []
    bus.on(EventName.DISTANCE_CHANGED, seen.append)

    navigator.increase()
    navigator.increase()
    navigator.decrease()

    assert seen == [150, 200, 150]
    assert navigator.indicator_text == "Teleport distance: 150 m"


@pytest.mark.asyncio
async def test_forward_teleport_keeps_heading_and_pitch(navigator: Navigator, panorama: FakePanorama) -> None:
    found = await navigator.forward()

    expected = destination_point(Coordinate(lat=40.0, lng=-74.0), 100.0, 90.0)
    assert found is not None
    assert found.coordinate == expected
    target, radius, preference = panorama.lookups[0]
    assert target == expected
    assert radius == 1000.0
    assert preference == LookupPreference.NEAREST
    assert panorama.views == [(expected, 90.0, -5.0)]


@pytest.mark.asyncio
async def test_backward_teleport_moves_against_heading(navigator: Navigator, panorama: FakePanorama) -> None:
    await navigator.backward()

    target = panorama.lookups[0][0]
    assert target.lng < -74.0
    assert target.lat == pytest.approx(40.0, abs=1e-6)
    coordinate, heading, pitch = panorama.views[0]
    assert coordinate == target
    assert heading == 90.0
    assert pitch == -5.0


@pytest.mark.asyncio
async def test_explicit_distance_and_pose(navigator: Navigator, panorama: FakePanorama) -> None:
    pose = Pose(lat=0.0, lng=0.0, heading=0.0, pitch=12.0)

    await navigator.teleport(pose, distance_m=1000)

    target = panorama.lookups[0][0]
    assert target.lat == pytest.approx(0.008983, abs=1e-6)
    assert target.lng == pytest.approx(0.0, abs=1e-9)
    assert panorama.views[0][2] == 12.0


@pytest.mark.asyncio
async def test_no_panorama_found_leaves_view(navigator: Navigator, panorama: FakePanorama) -> None:
    panorama.snap = lambda target: None

    assert await navigator.forward() is None
    assert panorama.views == []
    assert panorama.pose.lat == 40.0


@pytest.mark.asyncio
async def test_lookup_failure_is_swallowed(navigator: Navigator, panorama: FakePanorama) -> None:
    def boom(target: Coordinate) -> Coordinate:
        raise RuntimeError("service unavailable")

    panorama.snap = boom

    assert await navigator.forward() is None
    assert panorama.views == []


@pytest.mark.asyncio
async def test_snapped_location_is_used(navigator: Navigator, panorama: FakePanorama) -> None:
    road = Coordinate(lat=40.0005, lng=-73.9990)
    panorama.snap = lambda target: road

    await navigator.forward()

    assert panorama.pose.lat == road.lat
    assert panorama.pose.lng == road.lng


@pytest.mark.asyncio
async def test_hotkeys(navigator: Navigator, panorama: FakePanorama) -> None:
    assert await navigator.handle_key("Ctrl+ArrowRight") is True
    assert navigator.distance == 150

    assert await navigator.handle_key("ctrl + arrowleft") is True
    assert await navigator.handle_key("ctrl+arrowleft") is True
    assert navigator.distance == 75

    assert await navigator.handle_key("ctrl+arrowup") is True
    assert len(panorama.views) == 1

    assert await navigator.handle_key("arrowup") is False
    assert await navigator.handle_key("alt+x") is False
    assert len(panorama.views) == 1


@pytest.mark.asyncio
async def test_bookmark_hotkey_passes_current_pose(panorama: FakePanorama, state: LiveState, bus: EventBus) -> None:
    saved: list[Pose] = []

    async def bookmark(pose: Pose) -> bool:
        saved.append(pose)
        return True

    navigator = Navigator(state, panorama, panorama, bus, bookmark=bookmark)

    assert await navigator.handle_key("ctrl+b") is True
    assert saved == [state.pose]
    assert saved[0] is not state.pose


@pytest.mark.asyncio
async def test_custom_key_bindings(panorama: FakePanorama, state: LiveState, bus: EventBus) -> None:
    navigator = Navigator(state, panorama, panorama, bus, key_bindings={"shift+w": "forward"})

    assert await navigator.handle_key("shift+w") is True
    assert await navigator.handle_key("ctrl+arrowup") is False
    assert len(panorama.views) == 1
