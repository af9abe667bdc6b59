from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pytest

from pygeorec.models.pose import Coordinate, PanoramaLocation, Pose
from pygeorec.navigator import LookupPreference


class FakePanorama:
    """Stands in for the page's panorama widget (pose, view and lookup)."""

    def __init__(self, pose: Pose | None = None) -> None:
        self.pose = pose or Pose(lat=40.0, lng=-74.0, heading=90.0, pitch=-5.0)
        self.callbacks: list[Callable[[], None]] = []
        self.lookups: list[tuple[Coordinate, float, LookupPreference]] = []
        self.snap: Callable[[Coordinate], Coordinate | None] = lambda target: target
        self.views: list[tuple[Coordinate, float, float]] = []

    # PoseSource
    def get_pose(self) -> Pose:
        return self.pose.snapshot()

    def on_pose_changed(self, callback: Callable[[], None]) -> Callable[[], None]:
        self.callbacks.append(callback)
        return lambda: self.callbacks.remove(callback)

    def move(self, **changes: float) -> None:
        for key, value in changes.items():
            setattr(self.pose, key, value)
        for callback in list(self.callbacks):
            callback()

    # PanoramaService
    async def find_nearest(
        self,
        coordinate: Coordinate,
        radius_m: float,
        preference: LookupPreference,
    ) -> PanoramaLocation | None:
        self.lookups.append((coordinate, radius_m, preference))
        snapped = self.snap(coordinate)
        if snapped is None:
            return None
        return PanoramaLocation(pano_id="pano-1", coordinate=snapped)

    # ViewController
    def set_view(self, coordinate: Coordinate, heading: float, pitch: float) -> None:
        self.views.append((coordinate, heading, pitch))
        self.move(lat=coordinate.lat, lng=coordinate.lng, heading=heading, pitch=pitch)


class FakeTransport:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.error: Exception | None = None

    async def post_json(self, endpoint: str, payload: dict[str, Any]) -> Any:
        self.calls.append((endpoint, dict(payload)))
        if self.error is not None:
            raise self.error
        return payload

    def endpoints(self) -> list[str]:
        return [endpoint for endpoint, _payload in self.calls]


class FakeGeocoder:
    def __init__(self, address: str = "1 Main St, Springfield") -> None:
        self.address = address
        self.calls: list[Coordinate] = []

    async def reverse(self, coordinate: Coordinate) -> str:
        self.calls.append(coordinate)
        return self.address


def make_game(
    token: str = "abc",
    round: int = 1,  # noqa: A002
    state: str = "started",
    *,
    guesses: int = 0,
    round_count: int = 5,
) -> dict[str, Any]:
    """A game payload shaped like the game API's JSON."""
    rounds = [
        {"lat": 40.0 + i, "lng": -74.0 + i, "panoId": f"pano-{i}", "heading": 10.0 * i, "pitch": 0.0, "zoom": 0}
        for i in range(round)
    ]
    return {
        "token": token,
        "type": "standard",
        "mode": "standard",
        "state": state,
        "roundCount": round_count,
        "timeLimit": 120,
        "forbidMoving": False,
        "forbidZooming": True,
        "forbidRotating": False,
        "map": "world",
        "mapName": "World",
        "round": round,
        "rounds": rounds,
        "player": {
            "id": "user-1",
            "nick": "walker",
            "totalScore": {"amount": str(4000 * guesses), "unit": "points", "percentage": 10},
            "totalDistanceInMeters": 1500.0 * guesses,
            "totalTime": 30 * guesses,
            "guesses": [
                {
                    "lat": 41.0,
                    "lng": -73.0,
                    "timedOut": False,
                    "roundScoreInPoints": 4000,
                    "distanceInMeters": 1500.0,
                    "time": 30,
                }
                for _ in range(guesses)
            ],
        },
    }


def make_page(game: dict[str, Any] | None, *, user: dict[str, Any] | None = None) -> str:
    """A page carrying the inline ``__NEXT_DATA__`` payload."""
    page_props: dict[str, Any] = {}
    if game is not None:
        page_props["gamePlayedByCurrentUser"] = game
    props: dict[str, Any] = {"pageProps": page_props}
    if user is not None:
        props["middlewareResults"] = [None, {"account": {"user": user}}]
    data = json.dumps({"props": props, "page": "/game/[token]"})
    return (
        "<html><head></head><body><div id='__next'></div>"
        f'<script id="__NEXT_DATA__" type="application/json">{data}</script>'
        "</body></html>"
    )


@pytest.fixture
def panorama() -> FakePanorama:
    return FakePanorama()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()
