"""Full flow: page signals in, recordings stored by the reference server."""

from __future__ import annotations

from collections.abc import AsyncIterator

import aiohttp
import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer
from conftest import FakeGeocoder, FakePanorama, make_game

from pygeorec import GeoRecorder, RecorderConfig
from pygeorec.server import PositionStore, create_app
from pygeorec.state.policy import RoundPhase

GAMES_URL = "https://www.geoguessr.com/api/v3/games"
TOKEN = "user-token"

pytestmark = pytest.mark.e2e


@pytest_asyncio.fixture
async def store() -> AsyncIterator[PositionStore]:
    yield PositionStore()


@pytest_asyncio.fixture
async def server(store: PositionStore) -> AsyncIterator[TestServer]:
    async with TestServer(create_app(store)) as test_server:
        yield test_server


@pytest.mark.asyncio
async def test_game_is_recorded_end_to_end(
    server: TestServer, store: PositionStore, panorama: FakePanorama, geocoder: FakeGeocoder
) -> None:
    config = RecorderConfig(token=TOKEN, api_base_url=str(server.make_url("/api/")))
    events: list[str] = []

    async with aiohttp.ClientSession() as session:
        async with GeoRecorder(config, panorama, panorama, panorama, session=session, geocoder=geocoder) as rec:
            rec.on("round-start", lambda event: events.append("round-start"))
            rec.on("game-end", lambda event: events.append("game-end"))

            rec.observe_response(f"{GAMES_URL}/abc", "GET", make_game("abc", 1, round_count=1))
            assert rec.phase == RoundPhase.IN_ROUND

            panorama.move(lat=40.01)
            assert await rec.handle_key("ctrl+arrowup") is True
            assert await rec.handle_key("ctrl+b") is True

            rec.observe_response(f"{GAMES_URL}/abc", "POST", make_game("abc", 1, "finished", guesses=1, round_count=1))
            rec.observe_mutations(['<div class="result-layout_root__x"></div>'])

            status = rec.status()
            await rec.recorder.drain()

    assert events == ["round-start", "game-end"]
    assert status["game"] == "abc"
    assert status["phase"] == "round-ended"
    assert status["distance"] == "Teleport distance: 100 m"

    stored = store.positions(TOKEN)
    travel = [p.record for p in stored if p.record.type == "travel"]
    bookmarks = [p.record for p in stored if p.record.type == "bookmark"]
    # round start location, the manual move and the teleport
    assert len(travel) == 3
    assert sorted(round(p.lat, 4) for p in travel) == [40.0, 40.01, 40.01]
    assert any(p.lng > -74.0 for p in travel)
    assert len(bookmarks) == 1
    assert bookmarks[0].location == geocoder.address
    assert bookmarks[0].heading == 90.0

    games = store.games(TOKEN)
    assert len(games) == 1
    assert games[0].game == "abc"
    assert games[0].score == 4000


@pytest.mark.asyncio
async def test_recording_disabled_without_token(
    server: TestServer, store: PositionStore, panorama: FakePanorama, geocoder: FakeGeocoder
) -> None:
    config = RecorderConfig(api_base_url=str(server.make_url("/api/")))

    async with GeoRecorder(config, panorama, panorama, panorama, geocoder=geocoder) as rec:
        rec.observe_response(f"{GAMES_URL}/abc", "GET", make_game("abc", 1))
        panorama.move(lat=40.5)
        await rec.handle_key("ctrl+arrowup")
        await rec.recorder.drain()

        assert rec.game is not None
        assert len(panorama.views) == 1

    assert store.export(TOKEN) == {"positions": [], "games": []}


@pytest.mark.asyncio
async def test_navigating_away_stops_recording(
    server: TestServer, store: PositionStore, panorama: FakePanorama, geocoder: FakeGeocoder
) -> None:
    config = RecorderConfig(token=TOKEN, api_base_url=str(server.make_url("/api/")), record_round_start=False)

    async with GeoRecorder(config, panorama, panorama, panorama, geocoder=geocoder) as rec:
        rec.observe_response(f"{GAMES_URL}/abc", "GET", make_game("abc", 1))
        rec.navigate("/me/profile")
        panorama.move(lat=41.0)
        await rec.recorder.drain()

        assert rec.game is None

    assert store.positions(TOKEN) == []


@pytest.mark.asyncio
async def test_reinitialize_forgets_everything(
    server: TestServer, store: PositionStore, panorama: FakePanorama, geocoder: FakeGeocoder
) -> None:
    config = RecorderConfig(token=TOKEN, api_base_url=str(server.make_url("/api/")))
    starts: list[str] = []

    async with GeoRecorder(config, panorama, panorama, panorama, geocoder=geocoder) as rec:
        rec.on("round-start", lambda event: starts.append(event.dedup_key))
        rec.observe_response(f"{GAMES_URL}/abc", "GET", make_game("abc", 1))
        await rec.recorder.drain()
        assert len(rec.recorder.travel_fence) == 1

        rec.reinitialize()

        assert rec.game is None
        assert rec.phase == RoundPhase.NO_SESSION
        assert len(rec.recorder.travel_fence) == 0

        rec.observe_response(f"{GAMES_URL}/abc", "GET", make_game("abc", 1))
        await rec.recorder.drain()

    assert starts == ["abc-1", "abc-1"]
    # Stored once: the server applies its own nearby de-duplication.
    assert len(store.positions(TOKEN)) == 1
