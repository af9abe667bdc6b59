from __future__ import annotations

import pytest
from conftest import make_game
from pydantic import ValidationError

from pygeorec.models.game import GameSession, GameState
from pygeorec.models.pose import Coordinate, Pose
from pygeorec.models.records import GameSummary, PositionRecord, RecordType


def test_game_session_parses_api_payload() -> None:
    game = GameSession.model_validate(make_game("abc", 2, guesses=1))

    assert game.token == "abc"
    assert game.round == 2
    assert game.state == GameState.IN_PROGRESS
    assert game.map == "world"
    assert game.map_name == "World"
    assert game.game_type == "standard"
    assert game.player.id == "user-1"
    assert game.player.nick == "walker"
    assert game.player.total_score == 4000
    assert len(game.rounds) == 2
    assert game.rounds[1].pano_id == "pano-1"
    assert len(game.guesses) == 1
    assert game.guesses[0].round_score_in_points == 4000
    assert game.current_round is not None
    assert game.current_round.lat == pytest.approx(41.0)
    assert game.dedup_key() == "abc-2"


@pytest.mark.parametrize(("raw", "expected"), [("finished", GameState.FINISHED), ("FINISHED", GameState.FINISHED), ("started", GameState.IN_PROGRESS), ("", GameState.IN_PROGRESS)])
def test_game_state_mapping(raw: str, expected: GameState) -> None:
    payload = make_game()
    payload["state"] = raw

    assert GameSession.model_validate(payload).state == expected


def test_game_session_requires_token_and_round() -> None:
    with pytest.raises(ValidationError):
        GameSession.model_validate({"round": 1})
    with pytest.raises(ValidationError):
        GameSession.model_validate({"token": "abc", "round": 0})


def test_top_level_guesses_win_over_player_guesses() -> None:
    payload = make_game(guesses=2)
    payload["guesses"] = [{"lat": 1.0, "lng": 2.0}]

    assert len(GameSession.model_validate(payload).guesses) == 1


def test_null_values_fall_back_to_defaults() -> None:
    payload = make_game()
    payload["mapName"] = None
    payload["player"]["totalScore"] = None

    game = GameSession.model_validate(payload)

    assert game.map_name == ""
    assert game.player.total_score is None


def test_pose_heading_normalized_and_snapshot_is_independent() -> None:
    pose = Pose(lat=1.0, lng=2.0, heading=-30.0, pitch=10.0)
    assert pose.heading == pytest.approx(330.0)

    snapshot = pose.snapshot()
    pose.lat = 5.0

    assert snapshot.lat == 1.0
    assert pose.coordinate == Coordinate(lat=5.0, lng=2.0)


def test_coordinate_range_is_validated() -> None:
    with pytest.raises(ValidationError):
        Coordinate(lat=91.0, lng=0.0)
    with pytest.raises(ValidationError):
        Pose(lat=0.0, lng=0.0, pitch=-91.0)


def test_position_record_payload_shape() -> None:
    game = GameSession.model_validate(make_game("abc", 3))
    pose = Pose(lat=40.5, lng=-73.5, heading=12.0, pitch=-3.0)

    payload = PositionRecord.from_pose(token="user-token", record_type=RecordType.TRAVEL, pose=pose, game=game).to_payload()

    assert payload == {
        "token": "user-token",
        "type": "travel",
        "game": "abc",
        "round": 3,
        "map": "world",
        "nick": "walker",
        "lat": 40.5,
        "lng": -73.5,
        "heading": 12.0,
        "pitch": -3.0,
    }


def test_bookmark_payload_carries_location() -> None:
    game = GameSession.model_validate(make_game())
    record = PositionRecord.from_pose(
        token="t",
        record_type=RecordType.BOOKMARK,
        pose=Pose(lat=1.0, lng=1.0),
        game=game,
        location="Somewhere",
    )

    assert record.to_payload()["type"] == "bookmark"
    assert record.to_payload()["location"] == "Somewhere"


def test_game_summary_from_finished_game() -> None:
    game = GameSession.model_validate(make_game("abc", 5, "finished", guesses=5))

    payload = GameSummary.from_game(token="user-token", game=game).to_payload()

    assert payload["token"] == "user-token"
    assert payload["game"] == "abc"
    assert payload["mapName"] == "World"
    assert payload["roundCount"] == 5
    assert payload["moving"] is True
    assert payload["zooming"] is False
    assert payload["rotating"] is True
    assert payload["timeLimit"] == 120
    assert payload["score"] == 20000
    assert payload["distance"] == pytest.approx(7500.0)
    assert payload["time"] == 150
    assert payload["userId"] == "user-1"
    assert payload["userNick"] == "walker"
    assert len(payload["rounds"]) == 5
    assert payload["rounds"][0]["panoId"] == "pano-0"
    assert len(payload["guesses"]) == 5


def test_game_summary_totals_fall_back_to_guesses() -> None:
    payload = make_game(guesses=2)
    del payload["player"]["totalScore"]
    del payload["player"]["totalDistanceInMeters"]
    del payload["player"]["totalTime"]
    game = GameSession.model_validate(payload)

    summary = GameSummary.from_game(token="t", game=game)

    assert summary.score == 8000
    assert summary.distance == pytest.approx(3000.0)
    assert summary.time == 60
