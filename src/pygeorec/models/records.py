"""Payloads sent to the recording API."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import Field

from pygeorec.models._base import GeoBaseModel
from pygeorec.models.game import GameSession
from pygeorec.models.pose import Pose


class RecordType(enum.StrEnum):
    TRAVEL = "travel"
    BOOKMARK = "bookmark"


class PositionRecord(GeoBaseModel):
    """A visited (``travel``) or saved (``bookmark``) position."""

    token: str
    type: RecordType
    game: str
    round: int
    map: str = ""
    nick: str = ""
    lat: float
    lng: float
    heading: float = 0.0
    pitch: float = 0.0
    location: str | None = None

    @classmethod
    def from_pose(
        cls,
        *,
        token: str,
        record_type: RecordType,
        pose: Pose,
        game: GameSession,
        location: str | None = None,
    ) -> PositionRecord:
        return cls(
            token=token,
            type=record_type,
            game=game.token,
            round=game.round,
            map=game.map,
            nick=game.player.nick,
            lat=pose.lat,
            lng=pose.lng,
            heading=pose.heading,
            pitch=pose.pitch,
            location=location,
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class GameSummary(GeoBaseModel):
    """End-of-game summary."""

    token: str
    game: str
    map: str = ""
    map_name: str = ""
    round_count: int = 0
    moving: bool = True
    zooming: bool = True
    rotating: bool = True
    time_limit: int = 0
    score: int = 0
    distance: float = 0.0
    time: int = 0
    user_id: str = ""
    user_nick: str = ""
    rounds: list[dict[str, Any]] = Field(default_factory=list)
    guesses: list[dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_game(cls, *, token: str, game: GameSession) -> GameSummary:
        player = game.player
        return cls(
            token=token,
            game=game.token,
            map=game.map,
            map_name=game.map_name,
            round_count=game.round_count or len(game.rounds),
            moving=not game.forbid_moving,
            zooming=not game.forbid_zooming,
            rotating=not game.forbid_rotating,
            time_limit=game.time_limit,
            score=player.total_score if player.total_score is not None else sum(g.round_score_in_points for g in game.guesses),
            distance=(
                player.total_distance_in_meters
                if player.total_distance_in_meters is not None
                else sum(g.distance_in_meters for g in game.guesses)
            ),
            time=player.total_time if player.total_time is not None else sum(g.time for g in game.guesses),
            user_id=player.id,
            user_nick=player.nick,
            rounds=[r.model_dump(mode="json", by_alias=True) for r in game.rounds],
            guesses=[g.model_dump(mode="json", by_alias=True) for g in game.guesses],
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
