"""Game session model.

Mirrors the JSON served by the game API (``/api/v3/games/{token}``) and
embedded in the ``__NEXT_DATA__`` page payload. A session is always
replaced wholesale by the most recently observed payload.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import Field, field_validator, model_validator

from pygeorec.ingestion.normalize import safe_float, safe_int
from pygeorec.models._base import GeoBaseModel


class GameState(enum.StrEnum):
    IN_PROGRESS = "in-progress"
    FINISHED = "finished"

    @classmethod
    def _missing_(cls, value: object) -> GameState:
        # "started", "inprogress", "" and anything else still mean "being played".
        return cls.IN_PROGRESS


class Guess(GeoBaseModel):
    """A guess placed by the player for one round."""

    lat: float = 0.0
    lng: float = 0.0
    timed_out: bool = False
    skipped_round: bool = False
    round_score_in_points: int = 0
    distance_in_meters: float = 0.0
    time: int = 0

    @field_validator("round_score_in_points", "time", mode="before")
    @classmethod
    def _coerce_int(cls, value: Any) -> int:
        return safe_int(value) or 0

    @field_validator("distance_in_meters", mode="before")
    @classmethod
    def _coerce_float(cls, value: Any) -> float:
        return safe_float(value) or 0.0


class RoundLocation(GeoBaseModel):
    """The location served for one round."""

    lat: float
    lng: float
    pano_id: str = ""
    heading: float = 0.0
    pitch: float = 0.0
    zoom: float = 0.0
    streak_location_code: str | None = None


class Player(GeoBaseModel):
    id: str = ""
    nick: str = ""
    guesses: tuple[Guess, ...] = ()
    total_score: int | None = None
    total_distance_in_meters: float | None = None
    total_time: int | None = None

    @field_validator("total_score", mode="before")
    @classmethod
    def _unwrap_amount(cls, value: Any) -> int | None:
        # {"amount": "12345", "unit": "points", "percentage": 24.7}
        if isinstance(value, dict):
            value = value.get("amount")
        return safe_int(value)

    @field_validator("total_time", mode="before")
    @classmethod
    def _coerce_time(cls, value: Any) -> int | None:
        return safe_int(value)

    @field_validator("total_distance_in_meters", mode="before")
    @classmethod
    def _coerce_distance(cls, value: Any) -> float | None:
        return safe_float(value)


class GameSession(GeoBaseModel):
    """A snapshot of one game as reported by the game API."""

    token: str = Field(..., min_length=1)
    round: int = Field(..., ge=1)
    state: GameState = GameState.IN_PROGRESS
    map: str = ""
    map_name: str = ""
    game_type: str = Field(default="", alias="type")
    round_count: int = 0
    time_limit: int = 0
    forbid_moving: bool = False
    forbid_zooming: bool = False
    forbid_rotating: bool = False
    player: Player = Field(default_factory=Player)
    rounds: tuple[RoundLocation, ...] = ()
    guesses: tuple[Guess, ...] = ()

    @field_validator("state", mode="before")
    @classmethod
    def _coerce_state(cls, value: Any) -> GameState:
        if isinstance(value, GameState):
            return value
        return GameState(str(value).strip().lower())

    @model_validator(mode="before")
    @classmethod
    def _lift_player_guesses(cls, values: Any) -> Any:
        if not isinstance(values, dict) or values.get("guesses"):
            return values
        player = values.get("player")
        if isinstance(player, dict) and isinstance(player.get("guesses"), list):
            return {**values, "guesses": player["guesses"]}
        return values

    @property
    def is_finished(self) -> bool:
        return self.state == GameState.FINISHED

    @property
    def is_streak(self) -> bool:
        return self.map == "streak" or self.game_type == "streak" or "streak" in self.map_name.lower()

    @property
    def current_round(self) -> RoundLocation | None:
        """Location of the round being played, when the payload includes it."""
        if 1 <= self.round <= len(self.rounds):
            return self.rounds[self.round - 1]
        return None

    def dedup_key(self) -> str:
        return f"{self.token}-{self.round}"
