"""Data models for poses, game sessions and recording payloads."""

from pygeorec.models._base import GeoBaseModel
from pygeorec.models.game import GameSession, GameState, Guess, Player, RoundLocation
from pygeorec.models.pose import Coordinate, PanoramaLocation, Pose
from pygeorec.models.records import GameSummary, PositionRecord, RecordType

__all__ = [
    "Coordinate",
    "GameSession",
    "GameState",
    "GameSummary",
    "GeoBaseModel",
    "Guess",
    "PanoramaLocation",
    "Player",
    "PositionRecord",
    "RecordType",
    "RoundLocation",
]
