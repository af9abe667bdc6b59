"""In-memory storage for recorded positions and game summaries."""

from __future__ import annotations

import dataclasses
from datetime import UTC, datetime
from typing import Any

from pygeorec.geodesy import bounding_box_contains
from pygeorec.models.pose import Coordinate
from pygeorec.models.records import GameSummary, PositionRecord


@dataclasses.dataclass(frozen=True)
class StoredPosition:
    record: PositionRecord
    created_at: datetime

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.record.lat, lng=self.record.lng)


class PositionStore:
    """Per-user positions with server-side nearby de-duplication."""

    def __init__(self, *, radius_m: float = 50.0) -> None:
        self._radius_m = radius_m
        self._positions: dict[str, list[StoredPosition]] = {}
        self._games: dict[tuple[str, str], GameSummary] = {}

    def add_position(self, record: PositionRecord) -> bool:
        """Store *record* unless the user already has one nearby of the same type."""
        positions = self._positions.setdefault(record.token, [])
        nearby = [p.coordinate for p in positions if p.record.type == record.type]
        if bounding_box_contains(nearby, Coordinate(lat=record.lat, lng=record.lng), self._radius_m):
            return False
        positions.append(StoredPosition(record=record, created_at=datetime.now(UTC)))
        return True

    def positions(self, token: str) -> list[StoredPosition]:
        return list(self._positions.get(token, ()))

    def add_game(self, summary: GameSummary) -> bool:
        """Store a game summary; a repeated summary for the same game replaces the old one."""
        key = (summary.token, summary.game)
        created = key not in self._games
        self._games[key] = summary
        return created

    def games(self, token: str) -> list[GameSummary]:
        return [summary for (owner, _game), summary in self._games.items() if owner == token]

    def export(self, token: str) -> dict[str, Any]:
        return {
            "positions": [
                {**p.record.to_payload(), "createdAt": p.created_at.isoformat()} for p in self.positions(token)
            ],
            "games": [summary.to_payload() for summary in self.games(token)],
        }
