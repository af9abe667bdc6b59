"""Semantic events and their payloads.

All signal paths (watcher, network, DOM) publish these on the event bus.
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from pygeorec.models.game import GameSession
from pygeorec.models.pose import Pose


class EventName(enum.StrEnum):
    POSITION_CHANGED = "position-changed"
    POV_CHANGED = "pov-changed"
    ROUND_START = "round-start"
    ROUND_END = "round-end"
    GAME_END = "game-end"
    SESSION_CLEARED = "session-cleared"
    BOOKMARK_SAVED = "bookmark-saved"
    DISTANCE_CHANGED = "distance-changed"


class SignalSource(enum.StrEnum):
    NETWORK = "network"
    DOM = "dom"


class PoseEvent(BaseModel):
    """Payload of ``position-changed`` and ``pov-changed``."""

    model_config = ConfigDict(frozen=True)

    pose: Pose
    game: GameSession | None = None
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class RoundEvent(BaseModel):
    """Payload of ``round-start``, ``round-end`` and ``game-end``."""

    model_config = ConfigDict(frozen=True)

    game: GameSession
    source: SignalSource
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def dedup_key(self) -> str:
        return self.game.dedup_key()
