"""Round boundary de-duplication policy.

This module intentionally contains *no* payload parsing. The reconciler
hands it parsed sessions and asks whether an emission is new.
"""

from __future__ import annotations

import enum

from pygeorec.models.game import GameSession


class RoundPhase(enum.StrEnum):
    NO_SESSION = "no-session"
    IN_ROUND = "in-round"
    ROUND_ENDED = "round-ended"


class BoundaryKind(enum.StrEnum):
    START = "start"
    END = "end"
    GAME_END = "game-end"


class DedupTracker:
    """Last emitted key per boundary kind.

    Each kind is tracked independently: emitting the end of a
    round never suppresses the start of the same round, and vice versa.
    """

    def __init__(self) -> None:
        self._last: dict[BoundaryKind, str] = {}

    def last(self, kind: BoundaryKind) -> str | None:
        return self._last.get(kind)

    def is_new(self, kind: BoundaryKind, game: GameSession) -> bool:
        return self._last.get(kind) != game.dedup_key()

    def mark(self, kind: BoundaryKind, game: GameSession) -> None:
        self._last[kind] = game.dedup_key()

    def claim(self, kind: BoundaryKind, game: GameSession) -> bool:
        """Mark *game* as emitted for *kind*; ``False`` if it already was."""
        if not self.is_new(kind, game):
            return False
        self.mark(kind, game)
        return True

    def reset(self) -> None:
        self._last.clear()
