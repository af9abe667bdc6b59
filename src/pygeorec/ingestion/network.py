"""Network signal ingestion.

Classifies intercepted calls against the game API and parses their JSON
bodies into :class:`~pygeorec.models.game.GameSession` candidates.
"""

from __future__ import annotations

import dataclasses
import enum
from typing import Any
from urllib.parse import urlsplit

from pydantic import ValidationError

from pygeorec._constants import CHALLENGES_API_PATH, GAMES_API_PATH, STREAK_TOKEN
from pygeorec.exceptions import SignalParseError
from pygeorec.ingestion.normalize import load_json_object
from pygeorec.models.game import GameSession


class CallKind(enum.StrEnum):
    CREATE = "create"
    REFRESH = "refresh"
    UPDATE = "update"


@dataclasses.dataclass(frozen=True)
class GameCall:
    """A call recognized as part of the game session API."""

    kind: CallKind
    method: str
    path: str
    token: str | None = None

    @property
    def starts_round(self) -> bool:
        return self.kind in (CallKind.CREATE, CallKind.REFRESH)


def _split_path(url: str) -> list[str]:
    path = urlsplit(url).path
    return [segment for segment in path.split("/") if segment]


def classify_call(url: str, method: str) -> GameCall | None:
    """Recognize a session-management call.

    - ``POST /api/v3/games`` and ``POST /api/v3/games/streak`` create a game
    - ``POST /api/v3/challenges/{id}`` creates a game from a challenge
    - ``GET /api/v3/games/{token}`` refreshes the current round
    - any other method on ``/api/v3/games/{token}`` updates it (a guess)

    Returns ``None`` for anything else.
    """
    verb = method.strip().upper()
    segments = _split_path(url)
    games = [s for s in GAMES_API_PATH.split("/") if s]
    challenges = [s for s in CHALLENGES_API_PATH.split("/") if s]
    path = "/" + "/".join(segments)

    if segments == games:
        return GameCall(CallKind.CREATE, verb, path) if verb == "POST" else None

    if len(segments) == len(games) + 1 and segments[: len(games)] == games:
        token = segments[-1]
        if token == STREAK_TOKEN and verb == "POST":
            return GameCall(CallKind.CREATE, verb, path)
        if verb == "GET":
            return GameCall(CallKind.REFRESH, verb, path, token)
        return GameCall(CallKind.UPDATE, verb, path, token)

    if len(segments) == len(challenges) + 1 and segments[: len(challenges)] == challenges and verb == "POST":
        return GameCall(CallKind.CREATE, verb, path)

    return None


def parse_game_session(body: Any, *, source: str) -> GameSession:
    """Parse a game payload; raises :class:`SignalParseError` on a bad shape."""
    data = load_json_object(body, source=source)
    try:
        return GameSession.model_validate(data)
    except ValidationError as exc:
        raise SignalParseError(f"{source}: not a game payload ({exc.error_count()} errors)", source=source) from exc
