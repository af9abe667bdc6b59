"""Live session state.

One long-lived object owns the live pose and the current game session.
The pose is updated in place by the watcher; the game session is only
ever replaced wholesale (last full payload wins, never merged).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from pygeorec._constants import is_game_path
from pygeorec.models.game import GameSession
from pygeorec.models.pose import Pose

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LiveState:
    """Shared state read by the watcher, reconciler, recorder and navigator."""

    def __init__(self, *, path: str | None = None, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._pose = Pose()
        self._pose_known = False
        self._game: GameSession | None = None
        self._game_updated_at: datetime | None = None
        self._path = path

    # ------------------------------------------------------------------
    # Pose
    # ------------------------------------------------------------------

    @property
    def pose(self) -> Pose:
        """The live pose record (mutable; hand out :meth:`pose_snapshot` instead)."""
        return self._pose

    @property
    def pose_known(self) -> bool:
        return self._pose_known

    def pose_snapshot(self) -> Pose:
        return self._pose.snapshot()

    def update_pose(self, pose: Pose) -> tuple[bool, bool]:
        """Copy *pose* into the live record.

        Returns ``(position_changed, pov_changed)`` using exact equality.
        The first update always counts as a change of both.
        """
        first = not self._pose_known
        position_changed = first or not self._pose.same_position(pose)
        pov_changed = first or not self._pose.same_pov(pose)

        if position_changed:
            self._pose.lat = pose.lat
            self._pose.lng = pose.lng
        if pov_changed:
            self._pose.heading = pose.heading
            self._pose.pitch = pose.pitch
        self._pose_known = True
        return position_changed, pov_changed

    # ------------------------------------------------------------------
    # Game session
    # ------------------------------------------------------------------

    @property
    def game(self) -> GameSession | None:
        # Sessions are frozen models, so handing out the reference is a snapshot.
        return self._game

    @property
    def game_updated_at(self) -> datetime | None:
        return self._game_updated_at

    def replace_game(self, game: GameSession) -> None:
        self._game = game
        self._game_updated_at = self._clock()

    def clear_game(self) -> GameSession | None:
        previous = self._game
        self._game = None
        self._game_updated_at = None
        return previous

    # ------------------------------------------------------------------
    # Page
    # ------------------------------------------------------------------

    @property
    def path(self) -> str | None:
        return self._path

    @property
    def on_game_page(self) -> bool:
        # An unknown page is treated as a game page until told otherwise.
        return self._path is None or is_game_path(self._path)

    def set_path(self, path: str) -> bool:
        """Record the page path; returns ``True`` when it left the game routes."""
        was_game = self.on_game_page
        self._path = path
        left = was_game and not self.on_game_page
        if left:
            _logger.debug("Left game routes for %s", path)
        return left
