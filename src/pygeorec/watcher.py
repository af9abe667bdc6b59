"""Position watcher.

Wraps whatever pose-change notification the panorama widget offers behind
the :class:`PoseSource` capability and turns notifications into
``position-changed`` / ``pov-changed`` events.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from pygeorec.bus import EventBus
from pygeorec.models.pose import Pose
from pygeorec.state.events import EventName, PoseEvent
from pygeorec.state.store import LiveState

_logger = logging.getLogger(__name__)


class PoseSource(Protocol):
    """Read access to the panorama widget's pose."""

    def get_pose(self) -> Pose: ...

    def on_pose_changed(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register *callback*; returns a callable that unregisters it."""
        ...


class PositionWatcher:
    """Emit pose events when the live pose actually changes."""

    def __init__(self, source: PoseSource, state: LiveState, bus: EventBus) -> None:
        self._source = source
        self._state = state
        self._bus = bus
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def running(self) -> bool:
        return self._unsubscribe is not None

    def start(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._source.on_pose_changed(self.handle_pose_change)

    def stop(self) -> None:
        unsubscribe = self._unsubscribe
        self._unsubscribe = None
        if unsubscribe is not None:
            unsubscribe()

    def handle_pose_change(self) -> None:
        """Pose-change callback. Never raises into the widget."""
        try:
            pose = self._source.get_pose()
        except Exception:
            _logger.debug("Could not read pose from source", exc_info=True)
            return

        position_changed, pov_changed = self._state.update_pose(pose)
        if not self._state.on_game_page:
            return

        if position_changed:
            self._publish(EventName.POSITION_CHANGED)
        if pov_changed:
            self._publish(EventName.POV_CHANGED)

    def _publish(self, name: EventName) -> None:
        event = PoseEvent(pose=self._state.pose_snapshot(), game=self._state.game)
        try:
            self._bus.emit(name, event)
        except Exception:
            _logger.debug("Listener failed for %s", name, exc_info=True)
