"""Recorder: maps lifecycle and position events to recording API calls.

Recording is best-effort and non-blocking. Every call runs as a detached
task; failures are logged and dropped, never retried. The geofence check
and history append happen synchronously in the event handler, before the
task is created, so overlapping in-flight calls can never record the same
region twice.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from pygeorec._transport import Transport
from pygeorec.bus import EventBus
from pygeorec.config import RecorderConfig
from pygeorec.exceptions import GeoRecError
from pygeorec.geocode import ReverseGeocoder
from pygeorec.geofence import Geofence
from pygeorec.models.game import GameSession
from pygeorec.models.pose import Pose
from pygeorec.models.records import GameSummary, PositionRecord, RecordType
from pygeorec.state.events import EventName, PoseEvent, RoundEvent
from pygeorec.state.store import LiveState

_logger = logging.getLogger(__name__)

RECORD_POSITION_ENDPOINT = "record-position"
RECORD_GAME_ENDPOINT = "record-game"


class Recorder:
    """Subscribe to the bus and send recordings to the recording API."""

    def __init__(
        self,
        config: RecorderConfig,
        state: LiveState,
        bus: EventBus,
        transport: Transport,
        *,
        geocoder: ReverseGeocoder | None = None,
        travel_fence: Geofence | None = None,
        bookmark_fence: Geofence | None = None,
    ) -> None:
        self._config = config
        self._state = state
        self._bus = bus
        self._transport = transport
        self._geocoder = geocoder
        self.travel_fence = travel_fence or Geofence(max_history=config.max_history)
        self.bookmark_fence = bookmark_fence or Geofence(max_history=config.max_history)
        self._tasks: set[asyncio.Task[Any]] = set()
        self._unsubscribers: list[Callable[[], None]] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def attach(self) -> None:
        if self._unsubscribers:
            return
        self._unsubscribers = [
            self._bus.on(EventName.POSITION_CHANGED, self.on_position_changed),
            self._bus.on(EventName.ROUND_START, self.on_round_start),
            self._bus.on(EventName.GAME_END, self.on_game_end),
        ]

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every in-flight recording call."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        self.detach()
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()

    def reset(self) -> None:
        """Forget visited positions, as on a full reinitialization."""
        self.travel_fence.reset()
        self.bookmark_fence.reset()

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def on_position_changed(self, event: PoseEvent) -> None:
        if not self._config.recording_enabled or event.game is None:
            return
        self._record_travel(event.pose, event.game)

    def on_round_start(self, event: RoundEvent) -> None:
        if not self._config.recording_enabled or not self._config.record_round_start:
            return
        start = event.game.current_round
        if start is None:
            return
        pose = Pose(lat=start.lat, lng=start.lng, heading=start.heading, pitch=start.pitch)
        self._record_travel(pose, event.game)

    def on_game_end(self, event: RoundEvent) -> None:
        token = self._config.token
        if not token:
            return
        summary = GameSummary.from_game(token=token, game=event.game)
        self._spawn(
            self._transport.post_json(RECORD_GAME_ENDPOINT, summary.to_payload()),
            f"game summary {event.game.token}",
        )

    def _record_travel(self, pose: Pose, game: GameSession) -> None:
        token = self._config.token
        if not token:
            return
        if not self.travel_fence.should_record(pose.coordinate, self._config.travel_radius_m):
            return
        record = PositionRecord.from_pose(token=token, record_type=RecordType.TRAVEL, pose=pose, game=game)
        self._spawn(
            self._transport.post_json(RECORD_POSITION_ENDPOINT, record.to_payload()),
            f"travel {pose.lat:.6f},{pose.lng:.6f}",
        )

    # ------------------------------------------------------------------
    # Bookmarks
    # ------------------------------------------------------------------

    async def bookmark(self, pose: Pose | None = None) -> bool:
        """Save the current (or given) pose as a bookmark.

        Returns ``True`` when the recording API accepted it. Emits
        ``bookmark-saved`` with the record on success.
        """
        token = self._config.token
        game = self._state.game
        if not token or game is None:
            return False

        current = pose.snapshot() if pose is not None else self._state.pose_snapshot()
        if not self.bookmark_fence.should_record(current.coordinate, self._config.bookmark_radius_m):
            _logger.debug("Bookmark at %s already saved", current.coordinate)
            return False

        location: str | None = None
        if self._config.geocode_bookmarks and self._geocoder is not None:
            try:
                location = await self._geocoder.reverse(current.coordinate) or None
            except Exception:
                _logger.debug("Reverse geocoding failed", exc_info=True)

        record = PositionRecord.from_pose(
            token=token,
            record_type=RecordType.BOOKMARK,
            pose=current,
            game=game,
            location=location,
        )
        try:
            await self._transport.post_json(RECORD_POSITION_ENDPOINT, record.to_payload())
        except GeoRecError as exc:
            _logger.debug("Bookmark not recorded: %s", exc)
            self.bookmark_fence.discard(current.coordinate)
            return False

        try:
            self._bus.emit(EventName.BOOKMARK_SAVED, record)
        except Exception:
            _logger.debug("Listener failed for bookmark-saved", exc_info=True)
        return True

    # ------------------------------------------------------------------
    # Detached tasks
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any], description: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            _logger.debug("No running event loop; dropped %s", description)
            return
        task = loop.create_task(self._best_effort(coro, description))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @staticmethod
    async def _best_effort(coro: Coroutine[Any, Any, Any], description: str) -> None:
        try:
            await coro
        except GeoRecError as exc:
            _logger.debug("Recording %s failed: %s", description, exc)
        except Exception:
            _logger.debug("Recording %s failed", description, exc_info=True)
        else:
            _logger.debug("Recorded %s", description)
