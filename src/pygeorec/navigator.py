"""Simulated movement: teleport along the view direction.

The target point is computed with :func:`~pygeorec.geodesy.destination_point`
and snapped to the nearest real panorama by the widget's lookup service.
Pitch is never changed by moving.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Protocol

from pygeorec._constants import DEFAULT_KEY_BINDINGS, DISTANCE_LADDER, PANORAMA_SEARCH_RADIUS_M
from pygeorec.bus import EventBus
from pygeorec.geodesy import destination_point, normalize_heading
from pygeorec.models.pose import Coordinate, PanoramaLocation, Pose
from pygeorec.state.events import EventName
from pygeorec.state.store import LiveState

_logger = logging.getLogger(__name__)


class LookupPreference(enum.StrEnum):
    NEAREST = "nearest"
    BEST = "best"


class PanoramaService(Protocol):
    async def find_nearest(
        self,
        coordinate: Coordinate,
        radius_m: float,
        preference: LookupPreference,
    ) -> PanoramaLocation | None:
        """Return the closest panorama within *radius_m*, or ``None``."""
        ...


class ViewController(Protocol):
    def set_view(self, coordinate: Coordinate, heading: float, pitch: float) -> None: ...


class NavigatorAction(enum.StrEnum):
    FORWARD = "forward"
    BACKWARD = "backward"
    INCREASE = "increase"
    DECREASE = "decrease"
    BOOKMARK = "bookmark"


class DistanceLadder:
    """Fixed ascending list of teleport distances; moves clamp at both ends."""

    def __init__(self, steps: Sequence[int] = DISTANCE_LADDER, *, initial: int | None = None) -> None:
        if not steps or list(steps) != sorted(set(steps)):
            raise ValueError("steps must be a non-empty strictly ascending sequence")
        self._steps = tuple(steps)
        if initial is None:
            self._index = 0
        elif initial in self._steps:
            self._index = self._steps.index(initial)
        else:
            raise ValueError(f"initial distance must be one of {self._steps}, got {initial}")

    @property
    def steps(self) -> tuple[int, ...]:
        return self._steps

    @property
    def distance(self) -> int:
        return self._steps[self._index]

    def increase(self) -> int:
        self._index = min(self._index + 1, len(self._steps) - 1)
        return self.distance

    def decrease(self) -> int:
        self._index = max(self._index - 1, 0)
        return self.distance


class Navigator:
    """Hotkey-driven teleporting."""

    def __init__(
        self,
        state: LiveState,
        panoramas: PanoramaService,
        view: ViewController,
        bus: EventBus,
        *,
        ladder: DistanceLadder | None = None,
        search_radius_m: float = PANORAMA_SEARCH_RADIUS_M,
        key_bindings: Mapping[str, str] | None = None,
        bookmark: Callable[[Pose], Awaitable[Any]] | None = None,
    ) -> None:
        self._state = state
        self._panoramas = panoramas
        self._view = view
        self._bus = bus
        self._ladder = ladder or DistanceLadder(initial=100)
        self._search_radius_m = search_radius_m
        bindings = key_bindings if key_bindings is not None else DEFAULT_KEY_BINDINGS
        self._bindings = {_normalize_key(key): NavigatorAction(action) for key, action in bindings.items()}
        self._bookmark = bookmark

    @property
    def ladder(self) -> DistanceLadder:
        return self._ladder

    @property
    def distance(self) -> int:
        return self._ladder.distance

    @property
    def indicator_text(self) -> str:
        return f"Teleport distance: {self._ladder.distance} m"

    def increase(self) -> int:
        return self._changed(self._ladder.increase())

    def decrease(self) -> int:
        return self._changed(self._ladder.decrease())

    def _changed(self, distance: int) -> int:
        try:
            self._bus.emit(EventName.DISTANCE_CHANGED, distance)
        except Exception:
            _logger.debug("Listener failed for distance change", exc_info=True)
        return distance

    async def teleport(
        self,
        pose: Pose | None = None,
        distance_m: float | None = None,
        backwards: bool = False,
    ) -> PanoramaLocation | None:
        """Move the view *distance_m* along (or against) the current heading.

        Resolves to the panorama moved to, or ``None`` when no panorama was
        found near the target; the view is left untouched in that case.
        """
        current = pose.snapshot() if pose is not None else self._state.pose_snapshot()
        distance = float(self._ladder.distance if distance_m is None else distance_m)
        heading = normalize_heading(current.heading + 180.0) if backwards else current.heading

        target = destination_point(current.coordinate, distance, heading)
        try:
            found = await self._panoramas.find_nearest(target, self._search_radius_m, LookupPreference.NEAREST)
        except Exception:
            _logger.debug("Panorama lookup failed near %s", target, exc_info=True)
            return None
        if found is None:
            _logger.debug("No panorama within %.0f m of %s", self._search_radius_m, target)
            return None

        # Keep the original view direction, including when moving backwards.
        self._view.set_view(found.coordinate, current.heading, current.pitch)
        return found

    async def forward(self) -> PanoramaLocation | None:
        return await self.teleport()

    async def backward(self) -> PanoramaLocation | None:
        return await self.teleport(backwards=True)

    async def handle_key(self, key: str) -> bool:
        """Run the action bound to *key*; returns ``False`` for unbound keys."""
        action = self._bindings.get(_normalize_key(key))
        if action is None:
            return False
        try:
            if action is NavigatorAction.FORWARD:
                await self.forward()
            elif action is NavigatorAction.BACKWARD:
                await self.backward()
            elif action is NavigatorAction.INCREASE:
                self.increase()
            elif action is NavigatorAction.DECREASE:
                self.decrease()
            elif action is NavigatorAction.BOOKMARK and self._bookmark is not None:
                await self._bookmark(self._state.pose_snapshot())
        except Exception:
            _logger.debug("Hotkey %s failed", key, exc_info=True)
        return True


def _normalize_key(key: str) -> str:
    parts = [part.strip().lower() for part in key.replace(" ", "").split("+") if part.strip()]
    if not parts:
        return ""
    *modifiers, name = parts
    return "+".join([*sorted(modifiers), name])
