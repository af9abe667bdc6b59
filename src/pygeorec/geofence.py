"""Radius-based "already visited nearby" suppression."""

from __future__ import annotations

import collections

from pygeorec.geodesy import bounding_box_contains
from pygeorec.models.pose import Coordinate


class Geofence:
    """Record a point at most once per region of the given radius.

    History is append-only for the lifetime of the instance and is only
    cleared by :meth:`reset`. With *max_history* set, the oldest entries
    are evicted once the bound is reached.
    """

    def __init__(self, *, max_history: int | None = None) -> None:
        self._history: collections.deque[Coordinate] = collections.deque(maxlen=max_history)

    @property
    def history(self) -> tuple[Coordinate, ...]:
        return tuple(self._history)

    def __len__(self) -> int:
        return len(self._history)

    def contains(self, point: Coordinate, radius_m: float) -> bool:
        return bounding_box_contains(self._history, point, radius_m)

    def should_record(self, point: Coordinate, radius_m: float) -> bool:
        """Return ``True`` and remember *point* if nothing nearby was recorded yet."""
        if bounding_box_contains(self._history, point, radius_m):
            return False
        self._history.append(point)
        return True

    def discard(self, point: Coordinate) -> None:
        """Forget *point* if it is in the history."""
        try:
            self._history.remove(point)
        except ValueError:
            return

    def reset(self) -> None:
        self._history.clear()
