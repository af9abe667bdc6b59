"""Spherical geodesy helpers.

Both functions work on a sphere with the mean Earth radius from
:data:`pygeorec._constants.EARTH_RADIUS_KM` and are meant for short,
urban-scale distances (tens of kilometers at most). Nothing here
special-cases the poles or the antimeridian beyond longitude wrapping.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from pygeorec._constants import EARTH_RADIUS_KM
from pygeorec.models.pose import Coordinate

_EARTH_RADIUS_M = EARTH_RADIUS_KM * 1000.0

# Length of one meter in degrees of latitude (~0.000008983152841195216).
_DEGREES_PER_METER = 1 / ((2 * math.pi / 360) * EARTH_RADIUS_KM) / 1000


def meters_to_degrees(meters: float) -> float:
    """Convert a distance along a meridian to degrees of latitude."""
    return meters * _DEGREES_PER_METER


def normalize_heading(heading: float) -> float:
    """Normalize a heading in degrees to ``[0, 360)``."""
    result = heading % 360.0
    # -1e-17 % 360 == 360.0 in floating point.
    return 0.0 if result >= 360.0 else result


def _wrap_longitude(lng: float) -> float:
    return (lng + 540.0) % 360.0 - 180.0


def destination_point(origin: Coordinate, distance_m: float, heading_deg: float) -> Coordinate:
    """Solve the direct problem: walk *distance_m* from *origin* along *heading_deg*.

    A zero distance returns *origin* itself.
    """
    if distance_m == 0:
        return origin

    bearing = math.radians(normalize_heading(heading_deg))
    angular = distance_m / _EARTH_RADIUS_M
    lat1 = math.radians(origin.lat)
    lng1 = math.radians(origin.lng)

    sin_lat2 = math.sin(lat1) * math.cos(angular) + math.cos(lat1) * math.sin(angular) * math.cos(bearing)
    lat2 = math.asin(max(-1.0, min(1.0, sin_lat2)))
    lng2 = lng1 + math.atan2(
        math.sin(bearing) * math.sin(angular) * math.cos(lat1),
        math.cos(angular) - math.sin(lat1) * math.sin(lat2),
    )

    return Coordinate(lat=math.degrees(lat2), lng=_wrap_longitude(math.degrees(lng2)))


def bounding_box_contains(history: Iterable[Coordinate], point: Coordinate, radius_m: float) -> bool:
    """Return ``True`` if *point* falls inside the box around any *history* entry.

    Each box is ``radius_m`` wide in latitude; the longitude half-width is
    widened by ``1 / cos(latitude)`` of the historical point to account for
    meridian convergence. This is an approximation of a circle, not a
    geodesic distance test. Bounds are inclusive so a point is always near
    itself.
    """
    degrees = meters_to_degrees(radius_m)

    for position in history:
        cos_lat = math.cos(math.radians(position.lat))
        # At the poles every longitude is within range.
        d_lng = degrees / cos_lat if cos_lat > 1e-12 else 360.0

        if (
            position.lat - degrees <= point.lat <= position.lat + degrees
            and position.lng - d_lng <= point.lng <= position.lng + d_lng
        ):
            return True

    return False
