"""Best-effort reverse geocoding."""

from __future__ import annotations

import logging
from typing import Protocol

import aiohttp

from pygeorec._constants import USER_AGENT
from pygeorec.models.pose import Coordinate

_logger = logging.getLogger(__name__)


class ReverseGeocoder(Protocol):
    async def reverse(self, coordinate: Coordinate) -> str:
        """Return a formatted address, or ``""`` when none is known."""
        ...


class NominatimGeocoder:
    """Reverse geocoder backed by a Nominatim compatible ``/reverse`` endpoint."""

    def __init__(self, http_session: aiohttp.ClientSession, *, url: str, timeout: float = 10.0) -> None:
        self._http = http_session
        self._url = url
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def reverse(self, coordinate: Coordinate) -> str:
        params = {
            "format": "jsonv2",
            "lat": f"{coordinate.lat:.7f}",
            "lon": f"{coordinate.lng:.7f}",
        }
        try:
            async with self._http.get(
                self._url,
                params=params,
                headers={"user-agent": USER_AGENT, "accept": "application/json"},
                timeout=self._timeout,
            ) as resp:
                if resp.status != 200:
                    _logger.debug("Reverse geocoding returned HTTP %s", resp.status)
                    return ""
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, TimeoutError, ValueError):
            _logger.debug("Reverse geocoding failed for %s", coordinate, exc_info=True)
            return ""

        if not isinstance(data, dict):
            return ""
        address = data.get("display_name")
        return address if isinstance(address, str) else ""
