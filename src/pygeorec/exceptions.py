"""Custom exception hierarchy for pygeorec."""

from __future__ import annotations


class GeoRecError(Exception):
    """Base exception for all pygeorec errors."""


class GeoRecConfigError(GeoRecError):
    """Invalid or missing configuration."""


class SignalParseError(GeoRecError):
    """A network response or inline page payload did not have the expected shape."""

    def __init__(self, message: str, *, source: str = "") -> None:
        self.source = source
        super().__init__(message)


class GeoRecTransportError(GeoRecError):
    """HTTP-level failure talking to the recording API (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class GeoRecApiError(GeoRecError):
    """Recording API answered with ``success: false``."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)
