"""Recorder configuration for pygeorec."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from pygeorec._constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_GEOCODER_URL,
    DEFAULT_KEY_BINDINGS,
    DISTANCE_LADDER,
    PANORAMA_SEARCH_RADIUS_M,
)
from pygeorec.exceptions import GeoRecConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(env_key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise GeoRecConfigError(f"{env_key} must be a number, got {value!r}") from exc


def read_token_file(path: str | os.PathLike[str]) -> str | None:
    """Read a locally stored user token.

    Returns ``None`` when the file does not exist or is empty.
    """
    token_path = Path(path).expanduser()
    if not token_path.is_file():
        return None
    token = token_path.read_text(encoding="utf-8").strip()
    return token or None


def write_token_file(path: str | os.PathLike[str], token: str) -> None:
    """Store the user token locally, readable only by the current user."""
    token_path = Path(path).expanduser()
    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(token.strip() + "\n", encoding="utf-8")
    token_path.chmod(0o600)


@dataclasses.dataclass(frozen=True)
class RecorderConfig:
    """Recorder configuration.

    Parameters
    ----------
    token : str or None
        Opaque user credential sent with every recording call. When
        missing, recording becomes a no-op while position tracking and
        teleporting keep working.
    api_base_url : str
        Base URL of the recording API (``record-position`` and
        ``record-game`` are resolved against it).
    travel_radius_m : float
        Positions closer than this to an already recorded one are not
        recorded again.
    bookmark_radius_m : float
        Exact-duplicate suppression radius for bookmarks.
    panorama_search_radius_m : float
        Search radius used when snapping a teleport target to a panorama.
    default_distance_m : int
        Initial teleport distance. Must be on the distance ladder.
    record_round_start : bool
        Record the start location of each round as a travel entry.
    geocode_bookmarks : bool
        Reverse-geocode bookmarks before sending them.
    geocoder_url : str
        Reverse geocoding endpoint (Nominatim compatible).
    request_timeout : float
        Total timeout in seconds for recording and geocoding calls.
    max_history : int or None
        Bound for the geofence history. ``None`` keeps every entry for the
        lifetime of the recorder.
    key_bindings : dict
        Hotkey to navigator action mapping.
    """

    token: str | None = None
    api_base_url: str = DEFAULT_API_BASE_URL
    travel_radius_m: float = 50.0
    bookmark_radius_m: float = 1.0
    panorama_search_radius_m: float = float(PANORAMA_SEARCH_RADIUS_M)
    default_distance_m: int = 100
    record_round_start: bool = True
    geocode_bookmarks: bool = True
    geocoder_url: str = DEFAULT_GEOCODER_URL
    request_timeout: float = 10.0
    max_history: int | None = None
    key_bindings: dict[str, str] = dataclasses.field(default_factory=lambda: dict(DEFAULT_KEY_BINDINGS))

    def __post_init__(self) -> None:
        if self.default_distance_m not in DISTANCE_LADDER:
            raise GeoRecConfigError(
                f"default_distance_m must be one of {DISTANCE_LADDER}, got {self.default_distance_m}"
            )
        if self.travel_radius_m <= 0 or self.bookmark_radius_m <= 0:
            raise GeoRecConfigError("geofence radii must be positive")
        if self.max_history is not None and self.max_history <= 0:
            raise GeoRecConfigError("max_history must be positive when set")
        if not self.api_base_url.endswith("/"):
            object.__setattr__(self, "api_base_url", self.api_base_url + "/")

    @property
    def recording_enabled(self) -> bool:
        return bool(self.token)

    @classmethod
    def from_env(cls, **overrides: Any) -> RecorderConfig:
        """Create configuration from environment variables.

        Reads ``GEOREC_TOKEN`` (or the file named by ``GEOREC_TOKEN_FILE``)
        and optional ``GEOREC_*`` variables. Explicit keyword arguments
        override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        token = env.get("GEOREC_TOKEN")
        if not token:
            token_file = env.get("GEOREC_TOKEN_FILE")
            if token_file:
                token = read_token_file(token_file)
        if token:
            config_kwargs["token"] = token.strip()

        _ENV_STR_MAP = {
            "GEOREC_API_BASE_URL": "api_base_url",
            "GEOREC_GEOCODER_URL": "geocoder_url",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_FLOAT_MAP = {
            "GEOREC_TRAVEL_RADIUS": "travel_radius_m",
            "GEOREC_BOOKMARK_RADIUS": "bookmark_radius_m",
            "GEOREC_REQUEST_TIMEOUT": "request_timeout",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)

        distance_env = env.get("GEOREC_DEFAULT_DISTANCE")
        if distance_env is not None and "default_distance_m" not in overrides:
            config_kwargs["default_distance_m"] = int(_env_float("GEOREC_DEFAULT_DISTANCE", distance_env))

        history_env = env.get("GEOREC_MAX_HISTORY")
        if history_env is not None and "max_history" not in overrides:
            config_kwargs["max_history"] = int(_env_float("GEOREC_MAX_HISTORY", history_env)) or None

        if "record_round_start" not in overrides:
            config_kwargs["record_round_start"] = _env_bool(env.get("GEOREC_RECORD_ROUND_START"), True)

        if "geocode_bookmarks" not in overrides:
            config_kwargs["geocode_bookmarks"] = _env_bool(env.get("GEOREC_GEOCODE_BOOKMARKS"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
