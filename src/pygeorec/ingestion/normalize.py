"""Normalization helpers.

Centralizes defensive parsing of loosely typed payload values.
"""

from __future__ import annotations

import json
import math
from typing import Any

from pygeorec.exceptions import SignalParseError


def safe_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def load_json_object(body: Any, *, source: str) -> dict[str, Any]:
    """Decode a response body into a JSON object.

    *body* may already be decoded (``dict``), or be ``str``/``bytes``.
    Raises :class:`SignalParseError` for anything that is not a JSON object.
    """
    if isinstance(body, dict):
        return body
    if isinstance(body, (bytes, bytearray)):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SignalParseError(f"{source}: body is not UTF-8", source=source) from exc
    if not isinstance(body, str):
        raise SignalParseError(f"{source}: unsupported body type {type(body).__name__}", source=source)
    try:
        decoded = json.loads(body)
    except json.JSONDecodeError as exc:
        raise SignalParseError(f"{source}: invalid JSON: {body[:64]}", source=source) from exc
    if not isinstance(decoded, dict):
        raise SignalParseError(f"{source}: expected a JSON object", source=source)
    return decoded
