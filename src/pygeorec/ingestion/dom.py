"""DOM signal ingestion.

The page is never modified; we only look at HTML fragments of nodes the
host reports as added, and at the inline ``__NEXT_DATA__`` payload when
the game state must be recovered after a full reload.
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Callable, Iterable
from typing import Any

from bs4 import BeautifulSoup, Tag
from pydantic import ValidationError

from pygeorec._constants import (
    FINAL_RESULT_CLASS_PREFIXES,
    NEXT_DATA_ELEMENT_ID,
    PANORAMA_CONTROLS_CLASS_PREFIX,
    PANORAMA_CONTROLS_QA,
    RESULTS_ROOT_CLASS_PREFIX,
)
from pygeorec.exceptions import SignalParseError
from pygeorec.models.game import GameSession

_GAME_PAYLOAD_KEYS: tuple[str, ...] = ("gamePlayedByCurrentUser", "game", "gameSnapshot")


@dataclasses.dataclass(frozen=True)
class DomMarkers:
    """Markers found in one batch of added nodes."""

    results_root: bool = False
    final_results: bool = False
    panorama_controls: bool = False

    def __or__(self, other: DomMarkers) -> DomMarkers:
        return DomMarkers(
            results_root=self.results_root or other.results_root,
            final_results=self.final_results or other.final_results,
            panorama_controls=self.panorama_controls or other.panorama_controls,
        )

    @property
    def any(self) -> bool:
        return self.results_root or self.final_results or self.panorama_controls


def _class_prefix(*prefixes: str) -> Callable[[str | None], bool]:
    def _match(css_class: str | None) -> bool:
        return bool(css_class) and css_class.startswith(prefixes)  # type: ignore[union-attr]

    return _match


def _as_soup(fragment: str | Tag) -> BeautifulSoup:
    # Re-parse so the fragment root itself is searchable, not only its descendants.
    return BeautifulSoup(str(fragment), "html.parser")


def scan_fragment(fragment: str | Tag) -> DomMarkers:
    soup = _as_soup(fragment)
    results_root = soup.find(class_=_class_prefix(RESULTS_ROOT_CLASS_PREFIX)) is not None
    final_results = soup.find(class_=_class_prefix(*FINAL_RESULT_CLASS_PREFIXES)) is not None
    panorama_controls = (
        soup.find(attrs={"data-qa": PANORAMA_CONTROLS_QA}) is not None
        or soup.find(class_=_class_prefix(PANORAMA_CONTROLS_CLASS_PREFIX)) is not None
    )
    return DomMarkers(
        results_root=results_root or final_results,
        final_results=final_results,
        panorama_controls=panorama_controls,
    )


def scan_fragments(fragments: Iterable[str | Tag]) -> DomMarkers:
    """Combine the markers found across a batch of added nodes."""
    markers = DomMarkers()
    for fragment in fragments:
        markers = markers | scan_fragment(fragment)
    return markers


def extract_next_data(html: str) -> dict[str, Any]:
    """Return the decoded ``__NEXT_DATA__`` payload of a page."""
    soup = BeautifulSoup(html, "html.parser")
    element = soup.find(id=NEXT_DATA_ELEMENT_ID)
    if element is None:
        raise SignalParseError("page has no inline payload", source="dom")
    text = element.string or element.get_text()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SignalParseError(f"inline payload is not JSON: {text[:64]}", source="dom") from exc
    if not isinstance(data, dict):
        raise SignalParseError("inline payload is not a JSON object", source="dom")
    return data


def _looks_like_game(value: Any) -> bool:
    return isinstance(value, dict) and "token" in value and "round" in value


def _search_game(value: Any, depth: int = 0) -> dict[str, Any] | None:
    if depth > 8:
        return None
    if _looks_like_game(value):
        return value
    children: Iterable[Any]
    if isinstance(value, dict):
        children = value.values()
    elif isinstance(value, list):
        children = value
    else:
        return None
    for child in children:
        found = _search_game(child, depth + 1)
        if found is not None:
            return found
    return None


def find_game_payload(next_data: dict[str, Any]) -> dict[str, Any] | None:
    props = next_data.get("props")
    page_props = props.get("pageProps") if isinstance(props, dict) else None
    if isinstance(page_props, dict):
        for key in _GAME_PAYLOAD_KEYS:
            candidate = page_props.get(key)
            if _looks_like_game(candidate):
                return candidate
    return _search_game(props)


def find_user(next_data: dict[str, Any]) -> dict[str, Any] | None:
    """Return the signed-in account's user record, if the page carries one."""
    props = next_data.get("props")
    if not isinstance(props, dict):
        return None
    middleware = props.get("middlewareResults")
    if not isinstance(middleware, list):
        return None
    for result in middleware:
        if isinstance(result, dict):
            account = result.get("account")
            if isinstance(account, dict) and isinstance(account.get("user"), dict):
                return account["user"]
    return None


def parse_page_game(html: str) -> GameSession:
    """Reconstruct the current game from a page's inline payload."""
    next_data = extract_next_data(html)
    payload = find_game_payload(next_data)
    if payload is None:
        raise SignalParseError("inline payload carries no game", source="dom")

    if not isinstance(payload.get("player"), dict) or not payload["player"].get("nick"):
        user = find_user(next_data)
        if user is not None:
            player = dict(payload.get("player") or {})
            player.setdefault("id", user.get("userId") or user.get("id") or "")
            player["nick"] = player.get("nick") or user.get("nick") or ""
            payload = {**payload, "player": player}

    try:
        return GameSession.model_validate(payload)
    except ValidationError as exc:
        raise SignalParseError(f"inline game payload is invalid ({exc.error_count()} errors)", source="dom") from exc
