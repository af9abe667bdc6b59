"""Session signal reconciliation.

Two independent and imperfect signal sources describe the same round
boundaries:

* intercepted responses of the game API (the authoritative payloads)
* DOM markers, used as a fallback when no network call happened, e.g.
  after a full page reload in the middle of a round

Both feed one state machine. Every boundary is keyed by
``token-round`` and each kind (start, end, game end) remembers the last
key it emitted, so whichever source reports a boundary first wins and
the other is suppressed.

Known limitation: streak and quick-play restarts reuse payload shapes in
ways that can still make ``round-end`` fire twice for one logical round.
This is left as is.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

import aiohttp
from bs4 import Tag

from pygeorec._redact import redact_for_log
from pygeorec.bus import EventBus
from pygeorec.exceptions import SignalParseError
from pygeorec.ingestion.dom import parse_page_game, scan_fragments
from pygeorec.ingestion.network import GameCall, classify_call, parse_game_session
from pygeorec.models.game import GameSession
from pygeorec.state.events import EventName, RoundEvent, SignalSource
from pygeorec.state.policy import BoundaryKind, DedupTracker, RoundPhase
from pygeorec.state.store import LiveState

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionSignalReconciler:
    """Derive ``round-start`` / ``round-end`` / ``game-end`` from page signals.

    Parameters
    ----------
    state
        Shared live state; the reconciler is the only writer of its game session.
    bus
        Event bus the lifecycle events are published on.
    html_provider
        Returns the current page HTML, used to read the inline
        ``__NEXT_DATA__`` payload when the panorama shows up without any
        known session.
    """

    def __init__(
        self,
        state: LiveState,
        bus: EventBus,
        *,
        html_provider: Callable[[], str | None] | None = None,
    ) -> None:
        self._state = state
        self._bus = bus
        self._html_provider = html_provider
        self._dedup = DedupTracker()
        self._phase = RoundPhase.NO_SESSION

    @property
    def phase(self) -> RoundPhase:
        return self._phase

    @property
    def dedup(self) -> DedupTracker:
        return self._dedup

    def reset(self) -> None:
        """Forget everything, as on a full reinitialization."""
        self._dedup.reset()
        self._state.clear_game()
        self._phase = RoundPhase.NO_SESSION

    # ------------------------------------------------------------------
    # Network trigger
    # ------------------------------------------------------------------

    def observe_response(self, url: str, method: str, body: Any) -> None:
        """Observe one completed call of the host page. Never raises."""
        call = classify_call(url, method)
        if call is None:
            return
        try:
            game = parse_game_session(body, source=f"{call.method} {call.path}")
        except SignalParseError as exc:
            _logger.warning("Dropping %s candidate: %s", call.kind, exc)
            _logger.debug("Unparsed body: %s", redact_for_log(body, max_string=256))
            return

        self._guard(self._apply_network, call, game)

    async def intercept(
        self,
        fetch: Callable[[], Awaitable[T]],
        url: str,
        method: str = "GET",
        *,
        read_body: Callable[[T], Awaitable[Any]] | None = None,
    ) -> T:
        """Run *fetch*, observe its response, and return it unchanged.

        For :class:`aiohttp.ClientResponse` results the body is read with
        ``read()``, which caches it, so the original caller can still consume
        it. Other results are taken as the body itself unless *read_body* is
        given.
        """
        result = await fetch()
        if classify_call(url, method) is None:
            return result

        try:
            if read_body is not None:
                body: Any = await read_body(result)
            elif isinstance(result, aiohttp.ClientResponse):
                if result.status >= 400:
                    _logger.debug("Ignoring HTTP %s from %s %s", result.status, method, url)
                    return result
                body = await result.read()
            else:
                body = result
        except Exception:
            _logger.debug("Could not read intercepted body of %s %s", method, url, exc_info=True)
            return result

        self.observe_response(url, method, body)
        return result

    def _apply_network(self, call: GameCall, game: GameSession) -> None:
        # Last full payload wins, whether or not it leads to an emission.
        self._state.replace_game(game)
        if call.starts_round:
            self._round_start(game, SignalSource.NETWORK)
        else:
            self._round_end(game, SignalSource.NETWORK, game_over=game.is_finished)

    # ------------------------------------------------------------------
    # DOM trigger
    # ------------------------------------------------------------------

    def observe_mutations(self, fragments: Iterable[str | Tag]) -> None:
        """Observe HTML of nodes added to the page. Never raises."""
        try:
            markers = scan_fragments(fragments)
        except Exception:
            _logger.debug("Could not scan DOM mutation batch", exc_info=True)
            return
        if not markers.any:
            return

        if markers.panorama_controls and self._state.game is None:
            game = self.recover_from_page()
            if game is not None:
                self._state.replace_game(game)
                self._guard(self._round_start, game, SignalSource.DOM)

        current = self._state.game
        if markers.results_root and current is not None:
            self._guard(
                self._round_end,
                current,
                SignalSource.DOM,
                game_over=markers.final_results or current.is_finished,
            )

    def recover_from_page(self) -> GameSession | None:
        """Parse the inline page payload into a session, or ``None``."""
        if self._html_provider is None:
            return None
        try:
            html = self._html_provider()
        except Exception:
            _logger.debug("html_provider failed", exc_info=True)
            return None
        if not html:
            return None
        try:
            return parse_page_game(html)
        except SignalParseError as exc:
            _logger.warning("Dropping page round-start candidate: %s", exc)
            return None

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def navigate(self, path: str) -> None:
        """Record a page navigation; leaving the game routes drops the session."""
        if not self._state.set_path(path):
            return
        dropped = self._state.clear_game()
        self._phase = RoundPhase.NO_SESSION
        if dropped is not None:
            _logger.info("Dropped game %s after navigating to %s", dropped.token, path)
            self._guard(self._bus.emit, EventName.SESSION_CLEARED, dropped)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _round_start(self, game: GameSession, source: SignalSource) -> None:
        if not self._dedup.claim(BoundaryKind.START, game):
            _logger.debug("Suppressed duplicate round-start %s from %s", game.dedup_key(), source)
            return
        self._phase = RoundPhase.IN_ROUND
        _logger.info("Round %d of %s started (%s)", game.round, game.token, source)
        self._bus.emit(EventName.ROUND_START, RoundEvent(game=game, source=source))

    def _round_end(self, game: GameSession, source: SignalSource, *, game_over: bool) -> None:
        if self._dedup.claim(BoundaryKind.END, game):
            self._phase = RoundPhase.ROUND_ENDED
            _logger.info("Round %d of %s ended (%s)", game.round, game.token, source)
            self._bus.emit(EventName.ROUND_END, RoundEvent(game=game, source=source))
        else:
            _logger.debug("Suppressed duplicate round-end %s from %s", game.dedup_key(), source)

        # Checked separately: a DOM round-end may precede the finished payload.
        if game_over and self._dedup.claim(BoundaryKind.GAME_END, game):
            _logger.info("Game %s finished (%s)", game.token, source)
            self._bus.emit(EventName.GAME_END, RoundEvent(game=game, source=source))

    def _guard(self, fn: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        # Listener failures must not escape into the host page's handlers.
        try:
            fn(*args, **kwargs)
        except Exception:
            _logger.debug("Event listener failed during %s", getattr(fn, "__name__", fn), exc_info=True)
