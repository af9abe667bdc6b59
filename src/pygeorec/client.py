"""High-level async recorder wiring every component together."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

import aiohttp
from bs4 import Tag

from pygeorec._transport import ApiTransport, Transport
from pygeorec.bus import EventBus
from pygeorec.config import RecorderConfig
from pygeorec.exceptions import GeoRecError
from pygeorec.geocode import NominatimGeocoder, ReverseGeocoder
from pygeorec.models.game import GameSession
from pygeorec.navigator import DistanceLadder, Navigator, PanoramaService, ViewController
from pygeorec.recorder import Recorder
from pygeorec.state.events import EventName
from pygeorec.state.policy import RoundPhase
from pygeorec.state.reconciler import SessionSignalReconciler
from pygeorec.state.store import LiveState
from pygeorec.watcher import PoseSource, PositionWatcher

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class GeoRecorder:
    """Observe a game page and record the positions visited in it.

    Usage::

        async with GeoRecorder(config, widget, widget, widget) as recorder:
            await recorder.intercept(fetch, url, "POST")
            recorder.observe_mutations([html])
            await recorder.handle_key("ctrl+arrowup")

    *pose_source*, *panoramas* and *view* are usually the same adapter
    around the page's panorama widget.
    """

    def __init__(
        self,
        config: RecorderConfig,
        pose_source: PoseSource,
        panoramas: PanoramaService,
        view: ViewController,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        geocoder: ReverseGeocoder | None = None,
        html_provider: Callable[[], str | None] | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport_override = transport
        self._geocoder_override = geocoder
        self.bus = bus or EventBus()
        self.state = LiveState()
        self.watcher = PositionWatcher(pose_source, self.state, self.bus)
        self.reconciler = SessionSignalReconciler(self.state, self.bus, html_provider=html_provider)
        self._panoramas = panoramas
        self._view = view
        self._recorder: Recorder | None = None
        self._navigator: Navigator | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> GeoRecorder:
        transport = self._transport_override or ApiTransport(self._config, self._ensure_session())
        geocoder = self._geocoder_override or NominatimGeocoder(
            self._ensure_session(),
            url=self._config.geocoder_url,
            timeout=self._config.request_timeout,
        )

        self._recorder = Recorder(self._config, self.state, self.bus, transport, geocoder=geocoder)
        self._navigator = Navigator(
            self.state,
            self._panoramas,
            self._view,
            self.bus,
            ladder=DistanceLadder(initial=self._config.default_distance_m),
            search_radius_m=self._config.panorama_search_radius_m,
            key_bindings=self._config.key_bindings,
            bookmark=self._recorder.bookmark,
        )
        self._recorder.attach()
        self.watcher.start()
        if not self._config.recording_enabled:
            _logger.info("No user token configured; recording is disabled")
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.watcher.stop()
        if self._recorder is not None:
            await self._recorder.close()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        return self._http_session

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    @property
    def recorder(self) -> Recorder:
        if self._recorder is None:
            raise GeoRecError("Recorder not started. Use 'async with GeoRecorder(...) as recorder:'")
        return self._recorder

    @property
    def navigator(self) -> Navigator:
        if self._navigator is None:
            raise GeoRecError("Recorder not started. Use 'async with GeoRecorder(...) as recorder:'")
        return self._navigator

    @property
    def game(self) -> GameSession | None:
        return self.state.game

    @property
    def phase(self) -> RoundPhase:
        return self.reconciler.phase

    # ------------------------------------------------------------------
    # Host page signals
    # ------------------------------------------------------------------

    def observe_response(self, url: str, method: str, body: Any) -> None:
        self.reconciler.observe_response(url, method, body)

    async def intercept(
        self,
        fetch: Callable[[], Awaitable[T]],
        url: str,
        method: str = "GET",
        *,
        read_body: Callable[[T], Awaitable[Any]] | None = None,
    ) -> T:
        return await self.reconciler.intercept(fetch, url, method, read_body=read_body)

    def observe_mutations(self, fragments: Iterable[str | Tag]) -> None:
        self.reconciler.observe_mutations(fragments)

    def navigate(self, path: str) -> None:
        self.reconciler.navigate(path)

    async def handle_key(self, key: str) -> bool:
        return await self.navigator.handle_key(key)

    def reinitialize(self) -> None:
        """Drop all state, as a full script reload would."""
        self.reconciler.reset()
        self.recorder.reset()

    # ------------------------------------------------------------------
    # Status readout
    # ------------------------------------------------------------------

    def status(self) -> dict[str, Any]:
        """Minimal status readout for an overlay or a log line."""
        game = self.state.game
        return {
            "phase": str(self.reconciler.phase),
            "game": game.token if game is not None else None,
            "round": game.round if game is not None else None,
            "recording": self._config.recording_enabled,
            "visited": len(self.recorder.travel_fence),
            "pending": self.recorder.pending,
            "distance": self.navigator.indicator_text,
        }

    def on(self, name: EventName | str, listener: Callable[..., Any]) -> Callable[[], None]:
        return self.bus.on(name, listener)
