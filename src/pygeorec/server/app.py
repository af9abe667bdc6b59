"""aiohttp application serving the recording API."""

from __future__ import annotations

import json
import logging
from typing import Any

from aiohttp import web
from pydantic import ValidationError

from pygeorec._redact import redact_for_log
from pygeorec.models.records import GameSummary, PositionRecord
from pygeorec.server.store import PositionStore

_logger = logging.getLogger(__name__)

STORE_KEY: web.AppKey[PositionStore] = web.AppKey("store", PositionStore)

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Origin, Content-Type, x-requested-with, Accept",
}


def success(data: Any) -> web.Response:
    return web.json_response({"success": True, "data": data}, status=200, headers=_CORS_HEADERS)


def fail(data: Any, *, status: int = 400) -> web.Response:
    return web.json_response({"success": False, "data": data}, status=status, headers=_CORS_HEADERS)


async def _read_json(request: web.Request) -> dict[str, Any] | None:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


async def about(_request: web.Request) -> web.Response:
    return web.Response(text="GeoGuessr Recorder Server v0.1.0", content_type="text/html")


async def options(_request: web.Request) -> web.Response:
    return success({})


async def record_position(request: web.Request) -> web.Response:
    content = await _read_json(request)
    if content is None:
        return fail("invalid JSON body")
    try:
        record = PositionRecord.model_validate(content)
    except ValidationError as exc:
        return fail(exc.errors(include_url=False, include_context=False))

    created = request.app[STORE_KEY].add_position(record)
    _logger.debug("record-position created=%s %s", created, redact_for_log(content))
    return success(content)


async def record_game(request: web.Request) -> web.Response:
    content = await _read_json(request)
    if content is None:
        return fail("invalid JSON body")
    try:
        summary = GameSummary.model_validate(content)
    except ValidationError as exc:
        return fail(exc.errors(include_url=False, include_context=False))

    request.app[STORE_KEY].add_game(summary)
    _logger.debug("record-game %s", summary.game)
    return success({"game": summary.game})


async def get_positions(request: web.Request) -> web.Response:
    token = request.match_info["user"]
    return success({"userId": token, **request.app[STORE_KEY].export(token)})


async def not_found(_request: web.Request) -> web.Response:
    return fail(None, status=404)


def create_app(store: PositionStore | None = None) -> web.Application:
    app = web.Application()
    app[STORE_KEY] = store or PositionStore()
    app.router.add_get("/about", about)
    app.router.add_post("/api/record-position", record_position)
    app.router.add_post("/api/record-game", record_game)
    app.router.add_get("/api/get-positions/{user}", get_positions)
    app.router.add_route("OPTIONS", "/{tail:.*}", options)
    app.router.add_route("*", "/{tail:.*}", not_found)
    return app
