"""HTTP transport for the recording API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pygeorec._constants import USER_AGENT
from pygeorec._redact import redact_for_log
from pygeorec.config import RecorderConfig
from pygeorec.exceptions import GeoRecApiError, GeoRecTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the recorder.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`ApiTransport`) concrete.
    """

    async def post_json(self, endpoint: str, payload: Mapping[str, Any]) -> Any: ...


class ApiTransport:
    """POST JSON envelopes to the recording API and unwrap ``{success, data}`` replies."""

    def __init__(self, config: RecorderConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def post_json(self, endpoint: str, payload: Mapping[str, Any]) -> Any:
        url = f"{self._config.api_base_url}{endpoint.lstrip('/')}"
        headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "user-agent": USER_AGENT,
        }

        _logger.debug("POST %s %s", url, redact_for_log(dict(payload)))

        try:
            async with self._http.post(
                url,
                data=json.dumps(payload, separators=(",", ":")),
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise GeoRecTransportError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except GeoRecTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise GeoRecTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise GeoRecTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

        if not isinstance(body, dict) or "success" not in body:
            raise GeoRecTransportError(f"Missing 'success' field from {endpoint}", endpoint=endpoint)
        if not body["success"]:
            raise GeoRecApiError(f"{endpoint} failed: {str(body.get('data'))[:200]}", endpoint=endpoint)
        return body.get("data")
