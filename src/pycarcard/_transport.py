"""HTTP transport for the CarCard REST API."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from pycarcard._constants import APP_HEADER, USER_AGENT
from pycarcard._redact import redact_for_log
from pycarcard.config import CarCardConfig
from pycarcard.exceptions import CarCardTransportError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Response:
    """A successful (2xx) HTTP response with its decoded JSON body."""

    status: int
    data: Any = None


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Implementations raise :class:`CarCardTransportError` for network
    failures and non-2xx responses, carrying the status code and the
    decoded error body.  Test doubles only need these four coroutines.
    """

    async def get(self, path: str) -> Response: ...

    async def post(self, path: str, body: Any = None) -> Response: ...

    async def put(self, path: str, body: Any = None) -> Response: ...

    async def patch(self, path: str, body: Any = None) -> Response: ...


def _decode_body(text: str) -> Any:
    if not text.strip():
        return None
    return json.loads(text)


class HttpTransport:
    """aiohttp-backed JSON transport with bearer-token injection."""

    def __init__(self, config: CarCardConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.timeout)

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": "application/json",
            "content-type": "application/json",
            "user-agent": USER_AGENT,
        }
        if self._config.app_headers:
            headers[APP_HEADER] = "true"
        if self._config.token:
            headers["authorization"] = f"Bearer {self._config.token}"
        return headers

    async def request(self, method: str, path: str, body: Any = None) -> Response:
        url = f"{self._config.base_url}{path}"
        _logger.debug("%s %s", method, url)
        if self._config.api_trace_enabled and body is not None:
            _logger.debug("%s %s request body=%s", method, path, redact_for_log(body))

        try:
            async with self._http.request(
                method,
                url,
                json=body,
                headers=self._headers(),
                timeout=self._timeout,
            ) as resp:
                status = resp.status
                text = await resp.text()
        except aiohttp.ClientError as exc:
            raise CarCardTransportError(f"{method} {path} failed: {exc}", endpoint=path) from exc
        except TimeoutError as exc:
            raise CarCardTransportError(
                f"{method} {path} timed out after {self._config.timeout}s",
                endpoint=path,
            ) from exc

        try:
            data = _decode_body(text)
        except json.JSONDecodeError as exc:
            if 200 <= status < 300:
                raise CarCardTransportError(
                    f"Invalid JSON from {path}: {text[:200]}",
                    status_code=status,
                    endpoint=path,
                ) from exc
            data = text

        if self._config.api_trace_enabled:
            _logger.debug("%s %s -> %s body=%s", method, path, status, redact_for_log(data))

        if not 200 <= status < 300:
            _logger.debug("%s %s -> HTTP %s", method, path, status)
            raise CarCardTransportError(
                f"HTTP {status} from {path}",
                status_code=status,
                endpoint=path,
                payload=data,
            )
        return Response(status=status, data=data)

    async def get(self, path: str) -> Response:
        return await self.request("GET", path)

    async def post(self, path: str, body: Any = None) -> Response:
        return await self.request("POST", path, body)

    async def put(self, path: str, body: Any = None) -> Response:
        return await self.request("PUT", path, body)

    async def patch(self, path: str, body: Any = None) -> Response:
        return await self.request("PATCH", path, body)
