"""HTTP transport for the Tesla owner and auth APIs."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from teslabus._constants import USER_AGENT
from teslabus.exceptions import AuthenticationError, TelemetryFetchError

_logger = logging.getLogger(__name__)

_UNAUTHORIZED = frozenset({401, 403})


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Endpoint modules only depend on this protocol so tests can pass small
    fakes while production uses :class:`HttpTransport`.
    """

    async def get_json(self, url: str, *, auth_token: str | None, category: str = "") -> Any:
        ...

    async def post_form(self, url: str, form: Mapping[str, str]) -> Any:
        ...

    async def post_json(self, url: str, payload: Mapping[str, Any]) -> Any:
        ...


def raise_for_status(status: int, text: str, *, endpoint: str, category: str = "") -> None:
    """Map a non-200 HTTP status to the matching teslabus error."""
    if status == 200:
        return
    if status in _UNAUTHORIZED:
        raise AuthenticationError(f"HTTP {status} from {endpoint}: unauthorized")
    raise TelemetryFetchError(
        f"HTTP {status} from {endpoint}: {text[:200]}",
        category=category,
        status_code=status,
        endpoint=endpoint,
    )


def decode_json(text: str, *, endpoint: str, category: str = "") -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise TelemetryFetchError(
            f"Invalid JSON from {endpoint}: {text[:200]}",
            category=category,
            endpoint=endpoint,
        ) from exc


class HttpTransport:
    """aiohttp-backed transport with a per-request total timeout."""

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        category: str = "",
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> Any:
        request_headers = {"user-agent": USER_AGENT, "accept": "application/json"}
        if headers:
            request_headers.update(headers)

        _logger.debug("%s %s", method, url)

        try:
            async with self._http.request(
                method,
                url,
                headers=request_headers,
                timeout=self._timeout,
                **kwargs,
            ) as resp:
                text = await resp.text()
                status = resp.status
        except asyncio.TimeoutError as exc:
            raise TelemetryFetchError(
                f"Request to {url} timed out after {self._timeout.total}s",
                category=category,
                endpoint=url,
            ) from exc
        except aiohttp.ClientError as exc:
            raise TelemetryFetchError(
                f"Request to {url} failed: {exc}",
                category=category,
                endpoint=url,
            ) from exc

        raise_for_status(status, text, endpoint=url, category=category)
        return decode_json(text, endpoint=url, category=category)

    async def get_json(self, url: str, *, auth_token: str | None, category: str = "") -> Any:
        headers = {"authorization": f"Bearer {auth_token}"} if auth_token else {}
        return await self._request("GET", url, category=category, headers=headers)

    async def post_form(self, url: str, form: Mapping[str, str]) -> Any:
        # aiohttp encodes a plain dict as application/x-www-form-urlencoded
        return await self._request("POST", url, data=dict(form))

    async def post_json(self, url: str, payload: Mapping[str, Any]) -> Any:
        return await self._request("POST", url, json=dict(payload))
