"""High-level async client for the Tesla owner API."""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import aiohttp

from teslabus._api import vehicles as _vehicles_api
from teslabus._transport import HttpTransport
from teslabus.config import PollerConfig
from teslabus.exceptions import TeslaBusError
from teslabus.models.category import RELAXED_CATEGORIES, Category, FetchOptions

_logger = logging.getLogger(__name__)

CategoryFetcher = Callable[[FetchOptions], Awaitable[dict[str, Any] | None]]
"""Fetch function for one telemetry category."""


class TeslaClient:
    """Async client for the Tesla owner API.

    Usage::

        async with TeslaClient(config) as client:
            summary = await client.get_vehicle_summary(FetchOptions(token))
            fetchers = client.category_fetchers()
    """

    def __init__(
        self,
        config: PollerConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: HttpTransport | None = None

    async def __aenter__(self) -> TeslaClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(self._http_session, timeout=self._config.fetch_timeout)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    @property
    def transport(self) -> HttpTransport:
        if self._transport is None:
            raise TeslaBusError("Client not initialized. Use 'async with TeslaClient(...) as client:'")
        return self._transport

    async def get_vehicle_summary(self, options: FetchOptions) -> dict[str, Any] | None:
        """Fetch the listing entry (state, in_service, id) of the polled vehicle."""
        return await _vehicles_api.fetch_vehicle_summary(
            self.transport,
            self._config.owner_api_url,
            options,
            vehicle_index=self._config.vehicle_index,
        )

    async def get_category(self, category: Category, options: FetchOptions) -> dict[str, Any] | None:
        """Fetch one ``data_request`` category."""
        return await _vehicles_api.fetch_category(
            self.transport,
            self._config.owner_api_url,
            category,
            options,
        )

    def category_fetchers(self) -> Mapping[Category, CategoryFetcher]:
        """Return the fetch function for every pollable category."""
        categories = (Category.DRIVE_STATE, *RELAXED_CATEGORIES)
        return {category: functools.partial(self.get_category, category) for category in categories}
