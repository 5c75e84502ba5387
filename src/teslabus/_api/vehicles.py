"""Vehicle telemetry endpoints.

Endpoints:
  - /api/1/vehicles
  - /api/1/vehicles/{id}/data_request/{category}

Every owner-API response wraps its payload in a ``response`` key; a
``null`` payload means the vehicle had nothing to report.
"""

from __future__ import annotations

import logging
from typing import Any

from teslabus._transport import Transport
from teslabus.exceptions import TelemetryFetchError
from teslabus.models.category import Category, FetchOptions

_logger = logging.getLogger(__name__)


def unwrap_response(body: Any, *, endpoint: str, category: str) -> Any:
    """Return the ``response`` member of an owner-API body."""
    if not isinstance(body, dict) or "response" not in body:
        raise TelemetryFetchError(
            f"Missing 'response' field from {endpoint}",
            category=category,
            endpoint=endpoint,
        )
    return body["response"]


async def fetch_vehicle_summary(
    transport: Transport,
    base_url: str,
    options: FetchOptions,
    *,
    vehicle_index: int = 0,
) -> dict[str, Any] | None:
    """Return the raw listing entry of the polled vehicle, or ``None``."""
    endpoint = f"{base_url}/api/1/vehicles"
    body = await transport.get_json(endpoint, auth_token=options.auth_token, category=Category.VEHICLE_INFO)
    vehicles = unwrap_response(body, endpoint=endpoint, category=Category.VEHICLE_INFO)
    count = len(vehicles) if isinstance(vehicles, list) else 0
    if count <= vehicle_index:
        _logger.warning("No vehicle at index %d (account lists %d)", vehicle_index, count)
        return None
    entry = vehicles[vehicle_index]
    return entry if isinstance(entry, dict) else None


async def fetch_category(
    transport: Transport,
    base_url: str,
    category: Category,
    options: FetchOptions,
) -> dict[str, Any] | None:
    """Return the payload of one ``data_request`` category, or ``None``."""
    if not options.vehicle_id:
        raise TelemetryFetchError(
            f"Cannot fetch {category} without a vehicle id",
            category=category,
        )
    endpoint = f"{base_url}/api/1/vehicles/{options.vehicle_id}/data_request/{category.value}"
    body = await transport.get_json(endpoint, auth_token=options.auth_token, category=category)
    payload = unwrap_response(body, endpoint=endpoint, category=category)
    if payload is not None and not isinstance(payload, dict):
        raise TelemetryFetchError(
            f"Unexpected {category} payload type {type(payload).__name__}",
            category=category,
            endpoint=endpoint,
        )
    return payload
