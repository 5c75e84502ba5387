"""Telemetry categories and per-request fetch options."""

from __future__ import annotations

import dataclasses
import enum


class Category(enum.StrEnum):
    """Named subsets of vehicle telemetry.

    The value doubles as the snapshot key and as the owner-API
    ``data_request`` path segment.
    """

    VEHICLE_INFO = "vehicle_info"
    DRIVE_STATE = "drive_state"
    VEHICLE_STATE = "vehicle_state"
    CHARGE_STATE = "charge_state"
    CLIMATE_STATE = "climate_state"


#: Categories refreshed only on full-refresh ticks, in publish order.
RELAXED_CATEGORIES: tuple[Category, ...] = (
    Category.VEHICLE_STATE,
    Category.CHARGE_STATE,
    Category.CLIMATE_STATE,
)


@dataclasses.dataclass(frozen=True, slots=True)
class FetchOptions:
    """Options passed to every telemetry fetch."""

    auth_token: str | None
    vehicle_id: str | None = None

    def __repr__(self) -> str:
        token = "<redacted>" if self.auth_token else None
        return f"FetchOptions(auth_token={token!r}, vehicle_id={self.vehicle_id!r})"
