from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import pytest

from teslabus.exceptions import BusConnectionError
from teslabus.models.category import RELAXED_CATEGORIES, Category, FetchOptions
from teslabus.publisher import SnapshotPublisher


class FakeBus:
    """In-memory bus recording every call."""

    def __init__(self) -> None:
        self.connected = False
        self.closed = False
        self.fail_connect = False
        self.declared: list[tuple[str, str, bool]] = []
        self.published: list[dict[str, Any]] = []
        self.acks: list[bool] = []

    async def connect(self) -> None:
        if self.fail_connect:
            raise BusConnectionError("Failed to connect to AMQP: connection refused")
        self.connected = True

    async def declare_exchange(self, name: str, exchange_type: str, *, durable: bool = True) -> None:
        self.declared.append((name, exchange_type, durable))

    async def publish(self, exchange: str, routing_key: str, body: bytes, *, content_type: str) -> bool:
        self.published.append(
            {
                "exchange": exchange,
                "routing_key": routing_key,
                "content_type": content_type,
                "snapshot": json.loads(body.decode("utf-8")),
            }
        )
        return self.acks.pop(0) if self.acks else True

    async def close(self) -> None:
        self.closed = True


class FakeTelemetry:
    """Scripted vehicle summary and category payloads."""

    def __init__(
        self,
        summary: dict[str, Any] | None = None,
        payloads: Mapping[Category, Any] | None = None,
    ) -> None:
        self.summary: dict[str, Any] | None = summary if summary is not None else awake_vehicle()
        self.summary_error: Exception | None = None
        self.payloads: dict[Category, Any] = dict(payloads or {})
        self.errors: dict[Category, Exception] = {}
        self.calls: list[tuple[str, FetchOptions]] = []

    async def get_vehicle_summary(self, options: FetchOptions) -> dict[str, Any] | None:
        self.calls.append((Category.VEHICLE_INFO.value, options))
        if self.summary_error is not None:
            raise self.summary_error
        return self.summary

    def fetcher(self, category: Category):
        async def fetch(options: FetchOptions) -> Any:
            self.calls.append((category.value, options))
            if category in self.errors:
                raise self.errors[category]
            return self.payloads.get(category, {"category": category.value})

        return fetch

    def category_fetchers(self) -> dict[Category, Any]:
        return {c: self.fetcher(c) for c in (Category.DRIVE_STATE, *RELAXED_CATEGORIES)}

    @property
    def fetched_categories(self) -> list[str]:
        return [name for name, _ in self.calls if name != Category.VEHICLE_INFO.value]


def awake_vehicle(**overrides: Any) -> dict[str, Any]:
    vehicle = {
        "id": 12345678901234567,
        "id_s": "12345678901234567",
        "vin": "5YJ3E1EA7KF000001",
        "display_name": "Sparky",
        "state": "online",
        "in_service": False,
    }
    vehicle.update(overrides)
    return vehicle


@pytest.fixture
def fake_bus() -> FakeBus:
    return FakeBus()


@pytest.fixture
def publisher(fake_bus: FakeBus) -> SnapshotPublisher:
    return SnapshotPublisher(
        fake_bus,
        exchange_name="tesla",
        exchange_type="topic",
        routing_key="tesla.sensors",
    )


@pytest.fixture
def telemetry() -> FakeTelemetry:
    return FakeTelemetry()


@pytest.fixture
def vehicle_factory():
    return awake_vehicle
