"""One polling tick: fetch, merge and publish a telemetry snapshot."""

from __future__ import annotations

import enum
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from teslabus._redact import redact_for_log
from teslabus.exceptions import ConfigurationError, TelemetryFetchError
from teslabus.models.category import RELAXED_CATEGORIES, Category, FetchOptions
from teslabus.models.vehicle import VehicleSummary
from teslabus.publisher import SnapshotPublisher
from teslabus.scheduler.cadence import CadenceController, CadenceState
from teslabus.scheduler.runner import run_bounded

_logger = logging.getLogger(__name__)

Fetcher = Callable[[FetchOptions], Awaitable[dict[str, Any] | None]]
Snapshot = dict[str, Any]


class TickOutcome(enum.StrEnum):
    PUBLISHED = "published"
    PUBLISHED_PARTIAL = "published_partial"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class TickResult:
    """What a tick did, with the snapshot it published (if any)."""

    outcome: TickOutcome
    snapshot: Snapshot | None = None
    error: BaseException | None = None


class SnapshotAssembler:
    """Runs the fetch → merge → publish sequence of a single tick.

    Parameters
    ----------
    vehicle_fetcher
        Fetches the vehicle summary; gates every other category.
    category_fetchers
        Fetch function per category, resolved once up front.
    publisher
        Destination of the merged snapshot.
    controller
        Cadence policy.
    max_concurrency
        Category fetches in flight at once.
    """

    def __init__(
        self,
        vehicle_fetcher: Fetcher,
        category_fetchers: Mapping[Category, Fetcher],
        publisher: SnapshotPublisher,
        controller: CadenceController | None = None,
        *,
        max_concurrency: int = 1,
    ) -> None:
        missing = [c for c in (Category.DRIVE_STATE, *RELAXED_CATEGORIES) if c not in category_fetchers]
        if missing:
            raise ConfigurationError(f"No fetch function for categories: {', '.join(missing)}")
        self._vehicle_fetcher = vehicle_fetcher
        self._category_fetchers = dict(category_fetchers)
        self._publisher = publisher
        self._controller = controller or CadenceController()
        self._max_concurrency = max_concurrency

    @property
    def controller(self) -> CadenceController:
        return self._controller

    async def tick(self, state: CadenceState, auth_token: str | None) -> TickResult:
        """Perform one tick against ``state``.

        Fetch and publish errors propagate to the caller. ``state`` is
        only touched at the cadence decision point and, after every due
        category succeeded, to update the driving flag.
        """
        _logger.info("Starting to get tesla sensors")

        summary_payload = await self._vehicle_fetcher(FetchOptions(auth_token))
        if not summary_payload:
            raise TelemetryFetchError("Failed to get vehicle: no vehicle returned", category=Category.VEHICLE_INFO)
        try:
            summary = VehicleSummary.model_validate(summary_payload)
        except ValidationError as exc:
            raise TelemetryFetchError(
                f"Unexpected vehicle summary: {exc}", category=Category.VEHICLE_INFO
            ) from exc
        self._log_payload(Category.VEHICLE_INFO, summary_payload)

        snapshot: Snapshot = {Category.VEHICLE_INFO.value: summary_payload}

        if summary.is_unavailable:
            _logger.info(
                "Vehicle is %s, publishing vehicle info only",
                "in service" if summary.in_service else "asleep",
            )
            await self._publisher.publish(snapshot)
            return TickResult(TickOutcome.PUBLISHED_PARTIAL, snapshot)

        due = self._controller.due_categories(state)
        if not due:
            _logger.debug("No categories due this tick (next index %d)", state.iteration_index)
            return TickResult(TickOutcome.SKIPPED)

        options = FetchOptions(auth_token, vehicle_id=summary.id_s or None)

        async def fetch(category: Category) -> dict[str, Any] | None:
            try:
                payload = await self._category_fetchers[category](options)
            except Exception as exc:
                _logger.error("Error getting data for %s: %s", category, exc)
                raise
            if payload:
                self._log_payload(category, payload)
            return payload

        payloads = await run_bounded(due, fetch, self._max_concurrency)
        for category, payload in zip(due, payloads):
            if payload:
                snapshot[category.value] = payload

        drive_state = snapshot.get(Category.DRIVE_STATE.value)
        if drive_state is not None:
            self._controller.update_driving(state, drive_state)

        await self._publisher.publish(snapshot)
        return TickResult(TickOutcome.PUBLISHED, snapshot)

    @staticmethod
    def _log_payload(category: Category, payload: Any) -> None:
        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug("Received %s state: %s", category, redact_for_log(payload))
