"""Rotating cadence deciding which categories are due on each tick.

Drive state is fetched on every tick while the car is moving; everything
else only on full-refresh ticks (``iteration_index == 0``). No I/O here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from teslabus._constants import PARK_SHIFT_STATE
from teslabus.models.category import RELAXED_CATEGORIES, Category

_logger = logging.getLogger(__name__)

DEFAULT_FULL_REFRESH_ITERATIONS = 4


@dataclass(slots=True)
class CadenceState:
    """Cadence state carried from one tick to the next."""

    iteration_index: int = 0
    is_driving: bool = False


class CadenceController:
    """Decides the due categories and advances the cadence counter."""

    def __init__(self, full_refresh_iterations: int = DEFAULT_FULL_REFRESH_ITERATIONS) -> None:
        if full_refresh_iterations < 0:
            raise ValueError("full_refresh_iterations must not be negative")
        self.full_refresh_iterations = full_refresh_iterations

    def due_categories(self, state: CadenceState) -> list[Category]:
        """Return the categories due this tick, then advance ``state``."""
        due: list[Category] = []
        full_refresh = state.iteration_index == 0
        if state.is_driving or full_refresh:
            due.append(Category.DRIVE_STATE)
        if full_refresh:
            due.extend(RELAXED_CATEGORIES)

        state.iteration_index = (state.iteration_index + 1) % (self.full_refresh_iterations + 1)
        return due

    def update_driving(self, state: CadenceState, drive_state: Any) -> None:
        """Derive ``is_driving`` from a drive-state payload's shift state.

        Without a shift state the previous value is kept.
        """
        if not isinstance(drive_state, dict):
            return
        shift_state = drive_state.get("shift_state")
        if not shift_state:
            return
        is_driving = shift_state != PARK_SHIFT_STATE
        if is_driving != state.is_driving:
            _logger.info("Vehicle %s driving (shift state %s)", "started" if is_driving else "stopped", shift_state)
        state.is_driving = is_driving
