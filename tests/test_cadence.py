from __future__ import annotations

import pytest

from teslabus.models.category import Category
from teslabus.scheduler.cadence import CadenceController, CadenceState

_FULL = [
    Category.DRIVE_STATE,
    Category.VEHICLE_STATE,
    Category.CHARGE_STATE,
    Category.CLIMATE_STATE,
]


@pytest.mark.parametrize("iteration_index", range(5))
@pytest.mark.parametrize("is_driving", [False, True])
def test_due_categories_and_counter_advance(iteration_index: int, is_driving: bool) -> None:
    controller = CadenceController(4)
    state = CadenceState(iteration_index=iteration_index, is_driving=is_driving)

    due = controller.due_categories(state)

    if iteration_index == 0:
        expected = _FULL
    elif is_driving:
        expected = [Category.DRIVE_STATE]
    else:
        expected = []
    assert due == expected
    assert state.iteration_index == (iteration_index + 1) % 5
    assert state.is_driving is is_driving


def test_counter_wraps_after_full_refresh_iterations() -> None:
    controller = CadenceController(4)
    state = CadenceState()

    seen = []
    for _ in range(11):
        seen.append(state.iteration_index)
        controller.due_categories(state)

    assert seen == [0, 1, 2, 3, 4, 0, 1, 2, 3, 4, 0]


def test_zero_full_refresh_iterations_refreshes_every_tick() -> None:
    controller = CadenceController(0)
    state = CadenceState()

    assert controller.due_categories(state) == _FULL
    assert controller.due_categories(state) == _FULL
    assert state.iteration_index == 0


@pytest.mark.parametrize(
    ("shift_state", "expected"),
    [("D", True), ("R", True), ("N", True), ("P", False)],
)
def test_update_driving_from_shift_state(shift_state: str, expected: bool) -> None:
    controller = CadenceController()
    state = CadenceState(is_driving=not expected)

    controller.update_driving(state, {"shift_state": shift_state, "speed": 12})

    assert state.is_driving is expected


@pytest.mark.parametrize("payload", [None, {}, {"shift_state": None}, {"shift_state": ""}, "D"])
def test_update_driving_keeps_previous_value_without_shift_state(payload: object) -> None:
    controller = CadenceController()
    state = CadenceState(is_driving=True)

    controller.update_driving(state, payload)

    assert state.is_driving is True


def test_negative_full_refresh_iterations_rejected() -> None:
    with pytest.raises(ValueError):
        CadenceController(-1)
