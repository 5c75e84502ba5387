"""Adaptive polling scheduler: cadence, bounded runner and tick assembly."""

from teslabus.scheduler.assembler import SnapshotAssembler, TickOutcome, TickResult
from teslabus.scheduler.cadence import CadenceController, CadenceState
from teslabus.scheduler.runner import run_bounded

__all__ = [
    "CadenceController",
    "CadenceState",
    "SnapshotAssembler",
    "TickOutcome",
    "TickResult",
    "run_bounded",
]
