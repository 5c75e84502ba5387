"""Bounded, fail-fast concurrent execution of independent tasks."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


def _discard_outcome(task: asyncio.Task[object]) -> None:
    # Retrieve late results/errors so asyncio does not warn about them.
    if not task.cancelled():
        task.exception()


async def run_bounded(
    items: Iterable[T],
    worker: Callable[[T], Awaitable[R]],
    max_concurrency: int = 1,
) -> list[R]:
    """Run ``worker`` over ``items`` with at most ``max_concurrency`` in flight.

    Results are returned in input order regardless of completion order.

    On the first failure no further item is started and the error is
    raised. Workers already in flight are left to finish; their outcome
    is discarded.

    An empty ``items`` still yields to the event loop once before
    returning ``[]``.

    Raises
    ------
    ValueError
        ``max_concurrency`` is lower than 1.
    """
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")

    pending_items = list(enumerate(items))
    if not pending_items:
        await asyncio.sleep(0)
        return []

    results: list[R | None] = [None] * len(pending_items)
    queue = iter(pending_items)
    in_flight: dict[asyncio.Task[R], int] = {}

    async def _invoke(item: T) -> R:
        return await worker(item)

    def _dispatch() -> None:
        next_item = next(queue, None)
        if next_item is None:
            return
        index, item = next_item
        in_flight[asyncio.ensure_future(_invoke(item))] = index

    for _ in range(min(max_concurrency, len(pending_items))):
        _dispatch()

    while in_flight:
        done, _ = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)
        finished = sorted(done, key=in_flight.__getitem__)
        for task in finished:
            index = in_flight.pop(task)
            error = task.exception()
            if error is not None:
                # Lowest-index failure of the batch wins.
                for other in finished:
                    _discard_outcome(other)
                for other in in_flight:
                    other.add_done_callback(_discard_outcome)
                raise error
            results[index] = task.result()
        for _ in done:
            _dispatch()

    return results  # type: ignore[return-value]
