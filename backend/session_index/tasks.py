"""Bounded-concurrency fan-out with order-preserving results."""

from __future__ import annotations

import asyncio
import itertools
from typing import Awaitable, Callable, Sequence, TypeVar

from . import config

T = TypeVar("T")


async def run_bounded(
    tasks: Sequence[Callable[[], Awaitable[T]]],
    concurrency: int = config.MAX_CONCURRENT_OPERATIONS,
) -> list[T]:
    """
    Run nullary async callables with at most ``concurrency`` in flight.

    Results come back in the order of ``tasks``, whatever order they finish in.
    Each worker claims the next index from a shared counter before awaiting,
    so no two workers ever write the same result slot.
    """
    results: list = [None] * len(tasks)
    next_index = itertools.count()

    async def worker() -> None:
        while True:
            index = next(next_index)
            if index >= len(tasks):
                return
            results[index] = await tasks[index]()

    workers = min(max(concurrency, 1), len(tasks))
    await asyncio.gather(*(worker() for _ in range(workers)))
    return results
