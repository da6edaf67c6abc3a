"""
Concurrency-limited fetcher.

Spawns min(concurrency, len(items)) runners that share one claim counter.
Each runner claims the next index, awaits the worker for it, and repeats
until every index is claimed or cancellation is observed. Completion order
is unspecified; every index is claimed at most once, without gaps.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from sol_wallet_tracker.core.cancellation import CancellationToken
from sol_wallet_tracker.tracker_logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Worker = Callable[[T, int], Awaitable[None]]


class _ClaimCounter:
    """Next-index counter; claims happen between awaits so they are atomic on one loop."""

    def __init__(self, total: int) -> None:
        self._next = 0
        self._total = total

    def claim(self) -> int | None:
        if self._next >= self._total:
            return None
        index = self._next
        self._next += 1
        return index


async def run_with_concurrency(
    items: Sequence[T],
    concurrency: int,
    worker: Worker[T],
    *,
    token: CancellationToken | None = None,
) -> None:
    """
    Run `worker(item, index)` for every item with at most `concurrency` in flight.

    Cancellation is checked before each claim; an in-flight worker is never
    interrupted by the fetcher. Workers convert their own failures into
    results; a worker raising OperationCancelled stops its runner and the
    exception propagates once the remaining runners finish.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be a positive integer")
    if not items:
        return
    counter = _ClaimCounter(len(items))

    async def _runner() -> None:
        while True:
            if token is not None and token.cancelled:
                return
            index = counter.claim()
            if index is None:
                return
            await worker(items[index], index)

    runner_count = min(concurrency, len(items))
    logger.debug("worker_pool_started", runners=runner_count, items=len(items))
    results = await asyncio.gather(
        *(_runner() for _ in range(runner_count)), return_exceptions=True
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result
