"""Bounded fan-out of coroutine tasks over the shared analyzer."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List

from .errors import PreconditionError

logger = logging.getLogger(__name__)

TaskFactory = Callable[[], Awaitable[None]]


class BoundedScheduler:
    """Run task factories with at most ``limit`` of them in flight.

    Tasks are created in the order given and each waits for a semaphore
    slot, so dispatch order follows the input while completion order does
    not. :meth:`run` returns once every task has finished.
    """

    def __init__(self, limit: int, progress_every: int = 10) -> None:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise PreconditionError(
                f"max_concurrent_requests must be a positive integer, got {limit!r}"
            )
        self.limit = limit
        self.progress_every = progress_every
        self.active = 0
        self.peak = 0
        self.completed = 0
        self._semaphore = asyncio.Semaphore(limit)

    async def _run_one(self, factory: TaskFactory, total: int, label: str) -> None:
        async with self._semaphore:
            self.active += 1
            self.peak = max(self.peak, self.active)
            try:
                await factory()
            finally:
                self.active -= 1
                self.completed += 1
                if self.completed % self.progress_every == 0 or self.completed == total:
                    logger.info("Processed %d/%d %s", self.completed, total, label)

    async def run(self, factories: Iterable[TaskFactory], label: str = "tasks") -> None:
        pending: List[TaskFactory] = list(factories)
        total = len(pending)
        if not total:
            return
        tasks = [asyncio.create_task(self._run_one(f, total, label)) for f in pending]
        await asyncio.gather(*tasks)
