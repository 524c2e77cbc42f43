"""Sequential task runner with a fixed pause between tasks."""

import asyncio
from typing import Awaitable, Callable, Iterable, List, Optional, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")
R = TypeVar("R")


class RateLimitedRunner:
    """Runs an async task over items one at a time, pausing between calls.

    At most ``max_items`` items are processed; the pause is awaited between
    consecutive tasks only, never after the last one.
    """

    def __init__(
        self,
        delay_seconds: float,
        max_items: Optional[int] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.delay_seconds = delay_seconds
        self.max_items = max_items
        self.sleep = sleep

    async def run(self, items: Iterable[T], task: Callable[[T], Awaitable[R]]) -> List[R]:
        batch = list(items)
        if self.max_items is not None:
            batch = batch[:self.max_items]

        results = []
        for i, item in enumerate(batch):
            logger.debug("runner_task_started", index=i + 1, total=len(batch))
            results.append(await task(item))

            if i < len(batch) - 1:
                logger.debug("runner_waiting", seconds=self.delay_seconds)
                await self.sleep(self.delay_seconds)

        return results
