from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Set

log = logging.getLogger("workers.background")


class DetachedTasks:
    """
    Fire-and-forget coroutines on the running loop.

    The caller never waits on them and never sees their errors: a failure is
    logged here and dropped. References are held until each task finishes so
    the loop cannot garbage-collect one mid-flight.
    """

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Awaitable[object], *, name: str = "detached") -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        task.set_name(name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            log.warning("background_task_cancelled", extra={"task": task.get_name()})
            return
        exc = task.exception()
        if exc is not None:
            log.error(
                "background_task_failed",
                exc_info=(type(exc), exc, exc.__traceback__),
                extra={"task": task.get_name()},
            )

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
