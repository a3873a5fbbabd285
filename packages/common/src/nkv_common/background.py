"""Detached background work.

Research completion hands its result to downstream stages without making
the caller wait. Tasks spawned here are held by a strong reference until
they finish, their failures are logged rather than lost, and drain() lets
a shutting-down process wait for in-flight work.
"""

import asyncio
from typing import Any, Coroutine

from nkv_common.logging_config import get_logger

logger = get_logger(__name__)


class DetachedTaskRunner:
    """Owns fire-and-forget tasks for the lifetime of the process."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()
        self.failed_count = 0

    def spawn(self, name: str, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        """Schedule coro on the running loop and return its task."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logger.debug("detached_task_spawned", task_name=name, active=len(self._tasks))
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("detached_task_cancelled", task_name=task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            self.failed_count += 1
            logger.error(
                "detached_task_failed",
                task_name=task.get_name(),
                error=str(exc),
                error_type=type(exc).__name__,
            )

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: float = 10.0) -> int:
        """Wait for in-flight tasks; cancel whatever is left after timeout.

        Returns:
            Number of tasks cancelled because they outlived the timeout
        """
        if not self._tasks:
            return 0

        pending = set(self._tasks)
        logger.info("detached_tasks_draining", active=len(pending), timeout=timeout)
        _, still_pending = await asyncio.wait(pending, timeout=timeout)

        for task in still_pending:
            task.cancel()
        if still_pending:
            await asyncio.gather(*still_pending, return_exceptions=True)
            logger.warning("detached_tasks_cancelled", cancelled=len(still_pending))

        return len(still_pending)


_runner: DetachedTaskRunner | None = None


def get_task_runner() -> DetachedTaskRunner:
    """Process-wide runner shared by the API and CLI."""
    global _runner
    if _runner is None:
        _runner = DetachedTaskRunner()
    return _runner
