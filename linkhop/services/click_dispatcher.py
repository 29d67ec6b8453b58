"""Supervised fire-and-forget execution of click recording."""

import asyncio
from collections.abc import Coroutine
from typing import Any

import structlog

from linkhop.core.metrics import set_click_tasks_in_flight

logger = structlog.get_logger()


class ClickDispatcher:
    """Run click recordings as independent tasks off the request path.

    Tasks are created with ``asyncio.create_task`` so they keep running after
    the redirect response has been sent. The dispatcher holds a reference to
    every pending task, logs failures, and can drain them on shutdown.

    Usage:
        dispatcher = ClickDispatcher()
        dispatcher.dispatch(service.record_click(code, ip, ua, referer))
        ...
        await dispatcher.drain(timeout=10.0)
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()
        self._accepting = True
        self._dispatched = 0
        self._succeeded = 0
        self._failed = 0

    def dispatch(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task | None:
        """Schedule ``coro`` and return immediately.

        Returns None (and closes the coroutine) once draining has started.
        """
        if not self._accepting:
            coro.close()
            logger.warning("Click dispatch rejected, dispatcher is draining", task=name)
            return None

        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        self._dispatched += 1
        set_click_tasks_in_flight(len(self._tasks))
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        set_click_tasks_in_flight(len(self._tasks))

        if task.cancelled():
            self._failed += 1
            logger.warning("Click task cancelled", task=task.get_name())
            return

        error = task.exception()
        if error is not None:
            self._failed += 1
            logger.error(
                "Failed to record click",
                task=task.get_name(),
                error=str(error),
                error_type=type(error).__name__,
            )
        else:
            self._succeeded += 1

    async def drain(self, timeout: float | None = None) -> None:
        """Stop accepting work and wait for pending tasks.

        Tasks still running after ``timeout`` seconds are cancelled.
        """
        self._accepting = False
        if not self._tasks:
            return

        pending = list(self._tasks)
        logger.info("Draining click tasks", pending=len(pending))
        done, not_done = await asyncio.wait(pending, timeout=timeout)

        for task in not_done:
            task.cancel()
        if not_done:
            await asyncio.gather(*not_done, return_exceptions=True)
            logger.warning("Click tasks cancelled at shutdown", cancelled=len(not_done))

        logger.info(
            "Click dispatcher drained",
            completed=len(done),
            succeeded=self._succeeded,
            failed=self._failed,
        )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    @property
    def stats(self) -> dict:
        """Get dispatcher statistics."""
        return {
            "dispatched": self._dispatched,
            "succeeded": self._succeeded,
            "failed": self._failed,
            "pending": len(self._tasks),
            "accepting": self._accepting,
        }
