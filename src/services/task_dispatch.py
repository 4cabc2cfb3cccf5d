"""
Task dispatch - fire-and-forget background work.

Side effects that must never hold up or break a reply (the Pro welcome email)
are handed to a TaskRunner. Each job runs as a detached asyncio task; its
failure is logged and alerted, never returned to whoever dispatched it.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from src.utils.alerting import AlertType, send_alert

logger = logging.getLogger(__name__)


class TaskRunner:
    """Holds strong references to in-flight tasks so they are not garbage collected."""

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()
        self.failed_count = 0
        self.completed_count = 0

    def dispatch(
        self,
        task_type: str,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        alert_type: str = AlertType.BACKGROUND_TASK_FAILED,
        **kwargs: Any,
    ) -> asyncio.Task:
        """
        Schedule func(*args, **kwargs) in the background and return immediately.

        Must be called from inside a running event loop.
        """
        task = asyncio.create_task(
            self._run(task_type, func, args, kwargs, alert_type),
            name=f"probot:{task_type}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug("Task dispatched: type=%s in_flight=%d", task_type, len(self._tasks))
        return task

    async def _run(
        self,
        task_type: str,
        func: Callable[..., Awaitable[Any]],
        args: tuple,
        kwargs: dict,
        alert_type: str,
    ) -> Optional[Any]:
        try:
            result = await func(*args, **kwargs)
        except asyncio.CancelledError:
            logger.warning("Task cancelled: type=%s", task_type)
            raise
        except Exception as e:
            self.failed_count += 1
            logger.error("Task failed: type=%s error=%s", task_type, str(e), exc_info=True)
            await send_alert(
                alert_type,
                f"Background task {task_type} failed: {e}",
                extra={"task_type": task_type},
            )
            return None
        self.completed_count += 1
        return result

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: float = 10.0) -> None:
        """Wait for in-flight tasks on shutdown; cancel whatever outlives the timeout."""
        if not self._tasks:
            return
        pending = list(self._tasks)
        logger.info("Draining %d background tasks", len(pending))
        _, still_pending = await asyncio.wait(pending, timeout=timeout)
        for task in still_pending:
            task.cancel()
        if still_pending:
            logger.warning("Cancelled %d background tasks on shutdown", len(still_pending))
            await asyncio.gather(*still_pending, return_exceptions=True)
