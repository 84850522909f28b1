"""
Dispatch Scheduler
Deferred call dispatch for routing policies with a delay before the call
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, Set

from switchboard.core.config import settings
from switchboard.core.logging import get_logger

logger = get_logger(__name__)

DispatchRunner = Callable[[str], Awaitable[Any]]


class DispatchScheduler(ABC):
    """Runs LeadIntakeService.dispatch_lead(lead_id) after a delay"""

    #: Whether a scheduled dispatch survives a restart of the web process
    durable: bool = False

    @abstractmethod
    async def schedule(self, lead_id: str, delay_seconds: int) -> None:
        """Schedule a deferred dispatch"""

    async def shutdown(self) -> None:
        """Release scheduler resources"""


class AsyncioDispatchScheduler(DispatchScheduler):
    """
    In-process timers on the running event loop.

    Pending dispatches live only in memory: a restart drops them and
    shutdown() cancels them. Use the Celery scheduler when delayed calls
    must survive restarts.
    """

    durable = False

    def __init__(self, runner: DispatchRunner):
        self._runner = runner
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def schedule(self, lead_id: str, delay_seconds: int) -> None:
        task = asyncio.get_running_loop().create_task(self._run_later(lead_id, delay_seconds))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info(f"Scheduled dispatch for lead {lead_id} in {delay_seconds}s")

    async def _run_later(self, lead_id: str, delay_seconds: int) -> None:
        try:
            await asyncio.sleep(delay_seconds)
            await self._runner(lead_id)
        except asyncio.CancelledError:
            logger.warning(f"Deferred dispatch for lead {lead_id} cancelled")
            raise
        except Exception as e:
            logger.exception(f"Deferred dispatch for lead {lead_id} failed: {e}")

    async def shutdown(self) -> None:
        if not self._tasks:
            return
        logger.warning(f"Dropping {len(self._tasks)} pending deferred dispatches")
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


class CeleryDispatchScheduler(DispatchScheduler):
    """
    Sends dispatch_lead_task to the Celery "dispatch" queue with a countdown.

    The delay is held by the Redis broker, so it survives a restart of
    the web process. The task itself never retries.
    """

    durable = True

    async def schedule(self, lead_id: str, delay_seconds: int) -> None:
        from switchboard.tasks.dispatch_tasks import dispatch_lead_task

        result = await asyncio.to_thread(
            dispatch_lead_task.apply_async, args=[lead_id], countdown=delay_seconds
        )
        logger.info(f"Queued dispatch for lead {lead_id} in {delay_seconds}s (task_id: {result.id})")


_scheduler_instance: Optional[DispatchScheduler] = None


def get_dispatch_scheduler() -> DispatchScheduler:
    """Get the scheduler selected by DISPATCH_SCHEDULER (asyncio or celery)"""
    global _scheduler_instance

    if _scheduler_instance is None:
        if settings.dispatch_scheduler.lower() == "celery":
            _scheduler_instance = CeleryDispatchScheduler()
        else:
            from switchboard.services.lead_intake import run_deferred_dispatch
            _scheduler_instance = AsyncioDispatchScheduler(run_deferred_dispatch)
        logger.info(f"Using {type(_scheduler_instance).__name__}")

    return _scheduler_instance


async def shutdown_dispatch_scheduler() -> None:
    """Cancel in-process pending dispatches; call at application shutdown"""
    global _scheduler_instance
    if _scheduler_instance is not None:
        await _scheduler_instance.shutdown()
        _scheduler_instance = None
