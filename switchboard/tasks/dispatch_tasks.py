"""
Deferred Dispatch Tasks
Runs delayed outbound calls queued by CeleryDispatchScheduler
"""
import asyncio
from typing import Dict, Any

from celery import shared_task
from celery.utils.log import get_task_logger

logger = get_task_logger(__name__)


def run_async(coro):
    """Helper to run async code in Celery tasks"""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def _dispatch(lead_id: str):
    from switchboard.db import close_database, initialize_database
    from switchboard.services.lead_intake import run_deferred_dispatch

    # Each task runs on a fresh event loop, so the connection is per task
    if not await initialize_database():
        raise ConnectionError("Database unavailable")
    try:
        return await run_deferred_dispatch(lead_id)
    finally:
        await close_database()


@shared_task(
    bind=True,
    name="switchboard.tasks.dispatch_tasks.dispatch_lead_task",
    max_retries=0,
    queue="dispatch"
)
def dispatch_lead_task(self, lead_id: str) -> Dict[str, Any]:
    """
    Dispatch a queued lead after its routing policy delay.
    Not retried: a failed dispatch is recorded on the lead.
    """
    logger.info(f"Dispatching lead {lead_id} (task_id: {self.request.id})")

    try:
        result = run_async(_dispatch(lead_id))
    except Exception as e:
        logger.error(f"Deferred dispatch for lead {lead_id} failed: {e}")
        return {
            "status": "error",
            "error": str(e),
            "task_id": self.request.id,
            "lead_id": lead_id
        }

    return {
        "status": "success" if result.success else "failed",
        "call_id": result.call_id,
        "error": result.error,
        "task_id": self.request.id,
        "lead_id": lead_id
    }
