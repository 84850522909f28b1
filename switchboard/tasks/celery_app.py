"""
Celery Configuration for Deferred Call Dispatch
"""
from celery import Celery

from switchboard.core.config import settings

# Create Celery app
celery_app = Celery(
    "switchboard",
    broker=settings.redis_url,
    include=["switchboard.tasks.dispatch_tasks"]
)

celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,

    # Task routing
    task_routes={
        "switchboard.tasks.dispatch_tasks.dispatch_lead_task": {"queue": "dispatch"},
    },
    task_default_queue="dispatch",

    # A dispatch must not run twice: acknowledge on receipt, never requeue
    task_acks_late=False,
    task_reject_on_worker_lost=False,
    task_time_limit=120,
    task_soft_time_limit=90,
    task_ignore_result=True,

    # Connection settings
    broker_connection_timeout=10,
    broker_connection_retry_on_startup=True,
)

# Define task queues
celery_app.conf.task_queues = {
    "dispatch": {
        "exchange": "dispatch",
        "routing_key": "dispatch",
    },
}
