"""
Celery Tasks for Deferred Dispatch
"""
from .celery_app import celery_app
from .dispatch_tasks import dispatch_lead_task

__all__ = ["celery_app", "dispatch_lead_task"]
