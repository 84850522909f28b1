"""Services for the Lead Switchboard"""

from .audit_service import AuditRecorder, get_audit_recorder
from .call_dispatcher import CallDispatcher, get_call_dispatcher
from .callback_service import CallbackService, get_callback_service
from .lead_extractors import (
    LeadExtractor,
    GoHighLevelExtractor,
    GenericExtractor,
    get_extractor,
    register_extractor
)
from .lead_intake import LeadIntakeService, get_lead_intake_service, run_deferred_dispatch
from .scheduler import (
    DispatchScheduler,
    AsyncioDispatchScheduler,
    CeleryDispatchScheduler,
    get_dispatch_scheduler,
    shutdown_dispatch_scheduler
)

__all__ = [
    "AuditRecorder",
    "get_audit_recorder",
    "CallDispatcher",
    "get_call_dispatcher",
    "CallbackService",
    "get_callback_service",
    "LeadExtractor",
    "GoHighLevelExtractor",
    "GenericExtractor",
    "get_extractor",
    "register_extractor",
    "LeadIntakeService",
    "get_lead_intake_service",
    "run_deferred_dispatch",
    "DispatchScheduler",
    "AsyncioDispatchScheduler",
    "CeleryDispatchScheduler",
    "get_dispatch_scheduler",
    "shutdown_dispatch_scheduler"
]
