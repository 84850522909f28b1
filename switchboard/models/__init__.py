"""Data models for the Lead Switchboard"""

from .enums import (
    TenantStatus,
    LeadStatus,
    CallStatus,
    CallProvider,
    AuditEventType,
    TERMINAL_CALL_STATUSES
)

from .lead import (
    LeadDraft,
    LeadIntakeResponse
)

from .call import (
    DispatchResult,
    CallbackUpdate,
    CallbackAck
)

from .tenant import (
    TenantCreate,
    TenantUpdate,
    RoutingPolicyUpsert
)

__all__ = [
    # Enums
    "TenantStatus",
    "LeadStatus",
    "CallStatus",
    "CallProvider",
    "AuditEventType",
    "TERMINAL_CALL_STATUSES",
    # Lead models
    "LeadDraft",
    "LeadIntakeResponse",
    # Call models
    "DispatchResult",
    "CallbackUpdate",
    "CallbackAck",
    # Tenant models
    "TenantCreate",
    "TenantUpdate",
    "RoutingPolicyUpsert"
]
