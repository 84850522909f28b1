"""
Status and tag enums shared by the pipeline and the database layer
"""

from enum import Enum


class TenantStatus(str, Enum):
    """Lifecycle status of a tenant"""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class LeadStatus(str, Enum):
    """Call status of a lead"""
    NEW = "NEW"
    QUEUED = "QUEUED"
    CALLING = "CALLING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class CallStatus(str, Enum):
    """Internal status of an outbound call attempt"""
    CREATED = "CREATED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_CALL_STATUSES


TERMINAL_CALL_STATUSES = frozenset({CallStatus.COMPLETED, CallStatus.FAILED})


class CallProvider(str, Enum):
    """Outbound calling providers, also the callback path segment"""
    BLAND = "bland"
    VAPI = "vapi"


class AuditEventType(str, Enum):
    """Audit log event tags"""
    WEBHOOK_ERROR = "WEBHOOK_ERROR"
    WEBHOOK_DUPLICATE = "WEBHOOK_DUPLICATE"
    LEAD_CREATED = "LEAD_CREATED"
    CALL_SKIPPED = "CALL_SKIPPED"
    CALL_SCHEDULED = "CALL_SCHEDULED"
    CALL_INITIATED = "CALL_INITIATED"
    CALL_FAILED = "CALL_FAILED"
    CALL_ERROR = "CALL_ERROR"
    CALL_WARNING = "CALL_WARNING"
    CALL_UPDATED = "CALL_UPDATED"
    TENANT_CREATED = "TENANT_CREATED"
    TENANT_UPDATED = "TENANT_UPDATED"
    ROUTING_POLICY_UPDATED = "ROUTING_POLICY_UPDATED"
