"""
Data models for lead intake
"""

from typing import Optional, Any
from pydantic import BaseModel, ConfigDict, Field


class LeadDraft(BaseModel):
    """Normalized lead fields pulled out of an upstream webhook payload"""
    contact_id: Optional[str] = None
    raw_phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    source: Optional[str] = None
    submitted_at: Optional[Any] = Field(
        default=None,
        description="Embedded submission timestamp (ISO string or epoch)"
    )


class LeadIntakeResponse(BaseModel):
    """Response body of the lead webhook for every business outcome"""
    model_config = ConfigDict(populate_by_name=True)

    message: str
    lead_id: Optional[str] = Field(default=None, alias="leadId")
    call_id: Optional[str] = Field(default=None, alias="callId")
    immediate: Optional[bool] = None
    scheduled_in_seconds: Optional[int] = Field(default=None, alias="scheduledInSeconds")
    error: Optional[str] = None
