"""
Data models for call dispatch and provider callbacks
"""

from typing import Optional, Dict, Any
from pydantic import BaseModel, Field

from .enums import CallStatus


class DispatchResult(BaseModel):
    """Outcome of a call dispatch; dispatchers return this instead of raising"""
    success: bool
    call_id: Optional[str] = Field(None, description="Provider-assigned call identifier")
    internal_call_id: Optional[str] = Field(None, description="Internal call record id")
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str, internal_call_id: Optional[str] = None) -> "DispatchResult":
        return cls(success=False, error=error, internal_call_id=internal_call_id)


class CallbackUpdate(BaseModel):
    """Provider callback reduced to the fields reconciliation needs"""
    provider_call_id: Optional[str] = None
    status: CallStatus = CallStatus.IN_PROGRESS
    outcome: Optional[str] = None
    transcript: Optional[str] = None
    recording_url: Optional[str] = None


class CallbackAck(BaseModel):
    """Acknowledgment returned to providers regardless of outcome"""
    status: str = "received"
    detail: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
