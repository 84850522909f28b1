"""
Request models for the tenant and routing policy admin surface
"""

import re
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from pydantic import BaseModel, Field, field_validator

from .enums import TenantStatus, CallProvider

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _check_hhmm(value: Optional[str]) -> Optional[str]:
    if value is not None and not _HHMM.match(value):
        raise ValueError("time must be HH:MM (24-hour)")
    return value


def _check_timezone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"unknown timezone: {value}")
    return value


class TenantCreate(BaseModel):
    """Payload for creating a tenant"""
    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Acme Roofing",
                "timezone": "America/Chicago",
                "quiet_hours_start": "20:00",
                "quiet_hours_end": "08:00"
            }
        }
    }

    name: str = Field(..., min_length=1, max_length=255)
    status: TenantStatus = TenantStatus.ACTIVE
    timezone: str = "America/New_York"
    quiet_hours_start: str = "20:00"
    quiet_hours_end: str = "08:00"

    @field_validator("quiet_hours_start", "quiet_hours_end")
    @classmethod
    def validate_quiet_hours(cls, value: str) -> str:
        return _check_hhmm(value)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        return _check_timezone(value)


class TenantUpdate(BaseModel):
    """Partial update of a tenant"""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    status: Optional[TenantStatus] = None
    timezone: Optional[str] = None
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None

    @field_validator("quiet_hours_start", "quiet_hours_end")
    @classmethod
    def validate_quiet_hours(cls, value: Optional[str]) -> Optional[str]:
        return _check_hhmm(value)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: Optional[str]) -> Optional[str]:
        return _check_timezone(value)


class RoutingPolicyUpsert(BaseModel):
    """Payload for saving a tenant's routing policy"""
    active: bool = True
    call_delay_seconds: int = Field(default=0, ge=0, le=3600)
    instructions: str = ""
    transfer_number: Optional[str] = Field(default=None, max_length=50)
    provider: CallProvider = CallProvider.BLAND
