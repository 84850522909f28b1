"""
Database Models

These models represent the database schema and are used by all
database adapters (SQLite, PostgreSQL)
"""

import uuid
from datetime import datetime
from typing import Optional, Any, Dict
from pydantic import BaseModel, ConfigDict, Field

from switchboard.models.enums import (
    TenantStatus,
    LeadStatus,
    CallStatus,
    CallProvider,
)


def new_id() -> str:
    return str(uuid.uuid4())


class TenantDB(BaseModel):
    """Database model for tenants"""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=new_id)
    name: str
    status: TenantStatus = TenantStatus.ACTIVE
    timezone: str = "America/New_York"
    quiet_hours_start: str = "20:00"
    quiet_hours_end: str = "08:00"
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE


class RoutingPolicyDB(BaseModel):
    """Database model for a tenant's outbound call routing policy"""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=new_id)
    tenant_id: str
    active: bool = True
    call_delay_seconds: int = 0
    instructions: str = ""
    transfer_number: Optional[str] = None
    provider: CallProvider = CallProvider.BLAND
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class LeadDB(BaseModel):
    """Database model for inbound leads"""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=new_id)
    tenant_id: str
    contact_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: str
    email: Optional[str] = None
    source: Optional[str] = None
    raw_payload: Optional[Dict[str, Any]] = None
    dedupe_key: str
    call_status: LeadStatus = LeadStatus.NEW
    skip_reason: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class CallDB(BaseModel):
    """Database model for outbound call attempts"""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=new_id)
    tenant_id: str
    lead_id: str
    provider: CallProvider
    provider_call_id: Optional[str] = None
    status: CallStatus = CallStatus.CREATED
    outcome: Optional[str] = None
    transcript: Optional[str] = None
    recording_url: Optional[str] = None
    provider_payload: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class AuditLogDB(BaseModel):
    """Database model for audit log entries"""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    tenant_id: Optional[str] = None
    event_type: str
    message: str
    data: Optional[Any] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


# SQL Schema definitions for different databases
SQLITE_SCHEMA = """
-- Tenants Table
CREATE TABLE IF NOT EXISTS tenants (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'ACTIVE',
    timezone TEXT NOT NULL DEFAULT 'America/New_York',
    quiet_hours_start TEXT NOT NULL DEFAULT '20:00',
    quiet_hours_end TEXT NOT NULL DEFAULT '08:00',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- Routing Policies Table
CREATE TABLE IF NOT EXISTS routing_policies (
    id TEXT PRIMARY KEY,
    tenant_id TEXT NOT NULL REFERENCES tenants(id) ON DELETE CASCADE,
    active INTEGER NOT NULL DEFAULT 1,
    call_delay_seconds INTEGER NOT NULL DEFAULT 0,
    instructions TEXT NOT NULL DEFAULT '',
    transfer_number TEXT,
    provider TEXT NOT NULL DEFAULT 'bland',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- Leads Table
CREATE TABLE IF NOT EXISTS leads (
    id TEXT PRIMARY KEY,
    tenant_id TEXT NOT NULL REFERENCES tenants(id) ON DELETE CASCADE,
    contact_id TEXT,
    first_name TEXT,
    last_name TEXT,
    phone TEXT NOT NULL,
    email TEXT,
    source TEXT,
    raw_payload TEXT,
    dedupe_key TEXT NOT NULL,
    call_status TEXT NOT NULL DEFAULT 'NEW',
    skip_reason TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE (tenant_id, dedupe_key)
);

-- Calls Table
CREATE TABLE IF NOT EXISTS calls (
    id TEXT PRIMARY KEY,
    tenant_id TEXT NOT NULL REFERENCES tenants(id) ON DELETE CASCADE,
    lead_id TEXT NOT NULL REFERENCES leads(id) ON DELETE CASCADE,
    provider TEXT NOT NULL,
    provider_call_id TEXT UNIQUE,
    status TEXT NOT NULL DEFAULT 'CREATED',
    outcome TEXT,
    transcript TEXT,
    recording_url TEXT,
    provider_payload TEXT,
    error_message TEXT,
    started_at TEXT,
    ended_at TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- Audit Logs Table
CREATE TABLE IF NOT EXISTS audit_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    tenant_id TEXT,
    event_type TEXT NOT NULL,
    message TEXT NOT NULL,
    data TEXT,
    created_at TEXT NOT NULL
);

-- Indexes for faster queries
CREATE INDEX IF NOT EXISTS idx_routing_policies_tenant ON routing_policies(tenant_id, active);
CREATE INDEX IF NOT EXISTS idx_leads_tenant_created ON leads(tenant_id, created_at);
CREATE INDEX IF NOT EXISTS idx_calls_lead ON calls(lead_id);
CREATE INDEX IF NOT EXISTS idx_calls_tenant_created ON calls(tenant_id, created_at);
CREATE INDEX IF NOT EXISTS idx_audit_logs_tenant_created ON audit_logs(tenant_id, created_at);
"""

POSTGRES_SCHEMA = """
-- Tenants Table
CREATE TABLE IF NOT EXISTS tenants (
    id VARCHAR(64) PRIMARY KEY,
    name VARCHAR(255) NOT NULL,
    status VARCHAR(20) NOT NULL DEFAULT 'ACTIVE',
    timezone VARCHAR(64) NOT NULL DEFAULT 'America/New_York',
    quiet_hours_start VARCHAR(5) NOT NULL DEFAULT '20:00',
    quiet_hours_end VARCHAR(5) NOT NULL DEFAULT '08:00',
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Routing Policies Table
CREATE TABLE IF NOT EXISTS routing_policies (
    id VARCHAR(64) PRIMARY KEY,
    tenant_id VARCHAR(64) NOT NULL REFERENCES tenants(id) ON DELETE CASCADE,
    active BOOLEAN NOT NULL DEFAULT TRUE,
    call_delay_seconds INTEGER NOT NULL DEFAULT 0,
    instructions TEXT NOT NULL DEFAULT '',
    transfer_number VARCHAR(50),
    provider VARCHAR(20) NOT NULL DEFAULT 'bland',
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Leads Table
CREATE TABLE IF NOT EXISTS leads (
    id VARCHAR(64) PRIMARY KEY,
    tenant_id VARCHAR(64) NOT NULL REFERENCES tenants(id) ON DELETE CASCADE,
    contact_id TEXT,
    first_name TEXT,
    last_name TEXT,
    phone VARCHAR(50) NOT NULL,
    email TEXT,
    source TEXT,
    raw_payload JSONB,
    dedupe_key TEXT NOT NULL,
    call_status VARCHAR(20) NOT NULL DEFAULT 'NEW',
    skip_reason TEXT,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (tenant_id, dedupe_key)
);

-- Calls Table
CREATE TABLE IF NOT EXISTS calls (
    id VARCHAR(64) PRIMARY KEY,
    tenant_id VARCHAR(64) NOT NULL REFERENCES tenants(id) ON DELETE CASCADE,
    lead_id VARCHAR(64) NOT NULL REFERENCES leads(id) ON DELETE CASCADE,
    provider VARCHAR(20) NOT NULL,
    provider_call_id TEXT UNIQUE,
    status VARCHAR(20) NOT NULL DEFAULT 'CREATED',
    outcome TEXT,
    transcript TEXT,
    recording_url TEXT,
    provider_payload JSONB,
    error_message TEXT,
    started_at TIMESTAMP,
    ended_at TIMESTAMP,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Audit Logs Table
CREATE TABLE IF NOT EXISTS audit_logs (
    id SERIAL PRIMARY KEY,
    tenant_id VARCHAR(64),
    event_type VARCHAR(50) NOT NULL,
    message TEXT NOT NULL,
    data JSONB,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Indexes for faster queries
CREATE INDEX IF NOT EXISTS idx_routing_policies_tenant ON routing_policies(tenant_id, active);
CREATE INDEX IF NOT EXISTS idx_leads_tenant_created ON leads(tenant_id, created_at);
CREATE INDEX IF NOT EXISTS idx_calls_lead ON calls(lead_id);
CREATE INDEX IF NOT EXISTS idx_calls_tenant_created ON calls(tenant_id, created_at);
CREATE INDEX IF NOT EXISTS idx_audit_logs_tenant_created ON audit_logs(tenant_id, created_at);
"""
