"""
Admin API Routes
Tenant and routing policy management, lead/call/audit listing
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from switchboard.api.middleware.auth import require_admin
from switchboard.core.exceptions import LeadNotFoundError, TenantNotFoundError
from switchboard.core.logging import get_logger
from switchboard.db import (
    AuditLogDB,
    CallDB,
    LeadDB,
    Repository,
    RoutingPolicyDB,
    TenantDB,
    get_repository,
)
from switchboard.models.enums import AuditEventType
from switchboard.models.tenant import RoutingPolicyUpsert, TenantCreate, TenantUpdate
from switchboard.services.audit_service import AuditRecorder, get_audit_recorder

logger = get_logger(__name__)

router = APIRouter(tags=["admin"], dependencies=[Depends(require_admin)])


async def _get_tenant_or_404(repo: Repository, tenant_id: str) -> TenantDB:
    tenant = await repo.get_tenant(tenant_id)
    if not tenant:
        raise TenantNotFoundError(tenant_id)
    return tenant


# ==================== Tenants ====================

@router.post("/tenants", response_model=TenantDB, status_code=201)
async def create_tenant(
    payload: TenantCreate,
    repo: Repository = Depends(get_repository),
    audit: AuditRecorder = Depends(get_audit_recorder)
):
    """
    Create a new tenant
    """
    tenant = await repo.create_tenant(TenantDB(**payload.model_dump()))
    await audit.record(
        AuditEventType.TENANT_CREATED,
        f"Tenant created: {tenant.name}",
        tenant.id,
        payload.model_dump(mode="json"),
    )
    return tenant


@router.get("/tenants", response_model=List[TenantDB])
async def list_tenants(
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    repo: Repository = Depends(get_repository)
):
    """
    List tenants
    """
    return await repo.list_tenants(limit=limit, offset=offset)


@router.get("/tenants/{tenant_id}", response_model=TenantDB)
async def get_tenant(
    tenant_id: str,
    repo: Repository = Depends(get_repository)
):
    """
    Get a specific tenant by ID
    """
    return await _get_tenant_or_404(repo, tenant_id)


@router.patch("/tenants/{tenant_id}", response_model=TenantDB)
async def update_tenant(
    tenant_id: str,
    payload: TenantUpdate,
    repo: Repository = Depends(get_repository),
    audit: AuditRecorder = Depends(get_audit_recorder)
):
    """
    Update a tenant (status, timezone, quiet hours, name)
    """
    await _get_tenant_or_404(repo, tenant_id)

    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    tenant = await repo.update_tenant(tenant_id, updates)
    await audit.record(
        AuditEventType.TENANT_UPDATED,
        "Tenant updated",
        tenant_id,
        payload.model_dump(mode="json", exclude_unset=True),
    )
    return tenant


# ==================== Routing Policy ====================

@router.get("/tenants/{tenant_id}/routing", response_model=RoutingPolicyDB)
async def get_routing_policy(
    tenant_id: str,
    repo: Repository = Depends(get_repository)
):
    """
    Get the tenant's routing policy
    """
    await _get_tenant_or_404(repo, tenant_id)

    policy = await repo.get_routing_policy(tenant_id)
    if not policy:
        raise HTTPException(status_code=404, detail=f"No routing policy for tenant: {tenant_id}")
    return policy


@router.put("/tenants/{tenant_id}/routing", response_model=RoutingPolicyDB)
async def save_routing_policy(
    tenant_id: str,
    payload: RoutingPolicyUpsert,
    repo: Repository = Depends(get_repository),
    audit: AuditRecorder = Depends(get_audit_recorder)
):
    """
    Create or replace the tenant's routing policy

    Saving an active policy deactivates any other policy of the tenant.
    """
    await _get_tenant_or_404(repo, tenant_id)

    existing = await repo.get_routing_policy(tenant_id)
    if existing:
        policy = existing.model_copy(update=payload.model_dump())
    else:
        policy = RoutingPolicyDB(tenant_id=tenant_id, **payload.model_dump())

    policy = await repo.save_routing_policy(policy)
    await audit.record(
        AuditEventType.ROUTING_POLICY_UPDATED,
        "Routing policy updated",
        tenant_id,
        payload.model_dump(mode="json"),
    )
    return policy


# ==================== Leads, Calls, Audit Logs ====================

@router.get("/leads", response_model=List[LeadDB])
async def list_leads(
    tenant_id: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    repo: Repository = Depends(get_repository)
):
    """
    List leads, newest first
    """
    return await repo.list_leads(tenant_id=tenant_id, limit=limit, offset=offset)


@router.get("/leads/{lead_id}", response_model=LeadDB)
async def get_lead(
    lead_id: str,
    repo: Repository = Depends(get_repository)
):
    lead = await repo.get_lead(lead_id)
    if not lead:
        raise LeadNotFoundError(lead_id)
    return lead


@router.get("/calls", response_model=List[CallDB])
async def list_calls(
    tenant_id: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    repo: Repository = Depends(get_repository)
):
    """
    List calls, newest first
    """
    return await repo.list_calls(tenant_id=tenant_id, limit=limit, offset=offset)


@router.get("/audit-logs", response_model=List[AuditLogDB])
async def list_audit_logs(
    tenant_id: Optional[str] = None,
    event_type: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=500),
    repo: Repository = Depends(get_repository)
):
    """
    List audit log entries, newest first
    """
    return await repo.list_audit_logs(tenant_id=tenant_id, event_type=event_type, limit=limit)
