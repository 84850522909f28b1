"""
Webhook routes for inbound leads and provider status callbacks
"""

from typing import Any
from fastapi import APIRouter, Depends, Request

from switchboard.api.middleware.rate_limit import check_webhook_rate_limit
from switchboard.api.middleware.webhook_security import validate_callback_secret
from switchboard.core.logging import get_logger
from switchboard.models.enums import CallProvider
from switchboard.models.lead import LeadIntakeResponse
from switchboard.services.callback_service import CallbackService, get_callback_service
from switchboard.services.lead_intake import LeadIntakeService, get_lead_intake_service

logger = get_logger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhooks"])


async def _json_body(request: Request) -> Any:
    """Request body as JSON, or None when it is empty or not JSON"""
    try:
        return await request.json()
    except ValueError:
        return None


@router.post("/{source}/{tenant_id}", dependencies=[Depends(check_webhook_rate_limit)])
async def receive_lead(
    source: str,
    tenant_id: str,
    request: Request,
    service: LeadIntakeService = Depends(get_lead_intake_service)
):
    """
    Receive a lead from an upstream CRM

    Every business outcome (call initiated, scheduled, skipped, duplicate,
    dispatch failure) is a 200. Unknown tenants return 404 and a missing
    or invalid phone returns 400.
    """
    payload = await _json_body(request)
    logger.info(f"Lead webhook from {source} for tenant {tenant_id}")

    result: LeadIntakeResponse = await service.handle_lead(source, tenant_id, payload)
    return result.model_dump(by_alias=True, exclude_none=True)


@router.api_route("/{provider}", methods=["GET", "HEAD"])
async def probe_callback_route(provider: CallProvider):
    """
    Route existence check for provider dashboards and HEAD probes
    """
    return {"ok": True, "route": f"/webhook/{provider.value}"}


@router.post("/{provider}")
async def provider_callback(
    provider: CallProvider,
    request: Request,
    _: bool = Depends(validate_callback_secret),
    service: CallbackService = Depends(get_callback_service)
):
    """
    Receive a call status callback from a provider

    Always acknowledged with 200 so providers do not retry; problems are
    logged instead of returned.
    """
    payload = await _json_body(request)
    ack = await service.handle(provider, payload)
    return ack.as_dict()
