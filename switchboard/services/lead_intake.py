"""
Lead Intake Service
Orchestrates inbound lead webhooks: gating, dedupe and call dispatch
"""

import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from switchboard.core.config import settings
from switchboard.core.exceptions import (
    InvalidPhoneNumberError,
    MissingPhoneError,
    SwitchboardException,
    TenantNotFoundError,
)
from switchboard.core.logging import get_logger
from switchboard.db import LeadDB, Repository, RoutingPolicyDB, get_repository
from switchboard.models.call import DispatchResult
from switchboard.models.enums import AuditEventType, LeadStatus
from switchboard.models.lead import LeadIntakeResponse
from switchboard.services.audit_service import AuditRecorder, get_audit_recorder
from switchboard.services.call_dispatcher import CallDispatcher, get_call_dispatcher
from switchboard.services.lead_extractors import get_extractor
from switchboard.services.scheduler import DispatchScheduler, get_dispatch_scheduler
from switchboard.utils.helpers import (
    generate_dedupe_key,
    is_within_quiet_hours,
    normalize_phone,
    sanitize_for_storage,
    submission_age_seconds,
)

logger = get_logger(__name__)

QUIET_HOURS_REASON = "Quiet hours"


class LeadIntakeService:
    """
    Lead webhook pipeline.

    Steps run strictly in order and stop at the first terminal outcome.
    Skips, duplicates and dispatch failures are normal responses; only an
    unknown tenant or a missing/invalid phone raise client errors.
    """

    def __init__(
        self,
        repository: Repository,
        dispatcher: CallDispatcher,
        audit: AuditRecorder,
        scheduler: DispatchScheduler,
        default_region: Optional[str] = None,
        dedupe_window_minutes: Optional[int] = None,
        immediate_window_seconds: Optional[int] = None,
        payload_max_chars: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.repository = repository
        self.dispatcher = dispatcher
        self.audit = audit
        self.scheduler = scheduler
        self.default_region = default_region or settings.default_phone_region
        self.dedupe_window_minutes = dedupe_window_minutes or settings.dedupe_window_minutes
        self.immediate_window_seconds = (
            settings.immediate_window_seconds
            if immediate_window_seconds is None
            else immediate_window_seconds
        )
        self.payload_max_chars = payload_max_chars or settings.lead_payload_max_chars
        self._clock = clock

    async def handle_lead(self, source: str, tenant_id: str, payload: Any) -> LeadIntakeResponse:
        """
        Process one inbound lead webhook.

        Raises:
            TenantNotFoundError: unknown tenant
            MissingPhoneError: no phone number in the payload
            InvalidPhoneNumberError: phone number cannot be normalized
        """
        body: Dict[str, Any] = payload if isinstance(payload, dict) else {}
        payload_keys = list(body.keys())

        try:
            return await self._intake(source, tenant_id, body, payload_keys)
        except SwitchboardException:
            raise
        except Exception as e:
            logger.exception(f"Webhook error for tenant {tenant_id}: {e}")
            await self.audit.record(
                AuditEventType.WEBHOOK_ERROR,
                str(e) or e.__class__.__name__,
                tenant_id,
                {"payloadKeys": payload_keys, "error": str(e)},
            )
            raise

    async def _intake(
        self,
        source: str,
        tenant_id: str,
        payload: Dict[str, Any],
        payload_keys: list,
    ) -> LeadIntakeResponse:
        # 1. Tenant
        tenant = await self.repository.get_tenant(tenant_id)
        if tenant is None:
            await self.audit.record(
                AuditEventType.WEBHOOK_ERROR,
                f"Tenant not found: {tenant_id}",
                None,
                {"tenantId": tenant_id, "payloadKeys": payload_keys},
            )
            raise TenantNotFoundError(tenant_id)

        # 2. Tenant status
        if not tenant.is_active:
            await self.audit.record(
                AuditEventType.CALL_SKIPPED, "Tenant inactive", tenant.id, {"tenantId": tenant.id}
            )
            return LeadIntakeResponse(message="Tenant inactive - skipped")

        # 3. Routing policy
        policy = await self.repository.get_active_routing_policy(tenant.id)
        if policy is None:
            await self.audit.record(
                AuditEventType.CALL_SKIPPED,
                "No active routing policy",
                tenant.id,
                {"tenantId": tenant.id},
            )
            return LeadIntakeResponse(message="No routing policy - skipped")

        # 4-5. Phone extraction
        draft = get_extractor(source).extract(payload)
        if not draft.raw_phone:
            await self.audit.record(
                AuditEventType.WEBHOOK_ERROR,
                "No phone number in payload",
                tenant.id,
                {"payloadKeys": payload_keys},
            )
            raise MissingPhoneError(payload_keys)

        # 6. Normalization
        phone = normalize_phone(draft.raw_phone, self.default_region)
        if not phone:
            await self.audit.record(
                AuditEventType.WEBHOOK_ERROR,
                f"Invalid phone: {draft.raw_phone}",
                tenant.id,
                {"rawPhone": draft.raw_phone},
            )
            raise InvalidPhoneNumberError(draft.raw_phone)

        # 7-8. Dedupe fast path
        now = self._clock()
        dedupe_key = generate_dedupe_key(
            draft.contact_id, phone, self.dedupe_window_minutes, now=now
        )
        existing = await self.repository.find_lead_by_dedupe_key(tenant.id, dedupe_key)
        if existing is not None:
            return await self._duplicate(existing, dedupe_key)

        # 9. Lead; the unique constraint settles concurrent creates
        lead, created = await self.repository.create_lead(LeadDB(
            tenant_id=tenant.id,
            contact_id=draft.contact_id,
            first_name=draft.first_name,
            last_name=draft.last_name,
            phone=phone,
            email=draft.email,
            source=draft.source,
            raw_payload=sanitize_for_storage(
                payload, max_chars=self.payload_max_chars, omit_keys=()
            ),
            dedupe_key=dedupe_key,
        ))
        if not created:
            return await self._duplicate(lead, dedupe_key)

        await self.audit.record(
            AuditEventType.LEAD_CREATED, "Lead created", tenant.id, {"leadId": lead.id, "phone": phone}
        )

        # 10-11. Freshness and quiet hours
        age = submission_age_seconds(draft.submitted_at, now=now)
        immediate = age is None or 0 <= age <= self.immediate_window_seconds

        if not immediate and is_within_quiet_hours(
            tenant.timezone,
            tenant.quiet_hours_start,
            tenant.quiet_hours_end,
            now=datetime.fromtimestamp(now, tz=timezone.utc),
        ):
            await self.repository.update_lead_status(lead.id, LeadStatus.SKIPPED, QUIET_HOURS_REASON)
            await self.audit.record(
                AuditEventType.CALL_SKIPPED,
                "Quiet hours (non-immediate lead)",
                tenant.id,
                {"leadId": lead.id, "ageSeconds": age},
            )
            return LeadIntakeResponse(
                message="Skipped (quiet hours)", lead_id=lead.id, immediate=False
            )

        # 12. Queue, then dispatch now or later
        await self.repository.update_lead_status(lead.id, LeadStatus.QUEUED)

        if policy.call_delay_seconds > 0:
            return await self._schedule(lead, policy, immediate)

        result = await self._dispatch(lead.id, tenant.id, phone, policy)

        # 13-14
        if result.success:
            return LeadIntakeResponse(
                message="Lead received and call initiated",
                lead_id=lead.id,
                immediate=immediate,
                call_id=result.call_id,
            )
        return LeadIntakeResponse(
            message="Lead received but call failed",
            lead_id=lead.id,
            immediate=immediate,
            error=result.error,
        )

    async def _duplicate(self, lead: LeadDB, dedupe_key: str) -> LeadIntakeResponse:
        await self.audit.record(
            AuditEventType.WEBHOOK_DUPLICATE,
            "Duplicate lead ignored",
            lead.tenant_id,
            {"leadId": lead.id, "dedupeKey": dedupe_key},
        )
        return LeadIntakeResponse(message="Duplicate ignored", lead_id=lead.id)

    async def _schedule(
        self,
        lead: LeadDB,
        policy: RoutingPolicyDB,
        immediate: bool,
    ) -> LeadIntakeResponse:
        delay = policy.call_delay_seconds
        try:
            await self.scheduler.schedule(lead.id, delay)
        except Exception as e:
            error = f"Could not schedule call: {e}"
            logger.error(f"{error} (lead {lead.id})")
            await self.repository.update_lead_status(lead.id, LeadStatus.FAILED, error)
            await self.audit.record(
                AuditEventType.CALL_FAILED,
                "Call failed to schedule",
                lead.tenant_id,
                {"leadId": lead.id, "error": str(e)},
            )
            return LeadIntakeResponse(
                message="Lead received but call failed",
                lead_id=lead.id,
                immediate=immediate,
                error=error,
            )

        await self.audit.record(
            AuditEventType.CALL_SCHEDULED,
            f"Call scheduled in {delay}s",
            lead.tenant_id,
            {"leadId": lead.id, "delaySeconds": delay, "durable": self.scheduler.durable},
        )
        return LeadIntakeResponse(
            message="Lead received and call scheduled",
            lead_id=lead.id,
            immediate=immediate,
            scheduled_in_seconds=delay,
        )

    async def _dispatch(
        self,
        lead_id: str,
        tenant_id: str,
        phone: str,
        policy: RoutingPolicyDB,
    ) -> DispatchResult:
        result = await self.dispatcher.create_call(
            policy.provider,
            lead_id=lead_id,
            tenant_id=tenant_id,
            phone=phone,
            instructions=policy.instructions,
            transfer_number=policy.transfer_number,
        )

        logger.info(
            f"Dispatch result for lead {lead_id}: success={result.success} "
            f"call_id={result.call_id} error={result.error}"
        )

        if result.success:
            await self.repository.update_lead_status(lead_id, LeadStatus.CALLING)
            await self.audit.record(
                AuditEventType.CALL_INITIATED,
                "Call initiated",
                tenant_id,
                {"leadId": lead_id, "providerCallId": result.call_id},
            )
        else:
            await self.repository.update_lead_status(
                lead_id, LeadStatus.FAILED, result.error or "Call failed"
            )
            await self.audit.record(
                AuditEventType.CALL_FAILED,
                "Call failed to initiate",
                tenant_id,
                {"leadId": lead_id, "error": result.error},
            )

        return result

    async def dispatch_lead(self, lead_id: str) -> DispatchResult:
        """
        Dispatch a lead that was queued for a delayed call.

        Only leads still QUEUED are dispatched; the tenant and routing
        policy are re-read so a deactivation during the delay wins.
        """
        lead = await self.repository.get_lead(lead_id)
        if lead is None:
            logger.warning(f"Deferred dispatch for unknown lead {lead_id}")
            return DispatchResult.failed("Lead not found")

        if lead.call_status != LeadStatus.QUEUED:
            logger.info(f"Lead {lead_id} is {lead.call_status.value}; skipping deferred dispatch")
            return DispatchResult.failed(f"Lead is {lead.call_status.value}")

        tenant = await self.repository.get_tenant(lead.tenant_id)
        if tenant is None or not tenant.is_active:
            return await self._skip_deferred(lead, "Tenant inactive")

        policy = await self.repository.get_active_routing_policy(tenant.id)
        if policy is None:
            return await self._skip_deferred(lead, "No active routing policy")

        return await self._dispatch(lead.id, tenant.id, lead.phone, policy)

    async def _skip_deferred(self, lead: LeadDB, reason: str) -> DispatchResult:
        await self.repository.update_lead_status(lead.id, LeadStatus.SKIPPED, reason)
        await self.audit.record(
            AuditEventType.CALL_SKIPPED,
            f"{reason} (deferred dispatch)",
            lead.tenant_id,
            {"leadId": lead.id},
        )
        return DispatchResult.failed(reason)


def get_lead_intake_service() -> LeadIntakeService:
    """Build the intake service bound to the current repository"""
    return LeadIntakeService(
        repository=get_repository(),
        dispatcher=get_call_dispatcher(),
        audit=get_audit_recorder(),
        scheduler=get_dispatch_scheduler(),
    )


async def run_deferred_dispatch(lead_id: str) -> DispatchResult:
    """Entry point for scheduled dispatches (asyncio timer or Celery task)"""
    return await get_lead_intake_service().dispatch_lead(lead_id)
