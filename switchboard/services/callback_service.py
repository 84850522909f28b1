"""
Callback Service
Reconciles provider status callbacks into Call and Lead state
"""

from datetime import datetime
from typing import Any, Dict, Optional, Union

from switchboard.core.config import settings
from switchboard.core.logging import get_logger
from switchboard.db import Repository, get_repository
from switchboard.models.call import CallbackAck
from switchboard.models.enums import AuditEventType, CallProvider, CallStatus, LeadStatus
from switchboard.services.audit_service import AuditRecorder, get_audit_recorder
from switchboard.services.call_dispatcher import CallDispatcher, get_call_dispatcher
from switchboard.utils.helpers import sanitize_for_storage, truncate_text

logger = get_logger(__name__)


class CallbackService:
    """
    Applies provider callbacks.

    Every outcome is acknowledged: unknown or malformed callbacks and
    internal failures are logged, never surfaced to the provider. A call
    that already reached COMPLETED or FAILED is never updated again.
    """

    def __init__(
        self,
        dispatcher: CallDispatcher,
        repository: Repository,
        audit: AuditRecorder,
        payload_max_chars: Optional[int] = None,
        transcript_max_chars: Optional[int] = None,
    ):
        self.dispatcher = dispatcher
        self.repository = repository
        self.audit = audit
        self.payload_max_chars = payload_max_chars or settings.callback_payload_max_chars
        self.transcript_max_chars = transcript_max_chars or settings.transcript_max_chars

    async def handle(self, provider: Union[CallProvider, str], payload: Any) -> CallbackAck:
        """Process a callback; always returns an acknowledgment"""
        try:
            return await self._process(provider, payload)
        except Exception as e:
            logger.exception(f"Error processing {provider} callback: {e}")
            return CallbackAck(detail="error")

    async def _process(self, provider: Union[CallProvider, str], payload: Any) -> CallbackAck:
        client = self.dispatcher.get_provider(provider)
        if client is None:
            logger.warning(f"Callback for unknown provider: {provider}")
            return CallbackAck(detail="unknown provider")

        if not isinstance(payload, dict):
            logger.warning(f"{client.label} callback body is not an object")
            return CallbackAck(detail="malformed")

        update = client.parse_callback(payload)
        if not update.provider_call_id:
            logger.warning(f"{client.label} callback without call id; keys={list(payload.keys())}")
            return CallbackAck(detail="missing call id")

        call = await self.repository.get_call_by_provider_id(update.provider_call_id)
        if call is None:
            logger.warning(f"{client.label} callback for unknown call: {update.provider_call_id}")
            return CallbackAck(detail="unknown call")

        if call.status.is_terminal:
            logger.info(f"Call {call.id} already {call.status.value}; ignoring callback")
            return CallbackAck(detail="already final")

        updates: Dict[str, Any] = {
            "status": update.status,
            "provider_payload": sanitize_for_storage(payload, max_chars=self.payload_max_chars),
        }
        if update.outcome:
            updates["outcome"] = update.outcome
        if update.transcript:
            updates["transcript"] = truncate_text(update.transcript, self.transcript_max_chars)
        if update.recording_url:
            updates["recording_url"] = update.recording_url
        if update.status.is_terminal:
            updates["ended_at"] = datetime.utcnow()

        # A concurrent duplicate may have finished the call since the read above
        applied = await self.repository.update_call_if_not_terminal(call.id, updates)
        if not applied:
            logger.info(f"Call {call.id} finished concurrently; ignoring callback")
            return CallbackAck(detail="already final")

        if update.status == CallStatus.IN_PROGRESS:
            await self.repository.update_lead_status(call.lead_id, LeadStatus.CALLING)
        elif update.status == CallStatus.FAILED:
            await self.repository.update_lead_status(call.lead_id, LeadStatus.FAILED, update.outcome)
        else:
            await self.repository.update_lead_status(call.lead_id, LeadStatus.COMPLETED)

        await self.audit.record(
            AuditEventType.CALL_UPDATED,
            f"Call {update.status.value}",
            call.tenant_id,
            {
                "callId": call.id,
                "leadId": call.lead_id,
                "providerCallId": update.provider_call_id,
                "status": update.status.value,
                "outcome": update.outcome,
            },
        )
        logger.info(f"Call {call.id} -> {update.status.value}")
        return CallbackAck()


def get_callback_service() -> CallbackService:
    """Build a callback service bound to the current repository"""
    return CallbackService(
        dispatcher=get_call_dispatcher(),
        repository=get_repository(),
        audit=get_audit_recorder(),
    )
