"""
Bland AI Provider
Outbound calls through the Bland AI calls API
"""

from typing import Optional, Dict, Any

from switchboard.models.call import CallbackUpdate
from switchboard.models.enums import CallProvider, CallStatus

from .base import CallProviderClient, CallRequest


class BlandProvider(CallProviderClient):
    """Bland AI call provider"""

    provider = CallProvider.BLAND
    label = "Bland"

    @property
    def api_key(self) -> Optional[str]:
        return self.config.bland_api_key

    @property
    def endpoint(self) -> str:
        return self.config.bland_api_endpoint

    def build_payload(self, request: CallRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "phone_number": request.phone,
            "task": request.instructions,
            "webhook": request.callback_url,
            "webhook_events": ["completed", "failed"],
            "wait_for_greeting": True,
            "record": True,
            "metadata": {
                "leadId": request.lead_id,
                "clientId": request.tenant_id,
                "internalCallId": request.internal_call_id,
            },
            "request_data": {
                "leadId": request.lead_id,
                "clientId": request.tenant_id,
            },
        }

        persona_id = (self.config.bland_persona_id or "").strip()
        if persona_id:
            payload["persona_id"] = persona_id

        voice = (self.config.bland_voice or "").strip()
        if voice:
            payload["voice"] = voice

        if request.transfer_number:
            payload["transfer_phone_number"] = request.transfer_number

        return payload

    def log_summary(self, request: CallRequest, payload: Dict[str, Any]) -> Dict[str, Any]:
        summary = super().log_summary(request, payload)
        summary["personaId"] = payload.get("persona_id")
        summary["voice"] = payload.get("voice")
        return summary

    def extract_call_id(self, data: Dict[str, Any]) -> Optional[str]:
        call_id = data.get("call_id")
        return str(call_id) if call_id else None

    def parse_callback(self, payload: Dict[str, Any]) -> CallbackUpdate:
        call_id = payload.get("call_id") or payload.get("callId")
        status = str(payload.get("status") or "").lower()

        if status == "completed" or payload.get("completed") is True:
            call_status = CallStatus.COMPLETED
        elif status in ("failed", "error") or payload.get("error"):
            call_status = CallStatus.FAILED
        else:
            call_status = CallStatus.IN_PROGRESS

        outcome = payload.get("outcome")
        if outcome is None and payload.get("call_length") is not None:
            outcome = f"call_length={payload['call_length']}"

        return CallbackUpdate(
            provider_call_id=str(call_id) if call_id else None,
            status=call_status,
            outcome=str(outcome) if outcome is not None else None,
            transcript=self._transcript(payload),
            recording_url=payload.get("recording_url"),
        )

    @staticmethod
    def _transcript(payload: Dict[str, Any]) -> Optional[str]:
        text = payload.get("transcript") or payload.get("concatenated_transcript")
        if isinstance(text, str) and text:
            return text

        transcripts = payload.get("transcripts")
        if isinstance(transcripts, list):
            lines = [
                str(entry.get("text"))
                for entry in transcripts
                if isinstance(entry, dict) and entry.get("text")
            ]
            return "\n".join(lines) or None
        return None
