"""
Vapi Provider
Outbound calls through the Vapi phone call API
"""

from typing import Optional, Dict, Any

from switchboard.models.call import CallbackUpdate
from switchboard.models.enums import CallProvider, CallStatus

from .base import CallProviderClient, CallRequest

DEFAULT_FIRST_MESSAGE = "Hello! How can I help you today?"


class VapiProvider(CallProviderClient):
    """Vapi call provider"""

    provider = CallProvider.VAPI
    label = "Vapi"

    @property
    def api_key(self) -> Optional[str]:
        return self.config.vapi_api_key

    @property
    def endpoint(self) -> str:
        return self.config.vapi_api_endpoint

    def build_payload(self, request: CallRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "customer": {"number": request.phone},
            "metadata": {
                "leadId": request.lead_id,
                "clientId": request.tenant_id,
                "internalCallId": request.internal_call_id,
            },
        }

        phone_number_id = (self.config.vapi_phone_number_id or "").strip()
        if phone_number_id:
            payload["phoneNumberId"] = phone_number_id

        assistant_id = (self.config.vapi_assistant_id or "").strip()
        if assistant_id:
            # Pre-configured assistant; instructions travel as template variables
            payload["assistantId"] = assistant_id
            payload["assistantOverrides"] = {
                "variableValues": {
                    "instructions": request.instructions,
                    "transferNumber": request.transfer_number or "",
                },
                "recordingEnabled": True,
                "endCallFunctionEnabled": True,
                "serverUrl": request.callback_url,
            }
        else:
            payload["assistant"] = {
                "model": {
                    "provider": "openai",
                    "model": "gpt-4",
                    "messages": [{"role": "system", "content": request.instructions}],
                },
                "voice": {
                    "provider": "elevenlabs",
                    "voiceId": self.config.vapi_voice_id,
                },
                "firstMessage": DEFAULT_FIRST_MESSAGE,
                "serverUrl": request.callback_url,
            }

        return payload

    def log_summary(self, request: CallRequest, payload: Dict[str, Any]) -> Dict[str, Any]:
        summary = super().log_summary(request, payload)
        summary["assistantId"] = payload.get("assistantId")
        return summary

    def extract_call_id(self, data: Dict[str, Any]) -> Optional[str]:
        call_id = data.get("id")
        return str(call_id) if call_id else None

    def parse_callback(self, payload: Dict[str, Any]) -> CallbackUpdate:
        message = payload.get("message") if isinstance(payload.get("message"), dict) else payload
        call = message.get("call") if isinstance(message.get("call"), dict) else {}
        artifact = message.get("artifact") if isinstance(message.get("artifact"), dict) else {}

        call_id = call.get("id") or message.get("callId") or payload.get("call_id")

        message_type = str(message.get("type") or "").lower()
        status = str(message.get("status") or "").lower()
        ended_reason = str(message.get("endedReason") or "")

        if message_type == "end-of-call-report":
            lowered = ended_reason.lower()
            if "error" in lowered or "failed" in lowered:
                call_status = CallStatus.FAILED
            else:
                call_status = CallStatus.COMPLETED
        elif status == "failed":
            call_status = CallStatus.FAILED
        else:
            call_status = CallStatus.IN_PROGRESS

        analysis = message.get("analysis") if isinstance(message.get("analysis"), dict) else {}
        outcome = ended_reason or analysis.get("summary") or None

        transcript = artifact.get("transcript") or message.get("transcript")
        recording_url = (
            artifact.get("recordingUrl")
            or message.get("recordingUrl")
            or message.get("recording_url")
        )

        return CallbackUpdate(
            provider_call_id=str(call_id) if call_id else None,
            status=call_status,
            outcome=outcome,
            transcript=transcript if isinstance(transcript, str) else None,
            recording_url=recording_url,
        )
