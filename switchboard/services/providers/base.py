"""
Call Provider Base
Shared call lifecycle for outbound AI calling providers
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Dict, Any, Tuple

import httpx
from pydantic import BaseModel

from switchboard.core.config import Settings, settings
from switchboard.core.exceptions import ProviderConfigurationError
from switchboard.core.logging import get_logger
from switchboard.db import CallDB, Repository
from switchboard.models.call import CallbackUpdate, DispatchResult
from switchboard.models.enums import AuditEventType, CallProvider, CallStatus, LeadStatus
from switchboard.services.audit_service import AuditRecorder
from switchboard.utils.helpers import normalize_phone

logger = get_logger(__name__)

BASE_URL_HINT = (
    "PUBLIC_BASE_URL must be set to ONLY the domain and start with https:// "
    "(e.g. https://switchboard.example.com)"
)


class DispatchConfig(BaseModel):
    """Provider credentials and callback base handed to the dispatcher"""
    public_base_url: Optional[str] = None
    default_phone_region: str = "US"

    bland_api_key: Optional[str] = None
    bland_api_endpoint: str = "https://api.bland.ai/v1/calls"
    bland_persona_id: Optional[str] = None
    bland_voice: Optional[str] = None

    vapi_api_key: Optional[str] = None
    vapi_api_endpoint: str = "https://api.vapi.ai/call/phone"
    vapi_assistant_id: Optional[str] = None
    vapi_phone_number_id: Optional[str] = None
    vapi_voice_id: str = "21m00Tcm4TlvDq8ikWAM"

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "DispatchConfig":
        source = source or settings
        return cls(**{name: getattr(source, name) for name in cls.model_fields})


class CallRequest(BaseModel):
    """Everything a provider needs to build its request body"""
    lead_id: str
    tenant_id: str
    phone: str
    instructions: str
    transfer_number: Optional[str] = None
    callback_url: str
    internal_call_id: str


def normalize_base_url(raw: Optional[str]) -> Optional[str]:
    """
    Validate the public callback base.

    Returns the URL without trailing slashes, or None when it is missing,
    not https, or already points at a webhook path.
    """
    if not raw:
        return None
    trimmed = raw.strip().rstrip("/")
    if not trimmed.startswith("https://"):
        return None
    if "/webhook" in trimmed:
        return None
    return trimmed


def is_placeholder(value: Optional[str]) -> bool:
    """True for empty credentials and template values like 'your_api_key_here'"""
    if not value or not value.strip():
        return True
    return value.strip().lower().startswith("your_")


class CallProviderClient(ABC):
    """
    Base class for outbound call providers.

    create_call() owns the shared lifecycle: validate configuration, create
    the internal Call row, build and send the request, then move Call and
    Lead to their next state and audit the outcome. Subclasses supply the
    endpoint, credentials, request body and response/callback parsing.
    """

    provider: CallProvider
    label: str

    def __init__(self, config: DispatchConfig, repository: Repository, audit: AuditRecorder):
        self.config = config
        self.repository = repository
        self.audit = audit

    # ==================== Provider specifics ====================

    @property
    @abstractmethod
    def api_key(self) -> Optional[str]:
        """Configured credential"""

    @property
    @abstractmethod
    def endpoint(self) -> str:
        """Call creation endpoint"""

    @abstractmethod
    def build_payload(self, request: CallRequest) -> Dict[str, Any]:
        """Build the provider request body"""

    @abstractmethod
    def extract_call_id(self, data: Dict[str, Any]) -> Optional[str]:
        """Pull the provider call id out of a success response"""

    @abstractmethod
    def parse_callback(self, payload: Dict[str, Any]) -> CallbackUpdate:
        """Reduce a status callback to a CallbackUpdate"""

    def headers(self) -> Dict[str, str]:
        key = (self.api_key or "").strip()
        if not key.lower().startswith("bearer "):
            key = f"Bearer {key}"
        return {"Authorization": key, "Content-Type": "application/json"}

    def extract_error(self, data: Dict[str, Any], status_code: int) -> str:
        message = data.get("error") or data.get("message")
        if isinstance(message, dict):
            message = message.get("message") or str(message)
        elif isinstance(message, list):
            message = "; ".join(str(item) for item in message)
        return str(message) if message else f"Call creation failed (HTTP {status_code})"

    def log_summary(self, request: CallRequest, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Safe request summary for logs and audits; never includes credentials"""
        return {
            "phone": request.phone,
            "webhookUrl": request.callback_url,
            "hasTransfer": bool(request.transfer_number),
        }

    # ==================== Lifecycle ====================

    def validate_config(self) -> str:
        """
        Check credentials and the callback base.

        Returns:
            The callback URL for this provider

        Raises:
            ProviderConfigurationError: when the provider cannot be called
        """
        if is_placeholder(self.api_key):
            raise ProviderConfigurationError(
                f"{self.provider.value.upper()}_API_KEY not configured",
                provider=self.provider.value,
            )

        base_url = normalize_base_url(self.config.public_base_url)
        if not base_url:
            raise ProviderConfigurationError(BASE_URL_HINT, provider=self.provider.value)

        return f"{base_url}/webhook/{self.provider.value}"

    async def create_call(
        self,
        lead_id: str,
        tenant_id: str,
        phone: str,
        instructions: str,
        transfer_number: Optional[str] = None,
    ) -> DispatchResult:
        """
        Create an outbound call.

        Never raises; every failure path returns a failed DispatchResult
        and writes an audit entry.
        """
        try:
            callback_url = self.validate_config()
        except ProviderConfigurationError as e:
            logger.error(f"{self.label} not configured: {e.message}")
            await self.audit.record(
                AuditEventType.CALL_FAILED,
                e.message,
                tenant_id,
                {"leadId": lead_id, "phone": phone, "provider": self.provider.value},
            )
            return DispatchResult.failed(e.message)

        call: Optional[CallDB] = None
        try:
            call = await self.repository.create_call(
                CallDB(tenant_id=tenant_id, lead_id=lead_id, provider=self.provider)
            )

            transfer_number = await self._guard_transfer(
                transfer_number, phone, lead_id, tenant_id, call.id
            )

            request = CallRequest(
                lead_id=lead_id,
                tenant_id=tenant_id,
                phone=phone,
                instructions=instructions,
                transfer_number=transfer_number,
                callback_url=callback_url,
                internal_call_id=call.id,
            )
            payload = self.build_payload(request)
            summary = self.log_summary(request, payload)
            logger.info(f"[{self.label}] sending call {summary}")

            status_code, data = await self._send(payload)
            provider_call_id = self.extract_call_id(data) if 200 <= status_code < 300 else None

            if provider_call_id:
                await self.repository.update_call(call.id, {
                    "provider_call_id": provider_call_id,
                    "status": CallStatus.IN_PROGRESS,
                    "started_at": datetime.utcnow(),
                })
                await self.repository.update_lead_status(lead_id, LeadStatus.CALLING)
                await self.audit.record(
                    AuditEventType.CALL_INITIATED,
                    f"{self.label} call initiated to {phone}",
                    tenant_id,
                    {
                        **summary,
                        "leadId": lead_id,
                        "internalCallId": call.id,
                        "providerCallId": provider_call_id,
                    },
                )
                logger.info(f"{self.label} call initiated: {provider_call_id}")
                return DispatchResult(
                    success=True,
                    call_id=provider_call_id,
                    internal_call_id=call.id,
                )

            error = self.extract_error(data, status_code)
            await self.repository.update_call(call.id, {
                "status": CallStatus.FAILED,
                "error_message": error,
            })
            await self.repository.update_lead_status(lead_id, LeadStatus.FAILED, error)
            await self.audit.record(
                AuditEventType.CALL_FAILED,
                f"{self.label} call failed: {error}",
                tenant_id,
                {
                    "leadId": lead_id,
                    "internalCallId": call.id,
                    "httpStatus": status_code,
                    "webhookUrl": callback_url,
                    "response": data,
                },
            )
            logger.warning(f"{self.label} call failed (HTTP {status_code}): {error}")
            return DispatchResult.failed(error, call.id)

        except Exception as e:
            error = str(e) or e.__class__.__name__
            logger.exception(f"{self.label} call error: {error}")
            await self._mark_failed(call, lead_id, error)
            await self.audit.record(
                AuditEventType.CALL_ERROR,
                f"{self.label} call error: {error}",
                tenant_id,
                {"leadId": lead_id, "phone": phone, "error": error},
            )
            return DispatchResult.failed(error, call.id if call else None)

    async def _guard_transfer(
        self,
        transfer_number: Optional[str],
        phone: str,
        lead_id: str,
        tenant_id: str,
        internal_call_id: str,
    ) -> Optional[str]:
        """Drop a transfer number that points back at the destination phone"""
        if not transfer_number or not transfer_number.strip():
            return None

        normalized = normalize_phone(transfer_number, self.config.default_phone_region)
        if (normalized or transfer_number.strip()) != phone:
            return transfer_number.strip()

        logger.warning(f"Transfer number equals destination {phone}; dropping transfer")
        await self.audit.record(
            AuditEventType.CALL_WARNING,
            "Transfer number matches destination phone; transfer disabled",
            tenant_id,
            {"leadId": lead_id, "internalCallId": internal_call_id, "phone": phone},
        )
        return None

    async def _send(self, payload: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
        """POST the request and decode the body without trusting it to be JSON"""
        async with httpx.AsyncClient() as client:
            response = await client.post(self.endpoint, headers=self.headers(), json=payload)

        try:
            data = response.json() if response.text else {}
        except ValueError:
            data = {"error": response.text or f"Non-JSON response from {self.label}"}

        if not isinstance(data, dict):
            data = {"response": data}

        return response.status_code, data

    async def _mark_failed(self, call: Optional[CallDB], lead_id: str, error: str) -> None:
        try:
            if call is not None:
                await self.repository.update_call(call.id, {
                    "status": CallStatus.FAILED,
                    "error_message": error,
                })
            await self.repository.update_lead_status(lead_id, LeadStatus.FAILED, error)
        except Exception as e:
            logger.error(f"Could not record failure for lead {lead_id}: {e}")
