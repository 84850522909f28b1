"""
Call Dispatcher
Routes outbound call requests to the provider named by the routing policy
"""

from typing import Dict, Optional, Union

from switchboard.core.logging import get_logger
from switchboard.db import Repository, get_repository
from switchboard.models.call import DispatchResult
from switchboard.models.enums import AuditEventType, CallProvider
from switchboard.services.audit_service import AuditRecorder, get_audit_recorder
from switchboard.services.providers import (
    BlandProvider,
    CallProviderClient,
    DispatchConfig,
    VapiProvider,
)

logger = get_logger(__name__)


class CallDispatcher:
    """
    Provider dispatch table.

    Every provider client implements the same create_call() contract;
    the dispatcher only picks one by name.
    """

    def __init__(
        self,
        config: DispatchConfig,
        repository: Repository,
        audit: AuditRecorder,
        providers: Optional[Dict[CallProvider, CallProviderClient]] = None,
    ):
        self.config = config
        self.repository = repository
        self.audit = audit
        if providers is None:
            providers = {
                client.provider: client
                for client in (
                    BlandProvider(config, repository, audit),
                    VapiProvider(config, repository, audit),
                )
            }
        self.providers = providers

    def get_provider(self, provider: Union[CallProvider, str]) -> Optional[CallProviderClient]:
        if isinstance(provider, CallProvider):
            return self.providers.get(provider)
        try:
            return self.providers.get(CallProvider(str(provider).strip().lower()))
        except ValueError:
            return None

    async def create_call(
        self,
        provider: Union[CallProvider, str],
        lead_id: str,
        tenant_id: str,
        phone: str,
        instructions: str,
        transfer_number: Optional[str] = None,
    ) -> DispatchResult:
        """
        Dispatch an outbound call through the named provider.

        Returns a DispatchResult; never raises.
        """
        client = self.get_provider(provider)
        if client is None:
            name = provider.value if isinstance(provider, CallProvider) else provider
            error = f"Unknown provider: {name}"
            logger.error(error)
            await self.audit.record(
                AuditEventType.CALL_FAILED,
                error,
                tenant_id,
                {"leadId": lead_id, "provider": str(name)},
            )
            return DispatchResult.failed(error)

        return await client.create_call(
            lead_id=lead_id,
            tenant_id=tenant_id,
            phone=phone,
            instructions=instructions,
            transfer_number=transfer_number,
        )


def get_call_dispatcher() -> CallDispatcher:
    """Build a dispatcher from settings and the current repository"""
    return CallDispatcher(
        config=DispatchConfig.from_settings(),
        repository=get_repository(),
        audit=get_audit_recorder(),
    )
