"""
Pytest configuration and fixtures
"""

import os
import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock, patch

# Set test environment variables before importing app modules
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")
os.environ["DATABASE_TYPE"] = "sqlite"
os.environ["SQLITE_PATH"] = ":memory:"
os.environ["DISPATCH_SCHEDULER"] = "asyncio"
os.environ["ADMIN_API_KEY"] = "test-admin-key"
os.environ["PUBLIC_BASE_URL"] = "https://switchboard.test"
os.environ["BLAND_API_KEY"] = "test-bland-key"
os.environ["VAPI_API_KEY"] = "test-vapi-key"
os.environ["VAPI_PHONE_NUMBER_ID"] = "test-phone-number-id"
os.environ.pop("CALLBACK_SECRET", None)

from fastapi.testclient import TestClient

ADMIN_HEADERS = {"X-API-Key": "test-admin-key"}

# 2024-01-15 12:00:00 UTC
FIXED_NOW = 1705320000.0


@pytest_asyncio.fixture
async def repository():
    """In-memory SQLite repository with the schema applied"""
    from switchboard.db.adapters.sqlite import SQLiteAdapter
    from switchboard.db.repository import Repository

    repo = Repository(SQLiteAdapter(":memory:"))
    assert await repo.initialize()
    yield repo
    await repo.close()


@pytest.fixture
def dispatch_config():
    """Provider configuration with usable credentials"""
    from switchboard.services.providers import DispatchConfig

    return DispatchConfig(
        public_base_url="https://switchboard.test",
        bland_api_key="test-bland-key",
        vapi_api_key="test-vapi-key",
        vapi_phone_number_id="test-phone-number-id",
    )


@pytest.fixture
def audit(repository):
    """Audit recorder writing to the test repository"""
    from switchboard.services.audit_service import AuditRecorder

    return AuditRecorder(repository, max_chars=8000, error_log_interval=5.0)


@pytest.fixture
def dispatcher(dispatch_config, repository, audit):
    from switchboard.services.call_dispatcher import CallDispatcher

    return CallDispatcher(dispatch_config, repository, audit)


@pytest_asyncio.fixture
async def tenant(repository):
    """Active tenant with quiet hours 20:00-08:00 New York"""
    from switchboard.db import TenantDB

    return await repository.create_tenant(TenantDB(
        name="Acme Roofing",
        timezone="America/New_York",
        quiet_hours_start="20:00",
        quiet_hours_end="08:00",
    ))


@pytest_asyncio.fixture
async def policy(repository, tenant):
    """Active Bland routing policy with no delay"""
    from switchboard.db import RoutingPolicyDB

    return await repository.save_routing_policy(RoutingPolicyDB(
        tenant_id=tenant.id,
        instructions="Qualify the roofing lead and offer an inspection.",
        transfer_number="+14155550000",
    ))


@pytest.fixture
def mock_scheduler():
    """Scheduler that records schedule() calls without running them"""
    scheduler = MagicMock()
    scheduler.durable = False
    scheduler.schedule = AsyncMock()
    scheduler.shutdown = AsyncMock()
    return scheduler


@pytest.fixture
def clock():
    """Mutable clock for the intake service"""
    class FakeClock:
        def __init__(self, now: float):
            self.now = now

        def __call__(self) -> float:
            return self.now

        def advance(self, seconds: float) -> None:
            self.now += seconds

    return FakeClock(FIXED_NOW)


@pytest.fixture
def intake_service(repository, dispatcher, audit, mock_scheduler, clock):
    from switchboard.services.lead_intake import LeadIntakeService

    return LeadIntakeService(
        repository=repository,
        dispatcher=dispatcher,
        audit=audit,
        scheduler=mock_scheduler,
        default_region="US",
        dedupe_window_minutes=30,
        immediate_window_seconds=300,
        payload_max_chars=16000,
        clock=clock,
    )


def make_response(status_code=200, json_data=None, text=None):
    """httpx.Response stand-in"""
    response = MagicMock()
    response.status_code = status_code
    if text is None:
        text = "" if json_data is None else "{...}"
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def mock_http():
    """Patch httpx.AsyncClient used by the provider clients"""
    with patch("switchboard.services.providers.base.httpx.AsyncClient") as mock_client:
        mock_client_instance = MagicMock()
        mock_client_instance.__aenter__ = AsyncMock(return_value=mock_client_instance)
        mock_client_instance.__aexit__ = AsyncMock(return_value=False)
        mock_client_instance.post = AsyncMock(
            return_value=make_response(200, {"status": "success", "call_id": "bland-call-1"})
        )
        mock_client.return_value = mock_client_instance
        yield mock_client_instance


@pytest.fixture
def test_client():
    """Fixture for test client; the lifespan opens a fresh in-memory database"""
    from switchboard.api.middleware.rate_limit import get_rate_limiter
    from switchboard.main import app

    get_rate_limiter().reset()
    with TestClient(app) as client:
        yield client
    get_rate_limiter().reset()


@pytest.fixture
def admin_headers():
    return dict(ADMIN_HEADERS)


@pytest.fixture
def sample_ghl_payload():
    """GoHighLevel workflow webhook body"""
    return {
        "contactId": "ghl-contact-123",
        "firstName": "Dana",
        "lastName": "Reyes",
        "phone": "(415) 555-1234",
        "email": "dana@example.com",
        "source": "Website Form",
        "customData": {"roofAge": "15 years"},
    }
