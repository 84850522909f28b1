"""
Tests for the repository on SQLite
"""

import pytest

from switchboard.db import CallDB, LeadDB, RoutingPolicyDB, TenantDB, AuditLogDB
from switchboard.models.enums import CallProvider, CallStatus, LeadStatus, TenantStatus


async def _create_lead(repository, tenant, dedupe_key="contact:c-1:window:1"):
    lead, created = await repository.create_lead(LeadDB(
        tenant_id=tenant.id,
        contact_id="c-1",
        phone="+14155551234",
        raw_payload={"phone": "+14155551234", "tags": ["roof"]},
        dedupe_key=dedupe_key,
    ))
    assert created
    return lead


class TestTenants:

    @pytest.mark.asyncio
    async def test_create_and_get(self, repository):
        tenant = await repository.create_tenant(TenantDB(name="Acme", timezone="America/Chicago"))

        loaded = await repository.get_tenant(tenant.id)
        assert loaded.name == "Acme"
        assert loaded.timezone == "America/Chicago"
        assert loaded.status == TenantStatus.ACTIVE
        assert loaded.is_active

    @pytest.mark.asyncio
    async def test_get_unknown(self, repository):
        assert await repository.get_tenant("missing") is None

    @pytest.mark.asyncio
    async def test_update_ignores_unknown_columns(self, repository, tenant):
        updated = await repository.update_tenant(tenant.id, {
            "status": TenantStatus.INACTIVE,
            "id": "hijack",
        })
        assert updated.id == tenant.id
        assert updated.status == TenantStatus.INACTIVE
        assert not updated.is_active

    @pytest.mark.asyncio
    async def test_list(self, repository, tenant):
        await repository.create_tenant(TenantDB(name="Second"))
        tenants = await repository.list_tenants(limit=10)
        assert {t.name for t in tenants} == {"Acme Roofing", "Second"}


class TestRoutingPolicies:

    @pytest.mark.asyncio
    async def test_no_policy(self, repository, tenant):
        assert await repository.get_active_routing_policy(tenant.id) is None
        assert await repository.get_routing_policy(tenant.id) is None

    @pytest.mark.asyncio
    async def test_saving_active_policy_deactivates_others(self, repository, tenant):
        first = await repository.save_routing_policy(RoutingPolicyDB(tenant_id=tenant.id))
        second = await repository.save_routing_policy(RoutingPolicyDB(
            tenant_id=tenant.id,
            provider=CallProvider.VAPI,
            call_delay_seconds=60,
        ))

        active = await repository.get_active_routing_policy(tenant.id)
        assert active.id == second.id
        assert active.provider == CallProvider.VAPI
        assert active.call_delay_seconds == 60

        current = await repository.get_routing_policy(tenant.id)
        assert current.id == second.id
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_inactive_policy_is_not_used(self, repository, tenant):
        await repository.save_routing_policy(RoutingPolicyDB(tenant_id=tenant.id, active=False))

        assert await repository.get_active_routing_policy(tenant.id) is None
        assert (await repository.get_routing_policy(tenant.id)).active is False

    @pytest.mark.asyncio
    async def test_update_existing_policy(self, repository, policy):
        changed = policy.model_copy(update={"instructions": "New script"})
        await repository.save_routing_policy(changed)

        loaded = await repository.get_active_routing_policy(policy.tenant_id)
        assert loaded.id == policy.id
        assert loaded.instructions == "New script"


class TestLeads:

    @pytest.mark.asyncio
    async def test_create_and_find_by_dedupe_key(self, repository, tenant):
        lead = await _create_lead(repository, tenant)

        found = await repository.find_lead_by_dedupe_key(tenant.id, lead.dedupe_key)
        assert found.id == lead.id
        assert found.raw_payload == {"phone": "+14155551234", "tags": ["roof"]}
        assert found.call_status == LeadStatus.NEW

    @pytest.mark.asyncio
    async def test_duplicate_dedupe_key_returns_existing(self, repository, tenant):
        lead = await _create_lead(repository, tenant)

        again, created = await repository.create_lead(LeadDB(
            tenant_id=tenant.id,
            phone="+14155551234",
            dedupe_key=lead.dedupe_key,
        ))
        assert created is False
        assert again.id == lead.id
        assert len(await repository.list_leads(tenant_id=tenant.id)) == 1

    @pytest.mark.asyncio
    async def test_dedupe_key_is_tenant_scoped(self, repository, tenant):
        other = await repository.create_tenant(TenantDB(name="Other"))
        await _create_lead(repository, tenant)
        await _create_lead(repository, other)

        assert len(await repository.list_leads()) == 2

    @pytest.mark.asyncio
    async def test_update_status_keeps_reason_unless_given(self, repository, tenant):
        lead = await _create_lead(repository, tenant)

        assert await repository.update_lead_status(lead.id, LeadStatus.SKIPPED, "Quiet hours")
        assert await repository.update_lead_status(lead.id, LeadStatus.QUEUED)

        loaded = await repository.get_lead(lead.id)
        assert loaded.call_status == LeadStatus.QUEUED
        assert loaded.skip_reason == "Quiet hours"

    @pytest.mark.asyncio
    async def test_update_unknown_lead(self, repository):
        assert await repository.update_lead_status("missing", LeadStatus.FAILED) is False


class TestCalls:

    @pytest.mark.asyncio
    async def test_provider_call_id_lookup(self, repository, tenant):
        lead = await _create_lead(repository, tenant)
        call = await repository.create_call(CallDB(
            tenant_id=tenant.id, lead_id=lead.id, provider=CallProvider.BLAND
        ))
        await repository.update_call(call.id, {
            "provider_call_id": "bland-1",
            "status": CallStatus.IN_PROGRESS,
        })

        found = await repository.get_call_by_provider_id("bland-1")
        assert found.id == call.id
        assert found.status == CallStatus.IN_PROGRESS
        assert await repository.get_call_by_provider_id("bland-2") is None

    @pytest.mark.asyncio
    async def test_conditional_update_stops_at_terminal(self, repository, tenant):
        lead = await _create_lead(repository, tenant)
        call = await repository.create_call(CallDB(
            tenant_id=tenant.id, lead_id=lead.id, provider=CallProvider.VAPI
        ))

        assert await repository.update_call_if_not_terminal(call.id, {
            "status": CallStatus.COMPLETED,
            "outcome": "booked",
            "provider_payload": {"status": "completed"},
        })
        assert not await repository.update_call_if_not_terminal(call.id, {
            "status": CallStatus.FAILED,
            "outcome": "late failure",
        })

        loaded = await repository.get_call(call.id)
        assert loaded.status == CallStatus.COMPLETED
        assert loaded.outcome == "booked"
        assert loaded.provider_payload == {"status": "completed"}


class TestAuditLogs:

    @pytest.mark.asyncio
    async def test_add_and_filter(self, repository, tenant):
        await repository.add_audit_log(AuditLogDB(
            tenant_id=tenant.id, event_type="LEAD_CREATED", message="Lead created", data={"a": 1}
        ))
        await repository.add_audit_log(AuditLogDB(
            tenant_id=None, event_type="WEBHOOK_ERROR", message="Tenant not found"
        ))

        all_logs = await repository.list_audit_logs()
        assert [log.event_type for log in all_logs] == ["WEBHOOK_ERROR", "LEAD_CREATED"]

        tenant_logs = await repository.list_audit_logs(tenant_id=tenant.id)
        assert len(tenant_logs) == 1
        assert tenant_logs[0].data == {"a": 1}

        errors = await repository.list_audit_logs(event_type="WEBHOOK_ERROR")
        assert len(errors) == 1
        assert errors[0].tenant_id is None


class TestConnection:

    @pytest.mark.asyncio
    async def test_ping(self, repository):
        assert await repository.ping() is True

    @pytest.mark.asyncio
    async def test_ping_after_close(self):
        from switchboard.db.adapters.sqlite import SQLiteAdapter
        from switchboard.db.repository import Repository

        repo = Repository(SQLiteAdapter(":memory:"))
        await repo.initialize()
        await repo.close()
        assert await repo.ping() is False


class TestPostgresSchema:

    @staticmethod
    def _column_type(table, column):
        from switchboard.db.models import POSTGRES_SCHEMA

        body = POSTGRES_SCHEMA.split(f"CREATE TABLE IF NOT EXISTS {table} (", 1)[1].split(");", 1)[0]
        for line in body.splitlines():
            parts = line.strip().split()
            if parts and parts[0] == column:
                return parts[1].rstrip(",")
        raise AssertionError(f"{table}.{column} not in schema")

    @pytest.mark.parametrize("column", [
        "contact_id", "first_name", "last_name", "email", "source", "dedupe_key",
    ])
    def test_lead_payload_columns_are_unbounded(self, column):
        assert self._column_type("leads", column) == "TEXT"

    def test_provider_call_id_is_unbounded(self):
        assert self._column_type("calls", "provider_call_id") == "TEXT"

    @pytest.mark.asyncio
    async def test_long_contact_id_round_trips(self, repository, tenant):
        contact_id = "c" * 2000
        lead, created = await repository.create_lead(LeadDB(
            tenant_id=tenant.id,
            contact_id=contact_id,
            phone="+14155551234",
            dedupe_key=f"contact:{contact_id}:window:1",
        ))

        assert created
        assert (await repository.get_lead(lead.id)).contact_id == contact_id
