"""
Tests for API endpoints
"""

import pytest
from unittest.mock import patch, AsyncMock, MagicMock

from .conftest import ADMIN_HEADERS


def _create_tenant(client, **overrides):
    body = {"name": "Acme Roofing", "timezone": "America/New_York"}
    body.update(overrides)
    response = client.post("/api/v1/tenants", json=body, headers=ADMIN_HEADERS)
    assert response.status_code == 201
    return response.json()


def _set_routing(client, tenant_id, **overrides):
    body = {
        "instructions": "Qualify the roofing lead and offer an inspection.",
        "provider": "bland",
        "call_delay_seconds": 0,
    }
    body.update(overrides)
    response = client.put(f"/api/v1/tenants/{tenant_id}/routing", json=body, headers=ADMIN_HEADERS)
    assert response.status_code == 200
    return response.json()


class TestHealthEndpoints:
    """Tests for health check endpoints"""

    def test_health_check(self, test_client):
        response = test_client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"
        assert "timestamp" in data

    def test_health_check_database_down(self, test_client):
        repo = MagicMock()
        repo.ping = AsyncMock(return_value=False)

        with patch("switchboard.api.routes.health.get_repository", return_value=repo):
            response = test_client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    def test_root_endpoint(self, test_client):
        response = test_client.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "Lead Switchboard"


class TestAdminAuth:
    """Tests for the admin API key"""

    def test_missing_key(self, test_client):
        response = test_client.get("/api/v1/tenants")
        assert response.status_code == 401
        assert response.json()["error"] == "AUTH_FAILED"

    def test_wrong_key(self, test_client):
        response = test_client.get("/api/v1/tenants", headers={"X-API-Key": "nope"})
        assert response.status_code == 401

    def test_bearer_token(self, test_client):
        response = test_client.get("/api/v1/tenants", headers={"Authorization": "Bearer test-admin-key"})
        assert response.status_code == 200

    def test_disabled_without_configured_key(self, test_client, monkeypatch):
        from switchboard.api.middleware import auth

        monkeypatch.setattr(auth.settings, "admin_api_key", None)
        response = test_client.get("/api/v1/tenants", headers=ADMIN_HEADERS)

        assert response.status_code == 401
        assert response.json()["message"] == "Admin API is disabled"


class TestAdminEndpoints:
    """Tests for tenant, routing and listing endpoints"""

    def test_tenant_crud(self, test_client):
        tenant = _create_tenant(test_client, quiet_hours_start="21:00", quiet_hours_end="07:30")
        assert tenant["status"] == "ACTIVE"
        assert tenant["quiet_hours_start"] == "21:00"

        response = test_client.get(f"/api/v1/tenants/{tenant['id']}", headers=ADMIN_HEADERS)
        assert response.status_code == 200
        assert response.json()["name"] == "Acme Roofing"

        response = test_client.patch(
            f"/api/v1/tenants/{tenant['id']}",
            json={"status": "INACTIVE", "timezone": "America/Denver"},
            headers=ADMIN_HEADERS,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "INACTIVE"
        assert response.json()["timezone"] == "America/Denver"
        assert response.json()["quiet_hours_start"] == "21:00"

        response = test_client.get("/api/v1/tenants", headers=ADMIN_HEADERS)
        assert [t["id"] for t in response.json()] == [tenant["id"]]

    def test_unknown_tenant(self, test_client):
        response = test_client.get("/api/v1/tenants/missing", headers=ADMIN_HEADERS)
        assert response.status_code == 404
        assert response.json()["error"] == "TENANT_NOT_FOUND"

    @pytest.mark.parametrize("body", [
        {"name": "Acme", "timezone": "Mars/Olympus"},
        {"name": "Acme", "quiet_hours_start": "8pm"},
        {"name": ""},
        {"name": "A" * 256},
    ])
    def test_tenant_validation(self, test_client, body):
        response = test_client.post("/api/v1/tenants", json=body, headers=ADMIN_HEADERS)
        assert response.status_code == 422

    def test_unknown_lead(self, test_client):
        response = test_client.get("/api/v1/leads/missing", headers=ADMIN_HEADERS)
        assert response.status_code == 404
        assert response.json()["error"] == "LEAD_NOT_FOUND"

    def test_routing_policy(self, test_client):
        tenant = _create_tenant(test_client)

        response = test_client.get(f"/api/v1/tenants/{tenant['id']}/routing", headers=ADMIN_HEADERS)
        assert response.status_code == 404

        created = _set_routing(test_client, tenant["id"], transfer_number="+14155550000")
        assert created["active"] is True
        assert created["provider"] == "bland"

        updated = _set_routing(test_client, tenant["id"], provider="vapi", call_delay_seconds=30)
        assert updated["id"] == created["id"]
        assert updated["provider"] == "vapi"
        assert updated["call_delay_seconds"] == 30

        response = test_client.get(f"/api/v1/tenants/{tenant['id']}/routing", headers=ADMIN_HEADERS)
        assert response.json()["provider"] == "vapi"

    def test_routing_policy_rejects_unknown_provider(self, test_client):
        tenant = _create_tenant(test_client)
        response = test_client.put(
            f"/api/v1/tenants/{tenant['id']}/routing",
            json={"provider": "twilio"},
            headers=ADMIN_HEADERS,
        )
        assert response.status_code == 422

    def test_audit_logs(self, test_client):
        tenant = _create_tenant(test_client)
        _set_routing(test_client, tenant["id"])

        response = test_client.get(
            "/api/v1/audit-logs", params={"tenant_id": tenant["id"]}, headers=ADMIN_HEADERS
        )
        events = [entry["event_type"] for entry in response.json()]
        assert events == ["ROUTING_POLICY_UPDATED", "TENANT_CREATED"]


class TestLeadWebhook:
    """Tests for POST /webhook/{source}/{tenant_id}"""

    def test_lead_to_completed_call(self, test_client, mock_http, sample_ghl_payload):
        tenant = _create_tenant(test_client)
        _set_routing(test_client, tenant["id"])

        response = test_client.post(f"/webhook/gohighlevel/{tenant['id']}", json=sample_ghl_payload)
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Lead received and call initiated"
        assert body["callId"] == "bland-call-1"
        assert body["immediate"] is True
        assert "leadId" in body
        assert "error" not in body

        sent = mock_http.post.call_args.kwargs["json"]
        assert sent["webhook"] == "https://switchboard.test/webhook/bland"

        response = test_client.post("/webhook/bland", json={
            "call_id": "bland-call-1",
            "status": "completed",
            "call_length": 4.2,
        })
        assert response.status_code == 200
        assert response.json() == {"status": "received"}

        leads = test_client.get("/api/v1/leads", headers=ADMIN_HEADERS).json()
        assert leads[0]["id"] == body["leadId"]
        assert leads[0]["call_status"] == "COMPLETED"

        calls = test_client.get("/api/v1/calls", headers=ADMIN_HEADERS).json()
        assert calls[0]["status"] == "COMPLETED"
        assert calls[0]["outcome"] == "call_length=4.2"

        response = test_client.post("/webhook/bland", json={"call_id": "bland-call-1", "status": "failed"})
        assert response.json() == {"status": "received", "detail": "already final"}

    def test_duplicate_webhook(self, test_client, mock_http, sample_ghl_payload):
        tenant = _create_tenant(test_client)
        _set_routing(test_client, tenant["id"])

        first = test_client.post(f"/webhook/gohighlevel/{tenant['id']}", json=sample_ghl_payload).json()
        second = test_client.post(f"/webhook/gohighlevel/{tenant['id']}", json=sample_ghl_payload).json()

        assert second == {"message": "Duplicate ignored", "leadId": first["leadId"]}
        assert mock_http.post.await_count == 1

    def test_scheduled_call(self, test_client, mock_http, sample_ghl_payload):
        tenant = _create_tenant(test_client)
        _set_routing(test_client, tenant["id"], call_delay_seconds=600)

        body = test_client.post(f"/webhook/gohighlevel/{tenant['id']}", json=sample_ghl_payload).json()

        assert body["message"] == "Lead received and call scheduled"
        assert body["scheduledInSeconds"] == 600
        mock_http.post.assert_not_called()

    def test_inactive_tenant(self, test_client, mock_http, sample_ghl_payload):
        tenant = _create_tenant(test_client, status="INACTIVE")
        _set_routing(test_client, tenant["id"])

        response = test_client.post(f"/webhook/gohighlevel/{tenant['id']}", json=sample_ghl_payload)

        assert response.status_code == 200
        assert response.json() == {"message": "Tenant inactive - skipped"}

    def test_unknown_tenant(self, test_client, sample_ghl_payload):
        response = test_client.post("/webhook/gohighlevel/missing", json=sample_ghl_payload)
        assert response.status_code == 404
        assert response.json()["error"] == "TENANT_NOT_FOUND"

    def test_missing_phone(self, test_client):
        tenant = _create_tenant(test_client)
        _set_routing(test_client, tenant["id"])

        response = test_client.post(f"/webhook/gohighlevel/{tenant['id']}", json={"contactId": "c-1"})
        assert response.status_code == 400
        assert response.json()["error"] == "PHONE_REQUIRED"

    def test_invalid_json_body(self, test_client):
        tenant = _create_tenant(test_client)
        _set_routing(test_client, tenant["id"])

        response = test_client.post(
            f"/webhook/gohighlevel/{tenant['id']}",
            content=b"phone=4155551234",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        assert response.status_code == 400

    def test_invalid_phone(self, test_client):
        tenant = _create_tenant(test_client)
        _set_routing(test_client, tenant["id"])

        response = test_client.post(f"/webhook/gohighlevel/{tenant['id']}", json={"phone": "555"})
        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_PHONE_NUMBER"

    def test_rate_limit(self, test_client, monkeypatch):
        from switchboard.api.middleware import rate_limit

        monkeypatch.setattr(rate_limit, "_rate_limiter", rate_limit.RateLimiter(requests_per_minute=2))

        statuses = [
            test_client.post("/webhook/gohighlevel/missing", json={}).status_code
            for _ in range(3)
        ]

        assert statuses == [404, 404, 429]


class TestProviderCallbacks:
    """Tests for POST /webhook/{provider}"""

    def test_probe(self, test_client):
        response = test_client.get("/webhook/vapi")
        assert response.status_code == 200
        assert response.json() == {"ok": True, "route": "/webhook/vapi"}

        assert test_client.head("/webhook/bland").status_code == 200

    def test_unknown_provider_path(self, test_client):
        assert test_client.get("/webhook/twilio").status_code == 422
        assert test_client.post("/webhook/twilio", json={}).status_code == 422

    def test_unknown_call_is_acknowledged(self, test_client):
        response = test_client.post("/webhook/vapi", json={
            "message": {"type": "end-of-call-report", "call": {"id": "nope"}}
        })
        assert response.status_code == 200
        assert response.json() == {"status": "received", "detail": "unknown call"}

    def test_non_json_body_is_acknowledged(self, test_client):
        response = test_client.post(
            "/webhook/bland", content=b"not json", headers={"Content-Type": "text/plain"}
        )
        assert response.status_code == 200
        assert response.json()["detail"] == "malformed"

    def test_callback_secret(self, test_client, monkeypatch):
        from switchboard.api.middleware import webhook_security

        monkeypatch.setattr(webhook_security.settings, "callback_secret", "s3cret")

        response = test_client.post("/webhook/bland", json={"call_id": "x"})
        assert response.status_code == 403

        response = test_client.post(
            "/webhook/bland", json={"call_id": "x"}, headers={"X-Webhook-Secret": "wrong"}
        )
        assert response.status_code == 403

        response = test_client.post(
            "/webhook/bland", json={"call_id": "x"}, headers={"X-Webhook-Secret": "s3cret"}
        )
        assert response.status_code == 200


class TestRateLimiter:
    """Tests for the per-tenant token buckets"""

    def test_bucket_map_is_capped(self):
        from switchboard.api.middleware import rate_limit

        limiter = rate_limit.RateLimiter(requests_per_minute=60, max_buckets=3)
        with patch.object(rate_limit, "time") as mock_time:
            mock_time.time.return_value = 1000.0
            for i in range(10):
                assert limiter.check_request_limit(f"random-{i}")

        assert len(limiter.request_buckets) == 3
        assert "random-9" in limiter.request_buckets

    def test_idle_buckets_are_evicted_first(self):
        from switchboard.api.middleware import rate_limit

        limiter = rate_limit.RateLimiter(requests_per_minute=60, max_buckets=2)
        with patch.object(rate_limit, "time") as mock_time:
            mock_time.time.return_value = 1000.0
            while limiter.check_request_limit("busy"):
                pass

            mock_time.time.return_value = 1030.0
            assert limiter.check_request_limit("quiet")

            mock_time.time.return_value = 1040.0
            assert limiter.check_request_limit("new")

        assert set(limiter.request_buckets) == {"busy", "new"}
