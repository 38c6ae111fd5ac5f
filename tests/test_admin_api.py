"""Tests for the token management REST API"""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from tokengate.core.models import utc_now
from tokengate.main import create_app

from .conftest import ADMIN_KEY


class TestAdminAuthentication:
    """Admin endpoints require the configured key"""

    def test_missing_credentials(self, client):
        response = client.get("/api/tokens")

        assert response.status_code == 401
        assert response.json()["code"] == "TKG-401"

    def test_wrong_key(self, client):
        response = client.get("/api/tokens", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401

    def test_disabled_when_no_key_configured(self, test_settings, memory_store):
        settings = test_settings.model_copy(update={"admin_api_key": ""})
        with TestClient(create_app(settings, store=memory_store)) as unconfigured:
            response = unconfigured.get(
                "/api/tokens", headers={"Authorization": f"Bearer {ADMIN_KEY}"}
            )

        assert response.status_code == 503
        assert response.json()["code"] == "TKG-503"

    def test_correlation_id_is_echoed(self, client):
        response = client.get("/api/tokens", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"
        assert response.json()["correlation_id"] == "abc-123"

    def test_malformed_correlation_id_is_replaced(self, client):
        response = client.get("/api/tokens", headers={"X-Correlation-ID": "see /t/abc please"})

        correlation_id = response.headers["X-Correlation-ID"]
        assert correlation_id != "see /t/abc please"
        assert len(correlation_id) == 32
        assert response.json()["correlation_id"] == correlation_id


class TestCreateToken:
    """POST /api/tokens"""

    def test_create_with_defaults(self, client, admin_headers):
        before = utc_now()
        response = client.post(
            "/api/tokens",
            json={
                "client_name": "Acme Corp",
                "client_email": "Ops@Acme.Test",
                "allowed_pages": ["report", "dash"],
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        token = data["token"]
        assert len(token["token"]) == 64
        assert token["token"].isalnum()
        assert data["access_url"] == f"/t/{token['token']}"
        assert token["client_email"] == "ops@acme.test"
        assert token["is_active"] is True
        assert token["access_count"] == 0
        assert token["allowed_domains"] == []
        expires_at = datetime.fromisoformat(token["expires_at"].replace("Z", "+00:00"))
        assert timedelta(days=29, hours=23) < expires_at - before <= timedelta(days=30, minutes=1)

    def test_expiration_days(self, client, admin_headers):
        response = client.post(
            "/api/tokens",
            json={"client_name": "Acme", "allowed_pages": ["*"], "expiration_days": 7},
            headers=admin_headers,
        )

        expires_at = datetime.fromisoformat(
            response.json()["data"]["token"]["expires_at"].replace("Z", "+00:00")
        )
        assert expires_at - utc_now() <= timedelta(days=7)

    def test_explicit_expiry_wins(self, client, admin_headers):
        response = client.post(
            "/api/tokens",
            json={
                "client_name": "Acme",
                "allowed_pages": ["*"],
                "expiration_days": 7,
                "expires_at": "2031-06-01T12:00:00Z",
            },
            headers=admin_headers,
        )

        assert response.json()["data"]["token"]["expires_at"].startswith("2031-06-01T12:00:00")

    def test_tokens_are_unique(self, issue_token):
        values = {issue_token()["token"] for _ in range(5)}

        assert len(values) == 5

    @pytest.mark.parametrize("payload", [
        {"allowed_pages": ["report"]},
        {"client_name": "", "allowed_pages": ["report"]},
        {"client_name": "Acme", "allowed_pages": []},
        {"client_name": "Acme", "allowed_pages": ["  "]},
        {"client_name": "Acme", "allowed_pages": ["report"], "expiration_days": 0},
    ])
    def test_invalid_payload(self, client, admin_headers, payload):
        response = client.post("/api/tokens", json=payload, headers=admin_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "TKG-400"
        assert body["details"]["errors"]


class TestListAndDetail:
    """GET /api/tokens and GET /api/tokens/{id}"""

    def test_list_paginates_without_logs(self, client, admin_headers, issue_token):
        for i in range(3):
            issue_token(client_name=f"client-{i}")

        response = client.get("/api/tokens?page=1&limit=2", headers=admin_headers)

        data = response.json()["data"]
        assert len(data["tokens"]) == 2
        assert "access_log" not in data["tokens"][0]
        assert data["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}

    def test_list_filters_by_status(self, client, admin_headers, issue_token):
        issue_token(client_name="current")
        issue_token(client_name="old", expires_at=(utc_now() - timedelta(days=1)).isoformat())

        expired = client.get("/api/tokens?status=expired", headers=admin_headers).json()["data"]
        active = client.get("/api/tokens?status=active", headers=admin_headers).json()["data"]

        assert [t["client_name"] for t in expired["tokens"]] == ["old"]
        assert [t["client_name"] for t in active["tokens"]] == ["current"]

    def test_unknown_status_filter(self, client, admin_headers):
        response = client.get("/api/tokens?status=bogus", headers=admin_headers)

        assert response.status_code == 400

    def test_detail_includes_access_log(self, client, admin_headers, issue_token):
        token = issue_token()

        response = client.get(f"/api/tokens/{token['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["access_log"] == []

    def test_detail_not_found(self, client, admin_headers):
        response = client.get(f"/api/tokens/{uuid4()}", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "Token not found"


class TestUpdateAndActions:
    """PUT, PATCH and DELETE on a token"""

    def test_partial_update(self, client, admin_headers, issue_token):
        token = issue_token(notes="original")

        response = client.put(
            f"/api/tokens/{token['id']}",
            json={"allowed_pages": ["report", "dash"], "allowed_domains": ["example.com"]},
            headers=admin_headers,
        )

        data = response.json()["data"]
        assert data["allowed_pages"] == ["report", "dash"]
        assert data["allowed_domains"] == ["example.com"]
        assert data["notes"] == "original"
        assert data["token"] == token["token"]

    def test_update_missing_token(self, client, admin_headers):
        response = client.put(
            f"/api/tokens/{uuid4()}", json={"notes": "x"}, headers=admin_headers
        )

        assert response.status_code == 404

    def test_deactivate_and_activate(self, client, admin_headers, issue_token):
        token = issue_token()
        url = f"/api/tokens/{token['id']}"

        off = client.patch(url, json={"action": "deactivate"}, headers=admin_headers)
        on = client.patch(url, json={"action": "activate"}, headers=admin_headers)

        assert off.json()["data"]["is_active"] is False
        assert on.json()["data"]["is_active"] is True

    def test_extend_adds_to_current_expiry(self, client, admin_headers, issue_token):
        token = issue_token(expires_at="2031-01-01T00:00:00Z")
        url = f"/api/tokens/{token['id']}"

        default = client.patch(url, json={"action": "extend"}, headers=admin_headers)
        custom = client.patch(url, json={"action": "extend", "days": 5}, headers=admin_headers)

        assert default.json()["data"]["expires_at"].startswith("2031-01-31")
        assert custom.json()["data"]["expires_at"].startswith("2031-02-05")

    def test_unknown_action(self, client, admin_headers, issue_token):
        token = issue_token()

        response = client.patch(
            f"/api/tokens/{token['id']}", json={"action": "explode"}, headers=admin_headers
        )

        assert response.status_code == 400

    def test_action_on_missing_token(self, client, admin_headers):
        response = client.patch(
            f"/api/tokens/{uuid4()}", json={"action": "activate"}, headers=admin_headers
        )

        assert response.status_code == 404

    def test_delete(self, client, admin_headers, issue_token):
        token = issue_token()
        url = f"/api/tokens/{token['id']}"

        first = client.delete(url, headers=admin_headers)
        second = client.delete(url, headers=admin_headers)

        assert first.status_code == 200
        assert first.json()["message"] == "Token deleted successfully"
        assert second.status_code == 404
        visit = client.get(f"/t/{token['token']}/report")
        assert visit.headers["location"] == "/access-restricted?reason=TOKEN_NOT_FOUND"


class TestDashboard:
    """Statistics and project discovery"""

    def test_stats(self, client, admin_headers, issue_token):
        used = issue_token(client_name="used")
        issue_token(client_name="soon", expiration_days=3)
        issue_token(client_name="old", expires_at=(utc_now() - timedelta(days=2)).isoformat())
        off = issue_token(client_name="off")
        client.patch(f"/api/tokens/{off['id']}", json={"action": "deactivate"}, headers=admin_headers)
        client.get(f"/t/{used['token']}/report")
        client.get(f"/t/{used['token']}/report")

        response = client.get("/api/stats", headers=admin_headers)

        data = response.json()["data"]
        assert data["stats"] == {
            "total": 4,
            "active": 2,
            "expired": 1,
            "inactive": 1,
            "expiring_soon": 1,
            "total_accesses": 2,
        }
        assert len(data["recent_tokens"]) == 4
        assert [t["client_name"] for t in data["recent_accesses"]] == ["used"]
        assert data["recent_accesses"][0]["access_count"] == 2

    def test_stats_requires_admin(self, client):
        assert client.get("/api/stats").status_code == 401

    def test_projects(self, client, admin_headers):
        response = client.get("/api/projects", headers=admin_headers)

        projects = response.json()["data"]
        assert [p["id"] for p in projects] == ["dash", "report"]
        assert projects[0] == {
            "id": "dash",
            "name": "Dash",
            "description": "Project Dash",
            "html_path": "dash/index.html",
        }
