"""End-to-end API scenarios over in-memory storage."""

import asyncio

import pytest

from statuspage.api.auth.models import UserRole

API = "/api/v1"


def register_and_login(client, email="user@example.com", password="password123") -> dict:
    resp = client.post(f"{API}/auth/register", json={"email": email, "password": password})
    assert resp.status_code == 201
    resp = client.post(f"{API}/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200
    return resp.json()["data"]


INCIDENT = {
    "title": "API latency",
    "type": "incident",
    "status": "investigating",
    "severity": "minor",
    "description": "Elevated response times",
    "service_ids": ["svc-api"],
}


# ==================== Auth ====================


class TestAuthRoutes:
    """Tests for registration, login, refresh and logout."""

    def test_register_login_me(self, client):
        data = register_and_login(client)

        assert data["tokens"]["access_token"]
        assert data["tokens"]["refresh_token"]
        assert data["tokens"]["token_type"] == "bearer"
        assert data["user"]["email"] == "user@example.com"
        assert "password_hash" not in data["user"]

        resp = client.get(
            f"{API}/me",
            headers={"Authorization": f"Bearer {data['tokens']['access_token']}"},
        )
        assert resp.status_code == 200
        me = resp.json()["data"]
        assert me["email"] == "user@example.com"
        assert me["role"] == "user"

    def test_duplicate_registration(self, client):
        body = {"email": "user@example.com", "password": "password123"}
        assert client.post(f"{API}/auth/register", json=body).status_code == 201

        resp = client.post(f"{API}/auth/register", json=body)
        assert resp.status_code == 409
        assert resp.json()["error"]["kind"] == "email_exists"

    def test_register_validation(self, client):
        resp = client.post(f"{API}/auth/register", json={"email": "nope", "password": "short"})
        assert resp.status_code == 400
        assert resp.json()["error"]["kind"] == "validation_error"

    def test_register_ignores_role(self, client):
        resp = client.post(
            f"{API}/auth/register",
            json={"email": "sneaky@example.com", "password": "password123", "role": "admin"},
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["role"] == "user"

    def test_wrong_password(self, client):
        register_and_login(client)
        resp = client.post(
            f"{API}/auth/login", json={"email": "user@example.com", "password": "wrong-pass"}
        )
        assert resp.status_code == 401
        assert resp.json()["error"]["kind"] == "invalid_credentials"

    def test_refresh_rotation(self, client):
        tokens = register_and_login(client)["tokens"]

        resp = client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert resp.status_code == 200
        assert resp.json()["data"]["refresh_token"] != tokens["refresh_token"]

        replay = client.post(
            f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert replay.status_code == 401
        assert replay.json()["error"]["kind"] == "invalid_token"

    def test_logout_always_succeeds(self, client):
        tokens = register_and_login(client)["tokens"]
        body = {"refresh_token": tokens["refresh_token"]}

        assert client.post(f"{API}/auth/logout", json=body).status_code == 204
        assert client.post(f"{API}/auth/logout", json=body).status_code == 204
        assert client.post(f"{API}/auth/refresh", json=body).status_code == 401


# ==================== Authorization ====================


class TestAuthorization:
    """Tests for role gating."""

    def test_me_requires_token(self, client):
        resp = client.get(f"{API}/me")
        assert resp.status_code == 401
        assert resp.json()["error"]["kind"] == "unauthorized"

    def test_malformed_token(self, client):
        resp = client.get(f"{API}/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_non_bearer_scheme(self, client):
        resp = client.get(f"{API}/me", headers={"Authorization": "Basic dXNlcjpwYXNz"})
        assert resp.status_code == 401

    def test_user_cannot_manage_events(self, client, auth_headers):
        resp = client.get(f"{API}/events", headers=auth_headers(UserRole.USER))
        assert resp.status_code == 403
        assert resp.json()["error"]["kind"] == "forbidden"

    def test_operator_cannot_manage_templates(self, client, auth_headers):
        resp = client.get(f"{API}/templates", headers=auth_headers(UserRole.OPERATOR))
        assert resp.status_code == 403

    def test_operator_cannot_delete_events(self, client, auth_headers):
        headers = auth_headers(UserRole.OPERATOR)
        event = client.post(f"{API}/events", json=INCIDENT, headers=headers).json()["data"]

        resp = client.delete(f"{API}/events/{event['id']}", headers=headers)
        assert resp.status_code == 403

    def test_admin_inherits_operator(self, client, auth_headers):
        resp = client.get(f"{API}/events", headers=auth_headers(UserRole.ADMIN))
        assert resp.status_code == 200

    def test_status_page_is_public(self, client):
        assert client.get(f"{API}/status").status_code == 200
        assert client.get(f"{API}/status/history").status_code == 200


# ==================== Events ====================


class TestEventRoutes:
    """Tests for event management."""

    def test_create_incident(self, client, auth_headers):
        resp = client.post(f"{API}/events", json=INCIDENT, headers=auth_headers(UserRole.OPERATOR))

        assert resp.status_code == 201
        event = resp.json()["data"]
        assert event["severity"] == "minor"
        assert event["status"] == "investigating"
        assert event["service_ids"] == ["svc-api"]
        assert event["resolved_at"] is None

    def test_incident_with_scheduled_status(self, client, auth_headers):
        resp = client.post(
            f"{API}/events",
            json={**INCIDENT, "status": "scheduled"},
            headers=auth_headers(UserRole.OPERATOR),
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["kind"] == "invalid_status"

    def test_incident_without_severity(self, client, auth_headers):
        body = {k: v for k, v in INCIDENT.items() if k != "severity"}
        resp = client.post(f"{API}/events", json=body, headers=auth_headers(UserRole.OPERATOR))
        assert resp.status_code == 400
        assert resp.json()["error"]["kind"] == "invalid_severity"

    def test_unknown_type(self, client, auth_headers):
        resp = client.post(
            f"{API}/events",
            json={**INCIDENT, "type": "outage"},
            headers=auth_headers(UserRole.OPERATOR),
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["kind"] == "invalid_event_type"

    def test_updates_and_resolution(self, client, auth_headers):
        headers = auth_headers(UserRole.OPERATOR)
        event = client.post(f"{API}/events", json=INCIDENT, headers=headers).json()["data"]
        url = f"{API}/events/{event['id']}"

        resp = client.post(
            f"{url}/updates", json={"status": "resolved", "message": "Fixed"}, headers=headers
        )
        assert resp.status_code == 201
        resolved_at = client.get(url, headers=headers).json()["data"]["resolved_at"]
        assert resolved_at is not None

        client.post(
            f"{url}/updates", json={"status": "resolved", "message": "Confirmed"}, headers=headers
        )
        assert client.get(url, headers=headers).json()["data"]["resolved_at"] == resolved_at

        history = client.get(f"{url}/updates", headers=headers).json()["data"]
        assert [u["message"] for u in history] == ["Confirmed", "Fixed"]

    def test_update_with_wrong_status(self, client, auth_headers):
        headers = auth_headers(UserRole.OPERATOR)
        event = client.post(f"{API}/events", json=INCIDENT, headers=headers).json()["data"]

        resp = client.post(
            f"{API}/events/{event['id']}/updates",
            json={"status": "in_progress", "message": "Wrong"},
            headers=headers,
        )
        assert resp.status_code == 400

    def test_missing_event(self, client, auth_headers):
        resp = client.get(f"{API}/events/missing", headers=auth_headers(UserRole.OPERATOR))
        assert resp.status_code == 404
        assert resp.json()["error"]["kind"] == "event_not_found"

    def test_list_filters(self, client, auth_headers):
        headers = auth_headers(UserRole.OPERATOR)
        client.post(f"{API}/events", json=INCIDENT, headers=headers)
        client.post(
            f"{API}/events",
            json={"title": "Upgrade", "type": "maintenance", "status": "scheduled"},
            headers=headers,
        )

        resp = client.get(f"{API}/events", params={"type": "maintenance"}, headers=headers)
        assert [e["type"] for e in resp.json()["data"]] == ["maintenance"]

        resp = client.get(f"{API}/events", params={"status": "bogus"}, headers=headers)
        assert resp.status_code == 400

    def test_admin_delete(self, client, auth_headers):
        event = client.post(
            f"{API}/events", json=INCIDENT, headers=auth_headers(UserRole.OPERATOR)
        ).json()["data"]
        admin = auth_headers(UserRole.ADMIN)

        assert client.delete(f"{API}/events/{event['id']}", headers=admin).status_code == 204
        assert client.get(f"{API}/events/{event['id']}", headers=admin).status_code == 404

    def test_status_page_lists_events(self, client, auth_headers):
        client.post(f"{API}/events", json=INCIDENT, headers=auth_headers(UserRole.OPERATOR))

        for path in ("/status", "/status/history"):
            events = client.get(f"{API}{path}").json()["data"]["events"]
            assert [e["title"] for e in events] == ["API latency"]


class TestNotifications:
    """Tests for notification scheduling."""

    def test_create_with_notify(self, client, auth_headers, notifications):
        client.post(
            f"{API}/events",
            json={**INCIDENT, "notify_subscribers": True},
            headers=auth_headers(UserRole.OPERATOR),
        )
        assert notifications == [
            (["svc-api"], "[incident] API latency", "Elevated response times")
        ]

    def test_create_without_notify(self, client, auth_headers, notifications):
        client.post(f"{API}/events", json=INCIDENT, headers=auth_headers(UserRole.OPERATOR))
        assert notifications == []

    def test_update_with_notify(self, client, auth_headers, notifications):
        headers = auth_headers(UserRole.OPERATOR)
        event = client.post(f"{API}/events", json=INCIDENT, headers=headers).json()["data"]

        client.post(
            f"{API}/events/{event['id']}/updates",
            json={
                "status": "identified",
                "message": "Root cause found",
                "notify_subscribers": True,
            },
            headers=headers,
        )
        assert notifications == [
            (["svc-api"], "[incident] API latency: identified", "Root cause found")
        ]

    def test_slow_dispatch_outlives_request_timeout(self, make_client, auth_headers, monkeypatch):
        delivered: list[str] = []

        async def slow_notify(service_ids: list[str], subject: str, body: str) -> int:
            await asyncio.sleep(0.5)
            delivered.append(subject)
            return len(service_ids)

        monkeypatch.setattr("statuspage.api.events.router.notify_subscribers", slow_notify)
        client = make_client(REQUEST_TIMEOUT_SECONDS=0.2)

        resp = client.post(
            f"{API}/events",
            json={**INCIDENT, "notify_subscribers": True},
            headers=auth_headers(UserRole.OPERATOR),
        )

        assert resp.status_code == 201
        assert delivered == ["[incident] API latency"]


# ==================== Subscriptions ====================


class TestSubscriptionRoutes:
    """Tests for /me/subscriptions."""

    def test_requires_token(self, client):
        assert client.get(f"{API}/me/subscriptions").status_code == 401

    def test_created_on_first_access(self, client, auth_headers):
        resp = client.get(f"{API}/me/subscriptions", headers=auth_headers(UserRole.USER))

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["user_id"] == "user-1"
        assert data["service_ids"] == []

    def test_replace_services(self, client, auth_headers):
        headers = auth_headers(UserRole.USER)
        url = f"{API}/me/subscriptions"

        resp = client.post(url, json={"service_ids": ["svc-a", "svc-b", "svc-a"]}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["service_ids"] == ["svc-a", "svc-b"]

        client.post(url, json={"service_ids": ["svc-c"]}, headers=headers)
        assert client.get(url, headers=headers).json()["data"]["service_ids"] == ["svc-c"]

    def test_delete(self, client, auth_headers):
        headers = auth_headers(UserRole.USER)
        url = f"{API}/me/subscriptions"

        assert client.delete(url, headers=headers).status_code == 404
        client.post(url, json={"service_ids": ["svc-a"]}, headers=headers)
        assert client.delete(url, headers=headers).status_code == 204
        resp = client.delete(url, headers=headers)
        assert resp.json()["error"]["kind"] == "subscription_not_found"


# ==================== Templates ====================


class TestTemplateRoutes:
    """Tests for template management."""

    TEMPLATE = {
        "slug": "api-degraded",
        "type": "incident",
        "title_template": "{service_name} degraded",
        "body_template": "Investigating since {started_at}",
    }

    def test_crud_and_preview(self, client, auth_headers):
        headers = auth_headers(UserRole.ADMIN)

        created = client.post(f"{API}/templates", json=self.TEMPLATE, headers=headers)
        assert created.status_code == 201
        template_id = created.json()["data"]["id"]

        assert client.get(f"{API}/templates/api-degraded", headers=headers).status_code == 200
        assert len(client.get(f"{API}/templates", headers=headers).json()["data"]) == 1

        preview = client.post(
            f"{API}/templates/api-degraded/preview",
            json={"service_name": "API", "started_at": "2024-03-01T09:30:00Z"},
            headers=headers,
        )
        assert preview.status_code == 200
        assert preview.json()["data"] == {
            "title": "API degraded",
            "body": "Investigating since 2024-03-01 09:30:00 UTC",
        }

        updated = client.put(
            f"{API}/templates/{template_id}",
            json={**self.TEMPLATE, "title_template": "{service_name} down"},
            headers=headers,
        )
        assert updated.json()["data"]["title_template"] == "{service_name} down"

        assert client.delete(f"{API}/templates/{template_id}", headers=headers).status_code == 204
        assert client.get(f"{API}/templates/api-degraded", headers=headers).status_code == 404

    def test_duplicate_slug(self, client, auth_headers):
        headers = auth_headers(UserRole.ADMIN)
        client.post(f"{API}/templates", json=self.TEMPLATE, headers=headers)

        resp = client.post(f"{API}/templates", json=self.TEMPLATE, headers=headers)
        assert resp.status_code == 409

    def test_bad_syntax(self, client, auth_headers):
        resp = client.post(
            f"{API}/templates",
            json={**self.TEMPLATE, "body_template": "since {started_at"},
            headers=auth_headers(UserRole.ADMIN),
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["kind"] == "invalid_template"

    def test_render_error(self, client, auth_headers):
        headers = auth_headers(UserRole.ADMIN)
        client.post(
            f"{API}/templates",
            json={**self.TEMPLATE, "body_template": "Ticket {ticket}"},
            headers=headers,
        )
        resp = client.post(f"{API}/templates/api-degraded/preview", json={}, headers=headers)
        assert resp.status_code == 422


# ==================== Ops ====================


class TestOpsRoutes:
    def test_openapi_documents_error_envelope(self, client):
        schema = client.get("/openapi.json").json()

        assert "ErrorResponse" in schema["components"]["schemas"]
        assert "4XX" in schema["paths"]["/api/v1/events"]["post"]["responses"]

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_version(self, client):
        from statuspage import __version__

        assert client.get("/version").json() == {"version": __version__}

    def test_ready_without_database(self, client, monkeypatch):
        async def down() -> bool:
            return False

        monkeypatch.setattr("statuspage.api.main.ping", down)
        resp = client.get("/ready")
        assert resp.status_code == 503

    def test_unknown_route(self, client):
        resp = client.get(f"{API}/nope")
        assert resp.status_code == 404
        assert resp.json()["error"]["kind"] == "not_found"
