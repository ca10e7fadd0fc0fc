"""Integration tests for login, the current-admin endpoint and admin management."""

import pytest
from httpx import AsyncClient

from backoffice.models.admin import AdminRole

TEST_PASSWORD = "motdepasse-test"


@pytest.mark.integration
class TestLogin:
    """POST /api/auth/login and token resolution."""

    async def test_login_returns_token_and_cookie(self, client: AsyncClient, admin_headers) -> None:
        await admin_headers(AdminRole.EVENTS_MANAGER)

        response = await client.post(
            "/api/auth/login",
            json={"email": "Events-Manager@example.org", "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["email"] == "events-manager@example.org"
        assert body["user"]["role"] == "events_manager"
        assert "password_hash" not in body["user"]
        set_cookie = response.headers["set-cookie"]
        assert f"auth_token={body['access_token']}" in set_cookie
        assert "HttpOnly" in set_cookie

    async def test_wrong_password(self, client: AsyncClient, super_admin) -> None:
        response = await client.post(
            "/api/auth/login",
            json={"email": "super-admin@example.org", "password": "pas-le-bon"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Email ou mot de passe incorrect"

    async def test_unknown_email(self, client: AsyncClient, db_manager) -> None:
        response = await client.post(
            "/api/auth/login",
            json={"email": "nobody@example.org", "password": TEST_PASSWORD},
        )

        assert response.status_code == 401

    async def test_me_lists_permissions(self, client: AsyncClient, admin_headers) -> None:
        headers = await admin_headers(AdminRole.IDEAS_READER)

        response = await client.get("/api/auth/me", headers=headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["email"] == "ideas-reader@example.org"
        assert data["permissions"] == ["admin.view", "ideas.read"]

    async def test_cookie_token_is_accepted(self, client: AsyncClient, super_admin) -> None:
        login = await client.post(
            "/api/auth/login",
            json={"email": "super-admin@example.org", "password": TEST_PASSWORD},
        )
        client.cookies.set("auth_token", login.json()["access_token"])

        response = await client.get("/api/auth/me")

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "super_admin"

    async def test_missing_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "Authentification requise"

    async def test_bearer_scheme_is_documented(self, client: AsyncClient) -> None:
        response = await client.get("/openapi.json")

        schema = response.json()
        assert schema["components"]["securitySchemes"]["HTTPBearer"] == {"type": "http", "scheme": "bearer"}
        assert {"HTTPBearer": []} in schema["paths"]["/api/auth/me"]["get"]["security"]

    async def test_malformed_header(self, client: AsyncClient) -> None:
        response = await client.get("/api/auth/me", headers={"Authorization": "Token abc"})

        assert response.status_code == 401

    async def test_garbage_token(self, client: AsyncClient, db_manager) -> None:
        response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    async def test_deactivated_admin_loses_access(self, client: AsyncClient, super_admin, admin_headers) -> None:
        headers = await admin_headers(AdminRole.IDEAS_MANAGER)

        deactivate = await client.delete("/api/admin/administrators/ideas-manager@example.org", headers=super_admin)
        assert deactivate.status_code == 200

        response = await client.get("/api/auth/me", headers=headers)
        assert response.status_code == 401


@pytest.mark.integration
class TestAdministrators:
    """/api/admin/administrators (admin.manage)."""

    async def test_create_and_list(self, client: AsyncClient, super_admin) -> None:
        response = await client.post(
            "/api/admin/administrators",
            headers=super_admin,
            json={
                "email": "Nouvelle@Example.org",
                "first_name": "Nora",
                "last_name": "Martin",
                "password": "un-mot-de-passe",
                "role": "events_reader",
            },
        )

        assert response.status_code == 201
        created = response.json()["data"]
        assert created["email"] == "nouvelle@example.org"
        assert created["added_by"] == "super-admin@example.org"
        assert created["status"] == "active"

        listing = await client.get("/api/admin/administrators", headers=super_admin)
        emails = {a["email"] for a in listing.json()["data"]}
        assert emails == {"super-admin@example.org", "nouvelle@example.org"}

    async def test_duplicate_email_conflicts(self, client: AsyncClient, super_admin) -> None:
        payload = {
            "email": "super-admin@example.org",
            "first_name": "Double",
            "last_name": "Compte",
            "password": "un-mot-de-passe",
        }

        response = await client.post("/api/admin/administrators", headers=super_admin, json=payload)

        assert response.status_code == 409
        assert response.json()["error"]["type"] == "conflict"

    async def test_short_password_is_rejected(self, client: AsyncClient, super_admin) -> None:
        response = await client.post(
            "/api/admin/administrators",
            headers=super_admin,
            json={"email": "a@example.org", "first_name": "A", "last_name": "B", "password": "court"},
        )

        assert response.status_code == 422

    async def test_managers_cannot_manage_admins(self, client: AsyncClient, admin_headers) -> None:
        headers = await admin_headers(AdminRole.EVENTS_MANAGER)

        response = await client.get("/api/admin/administrators", headers=headers)

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Permission refusée: admin.manage"

    async def test_cannot_demote_self(self, client: AsyncClient, super_admin) -> None:
        response = await client.put(
            "/api/admin/administrators/super-admin@example.org",
            headers=super_admin,
            json={"role": "ideas_reader"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["type"] == "business_rule_violation"

    async def test_cannot_deactivate_self(self, client: AsyncClient, super_admin) -> None:
        response = await client.delete("/api/admin/administrators/super-admin@example.org", headers=super_admin)

        assert response.status_code == 400

    async def test_change_role(self, client: AsyncClient, super_admin, admin_headers) -> None:
        await admin_headers(AdminRole.IDEAS_READER)

        response = await client.put(
            "/api/admin/administrators/ideas-reader@example.org",
            headers=super_admin,
            json={"role": "ideas_manager"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "ideas_manager"

    @pytest.mark.parametrize("payload", [{"role": None}, {"is_active": None}, {"first_name": None}])
    async def test_explicit_null_is_rejected(
        self, client: AsyncClient, super_admin, admin_headers, payload: dict
    ) -> None:
        await admin_headers(AdminRole.IDEAS_READER)

        response = await client.put(
            "/api/admin/administrators/ideas-reader@example.org", headers=super_admin, json=payload
        )

        assert response.status_code == 422

    async def test_unknown_admin(self, client: AsyncClient, super_admin) -> None:
        response = await client.get("/api/admin/administrators/ghost@example.org", headers=super_admin)

        assert response.status_code == 404
