"""Integration tests for the tools catalog, development requests and health checks."""

import uuid

import pytest
from httpx import AsyncClient

from backoffice.models.admin import AdminRole
from backoffice.models.development_request import DevelopmentRequestDB


@pytest.mark.integration
class TestTools:
    """Tools and categories."""

    async def test_catalog(self, client: AsyncClient, admin_headers) -> None:
        headers = await admin_headers(AdminRole.IDEAS_MANAGER)
        category = (
            await client.post("/api/admin/tool-categories", headers=headers, json={"name": "Communication"})
        ).json()["data"]

        await client.post(
            "/api/admin/tools",
            headers=headers,
            json={"name": "Visio", "category_id": category["id"], "is_featured": True, "order": 1},
        )
        await client.post("/api/admin/tools", headers=headers, json={"name": "Agenda", "order": 2})
        await client.post("/api/admin/tools", headers=headers, json={"name": "Archive", "is_active": False})

        public = await client.get("/api/tools")
        featured = await client.get("/api/tools/featured")
        stats = await client.get("/api/admin/tools/stats", headers=headers)

        tools = public.json()["data"]
        assert [t["name"] for t in tools] == ["Visio", "Agenda"]
        assert tools[0]["category"]["name"] == "Communication"
        assert tools[1]["category"] is None
        assert [t["name"] for t in featured.json()["data"]] == ["Visio"]
        assert stats.json()["data"] == {"categories_count": 1, "tools_count": 3, "featured_count": 1}

    async def test_deleting_category_keeps_tools(self, client: AsyncClient, super_admin) -> None:
        category = (
            await client.post("/api/admin/tool-categories", headers=super_admin, json={"name": "Compta"})
        ).json()["data"]
        tool = (
            await client.post(
                "/api/admin/tools", headers=super_admin, json={"name": "Tableur", "category_id": category["id"]}
            )
        ).json()["data"]

        deleted = await client.delete(f"/api/admin/tool-categories/{category['id']}", headers=super_admin)
        tools = await client.get("/api/admin/tools", headers=super_admin)

        assert deleted.status_code == 200
        remaining = tools.json()["data"]
        assert [t["id"] for t in remaining] == [tool["id"]]
        assert remaining[0]["category_id"] is None

    async def test_unknown_category_is_refused(self, client: AsyncClient, super_admin) -> None:
        response = await client.post(
            "/api/admin/tools",
            headers=super_admin,
            json={"name": "Orphelin", "category_id": "00000000-0000-0000-0000-000000000000"},
        )

        assert response.status_code == 404

    async def test_inactive_categories_are_hidden(self, client: AsyncClient, super_admin) -> None:
        category = (
            await client.post("/api/admin/tool-categories", headers=super_admin, json={"name": "Ancienne"})
        ).json()["data"]
        await client.put(
            f"/api/admin/tool-categories/{category['id']}", headers=super_admin, json={"is_active": False}
        )

        public = await client.get("/api/tool-categories")
        admin = await client.get("/api/admin/tool-categories", headers=super_admin)

        assert public.json()["data"] == []
        assert len(admin.json()["data"]) == 1

    async def test_explicit_null_is_rejected(self, client: AsyncClient, super_admin) -> None:
        category = (
            await client.post("/api/admin/tool-categories", headers=super_admin, json={"name": "Compta"})
        ).json()["data"]
        tool = (await client.post("/api/admin/tools", headers=super_admin, json={"name": "Tableur"})).json()["data"]

        category_response = await client.put(
            f"/api/admin/tool-categories/{category['id']}", headers=super_admin, json={"is_active": None}
        )
        tool_response = await client.put(
            f"/api/admin/tools/{tool['id']}", headers=super_admin, json={"name": None, "order": None}
        )
        detached = await client.put(
            f"/api/admin/tools/{tool['id']}", headers=super_admin, json={"category_id": None}
        )

        assert category_response.status_code == 422
        assert tool_response.status_code == 422
        assert detached.status_code == 200

    async def test_readers_cannot_manage_tools(self, client: AsyncClient, admin_headers) -> None:
        headers = await admin_headers(AdminRole.EVENTS_READER)

        response = await client.get("/api/admin/tools", headers=headers)

        assert response.status_code == 403


@pytest.mark.integration
class TestDevelopmentRequests:
    """Bug reports and feature requests."""

    async def test_status_vocabulary(self, client: AsyncClient, super_admin, admin_headers) -> None:
        reader = await admin_headers(AdminRole.IDEAS_READER)
        created = await client.post(
            "/api/admin/development-requests",
            headers=reader,
            json={"title": "Export CSV", "description": "Exporter la liste des membres", "type": "feature"},
        )
        request = created.json()["data"]

        done = await client.patch(
            f"/api/admin/development-requests/{request['id']}/status",
            headers=super_admin,
            json={"status": "done", "admin_comment": "Livré"},
        )
        closed = await client.get(
            "/api/admin/development-requests", headers=super_admin, params={"status": "done"}
        )

        assert created.status_code == 201
        assert request["status"] == "pending"
        assert request["priority"] == "medium"
        assert request["requested_by"] == "ideas-reader@example.org"
        assert request["requested_by_name"] == "Test ideas_reader"
        assert done.json()["data"]["status"] == "done"
        assert done.json()["data"]["admin_comment"] == "Livré"
        assert done.json()["data"]["last_status_change_by"] == "super-admin@example.org"
        assert [r["id"] for r in closed.json()["data"]] == [request["id"]]

    async def test_stored_status_is_translated(self, client: AsyncClient, super_admin, db_session) -> None:
        created = await client.post(
            "/api/admin/development-requests",
            headers=super_admin,
            json={"title": "Bug", "description": "Erreur 500", "type": "bug", "priority": "high"},
        )
        request_id = created.json()["data"]["id"]

        stored = await db_session.get(DevelopmentRequestDB, uuid.UUID(request_id))

        assert stored.status == "open"

    async def test_only_super_admins_change_status(self, client: AsyncClient, admin_headers) -> None:
        headers = await admin_headers(AdminRole.EVENTS_MANAGER)
        created = await client.post(
            "/api/admin/development-requests",
            headers=headers,
            json={"title": "Bug", "description": "Erreur", "type": "bug"},
        )

        response = await client.patch(
            f"/api/admin/development-requests/{created.json()['data']['id']}/status",
            headers=headers,
            json={"status": "in_progress"},
        )

        assert response.status_code == 403

    async def test_storage_values_are_not_accepted(self, client: AsyncClient, super_admin) -> None:
        created = await client.post(
            "/api/admin/development-requests",
            headers=super_admin,
            json={"title": "Bug", "description": "Erreur", "type": "bug"},
        )

        response = await client.patch(
            f"/api/admin/development-requests/{created.json()['data']['id']}/status",
            headers=super_admin,
            json={"status": "closed"},
        )

        assert response.status_code == 422


@pytest.mark.integration
class TestHealth:
    """Health and readiness endpoints."""

    async def test_liveness(self, client: AsyncClient) -> None:
        response = await client.get("/v1/liveness")

        assert response.json() == {"status": "alive"}

    async def test_readiness_with_database(self, client: AsyncClient) -> None:
        response = await client.get("/v1/readiness")

        assert response.status_code == 200
        assert response.json()["checks"]["database"] == "healthy"

    async def test_health_reports_demo_chatbot(self, client: AsyncClient) -> None:
        response = await client.get("/v1/health")

        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["type"] == "sqlite"
        assert body["checks"]["chatbot"]["status"] == "demo"

    async def test_root(self, client: AsyncClient) -> None:
        response = await client.get("/")

        assert response.json()["health"]["readiness"] == "/v1/readiness"

    async def test_health_reports_disabled_chatbot_in_production(
        self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("APP_ENV", "production")

        response = await client.get("/v1/health")

        assert response.json()["checks"]["chatbot"]["status"] == "disabled"
