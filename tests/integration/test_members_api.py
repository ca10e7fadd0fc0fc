"""Integration tests for the member CRM: members, statuses, tags, tasks and relations."""

import pytest
from httpx import AsyncClient

from backoffice.models.admin import AdminRole


async def create_member(client: AsyncClient, headers: dict, email: str, **overrides) -> dict:
    payload = {"email": email, "first_name": "Marie", "last_name": "Leroy", **overrides}
    response = await client.post("/api/admin/members", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.integration
class TestMembers:
    """Member CRUD and status changes."""

    async def test_create_member(self, client: AsyncClient, super_admin) -> None:
        member = await create_member(client, super_admin, "Marie.Leroy@Example.org", company="Atelier Leroy")

        assert member["email"] == "marie.leroy@example.org"
        assert member["status"] == "active"
        assert member["engagement_score"] == 0
        assert member["activity_count"] == 0
        assert member["tags"] == []

    async def test_duplicate_email_conflicts(self, client: AsyncClient, super_admin) -> None:
        await create_member(client, super_admin, "marie@example.org")

        response = await client.post(
            "/api/admin/members",
            headers=super_admin,
            json={"email": "MARIE@example.org", "first_name": "M", "last_name": "L"},
        )

        assert response.status_code == 409

    async def test_unknown_status_is_refused(self, client: AsyncClient, super_admin) -> None:
        response = await client.post(
            "/api/admin/members",
            headers=super_admin,
            json={"email": "x@example.org", "first_name": "X", "last_name": "Y", "status": "honoraire"},
        )

        assert response.status_code == 400
        assert "honoraire" in response.json()["error"]["message"]

    async def test_readers_can_view_but_not_edit(self, client: AsyncClient, super_admin, admin_headers) -> None:
        reader = await admin_headers(AdminRole.EVENTS_READER)
        await create_member(client, super_admin, "marie@example.org")

        listing = await client.get("/api/admin/members", headers=reader)
        response = await client.put(
            "/api/admin/members/marie@example.org", headers=reader, json={"company": "Nouvelle"}
        )

        assert listing.status_code == 200
        assert response.status_code == 403

    async def test_search_and_status_filter(self, client: AsyncClient, super_admin) -> None:
        await create_member(client, super_admin, "marie@example.org", company="Boulangerie Soleil")
        await create_member(client, super_admin, "paul@example.org", first_name="Paul", status="proposed")

        by_company = await client.get("/api/admin/members", headers=super_admin, params={"search": "SOLEIL"})
        proposed = await client.get("/api/admin/members", headers=super_admin, params={"status": "proposed"})
        everyone = await client.get("/api/admin/members", headers=super_admin, params={"status": "all"})

        assert [m["email"] for m in by_company.json()["data"]] == ["marie@example.org"]
        assert [m["email"] for m in proposed.json()["data"]] == ["paul@example.org"]
        assert everyone.json()["total"] == 2

    async def test_conversion_is_tracked(self, client: AsyncClient, super_admin) -> None:
        await create_member(client, super_admin, "paul@example.org", status="proposed", proposed_by="marie@example.org")

        response = await client.put(
            "/api/admin/members/paul@example.org", headers=super_admin, json={"status": "active"}
        )
        metrics = await client.get(
            "/api/tracking/metrics", headers=super_admin, params={"entity_email": "paul@example.org"}
        )

        assert response.json()["data"]["status"] == "active"
        metric_types = sorted(m["metric_type"] for m in metrics.json()["data"])
        assert metric_types == ["conversion", "status_change", "status_change"]

    async def test_delete_member(self, client: AsyncClient, super_admin) -> None:
        await create_member(client, super_admin, "marie@example.org")

        deleted = await client.delete("/api/admin/members/marie@example.org", headers=super_admin)
        missing = await client.get("/api/admin/members/marie@example.org", headers=super_admin)

        assert deleted.status_code == 200
        assert missing.status_code == 404

    @pytest.mark.parametrize("field", ["first_name", "last_name", "status"])
    async def test_explicit_null_on_required_field(self, client: AsyncClient, super_admin, field: str) -> None:
        await create_member(client, super_admin, "m@example.org")

        response = await client.put("/api/admin/members/m@example.org", headers=super_admin, json={field: None})
        member = await client.get("/api/admin/members/m@example.org", headers=super_admin)

        assert response.status_code == 422
        assert member.json()["data"]["first_name"] == "Marie"

    async def test_null_clears_optional_field(self, client: AsyncClient, super_admin) -> None:
        await create_member(client, super_admin, "m@example.org", company="Atelier")

        response = await client.put("/api/admin/members/m@example.org", headers=super_admin, json={"company": None})

        assert response.status_code == 200
        assert response.json()["data"]["company"] is None


@pytest.mark.integration
class TestMemberStatuses:
    """Configurable statuses and system status protection."""

    async def status_id(self, client: AsyncClient, headers: dict, code: str) -> str:
        response = await client.get("/api/admin/member-statuses", headers=headers)
        return next(s["id"] for s in response.json()["data"] if s["code"] == code)

    async def test_system_statuses_are_seeded(self, client: AsyncClient, super_admin) -> None:
        response = await client.get("/api/admin/member-statuses", headers=super_admin)

        statuses = {s["code"]: s for s in response.json()["data"]}
        assert set(statuses) == {"active", "proposed"}
        assert all(s["is_system"] for s in statuses.values())

    async def test_custom_status_gets_next_display_order(self, client: AsyncClient, super_admin) -> None:
        response = await client.post(
            "/api/admin/member-statuses",
            headers=super_admin,
            json={"code": "honoraire", "label": "Honoraire", "category": "member", "color": "#6366f1"},
        )

        created = response.json()["data"]
        assert response.status_code == 201
        assert created["display_order"] == 2
        assert created["is_system"] is False

        member = await create_member(client, super_admin, "ancien@example.org", status="honoraire")
        assert member["status"] == "honoraire"

    async def test_duplicate_code_conflicts(self, client: AsyncClient, super_admin) -> None:
        response = await client.post(
            "/api/admin/member-statuses",
            headers=super_admin,
            json={"code": "active", "label": "Doublon", "category": "member", "color": "#000000"},
        )

        assert response.status_code == 409

    @pytest.mark.parametrize("payload", [{"label": None}, {"is_active": None}, {"display_order": None}])
    async def test_explicit_null_is_rejected(self, client: AsyncClient, super_admin, payload: dict) -> None:
        status_id = await self.status_id(client, super_admin, "proposed")

        response = await client.put(f"/api/admin/member-statuses/{status_id}", headers=super_admin, json=payload)

        assert response.status_code == 422

    async def test_system_status_cannot_be_deleted_or_deactivated(self, client: AsyncClient, super_admin) -> None:
        active_id = await self.status_id(client, super_admin, "active")

        deleted = await client.delete(f"/api/admin/member-statuses/{active_id}", headers=super_admin)
        deactivated = await client.put(
            f"/api/admin/member-statuses/{active_id}", headers=super_admin, json={"is_active": False}
        )
        relabelled = await client.put(
            f"/api/admin/member-statuses/{active_id}", headers=super_admin, json={"label": "Membre actif"}
        )

        assert deleted.status_code == 400
        assert deactivated.status_code == 400
        assert relabelled.json()["data"]["label"] == "Membre actif"

    async def test_status_in_use_cannot_be_deleted(self, client: AsyncClient, super_admin) -> None:
        created = await client.post(
            "/api/admin/member-statuses",
            headers=super_admin,
            json={"code": "alumni", "label": "Alumni", "category": "member", "color": "#64748b"},
        )
        status_id = created.json()["data"]["id"]
        await create_member(client, super_admin, "alumni@example.org", status="alumni")

        response = await client.delete(f"/api/admin/member-statuses/{status_id}", headers=super_admin)

        assert response.status_code == 400
        assert "Désactivez-le" in response.json()["error"]["message"]

    async def test_deactivated_status_refuses_new_members(self, client: AsyncClient, super_admin) -> None:
        created = await client.post(
            "/api/admin/member-statuses",
            headers=super_admin,
            json={"code": "en_pause", "label": "En pause", "category": "member", "color": "#64748b"},
        )
        status_id = created.json()["data"]["id"]
        await client.put(f"/api/admin/member-statuses/{status_id}", headers=super_admin, json={"is_active": False})

        response = await client.post(
            "/api/admin/members",
            headers=super_admin,
            json={"email": "x@example.org", "first_name": "X", "last_name": "Y", "status": "en_pause"},
        )

        assert response.status_code == 400

    async def test_reorder(self, client: AsyncClient, super_admin) -> None:
        ids = []
        for code in ("bronze", "argent"):
            response = await client.post(
                "/api/admin/member-statuses",
                headers=super_admin,
                json={"code": code, "label": code.title(), "category": "prospect", "color": "#cccccc"},
            )
            ids.append(response.json()["data"]["id"])

        reordered = await client.put(
            "/api/admin/member-statuses/reorder",
            headers=super_admin,
            json=[{"id": ids[0], "display_order": 9}, {"id": ids[1], "display_order": 8}],
        )
        prospects = await client.get(
            "/api/admin/member-statuses", headers=super_admin, params={"category": "prospect"}
        )

        assert reordered.status_code == 200
        assert [s["code"] for s in prospects.json()["data"]] == ["proposed", "argent", "bronze"]

    async def test_reorder_refuses_system_statuses(self, client: AsyncClient, super_admin) -> None:
        active_id = await self.status_id(client, super_admin, "active")

        response = await client.put(
            "/api/admin/member-statuses/reorder",
            headers=super_admin,
            json=[{"id": active_id, "display_order": 5}],
        )

        assert response.status_code == 400

    async def test_managers_cannot_configure_statuses(self, client: AsyncClient, admin_headers) -> None:
        headers = await admin_headers(AdminRole.IDEAS_MANAGER)

        response = await client.post(
            "/api/admin/member-statuses",
            headers=headers,
            json={"code": "vip", "label": "VIP", "category": "member", "color": "#000000"},
        )

        assert response.status_code == 403


@pytest.mark.integration
class TestTags:
    """Tags and assignments."""

    async def test_assign_and_filter_by_tag(self, client: AsyncClient, super_admin) -> None:
        await create_member(client, super_admin, "marie@example.org")
        await create_member(client, super_admin, "paul@example.org", first_name="Paul")
        tag = (
            await client.post("/api/admin/member-tags", headers=super_admin, json={"name": "Bureau"})
        ).json()["data"]

        assigned = await client.post(f"/api/admin/members/marie@example.org/tags/{tag['id']}", headers=super_admin)
        again = await client.post(f"/api/admin/members/marie@example.org/tags/{tag['id']}", headers=super_admin)
        tagged = await client.get("/api/admin/members", headers=super_admin, params={"tag": tag["id"]})
        member = await client.get("/api/admin/members/marie@example.org", headers=super_admin)

        assert tag["color"] == "#3b82f6"
        assert assigned.status_code == 201
        assert again.status_code == 409
        assert [m["email"] for m in tagged.json()["data"]] == ["marie@example.org"]
        assert [t["name"] for t in member.json()["data"]["tags"]] == ["Bureau"]

    async def test_duplicate_tag_name(self, client: AsyncClient, super_admin) -> None:
        await client.post("/api/admin/member-tags", headers=super_admin, json={"name": "Bureau"})

        response = await client.post("/api/admin/member-tags", headers=super_admin, json={"name": "Bureau"})

        assert response.status_code == 409

    async def test_invalid_color(self, client: AsyncClient, super_admin) -> None:
        response = await client.post(
            "/api/admin/member-tags", headers=super_admin, json={"name": "Bureau", "color": "bleu"}
        )

        assert response.status_code == 422

    async def test_tag_name_cannot_be_nulled(self, client: AsyncClient, super_admin) -> None:
        tag = (
            await client.post("/api/admin/member-tags", headers=super_admin, json={"name": "Bureau"})
        ).json()["data"]

        response = await client.put(f"/api/admin/member-tags/{tag['id']}", headers=super_admin, json={"name": None})

        assert response.status_code == 422

    async def test_unassign_and_delete_tag(self, client: AsyncClient, super_admin) -> None:
        await create_member(client, super_admin, "marie@example.org")
        tag = (
            await client.post("/api/admin/member-tags", headers=super_admin, json={"name": "Bureau"})
        ).json()["data"]
        await client.post(f"/api/admin/members/marie@example.org/tags/{tag['id']}", headers=super_admin)

        unassigned = await client.delete(
            f"/api/admin/members/marie@example.org/tags/{tag['id']}", headers=super_admin
        )
        unassigned_again = await client.delete(
            f"/api/admin/members/marie@example.org/tags/{tag['id']}", headers=super_admin
        )
        deleted = await client.delete(f"/api/admin/member-tags/{tag['id']}", headers=super_admin)
        tags = await client.get("/api/admin/member-tags", headers=super_admin)

        assert unassigned.status_code == 200
        assert unassigned_again.status_code == 404
        assert deleted.status_code == 200
        assert tags.json()["data"] == []


@pytest.mark.integration
class TestTasks:
    """Follow-up tasks."""

    async def test_completion_stamps_and_reopen(self, client: AsyncClient, super_admin) -> None:
        await create_member(client, super_admin, "marie@example.org")
        task = (
            await client.post(
                "/api/admin/members/marie@example.org/tasks",
                headers=super_admin,
                json={"title": "Appeler Marie", "task_type": "call"},
            )
        ).json()["data"]

        completed = await client.put(
            f"/api/admin/tasks/{task['id']}", headers=super_admin, json={"status": "completed"}
        )
        reopened = await client.put(f"/api/admin/tasks/{task['id']}", headers=super_admin, json={"status": "todo"})

        assert task["status"] == "todo"
        assert task["created_by"] == "super-admin@example.org"
        assert completed.json()["data"]["completed_by"] == "super-admin@example.org"
        assert completed.json()["data"]["completed_at"] is not None
        assert reopened.json()["data"]["completed_at"] is None
        assert reopened.json()["data"]["completed_by"] is None

    @pytest.mark.parametrize("payload", [{"title": None}, {"task_type": None}, {"status": None}])
    async def test_explicit_null_is_rejected(self, client: AsyncClient, super_admin, payload: dict) -> None:
        await create_member(client, super_admin, "marie@example.org")
        task = (
            await client.post(
                "/api/admin/members/marie@example.org/tasks",
                headers=super_admin,
                json={"title": "Appeler Marie", "task_type": "call"},
            )
        ).json()["data"]

        response = await client.put(f"/api/admin/tasks/{task['id']}", headers=super_admin, json=payload)

        assert response.status_code == 422

    async def test_overdue_filter(self, client: AsyncClient, super_admin) -> None:
        await create_member(client, super_admin, "marie@example.org")
        for title, due_date in (("En retard", "2020-01-01T09:00:00Z"), ("À venir", "2099-01-01T09:00:00Z")):
            await client.post(
                "/api/admin/members/marie@example.org/tasks",
                headers=super_admin,
                json={"title": title, "task_type": "email", "due_date": due_date, "assigned_to": "Bob@example.org"},
            )

        overdue = await client.get("/api/admin/tasks", headers=super_admin, params={"overdue": "true"})
        assigned = await client.get("/api/admin/tasks", headers=super_admin, params={"assigned_to": "bob@example.org"})

        assert [t["title"] for t in overdue.json()["data"]] == ["En retard"]
        assert len(assigned.json()["data"]) == 2

    async def test_overdue_with_closed_status_is_invalid(self, client: AsyncClient, super_admin) -> None:
        response = await client.get(
            "/api/admin/tasks", headers=super_admin, params={"overdue": "true", "status": "completed"}
        )

        assert response.status_code == 422

    async def test_task_for_unknown_member(self, client: AsyncClient, super_admin) -> None:
        response = await client.post(
            "/api/admin/members/ghost@example.org/tasks",
            headers=super_admin,
            json={"title": "Appeler", "task_type": "call"},
        )

        assert response.status_code == 404


@pytest.mark.integration
class TestRelations:
    """Links between members."""

    async def test_relations(self, client: AsyncClient, super_admin) -> None:
        await create_member(client, super_admin, "marie@example.org")
        await create_member(client, super_admin, "paul@example.org", first_name="Paul")
        payload = {"related_member_email": "paul@example.org", "relation_type": "sponsor"}

        created = await client.post("/api/admin/members/marie@example.org/relations", headers=super_admin, json=payload)
        duplicate = await client.post(
            "/api/admin/members/marie@example.org/relations", headers=super_admin, json=payload
        )
        from_related_side = await client.get("/api/admin/members/paul@example.org/relations", headers=super_admin)
        sponsors = await client.get("/api/admin/relations", headers=super_admin, params={"type": "sponsor"})
        teams = await client.get("/api/admin/relations", headers=super_admin, params={"type": "team"})

        assert created.status_code == 201
        assert duplicate.status_code == 409
        assert len(from_related_side.json()["data"]) == 1
        assert len(sponsors.json()["data"]) == 1
        assert teams.json()["data"] == []

    async def test_self_relation_is_refused(self, client: AsyncClient, super_admin) -> None:
        await create_member(client, super_admin, "marie@example.org")

        response = await client.post(
            "/api/admin/members/marie@example.org/relations",
            headers=super_admin,
            json={"related_member_email": "MARIE@example.org", "relation_type": "team"},
        )

        assert response.status_code == 400

    async def test_relations_removed_with_member(self, client: AsyncClient, super_admin) -> None:
        await create_member(client, super_admin, "marie@example.org")
        await create_member(client, super_admin, "paul@example.org", first_name="Paul")
        await client.post(
            "/api/admin/members/marie@example.org/relations",
            headers=super_admin,
            json={"related_member_email": "paul@example.org", "relation_type": "team"},
        )

        await client.delete("/api/admin/members/paul@example.org", headers=super_admin)
        relations = await client.get("/api/admin/relations", headers=super_admin)

        assert relations.json()["data"] == []
