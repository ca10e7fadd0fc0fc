"""Integration tests for the idea box, votes and loan items."""

import uuid

import pytest
from httpx import AsyncClient

from backoffice.models.admin import AdminRole
from backoffice.models.idea import VoteCreate, VoteDB
from backoffice.services.errors import ConflictError
from backoffice.services.idea_service import IdeaService


async def propose_idea(client: AsyncClient, title: str, email: str = "auteur@example.org") -> dict:
    response = await client.post(
        "/api/ideas",
        json={"title": title, "proposed_by": "Sam Auteur", "proposed_by_email": email},
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def propose_item(client: AsyncClient, title: str, lender: str = "Dominique") -> dict:
    response = await client.post(
        "/api/loan-items",
        json={
            "title": title,
            "lender_name": lender,
            "proposed_by": lender,
            "proposed_by_email": "preteur@example.org",
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
async def ideas_manager(admin_headers) -> dict[str, str]:
    return await admin_headers(AdminRole.IDEAS_MANAGER)


@pytest.mark.integration
class TestIdeas:
    """Public proposals and moderation."""

    async def test_new_ideas_are_pending(self, client: AsyncClient) -> None:
        idea = await propose_idea(client, "Un jardin partagé")

        assert idea["status"] == "pending"
        assert idea["featured"] is False
        assert idea["vote_count"] == 0

    async def test_public_list_hides_rejected_and_features_first(
        self, client: AsyncClient, ideas_manager
    ) -> None:
        first = await propose_idea(client, "Première")
        await propose_idea(client, "Deuxième")
        rejected = await propose_idea(client, "Refusée")

        await client.patch(f"/api/ideas/{rejected['id']}/status", headers=ideas_manager, json={"status": "rejected"})
        await client.patch(f"/api/ideas/{first['id']}/featured", headers=ideas_manager, json={"featured": True})

        public = await client.get("/api/ideas")
        admin = await client.get("/api/admin/ideas", headers=ideas_manager, params={"status": "rejected"})

        assert [i["title"] for i in public.json()["data"]] == ["Première", "Deuxième"]
        assert [i["title"] for i in admin.json()["data"]] == ["Refusée"]

    async def test_readers_cannot_moderate(self, client: AsyncClient, admin_headers) -> None:
        headers = await admin_headers(AdminRole.IDEAS_READER)
        idea = await propose_idea(client, "Idée")

        response = await client.patch(f"/api/ideas/{idea['id']}/status", headers=headers, json={"status": "approved"})

        assert response.status_code == 403

    async def test_update_and_delete(self, client: AsyncClient, ideas_manager) -> None:
        idea = await propose_idea(client, "Brouillon d'idée")

        updated = await client.put(
            f"/api/ideas/{idea['id']}", headers=ideas_manager, json={"description": "Plus de détails"}
        )
        deleted = await client.delete(f"/api/ideas/{idea['id']}", headers=ideas_manager)
        listing = await client.get("/api/ideas")

        assert updated.json()["data"]["description"] == "Plus de détails"
        assert updated.json()["data"]["updated_by"] == "ideas-manager@example.org"
        assert deleted.status_code == 200
        assert listing.json()["total"] == 0

    async def test_title_cannot_be_nulled(self, client: AsyncClient, ideas_manager) -> None:
        idea = await propose_idea(client, "Idée")

        response = await client.put(f"/api/ideas/{idea['id']}", headers=ideas_manager, json={"title": None})

        assert response.status_code == 422


@pytest.mark.integration
class TestVotes:
    """One vote per e-mail and idea."""

    async def test_vote_counts(self, client: AsyncClient, ideas_manager) -> None:
        idea = await propose_idea(client, "Idée populaire")

        for email in ("a@example.org", "b@example.org"):
            response = await client.post(
                "/api/votes", json={"idea_id": idea["id"], "voter_name": "Votant", "voter_email": email}
            )
            assert response.status_code == 201

        public = await client.get("/api/ideas")
        votes = await client.get(f"/api/ideas/{idea['id']}/votes", headers=ideas_manager)

        assert public.json()["data"][0]["vote_count"] == 2
        assert len(votes.json()["data"]) == 2

    async def test_duplicate_vote_conflicts(self, client: AsyncClient) -> None:
        idea = await propose_idea(client, "Idée")
        payload = {"idea_id": idea["id"], "voter_name": "Votant", "voter_email": "a@example.org"}
        await client.post("/api/votes", json=payload)

        response = await client.post("/api/votes", json={**payload, "voter_email": "A@EXAMPLE.org"})

        assert response.status_code == 409
        assert response.json()["error"]["message"] == "Vous avez déjà voté pour cette idée"

    async def test_concurrent_duplicate_vote_conflicts(self, client: AsyncClient, db_session) -> None:
        idea = await propose_idea(client, "Idée")
        idea_id = uuid.UUID(idea["id"])
        # Unflushed, so the duplicate check does not see it
        db_session.add(VoteDB(idea_id=idea_id, voter_name="Autre", voter_email="a@example.org"))

        with pytest.raises(ConflictError, match="déjà voté"):
            await IdeaService(db_session).vote(
                VoteCreate(idea_id=idea_id, voter_name="Votant", voter_email="A@example.org")
            )
        await db_session.rollback()

        votes = await client.post(
            "/api/votes", json={"idea_id": idea["id"], "voter_name": "Votant", "voter_email": "a@example.org"}
        )
        assert votes.status_code == 201

    async def test_vote_on_unknown_idea(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/votes",
            json={
                "idea_id": "00000000-0000-0000-0000-000000000000",
                "voter_name": "Votant",
                "voter_email": "a@example.org",
            },
        )

        assert response.status_code == 404

    async def test_member_engagement_from_ideas_and_votes(self, client: AsyncClient, super_admin) -> None:
        await client.post(
            "/api/admin/members",
            headers=super_admin,
            json={"email": "actif@example.org", "first_name": "Rémi", "last_name": "Garnier"},
        )

        idea = await propose_idea(client, "Idée de membre", email="Actif@example.org")
        await client.post(
            "/api/votes", json={"idea_id": idea["id"], "voter_name": "Rémi", "voter_email": "actif@example.org"}
        )
        member = await client.get("/api/admin/members/actif@example.org", headers=super_admin)

        assert member.json()["data"]["engagement_score"] == 12
        assert member.json()["data"]["activity_count"] == 2


@pytest.mark.integration
class TestLoanItems:
    """Public proposals, validation and search."""

    async def test_proposals_wait_for_validation(self, client: AsyncClient, super_admin) -> None:
        item = await propose_item(client, "Perceuse")

        public = await client.get("/api/loan-items")
        pending = await client.get("/api/admin/loan-items", headers=super_admin, params={"status": "pending"})

        assert item["status"] == "pending"
        assert public.json()["total"] == 0
        assert [i["title"] for i in pending.json()["data"]] == ["Perceuse"]

    async def test_public_search_on_available_items(self, client: AsyncClient, admin_headers) -> None:
        headers = await admin_headers(AdminRole.EVENTS_MANAGER)
        drill = await propose_item(client, "Perceuse", lender="Claude Martin")
        tent = await propose_item(client, "Tente 4 places", lender="Yannick")
        await propose_item(client, "Perceuse à percussion")

        for item in (drill, tent):
            response = await client.patch(
                f"/api/admin/loan-items/{item['id']}/status", headers=headers, json={"status": "available"}
            )
            assert response.json()["data"]["updated_by"] == "events-manager@example.org"

        by_title = await client.get("/api/loan-items", params={"search": "perceuse"})
        by_lender = await client.get("/api/loan-items", params={"search": "martin"})

        assert [i["title"] for i in by_title.json()["data"]] == ["Perceuse"]
        assert [i["title"] for i in by_lender.json()["data"]] == ["Perceuse"]

    async def test_readers_cannot_edit_items(self, client: AsyncClient, admin_headers) -> None:
        headers = await admin_headers(AdminRole.IDEAS_READER)
        item = await propose_item(client, "Escabeau")

        response = await client.delete(f"/api/admin/loan-items/{item['id']}", headers=headers)

        assert response.status_code == 403

    async def test_update_and_delete(self, client: AsyncClient, super_admin) -> None:
        item = await propose_item(client, "Escabeau")

        updated = await client.put(
            f"/api/admin/loan-items/{item['id']}", headers=super_admin, json={"description": "3 marches"}
        )
        deleted = await client.delete(f"/api/admin/loan-items/{item['id']}", headers=super_admin)
        missing = await client.get(f"/api/admin/loan-items/{item['id']}", headers=super_admin)

        assert updated.json()["data"]["description"] == "3 marches"
        assert deleted.status_code == 200
        assert missing.status_code == 404

    @pytest.mark.parametrize("payload", [{"title": None}, {"lender_name": None}])
    async def test_explicit_null_is_rejected(self, client: AsyncClient, super_admin, payload: dict) -> None:
        item = await propose_item(client, "Escabeau")

        response = await client.put(f"/api/admin/loan-items/{item['id']}", headers=super_admin, json=payload)

        assert response.status_code == 422

    async def test_huge_page_number(self, client: AsyncClient) -> None:
        response = await client.get("/api/loan-items", params={"page": "10000000000000000000", "limit": 10})

        assert response.status_code == 422
