"""Contract tests for the chatbot endpoint.

These tests verify the response shapes of POST /api/admin/chatbot/query
and its audit endpoints, with the chat-completion provider replaced by an
in-process transport.
"""

import json
from collections.abc import Callable

import httpx
import pytest
from httpx import AsyncClient

from backoffice.api.main import app
from backoffice.api.middleware.rate_limiter import RateLimiter, configure_chatbot_rate_limiter
from backoffice.chatbot.llm_client import LLMClient, get_llm_client
from backoffice.chatbot.service import (
    DEMO_ANSWER,
    DEMO_SQL,
    DISABLED_ANSWER,
    DISABLED_ERROR,
    GENERATION_ERROR,
    SQL_SYSTEM_PROMPT,
)
from backoffice.models.admin import AdminRole

QUERY_URL = "/api/admin/chatbot/query"


def completion(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


@pytest.fixture
def use_llm() -> Callable[[str, str], list[dict]]:
    """Install a configured LLM client answering with fixed SQL and narration.

    Returns the list of request bodies the provider received.
    """
    requests: list[dict] = []

    def _install(sql: str, narration: str = "Voici les membres.") -> list[dict]:
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            requests.append(body)
            if body["messages"][0]["content"] == SQL_SYSTEM_PROMPT:
                return completion(sql)
            return completion(narration)

        client = LLMClient(
            provider_config={"base_url": "https://llm.test", "api_key": "sk-test", "model": "test-model"},
            transport=httpx.MockTransport(handler),
        )
        app.dependency_overrides[get_llm_client] = lambda: client
        return requests

    return _install


@pytest.mark.contract
class TestQueryContract:
    """POST /api/admin/chatbot/query."""

    async def test_requires_authentication(self, client: AsyncClient) -> None:
        response = await client.post(QUERY_URL, json={"question": "Combien de membres ?"})

        assert response.status_code == 401

    @pytest.mark.parametrize("body", [{}, {"question": ""}, {"question": "   "}, {"question": 42}])
    async def test_question_is_required(self, client: AsyncClient, super_admin, body: dict) -> None:
        response = await client.post(QUERY_URL, headers=super_admin, json=body)

        assert response.status_code == 400
        assert response.json() == {"detail": "La question est requise"}

    async def test_demo_mode_response(self, client: AsyncClient, admin_headers) -> None:
        headers = await admin_headers(AdminRole.IDEAS_READER)

        response = await client.post(QUERY_URL, headers=headers, json={"question": "Combien de membres ?"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "answer": DEMO_ANSWER, "sql": DEMO_SQL, "data": []}

    async def test_disabled_in_production(
        self, client: AsyncClient, super_admin, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("APP_ENV", "production")

        response = await client.post(QUERY_URL, headers=super_admin, json={"question": "Combien de membres ?"})

        assert response.status_code == 200
        assert response.json() == {"success": False, "error": DISABLED_ERROR, "answer": DISABLED_ANSWER}

    async def test_success_response_runs_the_query(self, client: AsyncClient, super_admin, use_llm) -> None:
        for email, first_name in (("alice@example.org", "Alice"), ("bruno@example.org", "Bruno")):
            await client.post(
                "/api/admin/members",
                headers=super_admin,
                json={"email": email, "first_name": first_name, "last_name": "Test"},
            )
        sql = "SELECT email, first_name FROM members ORDER BY email"
        requests = use_llm(f"```sql\n{sql}\n```", "Alice et Bruno sont membres.")

        response = await client.post(
            QUERY_URL, headers=super_admin, json={"question": "Qui sont les membres ?", "context": "dashboard"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "answer": "Alice et Bruno sont membres.",
            "sql": sql,
            "data": [
                {"email": "alice@example.org", "first_name": "Alice"},
                {"email": "bruno@example.org", "first_name": "Bruno"},
            ],
        }
        assert len(requests) == 2
        assert "alice@example.org" in requests[1]["messages"][1]["content"]

    async def test_no_rows_gives_null_data(self, client: AsyncClient, super_admin, use_llm) -> None:
        use_llm("SELECT email FROM members", "Aucun membre.")

        response = await client.post(QUERY_URL, headers=super_admin, json={"question": "Qui ?"})

        body = response.json()
        assert body["success"] is True
        assert body["data"] is None
        assert body["answer"] == "Aucun membre."

    async def test_unsafe_sql_is_refused(self, client: AsyncClient, super_admin, use_llm) -> None:
        requests = use_llm("DELETE FROM members")

        response = await client.post(QUERY_URL, headers=super_admin, json={"question": "Supprime tout"})

        assert response.status_code == 200
        assert response.json() == {"success": False, "error": GENERATION_ERROR, "answer": GENERATION_ERROR}
        assert len(requests) == 1

    async def test_execution_error_is_reported(self, client: AsyncClient, super_admin, use_llm) -> None:
        use_llm("SELECT * FROM sponsors")

        response = await client.post(QUERY_URL, headers=super_admin, json={"question": "Mécènes ?"})

        body = response.json()
        assert body["success"] is False
        assert body["error"].startswith("Erreur lors de l'exécution de la requête: ")
        assert body["answer"] == body["error"]

    async def test_rate_limit(self, client: AsyncClient, super_admin) -> None:
        configure_chatbot_rate_limiter(RateLimiter(requests_per_minute=10, burst_size=2))

        statuses = [
            (await client.post(QUERY_URL, headers=super_admin, json={"question": "?"})).status_code
            for _ in range(3)
        ]
        limited = await client.post(QUERY_URL, headers=super_admin, json={"question": "?"})

        assert statuses == [200, 200, 429]
        assert int(limited.headers["Retry-After"]) >= 1
        assert limited.json()["detail"]["error"] == "Rate limit exceeded"


@pytest.mark.contract
class TestAuditContract:
    """History, statistics and failures endpoints."""

    async def test_queries_are_audited(self, client: AsyncClient, super_admin, admin_headers, use_llm) -> None:
        reader = await admin_headers(AdminRole.EVENTS_READER)
        await client.post(QUERY_URL, headers=reader, json={"question": "Question du lecteur"})
        use_llm("DROP TABLE members")
        await client.post(
            QUERY_URL,
            headers=super_admin,
            json={"question": "Question refusée", "context": "tests"},
        )

        own_history = await client.get("/api/admin/chatbot/history", headers=reader)
        failures = await client.get("/api/admin/chatbot/failures", headers=super_admin)
        stats = await client.get("/api/admin/chatbot/stats", headers=super_admin)

        history = own_history.json()["data"]
        assert [e["question"] for e in history] == ["Question du lecteur"]
        assert history[0]["generated_sql"] == DEMO_SQL
        assert history[0]["row_count"] == 0
        assert history[0]["error"] is None

        failed = failures.json()["data"]
        assert [e["question"] for e in failed] == ["Question refusée"]
        assert failed[0]["context"] == "tests"
        assert failed[0]["error"] == GENERATION_ERROR
        assert failed[0]["generated_sql"] is None

        assert stats.json()["data"]["total_queries"] == 2
        assert stats.json()["data"]["failed_queries"] == 1
        assert stats.json()["data"]["success_rate_percent"] == 50.0

    async def test_statistics_require_super_admin(self, client: AsyncClient, admin_headers) -> None:
        headers = await admin_headers(AdminRole.IDEAS_MANAGER)

        stats = await client.get("/api/admin/chatbot/stats", headers=headers)
        history = await client.get("/api/admin/chatbot/history", headers=headers)

        assert stats.status_code == 403
        assert history.status_code == 200
        assert history.json()["data"] == []
