"""Unit tests for the natural-language query service."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.chatbot.service import (
    DEMO_ANSWER,
    DEMO_SQL,
    DISABLED_ANSWER,
    DISABLED_ERROR,
    EMPTY_ANSWER,
    GENERATION_ERROR,
    NO_ROWS_ANSWER,
    ChatbotService,
)


@pytest.fixture
def mock_llm_client() -> MagicMock:
    """Configured LLM client whose completions are set per test."""
    client = MagicMock()
    client.is_configured = True
    client.generate = AsyncMock()
    return client


def make_db_session(rows: list[dict] | None = None, error: Exception | None = None) -> MagicMock:
    """Session whose raw connection returns ``rows`` or raises ``error``."""
    result = MagicMock()
    result.mappings.return_value.all.return_value = rows or []

    connection = MagicMock()
    connection.exec_driver_sql = AsyncMock(return_value=result, side_effect=error)

    session = MagicMock(spec=AsyncSession)
    session.connection = AsyncMock(return_value=connection)
    session.rollback = AsyncMock()
    return session


@pytest.mark.unit
class TestSuccessfulQueries:
    """Generation, execution and narration."""

    async def test_returns_answer_sql_and_rows(self, mock_llm_client: MagicMock) -> None:
        rows = [{"email": "a@example.org"}, {"email": "b@example.org"}]
        db = make_db_session(rows)
        mock_llm_client.generate.side_effect = [
            "SELECT email FROM members WHERE status = 'active'",
            "Il y a deux membres actifs.",
        ]

        response = await ChatbotService(mock_llm_client, db).query("Qui sont les membres actifs ?")

        assert response.success
        assert response.sql == "SELECT email FROM members WHERE status = 'active'"
        assert response.data == rows
        assert response.answer == "Il y a deux membres actifs."
        db.connection.return_value.exec_driver_sql.assert_awaited_once_with(response.sql)

    async def test_generation_prompt_and_parameters(self, mock_llm_client: MagicMock) -> None:
        mock_llm_client.generate.side_effect = ["SELECT 1", "Un."]

        await ChatbotService(mock_llm_client, make_db_session([{"n": 1}])).query("Combien ?")

        sql_call, answer_call = mock_llm_client.generate.await_args_list
        assert sql_call.kwargs["prompt"] == "Question: Combien ?\n\nGénère la requête SQL correspondante:"
        assert sql_call.kwargs["temperature"] == 0.1
        assert sql_call.kwargs["max_tokens"] == 500
        assert "members" in sql_call.kwargs["system_prompt"]
        assert answer_call.kwargs["temperature"] == 0.7
        assert '"n": 1' in answer_call.kwargs["prompt"]

    async def test_fenced_sql_is_stored_unfenced(self, mock_llm_client: MagicMock) -> None:
        mock_llm_client.generate.side_effect = [
            "```sql\nSELECT COUNT(*) AS total FROM ideas\n```\n",
            "Il y a 4 idées.",
        ]

        response = await ChatbotService(mock_llm_client, make_db_session([{"total": 4}])).query("Combien d'idées ?")

        assert response.sql == "SELECT COUNT(*) AS total FROM ideas"

    async def test_zero_rows_leaves_data_empty(self, mock_llm_client: MagicMock) -> None:
        mock_llm_client.generate.side_effect = ["SELECT * FROM loan_items WHERE 1 = 0", RuntimeError("down")]

        response = await ChatbotService(mock_llm_client, make_db_session([])).query("Objets ?")

        assert response.success
        assert response.data is None
        assert response.answer == NO_ROWS_ANSWER

    @pytest.mark.parametrize("row_count", [1, 3, 12])
    async def test_narration_failure_reports_row_count(self, mock_llm_client: MagicMock, row_count: int) -> None:
        rows = [{"id": i} for i in range(row_count)]
        mock_llm_client.generate.side_effect = ["SELECT id FROM events", RuntimeError("timeout")]

        response = await ChatbotService(mock_llm_client, make_db_session(rows)).query("Événements ?")

        assert response.answer == f"Résultat: {row_count} ligne(s) trouvée(s)."
        assert response.data == rows

    async def test_empty_narration_uses_placeholder(self, mock_llm_client: MagicMock) -> None:
        mock_llm_client.generate.side_effect = ["SELECT 1", ""]

        response = await ChatbotService(mock_llm_client, make_db_session([{"x": 1}])).query("?")

        assert response.answer == EMPTY_ANSWER


@pytest.mark.unit
class TestRejectedQueries:
    """Anything but a single SELECT never reaches the database."""

    @pytest.mark.parametrize(
        "generated",
        [
            "DELETE FROM members",
            "SELECT * FROM members; drop table members",
            "select * from members where email = 'x'; Update members set status = 'x'",
            "WITH x AS (SELECT 1) SELECT * FROM x",
            "SHOW search_path",
        ],
    )
    async def test_unsafe_sql_is_refused(self, mock_llm_client: MagicMock, generated: str) -> None:
        db = make_db_session([{"a": 1}])
        mock_llm_client.generate.return_value = generated

        response = await ChatbotService(mock_llm_client, db).query("Fais quelque chose")

        assert not response.success
        assert response.error == GENERATION_ERROR
        assert response.answer == GENERATION_ERROR
        assert response.data is None
        db.connection.assert_not_called()
        # No narration call after a rejection
        assert mock_llm_client.generate.await_count == 1

    async def test_generation_call_failure(self, mock_llm_client: MagicMock) -> None:
        mock_llm_client.generate.side_effect = RuntimeError("provider unavailable")

        response = await ChatbotService(mock_llm_client, make_db_session()).query("Question")

        assert response.error == GENERATION_ERROR

    async def test_execution_failure_rolls_back(self, mock_llm_client: MagicMock) -> None:
        db = make_db_session(error=Exception('relation "unknown" does not exist'))
        mock_llm_client.generate.return_value = "SELECT * FROM unknown"

        response = await ChatbotService(mock_llm_client, db).query("Question")

        assert not response.success
        assert response.error.startswith("Erreur lors de l'exécution de la requête: ")
        assert 'relation "unknown" does not exist' in response.error
        assert response.answer == response.error
        db.rollback.assert_awaited_once()


@pytest.mark.unit
class TestUnconfiguredClient:
    """No API key: fixed responses, no provider call."""

    async def test_demo_mode_outside_production(self, mock_llm_client: MagicMock) -> None:
        mock_llm_client.is_configured = False

        response = await ChatbotService(mock_llm_client, make_db_session(), environment="development").query("?")

        assert response.success
        assert response.answer == DEMO_ANSWER
        assert response.sql == DEMO_SQL
        assert response.data == []
        mock_llm_client.generate.assert_not_called()

    async def test_disabled_in_production(self) -> None:
        db = make_db_session()

        response = await ChatbotService(None, db, environment="production").query("?")

        assert not response.success
        assert response.answer == DISABLED_ANSWER
        assert response.error == DISABLED_ERROR
        db.connection.assert_not_called()
