"""Natural-language question answering over the back-office database."""

import json
import os
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.chatbot.llm_client import LLMClient
from backoffice.chatbot.sql_guard import UnsafeQueryError, strip_code_fences, validate_sql
from backoffice.models.chatbot import ChatbotResponse

logger = structlog.get_logger(__name__)

DATABASE_SCHEMA = """
Tables disponibles dans la base de données du back-office:

1. members - Membres de la communauté
   - id (uuid)
   - email (text, unique)
   - first_name (text)
   - last_name (text)
   - company (text, nullable)
   - phone (text, nullable)
   - role (text, nullable)
   - cjd_role (text, nullable)
   - status (text: 'active' | 'proposed' ou un code de statut personnalisé)
   - engagement_score (integer)
   - first_seen_at (timestamp)
   - last_activity_at (timestamp)
   - activity_count (integer)
   - created_at (timestamp)
   - updated_at (timestamp)

2. member_activities - Activités des membres
   - id (uuid)
   - member_email (text, FK -> members.email)
   - activity_type (text: 'idea_proposed' | 'vote_cast' | 'event_registered' | 'event_unregistered' | 'patron_suggested')
   - entity_type (text: 'idea' | 'vote' | 'event' | 'patron')
   - entity_id (varchar, nullable)
   - entity_title (text, nullable)
   - score_impact (integer)
   - occurred_at (timestamp)

3. ideas - Idées proposées
   - id (uuid)
   - title (text)
   - description (text)
   - status (text: 'pending' | 'approved' | 'rejected' | 'under_review' | 'postponed' | 'completed')
   - proposed_by (text)
   - proposed_by_email (text)
   - featured (boolean)
   - created_at (timestamp)
   - updated_at (timestamp)

4. votes - Votes sur les idées
   - id (uuid)
   - idea_id (uuid, FK -> ideas.id)
   - voter_name (text)
   - voter_email (text)
   - created_at (timestamp)

5. events - Événements
   - id (uuid)
   - title (text)
   - description (text)
   - date (timestamp)
   - location (text, nullable)
   - max_participants (integer, nullable)
   - status (text: 'draft' | 'published' | 'cancelled' | 'postponed' | 'completed')
   - created_at (timestamp)
   - updated_at (timestamp)

6. inscriptions - Inscriptions aux événements
   - id (uuid)
   - event_id (uuid, FK -> events.id)
   - name (text)
   - email (text)
   - company (text, nullable)
   - created_at (timestamp)

7. loan_items - Objets proposés au prêt
   - id (uuid)
   - title (text)
   - description (text, nullable)
   - lender_name (text)
   - status (text: 'pending' | 'available' | 'borrowed' | 'unavailable')
   - proposed_by (text)
   - proposed_by_email (text)
   - created_at (timestamp)
"""

SQL_SYSTEM_PROMPT = f"""Tu es un assistant SQL expert pour une base de données PostgreSQL.
Tu dois générer des requêtes SQL sûres et efficaces à partir de questions en français.

Règles importantes:
1. Utilise UNIQUEMENT les tables et colonnes listées dans le schéma
2. Ne génère JAMAIS de requêtes DROP, DELETE, UPDATE, INSERT, ALTER, TRUNCATE
3. Utilise UNIQUEMENT SELECT pour interroger les données
4. Retourne UNIQUEMENT la requête SQL, sans explication
5. Utilise des noms de colonnes en snake_case comme dans le schéma

Schéma de la base de données:
{DATABASE_SCHEMA}

Réponds UNIQUEMENT avec la requête SQL, rien d'autre."""

ANSWER_SYSTEM_PROMPT = (
    "Tu es un assistant qui explique les résultats de requêtes SQL de manière naturelle "
    "en français. Réponds de façon claire et concise."
)

DEMO_ANSWER = "Mode démo: configurez OPENAI_API_KEY pour activer l'assistant."
DEMO_SQL = "SELECT 1;"
DISABLED_ANSWER = "Le service chatbot n'est pas disponible. Veuillez configurer OPENAI_API_KEY."
DISABLED_ERROR = "OpenAI client not initialized"
GENERATION_ERROR = "Erreur lors de la génération de la requête SQL"
EMPTY_ANSWER = "Aucune réponse générée"
NO_ROWS_ANSWER = "Aucun résultat trouvé pour cette requête."


class SQLGenerationError(Exception):
    """The model could not produce an acceptable query."""


class SQLExecutionError(Exception):
    """The validated query failed in the database."""


def fallback_answer(row_count: int) -> str:
    """Deterministic answer used when narration fails."""
    if row_count == 0:
        return NO_ROWS_ANSWER
    return f"Résultat: {row_count} ligne(s) trouvée(s)."


class ChatbotService:
    """Turns an operator question into one guarded SELECT and narrates the rows.

    The query path is: generate SQL (LLM), validate it, execute it on the
    request's database session, then narrate the rows (LLM). Every failure
    is turned into a ``ChatbotResponse``; ``query`` never raises.
    """

    def __init__(
        self,
        llm_client: LLMClient | None,
        db_session: AsyncSession,
        environment: str | None = None,
    ):
        """Initialize chatbot service.

        Args:
            llm_client: Shared LLM client (None or unconfigured disables the assistant)
            db_session: Session the generated query runs on
            environment: Deployment environment (defaults to APP_ENV env var)
        """
        self.llm_client = llm_client
        self.db_session = db_session
        self.environment = environment or os.getenv("APP_ENV", "development")

    @property
    def enabled(self) -> bool:
        return self.llm_client is not None and self.llm_client.is_configured

    async def query(self, question: str, context: str | None = None) -> ChatbotResponse:
        """Answer a natural-language question.

        Args:
            question: Operator question
            context: Free-form tag from the caller, only logged

        Returns:
            ChatbotResponse with ``error`` set on failure
        """
        if not self.enabled:
            if self.environment != "production":
                return ChatbotResponse(answer=DEMO_ANSWER, sql=DEMO_SQL, data=[])
            return ChatbotResponse(answer=DISABLED_ANSWER, error=DISABLED_ERROR)

        log = logger.bind(context=context)
        try:
            sql = await self.generate_sql(question)
            rows = await self.execute_sql(sql)
        except (SQLGenerationError, SQLExecutionError) as e:
            log.error("chatbot_query_failed", question=question, error=str(e))
            return ChatbotResponse(answer=str(e), error=str(e))

        answer = await self.generate_answer(question, sql, rows)
        log.info("chatbot_query_answered", row_count=len(rows))

        return ChatbotResponse(answer=answer, sql=sql, data=rows or None)

    async def generate_sql(self, question: str) -> str:
        """Ask the model for a query and run it through the guard.

        Raises:
            SQLGenerationError: If the call fails or the query is rejected
        """
        try:
            completion = await self.llm_client.generate(
                prompt=f"Question: {question}\n\nGénère la requête SQL correspondante:",
                system_prompt=SQL_SYSTEM_PROMPT,
                temperature=0.1,
                max_tokens=500,
            )
            sql = strip_code_fences(completion)
            validate_sql(sql)
        except UnsafeQueryError as e:
            logger.warning("chatbot_sql_rejected", reason=str(e), keyword=e.keyword)
            raise SQLGenerationError(GENERATION_ERROR) from e
        except Exception as e:
            logger.error("chatbot_sql_generation_failed", error=str(e))
            raise SQLGenerationError(GENERATION_ERROR) from e

        return sql

    async def execute_sql(self, sql: str) -> list[dict[str, Any]]:
        """Run the validated query verbatim.

        Raises:
            SQLExecutionError: If the database rejects the query
        """
        try:
            connection = await self.db_session.connection()
            result = await connection.exec_driver_sql(sql)
            return [dict(row) for row in result.mappings().all()]
        except Exception as e:
            # Leave the session usable for the audit write that follows
            await self.db_session.rollback()
            logger.error("chatbot_sql_execution_failed", sql=sql, error=str(e))
            raise SQLExecutionError(f"Erreur lors de l'exécution de la requête: {e}") from e

    async def generate_answer(self, question: str, sql: str, rows: list[dict[str, Any]]) -> str:
        """Narrate the rows; falls back to a templated sentence on failure."""
        rows_json = json.dumps(rows, indent=2, ensure_ascii=False, default=str)
        try:
            answer = await self.llm_client.generate(
                prompt=(
                    f"Question: {question}\nRequête SQL: {sql}\nRésultats: {rows_json}"
                    "\n\nGénère une réponse naturelle en français."
                ),
                system_prompt=ANSWER_SYSTEM_PROMPT,
                temperature=0.7,
                max_tokens=500,
            )
        except Exception as e:
            logger.warning("chatbot_answer_generation_failed", error=str(e))
            return fallback_answer(len(rows))

        return answer or EMPTY_ANSWER
