"""Natural-language query endpoint for administrators."""

import time
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.middleware.auth import require_permission
from backoffice.api.middleware.rate_limiter import check_chatbot_rate_limit
from backoffice.chatbot.llm_client import LLMClient, get_llm_client
from backoffice.chatbot.service import ChatbotService
from backoffice.models.admin import AdminDB
from backoffice.services.audit_logger import AuditLogger
from backoffice.services.database import get_db_session

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/admin/chatbot", tags=["chatbot"])


class ChatbotQueryRequest(BaseModel):
    """Chatbot request body; ``question`` is checked by the handler."""

    question: Any = None
    context: str | None = None


@router.post(
    "/query",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(check_chatbot_rate_limit)],
)
async def chatbot_query(
    body: ChatbotQueryRequest,
    request: Request,
    admin: AdminDB = Depends(require_permission("admin.view")),
    db: AsyncSession = Depends(get_db_session),
    llm_client: LLMClient | None = Depends(get_llm_client),
) -> dict:
    """Answer an administrator question from the database.

    Failures of the assistant are reported in the body with HTTP 200;
    only a missing question is a client error.

    Raises:
        HTTPException: 400 if the question is missing or blank
    """
    if not isinstance(body.question, str) or not body.question.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="La question est requise")

    # The session may be rolled back by a failed query, expiring ORM instances
    user_email = admin.email

    start_time = time.time()
    result = await ChatbotService(llm_client, db).query(body.question, body.context)
    duration_ms = int((time.time() - start_time) * 1000)

    try:
        await AuditLogger(db).log_query(
            user_email=user_email,
            question=body.question,
            duration_ms=duration_ms,
            context=body.context,
            generated_sql=result.sql,
            row_count=len(result.data) if result.data is not None else None,
            error=result.error,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )
    except Exception as e:
        await db.rollback()
        logger.error("chatbot_audit_failed", user_email=user_email, error=str(e))

    if not result.success:
        return {"success": False, "error": result.error, "answer": result.answer}

    return {"success": True, "answer": result.answer, "sql": result.sql, "data": result.data}


@router.get("/history")
async def chatbot_history(
    limit: int = Query(50, ge=1, le=200),
    admin: AdminDB = Depends(require_permission("admin.view")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Recent questions asked by the current administrator."""
    entries = await AuditLogger(db).get_user_activity(admin.email, limit=limit)
    return {"success": True, "data": [e.model_dump(mode="json") for e in entries]}


@router.get("/stats")
async def chatbot_stats(
    admin: AdminDB = Depends(require_permission("admin.manage")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Aggregate usage statistics across administrators."""
    return {"success": True, "data": await AuditLogger(db).get_query_statistics()}


@router.get("/failures")
async def chatbot_failures(
    limit: int = Query(50, ge=1, le=200),
    admin: AdminDB = Depends(require_permission("admin.manage")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Most recent failed questions, for prompt tuning."""
    entries = await AuditLogger(db).get_failed_queries(limit=limit)
    return {"success": True, "data": [e.model_dump(mode="json") for e in entries]}
