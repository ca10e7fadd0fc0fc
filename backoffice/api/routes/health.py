"""Health check endpoints for readiness and liveness checks."""

import os

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from backoffice.chatbot.llm_client import get_llm_client
from backoffice.services.database import get_db_manager

router = APIRouter(tags=["health"])

VERSION = "0.1.0"


async def _database_status() -> tuple[str, str | None]:
    """Return (status, dialect) of the process-wide database."""
    db_manager = get_db_manager()
    if db_manager is None:
        return "not_initialized", None

    healthy = await db_manager.health_check()
    dialect = db_manager.engine.dialect.name if db_manager.engine is not None else None
    return ("healthy" if healthy else "unhealthy"), dialect


@router.get(
    "/v1/readiness",
    summary="Readiness check",
    description="Check if the service is ready to accept requests",
    status_code=status.HTTP_200_OK,
)
async def readiness() -> JSONResponse:
    """Readiness check endpoint.

    Returns 200 if the database answers, 503 otherwise. The chatbot is
    optional and does not affect readiness.
    """
    database, _ = await _database_status()
    checks = {"database": database}

    if database == "healthy":
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"status": "ready", "checks": checks},
        )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "not_ready", "checks": checks},
    )


@router.get(
    "/v1/liveness",
    summary="Liveness check",
    description="Check if the service is alive",
    status_code=status.HTTP_200_OK,
)
async def liveness() -> dict:
    return {"status": "alive"}


@router.get(
    "/v1/health",
    summary="General health check",
    description="Comprehensive health check with detailed status",
    status_code=status.HTTP_200_OK,
)
async def health() -> dict:
    """Detailed health of the database and the chatbot provider configuration."""
    database, dialect = await _database_status()
    llm_client = get_llm_client()
    if llm_client is not None and llm_client.is_configured:
        chatbot = "configured"
    elif os.getenv("APP_ENV", "development") == "production":
        chatbot = "disabled"
    else:
        chatbot = "demo"

    checks = {
        "database": {"status": database, "type": dialect},
        "chatbot": {
            "status": chatbot,
            "model": llm_client.model if llm_client is not None else None,
        },
    }

    return {
        "status": "healthy" if database == "healthy" else "degraded",
        "version": VERSION,
        "service": "backoffice-api",
        "checks": checks,
    }
