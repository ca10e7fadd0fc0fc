"""FastAPI application setup and configuration."""

import os
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from backoffice.api.middleware.error_handler import (
    generic_exception_handler,
    integrity_exception_handler,
    permission_exception_handler,
    service_exception_handler,
    validation_exception_handler,
)
from backoffice.api.middleware.logging import LoggingMiddleware, setup_logging
from backoffice.api.middleware.rate_limiter import configure_chatbot_rate_limiter
from backoffice.api.routes import (
    admins,
    auth,
    chatbot,
    development_requests,
    events,
    health,
    ideas,
    loans,
    member_statuses,
    members,
    tools,
    tracking,
)
from backoffice.chatbot.llm_client import initialize_llm_client, shutdown_llm_client
from backoffice.services.admin_service import AdminService
from backoffice.services.database import initialize_database, shutdown_database
from backoffice.services.errors import ServiceError
from backoffice.services.member_status_service import MemberStatusService

logger = structlog.get_logger(__name__)

VERSION = "0.1.0"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Handles startup and shutdown events.
    """
    # Startup
    setup_logging(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_format=os.getenv("LOG_FORMAT", "json"),
    )
    is_production = os.getenv("APP_ENV", "development") == "production"

    database_url = os.getenv("DATABASE_URL")
    if database_url:
        db_manager = initialize_database(database_url)
        await db_manager.initialize_async()

        # Production schemas are managed by Alembic
        if _env_flag("DB_CREATE_TABLES", default=not is_production):
            await db_manager.create_tables()
            async with db_manager.get_async_session() as session:
                await MemberStatusService(session).ensure_system_statuses()

        bootstrap_email = os.getenv("BOOTSTRAP_ADMIN_EMAIL")
        bootstrap_password = os.getenv("BOOTSTRAP_ADMIN_PASSWORD")
        if bootstrap_email and bootstrap_password:
            async with db_manager.get_async_session() as session:
                created = await AdminService(session).ensure_bootstrap_admin(bootstrap_email, bootstrap_password)
            if created is not None:
                logger.info("bootstrap_admin_created", email=created.email)
    else:
        logger.warning("database_not_configured", reason="DATABASE_URL not set")

    initialize_llm_client()
    configure_chatbot_rate_limiter()

    yield

    # Shutdown
    await shutdown_llm_client()
    await shutdown_database()


# Create FastAPI application
app = FastAPI(
    title="Association Back-office API",
    description="Members, events, ideas, loans and tools back-office with a read-only SQL assistant",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# ========== CORS Configuration ==========

allowed_origins = os.getenv("CORS_ALLOWED_ORIGINS", "*").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Authorization", "Content-Type"],
)

# ========== Custom Middleware ==========

app.add_middleware(LoggingMiddleware)

# ========== Exception Handlers ==========

app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(ServiceError, service_exception_handler)
app.add_exception_handler(IntegrityError, integrity_exception_handler)
app.add_exception_handler(PermissionError, permission_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# ========== Route Registration ==========

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(admins.router)
app.include_router(chatbot.router)
app.include_router(events.router)
app.include_router(ideas.router)
app.include_router(loans.router)
app.include_router(members.router)
app.include_router(member_statuses.router)
app.include_router(tools.router)
app.include_router(tracking.router)
app.include_router(development_requests.router)

# ========== Root Endpoint ==========


@app.get(
    "/",
    tags=["root"],
    summary="API root",
    description="Returns API information and available endpoints",
)
async def root() -> dict:
    return {
        "service": "Association Back-office API",
        "version": VERSION,
        "documentation": {
            "openapi": "/openapi.json",
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": {
            "liveness": "/v1/liveness",
            "readiness": "/v1/readiness",
            "health": "/v1/health",
        },
    }


# ========== Development Server ==========

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backoffice.api.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8080")),
        reload=True,
        log_level="info",
    )
