"""Shared pytest fixtures and configuration.

This module provides common fixtures used across all test types.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.main import app
from backoffice.api.middleware.rate_limiter import RateLimiter, configure_chatbot_rate_limiter
from backoffice.auth.tokens import TokenService, get_token_service, reset_token_service
from backoffice.models.admin import AdminCreate, AdminRole, AdminStatus
from backoffice.services.admin_service import AdminService
from backoffice.services.database import DatabaseManager, initialize_database, shutdown_database
from backoffice.services.member_status_service import MemberStatusService

TEST_PASSWORD = "motdepasse-test"
JWT_TEST_SECRET = "test-secret"


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pin environment-dependent settings for every test."""
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("JWT_SECRET", JWT_TEST_SECRET)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    reset_token_service()


@pytest.fixture
def test_database_url(tmp_path) -> str:
    """Provide a file-based SQLite URL (one database per test)."""
    return f"sqlite+aiosqlite:///{tmp_path}/test_backoffice.db"


@pytest.fixture
async def db_manager(test_database_url: str) -> AsyncGenerator[DatabaseManager, None]:
    """Initialize the process-wide database manager with a fresh schema.

    The ASGI test transport does not run the application lifespan, so the
    startup steps are replayed here.
    """
    manager = initialize_database(test_database_url)
    await manager.initialize_async()
    await manager.create_tables()
    async with manager.get_async_session() as session:
        await MemberStatusService(session).ensure_system_statuses()

    yield manager

    await shutdown_database()


@pytest.fixture
async def db_session(db_manager: DatabaseManager) -> AsyncGenerator[AsyncSession, None]:
    """Provide a session on the test database, committed on exit."""
    async with db_manager.get_async_session() as session:
        yield session


@pytest.fixture
def token_service() -> TokenService:
    return get_token_service()


@pytest.fixture
def admin_headers(
    db_manager: DatabaseManager, token_service: TokenService
) -> Callable[..., Awaitable[dict[str, str]]]:
    """Factory creating an active administrator and returning its auth headers.

    Example:
        headers = await admin_headers(AdminRole.EVENTS_MANAGER)
    """

    async def _create(role: AdminRole = AdminRole.SUPER_ADMIN, email: str | None = None) -> dict[str, str]:
        email = email or f"{role.value.replace('_', '-')}@example.org"
        async with db_manager.get_async_session() as session:
            service = AdminService(session)
            if await service.get(email) is None:
                await service.create_admin(
                    AdminCreate(
                        email=email,
                        first_name="Test",
                        last_name=role.value,
                        password=TEST_PASSWORD,
                        role=role,
                    ),
                    added_by=None,
                    status=AdminStatus.ACTIVE,
                )
        token = token_service.create_access_token(email, role.value)
        return {"Authorization": f"Bearer {token}"}

    return _create


@pytest.fixture
async def client(db_manager: DatabaseManager) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the FastAPI app, with a fresh chatbot rate limiter."""
    configure_chatbot_rate_limiter(RateLimiter())

    # 500 responses are asserted on, not re-raised into the test
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def super_admin(admin_headers) -> dict[str, str]:
    return await admin_headers(AdminRole.SUPER_ADMIN)
