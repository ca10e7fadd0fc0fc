"""Authentication and permission dependencies for FastAPI."""

from collections.abc import Callable

from fastapi import Cookie, Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.auth.permissions import check_permission
from backoffice.auth.tokens import TokenService, get_token_service
from backoffice.models.admin import AdminDB, AdminStatus
from backoffice.services.admin_service import AdminService
from backoffice.services.database import get_db_session

AUTH_COOKIE = "auth_token"

# Security scheme for Swagger UI
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_token(authorization: str | None, cookie_token: str | None) -> str:
    """Pick the access token from the Authorization header, then the cookie.

    Raises:
        HTTPException: 401 if no usable token is present
    """
    if authorization:
        token = TokenService.extract_token_from_header(authorization)
        if not token:
            raise _unauthorized("Invalid Authorization header format. Expected: Bearer <token>")
        return token

    if cookie_token:
        return cookie_token

    raise _unauthorized("Authentification requise")


async def get_current_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    authorization: str = Header(None),
    auth_token: str = Cookie(None),
    db: AsyncSession = Depends(get_db_session),
) -> AdminDB:
    """FastAPI dependency for getting the authenticated administrator.

    The token is validated, then the admin record is loaded so that
    deactivated accounts lose access before their token expires.

    Args:
        request: FastAPI request (the admin e-mail is stored on its state)
        credentials: Bearer credentials, None for other schemes
        authorization: Authorization header
        auth_token: Session cookie used by the browser UI
        db: Database session

    Returns:
        Admin ORM instance

    Example:
        @router.get("/api/auth/me")
        async def me(admin: AdminDB = Depends(get_current_admin)):
            return Admin.model_validate(admin)
    """
    if credentials is not None:
        token = credentials.credentials
    else:
        token = resolve_token(authorization, auth_token)

    claims = get_token_service().decode_token(token)
    if not claims:
        raise _unauthorized("Invalid or expired token")

    admin = await AdminService(db).get(claims["email"])
    if admin is None or not admin.is_active or admin.status != AdminStatus.ACTIVE.value:
        raise _unauthorized("Compte administrateur inactif ou inexistant")

    request.state.user_id = admin.email
    return admin


def require_permission(permission: str) -> Callable:
    """Build a dependency that requires a permission of the current admin.

    Args:
        permission: Permission name such as ``events.write``

    Returns:
        Dependency returning the current admin; raises PermissionError (403)

    Example:
        @router.delete("/api/events/{event_id}")
        async def delete_event(admin: AdminDB = Depends(require_permission("events.delete"))):
            ...
    """

    async def dependency(admin: AdminDB = Depends(get_current_admin)) -> AdminDB:
        check_permission(admin.role, permission)
        return admin

    return dependency
