"""Login and current-admin endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.middleware.auth import AUTH_COOKIE, get_current_admin
from backoffice.auth.permissions import permissions_for
from backoffice.auth.tokens import get_token_service
from backoffice.models.admin import Admin, AdminDB, LoginRequest, TokenResponse
from backoffice.services.admin_service import AdminService
from backoffice.services.database import get_db_session

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse, status_code=status.HTTP_200_OK)
async def login(
    credentials: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    """Exchange e-mail and password for an access token.

    The token is returned in the body and also set as an HttpOnly cookie
    for the browser UI.

    Raises:
        HTTPException: 401 on bad credentials or inactive account
    """
    admin = await AdminService(db).authenticate(credentials.email, credentials.password)
    if admin is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email ou mot de passe incorrect",
            headers={"WWW-Authenticate": "Bearer"},
        )

    tokens = get_token_service()
    access_token = tokens.create_access_token(admin.email, admin.role)
    response.set_cookie(
        AUTH_COOKIE,
        access_token,
        max_age=tokens.expires_in,
        httponly=True,
        samesite="lax",
    )

    return TokenResponse(
        access_token=access_token,
        expires_in=tokens.expires_in,
        user=Admin.model_validate(admin),
    )


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(response: Response) -> dict:
    response.delete_cookie(AUTH_COOKIE)
    return {"success": True}


@router.get("/me")
async def me(admin: AdminDB = Depends(get_current_admin)) -> dict:
    """Current administrator profile and granted permissions."""
    return {
        "success": True,
        "data": {
            **Admin.model_validate(admin).model_dump(mode="json"),
            "permissions": permissions_for(admin.role),
        },
    }
