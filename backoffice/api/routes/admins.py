"""Administrator account management (super administrators only)."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.middleware.auth import require_permission
from backoffice.models.admin import Admin, AdminCreate, AdminDB, AdminUpdate
from backoffice.services.admin_service import AdminService
from backoffice.services.database import get_db_session

router = APIRouter(prefix="/api/admin/administrators", tags=["administrators"])

manage = require_permission("admin.manage")


@router.get("")
async def list_admins(
    admin: AdminDB = Depends(manage),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    admins = await AdminService(db).list_admins()
    return {"success": True, "data": [Admin.model_validate(a) for a in admins]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_admin(
    data: AdminCreate,
    admin: AdminDB = Depends(manage),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    created = await AdminService(db).create_admin(data, added_by=admin.email)
    return {"success": True, "data": Admin.model_validate(created)}


@router.get("/{email}")
async def get_admin(
    email: str,
    admin: AdminDB = Depends(manage),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    found = await AdminService(db).get_or_raise(email)
    return {"success": True, "data": Admin.model_validate(found)}


@router.put("/{email}")
async def update_admin(
    email: str,
    data: AdminUpdate,
    admin: AdminDB = Depends(manage),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Update profile, role or status; admins cannot demote or deactivate themselves."""
    updated = await AdminService(db).update_admin(email, data, actor=admin.email)
    return {"success": True, "data": Admin.model_validate(updated)}


@router.delete("/{email}")
async def deactivate_admin(
    email: str,
    admin: AdminDB = Depends(manage),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Deactivate an account; rows are kept for traceability."""
    updated = await AdminService(db).deactivate_admin(email, actor=admin.email)
    return {"success": True, "data": Admin.model_validate(updated)}
