"""Configurable member status endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.middleware.auth import require_permission
from backoffice.models.admin import AdminDB
from backoffice.models.member import (
    MemberStatus,
    MemberStatusCreate,
    MemberStatusUpdate,
    StatusCategory,
    StatusOrder,
)
from backoffice.services.database import get_db_session
from backoffice.services.member_status_service import MemberStatusService

router = APIRouter(prefix="/api/admin/member-statuses", tags=["member-statuses"])

view = require_permission("admin.view")
manage = require_permission("admin.manage")


@router.get("")
async def list_statuses(
    category: StatusCategory | None = Query(None),
    is_active: bool | None = Query(None),
    admin: AdminDB = Depends(view),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    statuses = await MemberStatusService(db).list_statuses(category, is_active)
    return {"success": True, "data": [MemberStatus.model_validate(s) for s in statuses]}


# Declared before "/{status_id}" so "reorder" is not parsed as an id
@router.put("/reorder")
async def reorder_statuses(
    orders: list[StatusOrder],
    admin: AdminDB = Depends(manage),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    await MemberStatusService(db).reorder_statuses(orders)
    return {"success": True}


@router.get("/{status_id}")
async def get_status(
    status_id: uuid.UUID,
    admin: AdminDB = Depends(view),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    found = await MemberStatusService(db).get_status(status_id)
    return {"success": True, "data": MemberStatus.model_validate(found)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_status(
    data: MemberStatusCreate,
    admin: AdminDB = Depends(manage),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    created = await MemberStatusService(db).create_status(data)
    return {"success": True, "data": MemberStatus.model_validate(created)}


@router.put("/{status_id}")
async def update_status(
    status_id: uuid.UUID,
    data: MemberStatusUpdate,
    admin: AdminDB = Depends(manage),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    updated = await MemberStatusService(db).update_status(status_id, data)
    return {"success": True, "data": MemberStatus.model_validate(updated)}


@router.delete("/{status_id}")
async def delete_status(
    status_id: uuid.UUID,
    admin: AdminDB = Depends(manage),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    await MemberStatusService(db).delete_status(status_id)
    return {"success": True}
