"""Development request endpoints (bug reports and feature requests)."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.middleware.auth import require_permission
from backoffice.models.admin import AdminDB
from backoffice.models.development_request import (
    DevelopmentRequestCreate,
    DevelopmentRequestStatusUpdate,
    RequestStatus,
)
from backoffice.services.database import get_db_session
from backoffice.services.development_request_service import DevelopmentRequestService

router = APIRouter(prefix="/api/admin/development-requests", tags=["development-requests"])

view = require_permission("admin.view")
manage = require_permission("admin.manage")


@router.get("")
async def list_requests(
    status_filter: RequestStatus | None = Query(None, alias="status"),
    admin: AdminDB = Depends(view),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    return {"success": True, "data": await DevelopmentRequestService(db).list_requests(status_filter)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_request(
    data: DevelopmentRequestCreate,
    admin: AdminDB = Depends(view),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """File a request on behalf of the current administrator."""
    request = await DevelopmentRequestService(db).create_request(data, requester=admin)
    return {"success": True, "data": DevelopmentRequestService.to_api(request)}


@router.patch("/{request_id}/status")
async def update_request_status(
    request_id: uuid.UUID,
    data: DevelopmentRequestStatusUpdate,
    admin: AdminDB = Depends(manage),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    request = await DevelopmentRequestService(db).update_status(request_id, data, actor=admin.email)
    return {"success": True, "data": DevelopmentRequestService.to_api(request)}


@router.delete("/{request_id}")
async def delete_request(
    request_id: uuid.UUID,
    admin: AdminDB = Depends(manage),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    await DevelopmentRequestService(db).delete_request(request_id)
    return {"success": True}
