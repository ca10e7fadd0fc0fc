"""Loan item endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.middleware.auth import require_permission
from backoffice.models.admin import AdminDB
from backoffice.models.loan import LoanItem, LoanItemCreate, LoanItemStatusUpdate, LoanItemUpdate, LoanStatus
from backoffice.services.database import get_db_session
from backoffice.services.loan_service import LoanService
from backoffice.services.pagination import DEFAULT_LIMIT, MAX_LIMIT, MAX_PAGE, Page

router = APIRouter(tags=["loans"])


@router.get("/api/loan-items", response_model=Page[LoanItem])
async def list_available_items(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    search: str | None = Query(None, max_length=200),
    db: AsyncSession = Depends(get_db_session),
) -> Page[LoanItem]:
    """Public list of available items, searchable by title, description or lender."""
    items, total = await LoanService(db).list_items(page, limit, search=search, public=True)
    return Page[LoanItem].build([LoanItem.model_validate(i) for i in items], total, page, limit)


@router.post("/api/loan-items", status_code=status.HTTP_201_CREATED)
async def propose_item(data: LoanItemCreate, db: AsyncSession = Depends(get_db_session)) -> dict:
    """Public proposal; the item stays pending until an admin makes it available."""
    item = await LoanService(db).propose_item(data)
    return {"success": True, "data": LoanItem.model_validate(item)}


@router.get("/api/admin/loan-items", response_model=Page[LoanItem])
async def list_all_items(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    search: str | None = Query(None, max_length=200),
    status_filter: LoanStatus | None = Query(None, alias="status"),
    admin: AdminDB = Depends(require_permission("admin.view")),
    db: AsyncSession = Depends(get_db_session),
) -> Page[LoanItem]:
    items, total = await LoanService(db).list_items(page, limit, search=search, status=status_filter)
    return Page[LoanItem].build([LoanItem.model_validate(i) for i in items], total, page, limit)


@router.get("/api/admin/loan-items/{item_id}")
async def get_item(
    item_id: uuid.UUID,
    admin: AdminDB = Depends(require_permission("admin.view")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    item = await LoanService(db).get_item(item_id)
    return {"success": True, "data": LoanItem.model_validate(item)}


@router.put("/api/admin/loan-items/{item_id}")
async def update_item(
    item_id: uuid.UUID,
    data: LoanItemUpdate,
    admin: AdminDB = Depends(require_permission("admin.edit")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    item = await LoanService(db).update_item(item_id, data, actor=admin.email)
    return {"success": True, "data": LoanItem.model_validate(item)}


@router.patch("/api/admin/loan-items/{item_id}/status")
async def update_item_status(
    item_id: uuid.UUID,
    data: LoanItemStatusUpdate,
    admin: AdminDB = Depends(require_permission("admin.edit")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    item = await LoanService(db).update_status(item_id, data.status, actor=admin.email)
    return {"success": True, "data": LoanItem.model_validate(item)}


@router.delete("/api/admin/loan-items/{item_id}")
async def delete_item(
    item_id: uuid.UUID,
    admin: AdminDB = Depends(require_permission("admin.edit")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    await LoanService(db).delete_item(item_id)
    return {"success": True}
