"""Tools catalog endpoints."""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.middleware.auth import require_permission
from backoffice.models.admin import AdminDB
from backoffice.models.tool import ToolCategory, ToolCategoryCreate, ToolCategoryUpdate, ToolCreate, ToolUpdate
from backoffice.services.database import get_db_session
from backoffice.services.tool_service import ToolService

router = APIRouter(tags=["tools"])

edit = require_permission("admin.edit")


@router.get("/api/tools")
async def list_public_tools(db: AsyncSession = Depends(get_db_session)) -> dict:
    """Active tools with their category."""
    return {"success": True, "data": await ToolService(db).list_tools(active_only=True)}


@router.get("/api/tools/featured")
async def list_featured_tools(db: AsyncSession = Depends(get_db_session)) -> dict:
    return {"success": True, "data": await ToolService(db).list_tools(active_only=True, featured_only=True)}


@router.get("/api/tool-categories")
async def list_public_categories(db: AsyncSession = Depends(get_db_session)) -> dict:
    categories = await ToolService(db).list_categories(active_only=True)
    return {"success": True, "data": [ToolCategory.model_validate(c) for c in categories]}


# ===== Admin: tools =====


@router.get("/api/admin/tools")
async def list_all_tools(admin: AdminDB = Depends(edit), db: AsyncSession = Depends(get_db_session)) -> dict:
    return {"success": True, "data": await ToolService(db).list_tools()}


@router.get("/api/admin/tools/stats")
async def tool_stats(admin: AdminDB = Depends(edit), db: AsyncSession = Depends(get_db_session)) -> dict:
    return {"success": True, "data": await ToolService(db).get_stats()}


@router.post("/api/admin/tools", status_code=status.HTTP_201_CREATED)
async def create_tool(
    data: ToolCreate,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    service = ToolService(db)
    tool = await service.create_tool(data)
    return {"success": True, "data": await service.to_tool(tool)}


@router.put("/api/admin/tools/{tool_id}")
async def update_tool(
    tool_id: uuid.UUID,
    data: ToolUpdate,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    service = ToolService(db)
    tool = await service.update_tool(tool_id, data)
    return {"success": True, "data": await service.to_tool(tool)}


@router.delete("/api/admin/tools/{tool_id}")
async def delete_tool(
    tool_id: uuid.UUID,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    await ToolService(db).delete_tool(tool_id)
    return {"success": True}


# ===== Admin: categories =====


@router.get("/api/admin/tool-categories")
async def list_all_categories(
    admin: AdminDB = Depends(edit), db: AsyncSession = Depends(get_db_session)
) -> dict:
    categories = await ToolService(db).list_categories()
    return {"success": True, "data": [ToolCategory.model_validate(c) for c in categories]}


@router.post("/api/admin/tool-categories", status_code=status.HTTP_201_CREATED)
async def create_category(
    data: ToolCategoryCreate,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    category = await ToolService(db).create_category(data)
    return {"success": True, "data": ToolCategory.model_validate(category)}


@router.put("/api/admin/tool-categories/{category_id}")
async def update_category(
    category_id: uuid.UUID,
    data: ToolCategoryUpdate,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    category = await ToolService(db).update_category(category_id, data)
    return {"success": True, "data": ToolCategory.model_validate(category)}


@router.delete("/api/admin/tool-categories/{category_id}")
async def delete_category(
    category_id: uuid.UUID,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Delete a category; its tools become uncategorized."""
    await ToolService(db).delete_category(category_id)
    return {"success": True}
