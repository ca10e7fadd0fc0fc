"""Idea box and vote endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.middleware.auth import require_permission
from backoffice.models.admin import AdminDB
from backoffice.models.idea import (
    Idea,
    IdeaCreate,
    IdeaFeaturedUpdate,
    IdeaStatus,
    IdeaStatusUpdate,
    IdeaUpdate,
    Vote,
    VoteCreate,
)
from backoffice.services.database import get_db_session
from backoffice.services.idea_service import IdeaService
from backoffice.services.pagination import DEFAULT_LIMIT, MAX_LIMIT, MAX_PAGE, Page

router = APIRouter(tags=["ideas"])


@router.get("/api/ideas", response_model=Page[Idea])
async def list_public_ideas(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    db: AsyncSession = Depends(get_db_session),
) -> Page[Idea]:
    """Public list: rejected ideas are hidden, featured ideas come first."""
    ideas, total = await IdeaService(db).list_ideas(page, limit, public=True)
    return Page[Idea].build(ideas, total, page, limit)


@router.get("/api/admin/ideas", response_model=Page[Idea])
async def list_all_ideas(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    status_filter: IdeaStatus | None = Query(None, alias="status"),
    admin: AdminDB = Depends(require_permission("ideas.read")),
    db: AsyncSession = Depends(get_db_session),
) -> Page[Idea]:
    ideas, total = await IdeaService(db).list_ideas(page, limit, status=status_filter)
    return Page[Idea].build(ideas, total, page, limit)


@router.post("/api/ideas", status_code=status.HTTP_201_CREATED)
async def create_idea(data: IdeaCreate, db: AsyncSession = Depends(get_db_session)) -> dict:
    service = IdeaService(db)
    idea = await service.create_idea(data)
    return {"success": True, "data": await service.to_idea(idea)}


@router.put("/api/ideas/{idea_id}")
async def update_idea(
    idea_id: uuid.UUID,
    data: IdeaUpdate,
    admin: AdminDB = Depends(require_permission("ideas.write")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    service = IdeaService(db)
    idea = await service.update_idea(idea_id, data, actor=admin.email)
    return {"success": True, "data": await service.to_idea(idea)}


@router.patch("/api/ideas/{idea_id}/status")
async def update_idea_status(
    idea_id: uuid.UUID,
    data: IdeaStatusUpdate,
    admin: AdminDB = Depends(require_permission("ideas.write")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    service = IdeaService(db)
    idea = await service.update_status(idea_id, data.status, actor=admin.email)
    return {"success": True, "data": await service.to_idea(idea)}


@router.patch("/api/ideas/{idea_id}/featured")
async def update_idea_featured(
    idea_id: uuid.UUID,
    data: IdeaFeaturedUpdate,
    admin: AdminDB = Depends(require_permission("ideas.write")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    service = IdeaService(db)
    idea = await service.set_featured(idea_id, data.featured, actor=admin.email)
    return {"success": True, "data": await service.to_idea(idea)}


@router.delete("/api/ideas/{idea_id}")
async def delete_idea(
    idea_id: uuid.UUID,
    admin: AdminDB = Depends(require_permission("ideas.delete")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    await IdeaService(db).delete_idea(idea_id)
    return {"success": True}


# ===== Votes =====


@router.post("/api/votes", status_code=status.HTTP_201_CREATED)
async def create_vote(data: VoteCreate, db: AsyncSession = Depends(get_db_session)) -> dict:
    """Public vote, one per e-mail and idea."""
    vote = await IdeaService(db).vote(data)
    return {"success": True, "data": Vote.model_validate(vote)}


@router.get("/api/ideas/{idea_id}/votes")
async def list_votes(
    idea_id: uuid.UUID,
    admin: AdminDB = Depends(require_permission("ideas.read")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    votes = await IdeaService(db).list_votes(idea_id)
    return {"success": True, "data": [Vote.model_validate(v) for v in votes]}


@router.delete("/api/votes/{vote_id}")
async def delete_vote(
    vote_id: uuid.UUID,
    admin: AdminDB = Depends(require_permission("admin.edit")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    await IdeaService(db).delete_vote(vote_id)
    return {"success": True}
