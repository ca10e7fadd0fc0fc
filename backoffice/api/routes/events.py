"""Event and inscription endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.middleware.auth import require_permission
from backoffice.models.admin import AdminDB
from backoffice.models.event import (
    Event,
    EventCreate,
    EventStatus,
    EventStatusUpdate,
    EventUpdate,
    Inscription,
    InscriptionCreate,
    UnsubscribeRequest,
)
from backoffice.services.database import get_db_session
from backoffice.services.errors import NotFoundError
from backoffice.services.event_service import EventService
from backoffice.services.pagination import DEFAULT_LIMIT, MAX_LIMIT, MAX_PAGE, Page

router = APIRouter(tags=["events"])


@router.get("/api/events", response_model=Page[Event])
async def list_published_events(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    db: AsyncSession = Depends(get_db_session),
) -> Page[Event]:
    """Public list of published events."""
    events, total = await EventService(db).list_events(page, limit, status=EventStatus.PUBLISHED)
    return Page[Event].build(events, total, page, limit)


@router.get("/api/admin/events", response_model=Page[Event])
async def list_all_events(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    status_filter: EventStatus | None = Query(None, alias="status"),
    admin: AdminDB = Depends(require_permission("events.read")),
    db: AsyncSession = Depends(get_db_session),
) -> Page[Event]:
    events, total = await EventService(db).list_events(page, limit, status=status_filter)
    return Page[Event].build(events, total, page, limit)


@router.get("/api/events/{event_id}")
async def get_event(event_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)) -> dict:
    """Public event page; drafts are not visible."""
    service = EventService(db)
    event = await service.get_event(event_id)
    if event.status == EventStatus.DRAFT.value:
        raise NotFoundError("Événement introuvable")
    return {"success": True, "data": await service.to_event(event)}


@router.post("/api/events", status_code=status.HTTP_201_CREATED)
async def create_event(
    data: EventCreate,
    admin: AdminDB = Depends(require_permission("events.write")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    service = EventService(db)
    event = await service.create_event(data, actor=admin.email)
    return {"success": True, "data": await service.to_event(event)}


@router.put("/api/events/{event_id}")
async def update_event(
    event_id: uuid.UUID,
    data: EventUpdate,
    admin: AdminDB = Depends(require_permission("events.write")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    service = EventService(db)
    event = await service.update_event(event_id, data, actor=admin.email)
    return {"success": True, "data": await service.to_event(event)}


@router.patch("/api/events/{event_id}/status")
async def update_event_status(
    event_id: uuid.UUID,
    data: EventStatusUpdate,
    admin: AdminDB = Depends(require_permission("events.write")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    service = EventService(db)
    event = await service.update_status(event_id, data.status, actor=admin.email)
    return {"success": True, "data": await service.to_event(event)}


@router.delete("/api/events/{event_id}")
async def delete_event(
    event_id: uuid.UUID,
    admin: AdminDB = Depends(require_permission("events.delete")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Delete an event and, by cascade, its inscriptions."""
    await EventService(db).delete_event(event_id)
    return {"success": True}


# ===== Inscriptions =====


@router.get("/api/events/{event_id}/inscriptions")
async def list_inscriptions(
    event_id: uuid.UUID,
    admin: AdminDB = Depends(require_permission("events.read")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    inscriptions = await EventService(db).list_inscriptions(event_id)
    return {"success": True, "data": [Inscription.model_validate(i) for i in inscriptions]}


@router.post("/api/inscriptions", status_code=status.HTTP_201_CREATED)
async def create_inscription(data: InscriptionCreate, db: AsyncSession = Depends(get_db_session)) -> dict:
    """Public registration to a published event (one per e-mail, capacity enforced)."""
    inscription = await EventService(db).register(data)
    return {"success": True, "data": Inscription.model_validate(inscription)}


@router.post("/api/events/{event_id}/unsubscribe")
async def unsubscribe(
    event_id: uuid.UUID,
    data: UnsubscribeRequest,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Public unsubscription, only for events that allow it."""
    await EventService(db).unsubscribe(event_id, data.name, data.email)
    return {"success": True}


@router.delete("/api/inscriptions/{inscription_id}")
async def delete_inscription(
    inscription_id: uuid.UUID,
    admin: AdminDB = Depends(require_permission("admin.edit")),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    await EventService(db).delete_inscription(inscription_id)
    return {"success": True}
