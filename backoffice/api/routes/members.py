"""Member CRM endpoints: members, activities, tags, tasks and relations."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.middleware.auth import require_permission
from backoffice.models.admin import AdminDB
from backoffice.models.member import (
    Member,
    MemberActivity,
    MemberCreate,
    MemberRelation,
    MemberRelationCreate,
    MemberTag,
    MemberTagCreate,
    MemberTagUpdate,
    MemberTask,
    MemberTaskCreate,
    MemberTaskUpdate,
    MemberUpdate,
    RelationType,
    TaskFilter,
)
from backoffice.services.database import get_db_session
from backoffice.services.member_service import MemberService
from backoffice.services.pagination import DEFAULT_LIMIT, MAX_LIMIT, MAX_PAGE, Page

router = APIRouter(prefix="/api/admin", tags=["members"])

view = require_permission("admin.view")
edit = require_permission("admin.edit")


@router.get("/members", response_model=Page[Member])
async def list_members(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    search: str | None = Query(None, max_length=200),
    status_filter: str | None = Query(None, alias="status"),
    tag: uuid.UUID | None = Query(None),
    admin: AdminDB = Depends(view),
    db: AsyncSession = Depends(get_db_session),
) -> Page[Member]:
    members, total = await MemberService(db).list_members(
        page, limit, search=search, status=status_filter, tag_id=tag
    )
    return Page[Member].build(members, total, page, limit)


@router.post("/members", status_code=status.HTTP_201_CREATED)
async def create_member(
    data: MemberCreate,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    member = await MemberService(db).create_member(data, actor=admin.email)
    return {"success": True, "data": member}


@router.get("/members/{email}")
async def get_member(
    email: str,
    admin: AdminDB = Depends(view),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    return {"success": True, "data": await MemberService(db).get_member_with_tags(email)}


@router.put("/members/{email}")
async def update_member(
    email: str,
    data: MemberUpdate,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    member = await MemberService(db).update_member(email, data, actor=admin.email)
    return {"success": True, "data": member}


@router.delete("/members/{email}")
async def delete_member(
    email: str,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Delete a member with its activities, tags, tasks and relations."""
    await MemberService(db).delete_member(email)
    return {"success": True}


@router.get("/members/{email}/activities")
async def list_member_activities(
    email: str,
    admin: AdminDB = Depends(view),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    activities = await MemberService(db).list_activities(email)
    return {"success": True, "data": [MemberActivity.model_validate(a) for a in activities]}


# ===== Tags =====


@router.get("/member-tags")
async def list_tags(admin: AdminDB = Depends(view), db: AsyncSession = Depends(get_db_session)) -> dict:
    tags = await MemberService(db).list_tags()
    return {"success": True, "data": [MemberTag.model_validate(t) for t in tags]}


@router.post("/member-tags", status_code=status.HTTP_201_CREATED)
async def create_tag(
    data: MemberTagCreate,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    tag = await MemberService(db).create_tag(data)
    return {"success": True, "data": MemberTag.model_validate(tag)}


@router.put("/member-tags/{tag_id}")
async def update_tag(
    tag_id: uuid.UUID,
    data: MemberTagUpdate,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    tag = await MemberService(db).update_tag(tag_id, data)
    return {"success": True, "data": MemberTag.model_validate(tag)}


@router.delete("/member-tags/{tag_id}")
async def delete_tag(
    tag_id: uuid.UUID,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    await MemberService(db).delete_tag(tag_id)
    return {"success": True}


@router.post("/members/{email}/tags/{tag_id}", status_code=status.HTTP_201_CREATED)
async def assign_tag(
    email: str,
    tag_id: uuid.UUID,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    await MemberService(db).assign_tag(email, tag_id, actor=admin.email)
    return {"success": True}


@router.delete("/members/{email}/tags/{tag_id}")
async def unassign_tag(
    email: str,
    tag_id: uuid.UUID,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    await MemberService(db).unassign_tag(email, tag_id)
    return {"success": True}


# ===== Tasks =====


@router.get("/members/{email}/tasks")
async def list_member_tasks(
    email: str,
    admin: AdminDB = Depends(view),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    tasks = await MemberService(db).list_member_tasks(email)
    return {"success": True, "data": [MemberTask.model_validate(t) for t in tasks]}


@router.post("/members/{email}/tasks", status_code=status.HTTP_201_CREATED)
async def create_task(
    email: str,
    data: MemberTaskCreate,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    task = await MemberService(db).create_task(email, data, actor=admin.email)
    return {"success": True, "data": MemberTask.model_validate(task)}


@router.get("/tasks")
async def list_tasks(
    filters: TaskFilter = Depends(),
    admin: AdminDB = Depends(view),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Tasks across members, filtered by status, assignee or overdue."""
    tasks = await MemberService(db).list_tasks(filters)
    return {"success": True, "data": [MemberTask.model_validate(t) for t in tasks]}


@router.put("/tasks/{task_id}")
async def update_task(
    task_id: uuid.UUID,
    data: MemberTaskUpdate,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    task = await MemberService(db).update_task(task_id, data, actor=admin.email)
    return {"success": True, "data": MemberTask.model_validate(task)}


@router.delete("/tasks/{task_id}")
async def delete_task(
    task_id: uuid.UUID,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    await MemberService(db).delete_task(task_id)
    return {"success": True}


# ===== Relations =====


@router.get("/members/{email}/relations")
async def list_member_relations(
    email: str,
    admin: AdminDB = Depends(view),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    relations = await MemberService(db).list_member_relations(email)
    return {"success": True, "data": [MemberRelation.model_validate(r) for r in relations]}


@router.post("/members/{email}/relations", status_code=status.HTTP_201_CREATED)
async def create_relation(
    email: str,
    data: MemberRelationCreate,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    relation = await MemberService(db).create_relation(email, data, actor=admin.email)
    return {"success": True, "data": MemberRelation.model_validate(relation)}


@router.get("/relations")
async def list_relations(
    relation_type: RelationType | None = Query(None, alias="type"),
    admin: AdminDB = Depends(view),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    relations = await MemberService(db).list_relations(relation_type)
    return {"success": True, "data": [MemberRelation.model_validate(r) for r in relations]}


@router.delete("/relations/{relation_id}")
async def delete_relation(
    relation_id: uuid.UUID,
    admin: AdminDB = Depends(edit),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    await MemberService(db).delete_relation(relation_id)
    return {"success": True}
