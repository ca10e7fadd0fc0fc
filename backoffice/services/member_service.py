"""Members CRM: members, activity journal, tags, tasks and relations."""

import uuid

import structlog
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.base import utcnow
from backoffice.models.member import (
    ACTIVITY_SCORES,
    ActivityType,
    Member,
    MemberActivityDB,
    MemberCreate,
    MemberDB,
    MemberRelationCreate,
    MemberRelationDB,
    MemberStatusDB,
    MemberTag,
    MemberTagAssignmentDB,
    MemberTagCreate,
    MemberTagDB,
    MemberTagUpdate,
    MemberTaskCreate,
    MemberTaskDB,
    MemberTaskUpdate,
    MemberUpdate,
    RelationType,
    TaskFilter,
    TaskStatus,
)
from backoffice.models.tracking import EntityType, MetricType, TrackingMetricCreate
from backoffice.services.errors import BusinessRuleError, ConflictError, NotFoundError, flush_unique
from backoffice.services.pagination import paginate
from backoffice.services.tracking_service import TrackingService

logger = structlog.get_logger(__name__)

# Always valid, even without a member_statuses row
SYSTEM_STATUS_CODES = ("active", "proposed")


class MemberService:
    """Service for the members CRM."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    # ===== Members =====

    async def get_member(self, email: str) -> MemberDB:
        """Load a member by e-mail, case-insensitively.

        Args:
            email: Member e-mail

        Returns:
            Member ORM instance

        Raises:
            NotFoundError: If no member has this e-mail
        """
        result = await self.db_session.execute(select(MemberDB).where(MemberDB.email == email.lower()))
        member = result.scalar_one_or_none()
        if member is None:
            raise NotFoundError("Membre non trouvé")
        return member

    async def get_member_with_tags(self, email: str) -> Member:
        """Load a member together with its tags."""
        member = await self.get_member(email)
        tags = await self._tags_by_member([member.email])
        return self._to_member(member, tags)

    async def list_members(
        self,
        page: int,
        limit: int,
        search: str | None = None,
        status: str | None = None,
        tag_id: uuid.UUID | None = None,
    ) -> tuple[list[Member], int]:
        """Paginated member list, most recently active first."""
        query = select(MemberDB)

        if status and status != "all":
            query = query.where(MemberDB.status == status)
        if search and search.strip():
            pattern = f"%{search.strip().lower()}%"
            query = query.where(
                or_(
                    func.lower(MemberDB.email).like(pattern),
                    func.lower(MemberDB.first_name).like(pattern),
                    func.lower(MemberDB.last_name).like(pattern),
                    func.lower(MemberDB.company).like(pattern),
                )
            )
        if tag_id is not None:
            query = query.where(
                MemberDB.email.in_(
                    select(MemberTagAssignmentDB.member_email).where(MemberTagAssignmentDB.tag_id == tag_id)
                )
            )

        query = query.order_by(MemberDB.last_activity_at.desc(), MemberDB.email)
        rows, total = await paginate(self.db_session, query, page, limit)

        tags = await self._tags_by_member([m.email for m in rows])
        return [self._to_member(m, tags) for m in rows], total

    async def create_member(self, data: MemberCreate, actor: str | None = None) -> Member:
        """Create a member.

        Raises:
            ConflictError: If the e-mail already belongs to a member
            BusinessRuleError: If the status code is unknown or inactive
        """
        email = data.email.lower()
        existing = await self.db_session.execute(select(MemberDB.id).where(MemberDB.email == email))
        if existing.first() is not None:
            raise ConflictError(f"Un membre avec l'email {email} existe déjà")

        await self._check_status_code(data.status)

        now = utcnow()
        member = MemberDB(
            **data.model_dump(exclude={"email"}),
            email=email,
            engagement_score=0,
            activity_count=0,
            first_seen_at=now,
            last_activity_at=now,
        )
        self.db_session.add(member)
        await flush_unique(self.db_session, f"Un membre avec l'email {email} existe déjà")

        if data.status == "proposed":
            await TrackingService(self.db_session).record_metric(
                TrackingMetricCreate(
                    entity_type=EntityType.MEMBER,
                    entity_id=str(member.id),
                    entity_email=email,
                    metric_type=MetricType.STATUS_CHANGE,
                    metric_value=0,
                    description=f"Membre proposé par {data.proposed_by or actor or 'inconnu'}",
                ),
                recorded_by=actor or data.proposed_by,
            )

        logger.info("member_created", email=email, status=data.status)
        return self._to_member(member, {})

    async def update_member(self, email: str, data: MemberUpdate, actor: str) -> Member:
        """Update a member; status changes are recorded as tracking metrics."""
        member = await self.get_member(email)
        changes = data.model_dump(exclude_unset=True)

        new_status = changes.get("status")
        old_status = member.status
        if new_status is not None and new_status != old_status:
            await self._check_status_code(new_status)

        for field, value in changes.items():
            setattr(member, field, value)
        await self.db_session.flush()

        if new_status is not None and new_status != old_status:
            tracking = TrackingService(self.db_session)
            await tracking.record_metric(
                TrackingMetricCreate(
                    entity_type=EntityType.MEMBER,
                    entity_id=str(member.id),
                    entity_email=member.email,
                    metric_type=MetricType.STATUS_CHANGE,
                    metric_value=1 if new_status == "active" else 0,
                    description=f'Statut changé de "{old_status}" à "{new_status}"',
                ),
                recorded_by=actor,
            )
            if old_status == "proposed" and new_status == "active":
                await tracking.record_metric(
                    TrackingMetricCreate(
                        entity_type=EntityType.MEMBER,
                        entity_id=str(member.id),
                        entity_email=member.email,
                        metric_type=MetricType.CONVERSION,
                        metric_value=1,
                        description="Conversion de membre proposé en membre actif",
                    ),
                    recorded_by=actor,
                )

        tags = await self._tags_by_member([member.email])
        return self._to_member(member, tags)

    async def delete_member(self, email: str) -> None:
        """Delete a member along with everything attached to it."""
        member = await self.get_member(email)
        await self.db_session.delete(member)
        await self.db_session.flush()
        logger.info("member_deleted", email=member.email)

    async def _check_status_code(self, code: str) -> None:
        if code in SYSTEM_STATUS_CODES:
            return
        result = await self.db_session.execute(
            select(MemberStatusDB.id).where(MemberStatusDB.code == code, MemberStatusDB.is_active.is_(True))
        )
        if result.first() is None:
            raise BusinessRuleError(f"Statut inconnu ou inactif: {code}")

    # ===== Activity journal =====

    async def track_activity(
        self,
        email: str,
        activity_type: ActivityType,
        entity_type: str,
        entity_id: str | None = None,
        entity_title: str | None = None,
    ) -> MemberActivityDB | None:
        """Record an activity for a known member and update its engagement.

        Unknown e-mails are ignored.

        Returns:
            The activity row, or None when no member has this e-mail
        """
        email = email.lower()
        exists = await self.db_session.execute(select(MemberDB.id).where(MemberDB.email == email))
        if exists.first() is None:
            return None

        score = ACTIVITY_SCORES[ActivityType(activity_type)]
        now = utcnow()
        activity = MemberActivityDB(
            member_email=email,
            activity_type=ActivityType(activity_type).value,
            entity_type=entity_type,
            entity_id=entity_id,
            entity_title=entity_title,
            score_impact=score,
            occurred_at=now,
        )
        self.db_session.add(activity)
        await self.db_session.execute(
            update(MemberDB)
            .where(MemberDB.email == email)
            .values(
                engagement_score=MemberDB.engagement_score + score,
                activity_count=MemberDB.activity_count + 1,
                last_activity_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db_session.flush()

        logger.info(
            "member_activity_tracked",
            email=email,
            activity_type=activity.activity_type,
            score_impact=score,
        )
        return activity

    async def list_activities(self, email: str) -> list[MemberActivityDB]:
        """Activity journal of a member, most recent first.

        Raises:
            NotFoundError: If the member does not exist
        """
        await self.get_member(email)
        result = await self.db_session.execute(
            select(MemberActivityDB)
            .where(MemberActivityDB.member_email == email.lower())
            .order_by(MemberActivityDB.occurred_at.desc())
        )
        return list(result.scalars().all())

    # ===== Tags =====

    async def list_tags(self) -> list[MemberTagDB]:
        """All tags, alphabetically."""
        result = await self.db_session.execute(select(MemberTagDB).order_by(MemberTagDB.name))
        return list(result.scalars().all())

    async def get_tag(self, tag_id: uuid.UUID) -> MemberTagDB:
        """Load a tag by id.

        Raises:
            NotFoundError: If the tag does not exist
        """
        tag = await self.db_session.get(MemberTagDB, tag_id)
        if tag is None:
            raise NotFoundError("Tag non trouvé")
        return tag

    async def create_tag(self, data: MemberTagCreate) -> MemberTagDB:
        """Create a tag.

        Raises:
            ConflictError: If a tag with this name exists
        """
        await self._check_tag_name(data.name)
        tag = MemberTagDB(**data.model_dump())
        self.db_session.add(tag)
        await flush_unique(self.db_session, f'Un tag nommé "{data.name}" existe déjà')
        return tag

    async def update_tag(self, tag_id: uuid.UUID, data: MemberTagUpdate) -> MemberTagDB:
        """Rename or recolour a tag.

        Raises:
            NotFoundError: If the tag does not exist
            ConflictError: If the new name is taken
        """
        tag = await self.get_tag(tag_id)
        changes = data.model_dump(exclude_unset=True)
        if "name" in changes and changes["name"] != tag.name:
            await self._check_tag_name(changes["name"])
        for field, value in changes.items():
            setattr(tag, field, value)
        await flush_unique(self.db_session, f'Un tag nommé "{tag.name}" existe déjà')
        return tag

    async def delete_tag(self, tag_id: uuid.UUID) -> None:
        """Delete a tag and remove it from every member."""
        tag = await self.get_tag(tag_id)
        await self.db_session.execute(delete(MemberTagAssignmentDB).where(MemberTagAssignmentDB.tag_id == tag.id))
        await self.db_session.delete(tag)
        await self.db_session.flush()

    async def assign_tag(self, email: str, tag_id: uuid.UUID, actor: str) -> MemberTagAssignmentDB:
        """Attach a tag to a member.

        Args:
            email: Member e-mail
            tag_id: Tag UUID
            actor: E-mail of the administrator

        Returns:
            The new assignment

        Raises:
            NotFoundError: If the member or the tag does not exist
            ConflictError: If the member already has this tag
        """
        member = await self.get_member(email)
        tag = await self.get_tag(tag_id)

        existing = await self.db_session.execute(
            select(MemberTagAssignmentDB.id).where(
                MemberTagAssignmentDB.member_email == member.email,
                MemberTagAssignmentDB.tag_id == tag.id,
            )
        )
        if existing.first() is not None:
            raise ConflictError("Ce tag est déjà assigné à ce membre")

        assignment = MemberTagAssignmentDB(member_email=member.email, tag_id=tag.id, assigned_by=actor)
        self.db_session.add(assignment)
        await flush_unique(self.db_session, "Ce tag est déjà assigné à ce membre")
        return assignment

    async def unassign_tag(self, email: str, tag_id: uuid.UUID) -> None:
        """Detach a tag from a member.

        Raises:
            NotFoundError: If the member does not carry this tag
        """
        result = await self.db_session.execute(
            delete(MemberTagAssignmentDB).where(
                MemberTagAssignmentDB.member_email == email.lower(),
                MemberTagAssignmentDB.tag_id == tag_id,
            )
        )
        if result.rowcount == 0:
            raise NotFoundError("Assignation de tag non trouvée")

    async def _check_tag_name(self, name: str) -> None:
        existing = await self.db_session.execute(select(MemberTagDB.id).where(MemberTagDB.name == name))
        if existing.first() is not None:
            raise ConflictError(f'Un tag nommé "{name}" existe déjà')

    async def _tags_by_member(self, emails: list[str]) -> dict[str, list[MemberTag]]:
        if not emails:
            return {}
        result = await self.db_session.execute(
            select(MemberTagAssignmentDB.member_email, MemberTagDB)
            .join(MemberTagDB, MemberTagDB.id == MemberTagAssignmentDB.tag_id)
            .where(MemberTagAssignmentDB.member_email.in_(emails))
            .order_by(MemberTagDB.name)
        )
        tags: dict[str, list[MemberTag]] = {}
        for email, tag in result.all():
            tags.setdefault(email, []).append(MemberTag.model_validate(tag))
        return tags

    @staticmethod
    def _to_member(member: MemberDB, tags: dict[str, list[MemberTag]]) -> Member:
        model = Member.model_validate(member)
        model.tags = tags.get(member.email, [])
        return model

    # ===== Tasks =====

    async def list_member_tasks(self, email: str) -> list[MemberTaskDB]:
        """Tasks of a member; dated tasks first, by due date."""
        member = await self.get_member(email)
        result = await self.db_session.execute(
            select(MemberTaskDB)
            .where(MemberTaskDB.member_email == member.email)
            .order_by(MemberTaskDB.due_date.is_(None), MemberTaskDB.due_date, MemberTaskDB.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_tasks(self, filters: TaskFilter) -> list[MemberTaskDB]:
        """Tasks across all members; overdue means past due and still open."""
        query = select(MemberTaskDB)
        if filters.status is not None:
            query = query.where(MemberTaskDB.status == filters.status.value)
        if filters.assigned_to:
            query = query.where(MemberTaskDB.assigned_to == filters.assigned_to.lower())
        if filters.overdue:
            query = query.where(
                MemberTaskDB.due_date < utcnow(),
                MemberTaskDB.status.in_((TaskStatus.TODO.value, TaskStatus.IN_PROGRESS.value)),
            )
        result = await self.db_session.execute(query.order_by(MemberTaskDB.due_date, MemberTaskDB.created_at))
        return list(result.scalars().all())

    async def get_task(self, task_id: uuid.UUID) -> MemberTaskDB:
        """Load a task by id.

        Raises:
            NotFoundError: If the task does not exist
        """
        task = await self.db_session.get(MemberTaskDB, task_id)
        if task is None:
            raise NotFoundError("Tâche non trouvée")
        return task

    async def create_task(self, email: str, data: MemberTaskCreate, actor: str) -> MemberTaskDB:
        """Create a follow-up task on a member.

        Args:
            email: Member e-mail
            data: Task payload
            actor: E-mail of the administrator creating it

        Returns:
            The flushed task

        Raises:
            NotFoundError: If the member does not exist
        """
        member = await self.get_member(email)
        values = data.model_dump()
        values["task_type"] = data.task_type.value
        if data.assigned_to:
            values["assigned_to"] = data.assigned_to.lower()
        task = MemberTaskDB(**values, member_email=member.email, created_by=actor)
        self.db_session.add(task)
        await self.db_session.flush()
        logger.info("member_task_created", email=member.email, task_id=str(task.id))
        return task

    async def update_task(self, task_id: uuid.UUID, data: MemberTaskUpdate, actor: str) -> MemberTaskDB:
        """Update a task; completing it stamps completed_at/completed_by."""
        task = await self.get_task(task_id)
        changes = data.model_dump(exclude_unset=True)

        status = changes.get("status")
        if status is not None:
            if status == TaskStatus.COMPLETED and task.status != TaskStatus.COMPLETED.value:
                task.completed_at = utcnow()
                task.completed_by = actor
            elif status != TaskStatus.COMPLETED:
                task.completed_at = None
                task.completed_by = None

        for field, value in changes.items():
            setattr(task, field, value.value if hasattr(value, "value") else value)
        await self.db_session.flush()
        return task

    async def delete_task(self, task_id: uuid.UUID) -> None:
        task = await self.get_task(task_id)
        await self.db_session.delete(task)
        await self.db_session.flush()

    # ===== Relations =====

    async def create_relation(self, email: str, data: MemberRelationCreate, actor: str) -> MemberRelationDB:
        """Link two members.

        Raises:
            BusinessRuleError: If a member is linked to itself
            ConflictError: If the same relation already exists
        """
        member_email = email.lower()
        related_email = data.related_member_email.lower()
        if member_email == related_email:
            raise BusinessRuleError("Un membre ne peut pas être en relation avec lui-même")

        await self.get_member(member_email)
        await self.get_member(related_email)

        existing = await self.db_session.execute(
            select(MemberRelationDB.id).where(
                MemberRelationDB.member_email == member_email,
                MemberRelationDB.related_member_email == related_email,
                MemberRelationDB.relation_type == data.relation_type.value,
            )
        )
        if existing.first() is not None:
            raise ConflictError("Cette relation existe déjà")

        relation = MemberRelationDB(
            member_email=member_email,
            related_member_email=related_email,
            relation_type=data.relation_type.value,
            description=data.description,
            created_by=actor,
        )
        self.db_session.add(relation)
        await self.db_session.flush()
        return relation

    async def list_member_relations(self, email: str) -> list[MemberRelationDB]:
        """Relations in which the member appears on either side."""
        member = await self.get_member(email)
        result = await self.db_session.execute(
            select(MemberRelationDB)
            .where(
                or_(
                    MemberRelationDB.member_email == member.email,
                    MemberRelationDB.related_member_email == member.email,
                )
            )
            .order_by(MemberRelationDB.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_relations(self, relation_type: RelationType | None = None) -> list[MemberRelationDB]:
        """All relations, optionally of a single type, newest first."""
        query = select(MemberRelationDB)
        if relation_type is not None:
            query = query.where(MemberRelationDB.relation_type == relation_type.value)
        result = await self.db_session.execute(query.order_by(MemberRelationDB.created_at.desc()))
        return list(result.scalars().all())

    async def delete_relation(self, relation_id: uuid.UUID) -> None:
        relation = await self.db_session.get(MemberRelationDB, relation_id)
        if relation is None:
            raise NotFoundError("Relation non trouvée")
        await self.db_session.delete(relation)
        await self.db_session.flush()
