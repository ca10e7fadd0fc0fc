"""Events and inscriptions."""

import uuid

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.event import (
    Event,
    EventCreate,
    EventDB,
    EventStatus,
    EventUpdate,
    InscriptionCreate,
    InscriptionDB,
)
from backoffice.models.member import ActivityType
from backoffice.services.errors import BusinessRuleError, ConflictError, NotFoundError, flush_unique
from backoffice.services.member_service import MemberService
from backoffice.services.pagination import paginate

logger = structlog.get_logger(__name__)


class EventService:
    """Events with registrations; registrations feed the member activity journal."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def get_event(self, event_id: uuid.UUID) -> EventDB:
        """Load an event by id.

        Args:
            event_id: Event UUID

        Returns:
            Event ORM instance

        Raises:
            NotFoundError: If the event does not exist
        """
        event = await self.db_session.get(EventDB, event_id)
        if event is None:
            raise NotFoundError("Événement introuvable")
        return event

    async def list_events(
        self, page: int, limit: int, status: EventStatus | None = None
    ) -> tuple[list[Event], int]:
        """Page through events, newest date first.

        Args:
            page: 1-based page number
            limit: Page size
            status: Optional status filter

        Returns:
            Tuple of (events with registration counts, total matching events)
        """
        query = select(EventDB)
        if status is not None:
            query = query.where(EventDB.status == status.value)
        rows, total = await paginate(self.db_session, query.order_by(EventDB.date.desc()), page, limit)
        return await self._with_counts(rows), total

    async def to_event(self, event: EventDB) -> Event:
        return (await self._with_counts([event]))[0]

    async def create_event(self, data: EventCreate, actor: str) -> EventDB:
        """Create an event.

        Args:
            data: Validated event payload
            actor: E-mail of the administrator creating it

        Returns:
            The flushed event
        """
        values = data.model_dump()
        values["status"] = data.status.value
        event = EventDB(**values, updated_by=actor)
        self.db_session.add(event)
        await self.db_session.flush()
        logger.info("event_created", event_id=str(event.id), actor=actor)
        return event

    async def update_event(self, event_id: uuid.UUID, data: EventUpdate, actor: str) -> EventDB:
        """Apply a partial update; omitted fields are left untouched.

        Raises:
            NotFoundError: If the event does not exist
        """
        event = await self.get_event(event_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(event, field, value.value if isinstance(value, EventStatus) else value)
        event.updated_by = actor
        await self.db_session.flush()
        return event

    async def update_status(self, event_id: uuid.UUID, status: EventStatus, actor: str) -> EventDB:
        """Change the lifecycle status of an event."""
        event = await self.get_event(event_id)
        event.status = status.value
        event.updated_by = actor
        await self.db_session.flush()
        logger.info("event_status_changed", event_id=str(event.id), status=status.value, actor=actor)
        return event

    async def delete_event(self, event_id: uuid.UUID) -> None:
        event = await self.get_event(event_id)
        await self.db_session.delete(event)
        await self.db_session.flush()

    # ===== Inscriptions =====

    async def list_inscriptions(self, event_id: uuid.UUID) -> list[InscriptionDB]:
        """Registrations of an event in sign-up order.

        Raises:
            NotFoundError: If the event does not exist
        """
        await self.get_event(event_id)
        result = await self.db_session.execute(
            select(InscriptionDB).where(InscriptionDB.event_id == event_id).order_by(InscriptionDB.created_at)
        )
        return list(result.scalars().all())

    async def register(self, data: InscriptionCreate) -> InscriptionDB:
        """Register someone to a published event.

        Raises:
            NotFoundError: If the event does not exist
            ConflictError: If this e-mail is already registered
            BusinessRuleError: If the event is not open or is full
        """
        email = data.email.lower()
        event = await self.get_event(data.event_id)
        if event.status != EventStatus.PUBLISHED.value:
            raise BusinessRuleError("Les inscriptions ne sont pas ouvertes pour cet événement")

        existing = await self.db_session.execute(
            select(InscriptionDB.id).where(InscriptionDB.event_id == event.id, InscriptionDB.email == email)
        )
        if existing.first() is not None:
            raise ConflictError("Vous êtes déjà inscrit à cet événement")

        if event.max_participants:
            count = await self._count_inscriptions(event.id)
            if count >= event.max_participants:
                raise BusinessRuleError(
                    f"L'événement est complet ({event.max_participants} participants maximum)"
                )

        inscription = InscriptionDB(**data.model_dump(exclude={"email"}), email=email)
        self.db_session.add(inscription)
        await flush_unique(self.db_session, "Vous êtes déjà inscrit à cet événement")

        await MemberService(self.db_session).track_activity(
            email, ActivityType.EVENT_REGISTERED, "event", str(event.id), event.title
        )
        logger.info("inscription_created", event_id=str(event.id), inscription_id=str(inscription.id))
        return inscription

    async def unsubscribe(self, event_id: uuid.UUID, name: str, email: str) -> None:
        """Public unsubscription, matched on name and e-mail."""
        event = await self.get_event(event_id)
        if not event.allow_unsubscribe:
            raise BusinessRuleError("La désinscription n'est pas autorisée pour cet événement")

        result = await self.db_session.execute(
            select(InscriptionDB).where(
                InscriptionDB.event_id == event.id,
                InscriptionDB.email == email.lower(),
                InscriptionDB.name == name,
            )
        )
        inscription = result.scalar_one_or_none()
        if inscription is None:
            raise NotFoundError("Inscription introuvable avec ce nom et cet email")

        await self.db_session.delete(inscription)
        await self.db_session.flush()

        await MemberService(self.db_session).track_activity(
            email, ActivityType.EVENT_UNREGISTERED, "event", str(event.id), event.title
        )

    async def delete_inscription(self, inscription_id: uuid.UUID) -> None:
        inscription = await self.db_session.get(InscriptionDB, inscription_id)
        if inscription is None:
            raise NotFoundError("Inscription introuvable")
        await self.db_session.delete(inscription)
        await self.db_session.flush()

    async def _count_inscriptions(self, event_id: uuid.UUID) -> int:
        result = await self.db_session.execute(
            select(func.count(InscriptionDB.id)).where(InscriptionDB.event_id == event_id)
        )
        return result.scalar() or 0

    async def _with_counts(self, events: list[EventDB]) -> list[Event]:
        if not events:
            return []
        result = await self.db_session.execute(
            select(InscriptionDB.event_id, func.count(InscriptionDB.id))
            .where(InscriptionDB.event_id.in_([e.id for e in events]))
            .group_by(InscriptionDB.event_id)
        )
        counts = dict(result.all())
        models = []
        for event in events:
            model = Event.model_validate(event)
            model.inscription_count = counts.get(event.id, 0)
            models.append(model)
        return models
