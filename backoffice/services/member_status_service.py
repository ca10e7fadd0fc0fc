"""Configurable member statuses."""

import uuid

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.member import (
    MemberDB,
    MemberStatusCreate,
    MemberStatusDB,
    MemberStatusUpdate,
    StatusCategory,
    StatusOrder,
)
from backoffice.services.errors import BusinessRuleError, ConflictError, NotFoundError, flush_unique

logger = structlog.get_logger(__name__)

# Statuses the application relies on; seeded at startup and by the initial migration
SYSTEM_STATUSES = (
    {
        "code": "active",
        "label": "Actif",
        "category": StatusCategory.MEMBER.value,
        "color": "#10b981",
        "description": "Membre actif",
        "display_order": 1,
    },
    {
        "code": "proposed",
        "label": "Proposé",
        "category": StatusCategory.PROSPECT.value,
        "color": "#f59e0b",
        "description": "Membre proposé, en attente de conversion",
        "display_order": 1,
    },
)


class MemberStatusService:
    """CRUD for member_statuses.

    System statuses may only change label, color and description; they
    cannot be deleted, deactivated or reordered. A status still used by a
    member cannot be deleted.
    """

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def list_statuses(
        self, category: StatusCategory | None = None, is_active: bool | None = None
    ) -> list[MemberStatusDB]:
        """Statuses ordered by category, display order, then label.

        Args:
            category: Optional category filter
            is_active: Optional active/inactive filter

        Returns:
            List of status rows
        """
        query = select(MemberStatusDB)
        if category is not None:
            query = query.where(MemberStatusDB.category == category.value)
        if is_active is not None:
            query = query.where(MemberStatusDB.is_active.is_(is_active))
        result = await self.db_session.execute(
            query.order_by(MemberStatusDB.category, MemberStatusDB.display_order, MemberStatusDB.label)
        )
        return list(result.scalars().all())

    async def get_status(self, status_id: uuid.UUID) -> MemberStatusDB:
        """Load a status by id.

        Raises:
            NotFoundError: If the status does not exist
        """
        status = await self.db_session.get(MemberStatusDB, status_id)
        if status is None:
            raise NotFoundError(f"Statut {status_id} non trouvé")
        return status

    async def create_status(self, data: MemberStatusCreate) -> MemberStatusDB:
        """Create a custom status.

        Without an explicit display order the status goes last in its category.

        Args:
            data: Status payload

        Returns:
            The flushed status

        Raises:
            ConflictError: If the code is already taken
        """
        existing = await self.db_session.execute(select(MemberStatusDB.id).where(MemberStatusDB.code == data.code))
        if existing.first() is not None:
            raise ConflictError(f'Un statut avec le code "{data.code}" existe déjà')

        display_order = data.display_order
        if display_order is None:
            max_order = await self.db_session.execute(
                select(func.max(MemberStatusDB.display_order)).where(
                    MemberStatusDB.category == data.category.value
                )
            )
            display_order = (max_order.scalar() or 0) + 1

        status = MemberStatusDB(
            code=data.code,
            label=data.label,
            category=data.category.value,
            color=data.color,
            description=data.description,
            display_order=display_order,
            # Statuses created through the API are never system statuses
            is_system=False,
            is_active=True,
        )
        self.db_session.add(status)
        await flush_unique(self.db_session, f'Un statut avec le code "{data.code}" existe déjà')

        logger.info("member_status_created", code=status.code, category=status.category)
        return status

    async def update_status(self, status_id: uuid.UUID, data: MemberStatusUpdate) -> MemberStatusDB:
        """Update a status; system statuses keep their order and stay active.

        Raises:
            NotFoundError: If the status does not exist
            BusinessRuleError: If a system status would be reordered or deactivated
        """
        status = await self.get_status(status_id)
        changes = data.model_dump(exclude_unset=True)

        if status.is_system and ("display_order" in changes or "is_active" in changes):
            raise BusinessRuleError("Les statuts système ne peuvent pas être désactivés ou réordonnés")

        for field, value in changes.items():
            setattr(status, field, value)
        await self.db_session.flush()
        return status

    async def delete_status(self, status_id: uuid.UUID) -> None:
        """Delete a custom status that no member uses.

        Raises:
            NotFoundError: If the status does not exist
            BusinessRuleError: If the status is a system status or still in use
        """
        status = await self.get_status(status_id)
        if status.is_system:
            raise BusinessRuleError("Les statuts système ne peuvent pas être supprimés")

        in_use = await self.db_session.execute(select(MemberDB.id).where(MemberDB.status == status.code).limit(1))
        if in_use.first() is not None:
            raise BusinessRuleError(
                "Ce statut ne peut pas être supprimé car il est utilisé par au moins un membre. "
                "Désactivez-le plutôt."
            )

        await self.db_session.delete(status)
        await self.db_session.flush()
        logger.info("member_status_deleted", code=status.code)

    async def reorder_statuses(self, orders: list[StatusOrder]) -> None:
        """Apply new display orders; system statuses are refused."""
        ids = [item.id for item in orders]
        result = await self.db_session.execute(
            select(MemberStatusDB.id, MemberStatusDB.is_system).where(MemberStatusDB.id.in_(ids))
        )
        found = dict(result.all())

        missing = [str(i) for i in ids if i not in found]
        if missing:
            raise NotFoundError(f"Statut {missing[0]} non trouvé")
        if any(found[i] for i in ids):
            raise BusinessRuleError("Les statuts système ne peuvent pas être désactivés ou réordonnés")

        for item in orders:
            await self.db_session.execute(
                update(MemberStatusDB)
                .where(MemberStatusDB.id == item.id)
                .values(display_order=item.display_order)
                .execution_options(synchronize_session=False)
            )

    async def ensure_system_statuses(self) -> int:
        """Insert missing system statuses.

        Returns:
            Number of statuses created
        """
        result = await self.db_session.execute(select(MemberStatusDB.code))
        existing = set(result.scalars().all())

        created = 0
        for values in SYSTEM_STATUSES:
            if values["code"] in existing:
                continue
            self.db_session.add(MemberStatusDB(**values, is_system=True, is_active=True))
            created += 1

        if created:
            await self.db_session.flush()
            logger.info("system_statuses_seeded", created=created)
        return created
