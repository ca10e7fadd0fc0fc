"""Loan items."""

import uuid

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.loan import LoanItemCreate, LoanItemDB, LoanItemUpdate, LoanStatus
from backoffice.services.errors import NotFoundError
from backoffice.services.pagination import paginate

logger = structlog.get_logger(__name__)


class LoanService:
    """Items members lend to each other; proposals wait for validation."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def get_item(self, item_id: uuid.UUID) -> LoanItemDB:
        """Load a loan item by id.

        Raises:
            NotFoundError: If the item does not exist
        """
        item = await self.db_session.get(LoanItemDB, item_id)
        if item is None:
            raise NotFoundError("Fiche prêt non trouvée")
        return item

    async def list_items(
        self,
        page: int,
        limit: int,
        search: str | None = None,
        status: LoanStatus | None = None,
        public: bool = False,
    ) -> tuple[list[LoanItemDB], int]:
        """Paginated loan items.

        Args:
            page: 1-based page number
            limit: Page size
            search: Case-insensitive match on title, description or lender
            status: Status filter (admin list only)
            public: Restrict to available items

        Returns:
            Tuple of (items, total)
        """
        query = select(LoanItemDB)
        if public:
            query = query.where(LoanItemDB.status == LoanStatus.AVAILABLE.value)
        elif status is not None:
            query = query.where(LoanItemDB.status == status.value)

        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(
                    LoanItemDB.title.ilike(pattern),
                    LoanItemDB.description.ilike(pattern),
                    LoanItemDB.lender_name.ilike(pattern),
                )
            )

        return await paginate(self.db_session, query.order_by(LoanItemDB.created_at.desc()), page, limit)

    async def propose_item(self, data: LoanItemCreate) -> LoanItemDB:
        """Record a public proposal; it stays pending until an admin validates it.

        Args:
            data: Proposal payload

        Returns:
            The flushed item
        """
        item = LoanItemDB(
            **data.model_dump(exclude={"proposed_by_email"}),
            proposed_by_email=data.proposed_by_email.lower(),
            status=LoanStatus.PENDING.value,
        )
        self.db_session.add(item)
        await self.db_session.flush()
        logger.info("loan_item_proposed", item_id=str(item.id))
        return item

    async def update_item(self, item_id: uuid.UUID, data: LoanItemUpdate, actor: str) -> LoanItemDB:
        """Apply a partial update to an item.

        Args:
            item_id: Item UUID
            data: Fields to change; omitted fields are left untouched
            actor: E-mail of the administrator

        Returns:
            The updated item

        Raises:
            NotFoundError: If the item does not exist
        """
        item = await self.get_item(item_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(item, field, value)
        item.updated_by = actor
        await self.db_session.flush()
        return item

    async def update_status(self, item_id: uuid.UUID, status: LoanStatus, actor: str) -> LoanItemDB:
        """Move an item through its lending lifecycle."""
        item = await self.get_item(item_id)
        item.status = status.value
        item.updated_by = actor
        await self.db_session.flush()
        logger.info("loan_item_status_changed", item_id=str(item.id), status=status.value, actor=actor)
        return item

    async def delete_item(self, item_id: uuid.UUID) -> None:
        item = await self.get_item(item_id)
        await self.db_session.delete(item)
        await self.db_session.flush()
