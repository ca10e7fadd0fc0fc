"""Ideas and votes."""

import uuid

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.idea import Idea, IdeaCreate, IdeaDB, IdeaStatus, IdeaUpdate, VoteCreate, VoteDB
from backoffice.models.member import ActivityType
from backoffice.services.errors import ConflictError, NotFoundError, flush_unique
from backoffice.services.member_service import MemberService
from backoffice.services.pagination import paginate

logger = structlog.get_logger(__name__)


class IdeaService:
    """Idea box: public proposals and votes, admin moderation."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def get_idea(self, idea_id: uuid.UUID) -> IdeaDB:
        """Load an idea by id.

        Raises:
            NotFoundError: If the idea does not exist
        """
        idea = await self.db_session.get(IdeaDB, idea_id)
        if idea is None:
            raise NotFoundError("Idée introuvable")
        return idea

    async def list_ideas(
        self,
        page: int,
        limit: int,
        status: IdeaStatus | None = None,
        public: bool = False,
    ) -> tuple[list[Idea], int]:
        """Paginated ideas, featured first; the public list hides rejected ideas."""
        query = select(IdeaDB)
        if public:
            query = query.where(IdeaDB.status != IdeaStatus.REJECTED.value)
        if status is not None:
            query = query.where(IdeaDB.status == status.value)
        query = query.order_by(IdeaDB.featured.desc(), IdeaDB.created_at.desc())
        rows, total = await paginate(self.db_session, query, page, limit)
        return await self._with_votes(rows), total

    async def to_idea(self, idea: IdeaDB) -> Idea:
        return (await self._with_votes([idea]))[0]

    async def create_idea(self, data: IdeaCreate) -> IdeaDB:
        """Record a public proposal as a pending, non-featured idea.

        The proposer's e-mail is lowercased and the proposal is added to their
        activity journal when they are a known member.

        Args:
            data: Public proposal payload

        Returns:
            The flushed idea
        """
        idea = IdeaDB(
            **data.model_dump(exclude={"proposed_by_email"}),
            proposed_by_email=data.proposed_by_email.lower(),
            status=IdeaStatus.PENDING.value,
            featured=False,
        )
        self.db_session.add(idea)
        await self.db_session.flush()

        await MemberService(self.db_session).track_activity(
            idea.proposed_by_email, ActivityType.IDEA_PROPOSED, "idea", str(idea.id), idea.title
        )
        logger.info("idea_created", idea_id=str(idea.id))
        return idea

    async def update_idea(self, idea_id: uuid.UUID, data: IdeaUpdate, actor: str) -> IdeaDB:
        """Apply a partial update on behalf of a moderator.

        Args:
            idea_id: Idea UUID
            data: Fields to change; omitted fields are left untouched
            actor: E-mail of the moderator

        Returns:
            The updated idea

        Raises:
            NotFoundError: If the idea does not exist
        """
        idea = await self.get_idea(idea_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(idea, field, value)
        idea.updated_by = actor
        await self.db_session.flush()
        return idea

    async def update_status(self, idea_id: uuid.UUID, status: IdeaStatus, actor: str) -> IdeaDB:
        """Moderate an idea."""
        idea = await self.get_idea(idea_id)
        idea.status = status.value
        idea.updated_by = actor
        await self.db_session.flush()
        logger.info("idea_status_changed", idea_id=str(idea.id), status=status.value, actor=actor)
        return idea

    async def set_featured(self, idea_id: uuid.UUID, featured: bool, actor: str) -> IdeaDB:
        """Pin or unpin an idea at the top of the public list."""
        idea = await self.get_idea(idea_id)
        idea.featured = featured
        idea.updated_by = actor
        await self.db_session.flush()
        return idea

    async def delete_idea(self, idea_id: uuid.UUID) -> None:
        idea = await self.get_idea(idea_id)
        await self.db_session.delete(idea)
        await self.db_session.flush()

    # ===== Votes =====

    async def list_votes(self, idea_id: uuid.UUID) -> list[VoteDB]:
        """Votes on an idea, oldest first.

        Raises:
            NotFoundError: If the idea does not exist
        """
        await self.get_idea(idea_id)
        result = await self.db_session.execute(
            select(VoteDB).where(VoteDB.idea_id == idea_id).order_by(VoteDB.created_at)
        )
        return list(result.scalars().all())

    async def vote(self, data: VoteCreate) -> VoteDB:
        """Cast a vote; one per e-mail and idea.

        Raises:
            NotFoundError: If the idea does not exist
            ConflictError: If this e-mail already voted
        """
        email = data.voter_email.lower()
        idea = await self.get_idea(data.idea_id)

        existing = await self.db_session.execute(
            select(VoteDB.id).where(VoteDB.idea_id == idea.id, VoteDB.voter_email == email)
        )
        if existing.first() is not None:
            raise ConflictError("Vous avez déjà voté pour cette idée")

        vote = VoteDB(idea_id=idea.id, voter_name=data.voter_name, voter_email=email)
        self.db_session.add(vote)
        await flush_unique(self.db_session, "Vous avez déjà voté pour cette idée")

        await MemberService(self.db_session).track_activity(
            email, ActivityType.VOTE_CAST, "vote", str(idea.id), idea.title
        )
        logger.info("vote_created", idea_id=str(idea.id), vote_id=str(vote.id))
        return vote

    async def delete_vote(self, vote_id: uuid.UUID) -> None:
        vote = await self.db_session.get(VoteDB, vote_id)
        if vote is None:
            raise NotFoundError("Vote introuvable")
        await self.db_session.delete(vote)
        await self.db_session.flush()

    async def _with_votes(self, ideas: list[IdeaDB]) -> list[Idea]:
        if not ideas:
            return []
        result = await self.db_session.execute(
            select(VoteDB.idea_id, func.count(VoteDB.id))
            .where(VoteDB.idea_id.in_([i.id for i in ideas]))
            .group_by(VoteDB.idea_id)
        )
        counts = dict(result.all())
        models = []
        for idea in ideas:
            model = Idea.model_validate(idea)
            model.vote_count = counts.get(idea.id, 0)
            models.append(model)
        return models
