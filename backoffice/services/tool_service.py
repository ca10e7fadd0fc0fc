"""Tools catalog."""

import uuid

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.tool import (
    Tool,
    ToolCategory,
    ToolCategoryCreate,
    ToolCategoryDB,
    ToolCategoryUpdate,
    ToolCreate,
    ToolDB,
    ToolStats,
    ToolUpdate,
)
from backoffice.services.errors import NotFoundError

logger = structlog.get_logger(__name__)


class ToolService:
    """Categories and tools shown on the public tools page."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    # ===== Categories =====

    async def list_categories(self, active_only: bool = False) -> list[ToolCategoryDB]:
        """Categories by display order, then name."""
        query = select(ToolCategoryDB)
        if active_only:
            query = query.where(ToolCategoryDB.is_active.is_(True))
        result = await self.db_session.execute(query.order_by(ToolCategoryDB.order, ToolCategoryDB.name))
        return list(result.scalars().all())

    async def get_category(self, category_id: uuid.UUID) -> ToolCategoryDB:
        """Load a category by id.

        Raises:
            NotFoundError: If the category does not exist
        """
        category = await self.db_session.get(ToolCategoryDB, category_id)
        if category is None:
            raise NotFoundError(f"Catégorie {category_id} non trouvée")
        return category

    async def create_category(self, data: ToolCategoryCreate) -> ToolCategoryDB:
        """Create a tool category."""
        category = ToolCategoryDB(**data.model_dump())
        self.db_session.add(category)
        await self.db_session.flush()
        logger.info("tool_category_created", category_id=str(category.id))
        return category

    async def update_category(self, category_id: uuid.UUID, data: ToolCategoryUpdate) -> ToolCategoryDB:
        """Apply a partial update to a category.

        Raises:
            NotFoundError: If the category does not exist
        """
        category = await self.get_category(category_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(category, field, value)
        await self.db_session.flush()
        return category

    async def delete_category(self, category_id: uuid.UUID) -> None:
        """Delete a category; its tools stay, uncategorized."""
        category = await self.get_category(category_id)
        await self.db_session.delete(category)
        await self.db_session.flush()

    # ===== Tools =====

    async def list_tools(self, active_only: bool = False, featured_only: bool = False) -> list[Tool]:
        """Tools with their category embedded.

        Args:
            active_only: Hide inactive tools (public pages)
            featured_only: Only tools flagged as featured

        Returns:
            Tools ordered by display order, then name
        """
        query = select(ToolDB)
        if active_only:
            query = query.where(ToolDB.is_active.is_(True))
        if featured_only:
            query = query.where(ToolDB.is_featured.is_(True))
        result = await self.db_session.execute(query.order_by(ToolDB.order, ToolDB.name))
        return await self._with_categories(list(result.scalars().all()))

    async def get_tool(self, tool_id: uuid.UUID) -> ToolDB:
        """Load a tool by id.

        Raises:
            NotFoundError: If the tool does not exist
        """
        tool = await self.db_session.get(ToolDB, tool_id)
        if tool is None:
            raise NotFoundError(f"Outil {tool_id} non trouvé")
        return tool

    async def to_tool(self, tool: ToolDB) -> Tool:
        return (await self._with_categories([tool]))[0]

    async def create_tool(self, data: ToolCreate) -> ToolDB:
        """Create a tool, optionally in a category.

        Raises:
            NotFoundError: If the category does not exist
        """
        if data.category_id is not None:
            await self.get_category(data.category_id)
        tool = ToolDB(**data.model_dump())
        self.db_session.add(tool)
        await self.db_session.flush()
        logger.info("tool_created", tool_id=str(tool.id))
        return tool

    async def update_tool(self, tool_id: uuid.UUID, data: ToolUpdate) -> ToolDB:
        """Apply a partial update; a null category detaches the tool.

        Raises:
            NotFoundError: If the tool or the new category does not exist
        """
        tool = await self.get_tool(tool_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("category_id") is not None:
            await self.get_category(changes["category_id"])
        for field, value in changes.items():
            setattr(tool, field, value)
        await self.db_session.flush()
        return tool

    async def delete_tool(self, tool_id: uuid.UUID) -> None:
        tool = await self.get_tool(tool_id)
        await self.db_session.delete(tool)
        await self.db_session.flush()

    async def get_stats(self) -> ToolStats:
        """Counters for the admin tools page."""
        categories = await self.db_session.execute(select(func.count(ToolCategoryDB.id)))
        tools = await self.db_session.execute(select(func.count(ToolDB.id)))
        featured = await self.db_session.execute(
            select(func.count(ToolDB.id)).where(ToolDB.is_featured.is_(True))
        )
        return ToolStats(
            categories_count=categories.scalar() or 0,
            tools_count=tools.scalar() or 0,
            featured_count=featured.scalar() or 0,
        )

    async def _with_categories(self, tools: list[ToolDB]) -> list[Tool]:
        category_ids = {t.category_id for t in tools if t.category_id is not None}
        categories: dict[uuid.UUID, ToolCategory] = {}
        if category_ids:
            result = await self.db_session.execute(
                select(ToolCategoryDB).where(ToolCategoryDB.id.in_(category_ids))
            )
            categories = {c.id: ToolCategory.model_validate(c) for c in result.scalars().all()}

        models = []
        for tool in tools:
            model = Tool.model_validate(tool)
            model.category = categories.get(tool.category_id)
            models.append(model)
        return models
