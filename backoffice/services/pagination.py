"""Pagination helpers shared by list endpoints."""

import math
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")

DEFAULT_LIMIT = 20
MAX_LIMIT = 100
# Keeps (page - 1) * limit inside a 64-bit OFFSET
MAX_PAGE = 10_000


class Page(BaseModel, Generic[T]):
    """Paginated list response."""

    success: bool = True
    data: list[T]
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, items: list[Any], total: int, page: int, limit: int) -> "Page":
        return cls(
            data=items,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if limit else 0,
        )


async def paginate(session: AsyncSession, query: Select, page: int, limit: int) -> tuple[list[Any], int]:
    """Run ``query`` for one page and count the full result set.

    Args:
        session: Database session
        query: Select statement returning ORM entities
        page: 1-based page number
        limit: Page size

    Returns:
        (rows of the requested page, total row count)
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await session.execute(count_query)).scalar() or 0

    offset = (page - 1) * limit
    result = await session.execute(query.offset(offset).limit(limit))
    return list(result.scalars().all()), total
