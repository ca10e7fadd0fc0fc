"""Audit trail of chatbot queries."""

import uuid
from datetime import datetime

from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.base import utcnow
from backoffice.models.chatbot import ChatbotQueryLog, ChatbotQueryLogDB


class AuditLogger:
    """Audit logging service for chatbot queries.

    Keeps an append-only record of who asked what, which SQL ran and how it
    ended, so that model-generated queries can be reviewed afterwards.
    """

    def __init__(self, db_session: AsyncSession):
        """Initialize audit logger.

        Args:
            db_session: Database session for writing audit logs
        """
        self.db_session = db_session

    async def log_query(
        self,
        user_email: str,
        question: str,
        duration_ms: int,
        context: str | None = None,
        generated_sql: str | None = None,
        row_count: int | None = None,
        error: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> uuid.UUID:
        """Record one chatbot query.

        Args:
            user_email: Administrator who asked
            question: Original natural language question
            duration_ms: Total handling time in milliseconds
            context: Caller-supplied context tag
            generated_sql: SQL that was executed, if any
            row_count: Number of rows returned, if executed
            error: Error message if the query failed
            ip_address: Client IP address
            user_agent: Client user agent string

        Returns:
            Audit log entry ID

        Note:
            Uses INSERT directly; entries are never updated.
        """
        log_id = uuid.uuid4()

        stmt = insert(ChatbotQueryLogDB).values(
            log_id=log_id,
            timestamp=utcnow(),
            user_email=user_email,
            question=question,
            context=context,
            generated_sql=generated_sql,
            row_count=row_count,
            error=error,
            duration_ms=duration_ms,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        await self.db_session.execute(stmt)
        await self.db_session.commit()

        return log_id

    async def get_user_activity(
        self,
        user_email: str,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
        limit: int = 100,
    ) -> list[ChatbotQueryLog]:
        """Get the most recent queries of one administrator."""
        query = select(ChatbotQueryLogDB).where(ChatbotQueryLogDB.user_email == user_email)

        if start_time:
            query = query.where(ChatbotQueryLogDB.timestamp >= start_time)
        if end_time:
            query = query.where(ChatbotQueryLogDB.timestamp <= end_time)

        query = query.order_by(ChatbotQueryLogDB.timestamp.desc()).limit(limit)

        result = await self.db_session.execute(query)
        return [ChatbotQueryLog.model_validate(entry) for entry in result.scalars().all()]

    async def get_failed_queries(self, limit: int = 50) -> list[ChatbotQueryLog]:
        """Get the most recent failed queries."""
        query = (
            select(ChatbotQueryLogDB)
            .where(ChatbotQueryLogDB.error.isnot(None))
            .order_by(ChatbotQueryLogDB.timestamp.desc())
            .limit(limit)
        )

        result = await self.db_session.execute(query)
        return [ChatbotQueryLog.model_validate(entry) for entry in result.scalars().all()]

    async def get_query_statistics(self, user_email: str | None = None) -> dict:
        """Get query statistics.

        Args:
            user_email: Filter by administrator (optional)

        Returns:
            Totals, success rate and average duration
        """
        conditions = []
        if user_email:
            conditions.append(ChatbotQueryLogDB.user_email == user_email)

        total_query = select(func.count(ChatbotQueryLogDB.log_id)).where(*conditions)
        total_queries = (await self.db_session.execute(total_query)).scalar() or 0

        failed_query = select(func.count(ChatbotQueryLogDB.log_id)).where(
            ChatbotQueryLogDB.error.isnot(None), *conditions
        )
        failed_queries = (await self.db_session.execute(failed_query)).scalar() or 0

        avg_query = select(func.avg(ChatbotQueryLogDB.duration_ms)).where(*conditions)
        avg_duration = (await self.db_session.execute(avg_query)).scalar() or 0

        success_rate = (
            ((total_queries - failed_queries) / total_queries * 100) if total_queries > 0 else 0
        )

        return {
            "total_queries": total_queries,
            "successful_queries": total_queries - failed_queries,
            "failed_queries": failed_queries,
            "success_rate_percent": round(success_rate, 2),
            "average_duration_ms": round(float(avg_duration), 2),
        }
