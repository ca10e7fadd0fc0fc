"""Chatbot request/response and query audit data models."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field
from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from backoffice.models.base import Base, utcnow

# ========== SQLAlchemy ORM Models ==========


class ChatbotQueryLogDB(Base):
    """SQLAlchemy model for chatbot_query_logs table (append-only)."""

    __tablename__ = "chatbot_query_logs"

    log_id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    user_email = Column(String(255), nullable=False, index=True)
    question = Column(Text, nullable=False)
    context = Column(Text, nullable=True)
    generated_sql = Column(Text, nullable=True)
    row_count = Column(Integer, nullable=True)
    error = Column(Text, nullable=True)
    duration_ms = Column(Integer, nullable=False)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)


# ========== Pydantic Models ==========


class ChatbotResponse(BaseModel):
    """Outcome of one natural-language query.

    ``error`` is set when generation, validation or execution failed; ``answer``
    then carries the user-facing message. ``data`` is None when no rows came back.
    """

    answer: str
    sql: str | None = None
    data: list[dict[str, Any]] | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        """True when no error was recorded."""
        return self.error is None


class ChatbotQueryLog(BaseModel):
    """Audit entry for a chatbot query."""

    log_id: uuid.UUID
    timestamp: datetime
    user_email: str
    question: str
    context: str | None = None
    generated_sql: str | None = None
    row_count: int | None = Field(None, ge=0)
    error: str | None = None
    duration_ms: int

    class Config:
        """Pydantic configuration."""

        from_attributes = True
