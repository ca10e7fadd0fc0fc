"""Idea and vote data models."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    false,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from backoffice.models.base import EMAIL_PATTERN, Base, enum_check, reject_null, utcnow


class IdeaStatus(str, Enum):
    """Idea review workflow status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    UNDER_REVIEW = "under_review"
    POSTPONED = "postponed"
    COMPLETED = "completed"


# ========== SQLAlchemy ORM Models ==========


class IdeaDB(Base):
    """SQLAlchemy model for ideas table."""

    __tablename__ = "ideas"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    proposed_by = Column(Text, nullable=False)
    proposed_by_email = Column(String(255), nullable=False, index=True)
    status = Column(
        String(20),
        nullable=False,
        default=IdeaStatus.PENDING.value,
        server_default=IdeaStatus.PENDING.value,
    )
    featured = Column(Boolean, nullable=False, default=False, server_default=false())
    deadline = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )
    updated_by = Column(String(255), nullable=True)

    __table_args__ = (
        enum_check("status", IdeaStatus, "ideas_status_check"),
        Index("ideas_status_idx", "status"),
        Index("ideas_created_at_idx", "created_at"),
    )


class VoteDB(Base):
    """SQLAlchemy model for votes table."""

    __tablename__ = "votes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    idea_id = Column(
        UUID(as_uuid=True), ForeignKey("ideas.id", ondelete="CASCADE"), nullable=False, index=True
    )
    voter_name = Column(Text, nullable=False)
    voter_email = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    # One vote per email and idea
    __table_args__ = (UniqueConstraint("idea_id", "voter_email", name="votes_idea_email_key"),)


# ========== Pydantic Models ==========


class IdeaCreate(BaseModel):
    """Public idea proposal."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    proposed_by: str = Field(..., min_length=1, max_length=200)
    proposed_by_email: str = Field(..., pattern=EMAIL_PATTERN)
    deadline: datetime | None = None


class IdeaUpdate(BaseModel):
    """Partial update of an idea by a manager."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    deadline: datetime | None = None

    @field_validator("title")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class IdeaStatusUpdate(BaseModel):
    """Status transition request."""

    status: IdeaStatus


class IdeaFeaturedUpdate(BaseModel):
    """Toggle of the featured flag."""

    featured: bool


class Idea(BaseModel):
    """Idea as returned by the API."""

    id: uuid.UUID
    title: str
    description: str | None = None
    proposed_by: str
    proposed_by_email: str
    status: IdeaStatus
    featured: bool
    deadline: datetime | None = None
    vote_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    updated_by: str | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class VoteCreate(BaseModel):
    """Public vote on an idea."""

    idea_id: uuid.UUID
    voter_name: str = Field(..., min_length=1, max_length=200)
    voter_email: str = Field(..., pattern=EMAIL_PATTERN)


class Vote(BaseModel):
    """Vote as returned by the API."""

    id: uuid.UUID
    idea_id: uuid.UUID
    voter_name: str
    voter_email: str
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
