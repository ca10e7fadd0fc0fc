"""Event and inscription data models."""

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
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from backoffice.models.base import EMAIL_PATTERN, Base, enum_check, reject_null, utcnow


class EventStatus(str, Enum):
    """Event publication workflow status."""

    DRAFT = "draft"
    PUBLISHED = "published"
    CANCELLED = "cancelled"
    POSTPONED = "postponed"
    COMPLETED = "completed"


# ========== SQLAlchemy ORM Models ==========


class EventDB(Base):
    """SQLAlchemy model for events table."""

    __tablename__ = "events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)
    location = Column(Text, nullable=True)
    max_participants = Column(Integer, nullable=True)
    allow_unsubscribe = Column(Boolean, nullable=False, default=False, server_default=false())
    status = Column(
        String(20),
        nullable=False,
        default=EventStatus.PUBLISHED.value,
        server_default=EventStatus.PUBLISHED.value,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )
    updated_by = Column(String(255), nullable=True)

    __table_args__ = (
        enum_check("status", EventStatus, "events_status_check"),
        Index("events_status_date_idx", "status", "date"),
    )


class InscriptionDB(Base):
    """SQLAlchemy model for inscriptions table."""

    __tablename__ = "inscriptions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id = Column(
        UUID(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(Text, nullable=False)
    email = Column(String(255), nullable=False)
    company = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    comments = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    # One registration per email and event
    __table_args__ = (UniqueConstraint("event_id", "email", name="inscriptions_event_email_key"),)


# ========== Pydantic Models ==========


class EventCreate(BaseModel):
    """Payload for creating an event."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    date: datetime
    location: str | None = Field(None, max_length=500)
    max_participants: int | None = Field(None, ge=1)
    allow_unsubscribe: bool = False
    status: EventStatus = EventStatus.PUBLISHED


class EventUpdate(BaseModel):
    """Partial update of an event."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    date: datetime | None = None
    location: str | None = Field(None, max_length=500)
    max_participants: int | None = Field(None, ge=1)
    allow_unsubscribe: bool | None = None
    status: EventStatus | None = None

    @field_validator("title", "date", "allow_unsubscribe", "status")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class EventStatusUpdate(BaseModel):
    """Status transition request."""

    status: EventStatus


class Event(BaseModel):
    """Event as returned by the API."""

    id: uuid.UUID
    title: str
    description: str | None = None
    date: datetime
    location: str | None = None
    max_participants: int | None = None
    allow_unsubscribe: bool
    status: EventStatus
    inscription_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    updated_by: str | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class InscriptionCreate(BaseModel):
    """Public registration to an event."""

    event_id: uuid.UUID
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    company: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=50)
    comments: str | None = Field(None, max_length=1000)


class Inscription(BaseModel):
    """Inscription as returned by the API."""

    id: uuid.UUID
    event_id: uuid.UUID
    name: str
    email: str
    company: str | None = None
    phone: str | None = None
    comments: str | None = None
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class UnsubscribeRequest(BaseModel):
    """Public unsubscription, identified by the name and e-mail used to register."""

    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., pattern=EMAIL_PATTERN)
