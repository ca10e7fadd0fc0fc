"""Development request (bug report / feature request) data models."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field
from sqlalchemy import Column, DateTime, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from backoffice.models.base import Base, enum_check, utcnow


class RequestType(str, Enum):
    """Development request kinds."""

    BUG = "bug"
    FEATURE = "feature"


class RequestPriority(str, Enum):
    """Development request priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class StorageStatus(str, Enum):
    """Status values persisted in development_requests.status."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class RequestStatus(str, Enum):
    """Status values exposed by the API."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    CANCELLED = "cancelled"


# ========== SQLAlchemy ORM Models ==========


class DevelopmentRequestDB(Base):
    """SQLAlchemy model for development_requests table."""

    __tablename__ = "development_requests"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    type = Column(String(20), nullable=False)
    priority = Column(
        String(20),
        nullable=False,
        default=RequestPriority.MEDIUM.value,
        server_default=RequestPriority.MEDIUM.value,
    )
    requested_by = Column(String(255), nullable=False, index=True)
    requested_by_name = Column(Text, nullable=False)
    github_issue_number = Column(Integer, nullable=True)
    github_issue_url = Column(Text, nullable=True)
    status = Column(
        String(20), nullable=False, default=StorageStatus.OPEN.value, server_default=StorageStatus.OPEN.value
    )
    admin_comment = Column(Text, nullable=True)
    last_status_change_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    __table_args__ = (
        enum_check("type", RequestType, "dev_requests_type_check"),
        enum_check("priority", RequestPriority, "dev_requests_priority_check"),
        enum_check("status", StorageStatus, "dev_requests_status_check"),
        Index("dev_requests_status_idx", "status"),
    )


# ========== Pydantic Models ==========


class DevelopmentRequestCreate(BaseModel):
    """Payload for filing a development request."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=10000)
    type: RequestType
    priority: RequestPriority = RequestPriority.MEDIUM


class DevelopmentRequestStatusUpdate(BaseModel):
    """Status change with optional admin comment."""

    status: RequestStatus
    admin_comment: str | None = Field(None, max_length=5000)


class DevelopmentRequest(BaseModel):
    """Development request as returned by the API (API status vocabulary)."""

    id: uuid.UUID
    title: str
    description: str
    type: RequestType
    priority: RequestPriority
    requested_by: str
    requested_by_name: str
    status: RequestStatus
    admin_comment: str | None = None
    last_status_change_by: str | None = None
    github_issue_number: int | None = None
    github_issue_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True
