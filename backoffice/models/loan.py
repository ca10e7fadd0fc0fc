"""Loan item data models."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import Column, DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from backoffice.models.base import EMAIL_PATTERN, Base, enum_check, reject_null, utcnow


class LoanStatus(str, Enum):
    """Loan item availability status."""

    PENDING = "pending"
    AVAILABLE = "available"
    BORROWED = "borrowed"
    UNAVAILABLE = "unavailable"


# ========== SQLAlchemy ORM Models ==========


class LoanItemDB(Base):
    """SQLAlchemy model for loan_items table."""

    __tablename__ = "loan_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    lender_name = Column(Text, nullable=False)
    photo_url = Column(Text, nullable=True)
    status = Column(
        String(20),
        nullable=False,
        default=LoanStatus.PENDING.value,
        server_default=LoanStatus.PENDING.value,
    )
    proposed_by = Column(Text, nullable=False)
    proposed_by_email = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )
    updated_by = Column(String(255), nullable=True)

    __table_args__ = (
        enum_check("status", LoanStatus, "loan_items_status_check"),
        Index("loan_items_status_created_idx", "status", "created_at"),
    )


# ========== Pydantic Models ==========


class LoanItemCreate(BaseModel):
    """Public proposal of an item to lend."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    lender_name: str = Field(..., min_length=1, max_length=200)
    photo_url: str | None = Field(None, max_length=1000)
    proposed_by: str = Field(..., min_length=1, max_length=200)
    proposed_by_email: str = Field(..., pattern=EMAIL_PATTERN)


class LoanItemUpdate(BaseModel):
    """Partial update of a loan item."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    lender_name: str | None = Field(None, min_length=1, max_length=200)
    photo_url: str | None = Field(None, max_length=1000)

    @field_validator("title", "lender_name")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class LoanItemStatusUpdate(BaseModel):
    """Status transition request."""

    status: LoanStatus


class LoanItem(BaseModel):
    """Loan item as returned by the API."""

    id: uuid.UUID
    title: str
    description: str | None = None
    lender_name: str
    photo_url: str | None = None
    status: LoanStatus
    proposed_by: str
    proposed_by_email: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    updated_by: str | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True
