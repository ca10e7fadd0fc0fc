"""Tools catalog data models."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, false, true
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from backoffice.models.base import Base, reject_null, utcnow

# ========== SQLAlchemy ORM Models ==========


class ToolCategoryDB(Base):
    """SQLAlchemy model for tool_categories table."""

    __tablename__ = "tool_categories"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(100), nullable=True)
    order = Column("order", Integer, nullable=False, default=0, server_default="0")
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )


class ToolDB(Base):
    """SQLAlchemy model for tools table."""

    __tablename__ = "tools"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    category_id = Column(
        UUID(as_uuid=True), ForeignKey("tool_categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    url = Column(Text, nullable=True)
    icon = Column(String(100), nullable=True)
    order = Column("order", Integer, nullable=False, default=0, server_default="0")
    is_featured = Column(Boolean, nullable=False, default=False, server_default=false())
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )


# ========== Pydantic Models ==========


class ToolCategoryCreate(BaseModel):
    """Payload for creating a tool category."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    icon: str | None = Field(None, max_length=100)
    order: int = Field(0, ge=0)
    is_active: bool = True


class ToolCategoryUpdate(BaseModel):
    """Partial update of a tool category."""

    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    icon: str | None = Field(None, max_length=100)
    order: int | None = Field(None, ge=0)
    is_active: bool | None = None

    @field_validator("name", "order", "is_active")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class ToolCategory(BaseModel):
    """Tool category as returned by the API."""

    id: uuid.UUID
    name: str
    description: str | None = None
    icon: str | None = None
    order: int
    is_active: bool
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ToolCreate(BaseModel):
    """Payload for creating a tool."""

    name: str = Field(..., min_length=1, max_length=200)
    category_id: uuid.UUID | None = None
    description: str | None = Field(None, max_length=2000)
    url: str | None = Field(None, max_length=1000)
    icon: str | None = Field(None, max_length=100)
    order: int = Field(0, ge=0)
    is_featured: bool = False
    is_active: bool = True


class ToolUpdate(BaseModel):
    """Partial update of a tool."""

    name: str | None = Field(None, min_length=1, max_length=200)
    category_id: uuid.UUID | None = None
    description: str | None = Field(None, max_length=2000)
    url: str | None = Field(None, max_length=1000)
    icon: str | None = Field(None, max_length=100)
    order: int | None = Field(None, ge=0)
    is_featured: bool | None = None
    is_active: bool | None = None

    @field_validator("name", "order", "is_featured", "is_active")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class Tool(BaseModel):
    """Tool as returned by the API, with its category when it has one."""

    id: uuid.UUID
    category_id: uuid.UUID | None = None
    name: str
    description: str | None = None
    url: str | None = None
    icon: str | None = None
    order: int
    is_featured: bool
    is_active: bool
    category: ToolCategory | None = None
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ToolStats(BaseModel):
    """Catalog counters."""

    categories_count: int
    tools_count: int
    featured_count: int
