"""Administrator accounts and authentication data models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import Boolean, Column, DateTime, Index, String, Text, true
from sqlalchemy.sql import func

from backoffice.models.base import EMAIL_PATTERN, Base, enum_check, reject_null, utcnow


class AdminRole(str, Enum):
    """Administrator roles."""

    SUPER_ADMIN = "super_admin"
    IDEAS_READER = "ideas_reader"
    IDEAS_MANAGER = "ideas_manager"
    EVENTS_READER = "events_reader"
    EVENTS_MANAGER = "events_manager"


class AdminStatus(str, Enum):
    """Administrator account status."""

    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


# ========== SQLAlchemy ORM Models ==========


class AdminDB(Base):
    """SQLAlchemy model for admins table."""

    __tablename__ = "admins"

    email = Column(String(255), primary_key=True)
    first_name = Column(String(100), nullable=False, default="Admin", server_default="Admin")
    last_name = Column(String(100), nullable=False, default="User", server_default="User")
    password_hash = Column(Text, nullable=True)
    added_by = Column(String(255), nullable=True)
    role = Column(
        String(30),
        nullable=False,
        default=AdminRole.IDEAS_READER.value,
        server_default=AdminRole.IDEAS_READER.value,
    )
    status = Column(
        String(20),
        nullable=False,
        default=AdminStatus.PENDING.value,
        server_default=AdminStatus.PENDING.value,
    )
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    __table_args__ = (
        enum_check("role", AdminRole, "admins_role_check"),
        enum_check("status", AdminStatus, "admins_status_check"),
        Index("admins_role_idx", "role"),
        Index("admins_status_idx", "status"),
    )


# ========== Pydantic Models ==========


class LoginRequest(BaseModel):
    """Credentials submitted to the login endpoint."""

    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1)


class Admin(BaseModel):
    """Administrator profile returned by the API."""

    email: str
    first_name: str
    last_name: str
    role: AdminRole
    status: AdminStatus
    is_active: bool
    added_by: str | None = None
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class TokenResponse(BaseModel):
    """Issued access token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: Admin


class AdminCreate(BaseModel):
    """Payload for creating an administrator."""

    email: str = Field(..., pattern=EMAIL_PATTERN)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=8, max_length=128)
    role: AdminRole = AdminRole.IDEAS_READER


class AdminUpdate(BaseModel):
    """Payload for updating an administrator's role or status."""

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    role: AdminRole | None = None
    status: AdminStatus | None = None
    is_active: bool | None = None

    @field_validator("first_name", "last_name", "role", "status", "is_active")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)
