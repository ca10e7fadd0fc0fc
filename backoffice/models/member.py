"""Member CRM data models: members, activities, statuses, tags, tasks and relations."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
    true,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from backoffice.models.base import EMAIL_PATTERN, Base, enum_check, reject_null, utcnow

STATUS_CODE_PATTERN = r"^[a-z0-9_]+$"
HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


class ActivityType(str, Enum):
    """Kinds of member activity recorded in the journal."""

    IDEA_PROPOSED = "idea_proposed"
    VOTE_CAST = "vote_cast"
    EVENT_REGISTERED = "event_registered"
    EVENT_UNREGISTERED = "event_unregistered"
    PATRON_SUGGESTED = "patron_suggested"


# Engagement score delta applied for each activity type
ACTIVITY_SCORES: dict[ActivityType, int] = {
    ActivityType.IDEA_PROPOSED: 10,
    ActivityType.VOTE_CAST: 2,
    ActivityType.EVENT_REGISTERED: 5,
    ActivityType.EVENT_UNREGISTERED: -3,
    ActivityType.PATRON_SUGGESTED: 8,
}


class StatusCategory(str, Enum):
    """Member status categories."""

    MEMBER = "member"
    PROSPECT = "prospect"


class TaskType(str, Enum):
    """Follow-up task kinds."""

    CALL = "call"
    EMAIL = "email"
    MEETING = "meeting"
    CUSTOM = "custom"


class TaskStatus(str, Enum):
    """Follow-up task status."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RelationType(str, Enum):
    """Relation kinds between two members."""

    SPONSOR = "sponsor"
    TEAM = "team"
    CUSTOM = "custom"


# ========== SQLAlchemy ORM Models ==========


class MemberDB(Base):
    """SQLAlchemy model for members table."""

    __tablename__ = "members"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    company = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    role = Column(Text, nullable=True)
    cjd_role = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(50), nullable=False, default="active", server_default="active")
    proposed_by = Column(String(255), nullable=True)
    engagement_score = Column(Integer, nullable=False, default=0, server_default="0")
    first_seen_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_activity_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    activity_count = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    __table_args__ = (
        Index("members_status_idx", "status"),
        Index("members_last_activity_at_idx", "last_activity_at"),
        Index("members_engagement_score_idx", "engagement_score"),
    )


class MemberActivityDB(Base):
    """SQLAlchemy model for member_activities table (append-only journal)."""

    __tablename__ = "member_activities"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    member_email = Column(
        String(255), ForeignKey("members.email", ondelete="CASCADE"), nullable=False, index=True
    )
    activity_type = Column(String(30), nullable=False)
    entity_type = Column(String(20), nullable=False)
    entity_id = Column(String(64), nullable=True)
    entity_title = Column(Text, nullable=True)
    score_impact = Column(Integer, nullable=False)
    occurred_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (enum_check("activity_type", ActivityType, "member_activities_type_check"),)


class MemberStatusDB(Base):
    """SQLAlchemy model for member_statuses table."""

    __tablename__ = "member_statuses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String(50), nullable=False, unique=True)
    label = Column(String(100), nullable=False)
    category = Column(String(20), nullable=False)
    color = Column(String(20), nullable=False)
    description = Column(Text, nullable=True)
    display_order = Column(Integer, nullable=False, default=0, server_default="0")
    is_system = Column(Boolean, nullable=False, default=False, server_default=false())
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    __table_args__ = (enum_check("category", StatusCategory, "member_statuses_category_check"),)


class MemberTagDB(Base):
    """SQLAlchemy model for member_tags table."""

    __tablename__ = "member_tags"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)
    color = Column(String(20), nullable=False, default="#3b82f6", server_default="#3b82f6")
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())


class MemberTagAssignmentDB(Base):
    """SQLAlchemy model for member_tag_assignments table."""

    __tablename__ = "member_tag_assignments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    member_email = Column(
        String(255), ForeignKey("members.email", ondelete="CASCADE"), nullable=False, index=True
    )
    tag_id = Column(
        UUID(as_uuid=True), ForeignKey("member_tags.id", ondelete="CASCADE"), nullable=False, index=True
    )
    assigned_by = Column(String(255), nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("member_email", "tag_id", name="member_tag_assignments_member_tag_key"),
    )


class MemberTaskDB(Base):
    """SQLAlchemy model for member_tasks table."""

    __tablename__ = "member_tasks"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    member_email = Column(
        String(255), ForeignKey("members.email", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    task_type = Column(String(20), nullable=False)
    status = Column(
        String(20), nullable=False, default=TaskStatus.TODO.value, server_default=TaskStatus.TODO.value
    )
    due_date = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    completed_by = Column(String(255), nullable=True)
    assigned_to = Column(String(255), nullable=True)
    created_by = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    __table_args__ = (
        enum_check("task_type", TaskType, "member_tasks_type_check"),
        enum_check("status", TaskStatus, "member_tasks_status_check"),
        Index("member_tasks_status_idx", "status"),
        Index("member_tasks_due_date_idx", "due_date"),
    )


class MemberRelationDB(Base):
    """SQLAlchemy model for member_relations table."""

    __tablename__ = "member_relations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    member_email = Column(
        String(255), ForeignKey("members.email", ondelete="CASCADE"), nullable=False, index=True
    )
    related_member_email = Column(
        String(255), ForeignKey("members.email", ondelete="CASCADE"), nullable=False, index=True
    )
    relation_type = Column(String(20), nullable=False)
    description = Column(Text, nullable=True)
    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (
        enum_check("relation_type", RelationType, "member_relations_type_check"),
        CheckConstraint("member_email <> related_member_email", name="member_relations_not_self_check"),
    )


# ========== Pydantic Models ==========


class MemberCreate(BaseModel):
    """Payload for creating a member."""

    email: str = Field(..., pattern=EMAIL_PATTERN)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    company: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=50)
    role: str | None = Field(None, max_length=200)
    cjd_role: str | None = Field(None, max_length=100)
    notes: str | None = Field(None, max_length=5000)
    status: str = Field("active", pattern=STATUS_CODE_PATTERN, max_length=50)
    proposed_by: str | None = Field(None, max_length=255)


class MemberUpdate(BaseModel):
    """Partial update of a member."""

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    company: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=50)
    role: str | None = Field(None, max_length=200)
    cjd_role: str | None = Field(None, max_length=100)
    notes: str | None = Field(None, max_length=5000)
    status: str | None = Field(None, pattern=STATUS_CODE_PATTERN, max_length=50)

    @field_validator("first_name", "last_name", "status")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class MemberTag(BaseModel):
    """Tag as returned by the API."""

    id: uuid.UUID
    name: str
    color: str
    description: str | None = None
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class Member(BaseModel):
    """Member as returned by the API."""

    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    company: str | None = None
    phone: str | None = None
    role: str | None = None
    cjd_role: str | None = None
    notes: str | None = None
    status: str
    proposed_by: str | None = None
    engagement_score: int
    first_seen_at: datetime | None = None
    last_activity_at: datetime | None = None
    activity_count: int
    tags: list[MemberTag] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class MemberActivity(BaseModel):
    """Activity journal entry."""

    id: uuid.UUID
    member_email: str
    activity_type: ActivityType
    entity_type: str
    entity_id: str | None = None
    entity_title: str | None = None
    score_impact: int
    occurred_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class MemberStatusCreate(BaseModel):
    """Payload for a custom member status."""

    code: str = Field(..., min_length=1, max_length=50, pattern=STATUS_CODE_PATTERN)
    label: str = Field(..., min_length=1, max_length=100)
    category: StatusCategory
    color: str = Field(..., min_length=1, max_length=20)
    description: str | None = None
    display_order: int | None = Field(None, ge=0)


class MemberStatusUpdate(BaseModel):
    """Partial update of a member status."""

    label: str | None = Field(None, min_length=1, max_length=100)
    color: str | None = Field(None, min_length=1, max_length=20)
    description: str | None = None
    display_order: int | None = Field(None, ge=0)
    is_active: bool | None = None

    @field_validator("label", "color", "display_order", "is_active")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class StatusOrder(BaseModel):
    """New display position of one status."""

    id: uuid.UUID
    display_order: int = Field(..., ge=0)


class MemberStatus(BaseModel):
    """Member status as returned by the API."""

    id: uuid.UUID
    code: str
    label: str
    category: StatusCategory
    color: str
    description: str | None = None
    display_order: int
    is_system: bool
    is_active: bool
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class MemberTagCreate(BaseModel):
    """Payload for creating a tag."""

    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field("#3b82f6", pattern=HEX_COLOR_PATTERN)
    description: str | None = Field(None, max_length=500)


class MemberTagUpdate(BaseModel):
    """Partial update of a tag."""

    name: str | None = Field(None, min_length=1, max_length=100)
    color: str | None = Field(None, pattern=HEX_COLOR_PATTERN)
    description: str | None = Field(None, max_length=500)

    @field_validator("name", "color")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class MemberTaskCreate(BaseModel):
    """Payload for creating a follow-up task."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    task_type: TaskType
    due_date: datetime | None = None
    assigned_to: str | None = Field(None, pattern=EMAIL_PATTERN)


class MemberTaskUpdate(BaseModel):
    """Partial update of a follow-up task."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    task_type: TaskType | None = None
    status: TaskStatus | None = None
    due_date: datetime | None = None
    assigned_to: str | None = Field(None, pattern=EMAIL_PATTERN)

    @field_validator("title", "task_type", "status")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class MemberTask(BaseModel):
    """Task as returned by the API."""

    id: uuid.UUID
    member_email: str
    title: str
    description: str | None = None
    task_type: TaskType
    status: TaskStatus
    due_date: datetime | None = None
    completed_at: datetime | None = None
    completed_by: str | None = None
    assigned_to: str | None = None
    created_by: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class MemberRelationCreate(BaseModel):
    """Payload for linking two members."""

    related_member_email: str = Field(..., pattern=EMAIL_PATTERN)
    relation_type: RelationType
    description: str | None = Field(None, max_length=1000)


class MemberRelation(BaseModel):
    """Relation as returned by the API."""

    id: uuid.UUID
    member_email: str
    related_member_email: str
    relation_type: RelationType
    description: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class TaskFilter(BaseModel):
    """Filters for the cross-member task list."""

    status: TaskStatus | None = None
    assigned_to: str | None = None
    overdue: bool = False

    @model_validator(mode="after")
    def check_overdue_status(self) -> "TaskFilter":
        """Overdue only makes sense for open tasks."""
        if self.overdue and self.status in (TaskStatus.COMPLETED, TaskStatus.CANCELLED):
            raise ValueError("overdue cannot be combined with a closed status")
        return self
