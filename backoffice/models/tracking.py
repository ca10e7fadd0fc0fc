"""Tracking metrics and alerts data models."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field
from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text, false
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from backoffice.models.base import EMAIL_PATTERN, Base, enum_check, utcnow


class EntityType(str, Enum):
    """Tracked entity kinds."""

    MEMBER = "member"
    PATRON = "patron"


class MetricType(str, Enum):
    """Tracking metric kinds."""

    STATUS_CHANGE = "status_change"
    ENGAGEMENT = "engagement"
    CONTACT = "contact"
    CONVERSION = "conversion"
    ACTIVITY = "activity"


class AlertType(str, Enum):
    """Tracking alert kinds."""

    STALE = "stale"
    HIGH_POTENTIAL = "high_potential"
    NEEDS_FOLLOWUP = "needs_followup"
    CONVERSION_OPPORTUNITY = "conversion_opportunity"


class AlertSeverity(str, Enum):
    """Alert severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# ========== SQLAlchemy ORM Models ==========


class TrackingMetricDB(Base):
    """SQLAlchemy model for tracking_metrics table."""

    __tablename__ = "tracking_metrics"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    entity_type = Column(String(20), nullable=False)
    entity_id = Column(String(64), nullable=False, index=True)
    entity_email = Column(String(255), nullable=False, index=True)
    metric_type = Column(String(30), nullable=False)
    metric_value = Column(Integer, nullable=True)
    metric_data = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    recorded_by = Column(String(255), nullable=True)
    recorded_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (
        enum_check("entity_type", EntityType, "tracking_metrics_entity_type_check"),
        enum_check("metric_type", MetricType, "tracking_metrics_metric_type_check"),
        Index("tracking_metrics_recorded_at_idx", "recorded_at"),
    )


class TrackingAlertDB(Base):
    """SQLAlchemy model for tracking_alerts table."""

    __tablename__ = "tracking_alerts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    entity_type = Column(String(20), nullable=False)
    entity_id = Column(String(64), nullable=False, index=True)
    entity_email = Column(String(255), nullable=False, index=True)
    alert_type = Column(String(30), nullable=False)
    severity = Column(
        String(20),
        nullable=False,
        default=AlertSeverity.MEDIUM.value,
        server_default=AlertSeverity.MEDIUM.value,
    )
    title = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False, server_default=false())
    is_resolved = Column(Boolean, nullable=False, default=False, server_default=false())
    resolved_by = Column(String(255), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        enum_check("entity_type", EntityType, "tracking_alerts_entity_type_check"),
        enum_check("alert_type", AlertType, "tracking_alerts_alert_type_check"),
        enum_check("severity", AlertSeverity, "tracking_alerts_severity_check"),
        Index("tracking_alerts_open_idx", "entity_id", "alert_type", "is_resolved"),
        Index("tracking_alerts_created_at_idx", "created_at"),
    )


# ========== Pydantic Models ==========


class TrackingMetricCreate(BaseModel):
    """Payload for recording a metric."""

    entity_type: EntityType
    entity_id: str = Field(..., min_length=1, max_length=64)
    entity_email: str = Field(..., pattern=EMAIL_PATTERN)
    metric_type: MetricType
    metric_value: int | None = None
    metric_data: str | None = None
    description: str | None = Field(None, max_length=2000)


class TrackingMetric(BaseModel):
    """Metric as returned by the API."""

    id: uuid.UUID
    entity_type: EntityType
    entity_id: str
    entity_email: str
    metric_type: MetricType
    metric_value: int | None = None
    metric_data: str | None = None
    description: str | None = None
    recorded_by: str | None = None
    recorded_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class TrackingAlertCreate(BaseModel):
    """Payload for raising an alert manually."""

    entity_type: EntityType
    entity_id: str = Field(..., min_length=1, max_length=64)
    entity_email: str = Field(..., pattern=EMAIL_PATTERN)
    alert_type: AlertType = AlertType.NEEDS_FOLLOWUP
    severity: AlertSeverity = AlertSeverity.MEDIUM
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=2000)
    expires_at: datetime | None = None


class TrackingAlertUpdate(BaseModel):
    """Read/resolution flags update."""

    is_read: bool | None = None
    is_resolved: bool | None = None


class TrackingAlert(BaseModel):
    """Alert as returned by the API."""

    id: uuid.UUID
    entity_type: EntityType
    entity_id: str
    entity_email: str
    alert_type: AlertType
    severity: AlertSeverity
    title: str
    message: str
    is_read: bool
    is_resolved: bool
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    expires_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class EntityStats(BaseModel):
    """Population counters for one entity type."""

    total: int
    proposed: int
    active: int
    high_potential: int
    stale: int


class EngagementTrendPoint(BaseModel):
    """Metric counts recorded on one day."""

    date: str
    members: int
    patrons: int


class TrackingDashboard(BaseModel):
    """Aggregated tracking dashboard."""

    members: EntityStats
    recent_activity: list[TrackingMetric]
    conversion_rate: float
    engagement_trends: list[EngagementTrendPoint]


class AlertGenerationResult(BaseModel):
    """Outcome of automatic alert generation."""

    created: int
    errors: int
