"""Tracking metrics, alerts and the engagement dashboard."""

import uuid
from collections import Counter
from datetime import timedelta

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.base import utcnow
from backoffice.models.member import MemberDB
from backoffice.models.tracking import (
    AlertGenerationResult,
    AlertSeverity,
    AlertType,
    EngagementTrendPoint,
    EntityStats,
    EntityType,
    TrackingAlertCreate,
    TrackingAlertDB,
    TrackingAlertUpdate,
    TrackingDashboard,
    TrackingMetric,
    TrackingMetricCreate,
    TrackingMetricDB,
)
from backoffice.services.errors import NotFoundError

logger = structlog.get_logger(__name__)

HIGH_POTENTIAL_SCORE = 20
ALERT_HIGH_POTENTIAL_SCORE = 15
STALE_AFTER_DAYS = 90
RECENT_ACTIVITY_DAYS = 30
RECENT_ACTIVITY_LIMIT = 20
TREND_DAYS = 7


class TrackingService:
    """Engagement tracking for members."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    # ===== Metrics =====

    async def record_metric(self, data: TrackingMetricCreate, recorded_by: str | None = None) -> TrackingMetricDB:
        """Append an engagement metric.

        Args:
            data: Metric payload
            recorded_by: E-mail of the administrator, None for automatic metrics

        Returns:
            The flushed metric
        """
        values = data.model_dump()
        values["entity_type"] = data.entity_type.value
        values["metric_type"] = data.metric_type.value
        metric = TrackingMetricDB(**values, recorded_by=recorded_by, recorded_at=utcnow())
        self.db_session.add(metric)
        await self.db_session.flush()
        return metric

    async def list_metrics(
        self,
        entity_type: EntityType | None = None,
        entity_email: str | None = None,
        metric_type: str | None = None,
        limit: int = 100,
    ) -> list[TrackingMetricDB]:
        """Most recent metrics first, optionally filtered by entity or metric type."""
        query = select(TrackingMetricDB)
        if entity_type is not None:
            query = query.where(TrackingMetricDB.entity_type == entity_type.value)
        if entity_email:
            query = query.where(TrackingMetricDB.entity_email == entity_email.lower())
        if metric_type:
            query = query.where(TrackingMetricDB.metric_type == metric_type)
        result = await self.db_session.execute(query.order_by(TrackingMetricDB.recorded_at.desc()).limit(limit))
        return list(result.scalars().all())

    # ===== Alerts =====

    async def create_alert(self, data: TrackingAlertCreate, created_by: str | None = None) -> TrackingAlertDB:
        """Create a manual alert, unread and unresolved.

        Args:
            data: Alert payload
            created_by: E-mail of the administrator

        Returns:
            The flushed alert
        """
        values = data.model_dump()
        for field in ("entity_type", "alert_type", "severity"):
            values[field] = values[field].value
        alert = TrackingAlertDB(**values, created_by=created_by, is_read=False, is_resolved=False)
        self.db_session.add(alert)
        await self.db_session.flush()
        return alert

    async def list_alerts(
        self,
        is_read: bool | None = None,
        is_resolved: bool | None = None,
        severity: AlertSeverity | None = None,
        limit: int = 100,
    ) -> list[TrackingAlertDB]:
        """Most recent alerts first, with optional state and severity filters."""
        query = select(TrackingAlertDB)
        if is_read is not None:
            query = query.where(TrackingAlertDB.is_read.is_(is_read))
        if is_resolved is not None:
            query = query.where(TrackingAlertDB.is_resolved.is_(is_resolved))
        if severity is not None:
            query = query.where(TrackingAlertDB.severity == severity.value)
        result = await self.db_session.execute(query.order_by(TrackingAlertDB.created_at.desc()).limit(limit))
        return list(result.scalars().all())

    async def update_alert(self, alert_id: uuid.UUID, data: TrackingAlertUpdate, actor: str) -> TrackingAlertDB:
        """Mark an alert read and/or resolved; resolving stamps who and when."""
        alert = await self.db_session.get(TrackingAlertDB, alert_id)
        if alert is None:
            raise NotFoundError("Alerte non trouvée")

        if data.is_read is not None:
            alert.is_read = data.is_read
        if data.is_resolved is not None:
            alert.is_resolved = data.is_resolved
            if data.is_resolved:
                alert.resolved_by = actor
                alert.resolved_at = utcnow()
            else:
                alert.resolved_by = None
                alert.resolved_at = None

        await self.db_session.flush()
        return alert

    async def generate_alerts(self) -> AlertGenerationResult:
        """Raise stale and high-potential alerts for members.

        A member never gets a second unresolved alert of the same type.
        """
        created = 0
        errors = 0
        stale_before = utcnow() - timedelta(days=STALE_AFTER_DAYS)

        stale_members = await self.db_session.execute(
            select(MemberDB).where(MemberDB.status == "active", MemberDB.last_activity_at < stale_before)
        )
        high_potential_members = await self.db_session.execute(
            select(MemberDB).where(
                MemberDB.status == "proposed", MemberDB.engagement_score >= ALERT_HIGH_POTENTIAL_SCORE
            )
        )

        candidates = [
            (member, AlertType.STALE) for member in stale_members.scalars().all()
        ] + [(member, AlertType.HIGH_POTENTIAL) for member in high_potential_members.scalars().all()]

        for member, alert_type in candidates:
            member_id = str(member.id)
            if await self._has_open_alert(member_id, alert_type):
                continue
            try:
                # A failed insert only undoes its own savepoint
                async with self.db_session.begin_nested():
                    self.db_session.add(self._member_alert(member, alert_type))
                created += 1
            except Exception as e:
                errors += 1
                logger.error(
                    "tracking_alert_generation_failed",
                    member_id=member_id,
                    alert_type=alert_type.value,
                    error=str(e),
                )

        logger.info("tracking_alerts_generated", created=created, errors=errors)
        return AlertGenerationResult(created=created, errors=errors)

    async def _has_open_alert(self, entity_id: str, alert_type: AlertType) -> bool:
        result = await self.db_session.execute(
            select(TrackingAlertDB.id).where(
                TrackingAlertDB.entity_type == EntityType.MEMBER.value,
                TrackingAlertDB.entity_id == entity_id,
                TrackingAlertDB.alert_type == alert_type.value,
                TrackingAlertDB.is_resolved.is_(False),
            )
        )
        return result.first() is not None

    @staticmethod
    def _member_alert(member: MemberDB, alert_type: AlertType) -> TrackingAlertDB:
        name = f"{member.first_name} {member.last_name}"
        if alert_type == AlertType.STALE:
            severity = AlertSeverity.MEDIUM
            title = f"Membre inactif depuis {STALE_AFTER_DAYS} jours"
            message = f"{name} n'a pas eu d'activité depuis {STALE_AFTER_DAYS} jours."
        else:
            severity = AlertSeverity.HIGH
            title = "Membre potentiel à fort engagement"
            message = f"{name} a un score d'engagement élevé ({member.engagement_score})."

        return TrackingAlertDB(
            entity_type=EntityType.MEMBER.value,
            entity_id=str(member.id),
            entity_email=member.email,
            alert_type=alert_type.value,
            severity=severity.value,
            title=title,
            message=message,
            is_read=False,
            is_resolved=False,
        )

    # ===== Dashboard =====

    async def get_dashboard(self) -> TrackingDashboard:
        """Engagement overview built from member counts and the recent activity journal."""
        now = utcnow()
        stale_before = now - timedelta(days=STALE_AFTER_DAYS)

        def count_members(*conditions):
            return select(func.count(MemberDB.id)).where(*conditions)

        total = (await self.db_session.execute(count_members())).scalar() or 0
        proposed = (await self.db_session.execute(count_members(MemberDB.status == "proposed"))).scalar() or 0
        active = (await self.db_session.execute(count_members(MemberDB.status == "active"))).scalar() or 0
        high_potential = (
            await self.db_session.execute(count_members(MemberDB.engagement_score >= HIGH_POTENTIAL_SCORE))
        ).scalar() or 0
        stale = (
            await self.db_session.execute(count_members(MemberDB.last_activity_at < stale_before))
        ).scalar() or 0

        conversion_rate = round(active / (proposed + active) * 100, 2) if (proposed + active) > 0 else 0.0

        recent = await self.db_session.execute(
            select(TrackingMetricDB)
            .where(TrackingMetricDB.recorded_at >= now - timedelta(days=RECENT_ACTIVITY_DAYS))
            .order_by(TrackingMetricDB.recorded_at.desc())
            .limit(RECENT_ACTIVITY_LIMIT)
        )

        return TrackingDashboard(
            members=EntityStats(
                total=total,
                proposed=proposed,
                active=active,
                high_potential=high_potential,
                stale=stale,
            ),
            recent_activity=[TrackingMetric.model_validate(m) for m in recent.scalars().all()],
            conversion_rate=conversion_rate,
            engagement_trends=await self._engagement_trends(now),
        )

    async def _engagement_trends(self, now) -> list[EngagementTrendPoint]:
        """Metric counts per day and entity type over the last seven days."""
        days = [(now - timedelta(days=offset)).date() for offset in range(TREND_DAYS - 1, -1, -1)]
        start = now.replace(hour=0, minute=0, second=0, microsecond=0) - timedelta(days=TREND_DAYS - 1)

        result = await self.db_session.execute(
            select(TrackingMetricDB.entity_type, TrackingMetricDB.recorded_at).where(
                TrackingMetricDB.recorded_at >= start
            )
        )
        counts: Counter = Counter()
        for entity_type, recorded_at in result.all():
            counts[(recorded_at.date(), entity_type)] += 1

        return [
            EngagementTrendPoint(
                date=day.isoformat(),
                members=counts[(day, EntityType.MEMBER.value)],
                patrons=counts[(day, EntityType.PATRON.value)],
            )
            for day in days
        ]
