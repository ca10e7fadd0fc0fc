"""Engagement tracking endpoints: dashboard, metrics and alerts."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.middleware.auth import require_permission
from backoffice.models.admin import AdminDB
from backoffice.models.tracking import (
    AlertSeverity,
    EntityType,
    MetricType,
    TrackingAlert,
    TrackingAlertCreate,
    TrackingAlertUpdate,
    TrackingMetric,
    TrackingMetricCreate,
)
from backoffice.services.database import get_db_session
from backoffice.services.tracking_service import TrackingService

router = APIRouter(prefix="/api/tracking", tags=["tracking"])

view = require_permission("admin.view")
manage = require_permission("admin.manage")


@router.get("/dashboard")
async def dashboard(admin: AdminDB = Depends(view), db: AsyncSession = Depends(get_db_session)) -> dict:
    return {"success": True, "data": await TrackingService(db).get_dashboard()}


@router.get("/metrics")
async def list_metrics(
    entity_type: EntityType | None = Query(None),
    entity_email: str | None = Query(None),
    metric_type: MetricType | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    admin: AdminDB = Depends(view),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    metrics = await TrackingService(db).list_metrics(
        entity_type=entity_type,
        entity_email=entity_email,
        metric_type=metric_type.value if metric_type else None,
        limit=limit,
    )
    return {"success": True, "data": [TrackingMetric.model_validate(m) for m in metrics]}


@router.post("/metrics", status_code=status.HTTP_201_CREATED)
async def record_metric(
    data: TrackingMetricCreate,
    admin: AdminDB = Depends(manage),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    metric = await TrackingService(db).record_metric(data, recorded_by=admin.email)
    return {"success": True, "data": TrackingMetric.model_validate(metric)}


@router.get("/alerts")
async def list_alerts(
    is_read: bool | None = Query(None),
    is_resolved: bool | None = Query(None),
    severity: AlertSeverity | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    admin: AdminDB = Depends(view),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    alerts = await TrackingService(db).list_alerts(
        is_read=is_read, is_resolved=is_resolved, severity=severity, limit=limit
    )
    return {"success": True, "data": [TrackingAlert.model_validate(a) for a in alerts]}


@router.post("/alerts", status_code=status.HTTP_201_CREATED)
async def create_alert(
    data: TrackingAlertCreate,
    admin: AdminDB = Depends(manage),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    alert = await TrackingService(db).create_alert(data, created_by=admin.email)
    return {"success": True, "data": TrackingAlert.model_validate(alert)}


# Declared before "/alerts/{alert_id}" routes
@router.post("/alerts/generate")
async def generate_alerts(admin: AdminDB = Depends(manage), db: AsyncSession = Depends(get_db_session)) -> dict:
    """Scan members and raise stale / high-potential alerts."""
    return {"success": True, "data": await TrackingService(db).generate_alerts()}


@router.put("/alerts/{alert_id}")
async def update_alert(
    alert_id: uuid.UUID,
    data: TrackingAlertUpdate,
    admin: AdminDB = Depends(manage),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    alert = await TrackingService(db).update_alert(alert_id, data, actor=admin.email)
    return {"success": True, "data": TrackingAlert.model_validate(alert)}
