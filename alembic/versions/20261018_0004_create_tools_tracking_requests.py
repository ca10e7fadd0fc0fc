"""Create tools, tracking and development_requests tables

Revision ID: 20261018_0004
Revises: 20261018_0003
Create Date: 2026-10-18 00:04:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261018_0004'
down_revision: str | None = '20261018_0003'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create tools catalog, tracking and development request tables."""
    op.create_table(
        'tool_categories',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('icon', sa.String(100), nullable=True),
        sa.Column('order', sa.Integer, nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'tools',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'category_id', UUID(as_uuid=True), sa.ForeignKey('tool_categories.id', ondelete='SET NULL'),
            nullable=True, index=True,
        ),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('url', sa.Text, nullable=True),
        sa.Column('icon', sa.String(100), nullable=True),
        sa.Column('order', sa.Integer, nullable=False, server_default='0'),
        sa.Column('is_featured', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'tracking_metrics',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('entity_type', sa.String(20), nullable=False),
        sa.Column('entity_id', sa.String(64), nullable=False, index=True),
        sa.Column('entity_email', sa.String(255), nullable=False, index=True),
        sa.Column('metric_type', sa.String(30), nullable=False),
        sa.Column('metric_value', sa.Integer, nullable=True),
        sa.Column('metric_data', sa.Text, nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('recorded_by', sa.String(255), nullable=True),
        sa.Column('recorded_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("entity_type IN ('member', 'patron')", name='tracking_metrics_entity_type_check'),
        sa.CheckConstraint(
            "metric_type IN ('status_change', 'engagement', 'contact', 'conversion', 'activity')",
            name='tracking_metrics_metric_type_check',
        ),
    )
    op.create_index('tracking_metrics_recorded_at_idx', 'tracking_metrics', ['recorded_at'])

    op.create_table(
        'tracking_alerts',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('entity_type', sa.String(20), nullable=False),
        sa.Column('entity_id', sa.String(64), nullable=False, index=True),
        sa.Column('entity_email', sa.String(255), nullable=False, index=True),
        sa.Column('alert_type', sa.String(30), nullable=False),
        sa.Column('severity', sa.String(20), nullable=False, server_default='medium'),
        sa.Column('title', sa.Text, nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('is_read', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('is_resolved', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('resolved_by', sa.String(255), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("entity_type IN ('member', 'patron')", name='tracking_alerts_entity_type_check'),
        sa.CheckConstraint(
            "alert_type IN ('stale', 'high_potential', 'needs_followup', 'conversion_opportunity')",
            name='tracking_alerts_alert_type_check',
        ),
        sa.CheckConstraint(
            "severity IN ('low', 'medium', 'high', 'critical')", name='tracking_alerts_severity_check'
        ),
    )
    op.create_index('tracking_alerts_open_idx', 'tracking_alerts', ['entity_id', 'alert_type', 'is_resolved'])
    op.create_index('tracking_alerts_created_at_idx', 'tracking_alerts', ['created_at'])

    op.create_table(
        'development_requests',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.Text, nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('priority', sa.String(20), nullable=False, server_default='medium'),
        sa.Column('requested_by', sa.String(255), nullable=False, index=True),
        sa.Column('requested_by_name', sa.Text, nullable=False),
        sa.Column('github_issue_number', sa.Integer, nullable=True),
        sa.Column('github_issue_url', sa.Text, nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='open'),
        sa.Column('admin_comment', sa.Text, nullable=True),
        sa.Column('last_status_change_by', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("type IN ('bug', 'feature')", name='dev_requests_type_check'),
        sa.CheckConstraint(
            "priority IN ('low', 'medium', 'high', 'critical')", name='dev_requests_priority_check'
        ),
        sa.CheckConstraint(
            "status IN ('open', 'in_progress', 'closed', 'cancelled')", name='dev_requests_status_check'
        ),
    )
    op.create_index('dev_requests_status_idx', 'development_requests', ['status'])


def downgrade() -> None:
    """Drop tools catalog, tracking and development request tables."""
    op.drop_index('dev_requests_status_idx', table_name='development_requests')
    op.drop_table('development_requests')
    op.drop_index('tracking_alerts_created_at_idx', table_name='tracking_alerts')
    op.drop_index('tracking_alerts_open_idx', table_name='tracking_alerts')
    op.drop_table('tracking_alerts')
    op.drop_index('tracking_metrics_recorded_at_idx', table_name='tracking_metrics')
    op.drop_table('tracking_metrics')
    op.drop_table('tools')
    op.drop_table('tool_categories')
