"""Create member CRM tables and seed system statuses

Revision ID: 20261018_0002
Revises: 20261018_0001
Create Date: 2026-10-18 00:02:00.000000

"""
import uuid
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261018_0002'
down_revision: str | None = '20261018_0001'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _member_fk(name: str) -> sa.Column:
    return sa.Column(
        name, sa.String(255), sa.ForeignKey('members.email', ondelete='CASCADE'), nullable=False, index=True
    )


def upgrade() -> None:
    """Create members, activities, statuses, tags, tasks and relations."""
    op.create_table(
        'members',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('company', sa.Text, nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('role', sa.Text, nullable=True),
        sa.Column('cjd_role', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='active'),
        sa.Column('proposed_by', sa.String(255), nullable=True),
        sa.Column('engagement_score', sa.Integer, nullable=False, server_default='0'),
        sa.Column('first_seen_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_activity_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('activity_count', sa.Integer, nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('members_status_idx', 'members', ['status'])
    op.create_index('members_last_activity_at_idx', 'members', ['last_activity_at'])
    op.create_index('members_engagement_score_idx', 'members', ['engagement_score'])

    op.create_table(
        'member_activities',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        _member_fk('member_email'),
        sa.Column('activity_type', sa.String(30), nullable=False),
        sa.Column('entity_type', sa.String(20), nullable=False),
        sa.Column('entity_id', sa.String(64), nullable=True),
        sa.Column('entity_title', sa.Text, nullable=True),
        sa.Column('score_impact', sa.Integer, nullable=False),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "activity_type IN ('idea_proposed', 'vote_cast', 'event_registered', "
            "'event_unregistered', 'patron_suggested')",
            name='member_activities_type_check',
        ),
    )

    statuses = op.create_table(
        'member_statuses',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('code', sa.String(50), nullable=False, unique=True),
        sa.Column('label', sa.String(100), nullable=False),
        sa.Column('category', sa.String(20), nullable=False),
        sa.Column('color', sa.String(20), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('display_order', sa.Integer, nullable=False, server_default='0'),
        sa.Column('is_system', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("category IN ('member', 'prospect')", name='member_statuses_category_check'),
    )

    op.create_table(
        'member_tags',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('color', sa.String(20), nullable=False, server_default='#3b82f6'),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'member_tag_assignments',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        _member_fk('member_email'),
        sa.Column(
            'tag_id', UUID(as_uuid=True), sa.ForeignKey('member_tags.id', ondelete='CASCADE'),
            nullable=False, index=True,
        ),
        sa.Column('assigned_by', sa.String(255), nullable=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('member_email', 'tag_id', name='member_tag_assignments_member_tag_key'),
    )

    op.create_table(
        'member_tasks',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        _member_fk('member_email'),
        sa.Column('title', sa.Text, nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('task_type', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='todo'),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_by', sa.String(255), nullable=True),
        sa.Column('assigned_to', sa.String(255), nullable=True),
        sa.Column('created_by', sa.String(255), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("task_type IN ('call', 'email', 'meeting', 'custom')", name='member_tasks_type_check'),
        sa.CheckConstraint(
            "status IN ('todo', 'in_progress', 'completed', 'cancelled')", name='member_tasks_status_check'
        ),
    )
    op.create_index('member_tasks_status_idx', 'member_tasks', ['status'])
    op.create_index('member_tasks_due_date_idx', 'member_tasks', ['due_date'])

    op.create_table(
        'member_relations',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        _member_fk('member_email'),
        _member_fk('related_member_email'),
        sa.Column('relation_type', sa.String(20), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('created_by', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "relation_type IN ('sponsor', 'team', 'custom')", name='member_relations_type_check'
        ),
        sa.CheckConstraint('member_email <> related_member_email', name='member_relations_not_self_check'),
    )

    op.bulk_insert(
        statuses,
        [
            {
                'id': uuid.uuid4(),
                'code': 'active',
                'label': 'Actif',
                'category': 'member',
                'color': '#10b981',
                'description': 'Membre actif',
                'display_order': 1,
                'is_system': True,
                'is_active': True,
            },
            {
                'id': uuid.uuid4(),
                'code': 'proposed',
                'label': 'Proposé',
                'category': 'prospect',
                'color': '#f59e0b',
                'description': 'Membre proposé, en attente de conversion',
                'display_order': 1,
                'is_system': True,
                'is_active': True,
            },
        ],
    )


def downgrade() -> None:
    """Drop member CRM tables."""
    op.drop_table('member_relations')
    op.drop_index('member_tasks_due_date_idx', table_name='member_tasks')
    op.drop_index('member_tasks_status_idx', table_name='member_tasks')
    op.drop_table('member_tasks')
    op.drop_table('member_tag_assignments')
    op.drop_table('member_tags')
    op.drop_table('member_statuses')
    op.drop_table('member_activities')
    op.drop_index('members_engagement_score_idx', table_name='members')
    op.drop_index('members_last_activity_at_idx', table_name='members')
    op.drop_index('members_status_idx', table_name='members')
    op.drop_table('members')
