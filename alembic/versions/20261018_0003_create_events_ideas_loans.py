"""Create events, inscriptions, ideas, votes and loan_items tables

Revision ID: 20261018_0003
Revises: 20261018_0002
Create Date: 2026-10-18 00:03:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261018_0003'
down_revision: str | None = '20261018_0002'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create public-facing content tables."""
    op.create_table(
        'events',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.Text, nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('location', sa.Text, nullable=True),
        sa.Column('max_participants', sa.Integer, nullable=True),
        sa.Column('allow_unsubscribe', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('status', sa.String(20), nullable=False, server_default='published'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_by', sa.String(255), nullable=True),
        sa.CheckConstraint(
            "status IN ('draft', 'published', 'cancelled', 'postponed', 'completed')",
            name='events_status_check',
        ),
    )
    op.create_index('events_status_date_idx', 'events', ['status', 'date'])

    op.create_table(
        'inscriptions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'event_id', UUID(as_uuid=True), sa.ForeignKey('events.id', ondelete='CASCADE'),
            nullable=False, index=True,
        ),
        sa.Column('name', sa.Text, nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('company', sa.Text, nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('comments', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('event_id', 'email', name='inscriptions_event_email_key'),
    )

    op.create_table(
        'ideas',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.Text, nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('proposed_by', sa.Text, nullable=False),
        sa.Column('proposed_by_email', sa.String(255), nullable=False, index=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('featured', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('deadline', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_by', sa.String(255), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'under_review', 'postponed', 'completed')",
            name='ideas_status_check',
        ),
    )
    op.create_index('ideas_status_idx', 'ideas', ['status'])
    op.create_index('ideas_created_at_idx', 'ideas', ['created_at'])

    op.create_table(
        'votes',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'idea_id', UUID(as_uuid=True), sa.ForeignKey('ideas.id', ondelete='CASCADE'),
            nullable=False, index=True,
        ),
        sa.Column('voter_name', sa.Text, nullable=False),
        sa.Column('voter_email', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('idea_id', 'voter_email', name='votes_idea_email_key'),
    )

    op.create_table(
        'loan_items',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.Text, nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('lender_name', sa.Text, nullable=False),
        sa.Column('photo_url', sa.Text, nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('proposed_by', sa.Text, nullable=False),
        sa.Column('proposed_by_email', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_by', sa.String(255), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'available', 'borrowed', 'unavailable')", name='loan_items_status_check'
        ),
    )
    op.create_index('loan_items_status_created_idx', 'loan_items', ['status', 'created_at'])


def downgrade() -> None:
    """Drop public-facing content tables."""
    op.drop_index('loan_items_status_created_idx', table_name='loan_items')
    op.drop_table('loan_items')
    op.drop_table('votes')
    op.drop_index('ideas_created_at_idx', table_name='ideas')
    op.drop_index('ideas_status_idx', table_name='ideas')
    op.drop_table('ideas')
    op.drop_table('inscriptions')
    op.drop_index('events_status_date_idx', table_name='events')
    op.drop_table('events')
