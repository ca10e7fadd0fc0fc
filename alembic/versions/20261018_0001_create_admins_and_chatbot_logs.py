"""Create admins and chatbot_query_logs tables

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:01:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261018_0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create admins and chatbot_query_logs tables."""
    op.create_table(
        'admins',
        sa.Column('email', sa.String(255), primary_key=True),
        sa.Column('first_name', sa.String(100), nullable=False, server_default='Admin'),
        sa.Column('last_name', sa.String(100), nullable=False, server_default='User'),
        sa.Column('password_hash', sa.Text, nullable=True),
        sa.Column('added_by', sa.String(255), nullable=True),
        sa.Column('role', sa.String(30), nullable=False, server_default='ideas_reader'),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "role IN ('super_admin', 'ideas_reader', 'ideas_manager', 'events_reader', 'events_manager')",
            name='admins_role_check',
        ),
        sa.CheckConstraint("status IN ('pending', 'active', 'inactive')", name='admins_status_check'),
    )
    op.create_index('admins_role_idx', 'admins', ['role'])
    op.create_index('admins_status_idx', 'admins', ['status'])

    op.create_table(
        'chatbot_query_logs',
        sa.Column('log_id', UUID(as_uuid=True), primary_key=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('user_email', sa.String(255), nullable=False),
        sa.Column('question', sa.Text, nullable=False),
        sa.Column('context', sa.Text, nullable=True),
        sa.Column('generated_sql', sa.Text, nullable=True),
        sa.Column('row_count', sa.Integer, nullable=True),
        sa.Column('error', sa.Text, nullable=True),
        sa.Column('duration_ms', sa.Integer, nullable=False),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('user_agent', sa.Text, nullable=True),
    )
    op.create_index('ix_chatbot_query_logs_user_email', 'chatbot_query_logs', ['user_email'])

    # Audit entries are append-only (PostgreSQL specific)
    op.execute("""
        CREATE RULE prevent_chatbot_log_update AS ON UPDATE TO chatbot_query_logs DO INSTEAD NOTHING;
    """)
    op.execute("""
        CREATE RULE prevent_chatbot_log_delete AS ON DELETE TO chatbot_query_logs DO INSTEAD NOTHING;
    """)


def downgrade() -> None:
    """Drop admins and chatbot_query_logs tables."""
    op.execute("DROP RULE IF EXISTS prevent_chatbot_log_delete ON chatbot_query_logs;")
    op.execute("DROP RULE IF EXISTS prevent_chatbot_log_update ON chatbot_query_logs;")

    op.drop_index('ix_chatbot_query_logs_user_email', table_name='chatbot_query_logs')
    op.drop_table('chatbot_query_logs')

    op.drop_index('admins_status_idx', table_name='admins')
    op.drop_index('admins_role_idx', table_name='admins')
    op.drop_table('admins')
