"""users, user_sessions and tasks

Learn: The initial schema. user_sessions is the active-session list:
one row per valid token, ordered by its integer id. Both child tables
cascade on user delete.

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-18 10:12:41.503118
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=True,
    )


def upgrade() -> None:
    # ─── Users ───────────────────────────────────────────
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('age', sa.Integer(), nullable=False),
        sa.Column('avatar_original', sa.String(length=500), nullable=False),
        sa.Column('avatar_small', sa.String(length=500), nullable=False),
        sa.Column('avatar_large', sa.String(length=500), nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    # ─── Active sessions ─────────────────────────────────
    op.create_table(
        'user_sessions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('token', sa.Text(), nullable=False),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token'),
    )
    op.create_index(
        'ix_user_sessions_user_token', 'user_sessions', ['user_id', 'token']
    )

    # ─── Tasks ───────────────────────────────────────────
    op.create_table(
        'tasks',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tasks_owner_created', 'tasks', ['owner_id', 'created_at'])


def downgrade() -> None:
    op.drop_index('ix_tasks_owner_created', table_name='tasks')
    op.drop_table('tasks')
    op.drop_index('ix_user_sessions_user_token', table_name='user_sessions')
    op.drop_table('user_sessions')
    op.drop_table('users')
