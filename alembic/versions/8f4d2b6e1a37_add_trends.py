"""add_trends

Revision ID: 8f4d2b6e1a37
Revises: 3c1e5a7b9d20
Create Date: 2026-10-16 15:40:21.503117

Production-safe migration: Only creates the table if it does not exist yet.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '8f4d2b6e1a37'
down_revision: Union[str, None] = '3c1e5a7b9d20'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    if not table_exists('trends'):
        op.create_table('trends',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('platform', sa.String(), nullable=False),
            sa.Column('content_type', sa.String(), nullable=False),
            sa.Column('title', sa.Text(), nullable=True),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('url', sa.String(), nullable=False),
            sa.Column('thumbnail_url', sa.String(), nullable=True),
            sa.Column('author', sa.String(), nullable=True),
            sa.Column('likes', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('views', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('shares', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('comments', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('hashtags', sa.JSON(), nullable=False),
            sa.Column('metadata', sa.JSON(), nullable=False),
            sa.Column('scraped_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_trends_id'), 'trends', ['id'], unique=False)
        op.create_index(op.f('ix_trends_user_id'), 'trends', ['user_id'], unique=False)
        op.create_index(op.f('ix_trends_platform'), 'trends', ['platform'], unique=False)


def downgrade() -> None:
    op.drop_table('trends')
