"""kapture_baseline

Revision ID: 3c1e5a7b9d20
Revises: 
Create Date: 2026-10-16 09:12:44.118206

Production-safe migration: Only creates tables that do not exist yet.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '3c1e5a7b9d20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    if not table_exists('users'):
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('external_id', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('name', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
        op.create_index(op.f('ix_users_external_id'), 'users', ['external_id'], unique=True)
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    if not table_exists('subscriptions'):
        op.create_table('subscriptions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('plan_type', sa.String(), nullable=False, server_default='free'),
            sa.Column('status', sa.String(), nullable=False, server_default='inactive'),
            sa.Column('stripe_customer_id', sa.String(), nullable=True),
            sa.Column('stripe_subscription_id', sa.String(), nullable=True),
            sa.Column('stripe_price_id', sa.String(), nullable=True),
            sa.Column('current_period_start', sa.DateTime(timezone=True), nullable=True),
            sa.Column('current_period_end', sa.DateTime(timezone=True), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id')
        )
        op.create_index(op.f('ix_subscriptions_id'), 'subscriptions', ['id'], unique=False)
        op.create_index(op.f('ix_subscriptions_stripe_customer_id'), 'subscriptions', ['stripe_customer_id'], unique=False)
        op.create_index(op.f('ix_subscriptions_stripe_subscription_id'), 'subscriptions', ['stripe_subscription_id'], unique=False)

    if not table_exists('usage_records'):
        op.create_table('usage_records',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('action_kind', sa.String(), nullable=False),
            sa.Column('period_start', sa.DateTime(), nullable=False),
            sa.Column('period_end', sa.DateTime(), nullable=False),
            sa.Column('count', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'action_kind', 'period_start', name='uq_usage_user_action_period')
        )
        op.create_index(op.f('ix_usage_records_id'), 'usage_records', ['id'], unique=False)
        op.create_index(op.f('ix_usage_records_user_id'), 'usage_records', ['user_id'], unique=False)
        op.create_index('idx_usage_period_start', 'usage_records', ['period_start'], unique=False)

    if not table_exists('media_downloads'):
        op.create_table('media_downloads',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('original_url', sa.String(), nullable=False),
            sa.Column('title', sa.String(), nullable=True),
            sa.Column('platform', sa.String(), nullable=True),
            sa.Column('file_type', sa.String(), nullable=False, server_default='video'),
            sa.Column('quality', sa.String(), nullable=False, server_default='highest'),
            sa.Column('download_status', sa.String(), nullable=False, server_default='queued'),
            sa.Column('storage_key', sa.String(), nullable=True),
            sa.Column('archived', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('archived_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('favorite', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('favorited_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_media_downloads_id'), 'media_downloads', ['id'], unique=False)
        op.create_index(op.f('ix_media_downloads_user_id'), 'media_downloads', ['user_id'], unique=False)

    if not table_exists('media_tags'):
        op.create_table('media_tags',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('media_download_id', sa.Integer(), nullable=False),
            sa.Column('tag', sa.String(length=64), nullable=False),
            sa.ForeignKeyConstraint(['media_download_id'], ['media_downloads.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('media_download_id', 'tag', name='uq_media_tag')
        )
        op.create_index(op.f('ix_media_tags_id'), 'media_tags', ['id'], unique=False)
        op.create_index(op.f('ix_media_tags_media_download_id'), 'media_tags', ['media_download_id'], unique=False)
        op.create_index(op.f('ix_media_tags_tag'), 'media_tags', ['tag'], unique=False)

    if not table_exists('ai_generations'):
        op.create_table('ai_generations',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('generation_type', sa.String(), nullable=False),
            sa.Column('prompt', sa.Text(), nullable=False),
            sa.Column('response', sa.Text(), nullable=False),
            sa.Column('model', sa.String(), nullable=False),
            sa.Column('tokens_used', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_ai_generations_id'), 'ai_generations', ['id'], unique=False)
        op.create_index(op.f('ix_ai_generations_user_id'), 'ai_generations', ['user_id'], unique=False)


def downgrade() -> None:
    # Children before parents
    op.drop_table('ai_generations')
    op.drop_table('media_tags')
    op.drop_table('media_downloads')
    op.drop_table('usage_records')
    op.drop_table('subscriptions')
    op.drop_table('users')
