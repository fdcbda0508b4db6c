"""initial_schema

Revision ID: 3b7c1e9a4d20
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b7c1e9a4d20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create collections, entries, meeting_notes and schema_info.

    entries.monthly_id is the daily -> monthly anchor link and
    entries.task_uid the chain id shared by every copy of a task.
    """
    op.create_table(
        'schema_info',
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('applied_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('version'),
    )

    op.create_table(
        'collections',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column(
            'type',
            sa.Enum('meetings', 'ideas', 'custom', name='collection_type'),
            nullable=False,
        ),
        sa.Column('icon', sa.String(length=16), nullable=False),
        sa.Column('template', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("name != ''", name='ck_collection_non_empty_name'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_collections_user_id', 'collections', ['user_id'])

    op.create_table(
        'entries',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('type', sa.Enum('task', 'event', 'note', name='entry_type'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column(
            'status',
            sa.Enum('open', 'done', 'migrated', 'cancelled', name='entry_status'),
            nullable=False,
        ),
        sa.Column(
            'log_type',
            sa.Enum('daily', 'monthly', 'future', 'collection', name='log_type'),
            nullable=False,
        ),
        sa.Column('collection_id', sa.String(length=36), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('monthly_id', sa.String(length=36), nullable=True),
        sa.Column('task_uid', sa.String(length=36), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('external_event_id', sa.String(length=255), nullable=True),
        sa.Column(
            'source',
            sa.Enum('user', 'integration', 'calendar', name='entry_source'),
            nullable=False,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("content != ''", name='ck_entry_non_empty_content'),
        sa.CheckConstraint('position >= 0', name='ck_entry_non_negative_position'),
        sa.ForeignKeyConstraint(['collection_id'], ['collections.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['monthly_id'], ['entries.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_entries_user_date', 'entries', ['user_id', 'date'])
    op.create_index('idx_entries_user_log_type', 'entries', ['user_id', 'log_type'])
    op.create_index('ix_entries_collection_id', 'entries', ['collection_id'])
    op.create_index('ix_entries_monthly_id', 'entries', ['monthly_id'])
    op.create_index('ix_entries_task_uid', 'entries', ['task_uid'])

    op.create_table(
        'meeting_notes',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('collection_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('attendees', sa.JSON(), nullable=False),
        sa.Column('agenda', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("title != ''", name='ck_meeting_non_empty_title'),
        sa.ForeignKeyConstraint(['collection_id'], ['collections.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_meeting_notes_collection_id', 'meeting_notes', ['collection_id'])
    op.create_index('ix_meeting_notes_user_id', 'meeting_notes', ['user_id'])


def downgrade() -> None:
    """Drop every table."""
    op.drop_table('meeting_notes')
    op.drop_table('entries')
    op.drop_table('collections')
    op.drop_table('schema_info')
