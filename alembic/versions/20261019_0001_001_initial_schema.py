"""Initial schema for feeds, episodes and their facets

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _item_fk():
    return sa.Column(
        'item_id', sa.Integer, sa.ForeignKey('episodes.id', ondelete='CASCADE'), nullable=False
    )


def _feed_fk(**kwargs):
    return sa.Column(
        'feed_id', sa.Integer, sa.ForeignKey('feeds.id', ondelete='CASCADE'), nullable=False, **kwargs
    )


def upgrade() -> None:
    # Create feeds table
    op.create_table(
        'feeds',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('url', sa.String(768), unique=True, nullable=False),
        sa.Column('original_url', sa.String(768), nullable=True),
        sa.Column('chash', sa.String(64), nullable=True),
        sa.Column('itunes_id', sa.BigInteger, unique=True, nullable=True),
        sa.Column('title', sa.String(768), nullable=True),
        sa.Column('link', sa.String(768), nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('author', sa.String(768), nullable=True),
        sa.Column('owner_name', sa.String(768), nullable=True),
        sa.Column('image', sa.String(768), nullable=True),
        sa.Column('artwork', sa.String(768), nullable=True),
        sa.Column('language', sa.String(16), nullable=True),
        sa.Column('explicit', sa.Integer, default=0),
        sa.Column('type', sa.Integer, default=0),
        sa.Column('generator', sa.String(128), nullable=True),
        sa.Column('content_type', sa.String(128), nullable=True),
        sa.Column('medium', sa.String(32), nullable=True),
        sa.Column('item_count', sa.Integer, default=0),
        sa.Column('popularity', sa.Integer, default=0),
        sa.Column('priority', sa.Integer, default=0),
        sa.Column('dead', sa.Integer, default=0),
        sa.Column('duplicate_of', sa.Integer, nullable=True),
        sa.Column('locked', sa.Integer, default=0),
        sa.Column('pull_now', sa.Integer, default=0),
        sa.Column('parse_now', sa.Integer, default=0),
        sa.Column('updated', sa.Integer, default=0),
        sa.Column('crawl_errors', sa.Integer, default=0),
        sa.Column('parse_errors', sa.Integer, default=0),
        sa.Column('created_on', sa.Integer, default=0),
        sa.Column('last_update', sa.Integer, default=0),
        sa.Column('last_check', sa.Integer, default=0),
        sa.Column('last_parse', sa.Integer, default=0),
        sa.Column('newest_item_pubdate', sa.Integer, default=0),
        sa.Column('oldest_item_pubdate', sa.Integer, default=0),
    )
    op.create_index('ix_feeds_original_url', 'feeds', ['original_url'])
    op.create_index('ix_feeds_chash', 'feeds', ['chash'])
    op.create_index('ix_feeds_newest_item_pubdate', 'feeds', ['newest_item_pubdate'])
    op.create_index('ix_feeds_created_on', 'feeds', ['created_on'])
    op.create_index('ix_feeds_pull_now', 'feeds', ['pull_now'])

    # Create feed_categories table
    op.create_table(
        'feed_categories',
        sa.Column('feed_id', sa.Integer, sa.ForeignKey('feeds.id', ondelete='CASCADE'), primary_key=True),
        *[sa.Column(f'catid{i}', sa.Integer, nullable=True) for i in range(1, 11)],
    )

    # Create feed_guids table
    op.create_table(
        'feed_guids',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        _feed_fk(unique=True),
        sa.Column('guid', sa.String(64), unique=True, nullable=False),
    )

    # Create feed_values table
    op.create_table(
        'feed_values',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        _feed_fk(),
        sa.Column('value_block', sa.Text, nullable=False),
        sa.Column('created_on', sa.Integer, default=0),
    )
    op.create_index('ix_feed_values_feed_id', 'feed_values', ['feed_id'])

    # Create feed_funding table
    op.create_table(
        'feed_funding',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        _feed_fk(),
        sa.Column('url', sa.String(768), nullable=False),
        sa.Column('message', sa.String(255), nullable=True),
    )
    op.create_index('ix_feed_funding_feed_id', 'feed_funding', ['feed_id'])

    # Create episodes table
    op.create_table(
        'episodes',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        _feed_fk(),
        sa.Column('guid', sa.String(740), nullable=False),
        sa.Column('title', sa.String(1024), nullable=True),
        sa.Column('link', sa.String(1024), nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('image', sa.String(768), nullable=True),
        sa.Column('date_published', sa.Integer, default=0),
        sa.Column('time_added', sa.Integer, nullable=False),
        sa.Column('enclosure_url', sa.String(768), nullable=False),
        sa.Column('enclosure_type', sa.String(128), nullable=True),
        sa.Column('enclosure_length', sa.BigInteger, default=0),
        sa.Column('duration', sa.Integer, nullable=True),
        sa.Column('explicit', sa.Integer, default=0),
        sa.Column('episode', sa.Integer, nullable=True),
        sa.Column('episode_type', sa.String(16), nullable=True),
        sa.Column('season', sa.Integer, nullable=True),
        sa.UniqueConstraint('feed_id', 'guid', name='uq_episode_feed_guid'),
    )
    op.create_index('ix_episodes_feed_id', 'episodes', ['feed_id'])
    op.create_index('ix_episodes_time_added_id', 'episodes', ['time_added', 'id'])
    op.create_index('ix_episodes_date_published', 'episodes', ['date_published'])

    # Create episode facet tables
    op.create_table(
        'soundbites',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        _item_fk(),
        sa.Column('start_time', sa.Float, nullable=False),
        sa.Column('duration', sa.Float, nullable=False),
        sa.Column('title', sa.String(500), nullable=True),
        sa.UniqueConstraint('item_id', 'start_time', 'duration', name='uq_soundbite_item_time'),
    )

    op.create_table(
        'transcripts',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        _item_fk(),
        sa.Column('url', sa.String(768), nullable=False),
        sa.Column('type', sa.Integer, default=0),
    )
    op.create_index('ix_transcripts_item_id', 'transcripts', ['item_id'])

    op.create_table(
        'persons',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        _item_fk(),
        sa.Column('name', sa.String(128), nullable=False),
        sa.Column('role', sa.String(128), nullable=True),
        sa.Column('grp', sa.String(128), nullable=True),
        sa.Column('href', sa.String(768), nullable=True),
        sa.Column('img', sa.String(768), nullable=True),
    )
    op.create_index('ix_persons_item_id', 'persons', ['item_id'])

    op.create_table(
        'social_interacts',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        _item_fk(),
        sa.Column('uri', sa.String(768), nullable=False),
        sa.Column('protocol', sa.String(32), nullable=True),
        sa.Column('account_id', sa.String(255), nullable=True),
        sa.Column('account_url', sa.String(768), nullable=True),
        sa.Column('priority', sa.Integer, nullable=True),
    )
    op.create_index('ix_social_interacts_item_id', 'social_interacts', ['item_id'])

    op.create_table(
        'value_time_splits',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        _item_fk(),
        sa.Column('start_time', sa.Integer, nullable=False),
        sa.Column('duration', sa.Integer, nullable=False),
        sa.Column('remote_start_time', sa.Integer, default=0),
        sa.Column('remote_percentage', sa.Integer, default=100),
        sa.Column('remote_feed_guid', sa.String(64), nullable=True),
        sa.Column('remote_item_guid', sa.String(740), nullable=True),
    )
    op.create_index('ix_value_time_splits_item_id', 'value_time_splits', ['item_id'])

    op.create_table(
        'chapters',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        _item_fk(),
        sa.Column('url', sa.String(768), nullable=False),
    )
    op.create_index('ix_chapters_item_id', 'chapters', ['item_id'])


def downgrade() -> None:
    for table in (
        'chapters',
        'value_time_splits',
        'social_interacts',
        'persons',
        'transcripts',
        'soundbites',
        'episodes',
        'feed_funding',
        'feed_values',
        'feed_guids',
        'feed_categories',
    ):
        op.drop_table(table)
    op.drop_table('feeds')
