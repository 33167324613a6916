"""SQLAlchemy ORM models for the feed directory.

Timestamps are stored as integer epoch seconds, which is what the API
exposes and what the sync cursor compares against.
"""

from typing import Optional

from sqlalchemy import (
    BigInteger,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class Feed(Base):
    """A podcast feed.

    Feeds are created once through the identity resolver and afterwards only
    updated; `dead=1` stands in for deletion.
    """

    __tablename__ = "feeds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Identity
    url: Mapped[str] = mapped_column(String(768), unique=True, nullable=False)
    original_url: Mapped[Optional[str]] = mapped_column(String(768))
    chash: Mapped[Optional[str]] = mapped_column(String(64))
    itunes_id: Mapped[Optional[int]] = mapped_column(BigInteger, unique=True)

    # Descriptive metadata
    title: Mapped[Optional[str]] = mapped_column(String(768))
    link: Mapped[Optional[str]] = mapped_column(String(768))
    description: Mapped[Optional[str]] = mapped_column(Text)
    author: Mapped[Optional[str]] = mapped_column(String(768))
    owner_name: Mapped[Optional[str]] = mapped_column(String(768))
    image: Mapped[Optional[str]] = mapped_column(String(768))
    artwork: Mapped[Optional[str]] = mapped_column(String(768))
    language: Mapped[Optional[str]] = mapped_column(String(16))
    explicit: Mapped[int] = mapped_column(Integer, default=0)
    type: Mapped[int] = mapped_column(Integer, default=0)  # 0 rss, 1 atom
    generator: Mapped[Optional[str]] = mapped_column(String(128))
    content_type: Mapped[Optional[str]] = mapped_column(String(128))
    medium: Mapped[Optional[str]] = mapped_column(String(32))  # NULL means podcast
    item_count: Mapped[int] = mapped_column(Integer, default=0)
    popularity: Mapped[int] = mapped_column(Integer, default=0)
    priority: Mapped[int] = mapped_column(Integer, default=0)

    # Lifecycle flags
    dead: Mapped[int] = mapped_column(Integer, default=0)
    duplicate_of: Mapped[Optional[int]] = mapped_column(Integer)
    locked: Mapped[int] = mapped_column(Integer, default=0)

    # Crawl/parse work queue
    pull_now: Mapped[int] = mapped_column(Integer, default=0)
    parse_now: Mapped[int] = mapped_column(Integer, default=0)
    updated: Mapped[int] = mapped_column(Integer, default=0)
    crawl_errors: Mapped[int] = mapped_column(Integer, default=0)
    parse_errors: Mapped[int] = mapped_column(Integer, default=0)

    # Timestamps
    created_on: Mapped[int] = mapped_column(Integer, default=0)
    last_update: Mapped[int] = mapped_column(Integer, default=0)
    last_check: Mapped[int] = mapped_column(Integer, default=0)
    last_parse: Mapped[int] = mapped_column(Integer, default=0)
    newest_item_pubdate: Mapped[int] = mapped_column(Integer, default=0)
    oldest_item_pubdate: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = (
        Index("ix_feeds_original_url", "original_url"),
        Index("ix_feeds_chash", "chash"),
        Index("ix_feeds_newest_item_pubdate", "newest_item_pubdate"),
        Index("ix_feeds_created_on", "created_on"),
        Index("ix_feeds_pull_now", "pull_now"),
    )

    def __repr__(self) -> str:
        return f"<Feed(id={self.id}, url={self.url!r})>"


class FeedCategories(Base):
    """Up to ten category ids per feed, resolved through the static category map."""

    __tablename__ = "feed_categories"

    feed_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("feeds.id", ondelete="CASCADE"), primary_key=True
    )
    catid1: Mapped[Optional[int]] = mapped_column(Integer)
    catid2: Mapped[Optional[int]] = mapped_column(Integer)
    catid3: Mapped[Optional[int]] = mapped_column(Integer)
    catid4: Mapped[Optional[int]] = mapped_column(Integer)
    catid5: Mapped[Optional[int]] = mapped_column(Integer)
    catid6: Mapped[Optional[int]] = mapped_column(Integer)
    catid7: Mapped[Optional[int]] = mapped_column(Integer)
    catid8: Mapped[Optional[int]] = mapped_column(Integer)
    catid9: Mapped[Optional[int]] = mapped_column(Integer)
    catid10: Mapped[Optional[int]] = mapped_column(Integer)


CATEGORY_COLUMNS = tuple(f"catid{i}" for i in range(1, 11))


class FeedGuid(Base):
    """The canonical podcast guid of a feed (one per feed, globally unique)."""

    __tablename__ = "feed_guids"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    feed_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("feeds.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    guid: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)


class FeedValue(Base):
    """Value-for-value payment routing block (JSON: model + destinations)."""

    __tablename__ = "feed_values"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    feed_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("feeds.id", ondelete="CASCADE"), nullable=False
    )
    value_block: Mapped[str] = mapped_column(Text, nullable=False)
    created_on: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = (Index("ix_feed_values_feed_id", "feed_id"),)


class FeedFunding(Base):
    """Funding link for a feed."""

    __tablename__ = "feed_funding"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    feed_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("feeds.id", ondelete="CASCADE"), nullable=False
    )
    url: Mapped[str] = mapped_column(String(768), nullable=False)
    message: Mapped[Optional[str]] = mapped_column(String(255))

    __table_args__ = (Index("ix_feed_funding_feed_id", "feed_id"),)


class Episode(Base):
    """An episode (feed item). Created by the ingestion path, read here."""

    __tablename__ = "episodes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    feed_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("feeds.id", ondelete="CASCADE"), nullable=False
    )
    guid: Mapped[str] = mapped_column(String(740), nullable=False)

    title: Mapped[Optional[str]] = mapped_column(String(1024))
    link: Mapped[Optional[str]] = mapped_column(String(1024))
    description: Mapped[Optional[str]] = mapped_column(Text)
    image: Mapped[Optional[str]] = mapped_column(String(768))

    # Timestamps
    date_published: Mapped[int] = mapped_column(Integer, default=0)
    time_added: Mapped[int] = mapped_column(Integer, nullable=False)

    # Enclosure
    enclosure_url: Mapped[str] = mapped_column(String(768), nullable=False)
    enclosure_type: Mapped[Optional[str]] = mapped_column(String(128))
    enclosure_length: Mapped[int] = mapped_column(BigInteger, default=0)
    duration: Mapped[Optional[int]] = mapped_column(Integer)

    # Episode metadata
    explicit: Mapped[int] = mapped_column(Integer, default=0)
    episode: Mapped[Optional[int]] = mapped_column(Integer)
    episode_type: Mapped[Optional[str]] = mapped_column(String(16))  # full, trailer, bonus
    season: Mapped[Optional[int]] = mapped_column(Integer)

    __table_args__ = (
        UniqueConstraint("feed_id", "guid", name="uq_episode_feed_guid"),
        Index("ix_episodes_feed_id", "feed_id"),
        Index("ix_episodes_time_added_id", "time_added", "id"),
        Index("ix_episodes_date_published", "date_published"),
    )

    def __repr__(self) -> str:
        return f"<Episode(id={self.id}, feed_id={self.feed_id}, guid={self.guid!r})>"


class Soundbite(Base):
    __tablename__ = "soundbites"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("episodes.id", ondelete="CASCADE"), nullable=False
    )
    start_time: Mapped[float] = mapped_column(Float, nullable=False)
    duration: Mapped[float] = mapped_column(Float, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(500))

    __table_args__ = (
        UniqueConstraint("item_id", "start_time", "duration", name="uq_soundbite_item_time"),
    )


class Transcript(Base):
    __tablename__ = "transcripts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("episodes.id", ondelete="CASCADE"), nullable=False
    )
    url: Mapped[str] = mapped_column(String(768), nullable=False)
    type: Mapped[int] = mapped_column(Integer, default=0)  # see TRANSCRIPT_MIME_TYPES

    __table_args__ = (Index("ix_transcripts_item_id", "item_id"),)


class Person(Base):
    __tablename__ = "persons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("episodes.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    role: Mapped[Optional[str]] = mapped_column(String(128))
    grp: Mapped[Optional[str]] = mapped_column(String(128))
    href: Mapped[Optional[str]] = mapped_column(String(768))
    img: Mapped[Optional[str]] = mapped_column(String(768))

    __table_args__ = (Index("ix_persons_item_id", "item_id"),)


class SocialInteract(Base):
    __tablename__ = "social_interacts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("episodes.id", ondelete="CASCADE"), nullable=False
    )
    uri: Mapped[str] = mapped_column(String(768), nullable=False)
    protocol: Mapped[Optional[str]] = mapped_column(String(32))
    account_id: Mapped[Optional[str]] = mapped_column(String(255))
    account_url: Mapped[Optional[str]] = mapped_column(String(768))
    priority: Mapped[Optional[int]] = mapped_column(Integer)

    __table_args__ = (Index("ix_social_interacts_item_id", "item_id"),)


class ValueTimeSplit(Base):
    __tablename__ = "value_time_splits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("episodes.id", ondelete="CASCADE"), nullable=False
    )
    start_time: Mapped[int] = mapped_column(Integer, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    remote_start_time: Mapped[int] = mapped_column(Integer, default=0)
    remote_percentage: Mapped[int] = mapped_column(Integer, default=100)
    remote_feed_guid: Mapped[Optional[str]] = mapped_column(String(64))
    remote_item_guid: Mapped[Optional[str]] = mapped_column(String(740))

    __table_args__ = (Index("ix_value_time_splits_item_id", "item_id"),)


class Chapter(Base):
    __tablename__ = "chapters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("episodes.id", ondelete="CASCADE"), nullable=False
    )
    url: Mapped[str] = mapped_column(String(768), nullable=False)

    __table_args__ = (Index("ix_chapters_item_id", "item_id"),)


# Child tables of an episode, purged together with it.
EPISODE_CHILD_MODELS = (Soundbite, Transcript, Person, SocialInteract, ValueTimeSplit, Chapter)
