"""Concrete shapes and facets of the feed directory.

Call sites pick which facets to include; the query builder and the
assembler both work from these definitions.
"""

from ..db.models import (
    CATEGORY_COLUMNS,
    Chapter,
    Episode,
    Feed,
    FeedCategories,
    FeedFunding,
    FeedGuid,
    FeedValue,
    Person,
    SocialInteract,
    Soundbite,
    Transcript,
    ValueTimeSplit,
)
from .assembler import EntityShape, Facet
from .records import (
    ChapterRecord,
    EpisodeRecord,
    FeedRecord,
    FundingRecord,
    PersonRecord,
    SocialInteractRecord,
    SoundbiteRecord,
    TranscriptRecord,
    ValueBlockRecord,
    ValueTimeSplitRecord,
    category_map,
)

FEED_COLUMNS = (
    "id",
    "url",
    "original_url",
    "title",
    "link",
    "description",
    "author",
    "owner_name",
    "image",
    "artwork",
    "language",
    "explicit",
    "type",
    "generator",
    "content_type",
    "medium",
    "item_count",
    "popularity",
    "priority",
    "itunes_id",
    "chash",
    "dead",
    "duplicate_of",
    "locked",
    "crawl_errors",
    "parse_errors",
    "created_on",
    "last_update",
    "last_check",
    "last_parse",
    "newest_item_pubdate",
    "oldest_item_pubdate",
)

EPISODE_COLUMNS = (
    "id",
    "feed_id",
    "guid",
    "enclosure_url",
    "title",
    "link",
    "description",
    "image",
    "date_published",
    "time_added",
    "enclosure_type",
    "enclosure_length",
    "duration",
    "explicit",
    "episode",
    "episode_type",
    "season",
)


def _build_feed(shape, row):
    # Categories come from the 1:1 companion when the query joined it.
    return FeedRecord(
        **shape.values(row),
        categories=category_map(CATEGORIES_COMPANION.values(row).values()),
    )


def _build_episode(shape, row):
    feed = FEED.values(row)
    return EpisodeRecord(
        **shape.values(row),
        feed_title=feed["title"],
        feed_image=feed["image"],
        feed_language=feed["language"],
        feed_itunes_id=feed["itunes_id"],
        feed_dead=feed["dead"] or 0,
    )


FEED = EntityShape(name="feed", model=Feed, columns=FEED_COLUMNS, build=_build_feed)

EPISODE = EntityShape(name="episode", model=Episode, columns=EPISODE_COLUMNS, build=_build_episode)

CATEGORIES_COMPANION = EntityShape(
    name="categories", model=FeedCategories, columns=CATEGORY_COLUMNS, key="feed_id"
)

# --- Feed facets ---

PODCAST_GUID = Facet(
    name="podcast_guid",
    model=FeedGuid,
    columns=("guid",),
    build=lambda shape, row: row[shape.label("guid")],
    owner=Feed,
    parent_key="feed_id",
    key_columns=("guid",),
    singleton=True,
)

VALUE = Facet(
    name="value",
    model=FeedValue,
    columns=("value_block",),
    record=ValueBlockRecord,
    owner=Feed,
    parent_key="feed_id",
    key_columns=("value_block",),
    singleton=True,
)

FUNDING = Facet(
    name="funding",
    model=FeedFunding,
    columns=("url", "message"),
    record=FundingRecord,
    owner=Feed,
    parent_key="feed_id",
    key_columns=("url",),
    singleton=True,
)

# --- Episode facets ---

SOUNDBITES = Facet(
    name="soundbites",
    model=Soundbite,
    columns=("start_time", "duration", "title"),
    record=SoundbiteRecord,
    owner=Episode,
    key_columns=("start_time", "duration"),
)

TRANSCRIPTS = Facet(
    name="transcripts",
    model=Transcript,
    columns=("url", "type"),
    record=TranscriptRecord,
    owner=Episode,
    key_columns=("url",),
)

PERSONS = Facet(
    name="persons",
    model=Person,
    columns=("id", "name", "role", "grp", "href", "img"),
    record=PersonRecord,
    owner=Episode,
    key_columns=("id",),
)

SOCIAL_INTERACT = Facet(
    name="social_interact",
    model=SocialInteract,
    columns=("uri", "protocol", "account_id", "account_url", "priority"),
    record=SocialInteractRecord,
    owner=Episode,
    key_columns=("uri",),
)

TIME_SPLITS = Facet(
    name="time_splits",
    model=ValueTimeSplit,
    columns=(
        "id",
        "start_time",
        "duration",
        "remote_start_time",
        "remote_percentage",
        "remote_feed_guid",
        "remote_item_guid",
    ),
    record=ValueTimeSplitRecord,
    owner=Episode,
    key_columns=("id",),
)

CHAPTER = Facet(
    name="chapter",
    model=Chapter,
    columns=("url",),
    record=ChapterRecord,
    owner=Episode,
    key_columns=("url",),
    singleton=True,
)

FEED_FACETS = (PODCAST_GUID, VALUE, FUNDING)
EPISODE_FACETS = (SOUNDBITES, TRANSCRIPTS, PERSONS, SOCIAL_INTERACT, TIME_SPLITS, CHAPTER)

# 1:1 tables joined next to a feed.
FEED_COMPANIONS = ((CATEGORIES_COMPANION, FeedCategories.feed_id == Feed.id, True),)

# An episode always carries its feed (inner join) and that feed's categories.
EPISODE_COMPANIONS = (
    (FEED, Episode.feed_id == Feed.id, False),
    (CATEGORIES_COMPANION, FeedCategories.feed_id == Feed.id, True),
)
