"""Typed records produced by the result assembler, and their API shapes.

Records mirror the store columns (snake_case); `to_dict()` produces the
camelCase objects the API returns.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


TRANSCRIPT_MIME_TYPES = {
    0: "text/html",
    1: "application/json",
    2: "application/srt",
    3: "text/vtt",
}
DEFAULT_TRANSCRIPT_MIME_TYPE = "text/plain"

# "podcast" is implicit and never stored.
MEDIUMS = ("music", "video", "film", "audiobook", "newsletter", "blog")
DEFAULT_MEDIUM = "podcast"

CATEGORIES = {
    1: "Arts",
    2: "Books",
    3: "Design",
    4: "Fashion",
    5: "Beauty",
    6: "Food",
    7: "Performing",
    8: "Visual",
    9: "Business",
    10: "Careers",
    11: "Entrepreneurship",
    12: "Investing",
    13: "Management",
    14: "Marketing",
    15: "Non-Profit",
    16: "Comedy",
    17: "Interviews",
    18: "Improv",
    19: "Stand-Up",
    20: "Education",
    21: "Courses",
    22: "How-To",
    23: "Language",
    24: "Learning",
    25: "Self-Improvement",
    26: "Fiction",
    27: "Drama",
    28: "History",
    29: "Health",
    30: "Fitness",
    31: "Alternative",
    32: "Medicine",
    33: "Mental",
    34: "Nutrition",
    35: "Sexuality",
    36: "Kids",
    37: "Family",
    38: "Parenting",
    39: "Pets",
    40: "Animals",
    41: "Stories",
    42: "Leisure",
    43: "Animation",
    44: "Manga",
    45: "Automotive",
    46: "Aviation",
    47: "Crafts",
    48: "Games",
    49: "Hobbies",
    50: "Home",
    51: "Garden",
    52: "Video-Games",
    53: "Music",
    54: "Commentary",
    55: "News",
    56: "Daily",
    57: "Entertainment",
    58: "Government",
    59: "Politics",
    60: "Buddhism",
    61: "Christianity",
    62: "Hinduism",
    63: "Islam",
    64: "Judaism",
    65: "Religion",
    66: "Spirituality",
    67: "Science",
    68: "Astronomy",
    69: "Chemistry",
    70: "Earth",
    71: "Life",
    72: "Mathematics",
    73: "Natural",
    74: "Nature",
    75: "Physics",
    76: "Social",
    77: "Society",
    78: "Culture",
    79: "Documentary",
    80: "Personal",
    81: "Journals",
    82: "Philosophy",
    83: "Places",
    84: "Travel",
    85: "Relationships",
    86: "Sports",
    87: "Baseball",
    88: "Basketball",
    89: "Cricket",
    90: "Fantasy",
    91: "Football",
    92: "Golf",
    93: "Hockey",
    94: "Rugby",
    95: "Running",
    96: "Soccer",
    97: "Swimming",
    98: "Tennis",
    99: "Volleyball",
    100: "Wilderness",
    101: "Wrestling",
    102: "Technology",
    103: "True Crime",
    104: "TV",
    105: "Film",
    106: "After-Shows",
    107: "Reviews",
    108: "Climate",
    109: "Weather",
    110: "Tabletop",
    111: "Role-Playing",
    112: "Cryptocurrency",
}

_CATEGORY_IDS_BY_NAME = {name.lower(): cat_id for cat_id, name in CATEGORIES.items()}


def transcript_mime_type(value) -> str:
    """Map the stored numeric transcript type to its MIME type; unknown values are text/plain."""
    try:
        return TRANSCRIPT_MIME_TYPES.get(int(value), DEFAULT_TRANSCRIPT_MIME_TYPE)
    except (TypeError, ValueError):
        return DEFAULT_TRANSCRIPT_MIME_TYPE


def feed_medium(value) -> str:
    """Return the stored medium when it is a known one, otherwise the implicit "podcast"."""
    if isinstance(value, str) and value.strip().lower() in MEDIUMS:
        return value.strip().lower()
    return DEFAULT_MEDIUM


def resolve_category_ids(values: Iterable[str]) -> List[int]:
    """
    Turn category ids or names (case-insensitive) into known category ids.

    Unknown entries are dropped; order is preserved and duplicates removed.
    """
    resolved: List[int] = []
    for value in values:
        value = str(value).strip()
        if not value:
            continue
        if value.isdigit():
            cat_id = int(value)
            if cat_id not in CATEGORIES:
                cat_id = None
        else:
            cat_id = _CATEGORY_IDS_BY_NAME.get(value.lower())
        if cat_id is None:
            logger.debug(f"Ignoring unknown category: {value}")
            continue
        if cat_id not in resolved:
            resolved.append(cat_id)
    return resolved


def category_map(category_ids: Iterable[Optional[int]]) -> Dict[str, str]:
    """Build the `{"id": "Name"}` object for a feed's stored category ids."""
    categories: Dict[str, str] = {}
    for cat_id in category_ids:
        if cat_id and cat_id in CATEGORIES:
            categories[str(cat_id)] = CATEGORIES[cat_id]
    return categories


# --- Episode facets ---


@dataclass
class SoundbiteRecord:
    start_time: float
    duration: float
    title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"startTime": self.start_time, "duration": self.duration, "title": self.title or ""}


@dataclass
class TranscriptRecord:
    url: str
    type: int = 0

    @property
    def mime_type(self) -> str:
        return transcript_mime_type(self.type)

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "type": self.mime_type}


@dataclass
class PersonRecord:
    id: int
    name: str
    role: Optional[str] = None
    grp: Optional[str] = None
    href: Optional[str] = None
    img: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role or "host",
            "group": self.grp or "cast",
            "href": self.href or "",
            "img": self.img or "",
        }


@dataclass
class SocialInteractRecord:
    uri: str
    protocol: Optional[str] = None
    account_id: Optional[str] = None
    account_url: Optional[str] = None
    priority: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uri": self.uri,
            "protocol": self.protocol or "",
            "accountId": self.account_id or "",
            "accountUrl": self.account_url or "",
            "priority": self.priority or 0,
        }


@dataclass
class ValueTimeSplitRecord:
    id: int
    start_time: int
    duration: int
    remote_start_time: int = 0
    remote_percentage: int = 100
    remote_feed_guid: Optional[str] = None
    remote_item_guid: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startTime": self.start_time,
            "duration": self.duration,
            "remoteStartTime": self.remote_start_time or 0,
            "remotePercentage": self.remote_percentage if self.remote_percentage is not None else 100,
            "remoteItem": {
                "feedGuid": self.remote_feed_guid or "",
                "itemGuid": self.remote_item_guid or "",
            },
        }


@dataclass
class ChapterRecord:
    url: str


# --- Feed facets ---


@dataclass
class ValueBlockRecord:
    value_block: str

    @property
    def document(self) -> Optional[Dict[str, Any]]:
        """The decoded `{"model": ..., "destinations": [...]}` document, or None if unreadable."""
        try:
            decoded = json.loads(self.value_block)
        except (TypeError, ValueError):
            logger.warning("Stored value block is not valid JSON")
            return None
        return decoded if isinstance(decoded, dict) else None


@dataclass
class FundingRecord:
    url: str
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "message": self.message or ""}


# --- Parents ---


@dataclass
class FeedRecord:
    id: int
    url: str
    original_url: Optional[str] = None
    title: Optional[str] = None
    link: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    owner_name: Optional[str] = None
    image: Optional[str] = None
    artwork: Optional[str] = None
    language: Optional[str] = None
    explicit: int = 0
    type: int = 0
    generator: Optional[str] = None
    content_type: Optional[str] = None
    medium: Optional[str] = None
    item_count: int = 0
    popularity: int = 0
    priority: int = 0
    itunes_id: Optional[int] = None
    chash: Optional[str] = None
    dead: int = 0
    duplicate_of: Optional[int] = None
    locked: int = 0
    crawl_errors: int = 0
    parse_errors: int = 0
    created_on: int = 0
    last_update: int = 0
    last_check: int = 0
    last_parse: int = 0
    newest_item_pubdate: int = 0
    oldest_item_pubdate: int = 0
    categories: Dict[str, str] = field(default_factory=dict)

    # Singleton facets
    podcast_guid: Optional[str] = None
    value: Optional[ValueBlockRecord] = None
    funding: Optional[FundingRecord] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "podcastGuid": self.podcast_guid or "",
            "title": self.title or "",
            "url": self.url,
            "originalUrl": self.original_url or self.url,
            "link": self.link or "",
            "description": self.description or "",
            "author": self.author or "",
            "ownerName": self.owner_name or "",
            "image": self.image or "",
            "artwork": self.artwork or self.image or "",
            "lastUpdateTime": self.last_update or 0,
            "lastCrawlTime": self.last_check or 0,
            "lastParseTime": self.last_parse or 0,
            "newestItemPublishTime": self.newest_item_pubdate or 0,
            "oldestItemPublishTime": self.oldest_item_pubdate or 0,
            "createdOn": self.created_on or 0,
            "itunesId": self.itunes_id or None,
            "generator": self.generator or "",
            "language": self.language or "",
            "type": self.type or 0,
            "medium": feed_medium(self.medium),
            "dead": self.dead or 0,
            "duplicateOf": self.duplicate_of,
            "locked": self.locked or 0,
            "chash": self.chash or "",
            "episodeCount": self.item_count or 0,
            "crawlErrors": self.crawl_errors or 0,
            "parseErrors": self.parse_errors or 0,
            "popularity": self.popularity or 0,
            "explicit": bool(self.explicit),
            "contentType": self.content_type or "",
            "categories": dict(self.categories) or None,
        }
        value = self.value.document if self.value is not None else None
        if value is not None:
            data["value"] = value
        if self.funding is not None:
            data["funding"] = self.funding.to_dict()
        return data


@dataclass
class EpisodeRecord:
    id: int
    feed_id: int
    guid: str
    enclosure_url: str
    title: Optional[str] = None
    link: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    date_published: int = 0
    time_added: int = 0
    enclosure_type: Optional[str] = None
    enclosure_length: int = 0
    duration: Optional[int] = None
    explicit: int = 0
    episode: Optional[int] = None
    episode_type: Optional[str] = None
    season: Optional[int] = None

    # Parent feed columns carried on every episode
    feed_title: Optional[str] = None
    feed_image: Optional[str] = None
    feed_language: Optional[str] = None
    feed_itunes_id: Optional[int] = None
    feed_dead: int = 0

    # Facets
    soundbites: List[SoundbiteRecord] = field(default_factory=list)
    transcripts: List[TranscriptRecord] = field(default_factory=list)
    persons: List[PersonRecord] = field(default_factory=list)
    social_interact: List[SocialInteractRecord] = field(default_factory=list)
    time_splits: List[ValueTimeSplitRecord] = field(default_factory=list)
    chapter: Optional[ChapterRecord] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "title": self.title or "",
            "link": self.link or "",
            "description": self.description or "",
            "guid": self.guid,
            "datePublished": self.date_published or 0,
            "dateCrawled": self.time_added or 0,
            "enclosureUrl": self.enclosure_url,
            "enclosureType": self.enclosure_type or "",
            "enclosureLength": self.enclosure_length or 0,
            "duration": self.duration,
            "explicit": self.explicit or 0,
            "episode": self.episode,
            "episodeType": self.episode_type,
            "season": self.season or 0,
            "image": self.image or "",
            "feedItunesId": self.feed_itunes_id or None,
            "feedImage": self.feed_image or "",
            "feedId": self.feed_id,
            "feedTitle": self.feed_title or "",
            "feedLanguage": self.feed_language or "",
            "feedDead": self.feed_dead or 0,
            "chaptersUrl": self.chapter.url if self.chapter else None,
            "transcriptUrl": self.transcripts[0].url if self.transcripts else None,
        }
        if self.transcripts:
            data["transcripts"] = [t.to_dict() for t in self.transcripts]
        if self.soundbites:
            data["soundbite"] = self.soundbites[0].to_dict()
            data["soundbites"] = [s.to_dict() for s in self.soundbites]
        if self.persons:
            data["persons"] = [p.to_dict() for p in self.persons]
        if self.social_interact:
            data["socialInteract"] = [s.to_dict() for s in self.social_interact]
        if self.time_splits:
            data["value"] = {"timeSplits": [v.to_dict() for v in self.time_splits]}
        return data
