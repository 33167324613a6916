"""Read side of the feed directory.

Every lookup goes through the single join builder and the result
assembler; call sites differ only in filters, ordering and facets.
"""

import logging
import time
from typing import Callable, List, Optional, Sequence

from sqlalchemy import and_, false, func, or_, select

from ..assembly.assembler import ResultAssembler
from ..assembly.facets import (
    EPISODE,
    EPISODE_COMPANIONS,
    EPISODE_FACETS,
    FEED,
    FEED_COMPANIONS,
    FEED_FACETS,
)
from ..assembly.query import build_assembly_query
from ..assembly.records import EpisodeRecord, FeedRecord
from ..db.models import CATEGORY_COLUMNS, Episode, Feed, FeedCategories, FeedGuid
from ..db.repository import FeedRepositoryInterface
from ..errors import InvalidInputError
from ..identity.canonical import canonical_variants, validate_feed_url

logger = logging.getLogger(__name__)

SORT_DISCOVERY = "discovery"

# Raw filter parameters are cut to this many characters before splitting.
FILTER_PARAM_MAX_CHARS = 200


def parse_filter_list(raw: Optional[str], limit: int = 10) -> Optional[List[str]]:
    """
    Split a comma separated request parameter into at most `limit` trimmed entries.

    Returns:
        The entries, or None when the parameter is missing or empty.
    """
    if not raw or not raw.strip():
        return None
    entries = [entry.strip() for entry in raw.strip()[:FILTER_PARAM_MAX_CHARS].split(",")]
    entries = [entry for entry in entries if entry][:limit]
    return entries or None


def resolve_since(since: Optional[int], now: int) -> Optional[int]:
    """Negative `since` values mean "that many seconds ago"."""
    if since is None:
        return None
    if since < 0:
        return now - abs(since)
    return since


class DirectoryService:
    """Feed and episode lookups returning assembled records."""

    def __init__(
        self,
        repository: FeedRepositoryInterface,
        config,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.repository = repository
        self.config = config
        self.clock = clock or (lambda: int(time.time()))
        self.feed_assembler = ResultAssembler(FEED, FEED_FACETS)

    # --- Query helpers ---

    def _feeds(
        self,
        where: Sequence,
        order_by: Sequence = (),
        limit: Optional[int] = None,
    ) -> List[FeedRecord]:
        stmt = build_assembly_query(
            FEED,
            facets=FEED_FACETS,
            companions=FEED_COMPANIONS,
            where=where,
            order_by=order_by,
            limit=limit,
        )
        return self.feed_assembler.assemble(self.repository.query_rows(stmt), max_results=limit)

    def _episodes(
        self,
        where: Sequence,
        order_by: Sequence = (),
        limit: Optional[int] = None,
        facets=EPISODE_FACETS,
    ) -> List[EpisodeRecord]:
        stmt = build_assembly_query(
            EPISODE,
            facets=facets,
            companions=EPISODE_COMPANIONS,
            where=where,
            order_by=order_by,
            limit=limit,
        )
        assembler = ResultAssembler(EPISODE, facets)
        return assembler.assemble(self.repository.query_rows(stmt), max_results=limit)

    def _first_feed(self, criteria: list, with_dead: bool) -> Optional[FeedRecord]:
        if not with_dead:
            criteria.append(Feed.dead == 0)
        feeds = self._feeds(criteria, limit=1)
        return feeds[0] if feeds else None

    # --- Feeds ---

    def get_feed(self, feed_id: int, with_dead: bool = False) -> Optional[FeedRecord]:
        """
        Retrieve one feed by id.

        Returns:
            The assembled feed, or None when it does not exist (or is dead and `with_dead` is False).
        """
        return self._first_feed([Feed.id == feed_id], with_dead)

    def get_feed_by_url(self, url: str, with_dead: bool = False) -> Optional[FeedRecord]:
        """
        Retrieve the feed whose url or original url matches any canonical variant of `url`.
        """
        variants = canonical_variants(validate_feed_url(url))
        return self._first_feed(
            [or_(Feed.url.in_(variants), Feed.original_url.in_(variants))], with_dead
        )

    def get_feed_by_guid(self, guid: str, with_dead: bool = False) -> Optional[FeedRecord]:
        """Retrieve the feed owning a podcast guid."""
        if not guid or not guid.strip():
            raise InvalidInputError("Podcast guid is required.")
        owner = select(FeedGuid.feed_id).where(FeedGuid.guid == guid.strip())
        return self._first_feed([Feed.id.in_(owner)], with_dead)

    def get_feed_by_itunes_id(self, itunes_id: int, with_dead: bool = False) -> Optional[FeedRecord]:
        """Retrieve the feed linked to an iTunes id."""
        return self._first_feed([Feed.itunes_id == itunes_id], with_dead)

    def recent_feeds(
        self,
        since: Optional[int] = None,
        max_results: Optional[int] = None,
        languages: Optional[Sequence[str]] = None,
        include_categories: Optional[Sequence[int]] = None,
        exclude_categories: Optional[Sequence[int]] = None,
        sort: Optional[str] = None,
    ) -> List[FeedRecord]:
        """
        List live feeds, newest first, with optional language and category filters.

        Parameters:
            since: Only feeds whose sort timestamp is at or after this epoch; negative means "seconds ago".
            max_results: Number of feeds; defaults to RECENT_FEEDS_DEFAULT_MAX, capped at RECENT_FEEDS_MAX_CAP.
            languages: Feed language codes (case-insensitive).
            include_categories: Keep feeds carrying any of these category ids; an empty list keeps none.
            exclude_categories: Drop feeds carrying any of these category ids.
            sort: "discovery" orders by when the feed was added; anything else by newest episode.
        """
        limit = self.effective_max(max_results)
        since = resolve_since(since, self.clock())

        sort_column = Feed.created_on if sort == SORT_DISCOVERY else Feed.newest_item_pubdate
        criteria = [Feed.dead == 0]
        if since is not None:
            criteria.append(sort_column >= since)
        if languages:
            criteria.append(func.lower(Feed.language).in_([lang.lower() for lang in languages]))

        category_columns = [getattr(FeedCategories, name) for name in CATEGORY_COLUMNS]
        if include_categories is not None:
            # An include filter that resolved to no known category matches nothing.
            if include_categories:
                criteria.append(or_(*(column.in_(include_categories) for column in category_columns)))
            else:
                criteria.append(false())
        if exclude_categories:
            criteria.append(
                and_(
                    *(
                        or_(column.is_(None), column.notin_(exclude_categories))
                        for column in category_columns
                    )
                )
            )

        feeds = self._feeds(criteria, order_by=[sort_column.desc()], limit=limit)
        logger.debug(f"recent_feeds since={since} max={limit}: {len(feeds)} feed(s)")
        return feeds

    def effective_max(self, max_results: Optional[int]) -> int:
        """Clamp a requested feed count to [1, RECENT_FEEDS_MAX_CAP]."""
        if max_results is None:
            return self.config.RECENT_FEEDS_DEFAULT_MAX
        if max_results < 1:
            raise InvalidInputError(f"max must be positive, got {max_results}")
        return min(max_results, self.config.RECENT_FEEDS_MAX_CAP)

    # --- Episodes ---

    def get_episode(self, episode_id: int) -> Optional[EpisodeRecord]:
        """Retrieve one episode with all of its facets."""
        episodes = self._episodes([Episode.id == episode_id], limit=1)
        return episodes[0] if episodes else None

    def get_episode_by_guid(self, feed_id: int, guid: str) -> Optional[EpisodeRecord]:
        """Retrieve an episode by its guid within a feed."""
        episodes = self._episodes([Episode.feed_id == feed_id, Episode.guid == guid], limit=1)
        return episodes[0] if episodes else None

    def episodes_by_feed_id(
        self,
        feed_id: int,
        max_results: Optional[int] = None,
        since: Optional[int] = None,
    ) -> List[EpisodeRecord]:
        """
        List a feed's episodes, most recently published first.

        Parameters:
            since: Only episodes published at or after this epoch; negative means "seconds ago".
        """
        criteria = [Episode.feed_id == feed_id]
        since = resolve_since(since, self.clock())
        if since is not None:
            criteria.append(Episode.date_published >= since)
        return self._episodes(
            criteria,
            order_by=[Episode.date_published.desc()],
            limit=self.effective_max(max_results),
        )
