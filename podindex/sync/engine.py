"""Incremental sync of recently added episodes.

Clients poll with a cursor they hold themselves: `since` (a `time_added`
epoch) and `position` (an episode id). Each response hands back the cursor
for the next call. The server keeps no state between calls.

Episodes are walked in `(time_added, id)` order. `time_added` alone is not a
usable cursor because many episodes can share a second; the id breaks ties.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from sqlalchemy import and_, or_

from ..assembly.assembler import Facet, ResultAssembler
from ..assembly.facets import EPISODE, EPISODE_COMPANIONS, EPISODE_FACETS, FEED, FEED_FACETS
from ..assembly.query import build_assembly_query
from ..assembly.records import EpisodeRecord, FeedRecord
from ..db.models import Episode
from ..db.repository import FeedRepositoryInterface
from ..errors import InvalidInputError

logger = logging.getLogger(__name__)


@dataclass
class SyncBatch:
    """One sync response.

    Attributes:
        next_since: `time_added` of the last item; the client's next `since`.
        position: Id of the last item; the client's next `position`.
        feeds: Parent feed of every item, each once, in first-seen order.
        items: The episodes of this batch in `(time_added, id)` order.
    """

    next_since: int
    position: int
    feeds: List[FeedRecord] = field(default_factory=list)
    items: List[EpisodeRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nextSince": self.next_since,
            "position": self.position,
            "feeds": [feed.to_dict() for feed in self.feeds],
            "items": [item.to_dict() for item in self.items],
        }


class IncrementalSyncEngine:
    """Serves the episode stream to polling clients, exactly once per episode.

    Example:
        engine = IncrementalSyncEngine(repository, config)
        for batch in engine.walk(since=1700000000, max_items=100):
            handle(batch.items)
    """

    def __init__(
        self,
        repository: FeedRepositoryInterface,
        config,
        clock: Optional[Callable[[], int]] = None,
        facets: Sequence[Facet] = EPISODE_FACETS,
    ):
        """
        Parameters:
            repository: Store adapter for the joined episode query.
            config: Provides SYNC_DEFAULT_WINDOW_SECONDS, SYNC_DEFAULT_MAX and SYNC_MAX_CAP.
            clock: Returns the current epoch seconds; defaults to the system clock.
            facets: Episode facets included on every item.
        """
        self.repository = repository
        self.config = config
        self.clock = clock or (lambda: int(time.time()))
        self.facets = tuple(facets)
        self.item_assembler = ResultAssembler(EPISODE, self.facets)
        self.feed_assembler = ResultAssembler(FEED, FEED_FACETS)

    def effective_max(self, max_items: Optional[int]) -> int:
        """Default and clamp the batch size; the cap applies whatever the client asks for."""
        if max_items is None:
            return self.config.SYNC_DEFAULT_MAX
        if max_items < 1:
            raise InvalidInputError(f"max must be positive, got {max_items}")
        return min(max_items, self.config.SYNC_MAX_CAP)

    def sync(
        self,
        since: Optional[int] = None,
        max_items: Optional[int] = None,
        position: Optional[int] = None,
    ) -> SyncBatch:
        """
        Return the next batch of episodes after the cursor `(since, position)`.

        Without `position`, every episode added in `[since, now]` qualifies. With
        it, episodes added exactly at `since` must also have an id above
        `position`; those were already delivered.

        Parameters:
            since: `time_added` lower bound; defaults to SYNC_DEFAULT_WINDOW_SECONDS ago,
                negative values mean "that many seconds ago".
            max_items: Batch size, clamped to SYNC_MAX_CAP.
            position: Id of the last episode the client received at `since`.

        Returns:
            SyncBatch: The items, their feeds, and the cursor for the next call. An
            empty batch echoes the incoming cursor.
        """
        now = self.clock()
        limit = self.effective_max(max_items)
        if since is None:
            since = now - self.config.SYNC_DEFAULT_WINDOW_SECONDS
        elif since < 0:
            since = now - abs(since)
        if position is not None and position < 0:
            raise InvalidInputError(f"position must not be negative, got {position}")

        if position is None:
            window = Episode.time_added >= since
        else:
            window = or_(
                Episode.time_added > since,
                and_(Episode.time_added == since, Episode.id > position),
            )

        stmt = build_assembly_query(
            EPISODE,
            facets=self.facets + FEED_FACETS,
            companions=EPISODE_COMPANIONS,
            where=[window, Episode.time_added <= now],
            order_by=[Episode.time_added.asc()],
            limit=limit,
        )
        rows = self.repository.query_rows(stmt)

        items = self.item_assembler.assemble(rows, max_results=limit)
        feeds = self.feed_assembler.assemble(rows)

        if items:
            last = items[-1]
            batch = SyncBatch(last.time_added, last.id, feeds, items)
        else:
            batch = SyncBatch(since, position or 0, feeds, items)

        logger.debug(
            f"sync since={since} position={position} max={limit}: "
            f"{len(items)} item(s), {len(feeds)} feed(s), next=({batch.next_since}, {batch.position})"
        )
        return batch

    def walk(
        self,
        since: Optional[int] = None,
        max_items: Optional[int] = None,
        position: Optional[int] = None,
    ) -> Iterator[SyncBatch]:
        """
        Poll until caught up, yielding every batch.

        Follows the client loop: feed each response's cursor into the next call
        and stop after a batch shorter than the batch size.
        """
        limit = self.effective_max(max_items)
        while True:
            batch = self.sync(since=since, max_items=limit, position=position)
            yield batch
            if len(batch.items) < limit:
                return
            since, position = batch.next_since, batch.position
