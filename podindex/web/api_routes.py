"""Public read API: recent feeds and the incremental episode sync.

Provides endpoints for:
- Listing recently updated (or discovered) feeds with language/category filters
- Polling the episode stream with a client-held cursor
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Query, Request

from ..assembly.records import resolve_category_ids
from ..services.directory import DirectoryService, parse_filter_list, resolve_since
from ..sync.engine import IncrementalSyncEngine
from .models import RecentFeedsResponse, SyncResponse, json_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/1.0", tags=["directory"])


def is_pretty(value: Optional[str]) -> bool:
    """`?pretty` with no value counts as set; `pretty=0` and `pretty=false` do not."""
    if value is None:
        return False
    return value.strip().lower() not in ("0", "false", "no")


@router.get("/recent/feeds")
async def recent_feeds(
    request: Request,
    max_results: Optional[int] = Query(default=None, alias="max"),
    since: Optional[int] = None,
    lang: Optional[str] = None,
    cat: Optional[str] = None,
    notcat: Optional[str] = None,
    sort: Optional[str] = None,
    pretty: Optional[str] = None,
):
    """
    List live feeds ordered by their newest episode (or by discovery time with `sort=discovery`).

    Args:
        max_results: Number of feeds, capped server side.
        since: Epoch seconds lower bound; negative values mean "seconds ago".
        lang: Comma separated language codes.
        cat: Comma separated category ids or names to include.
        notcat: Comma separated category ids or names to exclude.
        sort: "discovery" to order by when the feed was added.
        pretty: Indent the JSON output.
    """
    directory: DirectoryService = request.app.state.directory
    limit = request.app.state.config.FILTER_LIST_LIMIT

    effective_max = directory.effective_max(max_results)
    effective_since = resolve_since(since, directory.clock())
    languages = parse_filter_list(lang, limit)
    include = parse_filter_list(cat, limit)
    exclude = parse_filter_list(notcat, limit)

    feeds = await asyncio.to_thread(
        directory.recent_feeds,
        since=effective_since,
        max_results=effective_max,
        languages=languages,
        include_categories=resolve_category_ids(include) if include else None,
        exclude_categories=resolve_category_ids(exclude) if exclude else None,
        sort=sort,
    )

    response = RecentFeedsResponse(
        feeds=[feed.to_dict() for feed in feeds],
        count=len(feeds),
        max=effective_max,
        since=effective_since,
        description="Found matching feeds." if feeds else "No recent feeds found.",
    )
    return json_response(response, pretty=is_pretty(pretty))


@router.get("/episodes/sync")
async def sync_episodes(
    request: Request,
    since: Optional[int] = None,
    max_results: Optional[int] = Query(default=None, alias="max"),
    position: Optional[int] = None,
    pretty: Optional[str] = None,
):
    """
    Return the next batch of added episodes after the cursor `(since, position)`.

    Clients pass `nextSince` and `position` of each response back as
    `since` and `position` until a batch comes back shorter than `max`.
    """
    engine: IncrementalSyncEngine = request.app.state.sync_engine

    batch = await asyncio.to_thread(
        engine.sync, since=since, max_items=max_results, position=position
    )

    response = SyncResponse(**batch.to_dict())
    return json_response(response, pretty=is_pretty(pretty))
