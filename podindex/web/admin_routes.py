"""
Admin routes for feed maintenance.

Callers are trusted; access control belongs to the deployment in front of the app.
"""

import asyncio
import logging

from fastapi import APIRouter, Request

from ..identity.resolver import FeedIdentityResolver
from .models import ChangeUrlRequest, ChangeUrlResponse, json_response

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/feeds/changeurl")
async def change_feed_url(request: Request, body: ChangeUrlRequest):
    """
    Point an existing feed at a new URL and schedule an immediate re-crawl.

    Rejects unknown feeds, non-http URLs and unchanged URLs with 400, and a URL
    that already belongs to another feed with 409.
    """
    resolver: FeedIdentityResolver = request.app.state.resolver

    feed_id = await asyncio.to_thread(resolver.change_url, body.id, body.url)

    return json_response(
        ChangeUrlResponse(
            id=feed_id,
            url=body.url.strip(),
            description=f"Changed: [{feed_id}] to url: [{body.url.strip()}].",
        )
    )
