"""Canonical feed URL equivalence.

Two feed URLs are treated as the same feed when they differ only by the
http/https scheme or by one trailing slash. This is a deliberately small
equivalence class, not RFC 3986 normalization: query strings, fragments and
host case are compared verbatim.
"""

import logging
from typing import Optional, Set

from sqlalchemy import or_

from ..db.models import Feed
from ..db.repository import FeedRepositoryInterface
from ..errors import InvalidInputError

logger = logging.getLogger(__name__)


def _flip_scheme(url: str) -> str:
    if url.startswith("https://"):
        return "http://" + url[len("https://"):]
    if url.startswith("http://"):
        return "https://" + url[len("http://"):]
    return url


def canonical_variants(url: str) -> Set[str]:
    """
    Return the equivalence class of a feed URL.

    The class is built from the trimmed input: the URL as given, the URL
    without one trailing slash, that form with the slash re-added, and the
    scheme-flipped versions of both slash forms.

    >>> sorted(canonical_variants("https://example.com/feed/"))
    ['http://example.com/feed', 'http://example.com/feed/', 'https://example.com/feed', 'https://example.com/feed/']
    """
    url = url.strip()
    no_slash = url[:-1] if url.endswith("/") else url
    flipped = _flip_scheme(no_slash)
    return {url, no_slash, no_slash + "/", flipped, flipped + "/"}


def validate_feed_url(url) -> str:
    """
    Return the trimmed URL, or raise `InvalidInputError` when it is empty or not http(s).
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidInputError("Feed url is required.")
    url = url.strip()
    if not url.lower().startswith("http"):
        raise InvalidInputError(f"Feed url must start with http: {url}")
    return url


class CanonicalUrlResolver:
    """Existence lookups against the canonical URL equivalence class."""

    def __init__(self, repository: FeedRepositoryInterface):
        self.repository = repository

    def exists(self, url: str) -> Optional[int]:
        """
        Find a feed whose `url` or `original_url` matches any canonical variant of `url`.

        Dead feeds match too: a dead feed still owns its URL.

        Returns:
            Optional[int]: The lowest matching feed id, or `None` when no feed matches.

        Raises:
            InvalidInputError: `url` is empty or does not start with http.
            StoreError: The lookup failed.
        """
        url = validate_feed_url(url)
        variants = canonical_variants(url)
        feed = self.repository.query_one(
            Feed,
            or_(Feed.url.in_(variants), Feed.original_url.in_(variants)),
        )
        if feed is None:
            logger.debug(f"No feed matches {url}")
            return None
        return feed.id
