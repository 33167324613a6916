"""Feed identity resolution.

Decides whether a submitted feed already exists, creates new canonical feed
records with their podcast guid, and maintains the cross references (iTunes
id, podcast guid, content hash) and lifecycle flags of existing feeds.
"""

import logging
import re
import time
import uuid
from typing import Callable, Optional

from sqlalchemy import or_

from ..db.models import Feed, FeedGuid
from ..db.repository import FeedRepositoryInterface
from ..errors import (
    ConflictError,
    DuplicateRecordError,
    GuidAssignmentError,
    InvalidInputError,
    NotFoundError,
    StoreError,
)
from .canonical import CanonicalUrlResolver, validate_feed_url

logger = logging.getLogger(__name__)

# Namespace defined by the podcast namespace <podcast:guid> tag.
PODCAST_GUID_NAMESPACE = uuid.UUID("ead4c236-bf58-58c6-a2c6-a6b28d128cb6")


def generate_podcast_guid(url: str) -> str:
    """
    Derive the podcast guid of a feed URL.

    A lowercase http:// or https:// scheme and one trailing slash are stripped
    before hashing, the same differences `canonical_variants` ignores, so every
    canonical variant of a URL yields the same guid and URLs outside the class
    do not.
    """
    bare = re.sub(r"^https?://", "", url.strip())
    if bare.endswith("/"):
        bare = bare[:-1]
    return str(uuid.uuid5(PODCAST_GUID_NAMESPACE, bare))


def _require_id(value, name: str = "Feed id") -> int:
    if isinstance(value, bool):
        raise InvalidInputError(f"{name} doesn't look valid: {value!r}")
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{name} doesn't look valid: {value!r}")
    if value <= 0:
        raise InvalidInputError(f"{name} doesn't look valid: {value}")
    return value


class FeedIdentityResolver:
    """Registers feeds and maintains their identity fields.

    Example:
        resolver = FeedIdentityResolver(repository)
        feed_id = resolver.resolve_or_create("https://example.com/feed.xml")
    """

    def __init__(
        self,
        repository: FeedRepositoryInterface,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Parameters:
            repository: Store adapter used for every lookup and write.
            clock: Returns the current epoch seconds; defaults to the system clock.
        """
        self.repository = repository
        self.canonical = CanonicalUrlResolver(repository)
        self.clock = clock or (lambda: int(time.time()))

    # --- Creation ---

    def resolve_or_create(
        self,
        url: str,
        content: Optional[str] = None,
        title: Optional[str] = None,
    ) -> int:
        """
        Return the id of the feed at `url`, creating it when no canonical variant exists.

        Re-submitting a known URL returns the existing id untouched. A new feed is
        inserted with `pull_now`/`parse_now` set so the crawler picks it up, and its
        podcast guid record is written right after.

        Raises:
            InvalidInputError: `url` is empty or not http(s).
            ConflictError: The guid derived from `url` already belongs to another feed.
            StoreError: The existence check or the insert failed.
            GuidAssignmentError: The feed was created but its guid record was not.
        """
        url = validate_feed_url(url)

        existing_id = self.canonical.exists(url)
        if existing_id is not None:
            logger.debug(f"Feed already exists for {url}: {existing_id}")
            return existing_id

        return self._create_feed(url, content=content, title=title)

    def resolve_or_create_with_hash(
        self,
        url: str,
        chash: str,
        content: Optional[str] = None,
        title: Optional[str] = None,
    ) -> int:
        """
        Like `resolve_or_create`, but a feed with the same content hash also counts as existing.
        """
        url = validate_feed_url(url)
        if not chash:
            raise InvalidInputError("Content hash is required.")

        existing_id = self.canonical.exists(url)
        if existing_id is not None:
            return existing_id

        by_hash = self.repository.query_one(Feed, Feed.chash == chash)
        if by_hash is not None:
            logger.info(f"Feed {url} matches content hash of feed {by_hash.id}")
            return by_hash.id

        return self._create_feed(url, content=content, title=title, chash=chash)

    def resolve_by_itunes_id(self, itunes_id: int, url: str) -> int:
        """
        Return the feed owning `itunes_id`; otherwise resolve `url` and link the iTunes id to it.

        Linking never overwrites an iTunes id the resolved feed already carries.
        """
        itunes_id = _require_id(itunes_id, "iTunes id")

        feed = self.repository.query_one(Feed, Feed.itunes_id == itunes_id)
        if feed is not None:
            return feed.id

        feed_id = self.resolve_or_create(url)
        self.link_itunes_id(feed_id, itunes_id)
        return feed_id

    def _create_feed(
        self,
        url: str,
        content: Optional[str] = None,
        title: Optional[str] = None,
        chash: Optional[str] = None,
    ) -> int:
        guid = generate_podcast_guid(url)
        owner = self.repository.query_one(FeedGuid, FeedGuid.guid == guid)
        if owner is not None:
            logger.warning(f"Not creating feed for {url}, guid {guid} belongs to feed {owner.feed_id}")
            raise ConflictError(
                f"Guid {guid} of {url} already belongs to feed {owner.feed_id}", owner.feed_id
            )

        now = self.clock()
        try:
            feed_id = self.repository.insert(
                Feed,
                url=url,
                original_url=url,
                title=title,
                chash=chash,
                created_on=now,
                updated=1 if content else 0,
                pull_now=1,
                parse_now=1,
            )
        except DuplicateRecordError:
            # A concurrent resolver inserted the same url first.
            existing_id = self.canonical.exists(url)
            if existing_id is not None:
                logger.info(f"Lost insert race for {url}, using feed {existing_id}")
                return existing_id
            raise

        logger.info(f"Created feed {feed_id}: {url}")
        self.ensure_guid(feed_id, url)
        return feed_id

    # --- Podcast guid ---

    def ensure_guid(self, feed_id: int, url: str) -> str:
        """
        Make sure `feed_id` has a podcast guid record, deriving it from `url` when missing.

        Safe to call repeatedly; an existing record is returned as is.

        Raises:
            GuidAssignmentError: The guid record could not be written.
        """
        existing = self.repository.query_one(FeedGuid, FeedGuid.feed_id == feed_id)
        if existing is not None:
            return existing.guid

        guid = generate_podcast_guid(url)
        try:
            self.repository.insert(FeedGuid, feed_id=feed_id, guid=guid)
        except StoreError as e:
            logger.error(f"Could not assign guid {guid} to feed {feed_id}: {e}")
            raise GuidAssignmentError(
                f"Feed {feed_id} was created but guid {guid} was not stored", feed_id
            ) from e
        return guid

    def set_podcast_guid(self, feed_id: int, guid: str) -> None:
        """
        Store `guid` as the podcast guid of `feed_id`, replacing any previous value.

        Raises:
            NotFoundError: No feed has id `feed_id`.
            ConflictError: Another feed already owns `guid`.
        """
        feed_id = _require_id(feed_id)
        if not guid or not guid.strip():
            raise InvalidInputError("Podcast guid is required.")
        guid = guid.strip()
        self._require_feed(feed_id)

        owner = self.repository.query_one(FeedGuid, FeedGuid.guid == guid)
        if owner is not None and owner.feed_id != feed_id:
            raise ConflictError(
                f"Guid {guid} already belongs to feed {owner.feed_id}", owner.feed_id
            )
        if owner is not None:
            return

        try:
            if self.repository.update(FeedGuid, FeedGuid.feed_id == feed_id, guid=guid) == 0:
                self.repository.insert(FeedGuid, feed_id=feed_id, guid=guid)
        except DuplicateRecordError as e:
            raise ConflictError(f"Guid {guid} is already in use") from e

    # --- Cross references ---

    def link_itunes_id(self, feed_id: int, itunes_id: int) -> bool:
        """
        Set the iTunes id of a feed only if it currently has none (NULL or 0).

        Returns:
            bool: `True` when the id was written, `False` when the feed already had one.

        Raises:
            NotFoundError: No feed has id `feed_id`.
            ConflictError: Another feed owns `itunes_id`.
        """
        feed_id = _require_id(feed_id)
        itunes_id = _require_id(itunes_id, "iTunes id")
        self._require_feed(feed_id)

        try:
            affected = self.repository.update(
                Feed,
                Feed.id == feed_id,
                or_(Feed.itunes_id.is_(None), Feed.itunes_id == 0),
                itunes_id=itunes_id,
            )
        except DuplicateRecordError as e:
            owner = self.repository.query_one(Feed, Feed.itunes_id == itunes_id)
            raise ConflictError(
                f"iTunes id {itunes_id} already belongs to another feed",
                owner.id if owner else None,
            ) from e

        if affected == 0:
            logger.debug(f"Feed {feed_id} already has an iTunes id, not linking {itunes_id}")
            return False
        logger.info(f"Linked iTunes id {itunes_id} to feed {feed_id}")
        return True

    # --- Lifecycle ---

    def mark_dead(self, feed_id: int) -> None:
        """
        Flag a feed as dead and pull it out of the crawl/parse queue.

        No other field changes.
        """
        feed_id = _require_id(feed_id)
        self._update_existing(feed_id, dead=1, pull_now=0, parse_now=0)
        logger.info(f"Marked feed {feed_id} as dead")

    def mark_alive(self, feed_id: int) -> None:
        """Clear the dead flag of a feed. No other field changes."""
        feed_id = _require_id(feed_id)
        self._update_existing(feed_id, dead=0)
        logger.info(f"Marked feed {feed_id} as alive")

    def mark_pull_parse(self, feed_id: int) -> None:
        """Schedule an immediate re-crawl and re-parse of a feed."""
        feed_id = _require_id(feed_id)
        self._update_existing(feed_id, pull_now=1, parse_now=1)

    def change_url(self, feed_id, new_url) -> int:
        """
        Point an existing feed at a new URL and schedule a fresh crawl.

        Raises:
            InvalidInputError: Unknown feed id, non-http URL, or a URL identical to the current one.
            ConflictError: The new URL canonically resolves to a different feed.
        """
        feed_id = _require_id(feed_id)
        feed = self.repository.query_one(Feed, Feed.id == feed_id)
        if feed is None:
            raise InvalidInputError(f"Feed id doesn't look valid: {feed_id}")

        try:
            new_url = validate_feed_url(new_url)
        except InvalidInputError:
            raise InvalidInputError("New feed url doesn't look valid.")

        if feed.url == new_url:
            raise InvalidInputError("The url entered is not different.")

        existing_id = self.canonical.exists(new_url)
        if existing_id is not None and existing_id != feed_id:
            logger.warning(f"Url change for feed {feed_id} rejected, {new_url} belongs to {existing_id}")
            raise ConflictError(
                f"The url entered already exists as podcast id: [{existing_id}].",
                existing_id,
            )

        try:
            self.repository.update(Feed, Feed.id == feed_id, url=new_url)
        except DuplicateRecordError as e:
            raise ConflictError("The url entered already exists.") from e

        self.mark_pull_parse(feed_id)
        logger.info(f"Changed: [{feed_id}] to url: [{new_url}].")
        return feed_id

    def _require_feed(self, feed_id: int) -> Feed:
        feed = self.repository.query_one(Feed, Feed.id == feed_id)
        if feed is None:
            raise NotFoundError(f"Feed not found: {feed_id}")
        return feed

    def _update_existing(self, feed_id: int, **fields) -> None:
        # Some drivers report 0 affected rows when values are unchanged, so
        # existence is checked separately.
        self._require_feed(feed_id)
        self.repository.update(Feed, Feed.id == feed_id, **fields)
