"""Feed identity: canonical URL equivalence and feed registration."""

from .canonical import CanonicalUrlResolver, canonical_variants, validate_feed_url
from .resolver import FeedIdentityResolver, generate_podcast_guid

__all__ = [
    "CanonicalUrlResolver",
    "FeedIdentityResolver",
    "canonical_variants",
    "generate_podcast_guid",
    "validate_feed_url",
]
