"""Database module for feed directory persistence.

Provides:
- SQLAlchemy ORM models (Feed, Episode and their facet tables)
- Repository interface and implementation
- Factory functions for creating repositories
"""

from .factory import create_repository, create_repository_from_config
from .models import Base, Episode, Feed
from .repository import FeedRepositoryInterface, SQLAlchemyFeedRepository

__all__ = [
    "Base",
    "Feed",
    "Episode",
    "FeedRepositoryInterface",
    "SQLAlchemyFeedRepository",
    "create_repository",
    "create_repository_from_config",
]
