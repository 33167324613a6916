"""Repository construction from explicit arguments or a `Config`."""

import logging
import os
from typing import Optional

from .repository import FeedRepositoryInterface, SQLAlchemyFeedRepository

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./podindex.db"


def create_repository(
    database_url: Optional[str] = None,
    pool_size: int = 5,
    max_overflow: int = 10,
    echo: bool = False,
    create_tables: bool = False,
) -> FeedRepositoryInterface:
    """
    Create the feed store adapter.

    `database_url` falls back to the `DATABASE_URL` environment variable and then
    to a local SQLite file. Pool settings only apply to server databases.
    """
    if database_url is None:
        database_url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
        logger.debug("No database url given, using DATABASE_URL or the SQLite default")

    return SQLAlchemyFeedRepository(
        database_url=database_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        echo=echo,
        create_tables=create_tables,
    )


def create_repository_from_config(config, create_tables: bool = False) -> FeedRepositoryInterface:
    """Create a repository using the database settings of a `Config` object."""
    return create_repository(
        database_url=config.DATABASE_URL,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=config.DB_MAX_OVERFLOW,
        echo=config.DB_ECHO,
        create_tables=create_tables,
    )
