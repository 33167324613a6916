"""
Pytest configuration and fixtures for podindex tests.

This module runs before any test imports, setting up the test environment.
Environment variables are explicitly cleared to ensure deterministic test
behavior regardless of external environment configuration.
"""

import os

import pytest

# Settings read by Config; tests always start from the defaults
_CONFIG_ENV_VARS = (
    "LOG_LEVEL",
    "DATABASE_URL",
    "DB_POOL_SIZE",
    "DB_MAX_OVERFLOW",
    "DB_ECHO",
    "RECENT_FEEDS_DEFAULT_MAX",
    "RECENT_FEEDS_MAX_CAP",
    "SYNC_DEFAULT_WINDOW_SECONDS",
    "SYNC_DEFAULT_MAX",
    "SYNC_MAX_CAP",
    "FILTER_LIST_LIMIT",
    "PORT",
)

for _name in _CONFIG_ENV_VARS:
    os.environ.pop(_name, None)

from podindex.config import Config  # noqa: E402
from podindex.db.factory import create_repository  # noqa: E402
from podindex.db.models import Episode, Feed, FeedCategories  # noqa: E402

# Fixed "now" for every clock-dependent test
NOW = 1_700_000_000


@pytest.fixture
def repository(tmp_path):
    """
    Create a temporary SQLite-backed repository for tests.

    Yields a repository configured to use a SQLite file under the provided temporary path and closes it on teardown.
    """
    db_path = tmp_path / "test.db"
    repo = create_repository(f"sqlite:///{db_path}", create_tables=True)
    yield repo
    repo.close()


@pytest.fixture
def config():
    """Configuration with default values."""
    return Config()


@pytest.fixture
def clock():
    """A clock frozen at NOW."""
    return lambda: NOW


@pytest.fixture
def make_feed(repository):
    """
    Factory inserting a feed row and returning its id.

    Keyword arguments override column values; `categories` (list of ids) also writes a feed_categories row.
    """
    counter = {"n": 0}

    def _make_feed(categories=None, **fields):
        counter["n"] += 1
        values = {
            "url": f"https://example.com/feed{counter['n']}.xml",
            "title": f"Feed {counter['n']}",
            "created_on": NOW - 1000,
            "newest_item_pubdate": NOW - 100,
        }
        values.update(fields)
        feed_id = repository.insert(Feed, **values)
        if categories:
            columns = {f"catid{i}": cat_id for i, cat_id in enumerate(categories, start=1)}
            repository.insert(FeedCategories, feed_id=feed_id, **columns)
        return feed_id

    return _make_feed


@pytest.fixture
def make_episode(repository):
    """Factory inserting an episode row and returning its id."""
    counter = {"n": 0}

    def _make_episode(feed_id, **fields):
        counter["n"] += 1
        values = {
            "feed_id": feed_id,
            "guid": f"episode-{counter['n']}",
            "title": f"Episode {counter['n']}",
            "enclosure_url": f"https://cdn.example.com/{counter['n']}.mp3",
            "date_published": NOW - 500,
            "time_added": NOW - 500,
        }
        values.update(fields)
        return repository.insert(Episode, **values)

    return _make_episode
