"""Tests for the joined assembly query and the directory read service."""

import pytest

from conftest import NOW
from podindex.assembly.assembler import ResultAssembler
from podindex.assembly.facets import EPISODE, EPISODE_COMPANIONS, EPISODE_FACETS
from podindex.assembly.query import build_assembly_query
from podindex.assembly.records import resolve_category_ids
from podindex.db.models import (
    Chapter,
    Episode,
    FeedFunding,
    FeedGuid,
    Person,
    Soundbite,
    Transcript,
)
from podindex.errors import InvalidInputError
from podindex.identity.resolver import FeedIdentityResolver, generate_podcast_guid
from podindex.services.directory import DirectoryService, parse_filter_list, resolve_since


@pytest.fixture
def directory(repository, config, clock):
    """Create a directory service over the temporary repository."""
    return DirectoryService(repository, config, clock=clock)


def add_fanout(repository, episode_id, soundbites=2, transcripts=3, persons=2):
    """Attach enough children to an episode that the join fans out to soundbites*transcripts*persons rows."""
    for i in range(soundbites):
        repository.insert(Soundbite, item_id=episode_id, start_time=i * 30, duration=30, title=f"Bite {i}")
    for i in range(transcripts):
        repository.insert(Transcript, item_id=episode_id, url=f"https://t.example.com/{episode_id}/{i}", type=i)
    for i in range(persons):
        repository.insert(Person, item_id=episode_id, name=f"Person {i}", role="host")


class TestBuildAssemblyQuery:
    """Tests for build_assembly_query against SQLite."""

    def test_fanout_collapses(self, repository, make_feed, make_episode):
        """Test that a 2x3x2 fan-out assembles into one episode with each child once."""
        feed_id = make_feed()
        episode_id = make_episode(feed_id)
        add_fanout(repository, episode_id)

        stmt = build_assembly_query(EPISODE, EPISODE_FACETS, EPISODE_COMPANIONS)
        rows = repository.query_rows(stmt)
        episodes = ResultAssembler(EPISODE, EPISODE_FACETS).assemble(rows)

        assert len(rows) == 12
        assert len(episodes) == 1
        assert len(episodes[0].soundbites) == 2
        assert len(episodes[0].transcripts) == 3
        assert len(episodes[0].persons) == 2

    def test_limit_applies_to_parents(self, repository, make_feed, make_episode):
        """Test that fan-out never crowds parents out of the limit."""
        feed_id = make_feed()
        episode_ids = [make_episode(feed_id, time_added=NOW - 10 + i) for i in range(3)]
        for episode_id in episode_ids:
            add_fanout(repository, episode_id, soundbites=3, transcripts=3, persons=1)

        stmt = build_assembly_query(
            EPISODE,
            EPISODE_FACETS,
            EPISODE_COMPANIONS,
            order_by=[Episode.time_added.asc()],
            limit=2,
        )
        episodes = ResultAssembler(EPISODE, EPISODE_FACETS).assemble(repository.query_rows(stmt), max_results=2)

        assert [e.id for e in episodes] == episode_ids[:2]
        assert all(len(e.soundbites) == 3 and len(e.transcripts) == 3 for e in episodes)

    def test_episode_carries_feed_columns(self, repository, make_feed, make_episode):
        """Test that feed companion columns land on the episode."""
        feed_id = make_feed(title="The Show", language="en", itunes_id=99)
        make_episode(feed_id)

        stmt = build_assembly_query(EPISODE, EPISODE_FACETS, EPISODE_COMPANIONS)
        episode = ResultAssembler(EPISODE, EPISODE_FACETS).assemble(repository.query_rows(stmt))[0]

        assert episode.feed_title == "The Show"
        assert episode.feed_language == "en"
        assert episode.feed_itunes_id == 99


class TestFilterHelpers:
    """Tests for request parameter helpers."""

    def test_parse_filter_list(self):
        """Test splitting and trimming of a comma list."""
        assert parse_filter_list(" en, de ,,fr ") == ["en", "de", "fr"]

    def test_parse_filter_list_empty(self):
        """Test that missing or blank input yields None."""
        assert parse_filter_list(None) is None
        assert parse_filter_list("  ") is None
        assert parse_filter_list(",,") is None

    def test_parse_filter_list_limit(self):
        """Test that at most `limit` entries are kept."""
        assert parse_filter_list(",".join(str(i) for i in range(20)), limit=10) == [str(i) for i in range(10)]

    def test_parse_filter_list_truncates_raw_input(self):
        """Test that only the first 200 characters are considered."""
        raw = "a" * 195 + ",bbbbbbbbbb"
        assert parse_filter_list(raw) == ["a" * 195, "bbbb"]

    def test_resolve_since(self):
        """Test relative and absolute since values."""
        assert resolve_since(None, NOW) is None
        assert resolve_since(-3600, NOW) == NOW - 3600
        assert resolve_since(12345, NOW) == 12345

    def test_resolve_category_ids(self):
        """Test category resolution by id or name."""
        assert resolve_category_ids(["102", "news", "Comedy", "9999", "unknown", "55"]) == [102, 55, 16]


class TestFeedLookups:
    """Tests for single feed lookups."""

    def test_get_feed_with_facets(self, directory, repository, make_feed):
        """Test that a feed comes back with guid, funding and categories."""
        feed_id = make_feed(title="Show", categories=[102, 55])
        repository.insert(FeedGuid, feed_id=feed_id, guid="guid-abc")
        repository.insert(FeedFunding, feed_id=feed_id, url="https://fund.example.com", message="Thanks")

        feed = directory.get_feed(feed_id)

        assert feed.title == "Show"
        assert feed.podcast_guid == "guid-abc"
        assert feed.funding.message == "Thanks"
        assert feed.categories == {"102": "Technology", "55": "News"}

    def test_get_feed_missing(self, directory):
        """Test that an unknown id returns None."""
        assert directory.get_feed(12345) is None

    def test_dead_feed_hidden_by_default(self, directory, make_feed):
        """Test that dead feeds are only returned on request."""
        feed_id = make_feed(dead=1)

        assert directory.get_feed(feed_id) is None
        assert directory.get_feed(feed_id, with_dead=True).id == feed_id

    def test_mark_dead_hides_feed_from_every_lookup(self, directory, repository, clock):
        """Test that a feed marked dead disappears from id, url and guid lookups until asked for."""
        resolver = FeedIdentityResolver(repository, clock=clock)
        url = "https://example.com/feed.xml"
        feed_id = resolver.resolve_or_create(url)
        guid = generate_podcast_guid(url)
        assert directory.get_feed_by_guid(guid).id == feed_id

        resolver.mark_dead(feed_id)

        assert directory.get_feed(feed_id) is None
        assert directory.get_feed_by_url(url) is None
        assert directory.get_feed_by_guid(guid) is None
        assert directory.get_feed(feed_id, with_dead=True).id == feed_id
        assert directory.get_feed_by_url(url, with_dead=True).id == feed_id
        assert directory.get_feed_by_guid(guid, with_dead=True).id == feed_id

        resolver.mark_alive(feed_id)

        assert directory.get_feed_by_url(url).id == feed_id

    def test_get_feed_by_url_uses_canonical_variants(self, directory, make_feed):
        """Test URL lookup across scheme and trailing slash variants."""
        feed_id = make_feed(url="https://example.com/podcast.xml")

        assert directory.get_feed_by_url("http://example.com/podcast.xml/").id == feed_id

    def test_get_feed_by_guid(self, directory, repository, make_feed):
        """Test lookup by podcast guid."""
        feed_id = make_feed()
        repository.insert(FeedGuid, feed_id=feed_id, guid="guid-xyz")

        assert directory.get_feed_by_guid("guid-xyz").id == feed_id
        assert directory.get_feed_by_guid("other") is None

    def test_get_feed_by_guid_requires_value(self, directory):
        """Test that an empty guid is invalid."""
        with pytest.raises(InvalidInputError):
            directory.get_feed_by_guid(" ")

    def test_get_feed_by_itunes_id(self, directory, make_feed):
        """Test lookup by iTunes id."""
        feed_id = make_feed(itunes_id=4242)

        assert directory.get_feed_by_itunes_id(4242).id == feed_id


class TestRecentFeeds:
    """Tests for DirectoryService.recent_feeds."""

    def test_newest_first_excluding_dead(self, directory, make_feed):
        """Test ordering by newest episode and the dead feed exclusion."""
        older = make_feed(newest_item_pubdate=NOW - 300)
        newer = make_feed(newest_item_pubdate=NOW - 100)
        make_feed(newest_item_pubdate=NOW - 50, dead=1)

        assert [f.id for f in directory.recent_feeds()] == [newer, older]

    def test_since_filter(self, directory, make_feed):
        """Test that feeds older than since are dropped."""
        make_feed(newest_item_pubdate=NOW - 5000)
        recent = make_feed(newest_item_pubdate=NOW - 10)

        assert [f.id for f in directory.recent_feeds(since=-60)] == [recent]

    def test_discovery_sort(self, directory, make_feed):
        """Test ordering by creation time."""
        first = make_feed(created_on=NOW - 10, newest_item_pubdate=NOW - 900)
        second = make_feed(created_on=NOW - 900, newest_item_pubdate=NOW - 10)

        assert [f.id for f in directory.recent_feeds(sort="discovery")] == [first, second]

    def test_language_filter_case_insensitive(self, directory, make_feed):
        """Test that language codes match regardless of case."""
        english = make_feed(language="EN")
        make_feed(language="de")

        assert [f.id for f in directory.recent_feeds(languages=["en"])] == [english]

    def test_category_filters(self, directory, make_feed):
        """Test include and exclude category filters."""
        tech = make_feed(categories=[102], newest_item_pubdate=NOW - 10)
        tech_news = make_feed(categories=[55, 102], newest_item_pubdate=NOW - 20)
        uncategorized = make_feed(newest_item_pubdate=NOW - 30)

        assert [f.id for f in directory.recent_feeds(include_categories=[102])] == [tech, tech_news]
        assert [f.id for f in directory.recent_feeds(exclude_categories=[55])] == [tech, uncategorized]

    def test_empty_include_filter_matches_nothing(self, directory, make_feed):
        """Test that an include filter with no known categories returns no feeds."""
        make_feed(categories=[102])
        make_feed()

        assert directory.recent_feeds(include_categories=[]) == []
        assert len(directory.recent_feeds(include_categories=None)) == 2

    def test_max_results(self, directory, make_feed):
        """Test that the feed count honors max even when feeds fan out."""
        for i in range(5):
            make_feed(newest_item_pubdate=NOW - i, categories=[1, 2, 3])

        assert len(directory.recent_feeds(max_results=3)) == 3

    def test_max_clamped_to_cap(self, directory, config):
        """Test that an oversized max is clamped."""
        assert directory.effective_max(10**6) == config.RECENT_FEEDS_MAX_CAP
        assert directory.effective_max(None) == config.RECENT_FEEDS_DEFAULT_MAX

    def test_non_positive_max_rejected(self, directory):
        """Test that max below 1 is invalid."""
        with pytest.raises(InvalidInputError):
            directory.recent_feeds(max_results=0)


class TestEpisodeLookups:
    """Tests for episode reads."""

    def test_get_episode(self, directory, repository, make_feed, make_episode):
        """Test that an episode is assembled with its chapter and persons."""
        feed_id = make_feed()
        episode_id = make_episode(feed_id)
        repository.insert(Chapter, item_id=episode_id, url="https://c.example.com/1.json")
        add_fanout(repository, episode_id, soundbites=1, transcripts=1, persons=3)

        episode = directory.get_episode(episode_id)

        assert episode.chapter.url == "https://c.example.com/1.json"
        assert len(episode.persons) == 3

    def test_get_episode_by_guid(self, directory, make_feed, make_episode):
        """Test lookup by guid within a feed."""
        feed_id = make_feed()
        episode_id = make_episode(feed_id, guid="ep-guid")

        assert directory.get_episode_by_guid(feed_id, "ep-guid").id == episode_id
        assert directory.get_episode_by_guid(feed_id + 1, "ep-guid") is None

    def test_episodes_by_feed_id(self, directory, make_feed, make_episode):
        """Test that a feed's episodes come back newest published first."""
        feed_id = make_feed()
        old = make_episode(feed_id, date_published=NOW - 900)
        new = make_episode(feed_id, date_published=NOW - 100)
        make_episode(make_feed(), date_published=NOW - 50)

        assert [e.id for e in directory.episodes_by_feed_id(feed_id)] == [new, old]
        assert [e.id for e in directory.episodes_by_feed_id(feed_id, since=-500)] == [new]
