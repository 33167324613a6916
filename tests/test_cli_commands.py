"""Tests for CLI feed_commands module."""

import json

import pytest

from podindex.cli.feed_commands import create_parser, main
from podindex.db.factory import create_repository
from podindex.db.models import Episode, Feed


class TestCreateParser:
    """Tests for create_parser function."""

    def test_has_env_file_argument(self):
        """Test that parser has --env-file argument."""
        parser = create_parser()
        args = parser.parse_args(["--env-file", "/path/.env", "mark-dead", "1"])
        assert args.env_file == "/path/.env"

    def test_add_subcommand(self):
        """Test add subcommand parsing."""
        parser = create_parser()
        args = parser.parse_args(["add", "https://example.com/feed.xml", "--itunes-id", "99"])
        assert args.command == "add"
        assert args.url == "https://example.com/feed.xml"
        assert args.itunes_id == 99
        assert args.title is None

    def test_change_url_subcommand(self):
        """Test change-url subcommand parsing."""
        parser = create_parser()
        args = parser.parse_args(["change-url", "5", "https://example.com/new.xml"])
        assert args.feed_id == 5
        assert args.url == "https://example.com/new.xml"

    def test_sync_subcommand(self):
        """Test sync subcommand parsing."""
        parser = create_parser()
        args = parser.parse_args(["sync", "--since", "100", "--max", "10", "--position", "7", "--all"])
        assert (args.since, args.max_results, args.position, args.all) == (100, 10, 7, True)

    def test_recent_sort_choices(self):
        """Test that only known sort orders are accepted."""
        parser = create_parser()
        assert parser.parse_args(["recent", "--sort", "discovery"]).sort == "discovery"
        with pytest.raises(SystemExit):
            parser.parse_args(["recent", "--sort", "popular"])

    def test_purge_requires_one_target(self):
        """Test that purge needs exactly one of --feed-id and --older-than."""
        parser = create_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["purge"])
        with pytest.raises(SystemExit):
            parser.parse_args(["purge", "--feed-id", "1", "--older-than", "60"])


@pytest.fixture
def database_url(tmp_path, monkeypatch):
    """Point the CLI at a fresh SQLite database with tables created."""
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    create_repository(url, create_tables=True).close()
    monkeypatch.setenv("DATABASE_URL", url)
    return url


@pytest.fixture
def cli_repository(database_url):
    """Repository on the CLI's database for assertions."""
    repo = create_repository(database_url)
    yield repo
    repo.close()


class TestMain:
    """Tests for running commands through main."""

    def test_no_command_prints_help(self, capsys):
        """Test that running without a command exits with status 1."""
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1

    def test_add_is_idempotent(self, capsys, cli_repository):
        """Test adding a feed twice through the CLI."""
        main(["add", "https://example.com/feed.xml", "--title", "Show"])
        main(["add", "http://example.com/feed.xml/"])

        output = capsys.readouterr().out
        assert output.count("Feed id: 1") == 2
        assert cli_repository.count(Feed) == 1

    def test_add_links_itunes_id(self, capsys, cli_repository):
        """Test that --itunes-id is linked to the new feed."""
        main(["add", "https://example.com/feed.xml", "--itunes-id", "1234"])

        assert "Linked iTunes id: 1234" in capsys.readouterr().out
        assert cli_repository.query_one(Feed, Feed.id == 1).itunes_id == 1234

    def test_mark_dead_and_alive(self, capsys, cli_repository):
        """Test toggling the dead flag."""
        main(["add", "https://example.com/feed.xml"])

        main(["mark-dead", "1"])
        assert cli_repository.query_one(Feed, Feed.id == 1).dead == 1

        main(["mark-alive", "1"])
        assert cli_repository.query_one(Feed, Feed.id == 1).dead == 0

    def test_domain_error_exits_with_message(self, capsys, database_url):
        """Test that domain errors are printed and exit with status 1."""
        with pytest.raises(SystemExit) as exc_info:
            main(["mark-dead", "999"])

        assert exc_info.value.code == 1
        assert "Error: Feed not found: 999" in capsys.readouterr().out

    def test_change_url(self, capsys, cli_repository):
        """Test changing a feed URL."""
        main(["add", "https://example.com/old.xml"])

        main(["change-url", "1", "https://example.com/new.xml"])

        assert cli_repository.query_one(Feed, Feed.id == 1).url == "https://example.com/new.xml"
        assert "Changed: [1] to url: [https://example.com/new.xml]." in capsys.readouterr().out

    def test_sync_prints_batch(self, capsys, cli_repository):
        """Test that sync prints the batch as JSON."""
        main(["add", "https://example.com/feed.xml"])
        cli_repository.insert(
            Episode,
            feed_id=1,
            guid="g1",
            enclosure_url="https://cdn.example.com/1.mp3",
            time_added=100,
        )
        capsys.readouterr()

        main(["sync", "--since", "100"])

        batch = json.loads(capsys.readouterr().out)
        assert [item["id"] for item in batch["items"]] == [1]
        assert batch["nextSince"] == 100

    def test_recent_prints_feeds(self, capsys, cli_repository):
        """Test that recent prints a JSON list."""
        main(["add", "https://example.com/feed.xml"])
        capsys.readouterr()

        main(["recent"])

        assert [feed["id"] for feed in json.loads(capsys.readouterr().out)] == [1]

    def test_purge_dry_run_and_delete(self, capsys, cli_repository):
        """Test purging a feed's episodes, first as a dry run."""
        main(["add", "https://example.com/feed.xml"])
        for i in range(3):
            cli_repository.insert(
                Episode,
                feed_id=1,
                guid=f"g{i}",
                enclosure_url=f"https://cdn.example.com/{i}.mp3",
                time_added=100,
            )

        main(["purge", "--feed-id", "1", "--dry-run"])
        assert "Would delete 3 episode(s)" in capsys.readouterr().out
        assert cli_repository.count(Episode) == 3

        main(["purge", "--feed-id", "1"])
        assert "Deleted 3 episode(s)" in capsys.readouterr().out
        assert cli_repository.count(Episode) == 0
