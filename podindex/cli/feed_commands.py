"""CLI commands for feed directory maintenance.

Provides commands for:
- Registering feeds and linking iTunes ids
- Marking feeds dead or alive and changing their URL
- Listing recent feeds and walking the episode sync stream
- Purging episodes
"""

import json
import logging
import sys
import time

from ..argparse_shared import (
    add_dry_run_argument,
    add_feed_id_argument,
    add_log_level_argument,
    add_max_argument,
    add_since_argument,
    get_base_parser,
)
from ..assembly.records import resolve_category_ids
from ..config import Config
from ..db.factory import create_repository_from_config
from ..db.models import Episode
from ..errors import PodIndexError
from ..identity.resolver import FeedIdentityResolver
from ..services.directory import DirectoryService, parse_filter_list
from ..sync.engine import IncrementalSyncEngine

logger = logging.getLogger(__name__)


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def add_feed(args, config: Config, repository):
    """
    Register a feed URL, reusing the existing feed when any canonical variant is known.

    Links `--itunes-id` when given; an iTunes id the feed already carries is never replaced.
    """
    resolver = FeedIdentityResolver(repository)
    feed_id = resolver.resolve_or_create(args.url, title=args.title)
    print(f"Feed id: {feed_id}")

    if args.itunes_id:
        if resolver.link_itunes_id(feed_id, args.itunes_id):
            print(f"  Linked iTunes id: {args.itunes_id}")
        else:
            print("  Feed already has an iTunes id, left unchanged")


def mark_dead(args, config: Config, repository):
    """Flag a feed as dead and remove it from the crawl queue."""
    FeedIdentityResolver(repository).mark_dead(args.feed_id)
    print(f"Marked feed {args.feed_id} as dead")


def mark_alive(args, config: Config, repository):
    """Clear the dead flag of a feed."""
    FeedIdentityResolver(repository).mark_alive(args.feed_id)
    print(f"Marked feed {args.feed_id} as alive")


def change_url(args, config: Config, repository):
    """Point a feed at a new URL and schedule a re-crawl."""
    feed_id = FeedIdentityResolver(repository).change_url(args.feed_id, args.url)
    print(f"Changed: [{feed_id}] to url: [{args.url.strip()}].")


def recent_feeds(args, config: Config, repository):
    """Print the most recently updated feeds as JSON."""
    directory = DirectoryService(repository, config)
    limit = config.FILTER_LIST_LIMIT

    include = parse_filter_list(args.cat, limit)
    exclude = parse_filter_list(args.notcat, limit)
    feeds = directory.recent_feeds(
        since=args.since,
        max_results=args.max_results,
        languages=parse_filter_list(args.lang, limit),
        include_categories=resolve_category_ids(include) if include else None,
        exclude_categories=resolve_category_ids(exclude) if exclude else None,
        sort=args.sort,
    )
    _print_json([feed.to_dict() for feed in feeds])


def sync_episodes(args, config: Config, repository):
    """
    Print the next sync batch as JSON, or with `--all` every batch until caught up.
    """
    engine = IncrementalSyncEngine(repository, config)

    if not args.all:
        batch = engine.sync(since=args.since, max_items=args.max_results, position=args.position)
        _print_json(batch.to_dict())
        return

    total = 0
    for batch in engine.walk(since=args.since, max_items=args.max_results, position=args.position):
        _print_json(batch.to_dict())
        total += len(batch.items)
    logger.info(f"Sync walk complete: {total} item(s)")


def purge_episodes(args, config: Config, repository):
    """
    Delete episodes, with all their child records, of one feed or published before a cutoff.
    """
    if args.feed_id is not None:
        criterion = Episode.feed_id == args.feed_id
        description = f"of feed {args.feed_id}"
    else:
        cutoff = int(time.time()) - args.older_than
        criterion = Episode.date_published < cutoff
        description = f"published before {cutoff}"

    if args.dry_run:
        count = repository.count(Episode, criterion)
        print(f"[DRY RUN] Would delete {count} episode(s) {description}")
        return

    if args.feed_id is not None:
        deleted = repository.delete_episodes_for_feed(args.feed_id)
    else:
        deleted = repository.delete_episodes_older_than(cutoff)
    print(f"Deleted {deleted} episode(s) {description}")


def create_parser():
    """Create the argument parser."""
    parser = get_base_parser("Podcast feed directory CLI")
    add_log_level_argument(parser)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # add command
    add_parser = subparsers.add_parser(
        "add",
        help="Register a feed URL",
    )
    add_parser.add_argument("url", help="RSS feed URL")
    add_parser.add_argument("--title", help="Feed title", default=None)
    add_parser.add_argument("--itunes-id", type=int, help="iTunes id to link", default=None)

    # mark-dead command
    dead_parser = subparsers.add_parser(
        "mark-dead",
        help="Flag a feed as dead",
    )
    add_feed_id_argument(dead_parser)

    # mark-alive command
    alive_parser = subparsers.add_parser(
        "mark-alive",
        help="Clear the dead flag of a feed",
    )
    add_feed_id_argument(alive_parser)

    # change-url command
    change_parser = subparsers.add_parser(
        "change-url",
        help="Change the URL of a feed",
    )
    add_feed_id_argument(change_parser)
    change_parser.add_argument("url", help="New feed URL")

    # recent command
    recent_parser = subparsers.add_parser(
        "recent",
        help="List recently updated feeds",
    )
    add_max_argument(recent_parser)
    add_since_argument(recent_parser)
    recent_parser.add_argument("--lang", help="Comma separated language codes", default=None)
    recent_parser.add_argument("--cat", help="Comma separated category ids or names to include", default=None)
    recent_parser.add_argument("--notcat", help="Comma separated category ids or names to exclude", default=None)
    recent_parser.add_argument(
        "--sort",
        choices=["discovery"],
        help="Order by when the feed was added instead of newest episode",
        default=None,
    )

    # sync command
    sync_parser = subparsers.add_parser(
        "sync",
        help="Fetch episodes added since a cursor",
    )
    add_max_argument(sync_parser)
    add_since_argument(sync_parser)
    sync_parser.add_argument(
        "--position",
        type=int,
        help="Id of the last episode received at --since",
        default=None,
    )
    sync_parser.add_argument(
        "--all",
        action="store_true",
        help="Keep fetching batches until caught up",
    )

    # purge command
    purge_parser = subparsers.add_parser(
        "purge",
        help="Delete episodes and their child records",
    )
    target = purge_parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--feed-id", type=int, help="Delete every episode of this feed")
    target.add_argument(
        "--older-than",
        type=int,
        help="Delete episodes published more than this many seconds ago",
    )
    add_dry_run_argument(purge_parser)

    return parser


COMMANDS = {
    "add": add_feed,
    "mark-dead": mark_dead,
    "mark-alive": mark_alive,
    "change-url": change_url,
    "recent": recent_feeds,
    "sync": sync_episodes,
    "purge": purge_episodes,
}


def main(argv=None):
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Load configuration
    config = Config(env_file=args.env_file)

    log_level = (args.log_level or config.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    command_func = COMMANDS[args.command]
    repository = create_repository_from_config(config)
    try:
        command_func(args, config, repository)
    except PodIndexError as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        repository.close()


if __name__ == "__main__":
    main()
