import argparse

def get_base_parser(description: str = "Podcast feed directory") -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("-e", "--env-file", help="Path to a custom .env file", default=None)
    return parser

def add_dry_run_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-d", "--dry-run", action="store_true", help="Perform a dry run without making changes")

def add_log_level_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-l", "--log-level", help="Set log level (DEBUG, INFO, WARNING, ERROR)", default=None)

def add_feed_id_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("feed_id", type=int, help="Feed id")

def add_max_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-m", "--max", dest="max_results", type=int, help="Maximum number of results (capped server side)", default=None)

def add_since_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-s", "--since", type=int, help="Epoch seconds lower bound; negative means that many seconds ago", default=None)
