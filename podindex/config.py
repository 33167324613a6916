import os
from typing import Optional

from dotenv import load_dotenv


def _get_int_env(
    name: str,
    default: int,
    min_val: Optional[int] = None,
    max_val: Optional[int] = None,
) -> int:
    """Parse an integer from an environment variable with validation.

    Args:
        name: Environment variable name.
        default: Default value if env var is not set.
        min_val: Minimum allowed value (inclusive), or None for no minimum.
        max_val: Maximum allowed value (inclusive), or None for no maximum.

    Returns:
        The parsed and validated integer value.

    Raises:
        ValueError: If the value cannot be parsed as an integer or is out of range.
    """
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default

    try:
        value = int(raw)
    except ValueError:
        raise ValueError(
            f"Invalid value for {name}: '{raw}' is not a valid integer"
        )

    if min_val is not None and value < min_val:
        raise ValueError(
            f"Invalid value for {name}: {value} must be >= {min_val}"
        )

    if max_val is not None and value > max_val:
        raise ValueError(
            f"Invalid value for {name}: {value} must be <= {max_val}"
        )

    return value


class Config:
    def __init__(self, env_file=None):
        """
        Initialize configuration by loading environment variables and setting default attributes.

        Loads environment variables from the provided .env file path when `env_file` is given; otherwise loads from the default environment. Every component receives this object at construction, nothing reads the environment on its own.

        Parameters:
            env_file (str | None): Optional path to a .env file to load environment variables from.
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        # Logging
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

        # Database configuration
        self.DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./podindex.db")
        self.DB_POOL_SIZE = _get_int_env("DB_POOL_SIZE", 5, min_val=1)
        self.DB_MAX_OVERFLOW = _get_int_env("DB_MAX_OVERFLOW", 10, min_val=0)
        self.DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"

        # Recent feeds endpoint
        self.RECENT_FEEDS_MAX_CAP = _get_int_env("RECENT_FEEDS_MAX_CAP", 1000, min_val=1)
        self.RECENT_FEEDS_DEFAULT_MAX = _get_int_env(
            "RECENT_FEEDS_DEFAULT_MAX", 40, min_val=1, max_val=self.RECENT_FEEDS_MAX_CAP
        )

        # Incremental sync
        self.SYNC_DEFAULT_WINDOW_SECONDS = _get_int_env(
            "SYNC_DEFAULT_WINDOW_SECONDS", 900, min_val=1
        )  # 15 minutes
        self.SYNC_MAX_CAP = _get_int_env("SYNC_MAX_CAP", 1000, min_val=1)
        self.SYNC_DEFAULT_MAX = _get_int_env(
            "SYNC_DEFAULT_MAX", 100, min_val=1, max_val=self.SYNC_MAX_CAP
        )

        # lang/cat/notcat parameters keep at most this many entries
        self.FILTER_LIST_LIMIT = _get_int_env("FILTER_LIST_LIMIT", 10, min_val=1)

        # Web application configuration
        self.WEB_PORT = _get_int_env("PORT", 8080, min_val=1, max_val=65535)

