"""Tests for configuration loading."""

from unittest.mock import patch

import pytest

from podindex.config import Config, _get_int_env


class TestConfig:
    """Tests for Config."""

    def test_default_values(self):
        """Test default configuration values."""
        config = Config()

        assert config.LOG_LEVEL == "INFO"
        assert config.DATABASE_URL == "sqlite:///./podindex.db"
        assert config.DB_POOL_SIZE == 5
        assert config.DB_MAX_OVERFLOW == 10
        assert config.DB_ECHO is False
        assert config.RECENT_FEEDS_DEFAULT_MAX == 40
        assert config.RECENT_FEEDS_MAX_CAP == 1000
        assert config.SYNC_DEFAULT_WINDOW_SECONDS == 900
        assert config.SYNC_DEFAULT_MAX == 100
        assert config.SYNC_MAX_CAP == 1000
        assert config.FILTER_LIST_LIMIT == 10
        assert config.WEB_PORT == 8080

    def test_from_env(self):
        """Test loading configuration from environment variables."""
        with patch.dict(
            "os.environ",
            {
                "DATABASE_URL": "postgresql://user:secret@db/podindex",
                "SYNC_MAX_CAP": "500",
                "SYNC_DEFAULT_MAX": "50",
                "DB_ECHO": "true",
                "LOG_LEVEL": "debug",
            },
        ):
            config = Config()

            assert config.DATABASE_URL == "postgresql://user:secret@db/podindex"
            assert config.SYNC_MAX_CAP == 500
            assert config.SYNC_DEFAULT_MAX == 50
            assert config.DB_ECHO is True
            assert config.LOG_LEVEL == "DEBUG"
            # Other values should be defaults
            assert config.RECENT_FEEDS_MAX_CAP == 1000

    def test_default_max_cannot_exceed_cap(self):
        """Test that a default batch size above the cap is rejected."""
        with patch.dict("os.environ", {"SYNC_MAX_CAP": "10", "SYNC_DEFAULT_MAX": "20"}):
            with pytest.raises(ValueError, match="SYNC_DEFAULT_MAX"):
                Config()

    def test_env_file(self, tmp_path):
        """Test loading values from a custom .env file."""
        env_file = tmp_path / ".env"
        env_file.write_text("FILTER_LIST_LIMIT=3\n")

        with patch.dict("os.environ", {}):
            config = Config(env_file=str(env_file))

            assert config.FILTER_LIST_LIMIT == 3


class TestGetIntEnv:
    """Tests for _get_int_env."""

    def test_default_when_unset(self):
        """Test that the default is used for a missing variable."""
        with patch.dict("os.environ", {}, clear=False):
            assert _get_int_env("PODINDEX_TEST_UNSET", 7) == 7

    def test_empty_string_uses_default(self):
        """Test that an empty value falls back to the default."""
        with patch.dict("os.environ", {"PODINDEX_TEST_INT": ""}):
            assert _get_int_env("PODINDEX_TEST_INT", 7) == 7

    def test_invalid_integer(self):
        """Test that a non-numeric value is rejected."""
        with patch.dict("os.environ", {"PODINDEX_TEST_INT": "abc"}):
            with pytest.raises(ValueError, match="not a valid integer"):
                _get_int_env("PODINDEX_TEST_INT", 7)

    def test_range_checks(self):
        """Test minimum and maximum bounds."""
        with patch.dict("os.environ", {"PODINDEX_TEST_INT": "0"}):
            with pytest.raises(ValueError, match=">= 1"):
                _get_int_env("PODINDEX_TEST_INT", 7, min_val=1)
        with patch.dict("os.environ", {"PODINDEX_TEST_INT": "99"}):
            with pytest.raises(ValueError, match="<= 10"):
                _get_int_env("PODINDEX_TEST_INT", 7, max_val=10)
