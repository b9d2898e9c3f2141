# tests/test_config.py
"""
Settings validation and logging setup.
"""

import logging

import pytest
import structlog
from pydantic import ValidationError

from eval_console.config import Settings, get_settings
from eval_console.core.logging_config import configure_logging


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("APP_ENV", "DEBUG", "ADMIN_API_URL", "ADMIN_TOKEN", "LOG_LEVEL", "LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    httpx_logger = logging.getLogger("httpx")
    handlers, level, httpx_level = list(root.handlers), root.level, httpx_logger.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    httpx_logger.setLevel(httpx_level)
    structlog.reset_defaults()


class TestSettings:

    def test_defaults(self, clean_env):
        settings = Settings(_env_file=None)
        assert settings.ADMIN_API_URL == "http://localhost:8000/api/v1"
        assert settings.ADMIN_TOKEN is None
        assert settings.RUN_POLL_INTERVAL_SECONDS == 3.0
        assert settings.PROGRESS_STEP_SECONDS == 0.8
        assert settings.QUADRANT_THRESHOLD == 50

    def test_trailing_slash_stripped(self, clean_env):
        settings = Settings(_env_file=None, ADMIN_API_URL="https://api.example.com/api/v1/ ")
        assert settings.ADMIN_API_URL == "https://api.example.com/api/v1"

    def test_non_http_url_rejected(self, clean_env):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, ADMIN_API_URL="ftp://api.example.com")

    def test_token_is_secret(self, clean_env):
        settings = Settings(_env_file=None, ADMIN_TOKEN="s3cret")
        assert settings.ADMIN_TOKEN.get_secret_value() == "s3cret"
        assert "s3cret" not in repr(settings)

    def test_negative_poll_interval_rejected(self, clean_env):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, RUN_POLL_INTERVAL_SECONDS=-1)

    def test_production_forbids_debug(self, clean_env):
        with pytest.raises(ValidationError, match="DEBUG"):
            Settings(
                _env_file=None,
                APP_ENV="production",
                DEBUG=True,
                ADMIN_API_URL="https://api.example.com",
            )

    def test_production_requires_https(self, clean_env):
        with pytest.raises(ValidationError, match="https"):
            Settings(_env_file=None, APP_ENV="production", ADMIN_API_URL="http://api.example.com")

    def test_reads_environment(self, clean_env):
        clean_env.setenv("ADMIN_API_URL", "https://env.example.com/api/v1/")
        clean_env.setenv("ADMIN_TOKEN", "from-env")
        settings = Settings(_env_file=None)
        assert settings.ADMIN_API_URL == "https://env.example.com/api/v1"
        assert settings.ADMIN_TOKEN.get_secret_value() == "from-env"

    def test_get_settings_cached(self, clean_env):
        assert get_settings() is get_settings()


class TestLogging:

    def test_console_format(self, clean_env, restore_logging):
        configure_logging(Settings(_env_file=None, LOG_LEVEL="DEBUG"))
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_json_format(self, clean_env, restore_logging):
        configure_logging(Settings(_env_file=None, LOG_FORMAT="json", LOG_LEVEL="ERROR"))
        assert logging.getLogger().level == logging.ERROR
        assert logging.getLogger("httpx").level == logging.ERROR
