import json
import logging
from datetime import timedelta

import pytest

from codepulse.config import DEFAULT_ALLOWED_ORIGINS, Settings
from codepulse.logging_config import JSONFormatter, setup_logging


def test_defaults(monkeypatch):
    for name in ("WORKERS", "MAX_ATTEMPTS", "DEDUP_WINDOW_HOURS", "ALLOWED_ORIGINS", "RATE_LIMIT_ENABLED", "GITHUB_TOKEN"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.workers == 2
    assert settings.max_attempts == 3
    assert settings.dedup_window == timedelta(hours=24)
    assert settings.allowed_origins == DEFAULT_ALLOWED_ORIGINS
    assert settings.rate_limit_enabled is True
    assert settings.github_token is None


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("WORKERS", "4")
    monkeypatch.setenv("DEDUP_WINDOW_HOURS", "1.5")
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")

    settings = Settings.from_env()

    assert settings.workers == 4
    assert settings.dedup_window == timedelta(minutes=90)
    assert settings.allowed_origins == ("https://a.example", "https://b.example")
    assert settings.rate_limit_enabled is False


def test_json_formatter_includes_job_id():
    record = logging.LogRecord("codepulse.test", logging.INFO, __file__, 1, "Job %s done", ("abc",), None)
    record.job_id = "abc"

    entry = json.loads(JSONFormatter().format(record))

    assert entry["message"] == "Job abc done"
    assert entry["severity"] == "INFO"
    assert entry["job_id"] == "abc"


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_uses_json_in_production(monkeypatch, root_logger):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("LOG_LEVEL", "warning")

    setup_logging()
    setup_logging()

    assert len(root_logger.handlers) == 1
    assert isinstance(root_logger.handlers[0].formatter, JSONFormatter)
    assert root_logger.level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_setup_logging_uses_text_elsewhere(monkeypatch, root_logger):
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.setenv("LOG_LEVEL", "not-a-level")

    setup_logging()

    assert not isinstance(root_logger.handlers[0].formatter, JSONFormatter)
    assert root_logger.level == logging.INFO
