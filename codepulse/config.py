"""
Runtime configuration for CodePulse.

Values come from environment variables (a local .env file is loaded first).
"""

import os
from dataclasses import dataclass, field
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


DEFAULT_ALLOWED_ORIGINS = (
    "http://localhost:5173",
    "http://localhost:3000",
    "http://localhost:8080",
)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(name)
    if not value:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./codepulse.db"

    # Job scheduler
    workers: int = 2
    max_attempts: int = 3
    backoff_base_seconds: float = 5.0
    dedup_window_hours: float = 24

    # Rule engine fan-out per job
    rule_workers: int = 4

    # Source fetcher
    clone_timeout_seconds: int = 120
    clone_depth: int = 1
    github_token: str | None = None

    # HTTP layer
    allowed_origins: tuple[str, ...] = field(default=DEFAULT_ALLOWED_ORIGINS)
    rate_limit_enabled: bool = True

    @property
    def dedup_window(self) -> timedelta:
        return timedelta(hours=self.dedup_window_hours)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            workers=int(os.getenv("WORKERS", cls.workers)),
            max_attempts=int(os.getenv("MAX_ATTEMPTS", cls.max_attempts)),
            backoff_base_seconds=float(os.getenv("BACKOFF_BASE_SECONDS", cls.backoff_base_seconds)),
            dedup_window_hours=float(os.getenv("DEDUP_WINDOW_HOURS", cls.dedup_window_hours)),
            rule_workers=int(os.getenv("RULE_WORKERS", cls.rule_workers)),
            clone_timeout_seconds=int(os.getenv("CLONE_TIMEOUT_SECONDS", cls.clone_timeout_seconds)),
            clone_depth=int(os.getenv("CLONE_DEPTH", cls.clone_depth)),
            github_token=os.getenv("GITHUB_TOKEN") or None,
            allowed_origins=_env_list("ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS),
            rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", True),
        )
