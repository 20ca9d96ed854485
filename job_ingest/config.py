"""Run configuration.

Settings are read from the environment once at process start (after
python-dotenv has loaded any `.env`) and passed explicitly to the driver and
the fetchers. Nothing else in the package reads `os.environ`.
"""

from __future__ import annotations

import os
from typing import Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigurationError
from .sources.arbeitnow import DEFAULT_API_URL as ARBEITNOW_API_URL
from .sources.remotive import DEFAULT_API_URL as REMOTIVE_API_URL
from .sources.remotive import DEFAULT_RSS_FEEDS as REMOTIVE_RSS_FEEDS
from .sources.weworkremotely import DEFAULT_RSS_FEEDS as WWR_RSS_FEEDS
from .utils import split_csv

SOURCE_KEYS = ("remotive", "weworkremotely", "arbeitnow")

DEFAULT_BATCH_SIZE = 500
DEFAULT_USER_AGENT = "job-feed-ingest/1.0"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


class Settings(BaseModel):
    """Immutable settings for one run."""

    model_config = ConfigDict(frozen=True)

    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = Field(default=None, repr=False)

    remotive_api_url: str = REMOTIVE_API_URL
    remotive_rss_feeds: Tuple[str, ...] = REMOTIVE_RSS_FEEDS
    wwr_rss_feeds: Tuple[str, ...] = WWR_RSS_FEEDS
    arbeitnow_api_url: str = ARBEITNOW_API_URL
    arbeitnow_max_pages: int = Field(default=20, ge=1)

    sources: Tuple[str, ...] = SOURCE_KEYS
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)
    http_timeout_s: float = Field(default=20.0, gt=0)
    user_agent: str = DEFAULT_USER_AGENT
    skip_invalid_items: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        sources = tuple(s.lower() for s in split_csv(env.get("INGEST_SOURCES"))) or SOURCE_KEYS
        unknown = sorted(set(sources) - set(SOURCE_KEYS))
        if unknown:
            raise ConfigurationError(f"Unknown source(s) in INGEST_SOURCES: {', '.join(unknown)}")

        return cls(
            supabase_url=_str(env, "SUPABASE_URL"),
            supabase_key=_str(env, "SUPABASE_SERVICE_ROLE_KEY"),
            remotive_api_url=_str(env, "REMOTIVE_API_URL") or REMOTIVE_API_URL,
            remotive_rss_feeds=tuple(split_csv(env.get("REMOTIVE_RSS_FEEDS"))) or REMOTIVE_RSS_FEEDS,
            wwr_rss_feeds=tuple(split_csv(env.get("WWR_RSS_FEEDS"))) or WWR_RSS_FEEDS,
            arbeitnow_api_url=_str(env, "ARBEITNOW_API_URL") or ARBEITNOW_API_URL,
            arbeitnow_max_pages=_int(env, "ARBEITNOW_MAX_PAGES", 20),
            sources=sources,
            batch_size=_int(env, "INGEST_BATCH_SIZE", DEFAULT_BATCH_SIZE),
            http_timeout_s=_float(env, "INGEST_HTTP_TIMEOUT", 20.0),
            user_agent=_str(env, "INGEST_USER_AGENT") or DEFAULT_USER_AGENT,
            skip_invalid_items=_bool(env, "INGEST_SKIP_INVALID", False),
            log_level=(_str(env, "LOG_LEVEL") or "INFO").upper(),
        )

    def require_store_credentials(self) -> Tuple[str, str]:
        """Return (url, key) or raise ConfigurationError naming what is missing."""
        missing = [
            name
            for name, value in (("SUPABASE_URL", self.supabase_url), ("SUPABASE_SERVICE_ROLE_KEY", self.supabase_key))
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing required environment variable(s): {', '.join(missing)}")
        return self.supabase_url, self.supabase_key


def _str(env: Mapping[str, str], name: str) -> Optional[str]:
    value = env.get(name)
    if value is None:
        return None
    return value.strip() or None


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _str(env, name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = _str(env, name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def _bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")
