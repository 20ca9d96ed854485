"""Per-board connectors.

Each connector knows its board's feeds and which normalizer each feed needs,
and returns them in merge precedence order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional

from .arbeitnow import ArbeitnowSource
from .base import FeedResult, JobSource, SourceSnapshot
from .remotive import RemotiveSource
from .weworkremotely import WeWorkRemotelySource

if TYPE_CHECKING:
    from ..config import Settings

__all__ = [
    "ArbeitnowSource",
    "FeedResult",
    "JobSource",
    "RemotiveSource",
    "SourceSnapshot",
    "WeWorkRemotelySource",
    "build_sources",
]


def build_sources(settings: "Settings", only: Optional[Iterable[str]] = None) -> List[JobSource]:
    """Instantiate the enabled sources, in configured order."""
    wanted = None if only is None else set(only)
    keys = [k for k in settings.sources if wanted is None or k in wanted]
    out: List[JobSource] = []
    for key in keys:
        if key == "remotive":
            out.append(
                RemotiveSource(
                    api_url=settings.remotive_api_url,
                    rss_feeds=settings.remotive_rss_feeds,
                    skip_invalid=settings.skip_invalid_items,
                )
            )
        elif key == "weworkremotely":
            out.append(WeWorkRemotelySource(rss_feeds=settings.wwr_rss_feeds, skip_invalid=settings.skip_invalid_items))
        elif key == "arbeitnow":
            out.append(
                ArbeitnowSource(
                    api_url=settings.arbeitnow_api_url,
                    max_pages=settings.arbeitnow_max_pages,
                    skip_invalid=settings.skip_invalid_items,
                )
            )
    return out
