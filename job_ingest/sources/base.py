"""Base classes and shared HTTP/feed plumbing for source connectors."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import feedparser
import httpx

from ..errors import FetchError, MissingIdentityError
from ..models import Job, NormalizeContext
from ..normalizers import FeedKind, get_normalizer
from ..utils import excerpt

logger = logging.getLogger(__name__)

RSS_ACCEPT = "application/rss+xml, application/xml;q=0.9, */*;q=0.8"


@dataclass
class FeedResult:
    """Normalized jobs from one raw origin (the API, or one RSS feed)."""

    origin: str
    url: str
    jobs: List[Job] = field(default_factory=list)
    raw_count: int = 0
    skipped: int = 0


@dataclass
class SourceSnapshot:
    """Everything a source produced in one run, in merge precedence order."""

    source: str
    feeds: List[FeedResult] = field(default_factory=list)

    def fetched(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for feed in self.feeds:
            counts[feed.origin] = counts.get(feed.origin, 0) + feed.raw_count
        return counts

    @property
    def skipped(self) -> int:
        return sum(feed.skipped for feed in self.feeds)


def get_response(client: httpx.Client, url: str, **kwargs: Any) -> httpx.Response:
    """GET `url`; transport failures and non-2xx responses raise FetchError."""
    try:
        resp = client.get(url, **kwargs)
    except httpx.HTTPError as exc:
        raise FetchError(url, None, str(exc)) from exc
    if not resp.is_success:
        body = excerpt(resp.text)
        detail = f"{resp.reason_phrase} - {body}" if body else resp.reason_phrase
        raise FetchError(url, resp.status_code, detail)
    return resp


def get_json(client: httpx.Client, url: str, params: Optional[Mapping[str, Any]] = None) -> Any:
    resp = get_response(client, url, params=params)
    try:
        return resp.json()
    except ValueError as exc:
        raise FetchError(url, resp.status_code, "invalid JSON body") from exc


def _plain(value: Any) -> Any:
    """Copy a feedparser structure into plain JSON-safe containers.

    `*_parsed` entries hold `time.struct_time`; the string forms are kept.
    """
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items() if not str(k).endswith("_parsed")}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def parse_feed(content: bytes, url: str, status: Optional[int] = None) -> List[Dict[str, Any]]:
    """Parse an RSS/Atom document into plain item dicts."""
    parsed = feedparser.parse(content, sanitize_html=False, resolve_relative_uris=False)
    if not parsed.get("version") and not parsed.entries:
        reason = parsed.get("bozo_exception") or "missing channel node"
        raise FetchError(url, status, f"not an RSS feed ({reason})")
    return [_plain(entry) for entry in parsed.entries]


def normalize_items(
    kind: FeedKind,
    items: Iterable[Mapping[str, Any]],
    context: NormalizeContext,
    skip_invalid: bool = False,
) -> FeedResult:
    normalizer = get_normalizer(kind)
    result = FeedResult(origin="", url=context.feed_url or "")
    for item in items:
        result.raw_count += 1
        try:
            result.jobs.append(normalizer.normalize(item, context))
        except MissingIdentityError as exc:
            if not skip_invalid:
                raise
            result.skipped += 1
            logger.warning("Skipping item: %s", exc)
    return result


def fetch_rss_feeds(
    client: httpx.Client,
    source: str,
    urls: Sequence[str],
    kind: FeedKind,
    skip_invalid: bool = False,
) -> List[FeedResult]:
    """Fetch and normalize each feed; results keep the order of `urls`."""

    def fetch_one(url: str) -> FeedResult:
        resp = get_response(client, url, headers={"Accept": RSS_ACCEPT})
        items = parse_feed(resp.content, url, resp.status_code)
        result = normalize_items(kind, items, NormalizeContext(source=source, feed_url=url), skip_invalid)
        result.origin = "rss"
        logger.info("%s RSS %s: %d items", source, url, result.raw_count)
        return result

    if not urls:
        return []
    with ThreadPoolExecutor(max_workers=min(len(urls), 4)) as pool:
        return list(pool.map(fetch_one, urls))


class JobSource(ABC):
    """Abstract base class for a job source connector."""

    name: str
    key: str

    def __init__(self, skip_invalid: bool = False) -> None:
        self.skip_invalid = skip_invalid

    @abstractmethod
    def fetch(self, client: httpx.Client) -> SourceSnapshot:
        """Fetch every feed of this source and return normalized jobs."""
        raise NotImplementedError
