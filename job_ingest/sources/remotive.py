"""Remotive jobs source connector.

Remotive exposes the same listings through a public JSON endpoint and one or
more RSS feeds. Both are fetched concurrently and merged by job id; the API
is structurally richer, so its records are merged last and win.

Docs: https://remotive.com/api/remote-jobs
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence

import httpx

from ..errors import FetchError
from ..models import NormalizeContext
from .base import FeedResult, JobSource, SourceSnapshot, fetch_rss_feeds, get_json, normalize_items

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://remotive.com/api/remote-jobs"
DEFAULT_RSS_FEEDS = ("https://remotive.com/remote-jobs/feed",)


class RemotiveSource(JobSource):
    """Fetch Remotive's API snapshot and RSS feeds and normalize them."""

    name = "Remotive"
    key = "remotive"

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        rss_feeds: Sequence[str] = DEFAULT_RSS_FEEDS,
        skip_invalid: bool = False,
    ) -> None:
        super().__init__(skip_invalid)
        self.api_url = api_url
        self.rss_feeds = list(rss_feeds)

    def fetch_api(self, client: httpx.Client) -> FeedResult:
        payload = get_json(client, self.api_url)
        if not isinstance(payload, dict) or not isinstance(payload.get("jobs"), list):
            raise FetchError(self.api_url, None, "unexpected Remotive API response structure")

        result = normalize_items(
            "remotive_api",
            payload["jobs"],
            NormalizeContext(source=self.name),
            self.skip_invalid,
        )
        result.origin = "api"
        result.url = self.api_url
        logger.info("%s API: %d jobs", self.name, result.raw_count)
        return result

    def fetch_rss(self, client: httpx.Client) -> List[FeedResult]:
        return fetch_rss_feeds(client, self.name, self.rss_feeds, "rss", self.skip_invalid)

    def fetch(self, client: httpx.Client) -> SourceSnapshot:
        with ThreadPoolExecutor(max_workers=2) as pool:
            api_future = pool.submit(self.fetch_api, client)
            rss_future = pool.submit(self.fetch_rss, client)
            rss_results = rss_future.result()
            api_result = api_future.result()

        # API last so its records overwrite RSS ones with the same id.
        return SourceSnapshot(source=self.name, feeds=[*rss_results, api_result])
