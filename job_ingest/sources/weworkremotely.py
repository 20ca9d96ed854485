"""We Work Remotely source connector.

WWR publishes one RSS feed per category. The same listing can appear in more
than one category feed; feeds are merged in configured order, later wins.
"""

from __future__ import annotations

from typing import Sequence

import httpx

from .base import JobSource, SourceSnapshot, fetch_rss_feeds

DEFAULT_RSS_FEEDS = (
    "https://weworkremotely.com/categories/remote-programming-jobs.rss",
    "https://weworkremotely.com/categories/remote-devops-sysadmin-jobs.rss",
    "https://weworkremotely.com/categories/remote-full-stack-programming-jobs.rss",
)


class WeWorkRemotelySource(JobSource):
    """Fetch We Work Remotely category feeds and normalize them."""

    name = "WeWorkRemotely"
    key = "weworkremotely"

    def __init__(self, rss_feeds: Sequence[str] = DEFAULT_RSS_FEEDS, skip_invalid: bool = False) -> None:
        super().__init__(skip_invalid)
        self.rss_feeds = list(rss_feeds)

    def fetch(self, client: httpx.Client) -> SourceSnapshot:
        feeds = fetch_rss_feeds(client, self.name, self.rss_feeds, "weworkremotely_rss", self.skip_invalid)
        return SourceSnapshot(source=self.name, feeds=feeds)
