"""Arbeitnow jobs source connector.

Docs: https://www.arbeitnow.com/api/job-board-api

We paginate through the public job board API until it runs out of pages. The
snapshot has to be complete for missing-listing detection to be correct, so a
board with more pages than `max_pages` fails the fetch instead of truncating.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import httpx

from ..errors import FetchError
from ..models import NormalizeContext
from .base import JobSource, SourceSnapshot, get_json, normalize_items

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://www.arbeitnow.com/api/job-board-api"


class ArbeitnowSource(JobSource):
    """Fetch Arbeitnow jobs and normalize them."""

    name = "Arbeitnow"
    key = "arbeitnow"

    def __init__(self, api_url: str = DEFAULT_API_URL, max_pages: int = 20, skip_invalid: bool = False) -> None:
        super().__init__(skip_invalid)
        self.api_url = api_url
        self.max_pages = max_pages

    def fetch_pages(self, client: httpx.Client) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        page = 1
        while True:
            payload = get_json(client, self.api_url, params={"page": page})
            if not isinstance(payload, dict):
                raise FetchError(self.api_url, None, "unexpected Arbeitnow API response structure")

            jobs = payload.get("data") or payload.get("jobs") or []
            if not jobs:
                break
            items.extend(jobs)

            links = payload.get("links") or {}
            if not links.get("next"):
                break
            if page >= self.max_pages:
                raise FetchError(self.api_url, None, f"more than {self.max_pages} pages; snapshot would be incomplete")
            page += 1

        logger.info("%s API: %d jobs over %d page(s)", self.name, len(items), page)
        return items

    def fetch(self, client: httpx.Client) -> SourceSnapshot:
        result = normalize_items(
            "arbeitnow_api",
            self.fetch_pages(client),
            NormalizeContext(source=self.name),
            self.skip_invalid,
        )
        result.origin = "api"
        result.url = self.api_url
        return SourceSnapshot(source=self.name, feeds=[result])
