from __future__ import annotations

from typing import Any, Callable, Dict

import httpx
import pytest

from job_ingest.models import Job, NormalizeContext
from job_ingest.normalizers import get_normalizer

ENV_VARS = (
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "REMOTIVE_API_URL",
    "REMOTIVE_RSS_FEEDS",
    "WWR_RSS_FEEDS",
    "ARBEITNOW_API_URL",
    "ARBEITNOW_MAX_PAGES",
    "INGEST_SOURCES",
    "INGEST_BATCH_SIZE",
    "INGEST_HTTP_TIMEOUT",
    "INGEST_USER_AGENT",
    "INGEST_SKIP_INVALID",
    "LOG_LEVEL",
)

REMOTIVE_RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <title>Remotive Remote Jobs</title>
    <link>https://remotive.com</link>
    <description>Remote jobs</description>
    <item>
      <title>Backend Engineer (RSS)</title>
      <link>https://remotive.com/remote-jobs/software-dev/backend-engineer-42</link>
      <guid isPermaLink="false">42</guid>
      <dc:creator>Acme</dc:creator>
      <category>Software Development</category>
      <pubDate>Mon, 01 Jan 2024 12:34:56 +0000</pubDate>
      <description><![CDATA[<p>Build APIs</p>]]></description>
    </item>
    <item>
      <title>Data Analyst</title>
      <link>https://remotive.com/remote-jobs/data/data-analyst-77</link>
      <guid isPermaLink="false">77</guid>
      <dc:creator>Globex</dc:creator>
      <pubDate>Tue, 02 Jan 2024 08:00:00 +0000</pubDate>
      <description><![CDATA[<p>Dashboards</p>]]></description>
    </item>
  </channel>
</rss>
"""

WWR_RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>We Work Remotely: Programming</title>
    <link>https://weworkremotely.com</link>
    <description>Programming jobs</description>
    <item>
      <title>Acme Corp: Backend Engineer</title>
      <region>Anywhere in the World</region>
      <type>Full-Time</type>
      <pubDate>Wed, 03 Jan 2024 10:00:00 +0000</pubDate>
      <guid>https://weworkremotely.com/remote-jobs/acme-corp-backend-engineer</guid>
      <link>https://weworkremotely.com/remote-jobs/acme-corp-backend-engineer</link>
      <description><![CDATA[<p>Go and Postgres</p>]]></description>
    </item>
  </channel>
</rss>
"""


def remotive_api_job(**overrides: Any) -> Dict[str, Any]:
    job = {
        "id": 42,
        "url": "https://remotive.com/remote-jobs/software-dev/backend-engineer-42",
        "title": "Backend Engineer",
        "company_name": "Acme",
        "company_logo": "https://remotive.com/logo/acme.png",
        "category": "Software Development",
        "job_type": "full_time",
        "publication_date": "2024-01-01T12:34:56",
        "candidate_required_location": "Worldwide",
        "salary": "$100k - $120k",
        "description": "<p>Build APIs</p>",
    }
    job.update(overrides)
    return job


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_job() -> Callable[..., Job]:
    def _make(source_job_id: str, source: str = "Remotive", **fields: Any) -> Job:
        item = remotive_api_job(id=source_job_id, **fields)
        return get_normalizer("remotive_api").normalize(item, NormalizeContext(source=source))

    return _make


@pytest.fixture
def mock_client():
    clients = []

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()
