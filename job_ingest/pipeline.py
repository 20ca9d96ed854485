"""Reconciliation driver.

One pass per source: fetch -> normalize -> merge -> batch upsert -> mark
missing. Every step uses the same run timestamp, captured once per run, so the
store can tell rows touched by this run from rows that were not.

Sources are independent: they write disjoint `(source, *)` partitions, run in
parallel, and a failure in one does not stop the others. The run as a whole
still fails if any source did.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import httpx

from .config import Settings
from .errors import IngestRunError
from .merge import merge_feeds
from .models import Job, RunSummary, SourceSummary
from .sanitize import to_iso_timestamp
from .sources import JobSource, build_sources
from .store import ListingStore
from .utils import chunked

logger = logging.getLogger(__name__)


def chunk_jobs(jobs: Sequence[Job], batch_size: int) -> List[List[Job]]:
    """Split jobs into upsert batches of at most `batch_size`."""
    return list(chunked(jobs, batch_size))


def build_client(settings: Settings) -> httpx.Client:
    return httpx.Client(
        timeout=settings.http_timeout_s,
        follow_redirects=True,
        headers={"User-Agent": settings.user_agent},
    )


def reconcile_source(
    source: JobSource,
    store: ListingStore,
    settings: Settings,
    run_ts: str,
    client: httpx.Client,
) -> SourceSummary:
    """Reconcile one source's current snapshot against the store.

    Any error propagates and leaves already-committed batches in place.
    """
    snapshot = source.fetch(client)
    jobs = merge_feeds(*(feed.jobs for feed in snapshot.feeds))
    batches = chunk_jobs(jobs, settings.batch_size)

    upserted = 0
    for i, batch in enumerate(batches, start=1):
        upserted += store.upsert_batch(source.name, run_ts, batch)
        logger.debug("%s batch %d/%d: %d jobs", source.name, i, len(batches), len(batch))

    marked = store.mark_missing(source.name, run_ts)

    summary = SourceSummary(
        source=source.name,
        run_ts=run_ts,
        fetched=snapshot.fetched(),
        feeds=len(snapshot.feeds),
        combined_jobs=len(jobs),
        batches=len(batches),
        upserted_rows=upserted,
        marked_missing=marked,
        skipped_items=snapshot.skipped,
    )
    logger.info(
        "%s: %d combined jobs, %d upserted in %d batch(es), %d marked missing",
        source.name,
        summary.combined_jobs,
        summary.upserted_rows,
        summary.batches,
        summary.marked_missing,
    )
    return summary


def run_ingest(
    settings: Settings,
    store: ListingStore,
    sources: Optional[Sequence[JobSource]] = None,
    client: Optional[httpx.Client] = None,
    now: Optional[datetime] = None,
) -> RunSummary:
    """Reconcile every enabled source and return the run summary.

    Raises IngestRunError (carrying the partial summary) if any source failed.
    """
    run_ts = to_iso_timestamp(now or datetime.now(timezone.utc))
    if sources is None:
        sources = build_sources(settings)

    owns_client = client is None
    http = client or build_client(settings)
    results: Dict[str, SourceSummary] = {}
    failures: Dict[str, BaseException] = {}
    try:
        with ThreadPoolExecutor(max_workers=max(len(sources), 1)) as pool:
            futures = {
                source.name: pool.submit(reconcile_source, source, store, settings, run_ts, http)
                for source in sources
            }
            for name, future in futures.items():
                try:
                    results[name] = future.result()
                except Exception as exc:
                    logger.error("%s reconciliation failed: %s", name, exc)
                    failures[name] = exc
    finally:
        if owns_client:
            http.close()

    summary = RunSummary(
        run_ts=run_ts,
        sources=[results[s.name] for s in sources if s.name in results],
        failed_sources=[s.name for s in sources if s.name in failures],
    )
    if failures:
        raise IngestRunError(failures, summary)
    return summary
