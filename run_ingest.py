"""CLI entry point.

This script runs one reconciliation pass: it fetches every enabled job board,
normalizes and merges the listings, upserts them into Supabase and marks
listings that disappeared as removed. Meant to be run from cron.

Examples:
    python run_ingest.py
    python run_ingest.py --source remotive --source arbeitnow
    python run_ingest.py --dry-run --log-level DEBUG

On success the run summary is printed to stdout as one JSON object. On failure
the error goes to stderr and the exit status is 1.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from job_ingest.config import SOURCE_KEYS, Settings
from job_ingest.errors import ConfigurationError, IngestError, IngestRunError
from job_ingest.pipeline import run_ingest
from job_ingest.sources import build_sources
from job_ingest.store import ListingStore, MemoryStore, SupabaseStore

logger = logging.getLogger("job_ingest")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Ingest job board feeds into the listings store.")
    p.add_argument(
        "--source",
        action="append",
        choices=SOURCE_KEYS,
        help="Only reconcile this source (repeatable). Defaults to INGEST_SOURCES.",
    )
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Use an in-memory store instead of Supabase (no credentials needed).",
    )
    p.add_argument("--log-level", type=str, default=None, help="Overrides LOG_LEVEL (default INFO).")
    return p.parse_args(argv)


def build_store(settings: Settings, dry_run: bool) -> ListingStore:
    if dry_run:
        return MemoryStore()
    url, key = settings.require_store_credentials()
    return SupabaseStore(url, key, timeout_s=settings.http_timeout_s)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    load_dotenv()

    try:
        settings = Settings.from_env()
    except IngestError as exc:
        print(exc, file=sys.stderr)
        return 1

    level = (args.log_level or settings.log_level).upper()
    if not isinstance(logging.getLevelName(level), int):
        print(ConfigurationError(f"unknown log level: {level!r}"), file=sys.stderr)
        return 1

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    sources = build_sources(settings, only=args.source)
    if not sources:
        requested, enabled = ", ".join(args.source), ", ".join(settings.sources)
        print(
            ConfigurationError(f"--source {requested} matches no source enabled in INGEST_SOURCES ({enabled})"),
            file=sys.stderr,
        )
        return 1

    try:
        store = build_store(settings, args.dry_run)
    except IngestError as exc:
        print(exc, file=sys.stderr)
        return 1

    try:
        summary = run_ingest(settings, store, sources=sources)
    except IngestRunError as exc:
        for s in exc.summary.sources:
            logger.info("Completed before failure: %s", s.model_dump_json())
        print(exc, file=sys.stderr)
        return 1
    except IngestError as exc:
        print(exc, file=sys.stderr)
        return 1
    finally:
        if isinstance(store, SupabaseStore):
            store.close()

    print(summary.model_dump_json())
    return 0


if __name__ == "__main__":
    sys.exit(main())
