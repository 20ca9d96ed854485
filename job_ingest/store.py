"""Persistence collaborators.

The pipeline talks to the store through two calls only:

- `upsert_batch(source, run_ts, jobs)` inserts new identities and updates
  existing ones, refreshing `verified_at`, keeping `first_seen_at`, and
  writing `removed_at = null` for every job in the batch.
- `mark_missing(source, run_ts)` sets `removed_at = run_ts` on rows of the
  source that are not removed yet and were last verified before `run_ts`.

`SupabaseStore` calls the two Postgres functions in `sql/job_listings.sql`
through PostgREST. `MemoryStore` implements the same contract in-process; the
CLI uses it for dry runs.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from .errors import PersistenceError
from .models import Job, PersistedListing
from .utils import excerpt

logger = logging.getLogger(__name__)

UPSERT_RPC = "upsert_job_listings_batch"
MARK_MISSING_RPC = "mark_missing_job_listings"


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class ListingStore(ABC):
    """The two calls the reconciliation driver needs from a store."""

    @abstractmethod
    def upsert_batch(self, source: str, run_ts: str, jobs: Sequence[Job]) -> int:
        """Upsert `jobs`; return the number of affected rows."""
        raise NotImplementedError

    @abstractmethod
    def mark_missing(self, source: str, run_ts: str) -> int:
        """Mark rows not verified by this run as removed; return how many."""
        raise NotImplementedError


class SupabaseStore(ListingStore):
    """Store backed by Supabase RPCs, called over PostgREST with httpx."""

    def __init__(self, url: str, service_key: str, timeout_s: float = 20.0, client: Optional[httpx.Client] = None) -> None:
        self._base_url = url.rstrip("/") + "/rest/v1/rpc/"
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout_s)
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
        }

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "SupabaseStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _rpc(self, operation: str, function: str, params: Dict[str, Any]) -> int:
        try:
            resp = self._client.post(self._base_url + function, json=params, headers=self._headers)
        except httpx.HTTPError as exc:
            raise PersistenceError(operation, None, str(exc)) from exc
        if not resp.is_success:
            raise PersistenceError(operation, resp.status_code, excerpt(resp.text))
        try:
            data = resp.json()
        except ValueError:
            data = None
        try:
            return int(data or 0)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(operation, resp.status_code, f"unexpected result {excerpt(resp.text)}") from exc

    def upsert_batch(self, source: str, run_ts: str, jobs: Sequence[Job]) -> int:
        return self._rpc(
            "upsert",
            UPSERT_RPC,
            {"p_source": source, "p_run_ts": run_ts, "p_jobs": [job.to_row() for job in jobs]},
        )

    def mark_missing(self, source: str, run_ts: str) -> int:
        return self._rpc("mark-missing", MARK_MISSING_RPC, {"p_source": source, "p_run_ts": run_ts})


class MemoryStore(ListingStore):
    """In-process store with the same semantics as the SQL functions."""

    def __init__(self) -> None:
        self._rows: Dict[Tuple[str, str], PersistedListing] = {}
        self._lock = threading.Lock()

    def get(self, source: str, source_job_id: str) -> Optional[PersistedListing]:
        return self._rows.get((source, source_job_id))

    def listings(self, source: Optional[str] = None) -> List[PersistedListing]:
        return [row for row in self._rows.values() if source is None or row.source == source]

    def upsert_batch(self, source: str, run_ts: str, jobs: Sequence[Job]) -> int:
        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            for job in jobs:
                row = job.to_row()
                row.pop("source", None)
                key = (source, job.source_job_id)
                existing = self._rows.get(key)
                self._rows[key] = PersistedListing(
                    **row,
                    source=source,
                    first_seen_at=existing.first_seen_at if existing else run_ts,
                    verified_at=run_ts,
                    removed_at=None,
                    created_at=existing.created_at if existing else now,
                    updated_at=now,
                )
        return len(jobs)

    def mark_missing(self, source: str, run_ts: str) -> int:
        cutoff = _parse_ts(run_ts)
        now = datetime.now(timezone.utc).isoformat()
        count = 0
        with self._lock:
            for key, row in self._rows.items():
                if row.source != source or row.removed_at is not None:
                    continue
                if _parse_ts(row.verified_at) < cutoff:
                    self._rows[key] = row.model_copy(update={"removed_at": run_ts, "updated_at": now})
                    count += 1
        logger.debug("Marked %d %s listing(s) missing", count, source)
        return count
