"""Data models for the ingestion pipeline.

The key idea: the store owns a *stable* canonical schema regardless of which
feed a listing came from. We keep the raw payload alongside so records can be
re-parsed later without re-fetching, but it never feeds the content hash.

This file uses Pydantic v2.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .fingerprint import HASHED_FIELDS


class NormalizeContext(BaseModel):
    """Where a raw item came from."""

    model_config = ConfigDict(frozen=True)

    source: str = Field(..., description="Feed family, e.g. 'Remotive'.")
    feed_url: Optional[str] = Field(default=None, description="Originating feed URL for RSS items.")


class Job(BaseModel):
    """A canonical job record.

    `(source, source_job_id)` is the identity key; `content_hash` changes
    whenever any tracked field does.
    """

    model_config = ConfigDict(frozen=True)

    source: str
    source_job_id: str

    url: Optional[str] = None
    title: Optional[str] = None
    company_name: Optional[str] = None
    company_logo_url: Optional[str] = None
    category: Optional[str] = None
    job_type: Optional[str] = None
    publication_date: Optional[str] = Field(
        default=None,
        description="UTC ISO-8601 timestamp when the source provides a parseable one.",
    )
    candidate_required_location: Optional[str] = None
    salary: Optional[str] = None
    description_html: Optional[str] = Field(default=None, description="Markup as delivered by the source.")

    content_hash: str = Field(..., description="sha256 over the hashed fields.")
    raw_payload: Dict[str, Any] = Field(
        default_factory=dict,
        serialization_alias="raw_json",
        description="Original payload (plus feed URL for RSS items).",
    )

    @property
    def identity(self) -> tuple:
        return (self.source, self.source_job_id)

    def hash_fields(self) -> Dict[str, Any]:
        """The exact mapping `content_hash` is computed over."""
        return {name: getattr(self, name) for name in HASHED_FIELDS}

    def to_row(self) -> Dict[str, Any]:
        """JSON-safe row in the shape the store's upsert procedure expects."""
        return self.model_dump(mode="json", by_alias=True)


class PersistedListing(BaseModel):
    """A store row: the job's fields plus lifecycle timestamps."""

    source: str
    source_job_id: str

    url: Optional[str] = None
    title: Optional[str] = None
    company_name: Optional[str] = None
    company_logo_url: Optional[str] = None
    category: Optional[str] = None
    job_type: Optional[str] = None
    publication_date: Optional[str] = None
    candidate_required_location: Optional[str] = None
    salary: Optional[str] = None
    description_html: Optional[str] = None
    content_hash: str
    raw_json: Dict[str, Any] = Field(default_factory=dict)

    first_seen_at: str
    verified_at: str
    removed_at: Optional[str] = None
    created_at: str
    updated_at: str


class SourceSummary(BaseModel):
    """Statistics for one source's reconciliation."""

    source: str
    run_ts: str
    fetched: Dict[str, int] = Field(default_factory=dict, description="Raw item count per origin.")
    feeds: int = 0
    combined_jobs: int = 0
    batches: int = 0
    upserted_rows: int = 0
    marked_missing: int = 0
    skipped_items: int = 0


class RunSummary(BaseModel):
    """What a run prints to stdout."""

    run_ts: str
    sources: List[SourceSummary] = Field(default_factory=list)
    failed_sources: List[str] = Field(default_factory=list)

    @property
    def upserted_rows(self) -> int:
        return sum(s.upserted_rows for s in self.sources)

    @property
    def marked_missing(self) -> int:
        return sum(s.marked_missing for s in self.sources)
