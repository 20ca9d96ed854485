"""Content fingerprints.

The hash lets the store (and anyone reading it) tell a changed listing from a
re-verified one without diffing columns.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping

HASHED_FIELDS = (
    "source",
    "source_job_id",
    "url",
    "title",
    "company_name",
    "company_logo_url",
    "category",
    "job_type",
    "publication_date",
    "candidate_required_location",
    "salary",
    "description_html",
)


def canonical_json(fields: Mapping[str, Any]) -> str:
    """Serialize with sorted keys, compact separators and explicit nulls."""
    normalized = {key: fields.get(key) for key in HASHED_FIELDS}
    for key, value in fields.items():
        normalized.setdefault(key, value)
    return json.dumps(normalized, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def build_content_hash(fields: Mapping[str, Any]) -> str:
    """Return the sha256 hex digest of the canonical encoding of `fields`."""
    return hashlib.sha256(canonical_json(fields).encode("utf-8")).hexdigest()
