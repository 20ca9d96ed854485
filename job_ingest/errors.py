"""Error taxonomy for an ingestion run.

Nothing here is retried internally. Fetch, identity and persistence errors
abort the reconciliation of the source they occur in; configuration errors
abort the run before any fetch.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional

if TYPE_CHECKING:
    from .models import RunSummary


class IngestError(Exception):
    """Base class for all ingestion failures."""


class ConfigurationError(IngestError):
    """A required setting is missing or malformed."""


class FetchError(IngestError):
    """A feed or API responded with a non-success status (or not at all)."""

    def __init__(self, url: str, status: Optional[int], excerpt: str = "") -> None:
        self.url = url
        self.status = status
        self.excerpt = excerpt
        status_text = status if status is not None else "no response"
        message = f"Fetch failed for {url}: {status_text}"
        if excerpt:
            message = f"{message} - {excerpt}"
        super().__init__(message)


class MissingIdentityError(IngestError):
    """A raw item has no usable stable identifier."""

    def __init__(self, source: str, feed_url: Optional[str] = None) -> None:
        self.source = source
        self.feed_url = feed_url
        where = f" ({feed_url})" if feed_url else ""
        super().__init__(f"Encountered {source} job without a stable id{where}")


class PersistenceError(IngestError):
    """An upsert or mark-missing call against the store failed."""

    def __init__(self, operation: str, status: Optional[int], excerpt: str = "") -> None:
        self.operation = operation
        self.status = status
        self.excerpt = excerpt
        message = f"Store {operation} failed"
        if status is not None:
            message = f"{message}: {status}"
        if excerpt:
            message = f"{message} - {excerpt}"
        super().__init__(message)


class IngestRunError(IngestError):
    """One or more sources failed; the others may still have completed."""

    def __init__(self, failures: Dict[str, BaseException], summary: "RunSummary") -> None:
        self.failures = failures
        self.summary = summary
        details = "; ".join(f"{name}: {exc}" for name, exc in failures.items())
        super().__init__(f"{len(failures)} source(s) failed - {details}")
