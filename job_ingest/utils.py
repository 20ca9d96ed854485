"""Utility helpers shared across the package."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional, Sequence, TypeVar

T = TypeVar("T")

EXCERPT_LIMIT = 500


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of at most `size` items."""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def split_csv(raw: Optional[str]) -> List[str]:
    """Split a comma-separated setting, dropping blanks and duplicates."""
    if not raw:
        return []
    return uniq_preserve_order(part.strip() for part in raw.split(","))


def uniq_preserve_order(items: Iterable[str]) -> List[str]:
    """Deduplicate while preserving first-seen order."""
    seen = set()
    out: List[str] = []
    for it in items:
        if not it:
            continue
        if it in seen:
            continue
        seen.add(it)
        out.append(it)
    return out


def excerpt(text: Optional[str], limit: int = EXCERPT_LIMIT) -> str:
    """Trim a response body for inclusion in an error message."""
    if not text:
        return ""
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
