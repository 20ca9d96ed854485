"""Cross-feed merge.

Redundant feeds of one board are collapsed by identity key. This is whole
record replacement, not a field-level merge: for a shared key the record from
the later feed is kept as-is.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from .models import Job


def merge_feeds(*feeds: Iterable[Job]) -> List[Job]:
    """Merge feeds given in ascending precedence; later feeds win.

    Each key keeps the position where it first appeared.
    """
    merged: Dict[Tuple[str, str], Job] = {}
    for feed in feeds:
        for job in feed:
            merged[job.identity] = job
    return list(merged.values())
