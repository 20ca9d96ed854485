"""Field sanitizers.

Every function here is total: bad input yields None, never an exception.
Feeds hand us strings, numbers, nested text nodes and the occasional empty
element; these helpers reduce all of that to clean comparable primitives.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from dateutil import parser as dateutil_parser

# Keys under which parsed XML / feedparser structures keep their text.
TEXT_KEYS = ("#text", "text", "value", "term")

MAX_TEXT_DEPTH = 32

_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


def scrub_surrogates(text: str) -> str:
    """Replace lone UTF-16 surrogates with U+FFFD.

    JSON allows escapes like "\\ud83d" on their own; UTF-8 cannot encode them.
    """
    if not _LONE_SURROGATE.search(text):
        return text
    return text.encode("utf-16", "surrogatepass").decode("utf-16", "replace")


def scrub_payload(value: Any) -> Any:
    """Apply `scrub_surrogates` to every string inside a JSON-like payload."""
    if isinstance(value, str):
        return scrub_surrogates(value)
    if isinstance(value, Mapping):
        return {scrub_payload(k): scrub_payload(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [scrub_payload(v) for v in value]
    return value


def sanitize_string(value: Any) -> Optional[str]:
    """Stringify and trim; None and blank strings become None."""
    if value is None:
        return None
    trimmed = scrub_surrogates(str(value)).strip()
    return trimmed or None


def _to_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        ts = float(value)
        # Epoch in ms; convert if so.
        if ts > 1e12:
            ts /= 1000.0
        return datetime.fromtimestamp(ts, tz=timezone.utc)
    text = sanitize_string(value)
    if text is None:
        return None
    return dateutil_parser.parse(text)


def to_iso_timestamp(value: Any) -> Optional[str]:
    """Normalize a timestamp to UTC ISO-8601 with millisecond precision.

    Accepts datetimes, epoch seconds or milliseconds, and ISO-8601 or
    RFC-822 strings. Naive values are taken as UTC. Anything unparseable
    (or falsy) returns None.
    """
    if not value:
        return None
    try:
        dt = _to_datetime(value)
    except (ValueError, OverflowError, OSError, TypeError):
        return None
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    try:
        dt = dt.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def coerce_text(value: Any, _depth: int = 0) -> Optional[str]:
    """Unwrap nested text containers, then sanitize.

    Lists take their first element, mappings their first text-bearing key.
    """
    if value is None or _depth > MAX_TEXT_DEPTH:
        return None
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        return coerce_text(value[0], _depth + 1)
    if isinstance(value, Mapping):
        for key in TEXT_KEYS:
            if key in value:
                return coerce_text(value[key], _depth + 1)
        return None
    return sanitize_string(value)
