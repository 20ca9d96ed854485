"""Source normalizers.

One normalizer per feed shape, selected by explicit feed kind rather than by
sniffing the payload. Each maps a raw item to a canonical `Job`:

1. pick the identity from an ordered list of fallback keys,
2. extract and sanitize the canonical fields with source-specific names,
3. compute the content hash over the normalized fields,
4. attach the raw payload (wrapped with its feed URL for RSS items).

RSS items arrive as feedparser entries, so the generic RSS keys are
feedparser's (`id` for guid, `author` for dc:creator, `content` for
content:encoded, `summary` for description).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, Literal, Mapping, Optional, Tuple

from .errors import MissingIdentityError
from .fingerprint import build_content_hash
from .models import Job, NormalizeContext
from .sanitize import coerce_text, sanitize_string, scrub_payload, to_iso_timestamp

FeedKind = Literal["remotive_api", "rss", "weworkremotely_rss", "arbeitnow_api"]


def first_present(item: Mapping[str, Any], keys: Iterable[str], convert: Callable[[Any], Optional[str]]) -> Optional[str]:
    """Return the first value under `keys` that converts to a non-empty string."""
    for key in keys:
        value = convert(item.get(key))
        if value is not None:
            return value
    return None


def first_raw(item: Mapping[str, Any], keys: Iterable[str]) -> Any:
    """Return the first value under `keys` that is not None, untouched."""
    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return None


def split_company_title(raw_title: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Split a "Company: Job Title" string on its first colon.

    Returns (company, title). Without a colon the whole string is the title.
    """
    if raw_title is None:
        return None, None
    company, sep, title = raw_title.partition(":")
    if not sep:
        return None, sanitize_string(raw_title)
    return sanitize_string(company), sanitize_string(title)


class Normalizer(ABC):
    """Shared build step; subclasses supply identity keys and field extraction."""

    kind: FeedKind
    id_keys: Tuple[str, ...] = ()
    id_convert: Callable[[Any], Optional[str]] = staticmethod(sanitize_string)

    def normalize(self, item: Mapping[str, Any], context: NormalizeContext) -> Job:
        source_job_id = first_present(item, self.id_keys, self.id_convert)
        if source_job_id is None:
            raise MissingIdentityError(context.source, context.feed_url)

        # Descriptions are kept verbatim; lone surrogates would break the UTF-8 request body.
        fields = scrub_payload(self.extract(item))
        fields["source"] = context.source
        fields["source_job_id"] = source_job_id

        return Job(
            **fields,
            content_hash=build_content_hash(fields),
            raw_payload=scrub_payload(self.raw_payload(item, context)),
        )

    @abstractmethod
    def extract(self, item: Mapping[str, Any]) -> Dict[str, Any]:
        """Map a raw item onto the hashed `Job` fields, minus the identity."""

    def raw_payload(self, item: Mapping[str, Any], context: NormalizeContext) -> Dict[str, Any]:
        return dict(item)


class RemotiveApiNormalizer(Normalizer):
    """Remotive's JSON API (`/api/remote-jobs`)."""

    kind = "remotive_api"
    id_keys = ("id", "job_id", "slug", "uuid")

    def extract(self, item: Mapping[str, Any]) -> Dict[str, Any]:
        description = first_raw(item, ("description", "description_html"))
        if description is not None and not isinstance(description, str):
            description = coerce_text(description)
        return {
            "url": first_present(item, ("url", "job_url"), sanitize_string),
            "title": sanitize_string(item.get("title")),
            "company_name": sanitize_string(item.get("company_name")),
            "company_logo_url": first_present(item, ("company_logo", "company_logo_url"), sanitize_string),
            "category": sanitize_string(item.get("category")),
            "job_type": sanitize_string(item.get("job_type")),
            "publication_date": to_iso_timestamp(item.get("publication_date")),
            "candidate_required_location": sanitize_string(item.get("candidate_required_location")),
            "salary": sanitize_string(item.get("salary")),
            "description_html": description,
        }


class RssNormalizer(Normalizer):
    """Generic RSS 2.0 job feed, as parsed by feedparser."""

    kind = "rss"
    id_keys = ("job_id", "jobid", "id", "link")
    id_convert = staticmethod(coerce_text)

    def description(self, item: Mapping[str, Any]) -> Optional[str]:
        # content:encoded first, then the plain description.
        value = first_raw(item, ("content", "summary", "description"))
        if value is None or isinstance(value, str):
            return value
        return coerce_text(value)

    def extract(self, item: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "url": first_present(item, ("link", "id"), coerce_text),
            "title": coerce_text(item.get("title")),
            "company_name": first_present(item, ("company", "author"), coerce_text),
            "company_logo_url": None,
            "category": first_present(item, ("tags", "category"), coerce_text),
            "job_type": coerce_text(item.get("type")),
            "publication_date": to_iso_timestamp(first_present(item, ("published", "pubdate"), coerce_text)),
            "candidate_required_location": coerce_text(item.get("location")),
            "salary": coerce_text(item.get("salary")),
            "description_html": self.description(item),
        }

    def raw_payload(self, item: Mapping[str, Any], context: NormalizeContext) -> Dict[str, Any]:
        return {"feed_url": context.feed_url, "item": dict(item)}


class WeWorkRemotelyRssNormalizer(RssNormalizer):
    """We Work Remotely category feeds.

    Titles carry the company ("Acme: Backend Engineer"), the location lives in
    `region`, and the logo in `media:content`.
    """

    kind = "weworkremotely_rss"

    @staticmethod
    def logo_url(item: Mapping[str, Any]) -> Optional[str]:
        media = item.get("media_content")
        if isinstance(media, list) and media and isinstance(media[0], Mapping):
            return sanitize_string(media[0].get("url"))
        return None

    def extract(self, item: Mapping[str, Any]) -> Dict[str, Any]:
        fields = super().extract(item)
        explicit_company = coerce_text(item.get("company"))
        if explicit_company is None:
            fields["company_name"], fields["title"] = split_company_title(fields["title"])
        else:
            fields["company_name"] = explicit_company
        fields["company_logo_url"] = self.logo_url(item)
        fields["candidate_required_location"] = first_present(item, ("region", "country", "location"), coerce_text)
        return fields


class ArbeitnowApiNormalizer(Normalizer):
    """Arbeitnow's job board API."""

    kind = "arbeitnow_api"
    id_keys = ("slug", "id")

    @staticmethod
    def _join(values: Any) -> Optional[str]:
        if isinstance(values, (list, tuple)):
            return sanitize_string(", ".join(s for s in (sanitize_string(v) for v in values) if s))
        return sanitize_string(values)

    def extract(self, item: Mapping[str, Any]) -> Dict[str, Any]:
        description = item.get("description")
        if description is not None and not isinstance(description, str):
            description = coerce_text(description)
        return {
            "url": sanitize_string(item.get("url")),
            "title": sanitize_string(item.get("title")),
            "company_name": first_present(item, ("company_name", "company"), sanitize_string),
            "company_logo_url": None,
            "category": coerce_text(item.get("tags")),
            "job_type": self._join(item.get("job_types")),
            "publication_date": to_iso_timestamp(item.get("created_at")),
            "candidate_required_location": sanitize_string(item.get("location")),
            "salary": first_present(item, ("salary_range", "salary", "compensation"), sanitize_string),
            "description_html": description,
        }


_NORMALIZERS: Dict[str, Normalizer] = {
    n.kind: n
    for n in (
        RemotiveApiNormalizer(),
        RssNormalizer(),
        WeWorkRemotelyRssNormalizer(),
        ArbeitnowApiNormalizer(),
    )
}


def get_normalizer(kind: FeedKind) -> Normalizer:
    """Return the normalizer for a feed kind; unknown kinds raise KeyError."""
    return _NORMALIZERS[kind]


def normalize(kind: FeedKind, item: Mapping[str, Any], context: NormalizeContext) -> Job:
    return get_normalizer(kind).normalize(item, context)
