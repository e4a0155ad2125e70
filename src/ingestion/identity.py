"""
Deterministic item identity, content hashing and URL canonicalization.

The same logical article must map to the same item id whichever feed
surfaced it and in whichever run it was seen. Identity is derived from,
in priority order, the canonical link, the guid, or title + published
time. The content hash is stored for change detection only; it never
gates the upsert.
"""

import hashlib
import re
from datetime import datetime
from urllib.parse import unquote_plus, urlsplit, urlunsplit

ITEM_ID_LENGTH = 24

# Query keys dropped from canonical URLs (matched case-insensitively)
_TRACKING_PARAM = re.compile(r"^(utm_.*|fbclid|gclid|mc_eid|mkt_tok)$", re.IGNORECASE)


def stable_hash(value: str, length: int = ITEM_ID_LENGTH) -> str:
    """
    Generate a stable, deterministic hash from a string.

    SHA256 truncated to ``length`` hex characters. Unlike Python's
    built-in hash(), this is deterministic across process restarts.
    """
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:length]


def _strip_tracking(query: str) -> str:
    """Drop tracking parameters; every other segment is kept verbatim."""
    kept = []
    for segment in query.split("&"):
        if not segment:
            continue
        key = unquote_plus(segment.split("=", 1)[0])
        if not _TRACKING_PARAM.match(key):
            kept.append(segment)
    return "&".join(kept)


def canonical_url(url: str | None) -> str:
    """
    Normalize a URL for use as an identity and dedup key.

    Drops tracking query parameters (utm_*, fbclid, gclid, mc_eid,
    mkt_tok), the fragment, and trailing slashes on the path. Values
    that do not parse as absolute URLs are returned stripped but
    otherwise untouched.

    >>> canonical_url("https://ex.com/a/?utm_source=x&id=3#top")
    'https://ex.com/a?id=3'
    """
    raw = (url or "").strip()
    if not raw:
        return ""
    try:
        parts = urlsplit(raw)
    except ValueError:
        return raw
    if not parts.scheme or not parts.netloc:
        return raw

    path = parts.path.rstrip("/")
    return urlunsplit((parts.scheme, parts.netloc, path, _strip_tracking(parts.query), ""))


def _published_key(published_at: datetime | str | None) -> str:
    if published_at is None:
        return ""
    if isinstance(published_at, datetime):
        return published_at.isoformat()
    return str(published_at)


def make_item_id(
    url: str | None,
    guid: str | None,
    title: str | None,
    published_at: datetime | str | None,
) -> str:
    """
    Compute the deterministic item id.

    Args:
        url: Entry link (canonicalized before hashing)
        guid: External guid, used when there is no link
        title: Title, combined with published time as last resort
        published_at: Publication time (datetime or raw string)

    Returns:
        24-character hex identifier
    """
    link = canonical_url(url)
    if link:
        basis = link
    elif guid and guid.strip():
        basis = guid.strip()
    else:
        basis = f"{(title or '').strip()}__{_published_key(published_at)}"
    return stable_hash(basis)


def content_hash(
    title: str | None,
    url: str | None,
    summary: str | None,
    body: str | None,
    author: str | None,
    published_at: datetime | str | None,
) -> str:
    """Full SHA256 over the mutable item fields, for change detection."""
    joined = "|".join(
        [
            title or "",
            url or "",
            summary or "",
            body or "",
            author or "",
            _published_key(published_at),
        ]
    )
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()
