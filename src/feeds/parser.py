"""
Feed payload parsing.

Turns an RSS/Atom payload into RawEntry records using feedparser, which
tolerates most dialect variance. A payload feedparser cannot recognise
as a feed at all raises FeedParseError; a well-formed feed with no
entries is simply empty.
"""

import logging
import re
from collections.abc import Iterator
from datetime import datetime, timezone
from typing import Any

import feedparser

from src.ingestion.schemas import RawEntry
from src.ingestion.text import clean_text, html_to_text

logger = logging.getLogger(__name__)

UNTITLED = "(untitled)"

_IMG_SRC = re.compile(r"<img[^>]+src=[\"']([^\"']+)[\"']", re.IGNORECASE)
_HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)


class FeedParseError(Exception):
    """Raised when a payload is not a parseable feed."""

    pass


def _as_datetime(struct) -> datetime | None:
    """feedparser *_parsed values are UTC struct_time tuples."""
    if not struct:
        return None
    try:
        return datetime(*struct[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None


def _first_http(candidates: list[Any], key: str) -> str | None:
    for candidate in candidates or []:
        value = candidate.get(key) if isinstance(candidate, dict) else None
        if value and _HTTP_URL.match(value):
            return value
    return None


def pick_image(entry: dict[str, Any], content_html: str = "") -> str | None:
    """
    Best-effort image for a feed entry.

    Preference: image enclosure, media:content, media:thumbnail,
    itunes:image, then the first <img> in the content HTML.
    """
    enclosures = [
        e for e in entry.get("enclosures", [])
        if str(e.get("type", "image/")).startswith("image/")
    ]
    image = (
        _first_http(enclosures, "href")
        or _first_http(entry.get("media_content", []), "url")
        or _first_http(entry.get("media_thumbnail", []), "url")
    )
    if image:
        return image

    itunes = entry.get("image")
    if isinstance(itunes, dict) and _HTTP_URL.match(itunes.get("href") or ""):
        return itunes["href"]

    match = _IMG_SRC.search(content_html or "")
    if match:
        return match.group(1)
    return None


def _entry_content_html(entry: dict[str, Any]) -> str:
    content = entry.get("content") or []
    if content:
        return "\n".join(c.get("value", "") for c in content if c.get("value"))
    return ""


def _to_raw_entry(entry: dict[str, Any]) -> RawEntry | None:
    content_html = _entry_content_html(entry)
    summary_html = entry.get("summary", "") or ""

    title = clean_text(html_to_text(entry.get("title", ""))) or UNTITLED
    link = (entry.get("link") or "").strip() or None
    guid = (entry.get("id") or "").strip() or None
    if link is None and guid is None and title == UNTITLED:
        return None

    published_at = _as_datetime(
        entry.get("published_parsed") or entry.get("updated_parsed")
    )
    published_raw = entry.get("published") or entry.get("updated")

    summary = html_to_text(summary_html)
    body = html_to_text(content_html)
    # Atom feeds often duplicate the summary as content
    if body == summary:
        body = ""

    return RawEntry(
        title=title,
        link=link,
        guid=guid,
        published_at=published_at,
        published_raw=published_raw,
        summary=summary,
        content=body,
        author=clean_text(entry.get("author", "")) or None,
        image_url=pick_image(entry, content_html or summary_html),
    )


def _iter_entries(entries: list[Any], limit: int | None) -> Iterator[RawEntry]:
    produced = 0
    for entry in entries:
        if limit is not None and produced >= limit:
            return
        raw = _to_raw_entry(entry)
        if raw is None:
            continue
        produced += 1
        yield raw


def parse_feed(payload: bytes | str, limit: int | None = None) -> Iterator[RawEntry]:
    """
    Parse a feed payload into a lazy sequence of RawEntry records.

    Args:
        payload: Raw RSS/Atom document
        limit: Maximum number of entries to yield

    Returns:
        Iterator of RawEntry (conversion happens as it is consumed)

    Raises:
        FeedParseError: If the payload is not recognisable as a feed
    """
    parsed = feedparser.parse(payload)
    entries = parsed.get("entries") or []

    if not entries and not parsed.get("version"):
        reason = parsed.get("bozo_exception") or "no feed version detected"
        raise FeedParseError(f"Unparseable feed payload: {reason}")

    if parsed.get("bozo"):
        logger.debug("Feed parsed leniently: %s", parsed.get("bozo_exception"))

    return _iter_entries(entries, limit)
