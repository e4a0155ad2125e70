"""
Item schemas for the ingestion pipeline.

RawEntry is the parser boundary: one candidate entry as read from a
feed, with every field already reduced to plain text or None. Item is
the persisted record built from it; its id and hash are derived, never
supplied by a feed.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from src.ingestion.identity import canonical_url, content_hash, make_item_id


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class RegionScope(str, Enum):
    """Which lane a feed (and its items) belongs to."""

    REGIONAL = "ky"
    NATIONAL = "national"


@dataclass
class RawEntry:
    """One candidate entry produced by the feed parser."""

    title: str = ""
    link: str | None = None
    guid: str | None = None
    published_at: datetime | None = None
    published_raw: str | None = None
    summary: str = ""
    content: str = ""
    author: str | None = None
    image_url: str | None = None


class Item(BaseModel):
    """
    A deduplicated news item.

    Identity (``id``) is stable across repeated ingestion of the same
    logical article. All other fields are refreshed on every observation
    except ``region_scope`` and ``fetched_at``, which keep their first
    values, and the enrichment fields, which only the tagger writes.
    """

    id: str = Field(..., description="Deterministic 24-char hex identity")
    title: str = Field(default="", description="Item title")
    url: str | None = Field(default=None, description="Canonical article URL")
    guid: str | None = Field(default=None, description="External guid if any")
    author: str | None = Field(default=None)
    region_scope: RegionScope = Field(default=RegionScope.REGIONAL)
    published_at: datetime | None = Field(default=None)
    summary: str = Field(default="", description="Plain-text summary")
    content: str = Field(default="", description="Plain-text body from the feed")
    image_url: str | None = Field(default=None)
    fetched_at: datetime = Field(default_factory=_utc_now)
    hash: str = Field(default="", description="SHA256 over mutable fields")

    # Enrichment status
    article_checked_at: datetime | None = Field(default=None)
    article_fetch_status: str | None = Field(default=None)
    article_text_excerpt: str | None = Field(default=None)

    @property
    def sort_ts(self) -> datetime:
        """Effective timestamp: published time, else ingestion time."""
        return self.published_at or self.fetched_at

    @property
    def enrichment_attempted(self) -> bool:
        return self.article_checked_at is not None

    @classmethod
    def from_raw(
        cls,
        entry: RawEntry,
        region_scope: RegionScope,
        fetched_at: datetime | None = None,
    ) -> "Item":
        """Build an Item from a parsed entry, deriving id and hash."""
        url = canonical_url(entry.link) or None
        published = entry.published_at or entry.published_raw
        return cls(
            id=make_item_id(url, entry.guid, entry.title, published),
            title=entry.title,
            url=url,
            guid=entry.guid,
            author=entry.author,
            region_scope=region_scope,
            published_at=entry.published_at,
            summary=entry.summary,
            content=entry.content,
            image_url=entry.image_url,
            fetched_at=fetched_at or _utc_now(),
            hash=content_hash(
                entry.title, url, entry.summary, entry.content,
                entry.author, published,
            ),
        )
