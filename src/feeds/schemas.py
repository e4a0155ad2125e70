"""Data models for the feeds module."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from src.ingestion.schemas import RegionScope


@dataclass
class FeedSource:
    """A configured RSS/Atom feed.

    Created by seeding; the poller updates ``etag``, ``last_modified``
    and ``last_checked_at``; moderators flip ``enabled``.
    """

    id: str
    url: str
    name: str = ""
    category: str = ""
    region_scope: RegionScope = RegionScope.REGIONAL
    state_code: str = "KY"
    default_county: str | None = None
    enabled: bool = True
    etag: str | None = None
    last_modified: str | None = None
    last_checked_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def is_regional(self) -> bool:
        return self.region_scope == RegionScope.REGIONAL


class PollOutcome(str, Enum):
    """Non-failure outcomes of a conditional fetch."""

    NOT_MODIFIED = "not_modified"
    SUCCESS = "success"


@dataclass
class PollResult:
    """Result of polling one feed. Failures raise FeedFetchError instead."""

    outcome: PollOutcome
    status_code: int
    etag: str | None = None
    last_modified: str | None = None
    payload: bytes | None = None
