"""Data models for the run ledger."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class RunStatus(str, Enum):
    RUNNING = "running"
    OK = "ok"
    FAILED = "failed"


class RunSource(str, Enum):
    """What triggered a run."""

    SCHEDULED = "scheduled"
    MANUAL = "manual"
    MANUAL_FEED = "manual-feed"


@dataclass
class FeedMetrics:
    """Per-feed outcome inside one run."""

    feed_id: str
    status: str  # ok, not_modified, error
    http_status: int | None = None
    duration_ms: int = 0
    items_seen: int = 0
    items_upserted: int = 0
    error: str | None = None


@dataclass
class RunSummary:
    """What a run did; stored as the run's details JSON."""

    run_id: int
    source: RunSource
    status: RunStatus = RunStatus.RUNNING
    started_at: datetime | None = None
    finished_at: datetime | None = None
    feeds: list[FeedMetrics] = field(default_factory=list)
    error: str | None = None

    @property
    def feeds_processed(self) -> int:
        return len(self.feeds)

    @property
    def feeds_failed(self) -> int:
        return sum(1 for f in self.feeds if f.status == "error")

    @property
    def items_upserted(self) -> int:
        return sum(f.items_upserted for f in self.feeds)

    def details(self) -> dict[str, Any]:
        """JSON-serialisable details for the ledger row."""
        details: dict[str, Any] = {
            "source": self.source.value,
            "feeds_processed": self.feeds_processed,
            "feeds_failed": self.feeds_failed,
            "items_upserted": self.items_upserted,
            "feed_metrics": [asdict(f) for f in self.feeds],
        }
        if self.error:
            details["error"] = self.error
        return details


@dataclass
class RunRecord:
    """A fetch_runs row."""

    id: int
    started_at: datetime
    status: RunStatus
    source: str
    finished_at: datetime | None = None
    details: dict[str, Any] = field(default_factory=dict)
