"""
Request and response models for the admin API.
"""

import datetime as dt
from typing import Any

from pydantic import BaseModel, Field

from src.ledger.schemas import RunRecord, RunSummary


class ComponentHealth(BaseModel):
    """Health of one dependency."""

    status: str = Field(..., description="healthy, degraded or unhealthy")
    latency_ms: float | None = Field(default=None, description="Check latency")
    details: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(
        ...,
        description="Overall service status: healthy, degraded, or unhealthy",
    )
    components: dict[str, ComponentHealth] = Field(default_factory=dict)
    last_run_status: str | None = Field(
        default=None,
        description="Status of the most recently started ingestion run",
    )
    last_run_at: dt.datetime | None = None
    version: str = "0.1.0"


class IngestRunRequest(BaseModel):
    """Manual ingestion trigger."""

    force: bool = Field(
        default=False,
        description="Ignore stored ETag/Last-Modified validators",
    )
    feed_ids: list[str] | None = Field(
        default=None,
        min_length=1,
        description="Restrict the run to these feed ids",
    )


class FeedMetricsModel(BaseModel):
    """Per-feed outcome of a run."""

    feed_id: str
    status: str
    http_status: int | None = None
    duration_ms: int = 0
    items_seen: int = 0
    items_upserted: int = 0
    error: str | None = None


class IngestRunResponse(BaseModel):
    """Result of a manual ingestion run."""

    run_id: int
    source: str
    status: str
    started_at: dt.datetime | None = None
    finished_at: dt.datetime | None = None
    feeds_processed: int = 0
    feeds_failed: int = 0
    items_upserted: int = 0
    feeds: list[FeedMetricsModel] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: RunSummary) -> "IngestRunResponse":
        return cls(
            run_id=summary.run_id,
            source=summary.source.value,
            status=summary.status.value,
            started_at=summary.started_at,
            finished_at=summary.finished_at,
            feeds_processed=summary.feeds_processed,
            feeds_failed=summary.feeds_failed,
            items_upserted=summary.items_upserted,
            feeds=[FeedMetricsModel(**vars(f)) for f in summary.feeds],
        )


class RunRecordResponse(BaseModel):
    """A stored ledger run."""

    id: int
    source: str
    status: str
    started_at: dt.datetime
    finished_at: dt.datetime | None = None
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_record(cls, record: RunRecord) -> "RunRecordResponse":
        return cls(
            id=record.id,
            source=record.source,
            status=record.status.value,
            started_at=record.started_at,
            finished_at=record.finished_at,
            details=record.details,
        )


class ErrorResponse(BaseModel):
    """Error body."""

    detail: str
    error_type: str | None = None
