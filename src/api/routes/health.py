"""
GET /health: database reachability plus the state of the latest run.
"""

import time
from datetime import datetime, timedelta, timezone

import structlog
from fastapi import APIRouter, Depends

from src.api.dependencies import get_database
from src.api.models import ComponentHealth, HealthResponse
from src.config.settings import get_settings
from src.ledger.repository import RunLedger
from src.ledger.schemas import RunRecord, RunStatus
from src.storage.database import Database

router = APIRouter()
logger = structlog.get_logger(__name__)

# A scheduler that has missed this many intervals is reported as stale.
STALE_INTERVALS = 3


async def _database_component(db: Database) -> ComponentHealth:
    started = time.perf_counter()
    try:
        ok = await db.health_check()
        details: dict = {}
    except Exception as e:
        ok = False
        details = {"error": str(e)}
        logger.warning("Database check raised", error=str(e))
    return ComponentHealth(
        status="healthy" if ok else "unhealthy",
        latency_ms=round((time.perf_counter() - started) * 1000, 2),
        details=details,
    )


def _ingestion_component(latest: RunRecord | None) -> ComponentHealth:
    if latest is None:
        return ComponentHealth(status="healthy", details={"runs": 0})

    interval = timedelta(minutes=get_settings().ingest_interval_minutes)
    age = datetime.now(timezone.utc) - latest.started_at
    details = {"run_id": latest.id, "age_seconds": int(age.total_seconds())}

    if latest.status == RunStatus.FAILED:
        details["error"] = latest.details.get("error")
        return ComponentHealth(status="degraded", details=details)
    if age > interval * STALE_INTERVALS:
        details["stale"] = True
        return ComponentHealth(status="degraded", details=details)
    return ComponentHealth(status="healthy", details=details)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Database connectivity and the outcome and age of the latest ingestion run.",
)
async def health_check(db: Database = Depends(get_database)) -> HealthResponse:
    """
    unhealthy when the database is down; degraded when the latest run
    failed or is older than a few scheduler intervals; healthy otherwise.
    """
    database = await _database_component(db)
    if database.status == "unhealthy":
        return HealthResponse(status="unhealthy", components={"database": database})

    latest = await RunLedger(db).latest_run()
    ingestion = _ingestion_component(latest)

    return HealthResponse(
        status=ingestion.status,
        components={"database": database, "ingestion": ingestion},
        last_run_status=latest.status.value if latest else None,
        last_run_at=latest.started_at if latest else None,
    )
