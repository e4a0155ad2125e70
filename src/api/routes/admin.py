"""
Admin endpoints: manual ingestion trigger and run ledger.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from src.api.auth import verify_api_key
from src.api.dependencies import get_ingestion_service, get_limiter, get_run_ledger
from src.api.models import (
    ErrorResponse,
    IngestRunRequest,
    IngestRunResponse,
    RunRecordResponse,
)
from src.api.rate_limit import SlidingWindowLimiter, get_rate_limit_key
from src.ledger.repository import RunLedger
from src.ledger.schemas import RunSource
from src.services.ingestion_service import IngestionService

router = APIRouter(prefix="/admin", dependencies=[Depends(verify_api_key)])
logger = structlog.get_logger(__name__)


@router.post(
    "/ingest/run",
    response_model=IngestRunResponse,
    responses={
        409: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Run ingestion now",
    description="Poll every due feed (or only the given feeds) once and return the run summary.",
)
async def run_ingestion(
    request: Request,
    body: IngestRunRequest | None = None,
    service: IngestionService = Depends(get_ingestion_service),
    limiter: SlidingWindowLimiter = Depends(get_limiter),
):
    body = body or IngestRunRequest()
    key = get_rate_limit_key(request)

    if not limiter.allow(key):
        retry_after = limiter.retry_after(key)
        logger.warning("Manual run rate limited", client=key.split(":", 1)[0])
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"detail": "Too many manual runs", "error_type": "rate_limited"},
            headers={"Retry-After": str(int(retry_after) + 1)},
        )

    if service.run_in_progress:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An ingestion run is already in progress",
        )

    source = RunSource.MANUAL_FEED if body.feed_ids else RunSource.MANUAL
    try:
        summary = await service.run_once(source, force=body.force, feed_ids=body.feed_ids)
    except Exception as e:
        logger.error("Manual run failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Ingestion run failed: {type(e).__name__}",
        ) from e

    return IngestRunResponse.from_summary(summary)


@router.get(
    "/runs/latest",
    response_model=RunRecordResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Latest ingestion run",
)
async def latest_run(ledger: RunLedger = Depends(get_run_ledger)) -> RunRecordResponse:
    record = await ledger.latest_run()
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No runs recorded")
    return RunRecordResponse.from_record(record)
