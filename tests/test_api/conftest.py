"""Fixtures for admin API tests."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.api.auth import verify_api_key
from src.api.dependencies import get_database, get_ingestion_service, get_run_ledger
from src.api.rate_limit import SlidingWindowLimiter
from src.ledger.schemas import FeedMetrics, RunSource, RunStatus, RunSummary


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock) -> SlidingWindowLimiter:
    return SlidingWindowLimiter(limit=2, window=60.0, max_keys=16, clock=clock)


@pytest.fixture
def run_summary() -> RunSummary:
    return RunSummary(
        run_id=11,
        source=RunSource.MANUAL,
        status=RunStatus.OK,
        started_at=datetime(2025, 6, 2, 12, tzinfo=timezone.utc),
        finished_at=datetime(2025, 6, 2, 12, 1, tzinfo=timezone.utc),
        feeds=[
            FeedMetrics(feed_id="ky-a", status="ok", http_status=200, items_seen=3, items_upserted=3),
            FeedMetrics(feed_id="ky-b", status="error", error="FeedFetchError: HTTP 500"),
        ],
    )


@pytest.fixture
def mock_service(run_summary) -> MagicMock:
    service = MagicMock()
    service.run_in_progress = False
    service.run_once = AsyncMock(return_value=run_summary)
    return service


@pytest.fixture
def mock_ledger() -> MagicMock:
    ledger = MagicMock()
    ledger.latest_run = AsyncMock(return_value=None)
    return ledger


@pytest.fixture
def app(limiter, mock_service, mock_ledger, mock_database):
    app = create_app(limiter=limiter)
    app.dependency_overrides[verify_api_key] = lambda: "test-key"
    app.dependency_overrides[get_ingestion_service] = lambda: mock_service
    app.dependency_overrides[get_run_ledger] = lambda: mock_ledger
    app.dependency_overrides[get_database] = lambda: mock_database
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
