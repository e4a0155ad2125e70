"""
Dependency injection for FastAPI endpoints.
"""

from fastapi import Request

from src.api.rate_limit import SlidingWindowLimiter
from src.ledger.repository import RunLedger
from src.services.ingestion_service import IngestionService
from src.storage.database import Database

# Global service instances (initialized on first request)
_database: Database | None = None
_ingestion_service: IngestionService | None = None


async def get_database() -> Database:
    """Get the shared database, connecting on first use."""
    global _database

    if _database is None:
        _database = Database()
        await _database.connect()

    return _database


async def get_run_ledger() -> RunLedger:
    """Run ledger over the shared database."""
    return RunLedger(await get_database())


async def get_ingestion_service() -> IngestionService:
    """
    Get ingestion service instance.

    A single instance per process so manual runs share the run lock.
    """
    global _ingestion_service

    if _ingestion_service is None:
        _ingestion_service = IngestionService.from_database(await get_database())

    return _ingestion_service


def get_limiter(request: Request) -> SlidingWindowLimiter:
    """Manual-trigger limiter owned by the app."""
    return request.app.state.limiter


async def cleanup_dependencies() -> None:
    """Clean up global dependencies on shutdown."""
    global _database, _ingestion_service

    _ingestion_service = None

    if _database is not None:
        await _database.close()
        _database = None
