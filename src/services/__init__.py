"""Services that orchestrate ingestion runs."""

from src.services.ingestion_service import IngestionService

__all__ = ["IngestionService"]
