"""
FastAPI admin service.

Provides:
- GET /health - Database and last-run health
- POST /admin/ingest/run - Manual ingestion run
- GET /admin/runs/latest - Latest run ledger entry
"""

from src.api.app import create_app

__all__ = ["create_app"]
