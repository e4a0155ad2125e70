"""Run ledger: per-run status and per-feed errors."""

from src.ledger.repository import RunLedger
from src.ledger.schemas import FeedMetrics, RunRecord, RunSource, RunStatus, RunSummary

__all__ = [
    "FeedMetrics",
    "RunLedger",
    "RunRecord",
    "RunSource",
    "RunStatus",
    "RunSummary",
]
