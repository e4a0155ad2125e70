"""Serving-time dedup and ranking of stored items."""

from src.ranking.config import RankingConfig
from src.ranking.dedup import (
    RankingEngine,
    candidate_pool_size,
    is_paid_source,
    rank_and_dedupe,
    title_fingerprint,
)

__all__ = [
    "RankingConfig",
    "RankingEngine",
    "candidate_pool_size",
    "is_paid_source",
    "rank_and_dedupe",
    "title_fingerprint",
]
