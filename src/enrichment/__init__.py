"""Article enrichment: fetch and reduce article pages."""

from src.enrichment.config import EnrichmentConfig
from src.enrichment.fetcher import ArticleFetcher, extract_article
from src.enrichment.schemas import EnrichmentResult

__all__ = [
    "ArticleFetcher",
    "EnrichmentConfig",
    "EnrichmentResult",
    "extract_article",
]
