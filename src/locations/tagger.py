"""
Location tagger.

Decides the state/county tags of an item from a regional feed and
writes them as a set. National feeds are not tagged at all.

Per item:
1. Match title, summary, body (and any stored article excerpt).
2. No county found and the article was never fetched: fetch it once,
   record the attempt, and match again with the article text.
3. Other-state mention with no Kentucky signal and no county: suppress
   (no tags), unless the feed is a known aggregator.
4. Add the feed's default county when the policy allows.
5. Write the state row ('' county) plus one row per county.
"""

import re

import structlog

from src.enrichment.fetcher import ArticleFetcher
from src.feeds.schemas import FeedSource
from src.ingestion.schemas import Item
from src.locations.config import LocationConfig
from src.locations.gazetteer import Gazetteer, get_gazetteer
from src.locations.schemas import LocationMatch, TaggingResult
from src.observability.metrics import get_metrics
from src.storage.repository import ItemRepository

logger = structlog.get_logger(__name__)

REGION_ROW = ""


class LocationTagger:
    """
    Tags items from regional feeds with state and county rows.

    Args:
        repository: Item store (enrichment state and tag writes)
        fetcher: Article fetcher; None disables enrichment
        gazetteer: Place matcher (defaults to the shared Kentucky one)
        config: Tagging policy
    """

    def __init__(
        self,
        repository: ItemRepository,
        fetcher: ArticleFetcher | None = None,
        gazetteer: Gazetteer | None = None,
        config: LocationConfig | None = None,
    ) -> None:
        self._repo = repository
        self._fetcher = fetcher
        self._gazetteer = gazetteer or get_gazetteer()
        self._config = config or LocationConfig()
        self._aggregator_patterns = [
            re.compile(p, re.IGNORECASE) for p in self._config.aggregator_feed_patterns
        ]

    def is_aggregator(self, feed: FeedSource) -> bool:
        """Region-focused aggregation feeds are trusted without text evidence."""
        return any(p.search(feed.url) for p in self._aggregator_patterns)

    def searchable_text(self, item: Item, extra: str = "") -> str:
        """
        Feed text and fetched article text, each capped on its own so a
        long feed body cannot crowd out the article.
        """
        limit = self._config.text_char_limit
        feed_text = " ".join(p for p in (item.title, item.summary, item.content) if p)
        article_text = " ".join(p for p in (item.article_text_excerpt, extra) if p)
        return " ".join(p for p in (feed_text[:limit], article_text[:limit]) if p)

    def default_county_applies(self, match: LocationMatch, suppressed: bool) -> bool:
        policy = self._config.default_county_policy
        if suppressed or policy == "never":
            return False
        if policy == "always":
            return True
        if policy == "signal_only":
            return match.in_region
        return not match.likely_elsewhere

    async def tag(self, item: Item, feed: FeedSource) -> TaggingResult:
        """
        Tag one item that ``feed`` has just surfaced.

        Reads the stored item for its enrichment state; the in-memory
        ``item`` is used when the store has no row.
        """
        result = TaggingResult(item_id=item.id, state_code=feed.state_code)
        if not feed.is_regional:
            result.skipped = True
            return result

        stored = await self._repo.get_by_id(item.id) or item
        match = self._gazetteer.match(self.searchable_text(stored))

        if not match.counties and not stored.enrichment_attempted and self._fetcher:
            fetched = await self._fetcher.fetch(stored.url)
            await self._repo.record_enrichment(
                item.id,
                fetched.status,
                fetched.text,
                fetched.image_url,
                fetched.published_at,
            )
            result.enriched = True
            result.fetch_status = fetched.status
            if fetched.text:
                match = self._gazetteer.match(
                    self.searchable_text(stored, extra=fetched.text)
                )

        suppressed = match.likely_elsewhere and not self.is_aggregator(feed)
        counties = set(match.counties)
        if feed.default_county and self.default_county_applies(match, suppressed):
            counties.add(feed.default_county)

        if suppressed:
            result.suppressed = True
            await self._repo.replace_locations(item.id, feed.state_code, [])
            logger.debug(
                "Location tagging suppressed",
                item_id=item.id,
                feed_id=feed.id,
                other_regions=sorted(match.other_regions),
            )
        else:
            result.counties = sorted(counties)
            await self._repo.replace_locations(
                item.id, feed.state_code, [REGION_ROW] + result.counties
            )

        get_metrics().record_tagging(result.label)
        return result
