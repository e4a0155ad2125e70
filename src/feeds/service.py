"""Feeds service: seeding, moderation and run selection."""

import json
import logging
from pathlib import Path

from src.feeds.config import FeedsConfig
from src.feeds.repository import FeedsRepository
from src.feeds.schemas import FeedSource
from src.ingestion.schemas import RegionScope
from src.storage.database import Database

logger = logging.getLogger(__name__)

_SEED_FILE = Path(__file__).parent / "data" / "seed_feeds.json"


def _parse_seed_entry(entry: dict) -> FeedSource:
    """Convert a JSON seed entry to a FeedSource dataclass."""
    scope = RegionScope(entry.get("region_scope", RegionScope.REGIONAL.value))
    return FeedSource(
        id=entry["id"],
        url=entry["url"],
        name=entry.get("name", ""),
        category=entry.get("category", ""),
        region_scope=scope,
        state_code=entry.get(
            "state_code", "KY" if scope == RegionScope.REGIONAL else "US"
        ),
        default_county=entry.get("default_county") or None,
        enabled=entry.get("enabled", True),
    )


class FeedsService:
    """Feed source management on top of FeedsRepository."""

    def __init__(
        self,
        database: Database,
        config: FeedsConfig | None = None,
    ) -> None:
        self._config = config or FeedsConfig()
        self._repo = FeedsRepository(database)

    @property
    def repository(self) -> FeedsRepository:
        """Access the underlying repository for direct DB operations."""
        return self._repo

    async def set_enabled(self, feed_id: str, enabled: bool) -> bool:
        """Enable or disable a feed. Returns False for unknown ids."""
        updated = await self._repo.set_enabled(feed_id, enabled)
        if updated:
            logger.info("Feed %s %s", feed_id, "enabled" if enabled else "disabled")
        return updated

    async def seed_from_json(self, path: Path | None = None) -> int:
        """Load feed definitions from a JSON file into the database.

        Returns the number of feeds upserted.
        """
        seed_path = path or _SEED_FILE
        with open(seed_path) as f:
            entries = json.load(f)

        feeds = [_parse_seed_entry(e) for e in entries]
        count = await self._repo.bulk_upsert(feeds)
        logger.info("Seeded %d feeds from %s", count, seed_path)
        return count

    async def ensure_seeded(self) -> None:
        """Seed from default JSON if the table is empty and seed_on_init is True."""
        if not self._config.seed_on_init:
            return

        existing = await self._repo.count()
        if existing > 0:
            logger.debug("Feeds table has %d rows, skipping seed", existing)
            return

        logger.info("Feeds table empty, seeding from default JSON")
        await self.seed_from_json()
