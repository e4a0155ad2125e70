"""Database repository for the feeds table."""

import logging
from datetime import datetime

from src.feeds.schemas import FeedSource
from src.ingestion.schemas import RegionScope
from src.storage.database import Database

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS feeds (
    id              TEXT PRIMARY KEY,
    name            TEXT NOT NULL DEFAULT '',
    url             TEXT NOT NULL,
    category        TEXT NOT NULL DEFAULT '',
    region_scope    TEXT NOT NULL DEFAULT 'ky'
        CHECK (region_scope IN ('ky', 'national')),
    state_code      TEXT NOT NULL DEFAULT 'KY',
    default_county  TEXT,
    enabled         BOOLEAN NOT NULL DEFAULT TRUE,
    etag            TEXT,
    last_modified   TEXT,
    last_checked_at TIMESTAMPTZ,
    created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_feeds_enabled_checked
    ON feeds(last_checked_at NULLS FIRST) WHERE enabled = TRUE;
"""

# Seeding never touches validators, last_checked_at or the enabled flag of
# an existing row; those belong to the poller and moderators.
_BULK_UPSERT_SQL = """
INSERT INTO feeds (id, name, url, category, region_scope, state_code, default_county, enabled)
SELECT * FROM unnest(
    $1::text[], $2::text[], $3::text[], $4::text[],
    $5::text[], $6::text[], $7::text[], $8::boolean[]
)
ON CONFLICT (id) DO UPDATE SET
    name = EXCLUDED.name,
    url = EXCLUDED.url,
    category = EXCLUDED.category,
    region_scope = EXCLUDED.region_scope,
    state_code = EXCLUDED.state_code,
    default_county = EXCLUDED.default_county
"""

_UPDATE_POLL_STATE_SQL = """
UPDATE feeds
SET etag = $2, last_modified = $3, last_checked_at = $4
WHERE id = $1
"""


def _record_to_feed(record) -> FeedSource:
    """Convert an asyncpg Record to a FeedSource dataclass."""
    return FeedSource(
        id=record["id"],
        url=record["url"],
        name=record["name"],
        category=record["category"],
        region_scope=RegionScope(record["region_scope"]),
        state_code=record["state_code"],
        default_county=record["default_county"],
        enabled=record["enabled"],
        etag=record["etag"],
        last_modified=record["last_modified"],
        last_checked_at=record["last_checked_at"],
        created_at=record["created_at"],
    )


class FeedsRepository:
    """CRUD operations for the feeds table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the feeds table and indexes (idempotent)."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Feeds table ensured")

    async def bulk_upsert(self, feeds: list[FeedSource]) -> int:
        """Insert or update feed definitions in one statement.

        Returns the number of feeds processed.
        """
        if not feeds:
            return 0

        await self._db.execute(
            _BULK_UPSERT_SQL,
            [f.id for f in feeds],
            [f.name for f in feeds],
            [f.url for f in feeds],
            [f.category for f in feeds],
            [f.region_scope.value for f in feeds],
            [f.state_code for f in feeds],
            [f.default_county for f in feeds],
            [f.enabled for f in feeds],
        )
        logger.info("Bulk upserted %d feeds", len(feeds))
        return len(feeds)

    async def get(self, feed_id: str) -> FeedSource | None:
        """Fetch a single feed by id."""
        row = await self._db.fetchrow("SELECT * FROM feeds WHERE id = $1", feed_id)
        return _record_to_feed(row) if row else None

    async def list_feeds(self, enabled_only: bool = False) -> list[FeedSource]:
        """All feeds ordered by id."""
        where = " WHERE enabled = TRUE" if enabled_only else ""
        rows = await self._db.fetch(f"SELECT * FROM feeds{where} ORDER BY id")
        return [_record_to_feed(r) for r in rows]

    async def list_due(
        self,
        limit: int,
        feed_ids: list[str] | None = None,
    ) -> list[FeedSource]:
        """Enabled feeds for a run, least recently checked first.

        When ``feed_ids`` is given only those feeds are returned (still
        subject to the enabled flag).
        """
        if feed_ids:
            rows = await self._db.fetch(
                """
                SELECT * FROM feeds
                WHERE enabled = TRUE AND id = ANY($1::text[])
                ORDER BY last_checked_at ASC NULLS FIRST, id
                LIMIT $2
                """,
                feed_ids, limit,
            )
        else:
            rows = await self._db.fetch(
                """
                SELECT * FROM feeds
                WHERE enabled = TRUE
                ORDER BY last_checked_at ASC NULLS FIRST, id
                LIMIT $1
                """,
                limit,
            )
        return [_record_to_feed(r) for r in rows]

    async def update_poll_state(
        self,
        feed_id: str,
        etag: str | None,
        last_modified: str | None,
        checked_at: datetime,
    ) -> None:
        """Persist validators and the last-checked timestamp."""
        await self._db.execute(
            _UPDATE_POLL_STATE_SQL, feed_id, etag, last_modified, checked_at,
        )

    async def set_enabled(self, feed_id: str, enabled: bool) -> bool:
        """Flip the enabled flag. Returns True if a row was updated."""
        result = await self._db.execute(
            "UPDATE feeds SET enabled = $2 WHERE id = $1",
            feed_id, enabled,
        )
        return result.endswith("1")

    async def count(self) -> int:
        """Count total feeds in the table."""
        return await self._db.fetchval("SELECT COUNT(*) FROM feeds")
