"""
Item repository.

Owns the item store: items, the feed/item link table and location tags.
Writes are keyed by the deterministic item id, so repeated or
concurrent observations of the same article converge on one row.
"""

import logging
from datetime import datetime, timedelta, timezone

import asyncpg

from src.ingestion.schemas import Item, RegionScope
from src.storage.database import Database

logger = logging.getLogger(__name__)

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS items (
    id                   TEXT PRIMARY KEY,
    title                TEXT NOT NULL DEFAULT '',
    url                  TEXT,
    guid                 TEXT,
    author               TEXT,
    region_scope         TEXT NOT NULL DEFAULT 'ky'
        CHECK (region_scope IN ('ky', 'national')),
    published_at         TIMESTAMPTZ,
    summary              TEXT NOT NULL DEFAULT '',
    content              TEXT NOT NULL DEFAULT '',
    image_url            TEXT,
    fetched_at           TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    hash                 TEXT NOT NULL DEFAULT '',
    article_checked_at   TIMESTAMPTZ,
    article_fetch_status TEXT,
    article_text_excerpt TEXT
);

CREATE INDEX IF NOT EXISTS idx_items_scope_sort
    ON items(region_scope, (COALESCE(published_at, fetched_at)) DESC);
CREATE INDEX IF NOT EXISTS idx_items_url
    ON items(url);

CREATE TABLE IF NOT EXISTS feed_items (
    feed_id TEXT NOT NULL,
    item_id TEXT NOT NULL REFERENCES items(id),
    PRIMARY KEY (feed_id, item_id)
);

CREATE INDEX IF NOT EXISTS idx_feed_items_item
    ON feed_items(item_id);

CREATE TABLE IF NOT EXISTS item_locations (
    item_id    TEXT NOT NULL REFERENCES items(id),
    state_code TEXT NOT NULL,
    county     TEXT NOT NULL DEFAULT '',
    PRIMARY KEY (item_id, state_code, county)
);

CREATE INDEX IF NOT EXISTS idx_item_locations_state_county
    ON item_locations(state_code, county);
"""

# region_scope and fetched_at keep their first values; image, body and
# published time keep the stored value when the new observation has none
# (they may have been filled by enrichment).
_UPSERT_ITEM_SQL = """
INSERT INTO items (
    id, title, url, guid, author, region_scope,
    published_at, summary, content, image_url, fetched_at, hash
) VALUES (
    $1, $2, $3, $4, $5, $6,
    $7, $8, $9, $10, $11, $12
)
ON CONFLICT (id) DO UPDATE SET
    title = EXCLUDED.title,
    url = EXCLUDED.url,
    guid = EXCLUDED.guid,
    author = EXCLUDED.author,
    published_at = COALESCE(EXCLUDED.published_at, items.published_at),
    summary = EXCLUDED.summary,
    content = COALESCE(NULLIF(EXCLUDED.content, ''), items.content),
    image_url = COALESCE(EXCLUDED.image_url, items.image_url),
    hash = EXCLUDED.hash
RETURNING (xmax = 0) AS inserted
"""

_LINK_SQL = """
INSERT INTO feed_items (feed_id, item_id) VALUES ($1, $2)
ON CONFLICT DO NOTHING
"""

_RECORD_ENRICHMENT_SQL = """
UPDATE items SET
    article_checked_at = $2,
    article_fetch_status = $3,
    article_text_excerpt = $4,
    content = COALESCE(NULLIF(content, ''), $4, ''),
    image_url = COALESCE(image_url, $5),
    published_at = COALESCE(published_at, $6)
WHERE id = $1
"""


def _record_to_item(record: asyncpg.Record) -> Item:
    """Convert an asyncpg Record to an Item."""
    return Item(
        id=record["id"],
        title=record["title"],
        url=record["url"],
        guid=record["guid"],
        author=record["author"],
        region_scope=RegionScope(record["region_scope"]),
        published_at=record["published_at"],
        summary=record["summary"],
        content=record["content"],
        image_url=record["image_url"],
        fetched_at=record["fetched_at"],
        hash=record["hash"],
        article_checked_at=record["article_checked_at"],
        article_fetch_status=record["article_fetch_status"],
        article_text_excerpt=record["article_text_excerpt"],
    )


class ItemRepository:
    """
    Repository for item storage and retrieval.

    Tables:
        - items: one row per logical article
        - feed_items: which feeds surfaced which items (insert-only)
        - item_locations: state/county tags, replaced as a set
    """

    def __init__(self, database: Database):
        """
        Initialize repository.

        Args:
            database: Connected Database instance
        """
        self._db = database

    async def create_tables(self) -> None:
        """Create item tables and indexes (idempotent)."""
        await self._db.execute(_CREATE_TABLES_SQL)
        logger.info("Item tables ensured")

    async def upsert_item(self, item: Item, feed_id: str) -> bool:
        """
        Insert or refresh an item and link it to a feed.

        Both statements run in one transaction. The link insert ignores
        conflicts, so an item surfaced by several feeds gets one link per
        feed.

        Returns:
            True if the item row was inserted, False if updated
        """
        async with self._db.transaction() as conn:
            inserted = await conn.fetchval(
                _UPSERT_ITEM_SQL,
                item.id,
                item.title,
                item.url,
                item.guid,
                item.author,
                item.region_scope.value,
                item.published_at,
                item.summary,
                item.content,
                item.image_url,
                item.fetched_at,
                item.hash,
            )
            await conn.execute(_LINK_SQL, feed_id, item.id)
        return bool(inserted)

    async def get_by_id(self, item_id: str) -> Item | None:
        """Get an item by id."""
        row = await self._db.fetchrow("SELECT * FROM items WHERE id = $1", item_id)
        return _record_to_item(row) if row else None

    async def record_enrichment(
        self,
        item_id: str,
        status: str,
        excerpt: str | None,
        image_url: str | None,
        published_at: datetime | None = None,
        checked_at: datetime | None = None,
    ) -> None:
        """
        Store the outcome of an article fetch.

        The checked timestamp is written whatever the status, which is
        what keeps an item from being fetched twice.
        """
        await self._db.execute(
            _RECORD_ENRICHMENT_SQL,
            item_id,
            checked_at or datetime.now(timezone.utc),
            status,
            excerpt or None,
            image_url,
            published_at,
        )

    async def replace_locations(
        self,
        item_id: str,
        state_code: str,
        counties: list[str],
    ) -> None:
        """
        Replace the location tags of an item for one state.

        ``counties`` may contain the empty-string sentinel meaning
        "belongs to the state, no finer locality". An empty list leaves
        the item with no tags for the state.
        """
        rows = [(item_id, state_code, c) for c in dict.fromkeys(counties)]
        async with self._db.transaction() as conn:
            await conn.execute(
                "DELETE FROM item_locations WHERE item_id = $1 AND state_code = $2",
                item_id, state_code,
            )
            if rows:
                await conn.executemany(
                    "INSERT INTO item_locations (item_id, state_code, county) "
                    "VALUES ($1, $2, $3) ON CONFLICT DO NOTHING",
                    rows,
                )

    async def get_locations(self, item_id: str) -> list[tuple[str, str]]:
        """(state_code, county) pairs for an item."""
        rows = await self._db.fetch(
            "SELECT state_code, county FROM item_locations "
            "WHERE item_id = $1 ORDER BY state_code, county",
            item_id,
        )
        return [(r["state_code"], r["county"]) for r in rows]

    async def fetch_candidates(
        self,
        scope: RegionScope,
        limit: int,
        hours: int | None = None,
        state_code: str = "KY",
        counties: list[str] | None = None,
    ) -> list[Item]:
        """
        Candidate pool for serving-time ranking.

        Applies the recency, scope and locality predicates only; callers
        over-fetch and pass the result through the ranking engine.
        Regional candidates must carry a tag for ``state_code`` (or for
        one of ``counties`` when given), which hides suppressed items.
        """
        conditions = ["i.region_scope = $1"]
        params: list = [scope.value]
        idx = 2

        if hours is not None:
            conditions.append(f"COALESCE(i.published_at, i.fetched_at) >= ${idx}")
            params.append(datetime.now(timezone.utc) - timedelta(hours=hours))
            idx += 1

        if scope == RegionScope.REGIONAL:
            location = f"l.item_id = i.id AND l.state_code = ${idx}"
            params.append(state_code)
            idx += 1
            if counties:
                location += f" AND l.county = ANY(${idx}::text[])"
                params.append(counties)
                idx += 1
            conditions.append(f"EXISTS (SELECT 1 FROM item_locations l WHERE {location})")

        sql = f"""
            SELECT i.* FROM items i
            WHERE {" AND ".join(conditions)}
            ORDER BY COALESCE(i.published_at, i.fetched_at) DESC
            LIMIT ${idx}
        """
        params.append(limit)
        rows = await self._db.fetch(sql, *params)
        return [_record_to_item(r) for r in rows]
