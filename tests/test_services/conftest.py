"""In-memory stores for ingestion service tests."""

from datetime import datetime

import pytest

from src.enrichment.config import EnrichmentConfig
from src.feeds.schemas import FeedSource
from src.ingestion.schemas import Item, RegionScope
from src.ledger.schemas import RunSource, RunStatus
from src.services.ingestion_service import IngestionService


class FakeFeedsRepository:
    def __init__(self, feeds: list[FeedSource]):
        self.feeds = {f.id: f for f in feeds}

    async def list_due(self, limit: int, feed_ids: list[str] | None = None) -> list[FeedSource]:
        due = [f for f in self.feeds.values() if f.enabled]
        if feed_ids:
            due = [f for f in due if f.id in feed_ids]
        due.sort(key=lambda f: (f.last_checked_at is not None, f.last_checked_at or datetime.min, f.id))
        return due[:limit]

    async def update_poll_state(self, feed_id, etag, last_modified, checked_at) -> None:
        feed = self.feeds[feed_id]
        feed.etag = etag
        feed.last_modified = last_modified
        feed.last_checked_at = checked_at


class FakeItemRepository:
    def __init__(self):
        self.items: dict[str, Item] = {}
        self.links: set[tuple[str, str]] = set()
        self.locations: dict[str, set[tuple[str, str]]] = {}
        self.enrichment_calls: list[str] = []

    async def upsert_item(self, item: Item, feed_id: str) -> bool:
        stored = self.items.get(item.id)
        if stored is None:
            self.items[item.id] = item.model_copy()
        else:
            self.items[item.id] = stored.model_copy(update={
                "title": item.title,
                "summary": item.summary,
                "published_at": item.published_at or stored.published_at,
                "image_url": item.image_url or stored.image_url,
                "hash": item.hash,
            })
        self.links.add((feed_id, item.id))
        return stored is None

    async def get_by_id(self, item_id: str) -> Item | None:
        return self.items.get(item_id)

    async def record_enrichment(
        self, item_id, status, excerpt, image_url, published_at=None, checked_at=None
    ) -> None:
        self.enrichment_calls.append(item_id)
        stored = self.items[item_id]
        self.items[item_id] = stored.model_copy(update={
            "article_checked_at": checked_at or datetime.now().astimezone(),
            "article_fetch_status": status,
            "article_text_excerpt": excerpt or None,
        })

    async def replace_locations(self, item_id: str, state_code: str, counties: list[str]) -> None:
        rows = {r for r in self.locations.get(item_id, set()) if r[0] != state_code}
        rows.update((state_code, c) for c in counties)
        self.locations[item_id] = rows


class FakeRunLedger:
    def __init__(self):
        self.runs: dict[int, dict] = {}
        self.feed_errors: list[tuple[str, str]] = []
        self.fail_on_finish = False
        self.fail_on_feed_error = False

    async def start_run(self, source: RunSource) -> int:
        run_id = len(self.runs) + 1
        self.runs[run_id] = {"source": source, "status": RunStatus.RUNNING, "details": {}}
        return run_id

    async def finish_run(self, run_id: int, status: RunStatus, details: dict | None = None) -> None:
        if self.fail_on_finish and status == RunStatus.OK:
            raise ConnectionError("ledger unavailable")
        self.runs[run_id]["status"] = status
        self.runs[run_id]["details"] = details or {}

    async def record_feed_error(self, feed_id: str, message: str) -> None:
        if self.fail_on_feed_error:
            raise ConnectionError("ledger unavailable")
        self.feed_errors.append((feed_id, message))


@pytest.fixture
def feed_a() -> FeedSource:
    return FeedSource(id="ky-a", url="https://a.example.com/feed", region_scope=RegionScope.REGIONAL)


@pytest.fixture
def feed_b() -> FeedSource:
    return FeedSource(id="ky-b", url="https://b.example.com/feed", region_scope=RegionScope.REGIONAL)


@pytest.fixture
def fake_feeds(feed_a, feed_b) -> FakeFeedsRepository:
    return FakeFeedsRepository([feed_a, feed_b])


@pytest.fixture
def fake_items() -> FakeItemRepository:
    return FakeItemRepository()


@pytest.fixture
def fake_ledger() -> FakeRunLedger:
    return FakeRunLedger()


@pytest.fixture
def service(fake_feeds, fake_items, fake_ledger, test_settings) -> IngestionService:
    return IngestionService(
        feeds=fake_feeds,
        items=fake_items,
        ledger=fake_ledger,
        settings=test_settings,
        enrichment_config=EnrichmentConfig(enabled=False),
    )
