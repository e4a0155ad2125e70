"""
Ingestion service - one entry point for scheduled and manual runs.

A run polls every due feed in turn; each feed is processed to
completion (poll, parse, upsert, tag, optional article fetch) before the
next one starts. Failures inside a feed are recorded in the run ledger
and the run moves on. Failures of the ledger itself fail the run.

Features:
- Scheduler loop (run at startup, then every interval)
- Manual runs with identical semantics (CLI, admin API)
- Runs inside one process are serialized
- Metrics, tracing and bound log context per run
"""

import asyncio
import time
import traceback
from datetime import datetime, timezone

import structlog

from src.config.settings import Settings, get_settings
from src.enrichment.config import EnrichmentConfig
from src.enrichment.fetcher import ArticleFetcher
from src.feeds.config import FeedsConfig
from src.feeds.parser import parse_feed
from src.feeds.poller import FeedPoller
from src.feeds.repository import FeedsRepository
from src.feeds.schemas import FeedSource, PollOutcome
from src.ingestion.http_client import HTTPClient
from src.ingestion.schemas import Item
from src.ledger.repository import RunLedger
from src.ledger.schemas import FeedMetrics, RunSource, RunStatus, RunSummary
from src.locations.config import LocationConfig
from src.locations.gazetteer import Gazetteer
from src.locations.tagger import LocationTagger
from src.observability.logging import bind_context, clear_context
from src.observability.metrics import get_metrics
from src.observability.tracing import get_tracer, traced
from src.storage.database import Database
from src.storage.repository import ItemRepository

logger = structlog.get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _format_error(exc: BaseException) -> str:
    return "".join(traceback.format_exception(exc)).strip()


class IngestionService:
    """
    Orchestrates ingestion runs.

    Usage:
        service = IngestionService.from_database(db)
        summary = await service.run_once(RunSource.MANUAL, force=True)

        await service.start()  # scheduler; runs until stop()
    """

    def __init__(
        self,
        feeds: FeedsRepository,
        items: ItemRepository,
        ledger: RunLedger,
        settings: Settings | None = None,
        feeds_config: FeedsConfig | None = None,
        enrichment_config: EnrichmentConfig | None = None,
        location_config: LocationConfig | None = None,
        gazetteer: Gazetteer | None = None,
    ):
        """
        Initialize ingestion service.

        Args:
            feeds: Feed source store (run selection, validators)
            items: Item store
            ledger: Run ledger
            settings: Application settings (defaults to get_settings())
            feeds_config: Feed polling settings
            enrichment_config: Article fetch settings
            location_config: Tagging policy
            gazetteer: Place matcher
        """
        self._settings = settings or get_settings()
        self._feeds = feeds
        self._items = items
        self._ledger = ledger
        self._feeds_config = feeds_config or FeedsConfig()
        self._enrichment_config = enrichment_config or EnrichmentConfig()
        self._location_config = location_config or LocationConfig()
        self._gazetteer = gazetteer

        self._interval = self._settings.ingest_interval_minutes * 60
        self._run_lock = asyncio.Lock()
        self._stop_event = asyncio.Event()
        self._running = False
        self._last_summary: RunSummary | None = None
        self._metrics = get_metrics()
        self._tracer = get_tracer("ingestion")

    @classmethod
    def from_database(cls, database: Database, **kwargs) -> "IngestionService":
        """Build the service on top of a connected Database."""
        return cls(
            feeds=FeedsRepository(database),
            items=ItemRepository(database),
            ledger=RunLedger(database),
            **kwargs,
        )

    @property
    def is_running(self) -> bool:
        """Check if the scheduler loop is running."""
        return self._running

    @property
    def run_in_progress(self) -> bool:
        return self._run_lock.locked()

    @property
    def last_summary(self) -> RunSummary | None:
        return self._last_summary

    # ── Scheduler ───────────────────────────────────────────────

    async def start(self) -> None:
        """
        Run the scheduler loop until stop() is called.

        A failed run is logged; the next interval is the retry.
        """
        self._running = True
        self._stop_event.clear()
        logger.info("Starting ingestion scheduler", interval_seconds=self._interval)

        try:
            while self._running:
                try:
                    await self.run_once(RunSource.SCHEDULED)
                except Exception as e:
                    logger.error("Scheduled run failed", error=str(e))

                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._running = False
            logger.info("Ingestion scheduler stopped")

    async def stop(self) -> None:
        """Stop the scheduler after the current run finishes."""
        logger.info("Stopping ingestion scheduler")
        self._running = False
        self._stop_event.set()

    # ── Runs ────────────────────────────────────────────────────

    async def run_once(
        self,
        source: RunSource = RunSource.SCHEDULED,
        force: bool = False,
        feed_ids: list[str] | None = None,
    ) -> RunSummary:
        """
        Execute one ingestion run and record it in the ledger.

        Args:
            source: What triggered the run
            force: Ignore stored validators (no conditional headers)
            feed_ids: Restrict the run to these feeds

        Returns:
            RunSummary with per-feed metrics

        Raises:
            Exception: Ledger or feed-selection storage failures; the run
                is marked failed before the exception propagates.
        """
        async with self._run_lock:
            started = time.perf_counter()
            run_id = await self._ledger.start_run(source)
            summary = RunSummary(run_id=run_id, source=source, started_at=_utc_now())
            bind_context(run_id=run_id, run_source=source.value)

            try:
                with traced(
                    self._tracer,
                    "ingestion.run",
                    {"run.id": run_id, "run.source": source.value, "run.force": force},
                ):
                    await self._run_feeds(summary, force, feed_ids)
                summary.status = RunStatus.OK
                summary.finished_at = _utc_now()
                await self._ledger.finish_run(run_id, RunStatus.OK, summary.details())
            except Exception as e:
                summary.status = RunStatus.FAILED
                summary.finished_at = _utc_now()
                summary.error = f"{type(e).__name__}: {e}"
                await self._mark_failed(summary)
                raise
            finally:
                elapsed = time.perf_counter() - started
                self._metrics.record_run(source.value, summary.status.value, elapsed)
                self._last_summary = summary
                logger.info(
                    "Ingestion run finished",
                    status=summary.status.value,
                    feeds=summary.feeds_processed,
                    feeds_failed=summary.feeds_failed,
                    items_upserted=summary.items_upserted,
                    elapsed_seconds=round(elapsed, 2),
                )
                clear_context()

            return summary

    async def _mark_failed(self, summary: RunSummary) -> None:
        try:
            await self._ledger.finish_run(
                summary.run_id, RunStatus.FAILED, summary.details()
            )
        except Exception as e:
            # The original failure is re-raised by the caller
            logger.error("Could not mark run failed", error=str(e))

    async def _run_feeds(
        self,
        summary: RunSummary,
        force: bool,
        feed_ids: list[str] | None,
    ) -> None:
        feeds = await self._feeds.list_due(self._settings.max_feeds_per_run, feed_ids)
        logger.info("Feeds selected for run", count=len(feeds), force=force)

        async with HTTPClient(
            timeout=self._settings.feed_timeout_seconds,
            user_agent=self._settings.feed_user_agent,
        ) as feed_client, HTTPClient(
            timeout=self._enrichment_config.timeout_seconds,
            user_agent=self._enrichment_config.user_agent,
        ) as article_client:
            poller = FeedPoller(
                feed_client,
                self._feeds,
                error_body_chars=self._feeds_config.error_body_chars,
            )
            fetcher = (
                ArticleFetcher(article_client, self._enrichment_config)
                if self._enrichment_config.enabled
                else None
            )
            tagger = LocationTagger(
                self._items,
                fetcher,
                gazetteer=self._gazetteer,
                config=self._location_config,
            )

            for feed in feeds:
                summary.feeds.append(
                    await self._process_feed(feed, poller, tagger, force)
                )

    async def _process_feed(
        self,
        feed: FeedSource,
        poller: FeedPoller,
        tagger: LocationTagger,
        force: bool,
    ) -> FeedMetrics:
        """
        Poll, parse, upsert and tag one feed.

        Any exception raised while processing the feed is recorded as a
        feed error and reported in the returned metrics. Exceptions from
        recording the error itself propagate.
        """
        metrics = FeedMetrics(feed_id=feed.id, status="ok")
        started = time.perf_counter()

        try:
            with traced(self._tracer, "ingestion.feed", {"feed.id": feed.id}):
                result = await poller.poll(feed, force=force)
                metrics.http_status = result.status_code

                if result.outcome == PollOutcome.NOT_MODIFIED:
                    metrics.status = "not_modified"
                else:
                    entries = parse_feed(
                        result.payload or b"",
                        limit=self._settings.max_items_per_feed,
                    )
                    for entry in entries:
                        metrics.items_seen += 1
                        item = Item.from_raw(entry, feed.region_scope)
                        await self._items.upsert_item(item, feed.id)
                        metrics.items_upserted += 1
                        await tagger.tag(item, feed)
        except Exception as e:
            metrics.status = "error"
            metrics.http_status = metrics.http_status or getattr(e, "status_code", None)
            metrics.error = f"{type(e).__name__}: {e}"[:500]
            self._metrics.record_feed_error(type(e).__name__)
            logger.warning("Feed failed", feed_id=feed.id, error=str(e))
            await self._ledger.record_feed_error(feed.id, _format_error(e))
        finally:
            metrics.duration_ms = int((time.perf_counter() - started) * 1000)
            self._metrics.record_items_upserted(
                feed.region_scope.value, metrics.items_upserted
            )

        logger.info(
            "Feed processed",
            feed_id=feed.id,
            status=metrics.status,
            items_seen=metrics.items_seen,
            items_upserted=metrics.items_upserted,
            duration_ms=metrics.duration_ms,
        )
        return metrics
