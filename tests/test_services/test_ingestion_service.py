"""Tests for the ingestion service run loop."""

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest
import respx

from src.enrichment.config import EnrichmentConfig
from src.ledger.schemas import RunSource, RunStatus
from src.services.ingestion_service import IngestionService

FEED_A = "https://a.example.com/feed"
FEED_B = "https://b.example.com/feed"


def rss(*items: tuple[str, str, str]) -> str:
    """RSS 2.0 document from (title, link, description) triples."""
    body = "".join(
        f"<item><title>{t}</title><link>{link}</link><description>{d}</description>"
        f"<pubDate>Mon, 02 Jun 2025 14:30:00 GMT</pubDate></item>"
        for t, link, d in items
    )
    return f'<?xml version="1.0"?><rss version="2.0"><channel><title>T</title>{body}</channel></rss>'


STORIES = rss(
    ("Flooding closes roads", "https://a.example.com/flood", "High water in Perry County."),
    ("School board meets", "https://a.example.com/board", "Agenda posted for Pike County schools."),
)
EMPTY = rss()


class TestRunOnce:
    """A run processes every due feed and records itself."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_run_records_ok(self, service, fake_items, fake_ledger):
        respx.get(FEED_A).mock(return_value=httpx.Response(200, text=STORIES))
        respx.get(FEED_B).mock(return_value=httpx.Response(200, text=EMPTY))

        summary = await service.run_once(RunSource.MANUAL)

        assert summary.status == RunStatus.OK
        assert summary.feeds_processed == 2
        assert summary.items_upserted == 2
        assert len(fake_items.items) == 2
        run = fake_ledger.runs[summary.run_id]
        assert run["status"] == RunStatus.OK
        assert run["details"]["feed_metrics"][0]["feed_id"] == "ky-a"
        assert service.last_summary is summary
        assert not service.run_in_progress

    @pytest.mark.asyncio
    @respx.mock
    async def test_repeated_runs_are_idempotent(self, service, fake_items):
        respx.get(FEED_A).mock(return_value=httpx.Response(200, text=STORIES))
        respx.get(FEED_B).mock(return_value=httpx.Response(200, text=EMPTY))

        await service.run_once()
        ids = set(fake_items.items)
        await service.run_once()

        assert set(fake_items.items) == ids
        assert len(fake_items.links) == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_rerun_keeps_latest_observation(self, service, fake_items):
        revised = rss(
            ("Flooding closes roads in Hazard", "https://a.example.com/flood", "Water receding in Perry County."),
            ("School board meets", "https://a.example.com/board", "Agenda posted for Pike County schools."),
        )
        respx.get(FEED_A).mock(side_effect=[
            httpx.Response(200, text=STORIES),
            httpx.Response(200, text=revised),
        ])
        respx.get(FEED_B).mock(return_value=httpx.Response(200, text=EMPTY))

        await service.run_once()
        ids = set(fake_items.items)
        summary = await service.run_once()

        assert set(fake_items.items) == ids
        assert summary.items_upserted == 2
        flood = next(i for i in fake_items.items.values() if i.url == "https://a.example.com/flood")
        assert flood.title == "Flooding closes roads in Hazard"
        assert flood.summary == "Water receding in Perry County."

    @pytest.mark.asyncio
    @respx.mock
    async def test_same_article_from_two_feeds(self, service, fake_items):
        respx.get(FEED_A).mock(return_value=httpx.Response(
            200, text=rss(("Bridge reopens", "https://wkyt.com/bridge?utm_source=a", "Clay County"))
        ))
        respx.get(FEED_B).mock(return_value=httpx.Response(
            200, text=rss(("Bridge reopens Monday", "https://wkyt.com/bridge", "Clay County"))
        ))

        await service.run_once()

        assert len(fake_items.items) == 1
        (item_id,) = fake_items.items
        assert fake_items.links == {("ky-a", item_id), ("ky-b", item_id)}

    @pytest.mark.asyncio
    @respx.mock
    async def test_identity_independent_of_feed_order(self, service, fake_items, feed_a, feed_b):
        respx.get(FEED_A).mock(return_value=httpx.Response(
            200, text=rss(("Bridge reopens", "https://wkyt.com/bridge?utm_source=a", "Clay County"))
        ))
        respx.get(FEED_B).mock(return_value=httpx.Response(
            200, text=rss(("Bridge reopens Monday", "https://wkyt.com/bridge/", "Clay County"))
        ))

        first = await service.run_once()
        first_ids = set(fake_items.items)

        fake_items.items.clear()
        fake_items.links.clear()
        fake_items.locations.clear()
        checked = datetime(2025, 6, 2, tzinfo=timezone.utc)
        feed_b.last_checked_at = checked
        feed_a.last_checked_at = checked + timedelta(minutes=5)

        second = await service.run_once()

        assert [f.feed_id for f in first.feeds] == ["ky-a", "ky-b"]
        assert [f.feed_id for f in second.feeds] == ["ky-b", "ky-a"]
        assert len(first_ids) == 1
        assert set(fake_items.items) == first_ids
        (item_id,) = first_ids
        assert fake_items.links == {("ky-a", item_id), ("ky-b", item_id)}

    @pytest.mark.asyncio
    @respx.mock
    async def test_items_tagged(self, service, fake_items):
        respx.get(FEED_A).mock(return_value=httpx.Response(200, text=STORIES))
        respx.get(FEED_B).mock(return_value=httpx.Response(200, text=EMPTY))

        await service.run_once()

        tags = set().union(*fake_items.locations.values())
        assert ("KY", "Perry") in tags
        assert ("KY", "Pike") in tags
        assert ("KY", "") in tags

    @pytest.mark.asyncio
    @respx.mock
    async def test_max_items_per_feed(self, fake_feeds, fake_items, fake_ledger, test_settings):
        settings = test_settings.model_copy(update={"max_items_per_feed": 1})
        service = IngestionService(
            fake_feeds, fake_items, fake_ledger, settings=settings,
            enrichment_config=EnrichmentConfig(enabled=False),
        )
        respx.get(FEED_A).mock(return_value=httpx.Response(200, text=STORIES))
        respx.get(FEED_B).mock(return_value=httpx.Response(200, text=EMPTY))

        summary = await service.run_once()

        assert summary.feeds[0].items_seen == 1
        assert len(fake_items.items) == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_feed_ids_restrict_run(self, service):
        route_a = respx.get(FEED_A).mock(return_value=httpx.Response(200, text=STORIES))
        respx.get(FEED_B).mock(return_value=httpx.Response(200, text=EMPTY))

        summary = await service.run_once(RunSource.MANUAL_FEED, feed_ids=["ky-b"])

        assert [f.feed_id for f in summary.feeds] == ["ky-b"]
        assert not route_a.called

    @pytest.mark.asyncio
    async def test_disabled_feeds_skipped(self, service, fake_feeds):
        for feed in fake_feeds.feeds.values():
            feed.enabled = False

        summary = await service.run_once()

        assert summary.feeds == []
        assert summary.status == RunStatus.OK


class TestConditionalFetch:
    """Validators drive 304 short-circuits; force bypasses them."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_not_modified(self, service, fake_items, feed_a):
        feed_a.etag = '"v1"'
        route = respx.get(FEED_A).mock(return_value=httpx.Response(304))
        respx.get(FEED_B).mock(return_value=httpx.Response(200, text=EMPTY))

        summary = await service.run_once()

        assert route.calls.last.request.headers["If-None-Match"] == '"v1"'
        assert summary.feeds[0].status == "not_modified"
        assert summary.feeds[0].http_status == 304
        assert summary.status == RunStatus.OK
        assert fake_items.items == {}
        assert feed_a.etag == '"v1"'
        assert feed_a.last_checked_at is not None

    @pytest.mark.asyncio
    @respx.mock
    async def test_validators_sent_on_next_run(self, service, feed_a):
        route = respx.get(FEED_A).mock(
            return_value=httpx.Response(200, text=STORIES, headers={"ETag": '"v2"'})
        )
        respx.get(FEED_B).mock(return_value=httpx.Response(200, text=EMPTY))

        await service.run_once()
        await service.run_once()

        assert "If-None-Match" not in route.calls[0].request.headers
        assert route.calls[1].request.headers["If-None-Match"] == '"v2"'

    @pytest.mark.asyncio
    @respx.mock
    async def test_force_drops_validators(self, service, feed_a):
        feed_a.etag = '"v1"'
        feed_a.last_modified = "Mon, 02 Jun 2025 00:00:00 GMT"
        route = respx.get(FEED_A).mock(return_value=httpx.Response(200, text=STORIES))
        respx.get(FEED_B).mock(return_value=httpx.Response(200, text=EMPTY))

        await service.run_once(RunSource.MANUAL, force=True)

        headers = route.calls.last.request.headers
        assert "If-None-Match" not in headers
        assert "If-Modified-Since" not in headers


class TestFailures:
    """Feed failures are isolated; ledger failures fail the run."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_feed_error_isolated(self, service, fake_items, fake_ledger):
        respx.get(FEED_A).mock(return_value=httpx.Response(500, text="upstream broke"))
        respx.get(FEED_B).mock(return_value=httpx.Response(200, text=STORIES))

        summary = await service.run_once()

        assert summary.status == RunStatus.OK
        failed, ok = summary.feeds
        assert failed.status == "error"
        assert failed.http_status == 500
        assert "upstream broke" in failed.error
        assert ok.items_upserted == 2
        assert [feed_id for feed_id, _ in fake_ledger.feed_errors] == ["ky-a"]
        assert "FeedFetchError" in fake_ledger.feed_errors[0][1]
        assert len(fake_items.items) == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_error_isolated(self, service, fake_ledger):
        respx.get(FEED_A).mock(side_effect=httpx.ConnectError("refused"))
        respx.get(FEED_B).mock(return_value=httpx.Response(200, text=EMPTY))

        summary = await service.run_once()

        assert summary.feeds[0].status == "error"
        assert summary.feeds[0].http_status is None
        assert summary.feeds[1].status == "ok"
        assert len(fake_ledger.feed_errors) == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_ledger_error_fails_run(self, service, fake_ledger):
        fake_ledger.fail_on_feed_error = True
        respx.get(FEED_A).mock(return_value=httpx.Response(500))
        route_b = respx.get(FEED_B).mock(return_value=httpx.Response(200, text=EMPTY))

        with pytest.raises(ConnectionError):
            await service.run_once()

        assert fake_ledger.runs[1]["status"] == RunStatus.FAILED
        assert service.last_summary.status == RunStatus.FAILED
        assert "ConnectionError" in service.last_summary.error
        assert not route_b.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_finish_failure_marks_failed(self, service, fake_ledger):
        fake_ledger.fail_on_finish = True
        respx.get(FEED_A).mock(return_value=httpx.Response(200, text=EMPTY))
        respx.get(FEED_B).mock(return_value=httpx.Response(200, text=EMPTY))

        with pytest.raises(ConnectionError):
            await service.run_once()

        assert fake_ledger.runs[1]["status"] == RunStatus.FAILED
        assert not service.run_in_progress


class TestEnrichment:
    """Article pages are fetched at most once per item."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_enrichment_attempted_once(self, fake_feeds, fake_items, fake_ledger, test_settings):
        service = IngestionService(
            fake_feeds, fake_items, fake_ledger, settings=test_settings,
            enrichment_config=EnrichmentConfig(enabled=True),
        )
        respx.get(FEED_A).mock(return_value=httpx.Response(
            200, text=rss(("Council meets", "https://a.example.com/council", "Agenda posted."))
        ))
        respx.get(FEED_B).mock(return_value=httpx.Response(200, text=EMPTY))
        article = respx.get("https://a.example.com/council").mock(return_value=httpx.Response(
            200,
            text="<html><body><article><p>The council in Hazard met in Perry County.</p></article></body></html>",
            headers={"content-type": "text/html"},
        ))

        await service.run_once()
        await service.run_once()

        assert article.call_count == 1
        (item_id,) = fake_items.items
        assert fake_items.enrichment_calls == [item_id]
        assert fake_items.items[item_id].article_fetch_status == "ok"
        assert ("KY", "Perry") in fake_items.locations[item_id]


class TestScheduler:
    """start() runs immediately and stops on request."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_start_and_stop(self, service, fake_ledger):
        respx.get(FEED_A).mock(return_value=httpx.Response(200, text=EMPTY))
        respx.get(FEED_B).mock(return_value=httpx.Response(200, text=EMPTY))

        task = asyncio.create_task(service.start())
        for _ in range(100):
            if fake_ledger.runs and service.last_summary is not None:
                break
            await asyncio.sleep(0.01)
        await service.stop()
        await asyncio.wait_for(task, timeout=2.0)

        assert not service.is_running
        assert fake_ledger.runs[1]["source"] == RunSource.SCHEDULED
        assert fake_ledger.runs[1]["status"] == RunStatus.OK
