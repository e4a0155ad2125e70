"""
Command-line interface for the Kentucky news pipeline.

Provides commands to run ingestion, trigger a manual run, manage feed
sources, initialize the database, and inspect ranking and location
tagging.

Usage:
    ky-news ingest               # Run the scheduler loop
    ky-news run-once --force     # One manual run, ignoring validators
    ky-news init-db              # Create tables and seed feeds
    ky-news feeds list           # Show feed sources
    ky-news top --county Perry   # Ranked items for a county
    ky-news errors --feed wkyt   # Recent feed errors from the ledger
    ky-news locate "..."         # Show the gazetteer match for text
    ky-news health               # Check database connectivity
    ky-news serve                # Run the admin API
"""

import asyncio
import signal
import sys
from pathlib import Path

import click

from src.config.settings import get_settings
from src.observability.logging import setup_logging
from src.observability.metrics import get_metrics
from src.observability.tracing import shutdown_tracing


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """Kentucky News - regional feed ingestion and ranking."""
    if debug:
        import os
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()

    settings = get_settings()
    if settings.tracing_enabled:
        from src.observability.tracing import setup_tracing

        setup_tracing(
            service_name=settings.otel_service_name,
            otlp_endpoint=settings.otel_exporter_otlp_endpoint,
        )


@main.command()
@click.option("--metrics/--no-metrics", default=True, help="Enable metrics server")
def ingest(metrics: bool) -> None:
    """Run the ingestion scheduler (at startup, then every interval)."""
    from src.services.ingestion_service import IngestionService
    from src.storage.database import Database

    async def run():
        db = Database()
        await db.connect()
        service = IngestionService.from_database(db)

        if metrics:
            get_metrics().start_server()

        # Handle shutdown signals
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, lambda: asyncio.create_task(service.stop()))

        try:
            await service.start()
        finally:
            await db.close()
            shutdown_tracing()

    asyncio.run(run())


@main.command("run-once")
@click.option("--force", is_flag=True, help="Ignore stored ETag/Last-Modified validators")
@click.option("--feed", "feed_ids", multiple=True, help="Only poll this feed id (can repeat)")
def run_once(force: bool, feed_ids: tuple[str, ...]) -> None:
    """Run one ingestion cycle now.

    Exits non-zero if the run fails. Individual feed failures are
    reported but do not fail the run.
    """
    from src.ledger.schemas import RunSource
    from src.services.ingestion_service import IngestionService
    from src.storage.database import Database

    async def run() -> int:
        db = Database()
        await db.connect()

        try:
            service = IngestionService.from_database(db)
            source = RunSource.MANUAL_FEED if feed_ids else RunSource.MANUAL
            try:
                summary = await service.run_once(
                    source, force=force, feed_ids=list(feed_ids) or None
                )
            except Exception as e:
                click.echo(click.style(f"Run failed: {e}", fg="red"), err=True)
                return 1
        finally:
            await db.close()

        click.echo(f"\nRun {summary.run_id} ({summary.source.value}): {summary.status.value}")
        click.echo("-" * 60)
        for fm in summary.feeds:
            color = {"ok": "green", "not_modified": "cyan"}.get(fm.status, "red")
            line = f"  {fm.feed_id:<32} {fm.status:<13} {fm.items_upserted:>4} items"
            click.echo(click.style(line, fg=color))
            if fm.error:
                click.echo(f"      {fm.error}")
        click.echo("-" * 60)
        click.echo(
            f"  feeds: {summary.feeds_processed}  failed: {summary.feeds_failed}"
            f"  items upserted: {summary.items_upserted}"
        )
        return 0

    result = asyncio.run(run())
    if result != 0:
        sys.exit(result)


@main.command("init-db")
@click.option("--seed/--no-seed", default=True, help="Seed feeds when the table is empty")
def init_db(seed: bool) -> None:
    """Initialize the database schema."""
    from src.feeds.service import FeedsService
    from src.ledger.repository import RunLedger
    from src.storage.database import Database
    from src.storage.repository import ItemRepository

    async def run():
        db = Database()
        await db.connect()

        try:
            feeds = FeedsService(db)
            await feeds.repository.create_table()
            await ItemRepository(db).create_tables()
            await RunLedger(db).create_tables()
            if seed:
                await feeds.ensure_seeded()

            click.echo("Database initialized successfully")
        finally:
            await db.close()

    asyncio.run(run())


@main.command("seed-feeds")
@click.argument("path", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
def seed_feeds(path: Path | None) -> None:
    """Load feed sources from a JSON file (default: bundled seed list).

    Existing feeds keep their enabled flag and validators.
    """
    from src.feeds.service import FeedsService
    from src.storage.database import Database

    async def run():
        db = Database()
        await db.connect()

        try:
            count = await FeedsService(db).seed_from_json(path)
            click.echo(click.style(f"Seeded {count} feeds", fg="green"))
        finally:
            await db.close()

    asyncio.run(run())


@main.group()
def feeds() -> None:
    """Feed source management commands."""


@feeds.command("list")
@click.option("--enabled-only", is_flag=True, help="Only show enabled feeds")
def feeds_list(enabled_only: bool) -> None:
    """List feed sources."""
    from src.feeds.repository import FeedsRepository
    from src.storage.database import Database

    async def run():
        db = Database()
        await db.connect()

        try:
            sources = await FeedsRepository(db).list_feeds(enabled_only=enabled_only)
        finally:
            await db.close()

        if not sources:
            click.echo("No feeds configured")
            return

        for feed in sources:
            state = "on " if feed.enabled else "off"
            checked = feed.last_checked_at.strftime("%Y-%m-%d %H:%M") if feed.last_checked_at else "never"
            line = f"  [{state}] {feed.id:<32} {feed.region_scope.value:<9} {checked:<17} {feed.url}"
            click.echo(click.style(line, fg="green" if feed.enabled else "bright_black"))

    asyncio.run(run())


def _set_feed_enabled(feed_id: str, enabled: bool) -> None:
    from src.feeds.service import FeedsService
    from src.storage.database import Database

    async def run() -> bool:
        db = Database()
        await db.connect()

        try:
            return await FeedsService(db).set_enabled(feed_id, enabled)
        finally:
            await db.close()

    if not asyncio.run(run()):
        click.echo(click.style(f"Unknown feed: {feed_id}", fg="red"), err=True)
        sys.exit(1)
    click.echo(f"Feed {feed_id} {'enabled' if enabled else 'disabled'}")


@feeds.command("enable")
@click.argument("feed_id")
def feeds_enable(feed_id: str) -> None:
    """Enable a feed source."""
    _set_feed_enabled(feed_id, True)


@feeds.command("disable")
@click.argument("feed_id")
def feeds_disable(feed_id: str) -> None:
    """Disable a feed source."""
    _set_feed_enabled(feed_id, False)


@main.command()
@click.option("--feed", "feed_id", default=None, help="Only errors for this feed")
@click.option("--limit", default=20, type=click.IntRange(1, 500), help="Errors to show")
def errors(feed_id: str | None, limit: int) -> None:
    """Show the most recent per-feed errors from the run ledger."""
    from src.ledger.repository import RunLedger
    from src.storage.database import Database

    async def run():
        db = Database()
        await db.connect()

        try:
            rows = await RunLedger(db).recent_errors(feed_id=feed_id, limit=limit)
        finally:
            await db.close()

        if not rows:
            click.echo("No feed errors recorded")
            return

        for row in rows:
            summary_line = row["error"].splitlines()[-1] if row["error"] else ""
            click.echo(f"  {row['at']:%Y-%m-%d %H:%M}  {row['feed_id']:<32} {summary_line}")

    asyncio.run(run())


@main.command()
@click.option("--scope", default="ky", type=click.Choice(["ky", "national"]), help="Region scope")
@click.option("--county", "counties", multiple=True, help="Only items tagged with this county (can repeat)")
@click.option("--hours", default=None, type=int, help="Only items from the last N hours")
@click.option("--limit", default=20, type=click.IntRange(1, 200), help="Items to show")
def top(scope: str, counties: tuple[str, ...], hours: int | None, limit: int) -> None:
    """Print the ranked, deduplicated item list."""
    from src.ingestion.schemas import RegionScope
    from src.ranking.dedup import RankingEngine
    from src.storage.database import Database
    from src.storage.repository import ItemRepository

    async def run():
        db = Database()
        await db.connect()

        engine = RankingEngine()
        try:
            candidates = await ItemRepository(db).fetch_candidates(
                RegionScope(scope),
                engine.pool_size(limit),
                hours=hours,
                counties=list(counties) or None,
            )
        finally:
            await db.close()

        ranked = engine.rank(candidates, limit)
        click.echo(f"\n{len(ranked)} of {len(candidates)} candidates")
        click.echo("-" * 60)
        for i, item in enumerate(ranked, 1):
            when = item.sort_ts.strftime("%Y-%m-%d %H:%M")
            click.echo(f"{i:>3}. {item.title}")
            click.echo(click.style(f"     {when}  {item.url}", fg="bright_black"))

    asyncio.run(run())


@main.command()
@click.argument("text")
def locate(text: str) -> None:
    """Show which Kentucky counties a piece of text mentions."""
    from src.locations.gazetteer import get_gazetteer

    match = get_gazetteer().match(text)

    click.echo(f"  counties:      {', '.join(sorted(match.counties)) or '-'}")
    if match.city_counties:
        click.echo(f"  via cities:    {', '.join(sorted(match.city_counties))}")
    click.echo(f"  region signal: {match.region_signal}")
    click.echo(f"  other states:  {', '.join(sorted(match.other_regions)) or '-'}")
    if match.likely_elsewhere:
        click.echo(click.style("  likely about another state", fg="yellow"))


@main.command()
def health() -> None:
    """Check health of the database."""
    import structlog
    logger = structlog.get_logger()

    async def check():
        from src.storage.database import Database

        try:
            db = Database()
            await db.connect()
            healthy = await db.health_check()
            await db.close()
        except Exception as e:
            healthy = False
            logger.error("Postgres health check failed", error=str(e))

        icon = "✓" if healthy else "✗"
        color = "green" if healthy else "red"
        click.echo(click.style(f"  {icon} postgres: {healthy}", fg=color))
        sys.exit(0 if healthy else 1)

    asyncio.run(check())


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
@click.option("--metrics-port", default=None, type=int, help="Metrics server port")
def serve(host: str | None, port: int | None, reload: bool, metrics_port: int | None) -> None:
    """Start the admin API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    metrics_port = metrics_port or settings.metrics_port

    get_metrics().start_server(port=metrics_port)

    click.echo(f"Starting API server on {host}:{port}")
    click.echo(f"Metrics available on http://localhost:{metrics_port}/metrics")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        "src.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
