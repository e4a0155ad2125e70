"""
Prometheus metrics for monitoring the ingestion pipeline.

Defines and exposes metrics for:
- Ingestion runs and their duration
- Feed polls by outcome and poll latency
- Items upserted per region scope
- Article enrichment fetches by status
- Location tagging outcomes
- Serving-time dedup drops

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from src.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0, 30.0)
RUN_DURATION_BUCKETS = (1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0, 1200.0)


class MetricsCollector:
    """
    Prometheus metrics collector for the ky-news pipeline.

    Usage:
        metrics = get_metrics()
        metrics.start_server()

        metrics.record_feed_poll("not_modified", latency=0.21)
        metrics.record_enrichment("http_404")
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        # Runs
        self.runs = Counter(
            "ky_news_runs_total",
            "Ingestion runs by source and final status",
            ["source", "status"],  # status: ok, failed
        )

        self.run_duration = Histogram(
            "ky_news_run_duration_seconds",
            "Wall time of a full ingestion run",
            buckets=RUN_DURATION_BUCKETS,
        )

        self.last_run_timestamp = Gauge(
            "ky_news_last_run_timestamp_seconds",
            "Unix time the last ingestion run finished",
        )

        # Feeds
        self.feed_polls = Counter(
            "ky_news_feed_polls_total",
            "Feed polls by outcome",
            ["outcome"],  # success, not_modified, error
        )

        self.feed_errors = Counter(
            "ky_news_feed_errors_total",
            "Per-feed failures caught at the feed boundary",
            ["error_type"],
        )

        self.feed_poll_latency = Histogram(
            "ky_news_feed_poll_latency_seconds",
            "Time to fetch a feed payload",
            buckets=LATENCY_BUCKETS,
        )

        # Items
        self.items_upserted = Counter(
            "ky_news_items_upserted_total",
            "Items inserted or updated",
            ["region_scope"],
        )

        self.items_tagged = Counter(
            "ky_news_items_tagged_total",
            "Location tagging results",
            ["result"],  # county, region_only, suppressed
        )

        # Enrichment
        self.enrichment_fetches = Counter(
            "ky_news_enrichment_fetches_total",
            "Article enrichment fetches by status string",
            ["status"],
        )

        # Serving-time ranking
        self.ranking_dropped = Counter(
            "ky_news_ranking_dropped_total",
            "Candidates dropped by serving-time dedup",
            ["reason"],  # paid_duplicate, url, title, source_title, short
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=REGISTRY)
        logger.info(f"Prometheus metrics server started on port {port}")

    # Convenience methods

    def record_run(self, source: str, status: str, duration: float) -> None:
        """
        Record a finished ingestion run.

        Args:
            source: Run trigger (scheduled, manual, manual-feed)
            status: Final run status
            duration: Run wall time in seconds
        """
        self.runs.labels(source=source, status=status).inc()
        self.run_duration.observe(duration)
        self.last_run_timestamp.set_to_current_time()

    def record_feed_poll(self, outcome: str, latency: float | None = None) -> None:
        """
        Record a feed poll outcome.

        Args:
            outcome: success, not_modified or error
            latency: Optional fetch latency in seconds
        """
        self.feed_polls.labels(outcome=outcome).inc()
        if latency is not None:
            self.feed_poll_latency.observe(latency)

    def record_feed_error(self, error_type: str) -> None:
        """Record a per-feed failure by exception class name."""
        self.feed_errors.labels(error_type=error_type).inc()

    def record_items_upserted(self, region_scope: str, count: int = 1) -> None:
        """Record upserted items for a region scope."""
        if count > 0:
            self.items_upserted.labels(region_scope=region_scope).inc(count)

    def record_tagging(self, result: str) -> None:
        """Record a location tagging result."""
        self.items_tagged.labels(result=result).inc()

    def record_enrichment(self, status: str) -> None:
        """
        Record an article enrichment fetch.

        HTTP statuses are collapsed to their class (http_4xx, http_5xx)
        to keep label cardinality bounded.
        """
        if status.startswith("http_") and len(status) == 8:
            status = f"http_{status[5]}xx"
        self.enrichment_fetches.labels(status=status).inc()

    def record_ranking_drop(self, reason: str, count: int = 1) -> None:
        """Record serving-time dedup drops."""
        if count > 0:
            self.ranking_dropped.labels(reason=reason).inc(count)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
