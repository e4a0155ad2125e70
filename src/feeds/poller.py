"""
Conditional feed fetching.

FeedPoller sends If-None-Match / If-Modified-Since when the feed has
validators from a previous poll, and records the refreshed validators
and last-checked time on every non-failure outcome (304 included).
Non-2xx responses, timeouts and transport failures all raise
FeedFetchError.
"""

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone

from src.feeds.repository import FeedsRepository
from src.feeds.schemas import FeedSource, PollOutcome, PollResult
from src.ingestion.http_client import HTTPClient, HTTPClientError, TransportError
from src.observability.metrics import get_metrics

logger = logging.getLogger(__name__)


class FeedFetchError(HTTPClientError):
    """Feed poll failed: non-2xx status, timeout or transport error."""

    pass


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FeedPoller:
    """
    Polls one feed at a time through a shared HTTPClient.

    Args:
        client: Open HTTPClient (timeout is the client's)
        repository: Where validators and last-checked are persisted
        error_body_chars: Response body characters kept on failure
        clock: Returns "now" for last_checked_at (tests)
    """

    def __init__(
        self,
        client: HTTPClient,
        repository: FeedsRepository,
        error_body_chars: int = 220,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._client = client
        self._repo = repository
        self._error_body_chars = error_body_chars
        self._clock = clock

    @staticmethod
    def conditional_headers(feed: FeedSource, force: bool = False) -> dict[str, str]:
        """Validator headers for a feed; empty when forced or never polled."""
        if force:
            return {}
        headers: dict[str, str] = {}
        if feed.etag:
            headers["If-None-Match"] = feed.etag
        if feed.last_modified:
            headers["If-Modified-Since"] = feed.last_modified
        return headers

    async def poll(self, feed: FeedSource, force: bool = False) -> PollResult:
        """
        Fetch a feed conditionally.

        Args:
            feed: Feed to poll (its validators are read, not mutated)
            force: Skip conditional headers (manual runs)

        Returns:
            PollResult with outcome NOT_MODIFIED or SUCCESS

        Raises:
            FeedFetchError: On non-2xx status or transport failure
        """
        metrics = get_metrics()
        started = time.perf_counter()
        try:
            response = await self._client.get(
                feed.url, headers=self.conditional_headers(feed, force)
            )
        except TransportError as e:
            metrics.record_feed_poll("error", time.perf_counter() - started)
            raise FeedFetchError(str(e)) from e
        latency = time.perf_counter() - started

        if response.status_code == 304:
            result = PollResult(
                outcome=PollOutcome.NOT_MODIFIED,
                status_code=304,
                etag=feed.etag,
                last_modified=feed.last_modified,
            )
        elif response.is_success:
            result = PollResult(
                outcome=PollOutcome.SUCCESS,
                status_code=response.status_code,
                etag=response.headers.get("etag") or feed.etag,
                last_modified=response.headers.get("last-modified") or feed.last_modified,
                payload=response.content,
            )
        else:
            metrics.record_feed_poll("error", latency)
            body = response.text[: self._error_body_chars]
            raise FeedFetchError(
                f"HTTP {response.status_code} for {feed.url} :: {body}",
                status_code=response.status_code,
                response_body=body,
            )

        await self._repo.update_poll_state(
            feed.id, result.etag, result.last_modified, self._clock()
        )
        metrics.record_feed_poll(result.outcome.value, latency)
        logger.debug(
            "Polled feed %s: %s (%d)", feed.id, result.outcome.value, result.status_code
        )
        return result
