"""Feeds: feed source management, conditional polling and parsing."""

from src.feeds.config import FeedsConfig
from src.feeds.parser import FeedParseError, parse_feed
from src.feeds.poller import FeedFetchError, FeedPoller
from src.feeds.repository import FeedsRepository
from src.feeds.schemas import FeedSource, PollOutcome, PollResult
from src.feeds.service import FeedsService

__all__ = [
    "FeedFetchError",
    "FeedParseError",
    "FeedPoller",
    "FeedSource",
    "FeedsConfig",
    "FeedsRepository",
    "FeedsService",
    "PollOutcome",
    "PollResult",
    "parse_feed",
]
