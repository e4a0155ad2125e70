"""
Serving-time cross-source dedup and ranking.

Runs per query over a candidate pool the store has already filtered by
recency, scope and locality. It is pure: no I/O and no state between
calls, so it is safe to run concurrently with itself and with ingestion.

Order: free sources before paywalled ones, newest first within each
class. An item is dropped when it is a paywalled copy of a story some
free source also carries, or when its canonical URL, its title
fingerprint, or its (fingerprint, source host) pair was already kept.
"""

import re
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlsplit

from src.ingestion.identity import canonical_url
from src.ingestion.schemas import Item
from src.ingestion.text import word_count
from src.observability.metrics import get_metrics
from src.ranking.config import DEFAULT_PAID_SOURCE_DOMAINS, RankingConfig

TITLE_STOPWORDS = (
    "the", "a", "an", "and", "or", "for", "to", "of", "in", "on", "at", "from", "with",
)

_NON_ALNUM_SPACE = re.compile(r"[^a-z0-9 ]+")
_STOPWORDS = re.compile(r"\b(?:" + "|".join(TITLE_STOPWORDS) + r")\b")
_WHITESPACE = re.compile(r"\s+")


def title_fingerprint(title: str | None) -> str:
    """
    Normalized title used to spot the same story across outlets.

    >>> title_fingerprint("The Mayor of Hazard, Ky. Resigns!")
    'mayor hazard ky resigns'
    """
    text = _NON_ALNUM_SPACE.sub(" ", (title or "").lower())
    text = _STOPWORDS.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def source_host(url: str | None) -> str:
    """Lowercased host without a leading www."""
    try:
        host = (urlsplit(url or "").hostname or "").lower()
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


def is_paid_source(url: str | None, domains: Iterable[str] = DEFAULT_PAID_SOURCE_DOMAINS) -> bool:
    """Exact or subdomain match of the URL host against paywalled domains."""
    host = source_host(url)
    if not host:
        return False
    return any(host == d or host.endswith(f".{d}") for d in domains)


def candidate_pool_size(limit: int, multiplier: int = 4, cap: int = 400) -> int:
    """How many candidates to fetch so enough survive dedup."""
    return max(limit, min(limit * multiplier, cap))


@dataclass
class _Candidate:
    item: Item
    paid: bool
    fingerprint: str
    canonical: str
    source: str
    sort_ts: datetime


def _has_min_words(item: Item, min_words: int) -> bool:
    if min_words <= 0:
        return True
    return max(word_count(item.summary), word_count(item.content)) >= min_words


def rank_and_dedupe(
    items: Iterable[Item],
    limit: int,
    *,
    paid_domains: Iterable[str] = DEFAULT_PAID_SOURCE_DOMAINS,
    min_words: int = 0,
    paid_cap: int | None = None,
    drops: Counter | None = None,
) -> list[Item]:
    """
    Collapse near-duplicates and order a candidate pool.

    Args:
        items: Candidate pool (already filtered by the store)
        limit: Page size
        paid_domains: Paywalled hosts
        min_words: Drop items with fewer words in both summary and body
        paid_cap: Most paid items on a page that has free items
        drops: Optional counter incremented per drop reason

    Returns:
        At most ``limit`` items, best first
    """
    domains = list(paid_domains)
    drops = drops if drops is not None else Counter()

    candidates = [
        _Candidate(
            item=item,
            paid=is_paid_source(item.url, domains),
            fingerprint=title_fingerprint(item.title),
            canonical=canonical_url(item.url),
            source=source_host(item.url),
            sort_ts=item.sort_ts,
        )
        for item in items
    ]
    candidates.sort(key=lambda c: c.sort_ts, reverse=True)
    candidates.sort(key=lambda c: c.paid)

    free_fingerprints = {c.fingerprint for c in candidates if not c.paid and c.fingerprint}
    seen_urls: set[str] = set()
    seen_titles: set[str] = set()
    seen_source_titles: set[str] = set()
    kept: list[_Candidate] = []

    for c in candidates:
        if not _has_min_words(c.item, min_words):
            drops["short"] += 1
            continue
        if c.paid and c.fingerprint and c.fingerprint in free_fingerprints:
            drops["paid_duplicate"] += 1
            continue
        if c.canonical and c.canonical in seen_urls:
            drops["url"] += 1
            continue
        if c.fingerprint and c.fingerprint in seen_titles:
            drops["title"] += 1
            continue
        source_title = f"{c.fingerprint}|{c.source}" if c.fingerprint else c.item.id
        if source_title in seen_source_titles:
            drops["source_title"] += 1
            continue

        if c.canonical:
            seen_urls.add(c.canonical)
        if c.fingerprint:
            seen_titles.add(c.fingerprint)
        seen_source_titles.add(source_title)
        kept.append(c)

    if paid_cap is not None and any(not c.paid for c in kept):
        free = [c for c in kept if not c.paid]
        paid = [c for c in kept if c.paid]
        drops["paid_cap"] += max(0, len(paid) - paid_cap)
        kept = free + paid[:paid_cap]

    return [c.item for c in kept[:limit]]


class RankingEngine:
    """Configured front for rank_and_dedupe that also records metrics."""

    def __init__(self, config: RankingConfig | None = None) -> None:
        self._config = config or RankingConfig()

    def pool_size(self, limit: int) -> int:
        return candidate_pool_size(
            limit, self._config.overfetch_multiplier, self._config.max_pool_size
        )

    def rank(self, items: Iterable[Item], limit: int) -> list[Item]:
        drops: Counter = Counter()
        ranked = rank_and_dedupe(
            items,
            limit,
            paid_domains=self._config.paid_source_domains,
            min_words=self._config.min_words,
            paid_cap=self._config.paid_cap,
            drops=drops,
        )
        metrics = get_metrics()
        for reason, count in drops.items():
            metrics.record_ranking_drop(reason, count)
        return ranked
