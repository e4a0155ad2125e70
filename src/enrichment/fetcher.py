"""
Article enrichment fetcher.

Fetches an article page when feed text was not enough to place a story,
and reduces it to a text excerpt, a representative image and, when the
page declares one, a publication time. Failures never propagate: they
come back as an EnrichmentResult with a status string.
"""

import logging
import re
from datetime import datetime, timezone
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from src.enrichment.config import EnrichmentConfig
from src.enrichment.schemas import (
    STATUS_ERROR,
    STATUS_NON_HTML,
    STATUS_OK,
    STATUS_SKIP,
    STATUS_TIMEOUT,
    EnrichmentResult,
    http_status,
)
from src.ingestion.http_client import HTTPClient, RequestTimeout, TransportError
from src.ingestion.text import NON_CONTENT_TAGS, clean_text
from src.observability.metrics import get_metrics
from src.observability.tracing import get_tracer, traced

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPES = ("text/html", "application/xhtml")

_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
_HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)
_UNWANTED_IMAGE = re.compile(r"\b(sprite|logo|icon|avatar)\b", re.IGNORECASE)
_LAZY_SRC_ATTRS = ("src", "data-src", "data-lazy-src", "data-original")

# Page chrome removed before text extraction, on top of NON_CONTENT_TAGS
_CHROME_TAGS = ("header", "footer", "nav", "aside")

_META_IMAGE_KEYS = ("og:image", "twitter:image")
_META_PUBLISHED_KEYS = (
    "article:published_time",
    "og:article:published_time",
    "parsely-pub-date",
)


def _meta_content(soup: BeautifulSoup, key: str) -> str | None:
    tag = soup.find("meta", attrs={"property": key}) or soup.find(
        "meta", attrs={"name": key}
    )
    content = tag.get("content") if tag else None
    return content.strip() if content else None


def _is_tracking_pixel(img) -> bool:
    return str(img.get("width", "")).strip() in ("0", "1") and str(
        img.get("height", "")
    ).strip() in ("0", "1")


def pick_meta_image(soup: BeautifulSoup) -> str | None:
    """Open Graph / Twitter card image, if absolute."""
    for key in _META_IMAGE_KEYS:
        content = _meta_content(soup, key)
        if content and _HTTP_URL.match(content):
            return content
    return None


def pick_inline_image(soup: BeautifulSoup, page_url: str) -> str | None:
    """First plausible <img>, preferring ones inside article/main."""
    candidates = soup.select("article img") + soup.select("main img") + soup.find_all("img")
    for img in candidates:
        if _is_tracking_pixel(img):
            continue
        src = next((img.get(a) for a in _LAZY_SRC_ATTRS if img.get(a)), None)
        if not src:
            continue
        src = src.strip()
        if src.lower().startswith("data:") or _UNWANTED_IMAGE.search(src):
            continue
        absolute = urljoin(page_url, src)
        if _HTTP_URL.match(absolute):
            return absolute
    return None


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def pick_published_at(soup: BeautifulSoup) -> datetime | None:
    """Publication time from article meta tags or a <time> element."""
    for key in _META_PUBLISHED_KEYS:
        parsed = _parse_datetime(_meta_content(soup, key))
        if parsed:
            return parsed

    itemprop = soup.find(attrs={"itemprop": "datePublished"})
    if itemprop is not None:
        parsed = _parse_datetime(itemprop.get("content") or itemprop.get("datetime"))
        if parsed:
            return parsed

    time_tag = soup.find("time", attrs={"datetime": True})
    if time_tag is not None:
        return _parse_datetime(time_tag.get("datetime"))
    return None


def extract_main_text(soup: BeautifulSoup, max_chars: int) -> str:
    """
    Best-effort main text block.

    Mutates ``soup``: non-content elements and page chrome are removed,
    then the first non-empty of <article>, <main>, #main, <body> wins.
    """
    for element in soup(list(NON_CONTENT_TAGS) + list(_CHROME_TAGS)):
        element.decompose()
    for img in soup.find_all("img"):
        if _is_tracking_pixel(img):
            img.decompose()

    for container in (
        soup.find("article"),
        soup.find("main"),
        soup.find(id="main"),
        soup.body,
        soup,
    ):
        if container is None:
            continue
        text = clean_text(container.get_text(separator=" "))
        if text:
            return text[:max_chars]
    return ""


def extract_article(html: str, page_url: str, excerpt_max_chars: int) -> EnrichmentResult:
    """Reduce an HTML page to an ok EnrichmentResult."""
    soup = BeautifulSoup(html, "html.parser")
    image = pick_meta_image(soup) or pick_inline_image(soup, page_url)
    published_at = pick_published_at(soup)
    text = extract_main_text(soup, excerpt_max_chars)
    return EnrichmentResult(
        status=STATUS_OK,
        text=text,
        image_url=image,
        published_at=published_at,
    )


class ArticleFetcher:
    """
    Fetches and reduces article pages.

    Usage:
        async with HTTPClient(timeout=12.0) as client:
            fetcher = ArticleFetcher(client)
            result = await fetcher.fetch("https://example.com/story")
            if result.ok:
                ...
    """

    def __init__(
        self,
        client: HTTPClient,
        config: EnrichmentConfig | None = None,
    ) -> None:
        self._client = client
        self._config = config or EnrichmentConfig()
        self._tracer = get_tracer("enrichment")

    async def fetch(self, url: str | None) -> EnrichmentResult:
        """
        Fetch an article. Never raises.

        Status strings: ok, skip (not an http(s) URL), http_<code>,
        non_html, timeout, error.
        """
        if not url or not _HTTP_URL.match(url):
            result = EnrichmentResult(status=STATUS_SKIP)
        else:
            with traced(self._tracer, "enrichment.fetch", {"url": url}):
                result = await self._fetch(url)
        get_metrics().record_enrichment(result.status)
        return result

    async def _fetch(self, url: str) -> EnrichmentResult:
        try:
            page = await self._client.get_text(
                url,
                max_chars=self._config.max_html_chars,
                headers={"Accept": _ACCEPT},
                accept_content_types=HTML_CONTENT_TYPES,
            )
        except RequestTimeout:
            logger.info("Article fetch timed out: %s", url)
            return EnrichmentResult(status=STATUS_TIMEOUT)
        except TransportError as e:
            logger.info("Article fetch failed: %s", e)
            return EnrichmentResult(status=STATUS_ERROR)

        if not 200 <= page.status_code < 300:
            return EnrichmentResult(status=http_status(page.status_code))
        if not any(ct in page.content_type for ct in HTML_CONTENT_TYPES):
            return EnrichmentResult(status=STATUS_NON_HTML)

        try:
            return extract_article(page.text, page.url or url, self._config.excerpt_max_chars)
        except Exception as e:
            # Malformed markup must not fail the feed
            logger.warning("Article extraction failed for %s: %s", url, e)
            return EnrichmentResult(status=STATUS_ERROR)
