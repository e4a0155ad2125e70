"""Text cleanup helpers shared by the feed parser and article fetcher."""

import html
import re

from bs4 import BeautifulSoup

# Elements that never carry readable article text
NON_CONTENT_TAGS = (
    "script", "style", "noscript", "iframe", "embed", "object",
    "svg", "canvas", "form", "button",
)

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def clean_text(text: str | None) -> str:
    """
    Clean text content by removing excessive whitespace and normalizing.

    Args:
        text: Raw text content

    Returns:
        Cleaned text
    """
    if not text:
        return ""
    text = _CONTROL_CHARS.sub("", text)
    return " ".join(text.split()).strip()


def html_to_text(html_content: str | None) -> str:
    """
    Extract clean text from an HTML fragment.

    Feed summaries are frequently HTML; this strips markup and entities
    and collapses whitespace.
    """
    if not html_content:
        return ""
    if "<" not in html_content:
        return clean_text(html.unescape(html_content))

    soup = BeautifulSoup(html_content, "html.parser")
    for element in soup(list(NON_CONTENT_TAGS)):
        element.decompose()
    text = soup.get_text(separator=" ")
    return clean_text(html.unescape(text))


def word_count(text: str | None) -> int:
    """Count whitespace-separated words."""
    return len(text.split()) if text else 0
