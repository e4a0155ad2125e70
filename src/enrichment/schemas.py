"""Data models for article enrichment."""

from dataclasses import dataclass
from datetime import datetime

STATUS_OK = "ok"
STATUS_SKIP = "skip"
STATUS_NON_HTML = "non_html"
STATUS_TIMEOUT = "timeout"
STATUS_ERROR = "error"


def http_status(code: int) -> str:
    """Status string for a non-2xx article response."""
    return f"http_{code}"


@dataclass
class EnrichmentResult:
    """Outcome of one article fetch.

    Failures are data, not exceptions: ``text`` is empty, ``image_url``
    is None and ``status`` says what happened.
    """

    status: str
    text: str = ""
    image_url: str | None = None
    published_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK
