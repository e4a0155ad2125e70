"""
HTTP infrastructure layer for feed and article fetches.

Provides:
- HTTPClientError / TransportError / RequestTimeout: failure classes
- FetchedPage: a size-bounded text response
- HTTPClient: async client with a fixed per-request timeout

There is no retry inside a run; the next scheduled run is the retry.
Callers decide what a non-2xx status means: the feed poller raises,
the article fetcher records a status string.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class HTTPClientError(Exception):
    """Base exception for HTTP client errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class TransportError(HTTPClientError):
    """Raised on connection or protocol failure (no HTTP status)."""

    pass


class RequestTimeout(TransportError):
    """Raised when a request exceeds the client timeout."""

    pass


@dataclass
class FetchedPage:
    """A text response read up to a character cap."""

    url: str
    status_code: int
    content_type: str
    text: str
    truncated: bool = False


class HTTPClient:
    """
    Async HTTP client with a bounded timeout and no retry.

    Timeouts and transport failures are raised as TransportError so
    every caller sees one failure class for "no response".

    Example:
        async with HTTPClient(timeout=15.0, user_agent="bot/1.0") as client:
            response = await client.get(url, headers={"If-None-Match": etag})
    """

    def __init__(
        self,
        timeout: float = 15.0,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds.
            user_agent: Default User-Agent header.
            transport: Optional httpx transport (tests).
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HTTPClient":
        """Enter async context manager, create client."""
        headers = {"User-Agent": self.user_agent} if self.user_agent else None
        kwargs: dict[str, Any] = {
            "timeout": self.timeout,
            "follow_redirects": True,
            "headers": headers,
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        self._client = httpx.AsyncClient(**kwargs)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager, close client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _require_client(self) -> httpx.AsyncClient:
        if not self._client:
            raise RuntimeError("HTTPClient must be used as async context manager")
        return self._client

    async def get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        Perform a GET request and return the response whatever its status.

        Raises:
            TransportError: On timeout, transport failure or a malformed URL
        """
        client = self._require_client()
        try:
            return await client.get(url, headers=headers)
        except httpx.TimeoutException as e:
            raise RequestTimeout(f"Timeout after {self.timeout}s for {url}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"{type(e).__name__} for {url}: {e}") from e
        except (httpx.InvalidURL, ValueError) as e:
            raise TransportError(f"Invalid URL {url!r}: {e}") from e

    async def get_text(
        self,
        url: str,
        max_chars: int,
        headers: dict[str, str] | None = None,
        accept_content_types: tuple[str, ...] | None = None,
    ) -> FetchedPage:
        """
        Stream a GET response, decoding at most ``max_chars`` characters.

        When ``accept_content_types`` is given and the response content type
        matches none of them, the body is not read and ``text`` is empty.

        Raises:
            TransportError: On timeout, transport failure or a malformed URL
        """
        client = self._require_client()
        try:
            async with client.stream("GET", url, headers=headers) as response:
                content_type = response.headers.get("content-type", "").lower()
                page = FetchedPage(
                    url=str(response.url),
                    status_code=response.status_code,
                    content_type=content_type,
                    text="",
                )
                if not response.is_success:
                    return page
                if accept_content_types and not any(
                    ct in content_type for ct in accept_content_types
                ):
                    return page

                chunks: list[str] = []
                size = 0
                async for chunk in response.aiter_text():
                    chunks.append(chunk)
                    size += len(chunk)
                    if size >= max_chars:
                        page.truncated = True
                        break
                page.text = "".join(chunks)[:max_chars]
                return page
        except httpx.TimeoutException as e:
            raise RequestTimeout(f"Timeout after {self.timeout}s for {url}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"{type(e).__name__} for {url}: {e}") from e
        except (httpx.InvalidURL, ValueError) as e:
            raise TransportError(f"Invalid URL {url!r}: {e}") from e
