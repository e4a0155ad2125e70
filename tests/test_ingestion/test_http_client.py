"""Tests for HTTP client infrastructure layer."""

import httpx
import pytest
import respx

from src.ingestion.http_client import (
    HTTPClient,
    HTTPClientError,
    RequestTimeout,
    TransportError,
)


class TestExceptions:
    """Exception hierarchy."""

    def test_timeout_is_transport_error(self):
        err = RequestTimeout("slow")
        assert isinstance(err, TransportError)
        assert isinstance(err, HTTPClientError)

    def test_error_attributes(self):
        err = HTTPClientError("bad", status_code=502, response_body="gateway")
        assert err.status_code == 502
        assert err.response_body == "gateway"
        assert str(err) == "bad"


class TestGet:
    """Tests for HTTPClient.get."""

    @pytest.mark.asyncio
    async def test_requires_context_manager(self):
        client = HTTPClient()
        with pytest.raises(RuntimeError):
            await client.get("https://example.com")

    @pytest.mark.asyncio
    @respx.mock
    async def test_returns_non_success_response(self):
        respx.get("https://example.com/feed").mock(return_value=httpx.Response(503, text="down"))

        async with HTTPClient(timeout=5.0) as client:
            response = await client.get("https://example.com/feed")

        assert response.status_code == 503

    @pytest.mark.asyncio
    @respx.mock
    async def test_sends_user_agent_and_headers(self):
        route = respx.get("https://example.com/feed").mock(return_value=httpx.Response(200))

        async with HTTPClient(user_agent="TestBot/1.0") as client:
            await client.get("https://example.com/feed", headers={"If-None-Match": '"abc"'})

        request = route.calls.last.request
        assert request.headers["User-Agent"] == "TestBot/1.0"
        assert request.headers["If-None-Match"] == '"abc"'

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout_raises_request_timeout(self):
        respx.get("https://example.com/feed").mock(side_effect=httpx.ReadTimeout("slow"))

        async with HTTPClient(timeout=1.0) as client:
            with pytest.raises(RequestTimeout, match="Timeout after 1.0s"):
                await client.get("https://example.com/feed")

    @pytest.mark.asyncio
    @respx.mock
    async def test_connect_error_raises_transport_error(self):
        respx.get("https://example.com/feed").mock(side_effect=httpx.ConnectError("refused"))

        async with HTTPClient() as client:
            with pytest.raises(TransportError) as exc_info:
                await client.get("https://example.com/feed")

        assert not isinstance(exc_info.value, RequestTimeout)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["http://[::1/story", "https://exa\x00mple.com/a"])
    async def test_malformed_url_raises_transport_error(self, url):
        async with HTTPClient() as client:
            with pytest.raises(TransportError, match="Invalid URL"):
                await client.get(url)
            with pytest.raises(TransportError, match="Invalid URL"):
                await client.get_text(url, max_chars=100)


class TestGetText:
    """Tests for HTTPClient.get_text."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_truncates_at_cap(self):
        respx.get("https://example.com/page").mock(
            return_value=httpx.Response(
                200, text="x" * 5000, headers={"content-type": "text/html; charset=utf-8"}
            )
        )

        async with HTTPClient() as client:
            page = await client.get_text("https://example.com/page", max_chars=1000)

        assert len(page.text) == 1000
        assert page.truncated
        assert page.content_type.startswith("text/html")

    @pytest.mark.asyncio
    @respx.mock
    async def test_skips_body_for_unaccepted_type(self):
        respx.get("https://example.com/file.pdf").mock(
            return_value=httpx.Response(
                200, content=b"%PDF-1.4", headers={"content-type": "application/pdf"}
            )
        )

        async with HTTPClient() as client:
            page = await client.get_text(
                "https://example.com/file.pdf",
                max_chars=1000,
                accept_content_types=("text/html",),
            )

        assert page.status_code == 200
        assert page.text == ""

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_success_has_no_body(self):
        respx.get("https://example.com/missing").mock(
            return_value=httpx.Response(404, text="not here", headers={"content-type": "text/html"})
        )

        async with HTTPClient() as client:
            page = await client.get_text("https://example.com/missing", max_chars=1000)

        assert page.status_code == 404
        assert page.text == ""

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout(self):
        respx.get("https://example.com/slow").mock(side_effect=httpx.ConnectTimeout("slow"))

        async with HTTPClient() as client:
            with pytest.raises(RequestTimeout):
                await client.get_text("https://example.com/slow", max_chars=10)
