"""Tests for the manual-trigger rate limiter."""

from unittest.mock import MagicMock

import pytest

from src.api.rate_limit import SlidingWindowLimiter, get_rate_limit_key


class TestSlidingWindowLimiter:
    """Window accounting and key bound."""

    def test_allows_up_to_limit(self, limiter):
        assert limiter.allow("a")
        assert limiter.allow("a")
        assert not limiter.allow("a")

    def test_keys_independent(self, limiter):
        limiter.allow("a")
        limiter.allow("a")
        assert limiter.allow("b")

    def test_window_slides(self, limiter, clock):
        limiter.allow("a")
        clock.advance(30)
        limiter.allow("a")
        assert not limiter.allow("a")

        clock.advance(30)
        assert limiter.allow("a")

    def test_retry_after(self, limiter, clock):
        assert limiter.retry_after("a") == 0.0
        limiter.allow("a")
        clock.advance(10)
        limiter.allow("a")

        assert limiter.retry_after("a") == pytest.approx(50.0)

    def test_evict_expired(self, limiter, clock):
        limiter.allow("a")
        limiter.allow("b")
        clock.advance(61)

        assert limiter.evict_expired() == 2
        assert len(limiter) == 0

    def test_bounded_keys_drop_least_recent(self, clock):
        limiter = SlidingWindowLimiter(limit=1, window=60.0, max_keys=2, clock=clock)
        limiter.allow("a")
        limiter.allow("b")
        limiter.allow("a")
        limiter.allow("c")

        assert len(limiter) == 2
        assert limiter.allow("b")
        assert not limiter.allow("c")

    def test_expired_keys_evicted_before_lru(self, clock):
        limiter = SlidingWindowLimiter(limit=1, window=60.0, max_keys=2, clock=clock)
        limiter.allow("old")
        clock.advance(50)
        limiter.allow("recent")
        clock.advance(20)
        limiter.allow("new")

        assert len(limiter) == 2
        assert not limiter.allow("recent")

    @pytest.mark.parametrize("limit,window,max_keys", [(0, 60, 1), (1, 0, 1), (1, 60, 0)])
    def test_invalid_arguments(self, limit, window, max_keys):
        with pytest.raises(ValueError):
            SlidingWindowLimiter(limit, window, max_keys)


class TestRateLimitKey:
    """Keying by API key, else client IP."""

    def test_api_key(self):
        request = MagicMock()
        request.headers = {"X-API-KEY": "abc"}
        assert get_rate_limit_key(request) == "key:abc"

    def test_client_ip(self):
        request = MagicMock()
        request.headers = {}
        request.client.host = "10.0.0.5"
        assert get_rate_limit_key(request) == "ip:10.0.0.5"

    def test_no_client(self):
        request = MagicMock()
        request.headers = {}
        request.client = None
        assert get_rate_limit_key(request) == "ip:unknown"


class TestManualRunLimit:
    """The admin trigger answers 429 once the window is full."""

    def test_429_with_retry_after(self, client, mock_service, clock):
        assert client.post("/admin/ingest/run").status_code == 200
        assert client.post("/admin/ingest/run").status_code == 200

        response = client.post("/admin/ingest/run")

        assert response.status_code == 429
        assert response.json()["error_type"] == "rate_limited"
        assert response.headers["Retry-After"] == "61"
        assert mock_service.run_once.await_count == 2

    def test_window_reopens(self, client, clock):
        client.post("/admin/ingest/run")
        client.post("/admin/ingest/run")
        clock.advance(61)

        assert client.post("/admin/ingest/run").status_code == 200

    def test_limit_per_api_key(self, client):
        for _ in range(2):
            client.post("/admin/ingest/run", headers={"X-API-KEY": "one"})

        assert client.post("/admin/ingest/run", headers={"X-API-KEY": "one"}).status_code == 429
        assert client.post("/admin/ingest/run", headers={"X-API-KEY": "two"}).status_code == 200
