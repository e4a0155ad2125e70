"""Tests for the health endpoint."""

from datetime import datetime, timedelta, timezone


def _run_row(status: str, minutes_ago: float = 5, details: dict | None = None) -> dict:
    started = datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)
    return {
        "id": 9,
        "started_at": started,
        "finished_at": started + timedelta(minutes=2),
        "status": status,
        "source": "scheduled",
        "details": details or {},
    }


class TestHealth:
    """GET /health"""

    def test_healthy_without_runs(self, client):
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["components"]["database"]["status"] == "healthy"
        assert data["components"]["ingestion"]["details"] == {"runs": 0}
        assert data["last_run_status"] is None

    def test_healthy_after_recent_ok_run(self, client, mock_database):
        mock_database.fetchrow.return_value = _run_row("ok")

        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["last_run_status"] == "ok"
        assert data["components"]["ingestion"]["details"]["run_id"] == 9

    def test_degraded_after_failed_run(self, client, mock_database):
        mock_database.fetchrow.return_value = _run_row(
            "failed", details={"error": "ConnectionError: ledger down"}
        )

        data = client.get("/health").json()

        assert data["status"] == "degraded"
        assert data["components"]["ingestion"]["details"]["error"] == "ConnectionError: ledger down"

    def test_degraded_when_stale(self, client, mock_database):
        mock_database.fetchrow.return_value = _run_row("ok", minutes_ago=24 * 60)

        data = client.get("/health").json()

        assert data["status"] == "degraded"
        assert data["components"]["ingestion"]["details"]["stale"] is True

    def test_unhealthy_database(self, client, mock_database):
        mock_database.health_check.return_value = False

        data = client.get("/health").json()

        assert data["status"] == "unhealthy"
        mock_database.fetchrow.assert_not_called()

    def test_database_exception(self, client, mock_database):
        mock_database.health_check.side_effect = OSError("connection refused")

        data = client.get("/health").json()

        assert data["status"] == "unhealthy"
        assert "connection refused" in data["components"]["database"]["details"]["error"]
