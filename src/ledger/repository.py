"""Run ledger: fetch_runs and fetch_errors tables."""

import logging
from typing import Any

from src.ledger.schemas import RunRecord, RunSource, RunStatus
from src.storage.database import Database

logger = logging.getLogger(__name__)

ERROR_MAX_CHARS = 4000

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS fetch_runs (
    id          SERIAL PRIMARY KEY,
    started_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    finished_at TIMESTAMPTZ,
    status      TEXT NOT NULL DEFAULT 'running'
        CHECK (status IN ('running', 'ok', 'failed')),
    source      TEXT NOT NULL DEFAULT 'scheduled',
    details     JSONB NOT NULL DEFAULT '{}'
);

CREATE INDEX IF NOT EXISTS idx_fetch_runs_started
    ON fetch_runs(started_at DESC);

CREATE TABLE IF NOT EXISTS fetch_errors (
    id      SERIAL PRIMARY KEY,
    feed_id TEXT NOT NULL,
    at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    error   TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_fetch_errors_feed_at
    ON fetch_errors(feed_id, at DESC);
"""


def _record_to_run(record) -> RunRecord:
    """Convert an asyncpg Record to a RunRecord."""
    return RunRecord(
        id=record["id"],
        started_at=record["started_at"],
        finished_at=record["finished_at"],
        status=RunStatus(record["status"]),
        source=record["source"],
        details=dict(record["details"]) if record["details"] else {},
    )


class RunLedger:
    """
    Append-only audit trail of ingestion runs.

    A run opens as "running" and is closed once as "ok" or "failed".
    Feed errors reference their run only through feed id and time.
    Storage errors from the ledger itself are not caught here.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_tables(self) -> None:
        """Create ledger tables (idempotent)."""
        await self._db.execute(_CREATE_TABLES_SQL)
        logger.info("Ledger tables ensured")

    async def start_run(self, source: RunSource) -> int:
        """Open a run; returns its id."""
        run_id = await self._db.fetchval(
            "INSERT INTO fetch_runs (status, source) VALUES ($1, $2) RETURNING id",
            RunStatus.RUNNING.value,
            source.value,
        )
        logger.info("Run %s started (%s)", run_id, source.value)
        return run_id

    async def finish_run(
        self,
        run_id: int,
        status: RunStatus,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Close a run with its final status and details."""
        await self._db.execute(
            """
            UPDATE fetch_runs
            SET finished_at = NOW(), status = $2, details = $3
            WHERE id = $1
            """,
            run_id,
            status.value,
            details or {},
        )
        logger.info("Run %s finished: %s", run_id, status.value)

    async def record_feed_error(self, feed_id: str, message: str) -> None:
        """Append a feed error; the message is truncated to 4000 chars."""
        await self._db.execute(
            "INSERT INTO fetch_errors (feed_id, error) VALUES ($1, $2)",
            feed_id,
            message[:ERROR_MAX_CHARS],
        )

    async def latest_run(self) -> RunRecord | None:
        """Most recently started run."""
        row = await self._db.fetchrow(
            "SELECT * FROM fetch_runs ORDER BY started_at DESC, id DESC LIMIT 1"
        )
        return _record_to_run(row) if row else None

    async def recent_errors(self, feed_id: str | None = None, limit: int = 50) -> list[dict]:
        """Latest feed errors, optionally for one feed."""
        if feed_id:
            rows = await self._db.fetch(
                "SELECT feed_id, at, error FROM fetch_errors "
                "WHERE feed_id = $1 ORDER BY at DESC LIMIT $2",
                feed_id, limit,
            )
        else:
            rows = await self._db.fetch(
                "SELECT feed_id, at, error FROM fetch_errors ORDER BY at DESC LIMIT $1",
                limit,
            )
        return [dict(r) for r in rows]
