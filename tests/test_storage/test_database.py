"""Tests for the Database wrapper that do not need a server."""

from unittest.mock import AsyncMock

import asyncpg
import pytest

from src.storage.database import Database

URL = "postgresql://u:p@db:5432/x"


class TestDatabase:
    """Pool lifecycle guards."""

    def test_pool_before_connect(self):
        db = Database(database_url=URL)

        assert not db.is_connected
        with pytest.raises(RuntimeError):
            db.pool

    @pytest.mark.asyncio
    async def test_close_without_pool(self):
        await Database(database_url=URL).close()

    @pytest.mark.asyncio
    async def test_health_check_without_pool(self):
        assert await Database(database_url=URL).health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_postgres_error(self):
        db = Database(database_url=URL)
        db.fetchval = AsyncMock(side_effect=asyncpg.PostgresError("down"))

        assert await db.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_ok(self):
        db = Database(database_url=URL)
        db.fetchval = AsyncMock(return_value=1)

        assert await db.health_check() is True
