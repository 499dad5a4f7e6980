"""Tests for the database migration system."""

import pytest
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch


class FakeCursor:
    def __init__(self, rows):
        self.rows = rows

    async def fetchone(self):
        return self.rows[0] if self.rows else None

    def __aiter__(self):
        self._it = iter(self.rows)
        return self

    async def __anext__(self):
        try:
            return next(self._it)
        except StopIteration:
            raise StopAsyncIteration


class TestMigrationSystem:
    @pytest.fixture
    def mock_connection(self):
        conn = MagicMock()
        conn.version = 0
        conn.history = []

        async def execute(sql, params=None):
            if "MAX(version)" in sql:
                return FakeCursor([(conn.version,)])
            if "SELECT version, applied_at" in sql:
                return FakeCursor(conn.history)
            if "INSERT INTO schema_migrations" in sql:
                conn.version = params[0]
            return FakeCursor([])

        conn.execute = AsyncMock(side_effect=execute)
        tx = MagicMock()
        tx.__aenter__ = AsyncMock(return_value=None)
        tx.__aexit__ = AsyncMock(return_value=None)
        conn.transaction = MagicMock(return_value=tx)
        return conn

    @pytest.fixture
    def mock_get_connection(self, mock_connection):
        cm = MagicMock()
        cm.__aenter__ = AsyncMock(return_value=mock_connection)
        cm.__aexit__ = AsyncMock(return_value=None)
        return cm

    @pytest.mark.asyncio
    async def test_get_current_version_creates_table(self, mock_get_connection, mock_connection):
        with patch("meetgrid.db.migrations._get_connection", return_value=mock_get_connection):
            from meetgrid.db.migrations import get_current_version

            version = await get_current_version()

            create_call = mock_connection.execute.call_args_list[0]
            assert "CREATE TABLE IF NOT EXISTS schema_migrations" in create_call[0][0]
            assert version == 0

    @pytest.mark.asyncio
    async def test_get_current_version_returns_max(self, mock_get_connection, mock_connection):
        mock_connection.version = 5
        with patch("meetgrid.db.migrations._get_connection", return_value=mock_get_connection):
            from meetgrid.db.migrations import get_current_version

            assert await get_current_version() == 5

    @pytest.mark.asyncio
    async def test_apply_migration_skips_if_already_applied(self, mock_get_connection, mock_connection):
        mock_connection.version = 5
        with patch("meetgrid.db.migrations._get_connection", return_value=mock_get_connection):
            from meetgrid.db.migrations import apply_migration

            assert await apply_migration(3, "SELECT 1;", "test") is False
            mock_connection.transaction.assert_not_called()

    @pytest.mark.asyncio
    async def test_apply_migration_applies_new_migration(self, mock_get_connection, mock_connection):
        mock_connection.version = 2
        with patch("meetgrid.db.migrations._get_connection", return_value=mock_get_connection):
            from meetgrid.db.migrations import apply_migration

            assert await apply_migration(3, "CREATE TABLE test (id INT);", "test migration") is True

            executed = [c[0][0] for c in mock_connection.execute.call_args_list]
            assert "CREATE TABLE test (id INT);" in executed
            mock_connection.transaction.assert_called_once()
            assert mock_connection.version == 3

    def test_discover_migrations(self):
        from meetgrid.db.migrations import discover_migrations

        migrations = discover_migrations()
        assert [m["version"] for m in migrations] == [1, 2]
        assert migrations[0]["description"] == "events_and_schedules"
        assert "CREATE TABLE IF NOT EXISTS events" in migrations[0]["path"].read_text()

    @pytest.mark.asyncio
    async def test_get_pending_migrations_excludes_applied(self, mock_get_connection, mock_connection):
        mock_connection.version = 1
        with patch("meetgrid.db.migrations._get_connection", return_value=mock_get_connection):
            from meetgrid.db.migrations import get_pending_migrations

            versions = [m["version"] for m in await get_pending_migrations()]
            assert versions == [2]

    @pytest.mark.asyncio
    async def test_run_migrations_applies_pending(self, mock_get_connection, mock_connection):
        with patch("meetgrid.db.migrations._get_connection", return_value=mock_get_connection):
            from meetgrid.db.migrations import run_migrations

            assert await run_migrations() == 2
            assert mock_connection.version == 2

    @pytest.mark.asyncio
    async def test_get_migration_history_returns_list(self, mock_get_connection, mock_connection):
        mock_connection.history = [
            (1, datetime(2025, 1, 1, tzinfo=UTC), "events_and_schedules"),
            (2, datetime(2025, 1, 2, tzinfo=UTC), "availabilities"),
        ]
        with patch("meetgrid.db.migrations._get_connection", return_value=mock_get_connection):
            from meetgrid.db.migrations import get_migration_history

            history = await get_migration_history()

            assert [h["version"] for h in history] == [1, 2]
            assert history[0]["applied_at"] == "2025-01-01T00:00:00+00:00"


class TestSchemaModule:
    @pytest.mark.asyncio
    async def test_ensure_schema_runs_migrations(self):
        with patch("meetgrid.db.schema.get_current_version", new_callable=AsyncMock) as mock_version, \
             patch("meetgrid.db.schema.run_migrations", new_callable=AsyncMock) as mock_run:
            mock_version.return_value = 0
            mock_run.return_value = 2

            from meetgrid.db.schema import _ensure_schema

            await _ensure_schema()

            mock_version.assert_called()
            mock_run.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_schema_info_returns_dict(self):
        with patch("meetgrid.db.schema.get_current_version", new_callable=AsyncMock) as mock_version, \
             patch("meetgrid.db.schema.get_migration_history", new_callable=AsyncMock) as mock_history:
            mock_version.return_value = 2
            mock_history.return_value = [{"version": 1}, {"version": 2}]

            from meetgrid.db.schema import get_schema_info

            info = await get_schema_info()

            assert info["current_version"] == 2
            assert len(info["migration_history"]) == 2
