"""
Unit tests for src/database.py

Tests table creation and transactional session handling against in-memory
SQLite.
"""

import pytest
from sqlalchemy import func, inspect, select
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from src.database import init_db, session_scope
from src.models import Credential


class TestInitDb:
    """Test development table creation."""

    @pytest.mark.asyncio
    async def test_creates_credentials_table(self):
        engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
        try:
            await init_db(engine)

            async with engine.connect() as connection:
                tables = await connection.run_sync(
                    lambda sync_connection: inspect(sync_connection).get_table_names()
                )
                indexes = await connection.run_sync(
                    lambda sync_connection: inspect(sync_connection).get_indexes("credentials")
                )
        finally:
            await engine.dispose()

        assert "credentials" in tables
        assert [index["name"] for index in indexes] == ["ix_credentials_user_type"]

    @pytest.mark.asyncio
    async def test_is_idempotent(self):
        engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
        try:
            await init_db(engine)
            await init_db(engine)
        finally:
            await engine.dispose()


class TestSessionScope:
    """Test commit and rollback behavior."""

    @pytest.mark.asyncio
    async def test_commits_on_success(self, session_factory):
        async with session_scope(session_factory) as session:
            session.add(Credential(type="office365_calendar", key={"access_token": "a"}))

        async with session_factory() as session:
            count = await session.scalar(select(func.count()).select_from(Credential))

        assert count == 1

    @pytest.mark.asyncio
    async def test_rolls_back_on_error(self, session_factory):
        """Should discard pending changes and re-raise."""
        with pytest.raises(RuntimeError):
            async with session_scope(session_factory) as session:
                session.add(Credential(type="office365_calendar", key={}))
                await session.flush()
                raise RuntimeError("abort")

        async with session_factory() as session:
            count = await session.scalar(select(func.count()).select_from(Credential))

        assert count == 0
