"""
Pytest configuration and fixtures for calendar adapter tests.

Provides a fixed clock, stored-credential fixtures, an in-memory credential
database, and httpx mock-transport helpers for Microsoft Graph.
"""

import uuid
from types import SimpleNamespace
from typing import AsyncGenerator, Callable
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.auth.microsoft_oauth import MicrosoftOAuthFlow
from src.models import Base
from tests.helpers import NOW


@pytest.fixture
def valid_key() -> dict:
    """Key blob whose access token is valid for another hour."""
    return {
        "access_token": "cached-access-token",
        "refresh_token": "stored-refresh-token",
        "expiry_date": NOW + 3600,
    }


@pytest.fixture
def expired_key() -> dict:
    """Key blob whose access token expired a minute ago."""
    return {
        "access_token": "stale-access-token",
        "refresh_token": "stored-refresh-token",
        "expiry_date": NOW - 60,
    }


@pytest.fixture
def credential_id() -> uuid.UUID:
    return uuid.UUID("6f1c2b8e-3d4a-4e5f-9a0b-1c2d3e4f5a6b")


@pytest.fixture
def make_credential(credential_id) -> Callable[[dict], SimpleNamespace]:
    """Factory for credential-like objects (id + key)."""

    def _make(key: dict) -> SimpleNamespace:
        return SimpleNamespace(id=credential_id, key=key)

    return _make


@pytest.fixture
def mock_store() -> AsyncMock:
    """Credential store that records update calls."""
    store = AsyncMock()
    store.update.return_value = None
    return store


@pytest.fixture
def recorded_requests() -> list[httpx.Request]:
    """Requests seen by the mock transport, in order."""
    return []


@pytest.fixture
def make_http_client(recorded_requests) -> Callable:
    """
    Factory for an httpx.AsyncClient backed by a handler function.

    The handler receives each request and returns an httpx.Response.
    """

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        def _recording_handler(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            return handler(request)

        return httpx.AsyncClient(transport=httpx.MockTransport(_recording_handler))

    return _make


@pytest.fixture
def make_oauth_flow(make_http_client) -> Callable:
    """Factory for a MicrosoftOAuthFlow talking to a mock token endpoint."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> MicrosoftOAuthFlow:
        return MicrosoftOAuthFlow(
            client_id="client-id",
            client_secret="client-secret",
            http_client=make_http_client(handler),
        )

    return _make


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Async session factory over a fresh in-memory SQLite database.

    Tables are created before the test and the engine disposed afterwards.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)

    try:
        yield async_sessionmaker(engine, expire_on_commit=False)
    finally:
        await engine.dispose()
