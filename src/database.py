"""
Async engine and session factory for the credential store.

``session_scope()`` opens transactions for ``SQLAlchemyCredentialStore``,
from ``AsyncSessionLocal`` by default. Production settings are validated on import.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from src.config import Settings, get_settings
from src.models import Base

logger = logging.getLogger(__name__)


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Build the async engine; connection pooling only applies to server databases."""
    options = {"echo": settings.log_level == "DEBUG"}
    if settings.uses_postgresql:
        options.update(pool_size=5, pool_recycle=3600, pool_pre_ping=True)
    return create_async_engine(settings.async_database_url, **options)


settings = get_settings()
settings.validate_production_config()

async_engine = create_engine_from_settings(settings)

AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


@asynccontextmanager
async def session_scope(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Transactional session: commits on success, rolls back on error.

    Usage:
        async with session_scope() as session:
            session.add(credential)

    Args:
        session_factory: Factory to open the session from (defaults to AsyncSessionLocal)
    """
    async with (session_factory or AsyncSessionLocal)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(engine: Optional[AsyncEngine] = None) -> None:
    """Create missing tables. Development only; production uses Alembic."""
    engine = engine or async_engine
    logger.info(f"Creating tables on {engine.url.render_as_string(hide_password=True)}")
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)

