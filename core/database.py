"""Async SQLAlchemy database engine and session management.

Provides the catalog's persistence layer with:
- Connection pooling (configurable pool_size/max_overflow, non-SQLite only)
- One short-lived session per operation so independent reads can be
  awaited concurrently
- Automatic session lifecycle (commit on success, rollback on error)
- Multi-database support (PostgreSQL via asyncpg, SQLite via aiosqlite)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from patterns.domain_config import DatabaseConfig

logger = logging.getLogger(__name__)


class Database:
    """Owns the async engine and the session factory.

    Built from a DatabaseConfig by the application factory and kept on
    ``app.state``; repositories receive it through FastAPI dependencies.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config

        engine_kwargs = {"echo": config.echo}
        if not config.is_sqlite:
            engine_kwargs.update(
                pool_size=config.pool_size,
                max_overflow=config.max_overflow,
                pool_pre_ping=True,
            )

        self.engine = create_async_engine(config.url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session that commits on success and rolls back on error."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    # -- Lifecycle hooks --

    async def create_all(self) -> None:
        """Create tables from model metadata (no migration support).

        Models must be imported before this runs so their tables are
        registered on ``Base.metadata``.
        """
        from core.models.base import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("db_tables_ready url=%s", self.engine.url.render_as_string(hide_password=True))

    async def dispose(self) -> None:
        """Dispose of the connection pool on shutdown."""
        await self.engine.dispose()
