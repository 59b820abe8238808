"""
Database connection manager
Async SQLAlchemy engine shared by every crawl (PostgreSQL, MySQL or SQLite).
"""
from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from readstory.config.config import DATABASE_URL, DB_ECHO, DB_MAX_OVERFLOW, DB_POOL_SIZE
from readstory.utils.logger import logger


class DatabaseManager:
    """Owns the async engine and session factory."""

    def __init__(self) -> None:
        self.engine: AsyncEngine | None = None
        self.SessionLocal: async_sessionmaker[AsyncSession] | None = None
        self._initialized = False

    def initialize(self, database_url: str | None = None) -> None:
        """Create the engine; safe to call more than once."""
        if self._initialized:
            logger.warning("[DB] Database already initialized")
            return

        url = make_url(database_url or DATABASE_URL)
        engine_kwargs: dict = {"echo": DB_ECHO, "pool_pre_ping": True}
        if url.get_backend_name() == "sqlite":
            if url.database and url.database != ":memory:" and not url.database.startswith("file:"):
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        else:
            engine_kwargs.update(
                pool_size=DB_POOL_SIZE,
                max_overflow=DB_MAX_OVERFLOW,
                pool_recycle=3600,
            )

        logger.info(f"[DB] Connecting to {url.get_backend_name()} database: {url.render_as_string(hide_password=True)}")
        self.engine = create_async_engine(url, **engine_kwargs)
        self.SessionLocal = async_sessionmaker(self.engine, expire_on_commit=False)
        self._initialized = True

    async def create_tables(self) -> None:
        """Create all tables if they do not exist yet."""
        if not self._initialized or self.engine is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        from readstory.database.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("[DB] Tables ready")

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """Session scope: commit on success, roll back and re-raise on error."""
        if not self._initialized or self.SessionLocal is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        async with self.SessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.error(f"[DB] Session error: {e}")
                raise

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("[DB] Connection pool closed")
        self.engine = None
        self.SessionLocal = None
        self._initialized = False


# Global database manager instance
db_manager = DatabaseManager()
