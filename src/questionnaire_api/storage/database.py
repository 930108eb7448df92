"""Database connection management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from questionnaire_api.config import SqliteStorageConfig
from questionnaire_api.observability.logging import get_logger
from questionnaire_api.storage.models import Base

logger = get_logger(__name__)


class DatabaseManager:
    """Manages the database engine and sessions.

    One instance is created per application and shared by every request
    handler; SQLite serializes the writes.
    """

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_tables(self) -> None:
        """Create all tables defined in models (no-op for existing tables)."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session with automatic cleanup."""
        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Database health check failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the database engine."""
        await self._engine.dispose()


def create_engine_from_config(config: SqliteStorageConfig) -> AsyncEngine:
    """Create the aiosqlite engine for the configured database file."""
    parent = Path(config.db_path).parent
    if not parent.exists():
        parent.mkdir(parents=True, exist_ok=True)

    return create_async_engine(
        config.connection_url,
        echo=False,
        connect_args={"check_same_thread": False},
    )


def create_database_manager(config: SqliteStorageConfig) -> DatabaseManager:
    """Create a DatabaseManager from storage config."""
    engine = create_engine_from_config(config)
    return DatabaseManager(engine)

