"""
Database engine configuration for articlepipe.

Provides an async SQLAlchemy engine, SQLite PRAGMA configuration
and session management.
"""
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from articlepipe.config import settings


def configure_sqlite_pragmas(dbapi_conn, connection_record):
    """
    Configure SQLite PRAGMA settings for concurrent pipeline writers.

    - WAL mode: readers polling an article do not block pipeline writes
    - Foreign keys: enable referential integrity
    - Busy timeout: wait up to 5s for locks
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def make_engine(database_url: str, **kwargs) -> AsyncEngine:
    """Create an async engine, registering PRAGMAs for SQLite URLs."""
    new_engine = create_async_engine(database_url, echo=False, **kwargs)
    if new_engine.dialect.name == "sqlite":
        # Use sync_engine for aiosqlite compatibility
        event.listens_for(new_engine.sync_engine, "connect")(configure_sqlite_pragmas)
    return new_engine


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False keeps loaded rows usable after commit
    return async_sessionmaker(bind, expire_on_commit=False, class_=AsyncSession)


engine = make_engine(settings.storage.database_url)
async_session = make_session_factory(engine)


async def shutdown():
    """Dispose of engine and close all connections."""
    await engine.dispose()
