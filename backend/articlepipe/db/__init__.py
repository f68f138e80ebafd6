"""
Database module for articlepipe.

Provides the async SQLAlchemy engine, session management,
and schema initialization.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from articlepipe.db.engine import (
    async_session,
    engine,
    make_engine,
    make_session_factory,
    shutdown,
)
from articlepipe.db.models import Article, Base

logger = logging.getLogger(__name__)


async def init_database(bind: AsyncEngine | None = None) -> None:
    """Initialize database schema on first run."""
    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready (%s)", target.url.render_as_string(hide_password=True))


__all__ = [
    "Article",
    "Base",
    "engine",
    "async_session",
    "init_database",
    "make_engine",
    "make_session_factory",
    "shutdown",
]
