"""Persistence of article rows and their lifecycle.

Every write opens its own session and commits immediately, so the stages of
one pipeline run are persisted independently of each other. Status writes go
through the lifecycle check in ``articlepipe.orchestrator.state``.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from articlepipe.db.models import Article
from articlepipe.orchestrator.state import FAILED, QUEUED, can_transition, is_terminal
from articlepipe.schemas.article import ArticleParams
from articlepipe.services.errors import (
    ArticleFinalized,
    ArticleNotFound,
    InvalidStatusTransition,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ArticleStore:
    """Async repository for ``Article`` rows."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create_article(
        self,
        url: str,
        format: str,
        length: str,
        language: Optional[str] = None,
        style: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> Article:
        """Insert a new article in the ``queued`` state."""
        now = _now()
        article = Article(
            url=url,
            format=format,
            length=length,
            language=language,
            style=style,
            owner_id=owner_id,
            status=QUEUED,
            created_at=now,
            updated_at=now,
        )
        async with self._session_factory() as session:
            session.add(article)
            await session.commit()
            await session.refresh(article)
        logger.info(f"Created article {article.id} ({format}/{length}) for {url}")
        return article

    async def get_article(self, article_id: int) -> Article:
        async with self._session_factory() as session:
            article = await session.get(Article, article_id)
            if article is None:
                raise ArticleNotFound(article_id)
            return article

    async def list_articles(
        self,
        owner_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Article]:
        """List articles newest first, optionally restricted to one owner."""
        stmt = select(Article).order_by(Article.created_at.desc(), Article.id.desc())
        if owner_id is not None:
            stmt = stmt.where(Article.owner_id == owner_id)
        stmt = stmt.limit(limit).offset(offset)

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def delete_article(self, article_id: int) -> None:
        async with self._session_factory() as session:
            article = await session.get(Article, article_id)
            if article is None:
                raise ArticleNotFound(article_id)
            await session.delete(article)
            await session.commit()
        logger.info(f"Deleted article {article_id}")

    async def get_params(self, article_id: int) -> ArticleParams:
        """Load the processing parameters of an article."""
        article = await self.get_article(article_id)
        return ArticleParams.model_validate(article)

    async def set_status(
        self,
        article_id: int,
        status: str,
        error_message: Optional[str] = None,
    ) -> None:
        """Move an article to ``status``.

        ``failed`` requires an error message; every other status clears it.
        Re-applying the current status only refreshes ``updated_at``; on a
        terminal row the stored error message is kept as well.

        Raises:
            ArticleNotFound: No row for ``article_id``
            InvalidStatusTransition: The write would move backwards or leave
                a terminal state
            ValueError: ``failed`` without an error message
        """
        if status == FAILED and not error_message:
            raise ValueError("failed status requires an error message")

        async with self._session_factory() as session:
            article = await session.get(Article, article_id)
            if article is None:
                raise ArticleNotFound(article_id)
            if not can_transition(article.status, status):
                raise InvalidStatusTransition(article_id, article.status, status)

            # a terminal row keeps its outcome; re-applying it only touches updated_at
            if not is_terminal(article.status):
                article.status = status
                article.error_message = error_message if status == FAILED else None
            article.updated_at = _now()
            await session.commit()

        logger.debug(f"Article {article_id} status -> {status}")

    async def _update(self, article_id: int, **fields) -> None:
        """Write artifact fields; rows in a terminal state are read-only."""
        async with self._session_factory() as session:
            article = await session.get(Article, article_id)
            if article is None:
                raise ArticleNotFound(article_id)
            if is_terminal(article.status):
                raise ArticleFinalized(article_id, article.status)
            for name, value in fields.items():
                setattr(article, name, value)
            article.updated_at = _now()
            await session.commit()

    async def save_summary(self, article_id: int, original_content: str, summary: str) -> None:
        await self._update(article_id, original_content=original_content, summary=summary)

    async def save_title(self, article_id: int, title: str) -> None:
        await self._update(article_id, title=title)

    async def save_thumbnail_path(self, article_id: int, thumbnail_path: str) -> None:
        await self._update(article_id, thumbnail_path=thumbnail_path)

    async def save_audio_path(self, article_id: int, audio_file_path: str) -> None:
        await self._update(article_id, audio_file_path=audio_file_path)

    async def save_video_path(
        self,
        article_id: int,
        video_file_path: str,
        duration_seconds: int,
    ) -> None:
        await self._update(
            article_id,
            video_file_path=video_file_path,
            duration_seconds=duration_seconds,
        )
