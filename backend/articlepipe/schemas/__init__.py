"""Pydantic schemas for articles, notifications and remote APIs."""

from articlepipe.schemas.article import (
    ArticleCreate,
    ArticleDetail,
    ArticleListItem,
    ArticleParams,
)
from articlepipe.schemas.notification import NotificationEvent

__all__ = [
    "ArticleCreate",
    "ArticleDetail",
    "ArticleListItem",
    "ArticleParams",
    "NotificationEvent",
]
