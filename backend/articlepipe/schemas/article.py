"""Pydantic schemas describing articles as seen by the pipeline and its clients."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ArticleFormat = Literal["text", "audio", "video"]
ArticleLength = Literal["s", "m", "l"]
ArticleStatus = Literal["queued", "processing", "ready", "failed"]


class ArticleParams(BaseModel):
    """Processing parameters the orchestrator loads before running stages."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    url: str
    format: ArticleFormat
    length: ArticleLength
    language: Optional[str] = None
    style: Optional[str] = None


class ArticleCreate(BaseModel):
    """Request body for submitting a new article."""

    url: str = Field(min_length=1, description="Link to the article to process")
    format: ArticleFormat = Field(description="text, audio or video")
    length: ArticleLength = Field(description="s (~1 min), m (~5 min) or l (full)")
    language: Optional[str] = None
    style: Optional[str] = Field(
        default=None,
        description="summarize, explain, simplify, detailed, bullet or story",
    )
    owner_id: Optional[str] = None


class ArticleDetail(BaseModel):
    """Full persisted view of an article, polled by clients."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: Optional[str] = None
    url: str
    format: ArticleFormat
    length: ArticleLength
    language: Optional[str] = None
    style: Optional[str] = None
    status: ArticleStatus
    title: Optional[str] = None
    original_content: Optional[str] = None
    summary: Optional[str] = None
    thumbnail_path: Optional[str] = None
    audio_file_path: Optional[str] = None
    video_file_path: Optional[str] = None
    duration_seconds: Optional[int] = None
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ArticleListItem(BaseModel):
    """Lightweight representation for list views."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    url: str
    format: ArticleFormat
    status: ArticleStatus
    title: Optional[str] = None
    thumbnail_path: Optional[str] = None
    created_at: datetime
