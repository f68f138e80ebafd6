"""Article processing orchestrator.

Runs one article end to end:
- processing status, parameter load
- extraction + summarization (critical)
- title (non-critical, falls back to a default)
- thumbnail (non-critical)
- audio or video synthesis depending on the format (critical)
- ready status and success notification

A critical failure marks the article failed with a readable error message
and sends exactly one failure notification. Nothing is retried here; the
capability clients own their transport-level retries.
"""

import asyncio
import logging
import time
from contextlib import contextmanager
from typing import Dict, Optional

from articlepipe.orchestrator.state import FAILED, PROCESSING, READY
from articlepipe.schemas.article import ArticleParams
from articlepipe.schemas.notification import NotificationEvent
from articlepipe.services.base import (
    ArtifactStore,
    AudioSynthesizer,
    Notifier,
    NullNotifier,
    Summarizer,
    ThumbnailGenerator,
    TitleGenerator,
    VideoSynthesizer,
)
from articlepipe.services.errors import SynthesisError
from articlepipe.services.job_store import ArticleStore
from articlepipe.services.storage import audio_key, thumbnail_key, video_key

logger = logging.getLogger(__name__)

# Requested video length in seconds per article length code
VIDEO_DURATIONS: Dict[str, int] = {"s": 10, "m": 30, "l": 60}
DEFAULT_VIDEO_DURATION = 30


def video_duration_for(length: str) -> int:
    return VIDEO_DURATIONS.get(length, DEFAULT_VIDEO_DURATION)


class StageFailed(Exception):
    """Raised inside a run when a critical stage fails.

    ``reason`` is the short form sent with the failure notification; the
    full message (reason plus cause) is persisted as ``error_message``.
    """

    def __init__(self, reason: str, cause: object):
        self.reason = reason
        super().__init__(f"{reason}: {cause}")


@contextmanager
def _stage(name: str, article_id: int, step_log: Dict[str, float]):
    step_start = time.monotonic()
    logger.info(f"Article {article_id}: starting {name} step")
    try:
        yield
    finally:
        step_duration = time.monotonic() - step_start
        step_log[name] = step_duration
        logger.info(f"Article {article_id}: {name} step finished in {step_duration:.2f}s")


class ArticleProcessor:
    """Sequences the capability calls for one article and persists results.

    Every collaborator is injected; ``audio_synthesizer`` and
    ``video_synthesizer`` may be None, in which case articles of that format
    fail at the synthesis stage.
    """

    def __init__(
        self,
        store: ArticleStore,
        *,
        summarizer: Summarizer,
        title_generator: TitleGenerator,
        thumbnail_generator: ThumbnailGenerator,
        artifact_store: ArtifactStore,
        audio_synthesizer: Optional[AudioSynthesizer] = None,
        video_synthesizer: Optional[VideoSynthesizer] = None,
        notifier: Optional[Notifier] = None,
        default_title: str = "Untitled Article",
        default_style: str = "summarize",
        default_language: str = "en",
    ):
        self.store = store
        self.summarizer = summarizer
        self.title_generator = title_generator
        self.thumbnail_generator = thumbnail_generator
        self.artifact_store = artifact_store
        self.audio_synthesizer = audio_synthesizer
        self.video_synthesizer = video_synthesizer
        self.notifier = notifier or NullNotifier()
        self.default_title = default_title
        self.default_style = default_style
        self.default_language = default_language

    async def process(self, article_id: int) -> None:
        """Run the whole pipeline for ``article_id``.

        Never raises: every outcome is recorded on the article row. The
        caller must not run the same article twice concurrently. If the task
        is cancelled mid-run the article is marked failed before the
        cancellation propagates.
        """
        pipeline_start = time.monotonic()
        step_log: Dict[str, float] = {}
        logger.info(f"Starting to process article {article_id}")

        try:
            await self.store.set_status(article_id, PROCESSING)
        except Exception as e:
            logger.error(f"Failed to update article {article_id} status to processing: {e}")
            return

        try:
            title = await self._run_stages(article_id, step_log)
            await self._mark_ready(article_id)
        except StageFailed as e:
            logger.error(f"Article {article_id} failed: {e}")
            await self._fail(article_id, e)
            return
        except asyncio.CancelledError:
            # the row must not stay in processing once the worker is gone
            logger.warning(f"Article {article_id} interrupted while processing")
            await asyncio.shield(
                self._fail(article_id, StageFailed("Processing interrupted", "worker shut down"))
            )
            raise

        logger.info(
            f"Article {article_id} ready in {time.monotonic() - pipeline_start:.2f}s "
            f"(steps: {', '.join(f'{k}={v:.2f}s' for k, v in step_log.items())})"
        )
        await self._notify(NotificationEvent.ready(article_id, title))

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _run_stages(self, article_id: int, step_log: Dict[str, float]) -> str:
        """Run every stage in order and return the title to announce."""
        params = await self._load_params(article_id)

        with _stage("summarize", article_id, step_log):
            original_content, summary = await self._summarize(params)

        with _stage("title", article_id, step_log):
            title = await self._title(article_id, original_content)

        with _stage("thumbnail", article_id, step_log):
            await self._thumbnail(article_id, summary)

        if params.format == "audio":
            with _stage("audio", article_id, step_log):
                await self._synthesize_audio(params, summary)
        elif params.format == "video":
            with _stage("video", article_id, step_log):
                await self._synthesize_video(params, summary)

        return title

    async def _mark_ready(self, article_id: int) -> None:
        try:
            await self.store.set_status(article_id, READY)
        except Exception as e:
            logger.error(f"Failed to mark article {article_id} ready: {e}")
            raise StageFailed("Failed to update status", e) from e

    async def _load_params(self, article_id: int) -> ArticleParams:
        try:
            return await self.store.get_params(article_id)
        except Exception as e:
            raise StageFailed("Failed to get article details", e) from e

    async def _summarize(self, params: ArticleParams) -> tuple[str, str]:
        style = params.style or self.default_style
        language = params.language or self.default_language
        logger.info(
            f"Summarizing article {params.id} with length {params.length} and style {style}"
        )
        try:
            original_content, summary = await self.summarizer.summarize(
                params.url, params.length, language, style
            )
        except Exception as e:
            raise StageFailed("Failed to summarize", e) from e

        try:
            await self.store.save_summary(params.id, original_content, summary)
        except Exception as e:
            raise StageFailed("Failed to save summary", e) from e

        return original_content, summary

    async def _title(self, article_id: int, content: str) -> str:
        # Titles come from the full text, not the summary
        try:
            title = await self.title_generator.generate_title(content)
        except Exception as e:
            logger.warning(f"Failed to generate title for article {article_id}: {e}")
            title = self.default_title

        try:
            await self.store.save_title(article_id, title)
        except Exception as e:
            logger.warning(f"Failed to save title for article {article_id}: {e}")
        return title

    async def _thumbnail(self, article_id: int, summary: str) -> None:
        try:
            image = await self.thumbnail_generator.generate_thumbnail(summary)
            url = await self.artifact_store.upload(thumbnail_key(article_id), image, "image/png")
            await self.store.save_thumbnail_path(article_id, url)
        except Exception as e:
            logger.warning(f"Skipping thumbnail for article {article_id}: {e}")
            return
        logger.info(f"Thumbnail for article {article_id} stored at {url}")

    async def _synthesize_audio(self, params: ArticleParams, summary: str) -> None:
        try:
            if self.audio_synthesizer is None:
                raise SynthesisError("no audio synthesizer configured")
            audio = await self.audio_synthesizer.synthesize(summary, params.language, params.style)
        except Exception as e:
            raise StageFailed("Failed to convert to speech", e) from e

        try:
            url = await self.artifact_store.upload(audio_key(params.id), audio, "audio/mpeg")
        except Exception as e:
            raise StageFailed("Failed to upload audio", e) from e

        try:
            await self.store.save_audio_path(params.id, url)
        except Exception as e:
            raise StageFailed("Failed to save audio path", e) from e

    async def _synthesize_video(self, params: ArticleParams, summary: str) -> None:
        duration = video_duration_for(params.length)
        logger.info(f"Generating {duration}s video for article {params.id}")
        try:
            if self.video_synthesizer is None:
                raise SynthesisError("no video synthesizer configured")
            video_url = await self.video_synthesizer.generate_video(summary, duration)
        except Exception as e:
            raise StageFailed("Failed to generate video", e) from e

        try:
            video_path = await self.video_synthesizer.download(video_url, params.id)
        except Exception as e:
            raise StageFailed("Failed to download video", e) from e

        try:
            url = await self.artifact_store.upload_file(video_key(params.id), video_path, "video/mp4")
        except Exception as e:
            raise StageFailed("Failed to upload video", e) from e
        finally:
            self.video_synthesizer.discard(video_path)

        try:
            await self.store.save_video_path(params.id, url, duration)
        except Exception as e:
            raise StageFailed("Failed to save video path", e) from e

    # ------------------------------------------------------------------
    # Outcome handling
    # ------------------------------------------------------------------

    async def _fail(self, article_id: int, error: StageFailed) -> None:
        try:
            await self.store.set_status(article_id, FAILED, str(error))
        except Exception as e:
            logger.error(f"Failed to mark article {article_id} failed: {e}")
        await self._notify(NotificationEvent.failed(article_id, error.reason))

    async def _notify(self, event: NotificationEvent) -> None:
        try:
            await self.notifier.notify(event)
        except Exception as e:
            logger.warning(f"Notification for article {event.article_id} failed: {e}")
