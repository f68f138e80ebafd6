"""Capability registry.

Builds an ``ArticleProcessor`` wired with the concrete adapters selected by
configuration:

- Gemini for extraction, summaries, titles and thumbnails
- ElevenLabs for audio (only when an API key is configured)
- fal.ai Sora 2 for video (only when an API key is configured)
- S3-compatible storage for artifacts
- APNs for notifications (no-op without a token)
"""

from __future__ import annotations

import logging
from typing import Optional

from articlepipe.config import Settings, settings as default_settings
from articlepipe.orchestrator.pipeline import ArticleProcessor
from articlepipe.services.apns import APNSNotifier
from articlepipe.services.elevenlabs import ElevenLabsSynthesizer
from articlepipe.services.fal_client import FalClient
from articlepipe.services.file_manager import FileManager
from articlepipe.services.gemini import (
    GeminiSummarizer,
    GeminiThumbnailGenerator,
    GeminiTitleGenerator,
)
from articlepipe.services.job_store import ArticleStore
from articlepipe.services.storage import S3ArtifactStore
from articlepipe.services.video_synthesis import FalVideoSynthesizer

logger = logging.getLogger(__name__)


def build_processor(store: ArticleStore, config: Optional[Settings] = None) -> ArticleProcessor:
    """Return an ArticleProcessor using the adapters configured in ``config``.

    Args:
        store: Persistence layer the processor writes to.
        config: Settings to read; defaults to the module-level singleton.
    """
    cfg = config or default_settings

    audio = None
    if cfg.elevenlabs.api_key:
        audio = ElevenLabsSynthesizer(
            cfg.elevenlabs.api_key,
            voice_id=cfg.elevenlabs.voice_id,
            model_id=cfg.elevenlabs.model_id,
            multilingual_model_id=cfg.elevenlabs.multilingual_model_id,
            stability=cfg.elevenlabs.stability,
            similarity_boost=cfg.elevenlabs.similarity_boost,
            base_url=cfg.elevenlabs.base_url,
            timeout=cfg.elevenlabs.timeout_seconds,
        )
    else:
        logger.warning("ElevenLabs API key not configured; audio articles will fail")

    video = None
    if cfg.fal.api_key:
        video = FalVideoSynthesizer(
            FalClient(
                cfg.fal.api_key,
                queue_url=cfg.fal.queue_url,
                model=cfg.fal.model,
                timeout=cfg.fal.timeout_seconds,
            ),
            aspect_ratio=cfg.fal.aspect_ratio,
            poll_interval=cfg.fal.poll_interval,
            max_attempts=cfg.fal.poll_max_attempts,
            file_manager=FileManager(cfg.storage.tmp_dir),
        )
    else:
        logger.warning("fal API key not configured; video articles will fail")

    logger.debug(
        "Routing text to %s, images to %s", cfg.gemini.text_model, cfg.gemini.image_model
    )
    return ArticleProcessor(
        store,
        summarizer=GeminiSummarizer(cfg.gemini.text_model),
        title_generator=GeminiTitleGenerator(cfg.gemini.text_model),
        thumbnail_generator=GeminiThumbnailGenerator(cfg.gemini.image_model),
        artifact_store=S3ArtifactStore(
            endpoint=cfg.storage.endpoint,
            bucket_name=cfg.storage.bucket_name,
            region=cfg.storage.region,
            access_key=cfg.storage.access_key,
            secret_key=cfg.storage.secret_key,
            public_url=cfg.storage.public_url,
        ),
        audio_synthesizer=audio,
        video_synthesizer=video,
        notifier=APNSNotifier(
            cfg.notifications.apns_token,
            device_token=cfg.notifications.device_token,
            bundle_id=cfg.notifications.bundle_id,
            production=cfg.notifications.production,
            timeout=cfg.notifications.timeout_seconds,
        ),
        default_title=cfg.pipeline.default_title,
        default_style=cfg.pipeline.default_style,
        default_language=cfg.pipeline.default_language,
    )


async def close_processor(processor: ArticleProcessor) -> None:
    """Close the HTTP clients held by the processor's adapters (for shutdown)."""
    clients = [processor.audio_synthesizer, processor.notifier]
    if isinstance(processor.video_synthesizer, FalVideoSynthesizer):
        clients.append(processor.video_synthesizer.client)
    for client in clients:
        close = getattr(client, "close", None)
        if close is not None:
            await close()
