"""Video synthesis sub-pipeline: submit, poll, fetch result, download.

Remote generation is asynchronous on fal's side, so a run is:

1. submit the prompt and get a request id;
2. sleep ``poll_interval`` and query the status, at most ``max_attempts``
   times, until the request is COMPLETED or FAILED;
3. fetch the result document and locate the video URL in it;
4. download the video into a temporary file for upload.

Running out of attempts raises ``SynthesisTimeoutError`` so callers can tell
a slow generation apart from a remote failure.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import httpx

from articlepipe.schemas.fal import FalStatusResponse, FalSubmitRequest
from articlepipe.services.base import VideoSynthesizer
from articlepipe.services.errors import SynthesisError, SynthesisTimeoutError
from articlepipe.services.fal_client import FalClient
from articlepipe.services.file_manager import FileManager

logger = logging.getLogger(__name__)

PENDING_STATES = frozenset({"PENDING", "PROCESSING"})


def _nested_str(data: Any, *keys: str) -> Optional[str]:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    if isinstance(data, str) and data:
        return data
    return None


def extract_video_url(result: dict[str, Any]) -> Optional[str]:
    """Locate the video URL in a fal result document.

    Candidates are checked in order: ``url``, ``video.url``,
    ``data.video.url``, ``data.url``. Returns None when none is a string.
    """
    for path in (("url",), ("video", "url"), ("data", "video", "url"), ("data", "url")):
        url = _nested_str(result, *path)
        if url:
            return url
    return None


def _error_text(error: Any) -> str:
    """Render a remote error that may arrive as a string or a JSON object."""
    if not error:
        return "unknown error"
    if isinstance(error, dict):
        for key in ("message", "detail"):
            if isinstance(error.get(key), str):
                return error[key]
    return str(error)


def extract_inline_video_url(status: FalStatusResponse) -> Optional[str]:
    """Fallback for COMPLETED statuses that carry the output inline."""
    if not status.output:
        return None
    return _nested_str(status.output, "video") or _nested_str(status.output, "url")


class FalVideoSynthesizer(VideoSynthesizer):
    """VideoSynthesizer backed by the fal.ai queue API."""

    def __init__(
        self,
        client: FalClient,
        *,
        aspect_ratio: str = "16:9",
        poll_interval: float = 5.0,
        max_attempts: int = 60,
        file_manager: Optional[FileManager] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.aspect_ratio = aspect_ratio
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.file_manager = file_manager or FileManager()
        self._sleep = sleep

    async def generate_video(self, prompt: str, duration_seconds: int) -> str:
        if not self.client.api_key:
            raise SynthesisError("FAL_API_KEY not set")

        request = FalSubmitRequest(
            prompt=prompt,
            aspect_ratio=self.aspect_ratio,
            duration=duration_seconds,
        )
        try:
            request_id = await self.client.submit(request)
        except (httpx.HTTPError, ValueError) as e:
            raise SynthesisError(f"failed to submit request: {e}") from e

        return await self._poll(request_id)

    async def _poll(self, request_id: str) -> str:
        poll_start = time.monotonic()

        for attempt in range(1, self.max_attempts + 1):
            await self._sleep(self.poll_interval)

            try:
                status = await self.client.get_status(request_id)
            except (httpx.HTTPError, ValueError) as e:
                raise SynthesisError(f"failed to check status: {e}") from e

            if status.status in PENDING_STATES:
                logger.debug(
                    "Request %s still %s (attempt %d/%d)",
                    request_id, status.status, attempt, self.max_attempts,
                )
                continue

            if status.status == "COMPLETED":
                logger.info(
                    f"Request {request_id} completed after {attempt} polls "
                    f"({time.monotonic() - poll_start:.1f}s)"
                )
                return await self._resolve_url(status)

            if status.status == "FAILED":
                raise SynthesisError(f"video generation failed: {_error_text(status.error)}")

            raise SynthesisError(f"unknown status: {status.status}")

        raise SynthesisTimeoutError(self.max_attempts, self.poll_interval)

    async def _resolve_url(self, status: FalStatusResponse) -> str:
        if status.response_url:
            try:
                result = await self.client.fetch_result(status.response_url)
            except (httpx.HTTPError, ValueError) as e:
                raise SynthesisError(f"failed to fetch video URL: {e}") from e
            url = extract_video_url(result)
            if url is None:
                raise SynthesisError(f"video URL not found in result response: {result}")
            return url

        url = extract_inline_video_url(status)
        if url is None:
            raise SynthesisError("video completed but no URL found in response")
        return url

    async def download(self, video_url: str, article_id: int) -> Path:
        dest = self.file_manager.new_video_path(article_id)
        try:
            size = await self.client.download(video_url, dest)
        except (httpx.HTTPError, OSError) as e:
            self.file_manager.discard(dest)
            raise SynthesisError(f"failed to download video: {e}") from e

        if size == 0:
            self.file_manager.discard(dest)
            raise SynthesisError("failed to download video: empty body")

        logger.info(f"Downloaded video for article {article_id} to {dest} ({size} bytes)")
        return dest

    def discard(self, path: Path) -> None:
        self.file_manager.discard(path)
