"""Abstract capability interfaces the pipeline orchestrator depends on.

The orchestrator never talks to a concrete provider: each external
capability is injected as an implementation of one of these classes, so
tests can substitute fakes and providers can be swapped through the
registry.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from articlepipe.schemas.notification import NotificationEvent


class Summarizer(ABC):
    """Extracts an article from its URL and summarizes it."""

    @abstractmethod
    async def summarize(
        self,
        url: str,
        length: str,
        language: str,
        style: str,
    ) -> tuple[str, str]:
        """Produce the clean article text and its summary.

        Args:
            url: Link to the article.
            length: Target length code ("s", "m" or "l").
            language: Language the summary should be written in.
            style: Presentation style (e.g., "summarize", "explain").

        Returns:
            (full_text, summary)

        Raises:
            ExtractionError: The article could not be extracted.
            SummarizationError: The extracted text could not be summarized.
        """
        ...


class TitleGenerator(ABC):
    @abstractmethod
    async def generate_title(self, content: str) -> str:
        """Return a short title for the article; raises TitleError."""
        ...


class ThumbnailGenerator(ABC):
    @abstractmethod
    async def generate_thumbnail(self, summary: str) -> bytes:
        """Return PNG bytes illustrating the summary; raises ThumbnailError."""
        ...


class AudioSynthesizer(ABC):
    @abstractmethod
    async def synthesize(
        self,
        text: str,
        language: Optional[str],
        style: Optional[str],
    ) -> bytes:
        """Return MP3 bytes narrating ``text``; raises SynthesisError."""
        ...


class VideoSynthesizer(ABC):
    """Generates a video remotely and fetches it locally."""

    @abstractmethod
    async def generate_video(self, prompt: str, duration_seconds: int) -> str:
        """Run remote generation and return the URL of the finished video.

        Raises:
            SynthesisError: Submission failed, the remote job failed or the
                result could not be resolved.
            SynthesisTimeoutError: The remote job did not finish in time.
        """
        ...

    @abstractmethod
    async def download(self, video_url: str, article_id: int) -> Path:
        """Download the video into a uniquely named temporary file."""
        ...

    @abstractmethod
    def discard(self, path: Path) -> None:
        """Remove a file returned by ``download`` once it is no longer needed."""
        ...


class ArtifactStore(ABC):
    """Durable storage returning publicly reachable URLs."""

    @abstractmethod
    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``key`` and return its URL; raises StorageError."""
        ...

    @abstractmethod
    async def upload_file(self, key: str, path: Path, content_type: str) -> str:
        """Store a local file under ``key`` and return its URL; raises StorageError."""
        ...


class Notifier(ABC):
    """Best-effort delivery of terminal-state notifications."""

    @abstractmethod
    async def notify(self, event: NotificationEvent) -> None:
        """Deliver ``event``. Implementations log failures and never raise."""
        ...


class NullNotifier(Notifier):
    """Notifier used when no delivery target is configured."""

    async def notify(self, event: NotificationEvent) -> None:
        return None
