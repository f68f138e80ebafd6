"""
File management service for articlepipe.

Handles temporary on-disk artifacts (downloaded videos) with path traversal
protection. Files live under {base_dir}/videos/ and are removed once they
have been uploaded to durable storage.
"""
import logging
import time
import uuid
from pathlib import Path

from articlepipe.config import settings

logger = logging.getLogger(__name__)


class FileManager:
    """
    Manage temporary artifacts for article processing.

    Creates structured directories:
    - {base_dir}/videos/ - Downloaded videos awaiting upload

    Implements path traversal protection to prevent directory escape attacks.
    """

    def __init__(self, base_dir: str | Path | None = None):
        """
        Initialize FileManager with base directory.

        Args:
            base_dir: Root directory for temporary artifacts.
                     If None, uses settings.storage.tmp_dir
        """
        if base_dir is None:
            base_dir = settings.storage.tmp_dir

        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def get_video_dir(self) -> Path:
        """Get or create the directory holding downloaded videos."""
        video_dir = (self.base_dir / "videos").resolve()
        video_dir.mkdir(exist_ok=True)
        return video_dir

    def new_video_path(self, article_id: int) -> Path:
        """
        Reserve a unique path for a downloaded video.

        The name combines the article id, the current unix time and a random
        suffix, so concurrent downloads for the same article never collide.

        Raises:
            ValueError: If the resulting path escapes base_dir
        """
        filename = f"article_{article_id}_{int(time.time())}_{uuid.uuid4().hex[:8]}.mp4"
        filepath = (self.get_video_dir() / filename).resolve()

        if not filepath.is_relative_to(self.base_dir):
            raise ValueError("Invalid video path")

        return filepath

    def discard(self, path: Path) -> None:
        """Delete a temporary file, ignoring files that are already gone."""
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to remove temporary file %s: %s", path, e)
