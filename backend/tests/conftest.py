"""
Pytest configuration and fixtures for articlepipe tests.

External services are replaced with in-memory fakes implementing the
capability interfaces; the store runs against a temporary SQLite file.
"""

import os
import tempfile
from pathlib import Path
from types import SimpleNamespace

import pytest

# Keep the module-level engine and temp dir away from the working directory
_TEST_DIR = tempfile.mkdtemp(prefix="articlepipe_test_")
os.environ["ARTICLEPIPE_STORAGE__DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/default.db"
os.environ["ARTICLEPIPE_STORAGE__TMP_DIR"] = str(Path(_TEST_DIR) / "tmp")

from articlepipe.db import init_database, make_engine, make_session_factory
from articlepipe.orchestrator.pipeline import ArticleProcessor
from articlepipe.services.base import (
    ArtifactStore,
    AudioSynthesizer,
    Notifier,
    Summarizer,
    ThumbnailGenerator,
    TitleGenerator,
    VideoSynthesizer,
)
from articlepipe.services.errors import StorageError
from articlepipe.services.job_store import ArticleStore


class FakeSummarizer(Summarizer):
    def __init__(self, content="Full article text about otters.", summary="Otters hold hands."):
        self.content = content
        self.summary = summary
        self.error = None
        self.calls = []

    async def summarize(self, url, length, language, style):
        self.calls.append((url, length, language, style))
        if self.error:
            raise self.error
        return self.content, self.summary


class FakeTitleGenerator(TitleGenerator):
    def __init__(self, title="Why Otters Hold Hands"):
        self.title = title
        self.error = None
        self.calls = []

    async def generate_title(self, content):
        self.calls.append(content)
        if self.error:
            raise self.error
        return self.title


class FakeThumbnailGenerator(ThumbnailGenerator):
    def __init__(self):
        self.error = None
        self.calls = []

    async def generate_thumbnail(self, summary):
        self.calls.append(summary)
        if self.error:
            raise self.error
        return b"\x89PNG fake"


class FakeAudioSynthesizer(AudioSynthesizer):
    def __init__(self):
        self.error = None
        self.calls = []

    async def synthesize(self, text, language, style):
        self.calls.append((text, language, style))
        if self.error:
            raise self.error
        return b"ID3 fake mp3"


class FakeVideoSynthesizer(VideoSynthesizer):
    def __init__(self, tmp_dir: Path):
        self.tmp_dir = tmp_dir
        self.error = None
        self.download_error = None
        self.calls = []
        self.downloaded = []
        self.discarded = []

    async def generate_video(self, prompt, duration_seconds):
        self.calls.append((prompt, duration_seconds))
        if self.error:
            raise self.error
        return "https://cdn.test/video.mp4"

    async def download(self, video_url, article_id):
        if self.download_error:
            raise self.download_error
        path = self.tmp_dir / f"article_{article_id}_{len(self.downloaded)}.mp4"
        path.write_bytes(b"fake mp4")
        self.downloaded.append(path)
        return path

    def discard(self, path):
        self.discarded.append(path)
        path.unlink(missing_ok=True)


class FakeArtifactStore(ArtifactStore):
    """Records uploads in order; keys starting with a prefix in ``fail_prefixes`` fail."""

    def __init__(self):
        self.fail_prefixes = set()
        self.uploads = []

    def _check(self, key):
        if any(key.startswith(prefix) for prefix in self.fail_prefixes):
            raise StorageError(f"upload of {key} refused")

    async def upload(self, key, data, content_type):
        self._check(key)
        self.uploads.append(SimpleNamespace(key=key, data=data, content_type=content_type))
        return f"https://storage.test/{key}"

    async def upload_file(self, key, path, content_type):
        self._check(key)
        self.uploads.append(
            SimpleNamespace(key=key, data=Path(path).read_bytes(), content_type=content_type)
        )
        return f"https://storage.test/{key}"


class RecordingNotifier(Notifier):
    def __init__(self):
        self.events = []
        self.error = None

    async def notify(self, event):
        self.events.append(event)
        if self.error:
            raise self.error


@pytest.fixture
async def engine(tmp_path):
    """Async engine bound to a fresh SQLite file with the schema created."""
    db_engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_database(bind=db_engine)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def store(engine):
    return ArticleStore(make_session_factory(engine))


@pytest.fixture
def fakes(tmp_path):
    video_dir = tmp_path / "videos"
    video_dir.mkdir()
    return SimpleNamespace(
        summarizer=FakeSummarizer(),
        title_generator=FakeTitleGenerator(),
        thumbnail_generator=FakeThumbnailGenerator(),
        audio=FakeAudioSynthesizer(),
        video=FakeVideoSynthesizer(video_dir),
        artifacts=FakeArtifactStore(),
        notifier=RecordingNotifier(),
    )


@pytest.fixture
def processor(store, fakes):
    return ArticleProcessor(
        store,
        summarizer=fakes.summarizer,
        title_generator=fakes.title_generator,
        thumbnail_generator=fakes.thumbnail_generator,
        artifact_store=fakes.artifacts,
        audio_synthesizer=fakes.audio,
        video_synthesizer=fakes.video,
        notifier=fakes.notifier,
    )
