"""Tests for temporary artifact paths."""

from articlepipe.services.file_manager import FileManager


def test_video_paths_are_unique_and_contained(tmp_path):
    fm = FileManager(tmp_path)

    first = fm.new_video_path(3)
    second = fm.new_video_path(3)

    assert first != second
    assert first.parent == (tmp_path / "videos").resolve()
    assert first.name.startswith("article_3_")
    assert first.suffix == ".mp4"


def test_discard_removes_file(tmp_path):
    fm = FileManager(tmp_path)
    path = fm.new_video_path(1)
    path.write_bytes(b"mp4")

    fm.discard(path)

    assert not path.exists()


def test_discard_missing_file_is_quiet(tmp_path):
    fm = FileManager(tmp_path)

    fm.discard(tmp_path / "videos" / "never-written.mp4")
