"""Tests for ArticleStore persistence and lifecycle enforcement."""

import pytest

from articlepipe.services.errors import (
    ArticleFinalized,
    ArticleNotFound,
    InvalidStatusTransition,
)


async def _new_article(store, **overrides):
    fields = {"url": "https://example.com/otters", "format": "text", "length": "s"}
    fields.update(overrides)
    return await store.create_article(**fields)


class TestCreateAndRead:
    async def test_new_article_is_queued_without_artifacts(self, store):
        article = await _new_article(store, language="fr", style="story", owner_id="user-1")

        loaded = await store.get_article(article.id)
        assert loaded.status == "queued"
        assert loaded.language == "fr"
        assert loaded.style == "story"
        assert loaded.owner_id == "user-1"
        assert loaded.summary is None
        assert loaded.title is None
        assert loaded.audio_file_path is None
        assert loaded.video_file_path is None
        assert loaded.error_message is None
        assert loaded.created_at is not None
        assert loaded.updated_at is not None

    async def test_get_params(self, store):
        article = await _new_article(store, format="video", length="l")

        params = await store.get_params(article.id)
        assert params.id == article.id
        assert params.url == "https://example.com/otters"
        assert params.format == "video"
        assert params.length == "l"
        assert params.language is None
        assert params.style is None

    async def test_missing_article_raises(self, store):
        with pytest.raises(ArticleNotFound):
            await store.get_article(999)
        with pytest.raises(ArticleNotFound):
            await store.get_params(999)
        with pytest.raises(ArticleNotFound):
            await store.set_status(999, "processing")

    async def test_list_newest_first(self, store):
        first = await _new_article(store)
        second = await _new_article(store)
        third = await _new_article(store)

        articles = await store.list_articles()
        assert [a.id for a in articles] == [third.id, second.id, first.id]

    async def test_list_filters_by_owner(self, store):
        mine = await _new_article(store, owner_id="alice")
        await _new_article(store, owner_id="bob")

        articles = await store.list_articles(owner_id="alice")
        assert [a.id for a in articles] == [mine.id]

    async def test_delete(self, store):
        article = await _new_article(store)

        await store.delete_article(article.id)

        with pytest.raises(ArticleNotFound):
            await store.get_article(article.id)
        with pytest.raises(ArticleNotFound):
            await store.delete_article(article.id)


class TestStatusWrites:
    async def test_forward_path_to_ready(self, store):
        article = await _new_article(store)

        await store.set_status(article.id, "processing")
        await store.set_status(article.id, "ready")

        loaded = await store.get_article(article.id)
        assert loaded.status == "ready"
        assert loaded.error_message is None

    async def test_failed_records_error_message(self, store):
        article = await _new_article(store)
        await store.set_status(article.id, "processing")

        await store.set_status(article.id, "failed", "Failed to summarize: boom")

        loaded = await store.get_article(article.id)
        assert loaded.status == "failed"
        assert loaded.error_message == "Failed to summarize: boom"

    async def test_failed_without_message_rejected(self, store):
        article = await _new_article(store)
        await store.set_status(article.id, "processing")

        with pytest.raises(ValueError):
            await store.set_status(article.id, "failed")

        loaded = await store.get_article(article.id)
        assert loaded.status == "processing"

    async def test_non_failed_status_ignores_error_message(self, store):
        article = await _new_article(store)

        await store.set_status(article.id, "processing", "stray message")

        loaded = await store.get_article(article.id)
        assert loaded.error_message is None

    @pytest.mark.parametrize("terminal", ["ready", "failed"])
    async def test_terminal_states_never_move(self, store, terminal):
        article = await _new_article(store)
        await store.set_status(article.id, "processing")
        await store.set_status(article.id, terminal, "boom" if terminal == "failed" else None)

        for new in ("queued", "processing", "ready" if terminal == "failed" else "failed"):
            with pytest.raises(InvalidStatusTransition):
                await store.set_status(article.id, new, "again")

        loaded = await store.get_article(article.id)
        assert loaded.status == terminal

    async def test_backward_transition_rejected(self, store):
        article = await _new_article(store)
        await store.set_status(article.id, "processing")

        with pytest.raises(InvalidStatusTransition) as exc_info:
            await store.set_status(article.id, "queued")

        assert exc_info.value.current == "processing"
        assert exc_info.value.new == "queued"

    async def test_same_status_only_touches_updated_at(self, store):
        article = await _new_article(store)
        await store.set_status(article.id, "processing")
        before = await store.get_article(article.id)

        await store.set_status(article.id, "processing")

        after = await store.get_article(article.id)
        assert after.status == "processing"
        assert after.error_message is None
        assert after.updated_at >= before.updated_at
        assert after.created_at == before.created_at

    async def test_reapplying_failed_keeps_first_reason(self, store):
        article = await _new_article(store)
        await store.set_status(article.id, "processing")
        await store.set_status(article.id, "failed", "first reason")
        before = await store.get_article(article.id)

        await store.set_status(article.id, "failed", "second reason")

        after = await store.get_article(article.id)
        assert after.status == "failed"
        assert after.error_message == "first reason"
        assert after.updated_at >= before.updated_at

    async def test_reapplying_ready_is_a_no_op(self, store):
        article = await _new_article(store)
        await store.set_status(article.id, "processing")
        await store.set_status(article.id, "ready")

        await store.set_status(article.id, "ready", "ignored")

        after = await store.get_article(article.id)
        assert after.status == "ready"
        assert after.error_message is None


class TestArtifactWrites:
    async def test_summary_title_and_paths(self, store):
        article = await _new_article(store, format="video")

        await store.save_summary(article.id, "full text", "short")
        await store.save_title(article.id, "A Title")
        await store.save_thumbnail_path(article.id, "https://storage.test/thumb.png")
        await store.save_video_path(article.id, "https://storage.test/video.mp4", 30)

        loaded = await store.get_article(article.id)
        assert loaded.original_content == "full text"
        assert loaded.summary == "short"
        assert loaded.title == "A Title"
        assert loaded.thumbnail_path == "https://storage.test/thumb.png"
        assert loaded.video_file_path == "https://storage.test/video.mp4"
        assert loaded.duration_seconds == 30
        assert loaded.audio_file_path is None

    async def test_audio_path(self, store):
        article = await _new_article(store, format="audio")

        await store.save_audio_path(article.id, "https://storage.test/audio.mp3")

        loaded = await store.get_article(article.id)
        assert loaded.audio_file_path == "https://storage.test/audio.mp3"

    @pytest.mark.parametrize("terminal", ["ready", "failed"])
    async def test_terminal_article_is_read_only(self, store, terminal):
        article = await _new_article(store, format="audio")
        await store.set_status(article.id, "processing")
        await store.save_title(article.id, "Kept Title")
        await store.set_status(article.id, terminal, "boom" if terminal == "failed" else None)

        with pytest.raises(ArticleFinalized):
            await store.save_title(article.id, "Rewritten")
        with pytest.raises(ArticleFinalized):
            await store.save_audio_path(article.id, "https://storage.test/late.mp3")

        loaded = await store.get_article(article.id)
        assert loaded.title == "Kept Title"
        assert loaded.audio_file_path is None

    async def test_write_to_missing_article_raises(self, store):
        with pytest.raises(ArticleNotFound):
            await store.save_title(12345, "nope")
