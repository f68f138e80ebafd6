"""Tests for the bounded worker pool."""

import asyncio

import pytest

from articlepipe.orchestrator.pipeline import ArticleProcessor
from articlepipe.orchestrator.runner import JobRunner, QueueFullError
from articlepipe.services.base import Summarizer


class SlowProcessor:
    """Records processed ids and the peak number of concurrent runs."""

    def __init__(self, delay=0.01, fail_on=()):
        self.delay = delay
        self.fail_on = set(fail_on)
        self.active = 0
        self.peak = 0
        self.processed = []

    async def process(self, article_id):
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
            if article_id in self.fail_on:
                raise RuntimeError(f"boom {article_id}")
            self.processed.append(article_id)
        finally:
            self.active -= 1


async def test_concurrency_is_bounded():
    processor = SlowProcessor()
    runner = JobRunner(processor, max_workers=3, queue_size=20)
    runner.start()

    for article_id in range(10):
        runner.submit(article_id)
    await runner.join()
    await runner.shutdown()

    assert sorted(processor.processed) == list(range(10))
    assert 1 < processor.peak <= 3


async def test_full_queue_rejects_submission():
    runner = JobRunner(SlowProcessor(), max_workers=1, queue_size=2)
    runner.start()

    # no await between submits, so the worker has not dequeued anything yet
    runner.submit(1)
    runner.submit(2)
    with pytest.raises(QueueFullError):
        runner.submit(3)

    await runner.shutdown()


async def test_worker_survives_processor_errors():
    processor = SlowProcessor(fail_on={2})
    runner = JobRunner(processor, max_workers=1)
    runner.start()

    for article_id in (1, 2, 3):
        runner.submit(article_id)
    await runner.join()

    assert processor.processed == [1, 3]
    assert runner.running
    await runner.shutdown()
    assert not runner.running


async def test_drain_on_shutdown():
    processor = SlowProcessor()
    runner = JobRunner(processor, max_workers=2)
    runner.start()
    for article_id in range(4):
        runner.submit(article_id)

    await runner.shutdown(drain=True)

    assert sorted(processor.processed) == [0, 1, 2, 3]


def test_submit_before_start():
    runner = JobRunner(SlowProcessor())

    with pytest.raises(RuntimeError, match="not started"):
        runner.submit(1)


def test_rejects_zero_workers():
    with pytest.raises(ValueError):
        JobRunner(SlowProcessor(), max_workers=0)


class StuckSummarizer(Summarizer):
    """Blocks until cancelled, signalling once the stage has started."""

    def __init__(self):
        self.started = asyncio.Event()

    async def summarize(self, url, length, language, style):
        self.started.set()
        await asyncio.Event().wait()


async def test_shutdown_mid_job_marks_article_failed(store, fakes):
    summarizer = StuckSummarizer()
    processor = ArticleProcessor(
        store,
        summarizer=summarizer,
        title_generator=fakes.title_generator,
        thumbnail_generator=fakes.thumbnail_generator,
        artifact_store=fakes.artifacts,
        notifier=fakes.notifier,
    )
    article = await store.create_article(url="https://example.com/otters", format="text", length="s")
    runner = JobRunner(processor, max_workers=1)
    runner.start()
    runner.submit(article.id)
    await asyncio.wait_for(summarizer.started.wait(), timeout=5)

    await runner.shutdown()

    row = await store.get_article(article.id)
    assert row.status == "failed"
    assert row.error_message.startswith("Processing interrupted")
    assert [e.kind for e in fakes.notifier.events] == ["failed"]
    assert fakes.notifier.events[0].reason == "Processing interrupted"
