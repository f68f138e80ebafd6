"""Bounded in-process job runner.

A fixed number of asyncio worker tasks consume article ids from a bounded
queue and hand each to ``ArticleProcessor.process``. The queue lives in
memory only: jobs still queued when the process exits are lost and keep
their ``queued`` status.
"""

import asyncio
import logging
from typing import Optional

from articlepipe.orchestrator.pipeline import ArticleProcessor

logger = logging.getLogger(__name__)


class QueueFullError(RuntimeError):
    """The runner cannot accept another job right now."""


class JobRunner:
    """Worker pool driving the article processor.

    Usage:
        runner = JobRunner(processor, max_workers=4, queue_size=100)
        runner.start()
        runner.submit(article.id)
        ...
        await runner.shutdown()
    """

    def __init__(self, processor: ArticleProcessor, max_workers: int = 4, queue_size: int = 100):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.processor = processor
        self.max_workers = max_workers
        self.queue_size = queue_size
        self._queue: Optional[asyncio.Queue[int]] = None
        self._workers: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._workers)

    def start(self) -> None:
        """Spawn the worker tasks. Must be called from a running event loop."""
        if self.running:
            return
        self._queue = asyncio.Queue(maxsize=self.queue_size)
        self._workers = [
            asyncio.create_task(self._worker(i, self._queue), name=f"article-worker-{i}")
            for i in range(self.max_workers)
        ]
        logger.info(f"Job runner started with {self.max_workers} workers (queue size {self.queue_size})")

    def submit(self, article_id: int) -> None:
        """Queue an article for processing.

        Raises:
            RuntimeError: The runner has not been started
            QueueFullError: The queue is at capacity
        """
        if self._queue is None:
            raise RuntimeError("Job runner is not started")
        try:
            self._queue.put_nowait(article_id)
        except asyncio.QueueFull:
            raise QueueFullError(f"Job queue is full ({self.queue_size} pending)") from None
        logger.debug(f"Queued article {article_id} ({self._queue.qsize()} pending)")

    async def join(self) -> None:
        """Wait until every queued article has been processed."""
        if self._queue is not None:
            await self._queue.join()

    async def shutdown(self, drain: bool = False) -> None:
        """Stop the workers, optionally after processing queued articles."""
        if not self.running:
            return
        if drain:
            await self.join()
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        self._queue = None
        logger.info("Job runner stopped")

    async def _worker(self, index: int, queue: asyncio.Queue[int]) -> None:
        while True:
            article_id = await queue.get()
            try:
                await self.processor.process(article_id)
            except Exception:
                logger.exception(f"Worker {index}: unhandled error processing article {article_id}")
            finally:
                queue.task_done()
