"""Error taxonomy shared by the pipeline and its capability adapters.

Whether an error is fatal depends on the stage that raised it, not on the
class alone: a ``StorageError`` while uploading audio fails the article, the
same error while uploading a thumbnail is only logged.
"""


class PipelineError(Exception):
    """Base class for every error raised by a pipeline capability."""


class ExtractionError(PipelineError):
    """The article body could not be extracted from its URL."""


class SummarizationError(PipelineError):
    """Extracted content could not be summarized."""


class TitleError(PipelineError):
    """Title generation failed (never fatal)."""


class ThumbnailError(PipelineError):
    """Thumbnail generation failed (never fatal)."""


class SynthesisError(PipelineError):
    """Audio or video synthesis failed."""


class SynthesisTimeoutError(SynthesisError, TimeoutError):
    """Remote video generation did not complete within the allowed poll attempts."""

    def __init__(self, attempts: int, interval: float):
        self.attempts = attempts
        self.interval = interval
        super().__init__(
            f"video generation timed out after {attempts} attempts "
            f"({attempts * interval:.0f}s)"
        )


class StorageError(PipelineError):
    """An artifact could not be uploaded to durable storage."""


class NotificationError(PipelineError):
    """A push notification could not be delivered (never escapes a notifier)."""


class ArticleNotFound(LookupError):
    """No article row exists for the given id."""

    def __init__(self, article_id: int):
        self.article_id = article_id
        super().__init__(f"Article {article_id} not found")


class InvalidStatusTransition(ValueError):
    """A status write would move an article backwards or out of a terminal state."""

    def __init__(self, article_id: int, current: str, new: str):
        self.article_id = article_id
        self.current = current
        self.new = new
        super().__init__(f"Article {article_id}: cannot move from {current!r} to {new!r}")


class ArticleFinalized(ValueError):
    """An artifact write targeted an article that already reached a terminal state."""

    def __init__(self, article_id: int, status: str):
        self.article_id = article_id
        self.status = status
        super().__init__(f"Article {article_id} is {status} and can no longer be modified")
