"""Notification events emitted when an article reaches a terminal state."""

from typing import Literal, Optional

from pydantic import BaseModel


class NotificationEvent(BaseModel):
    """Outcome of one pipeline run, handed to a Notifier.

    ``title`` is filled for ``ready`` events, ``reason`` for ``failed`` ones.
    """

    kind: Literal["ready", "failed"]
    article_id: int
    title: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def ready(cls, article_id: int, title: str) -> "NotificationEvent":
        return cls(kind="ready", article_id=article_id, title=title)

    @classmethod
    def failed(cls, article_id: int, reason: str) -> "NotificationEvent":
        return cls(kind="failed", article_id=article_id, reason=reason)


class APSAlert(BaseModel):
    title: str
    body: str
    subtitle: Optional[str] = None


class APSData(BaseModel):
    alert: APSAlert
    badge: Optional[int] = None
    sound: Optional[str] = None


class APNSPayload(BaseModel):
    """JSON body posted to APNs (``{"aps": {...}}``)."""

    aps: APSData
