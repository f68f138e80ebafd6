"""Apple Push Notification service delivery for article outcomes.

Push is best-effort: with no token configured every notification is
skipped, and delivery errors are logged rather than raised.
"""

import logging
from typing import Optional

import httpx

from articlepipe.schemas.notification import APNSPayload, APSAlert, APSData, NotificationEvent
from articlepipe.services.base import Notifier
from articlepipe.services.errors import NotificationError

logger = logging.getLogger(__name__)

SANDBOX_ENDPOINT = "https://api.sandbox.push.apple.com"
PRODUCTION_ENDPOINT = "https://api.push.apple.com"


def build_payload(event: NotificationEvent) -> APNSPayload:
    """Build the alert payload for a ready or failed article."""
    if event.kind == "ready":
        return APNSPayload(
            aps=APSData(
                alert=APSAlert(
                    title="Article Ready!",
                    body=f"Your article '{event.title}' is ready to read",
                ),
                badge=1,
                sound="default",
            )
        )
    return APNSPayload(
        aps=APSData(
            alert=APSAlert(
                title="Article Processing Failed",
                body="There was an error processing your article",
                subtitle=event.reason,
            ),
            sound="default",
        )
    )


class APNSNotifier(Notifier):
    """Sends alerts to a single device over HTTP/2 with a static bearer token."""

    def __init__(
        self,
        token: str,
        *,
        device_token: str,
        bundle_id: str,
        production: bool = False,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.device_token = device_token
        self.bundle_id = bundle_id
        self.production = production
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def endpoint(self) -> str:
        return PRODUCTION_ENDPOINT if self.production else SANDBOX_ENDPOINT

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.endpoint,
                http2=self._transport is None,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def notify(self, event: NotificationEvent) -> None:
        if not self.token:
            logger.info("APNS: No token configured, skipping push notification")
            return

        try:
            await self._send(build_payload(event))
        except NotificationError as e:
            logger.warning(f"APNS: notification for article {event.article_id} not delivered: {e}")

    async def _send(self, payload: APNSPayload) -> None:
        headers = {
            "apns-topic": self.bundle_id,
            "apns-push-type": "alert",
            "apns-priority": "10",
            "apns-expiration": "0",
            "authorization": f"bearer {self.token}",
        }
        try:
            response = await self.client.post(
                f"/3/device/{self.device_token}",
                json=payload.model_dump(exclude_none=True),
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise NotificationError(f"failed to send notification: {e}") from e

        if response.status_code != 200:
            raise NotificationError(
                f"APNS returned status {response.status_code}: {response.text}"
            )

        logger.info("APNS: Successfully sent notification to device %s", self.device_token)

    async def close(self):
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
