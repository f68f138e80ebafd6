"""Tests for APNs push delivery."""

import json

import httpx

from articlepipe.schemas.notification import NotificationEvent
from articlepipe.services.apns import APNSNotifier, build_payload


def _notifier(handler, token="apns-token", production=False):
    return APNSNotifier(
        token,
        device_token="device-123",
        bundle_id="com.example.reader",
        production=production,
        transport=httpx.MockTransport(handler),
    )


class TestPayload:
    def test_ready_payload(self):
        payload = build_payload(NotificationEvent.ready(1, "Why Otters Hold Hands"))

        body = payload.model_dump(exclude_none=True)
        assert body == {
            "aps": {
                "alert": {
                    "title": "Article Ready!",
                    "body": "Your article 'Why Otters Hold Hands' is ready to read",
                },
                "badge": 1,
                "sound": "default",
            }
        }

    def test_failed_payload(self):
        payload = build_payload(NotificationEvent.failed(1, "Failed to summarize"))

        alert = payload.aps.alert
        assert alert.title == "Article Processing Failed"
        assert alert.body == "There was an error processing your article"
        assert alert.subtitle == "Failed to summarize"
        assert payload.aps.badge is None


class TestDelivery:
    async def test_no_token_sends_nothing(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200)

        notifier = _notifier(handler, token="")
        await notifier.notify(NotificationEvent.ready(1, "Title"))

        assert requests == []

    async def test_sandbox_request(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200)

        notifier = _notifier(handler)
        await notifier.notify(NotificationEvent.ready(5, "Title"))

        assert len(requests) == 1
        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.sandbox.push.apple.com/3/device/device-123"
        assert request.headers["apns-topic"] == "com.example.reader"
        assert request.headers["apns-push-type"] == "alert"
        assert request.headers["apns-priority"] == "10"
        assert request.headers["apns-expiration"] == "0"
        assert request.headers["authorization"] == "bearer apns-token"
        assert json.loads(request.content)["aps"]["alert"]["title"] == "Article Ready!"

    async def test_production_endpoint(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200)

        notifier = _notifier(handler, production=True)
        await notifier.notify(NotificationEvent.failed(5, "Failed to generate video"))

        assert str(requests[0].url).startswith("https://api.push.apple.com/3/device/")

    async def test_rejected_notification_does_not_raise(self):
        def handler(request):
            return httpx.Response(400, json={"reason": "BadDeviceToken"})

        notifier = _notifier(handler)
        await notifier.notify(NotificationEvent.ready(5, "Title"))

    async def test_transport_error_does_not_raise(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        notifier = _notifier(handler)
        await notifier.notify(NotificationEvent.failed(5, "Failed to summarize"))
