"""fal.ai queue API client for Sora 2 video generation.

Provides:
- Request submission to ``{queue_url}/{model}``
- Status queries on ``{queue_url}/{model}/requests/{request_id}/status``
- Result fetches from the ``response_url`` returned on completion
- Streamed download of the finished video to a local file

Usage:
    from articlepipe.services.fal_client import FalClient

    client = FalClient(api_key)
    request_id = await client.submit(FalSubmitRequest(prompt="...", duration=10))
    status = await client.get_status(request_id)
    ...
"""

import logging
from pathlib import Path
from typing import Any, Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from articlepipe.schemas.fal import FalStatusResponse, FalSubmitRequest, FalSubmitResponse

logger = logging.getLogger(__name__)


def _is_retriable(exc: BaseException) -> bool:
    """Return True only for transient errors worth retrying (429, 5xx, transport)."""
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        return code == 429 or code >= 500
    return isinstance(exc, httpx.TransportError)


_transient_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception(_is_retriable),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


class FalClient:
    """Async client for the fal.ai queue API.

    Handles submission, status polling, result retrieval and download.
    Every request carries ``Authorization: Key <api_key>``.
    """

    def __init__(
        self,
        api_key: str,
        *,
        queue_url: str = "https://queue.fal.run",
        model: str = "fal-ai/sora-2",
        timeout: float = 300.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.queue_url = queue_url.rstrip("/")
        self.model = model.strip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers={"Authorization": f"Key {self.api_key}"},
                follow_redirects=True,
                timeout=httpx.Timeout(self.timeout, connect=30.0),
                transport=self._transport,
            )
        return self._client

    @property
    def model_url(self) -> str:
        return f"{self.queue_url}/{self.model}"

    @_transient_retry
    async def submit(self, request: FalSubmitRequest) -> str:
        """Queue a generation request.

        Returns the request_id for status polling.
        """
        logger.info(
            "POST %s duration=%s aspect_ratio=%s",
            self.model_url, request.duration, request.aspect_ratio,
        )
        response = await self.client.post(
            self.model_url,
            json=request.model_dump(exclude_none=True),
        )
        logger.info("  submit response: HTTP %d", response.status_code)
        response.raise_for_status()
        result = FalSubmitResponse.model_validate(response.json())
        logger.info("  request_id: %s", result.request_id)
        return result.request_id

    @_transient_retry
    async def get_status(self, request_id: str) -> FalStatusResponse:
        url = f"{self.model_url}/requests/{request_id}/status"
        response = await self.client.get(url)
        logger.debug("GET %s: HTTP %d", url, response.status_code)
        response.raise_for_status()
        status = FalStatusResponse.model_validate(response.json())
        logger.debug("  status=%s error=%s", status.status, status.error)
        return status

    @_transient_retry
    async def fetch_result(self, response_url: str) -> dict[str, Any]:
        """Fetch the result document of a completed request."""
        logger.info("GET %s", response_url)
        response = await self.client.get(response_url)
        logger.info("  result response: HTTP %d", response.status_code)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"unexpected result payload: {data!r}")
        logger.info("  result keys: %s", sorted(data.keys()))
        return data

    async def download(self, url: str, dest: Path) -> int:
        """Stream ``url`` into ``dest`` and return the number of bytes written."""
        written = 0
        logger.info("GET %s -> %s", url, dest)
        async with self.client.stream("GET", url) as response:
            response.raise_for_status()
            with open(dest, "wb") as f:
                async for chunk in response.aiter_bytes():
                    f.write(chunk)
                    written += len(chunk)
        logger.info("  downloaded %d bytes", written)
        return written

    async def close(self):
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
