"""ElevenLabs text-to-speech adapter.

Posts the summary to ``/v1/text-to-speech/{voice_id}`` and returns the MP3
body. Uploading the audio is the orchestrator's job, not this adapter's.
"""

import logging
from typing import Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from articlepipe.services.base import AudioSynthesizer
from articlepipe.services.errors import SynthesisError

logger = logging.getLogger(__name__)


def _is_retriable(exc: BaseException) -> bool:
    """Return True only for transient errors worth retrying (429, 5xx, transport)."""
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        return code == 429 or code >= 500
    return isinstance(exc, httpx.TransportError)


class ElevenLabsSynthesizer(AudioSynthesizer):
    """Async ElevenLabs client producing MP3 narration."""

    def __init__(
        self,
        api_key: str,
        *,
        voice_id: str,
        model_id: str,
        multilingual_model_id: Optional[str] = None,
        stability: float = 0.5,
        similarity_boost: float = 0.75,
        base_url: str = "https://api.elevenlabs.io",
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.voice_id = voice_id
        self.model_id = model_id
        self.multilingual_model_id = multilingual_model_id
        self.stability = stability
        self.similarity_boost = similarity_boost
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"xi-api-key": self.api_key},
                timeout=httpx.Timeout(self.timeout, connect=30.0),
                transport=self._transport,
            )
        return self._client

    def model_for(self, language: Optional[str]) -> str:
        """Pick the multilingual model for non-English narration when configured."""
        if language and language.lower() not in ("en", "english") and self.multilingual_model_id:
            return self.multilingual_model_id
        return self.model_id

    def build_request(self, text: str, language: Optional[str]) -> dict:
        return {
            "text": text,
            "model_id": self.model_for(language),
            "voice_settings": {
                "stability": self.stability,
                "similarity_boost": self.similarity_boost,
            },
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=2, min=2, max=30),
        retry=retry_if_exception(_is_retriable),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _post(self, body: dict) -> bytes:
        response = await self.client.post(
            f"/v1/text-to-speech/{self.voice_id}",
            json=body,
            headers={"Accept": "audio/mpeg"},
        )
        logger.info(
            "POST %s/v1/text-to-speech/%s: HTTP %d, %d bytes",
            self.base_url, self.voice_id, response.status_code, len(response.content),
        )
        response.raise_for_status()
        return response.content

    async def synthesize(
        self,
        text: str,
        language: Optional[str],
        style: Optional[str],
    ) -> bytes:
        # style only shapes the summary text; the voice stays the same
        if not self.api_key:
            raise SynthesisError("ELEVENLABS_API_KEY not set")

        try:
            audio = await self._post(self.build_request(text, language))
        except httpx.HTTPStatusError as e:
            raise SynthesisError(
                f"elevenlabs API error: {e.response.status_code} - {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise SynthesisError(f"failed to call API: {e}") from e

        if not audio:
            raise SynthesisError("elevenlabs API returned no audio")
        return audio

    async def close(self):
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
