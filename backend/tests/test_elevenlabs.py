"""Tests for the ElevenLabs speech adapter."""

import json

import httpx
import pytest

from articlepipe.services.elevenlabs import ElevenLabsSynthesizer
from articlepipe.services.errors import SynthesisError


def _synth(handler, api_key="xi-key"):
    return ElevenLabsSynthesizer(
        api_key,
        voice_id="voice-1",
        model_id="eleven_monolingual_v1",
        multilingual_model_id="eleven_multilingual_v2",
        transport=httpx.MockTransport(handler),
    )


async def test_returns_mp3_bytes():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, content=b"ID3 mp3 data", headers={"Content-Type": "audio/mpeg"})

    audio = await _synth(handler).synthesize("Otters hold hands.", "en", "story")

    assert audio == b"ID3 mp3 data"
    request = requests[0]
    assert str(request.url) == "https://api.elevenlabs.io/v1/text-to-speech/voice-1"
    assert request.headers["xi-api-key"] == "xi-key"
    assert request.headers["Accept"] == "audio/mpeg"
    assert json.loads(request.content) == {
        "text": "Otters hold hands.",
        "model_id": "eleven_monolingual_v1",
        "voice_settings": {"stability": 0.5, "similarity_boost": 0.75},
    }


@pytest.mark.parametrize(
    "language,model",
    [
        (None, "eleven_monolingual_v1"),
        ("", "eleven_monolingual_v1"),
        ("en", "eleven_monolingual_v1"),
        ("fr", "eleven_multilingual_v2"),
    ],
)
async def test_model_selection_by_language(language, model):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, content=b"mp3")

    await _synth(handler).synthesize("text", language, None)

    assert json.loads(requests[0].content)["model_id"] == model


async def test_api_error_raises_synthesis_error():
    def handler(request):
        return httpx.Response(401, json={"detail": "invalid api key"})

    with pytest.raises(SynthesisError, match="401"):
        await _synth(handler).synthesize("text", "en", None)


async def test_missing_api_key():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(SynthesisError, match="ELEVENLABS_API_KEY not set"):
        await _synth(handler, api_key="").synthesize("text", "en", None)
