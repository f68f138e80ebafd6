"""Gemini API client wrapper using google-genai SDK.

Authentication uses an API key (``ARTICLEPIPE_GEMINI__API_KEY`` or the
``gemini.api_key`` entry of config.yaml).

Usage:
    from articlepipe.services.gemini_client import get_gemini_client

    client = get_gemini_client()
"""

from pathlib import Path

from dotenv import load_dotenv
from google import genai

from articlepipe.config import settings

# Load .env so GEMINI_API_KEY / GOOGLE_API_KEY are visible to the SDK
load_dotenv(Path.cwd() / ".env")

# Per-key client cache
_clients: dict[str, genai.Client] = {}


def get_gemini_client(api_key: str | None = None) -> genai.Client:
    """Get or create a Gemini client for the given API key.

    Clients are cached per key so repeated calls are cheap. When no key is
    configured the SDK falls back to GEMINI_API_KEY / GOOGLE_API_KEY.

    Args:
        api_key: Gemini API key. Defaults to settings.gemini.api_key.

    Returns:
        genai.Client: Configured client instance
    """
    key = api_key or settings.gemini.api_key or ""

    if key not in _clients:
        _clients[key] = genai.Client(api_key=key) if key else genai.Client()

    return _clients[key]
