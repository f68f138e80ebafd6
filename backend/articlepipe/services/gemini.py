"""Gemini-backed capabilities: extraction + summarization, titles, thumbnails.

Prompt construction lives in plain module-level functions so it can be
exercised without calling the API. Each adapter converts SDK failures into
the pipeline's error taxonomy once the transport-level retries give up.
"""

import logging
from typing import Optional

import httpx
from google.genai import types
from google.genai.errors import ClientError, ServerError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from articlepipe.services.base import Summarizer, ThumbnailGenerator, TitleGenerator
from articlepipe.services.errors import (
    ExtractionError,
    SummarizationError,
    ThumbnailError,
    TitleError,
)
from articlepipe.services.gemini_client import get_gemini_client

logger = logging.getLogger(__name__)

TITLE_SNIPPET_CHARS = 1000
THUMBNAIL_SNIPPET_CHARS = 500

_EXTRACTION_PROMPT = """Extract the main article content from this URL: {url}

Please:
1. Remove all navigation menus, headers, footers, ads, and other non-article content
2. Keep only the article title and main body text
3. Preserve paragraph structure
4. Remove any JavaScript, CSS, or HTML tags
5. Return clean, readable text

Return only the extracted article content."""

_TARGET_LENGTHS = {
    "s": "approximately 1 minute of reading time (about 150-200 words)",
    "m": "approximately 5 minutes of reading time (about 750-1000 words)",
    "l": "keep the full article content, but clean it up and organize it well",
}
_DEFAULT_TARGET_LENGTH = "approximately 5 minutes of reading time"

_STYLE_INSTRUCTIONS = {
    "explain": "Explain the key concepts and ideas in detail, making them easy to understand.",
    "simplify": "Simplify the content using plain language, making it accessible to everyone.",
    "detailed": "Provide a detailed analysis with key points, insights, and important details.",
    "bullet": "Present the main points in a clear, structured way, highlighting key takeaways.",
    "story": "Present the content as an engaging narrative, making it compelling and interesting.",
}
_DEFAULT_STYLE_INSTRUCTION = "Summarize the main points and key ideas concisely."

_SPEECH_RULES = """IMPORTANT: This summary will be converted to speech, so:
- Use only spoken language and natural phrasing
- Avoid special characters, symbols, URLs, hashtags, and markdown formatting
- Avoid parentheses, brackets, asterisks, underscores, and other punctuation marks that aren't naturally spoken
- Use periods for natural pauses between sentences
- Use commas for shorter pauses within sentences
- Spell out numbers, percentages, and abbreviations (e.g., "ten percent" not "10%", "doctor" not "Dr.")
- Write out acronyms on first use, then use the full term
- Use complete sentences with clear, natural flow
- Organize with paragraph breaks (blank lines) to indicate longer pauses between topics
- Be conversational and engaging, as if explaining to a listener
- Return ONLY the summary text, nothing else"""

_TITLE_PROMPT = """Generate a concise, engaging title (maximum 10 words) for the following article content. The title should be clear, informative, and capture the main topic. Return ONLY the title, nothing else.

Article content:
{content}

Title:"""

_THUMBNAIL_PROMPT = (
    "Create a professional, visually appealing thumbnail image for an article. "
    "The image should be abstract and artistic, representing the following "
    "content: {summary}. Style: modern, clean, professional, eye-catching."
)


def build_extraction_prompt(url: str) -> str:
    return _EXTRACTION_PROMPT.format(url=url)


def build_summary_prompt(
    content: str,
    length: str,
    style: Optional[str] = None,
    language: Optional[str] = None,
) -> str:
    """Build the summarization prompt for the given length code and style.

    Unknown length codes fall back to a ~5 minute target; unknown or empty
    styles fall back to a plain summary. A non-English language adds an
    instruction to write the summary in that language.
    """
    target_length = _TARGET_LENGTHS.get(length, _DEFAULT_TARGET_LENGTH)
    style_instruction = _STYLE_INSTRUCTIONS.get(style or "summarize", _DEFAULT_STYLE_INSTRUCTION)

    parts = [f"{style_instruction} to {target_length}", _SPEECH_RULES]
    if language and language.lower() not in ("en", "english"):
        parts.append(f"Write the summary in the following language: {language}")
    parts.append(f"Article content:\n{content}\n\nSummary:")
    return "\n\n".join(parts)


def build_title_prompt(content: str) -> str:
    return _TITLE_PROMPT.format(content=content[:TITLE_SNIPPET_CHARS])


def clean_title(raw: str) -> str:
    """Strip surrounding whitespace and quotes the model tends to add."""
    return raw.strip().strip("\"'")


def build_thumbnail_prompt(summary: str) -> str:
    return _THUMBNAIL_PROMPT.format(summary=summary[:THUMBNAIL_SNIPPET_CHARS])


def _is_retriable(exc: BaseException) -> bool:
    """Return True only for transient errors worth retrying (429, 5xx, transport)."""
    if isinstance(exc, ServerError):
        return True
    if isinstance(exc, ClientError):
        return getattr(exc, "code", 0) == 429
    if isinstance(exc, (httpx.TransportError, ConnectionError, TimeoutError, OSError)):
        return True
    return False


@retry(
    stop=stop_after_attempt(4),
    wait=wait_exponential(multiplier=2, min=2, max=30),
    retry=retry_if_exception(_is_retriable),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def _generate_text(client, model: str, prompt: str) -> str:
    response = await client.aio.models.generate_content(model=model, contents=prompt)
    text = response.text
    if not text or not text.strip():
        raise ValueError("No content in response")
    return text


@retry(
    stop=stop_after_attempt(4),
    wait=wait_exponential(multiplier=2, min=2, max=30),
    retry=retry_if_exception(_is_retriable),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def _generate_image(client, model: str, prompt: str) -> bytes:
    """Generate an image with Gemini generate_content().

    Raises:
        ValueError: If no image found in response
    """
    response = await client.aio.models.generate_content(
        model=model,
        contents=prompt,
        config=types.GenerateContentConfig(
            response_modalities=["IMAGE"],
        ),
    )

    if not response.candidates:
        raise ValueError("No candidates in response")

    for part in response.candidates[0].content.parts:
        if part.inline_data:
            return part.inline_data.data

    raise ValueError("No image generated in response")


class GeminiSummarizer(Summarizer):
    """Two-step Gemini call: extract the article from its URL, then summarize it."""

    def __init__(self, model_id: str, client=None) -> None:
        self._model_id = model_id
        self._client = client

    @property
    def client(self):
        return self._client or get_gemini_client()

    async def summarize(
        self,
        url: str,
        length: str,
        language: str,
        style: str,
    ) -> tuple[str, str]:
        try:
            content = await _generate_text(self.client, self._model_id, build_extraction_prompt(url))
        except Exception as e:
            raise ExtractionError(f"failed to extract article: {e}") from e
        logger.info(f"Extracted {len(content)} chars from {url}")

        prompt = build_summary_prompt(content, length, style, language)
        try:
            summary = await _generate_text(self.client, self._model_id, prompt)
        except Exception as e:
            raise SummarizationError(f"failed to summarize: {e}") from e

        return content, summary.strip()


class GeminiTitleGenerator(TitleGenerator):
    def __init__(self, model_id: str, client=None) -> None:
        self._model_id = model_id
        self._client = client

    async def generate_title(self, content: str) -> str:
        client = self._client or get_gemini_client()
        try:
            raw = await _generate_text(client, self._model_id, build_title_prompt(content))
        except Exception as e:
            raise TitleError(f"failed to generate title: {e}") from e

        title = clean_title(raw)
        if not title:
            raise TitleError("model returned an empty title")
        return title


class GeminiThumbnailGenerator(ThumbnailGenerator):
    def __init__(self, model_id: str, client=None) -> None:
        self._model_id = model_id
        self._client = client

    async def generate_thumbnail(self, summary: str) -> bytes:
        client = self._client or get_gemini_client()
        try:
            return await _generate_image(client, self._model_id, build_thumbnail_prompt(summary))
        except Exception as e:
            raise ThumbnailError(f"failed to generate image: {e}") from e
