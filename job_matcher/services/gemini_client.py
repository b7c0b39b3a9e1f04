"""Google Gemini provider for the AI scorer.

Returns the model's raw text; parsing and validation belong to the scorer.
SDK and transport failures are mapped onto the engine's error taxonomy so
the retry policy can tell retryable conditions from fatal ones.
"""

import logging
from typing import Protocol

import httpx
from google import genai
from google.genai import errors, types

from job_matcher.config import settings
from job_matcher.errors import ProtocolError, TransientError

logger = logging.getLogger(__name__)

# HTTP status codes worth another attempt
RETRYABLE_STATUS: frozenset[int] = frozenset({408, 429, 500, 502, 503, 504})


class AIProvider(Protocol):
    """Single request/response contract of an external scoring model."""

    async def generate(self, prompt: str, *, system: str | None = None) -> str: ...


class GeminiProvider:
    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
        client: genai.Client | None = None,
    ) -> None:
        self.model = model or settings.gemini_model
        self.temperature = settings.ai_temperature if temperature is None else temperature
        self.max_output_tokens = max_output_tokens or settings.ai_max_output_tokens
        self._client = client or genai.Client(api_key=api_key or settings.gemini_api_key)

    async def generate(self, prompt: str, *, system: str | None = None) -> str:
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    system_instruction=system,
                    temperature=self.temperature,
                    max_output_tokens=self.max_output_tokens,
                    response_mime_type="application/json",
                ),
            )
        except errors.APIError as e:
            if e.code in RETRYABLE_STATUS:
                raise TransientError(f"Gemini API error {e.code}: {e.message}") from e
            raise ProtocolError(f"Gemini API error {e.code}: {e.message}") from e
        except httpx.HTTPError as e:
            raise TransientError(f"Gemini transport error: {e}") from e

        text = response.text
        if not text or not text.strip():
            raise ProtocolError("Empty response from Gemini")
        return text


def create_provider() -> GeminiProvider | None:
    """Build the default provider, or None when no API key is configured."""
    if not settings.gemini_api_key:
        logger.warning("No GEMINI_API_KEY set - AI matching disabled, using heuristic scoring")
        return None
    return GeminiProvider()
