"""Gemini API client wrapper."""

import asyncio
from typing import Optional

import structlog
from google import genai
from google.genai import types

from ..config.settings import Settings

logger = structlog.get_logger()

# Medical and developmental topics trip the default filters
_SAFETY_CATEGORIES = (
    types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
    types.HarmCategory.HARM_CATEGORY_HARASSMENT,
    types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
    types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
)


class LLMClient:
    """Thin async wrapper around the Gemini text generation API.

    One request per call and no retries: the update pipeline paces calls
    itself and falls back to placeholder content on failure.
    """

    def __init__(self, settings: Settings, api_key: str = None):
        self.settings = settings
        self._api_key = api_key
        self._client: Optional[genai.Client] = None

    def _get_client(self) -> genai.Client:
        """Lazy initialization of the client."""
        if self._client is not None:
            return self._client

        api_key = self._api_key or self.settings.gemini_api_key
        if not api_key:
            raise ValueError("Gemini API key not configured. Set GEMINI_API_KEY environment variable.")
        self._client = genai.Client(api_key=api_key)
        return self._client

    async def complete(
        self,
        prompt: str,
        max_tokens: int = None,
        temperature: float = None
    ) -> str:
        """Generate a completion and return the raw response text."""
        client = self._get_client()
        config = types.GenerateContentConfig(
            temperature=temperature if temperature is not None else self.settings.llm_temperature,
            max_output_tokens=max_tokens or self.settings.llm_max_tokens,
            safety_settings=[
                types.SafetySetting(category=category, threshold=types.HarmBlockThreshold.BLOCK_NONE)
                for category in _SAFETY_CATEGORIES
            ],
        )

        # Gemini client is sync, run in executor
        def _sync_call() -> str:
            response = client.models.generate_content(
                model=self.settings.llm_model,
                contents=prompt,
                config=config,
            )
            return response.text or ""

        try:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, _sync_call)
        except Exception as e:
            logger.error("llm_call_failed", model=self.settings.llm_model, error=str(e))
            raise
