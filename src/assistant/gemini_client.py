"""
Gemini text generation wrapper.

Uses the google-genai SDK; the client is created lazily so the service can
start without an API key (calls then fail with ``ModelAdapterError``).
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from google import genai
from google.genai import types

from src.ingestion.errors import ModelAdapterError

logger = logging.getLogger(__name__)


class TextModel(Protocol):
    model_name: str

    def generate(self, prompt: str, *, json_mode: bool = False) -> str:
        ...


class GeminiTextModel:
    """Minimal Gemini wrapper returning raw response text."""

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str,
        *,
        temperature: float = 0.4,
        max_output_tokens: int = 2048,
        client: Optional[Any] = None,
    ) -> None:
        self.api_key = api_key
        self.model_name = model_name
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise ModelAdapterError("GOOGLE_API_KEY is not configured")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def generate(self, prompt: str, *, json_mode: bool = False) -> str:
        client = self._get_client()
        config = types.GenerateContentConfig(
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            response_mime_type="application/json" if json_mode else None,
        )
        try:
            response = client.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            logger.warning("Gemini request failed: %s", e)
            raise ModelAdapterError(f"Gemini request failed: {e}") from e

        text = getattr(response, "text", None) if response is not None else None
        if not text:
            raise ModelAdapterError("Gemini returned an empty response")
        return text
