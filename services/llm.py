"""Adapter around the structured-generation API (Gemini)."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from google import genai
from google.genai import types

from app.config import Settings
from services.errors import AIUnavailableError

logger = logging.getLogger(__name__)

DISABLED_NOTICE = "AI features are disabled: set GOOGLE_API_KEY to enable job generation and candidate scoring."


@dataclass(frozen=True)
class PromptPart:
    """One piece of a prompt: either text or an inline binary document."""

    text: str | None = None
    data: bytes | None = None
    mime_type: str | None = None

    @property
    def is_document(self) -> bool:
        return self.data is not None


class StructuredGenerator(Protocol):
    async def generate_json(self, *, model: str, parts: list[PromptPart], schema: dict[str, Any]) -> str:
        """Return the raw JSON text the service produced for ``schema``."""
        ...


class GeminiGenerator:
    """Call Gemini with a response schema and JSON output."""

    def __init__(self, api_key: str, timeout_seconds: float = 60.0) -> None:
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._client: genai.Client | None = None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=int(self.timeout_seconds * 1000)),
            )
        return self._client

    async def generate_json(self, *, model: str, parts: list[PromptPart], schema: dict[str, Any]) -> str:
        client = self._get_client()
        response = await client.aio.models.generate_content(
            model=model,
            contents=types.Content(role="user", parts=[self._to_part(part) for part in parts]),
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=schema,
            ),
        )
        if not response.text:
            raise ValueError("Empty response from the model")
        return response.text

    @staticmethod
    def _to_part(part: PromptPart) -> types.Part:
        if part.is_document:
            return types.Part.from_bytes(data=part.data, mime_type=part.mime_type or "application/octet-stream")
        return types.Part.from_text(text=part.text or "")


class DisabledGenerator:
    """Stand-in used when no API credential is configured."""

    async def generate_json(self, *, model: str, parts: list[PromptPart], schema: dict[str, Any]) -> str:
        raise AIUnavailableError(DISABLED_NOTICE)


def build_generator(settings: Settings) -> StructuredGenerator:
    if not settings.ai_enabled:
        logger.warning("No Gemini API key configured; AI features are disabled")
        return DisabledGenerator()
    return GeminiGenerator(settings.google_api_key, settings.ai_request_timeout_seconds)
