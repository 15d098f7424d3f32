from __future__ import annotations

from typing import Optional

from google import genai
from google.genai import types

from brandintel.config import get_settings
from brandintel.services.llm.types import LLMProviderError


class GeminiProvider:
    name = "gemini"

    def __init__(self) -> None:
        settings = get_settings()
        if not settings.gemini_api_key:
            raise LLMProviderError("GEMINI_API_KEY not configured", retryable=False)
        self._client = genai.Client(api_key=settings.gemini_api_key)

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        timeout_seconds: int,
        temperature: Optional[float] = None,
        expect_json: bool = False,
    ) -> str:
        try:
            cfg = types.GenerateContentConfig(
                temperature=temperature,
                response_mime_type="application/json" if expect_json else None,
                http_options=types.HttpOptions(timeout=int(timeout_seconds) * 1000),
            )
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=prompt,
                config=cfg,
            )
            return str(response.text or "").strip()
        except Exception as exc:
            raise LLMProviderError(str(exc), retryable=True) from exc
