from __future__ import annotations

from typing import Any, Dict, Optional

from openai import AsyncOpenAI

from brandintel.config import get_settings
from brandintel.services.llm.types import LLMProviderError


class OpenAIProvider:
    name = "openai"

    def __init__(self) -> None:
        settings = get_settings()
        if not settings.openai_api_key:
            raise LLMProviderError("OPENAI_API_KEY not configured", retryable=False)
        self._client = AsyncOpenAI(api_key=settings.openai_api_key)

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        timeout_seconds: int,
        temperature: Optional[float] = None,
        expect_json: bool = False,
    ) -> str:
        kwargs: Dict[str, Any] = {}
        if temperature is not None:
            kwargs["temperature"] = temperature
        if expect_json:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                timeout=timeout_seconds,
                **kwargs,
            )
            content = response.choices[0].message.content if response.choices else ""
            return str(content or "").strip()
        except Exception as exc:
            raise LLMProviderError(str(exc), retryable=True) from exc
