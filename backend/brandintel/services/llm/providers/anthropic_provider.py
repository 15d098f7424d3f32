from __future__ import annotations

from typing import Any, Dict, Optional

from anthropic import AsyncAnthropic

from brandintel.config import get_settings
from brandintel.services.llm.types import LLMProviderError


class AnthropicProvider:
    name = "anthropic"

    def __init__(self) -> None:
        settings = get_settings()
        if not settings.anthropic_api_key:
            raise LLMProviderError("ANTHROPIC_API_KEY not configured", retryable=False)
        self._client = AsyncAnthropic(api_key=settings.anthropic_api_key)

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        timeout_seconds: int,
        temperature: Optional[float] = None,
        expect_json: bool = False,
    ) -> str:
        # No native JSON mode; the prompt carries the output contract.
        del expect_json
        kwargs: Dict[str, Any] = {}
        if temperature is not None:
            kwargs["temperature"] = temperature
        try:
            response = await self._client.messages.create(
                model=model,
                max_tokens=4000,
                messages=[{"role": "user", "content": prompt}],
                timeout=timeout_seconds,
                **kwargs,
            )
            text_parts = []
            for block in getattr(response, "content", []) or []:
                value = getattr(block, "text", None)
                if value:
                    text_parts.append(str(value))
            return "\n".join(text_parts).strip()
        except Exception as exc:
            raise LLMProviderError(str(exc), retryable=True) from exc
