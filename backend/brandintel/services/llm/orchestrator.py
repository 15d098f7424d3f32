from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional, Tuple

from brandintel.config import get_settings
from brandintel.services.llm.providers.anthropic_provider import AnthropicProvider
from brandintel.services.llm.providers.gemini_provider import GeminiProvider
from brandintel.services.llm.providers.openai_provider import OpenAIProvider
from brandintel.services.llm.types import (
    LLMOrchestrationError,
    LLMProviderError,
    LLMRequest,
    LLMResponse,
    ModelAttemptTrace,
    classify_retryable_error,
    now_iso,
)

logger = logging.getLogger(__name__)

PROVIDER_FACTORIES: Dict[str, Callable[[], object]] = {
    "gemini": GeminiProvider,
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}

DEFAULT_ROUTE = ("gemini", "gemini-2.0-flash")


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, LLMProviderError) and exc.retryable:
        return True
    return classify_retryable_error(exc)


class LLMOrchestrator:
    """Routes a stage request across configured provider/model pairs.

    Each route is retried on retryable errors with linear backoff before the
    next route is tried. Every attempt is traced on the response (or on the
    raised LLMOrchestrationError when all routes fail).
    """

    def __init__(self) -> None:
        self._settings = get_settings()
        self._providers: Dict[str, object] = {}

    def _provider(self, name: str):
        key = str(name or "").strip().lower()
        if key not in self._providers:
            factory = PROVIDER_FACTORIES.get(key)
            if factory is None:
                raise LLMProviderError(f"Unsupported LLM provider: {name}", retryable=False)
            self._providers[key] = factory()
        return self._providers[key]

    def _routes_for_stage(self, stage_name: str) -> List[Tuple[str, str]]:
        return self._settings.stage_model_routes(stage_name) or [DEFAULT_ROUTE]

    async def _attempt(
        self,
        request: LLMRequest,
        provider_name: str,
        model: str,
        retry_count: int,
    ) -> Tuple[Optional[str], ModelAttemptTrace, bool]:
        """One provider call. Returns (text, trace, retryable); text is None on failure."""
        trace = ModelAttemptTrace(
            stage=request.stage.value,
            provider=provider_name,
            model=model,
            latency_ms=0,
            status="success",
            retry_count=retry_count,
            started_at=now_iso(),
        )
        t0 = time.perf_counter()
        text: Optional[str] = None
        retryable = False
        try:
            provider = self._provider(provider_name)
            text = await provider.generate(
                model=model,
                prompt=request.prompt,
                timeout_seconds=max(1, int(request.timeout_seconds)),
                temperature=request.temperature,
                expect_json=bool(request.expect_json),
            )
        except Exception as exc:
            retryable = _is_retryable(exc)
            trace.status = "retryable_error" if retryable else "terminal_error"
            trace.error_class = exc.__class__.__name__
            trace.error_message = str(exc)[:500]
            logger.warning(
                "LLM attempt failed stage=%s provider=%s model=%s retryable=%s: %s",
                request.stage.value,
                provider_name,
                model,
                retryable,
                exc,
            )
        trace.latency_ms = int((time.perf_counter() - t0) * 1000)
        trace.ended_at = now_iso()
        return text, trace, retryable

    async def run_stage(self, request: LLMRequest) -> LLMResponse:
        attempts: List[ModelAttemptTrace] = []
        max_attempts = max(1, int(self._settings.stage_retry_max_attempts))
        backoff = max(0.0, float(self._settings.stage_retry_backoff_seconds))

        for provider_name, model in self._routes_for_stage(request.stage.value):
            for retry_count in range(max_attempts):
                text, trace, retryable = await self._attempt(request, provider_name, model, retry_count)
                attempts.append(trace)
                if text is not None:
                    return LLMResponse(text=text, provider=provider_name, model=model, attempts=attempts)
                if not retryable or retry_count == max_attempts - 1:
                    break
                if backoff > 0:
                    await asyncio.sleep(backoff * (retry_count + 1))

        raise LLMOrchestrationError(
            f"All model routes failed for stage={request.stage.value}",
            attempts=attempts,
        )
