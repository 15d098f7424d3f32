"""LLM provider routing with per-stage fallbacks."""

from .types import (
    LLMOrchestrationError,
    LLMProviderError,
    LLMRequest,
    LLMResponse,
    LLMStage,
    ModelAttemptTrace,
)
from .orchestrator import LLMOrchestrator

__all__ = [
    "LLMOrchestrator",
    "LLMOrchestrationError",
    "LLMProviderError",
    "LLMRequest",
    "LLMResponse",
    "LLMStage",
    "ModelAttemptTrace",
]
