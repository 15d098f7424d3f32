"""Phase 3: LLM extraction from scraped pages, with a focused retry strategy."""

import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional, Tuple

from brandintel.services.llm import LLMStage

from .constants import (
    BROAD_TEMPERATURE,
    DEFAULT_MAX_RETRIES,
    FOCUSED_TEMPERATURE,
    RETRY_CONFIDENCE_THRESHOLD,
)
from .gateway import ServiceGateway
from .merge import merge_extractions
from .models import BrandContext, ExtractionResult, PageInfo
from .prompts import build_extraction_prompt, build_focused_prompt
from .schema import parse_extraction_payload

logger = logging.getLogger(__name__)


class ExtractionStrategy(str, Enum):
    broad = "broad"
    focused = "focused"


STRATEGY_TEMPERATURE = {
    ExtractionStrategy.broad: BROAD_TEMPERATURE,
    ExtractionStrategy.focused: FOCUSED_TEMPERATURE,
}

STRATEGY_STAGE = {
    ExtractionStrategy.broad: LLMStage.page_extraction,
    ExtractionStrategy.focused: LLMStage.focused_extraction,
}


def retry_schedule(max_retries: int) -> List[ExtractionStrategy]:
    """One broad attempt followed by up to ``max_retries`` focused attempts."""
    budget = max(0, int(max_retries or 0))
    return [ExtractionStrategy.broad] + [ExtractionStrategy.focused] * budget


class ContentExtractor:
    """Turns page content into candidate products, pricing, features and assets."""

    def __init__(
        self,
        gateway: ServiceGateway,
        progress_callback: Optional[Callable[[str], None]] = None,
    ):
        self.gateway = gateway
        self.progress_callback = progress_callback

    def _log(self, message: str) -> None:
        logger.info(message)
        if self.progress_callback:
            self.progress_callback(message)

    def build_prompt(self, strategy: ExtractionStrategy, page: PageInfo, context: BrandContext) -> str:
        if strategy == ExtractionStrategy.focused:
            return build_focused_prompt(page, context)
        return build_extraction_prompt(page, context)

    async def _attempt(
        self,
        strategy: ExtractionStrategy,
        page: PageInfo,
        context: BrandContext,
    ) -> Tuple[Optional[ExtractionResult], Optional[str]]:
        prompt = self.build_prompt(strategy, page, context)
        try:
            raw = await self.gateway.complete_chat(
                STRATEGY_STAGE[strategy],
                prompt,
                temperature=STRATEGY_TEMPERATURE[strategy],
                expect_json=True,
            )
        except Exception as exc:
            return None, f"{strategy.value} extraction failed: {exc}"

        parsed = parse_extraction_payload(raw, page.url)
        if not parsed.ok:
            return None, f"{strategy.value} extraction returned invalid output: {parsed.error}"
        return parsed.result, None

    async def extract(
        self,
        page: PageInfo,
        context: BrandContext,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> ExtractionResult:
        """Extract entities from one page. Never raises.

        Low confidence, a failed call or malformed output each spend one unit
        of retry budget on a focused attempt. When the budget runs out the best
        result seen is returned, or an empty result for ``page.url``.
        """
        self._log(f"Extracting from {page.url} ({page.page_type})...")
        best: Optional[ExtractionResult] = None

        for attempt, strategy in enumerate(retry_schedule(max_retries)):
            if attempt:
                self._log(f"Retrying {page.url} with focused extraction ({attempt}/{max_retries})")

            result, error = await self._attempt(strategy, page, context)
            if error:
                self._log(error)
                continue

            if best is None or result.confidence > best.confidence:
                best = result
            self._log(
                f"Extracted {len(result.products)} products from {page.url}, "
                f"confidence: {result.confidence:.2f}"
            )
            if result.confidence >= RETRY_CONFIDENCE_THRESHOLD:
                return result

        return best if best is not None else ExtractionResult.empty(page.url)

    async def extract_many(self, pages: List[PageInfo], context: BrandContext) -> ExtractionResult:
        """Extract from every page concurrently and merge the results."""
        self._log(f"Extracting from {len(pages)} pages...")
        outcomes = await asyncio.gather(
            *(self.extract(page, context) for page in pages),
            return_exceptions=True,
        )
        results: List[ExtractionResult] = []
        for page, outcome in zip(pages, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Extraction crashed for %s: %s", page.url, outcome)
                results.append(ExtractionResult.empty(page.url))
            else:
                results.append(outcome)
        return merge_extractions(results)
