"""
Brand scan orchestrator.

Runs research -> discovery -> extraction -> validation -> optional sync.
Each phase is timed and bounded by a deadline; a failing phase degrades to
its default value and adds a message to ``errors`` instead of aborting.
"""

import asyncio
import logging
import time
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from brandintel.config import Settings, get_settings

from .classifier import UrlClassifier
from .constants import SYNC_MIN_PRODUCT_SCORE
from .discovery import SiteDiscoverer
from .extraction import ContentExtractor
from .gateway import LiveServiceGateway, ServiceGateway
from .models import (
    BrandContext,
    BrandScanResult,
    ExtractionResult,
    PageInfo,
    PhaseDurations,
    ScanOptions,
    SiteMap,
    SyncSummary,
    ValidationOutcome,
)
from .progress import ScanProgress
from .research import ContextResearcher, clean_domain
from .validation import Validator

logger = logging.getLogger(__name__)

MAX_PRODUCT_PAGES_TO_EXTRACT = 10


def _describe(exc: BaseException, timeout: Optional[float] = None) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return f"timed out after {timeout:g}s" if timeout is not None else "timed out"
    return str(exc) or exc.__class__.__name__


def brand_payload(brand_id: str, context: BrandContext) -> Dict[str, Any]:
    return {
        "id": brand_id,
        "domain": context.domain,
        "name": context.name,
        "business_type": context.business_type,
        "pricing_model": context.pricing_model,
        "known_products": list(context.known_products),
        "competitors": list(context.competitors),
        "company_info": asdict(context.company_info) if context.company_info else None,
    }


class ScanOrchestrator:
    """Sequences the scan phases for one domain at a time."""

    def __init__(
        self,
        gateway: Optional[ServiceGateway] = None,
        settings: Optional[Settings] = None,
        classifier: Optional[UrlClassifier] = None,
    ):
        self.gateway = gateway or LiveServiceGateway()
        self.settings = settings or get_settings()
        self.classifier = classifier or UrlClassifier()
        self.validator = Validator()

    def resolve_max_pages(self, options: ScanOptions) -> int:
        if options.max_pages is not None:
            return max(0, int(options.max_pages))
        if options.depth == "quick":
            return self.settings.scan_max_pages_quick
        return self.settings.scan_max_pages_thorough

    async def scan(
        self,
        domain: str,
        options: Optional[ScanOptions] = None,
        progress: Optional[ScanProgress] = None,
    ) -> BrandScanResult:
        options = options or ScanOptions()
        domain = clean_domain(domain)
        progress = progress or ScanProgress(domain)
        callback = progress.callback
        settings = self.settings

        started = time.monotonic()
        errors: List[str] = []
        durations = PhaseDurations()
        max_pages = self.resolve_max_pages(options)

        def fail(phase: str, exc: BaseException, timeout: float) -> None:
            message = f"{phase} failed: {_describe(exc, timeout)}"
            logger.warning("[%s] %s", domain, message)
            errors.append(message)
            progress.record_error(message)

        progress.start()

        # Phase 1: research
        progress.advance("researching")
        phase_start = time.monotonic()
        researcher = ContextResearcher(self.gateway, progress_callback=callback)
        try:
            context = await asyncio.wait_for(
                researcher.research(domain, options.depth),
                timeout=settings.phase_research_timeout_seconds,
            )
        except Exception as exc:
            fail("Research", exc, settings.phase_research_timeout_seconds)
            context = BrandContext.unknown(domain)
        durations.research = time.monotonic() - phase_start

        # Phase 2: discovery
        progress.advance("discovering", current_url=f"https://{domain}")
        phase_start = time.monotonic()
        discoverer = SiteDiscoverer(
            self.gateway,
            classifier=self.classifier,
            batch_size=settings.discovery_batch_size,
            batch_delay=settings.discovery_batch_delay_seconds,
            progress_callback=callback,
        )
        try:
            site_map = await asyncio.wait_for(
                discoverer.discover(domain, context, max_pages=max_pages),
                timeout=settings.phase_discovery_timeout_seconds,
            )
        except Exception as exc:
            fail("Discovery", exc, settings.phase_discovery_timeout_seconds)
            site_map = await self._homepage_only(discoverer, domain)
        durations.discovery = time.monotonic() - phase_start

        # Phase 3: extraction
        progress.advance("extracting")
        phase_start = time.monotonic()
        extractor = ContentExtractor(self.gateway, progress_callback=callback)
        pages = self.pages_to_extract(site_map)
        try:
            extraction = await asyncio.wait_for(
                extractor.extract_many(pages, context),
                timeout=settings.phase_extraction_timeout_seconds,
            )
        except Exception as exc:
            fail("Extraction", exc, settings.phase_extraction_timeout_seconds)
            extraction = ExtractionResult.empty(site_map.homepage.url)
        durations.extraction = time.monotonic() - phase_start

        # Phase 4: validation
        progress.advance("validating")
        phase_start = time.monotonic()
        try:
            validated = self.validator.validate(extraction, context)
        except Exception as exc:
            fail("Validation", exc, None)
            validated = ValidationOutcome(confidence=0.0)
        durations.validation = time.monotonic() - phase_start

        # Phase 5: sync (opt-in)
        sync_summary: Optional[SyncSummary] = None
        if options.brand_id and not options.skip_sync:
            progress.advance("syncing")
            phase_start = time.monotonic()
            try:
                sync_summary = await asyncio.wait_for(
                    self.sync_to_cloud(options.brand_id, validated, context),
                    timeout=settings.phase_sync_timeout_seconds,
                )
            except Exception as exc:
                fail("Sync", exc, settings.phase_sync_timeout_seconds)
            durations.sync = time.monotonic() - phase_start

        progress.advance("complete")
        result = BrandScanResult(
            brand=context,
            products=validated.products,
            pricing=validated.pricing,
            features=validated.features,
            assets=validated.assets,
            site_map=site_map,
            confidence=validated.confidence,
            duration=time.monotonic() - started,
            errors=errors,
            phase_durations=durations,
            sync=sync_summary,
            progress=progress,
        )
        logger.info(
            "[%s] Scan complete in %.1fs: %d products, confidence %.2f, %d errors",
            domain,
            result.duration,
            len(result.products),
            result.confidence,
            len(errors),
        )
        return result

    async def _homepage_only(self, discoverer: SiteDiscoverer, domain: str) -> SiteMap:
        url = f"https://{domain}"
        try:
            homepage = await asyncio.wait_for(
                discoverer.scrape_page(url),
                timeout=self.settings.scrape_timeout_seconds,
            )
        except Exception as exc:
            logger.warning("[%s] Homepage fallback scrape failed: %s", domain, _describe(exc))
            homepage = PageInfo(url=url, title="", markdown="", page_type="homepage")
        return SiteMap.homepage_only(homepage)

    @staticmethod
    def pages_to_extract(site_map: SiteMap) -> List[PageInfo]:
        """Homepage, pricing, features and the first product pages; placeholders are skipped."""
        pages = [site_map.homepage]
        if site_map.pricing:
            pages.append(site_map.pricing)
        if site_map.features:
            pages.append(site_map.features)
        pages.extend(site_map.products[:MAX_PRODUCT_PAGES_TO_EXTRACT])
        return [page for page in pages if page.markdown.strip()]

    async def sync_to_cloud(
        self,
        brand_id: str,
        validated: ValidationOutcome,
        context: BrandContext,
    ) -> SyncSummary:
        """Persist validated entities under ``brand_id``.

        The brand upsert must succeed; individual entity failures are logged
        and counted.
        """
        await self.gateway.persist_entity("brand", brand_payload(brand_id, context))
        summary = SyncSummary(brand_id=brand_id)

        async def persist(kind: str, payload: Dict[str, Any]) -> bool:
            try:
                await self.gateway.persist_entity(kind, payload)
                return True
            except Exception as exc:
                summary.failures += 1
                logger.warning("Failed to persist %s for brand %s: %s", kind, brand_id, exc)
                return False

        for product in validated.products:
            if product.validation_score < SYNC_MIN_PRODUCT_SCORE:
                summary.products_skipped += 1
                logger.info("Skipping low-confidence product %r (%.2f)", product.name, product.validation_score)
                continue
            inserted = await persist("product", {
                "brand_id": brand_id,
                "name": product.name,
                "type": product.type,
                "description": product.description,
                "price": product.price,
                "currency": product.currency,
                "images": list(product.images),
                "category": product.category,
                "variants": [asdict(variant) for variant in product.variants] if product.variants else None,
                "source_url": product.source_url,
                "validation_score": product.validation_score,
                "needs_review": product.needs_review,
            })
            if inserted:
                summary.products_inserted += 1

        if validated.pricing:
            pricing = validated.pricing
            summary.pricing_inserted = await persist("pricing", {
                "brand_id": brand_id,
                "model": pricing.model,
                "tiers": [asdict(tier) for tier in pricing.tiers],
                "has_free_tier": pricing.has_free_tier,
                "has_enterprise": pricing.has_enterprise,
                "billing_options": list(pricing.billing_options),
                "validation_score": pricing.validation_score,
                "validation_concerns": list(pricing.validation_concerns),
            })

        for feature in validated.features:
            if await persist("feature", {
                "brand_id": brand_id,
                "name": feature.name,
                "description": feature.description,
                "category": feature.category,
                "status": feature.status,
                "included_in": feature.included_in,
                "validation_score": feature.validation_score,
            }):
                summary.features_inserted += 1

        for asset in validated.assets:
            if asset.is_junk:
                continue
            if await persist("asset", {
                "brand_id": brand_id,
                "url": asset.url,
                "type": asset.type,
                "alt": asset.alt,
                "context": asset.context,
                "product_association": asset.product_association,
                "validation_score": asset.validation_score,
            }):
                summary.assets_inserted += 1

        logger.info(
            "Synced brand %s: %d products (%d skipped), %d features, %d assets, %d failures",
            brand_id,
            summary.products_inserted,
            summary.products_skipped,
            summary.features_inserted,
            summary.assets_inserted,
            summary.failures,
        )
        return summary


async def scan_brand(
    domain: str,
    options: Optional[ScanOptions] = None,
    gateway: Optional[ServiceGateway] = None,
    progress: Optional[ScanProgress] = None,
) -> BrandScanResult:
    """Run a full brand scan. Never raises; problems are reported in ``result.errors``."""
    return await ScanOrchestrator(gateway=gateway).scan(domain, options, progress)


async def quick_scan(
    domain: str,
    gateway: Optional[ServiceGateway] = None,
    progress: Optional[ScanProgress] = None,
) -> BrandScanResult:
    """Quick depth, five pages, no sync."""
    return await scan_brand(
        domain,
        ScanOptions(depth="quick", max_pages=5, skip_sync=True),
        gateway=gateway,
        progress=progress,
    )
