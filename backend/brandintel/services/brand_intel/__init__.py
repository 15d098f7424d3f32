"""Brand intelligence pipeline: research, discovery, extraction, validation, sync."""

from .models import (
    BrandContext,
    CompanyInfo,
    NewsArticle,
    PageInfo,
    DiscoveredUrl,
    SiteMap,
    ProductExtraction,
    PricingExtraction,
    PricingTier,
    FeatureExtraction,
    AssetExtraction,
    ExtractionResult,
    ValidatedProduct,
    ValidatedPricing,
    ValidatedFeature,
    ValidatedAsset,
    ValidationOutcome,
    ScanOptions,
    PhaseDurations,
    SyncSummary,
    BrandScanResult,
)
from .classifier import UrlClassifier, classify_url
from .gateway import ServiceGateway, LiveServiceGateway
from .progress import ScanProgress
from .research import ContextResearcher
from .discovery import SiteDiscoverer
from .extraction import ContentExtractor, ExtractionStrategy
from .merge import ExtractionMerger, merge_extractions
from .validation import Validator, fuzzy_match, is_junk_image
from .quality import QualityReport, assess_scan_quality
from .orchestrator import ScanOrchestrator, scan_brand, quick_scan

__all__ = [
    # Main entry points
    "scan_brand",
    "quick_scan",
    "ScanOrchestrator",

    # Phase components
    "UrlClassifier",
    "ContextResearcher",
    "SiteDiscoverer",
    "ContentExtractor",
    "ExtractionStrategy",
    "ExtractionMerger",
    "Validator",
    "ScanProgress",

    # Service contracts
    "ServiceGateway",
    "LiveServiceGateway",

    # Data models
    "BrandContext",
    "CompanyInfo",
    "NewsArticle",
    "PageInfo",
    "DiscoveredUrl",
    "SiteMap",
    "ProductExtraction",
    "PricingExtraction",
    "PricingTier",
    "FeatureExtraction",
    "AssetExtraction",
    "ExtractionResult",
    "ValidatedProduct",
    "ValidatedPricing",
    "ValidatedFeature",
    "ValidatedAsset",
    "ValidationOutcome",
    "ScanOptions",
    "PhaseDurations",
    "SyncSummary",
    "BrandScanResult",
    "QualityReport",

    # Utility functions
    "classify_url",
    "merge_extractions",
    "fuzzy_match",
    "is_junk_image",
    "assess_scan_quality",
]
