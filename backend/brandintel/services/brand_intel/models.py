"""Data models for the brand intelligence pipeline."""

import time
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from typing import Any, Dict, List, Optional


def clamp_score(value: float) -> float:
    """Clamp a confidence or validation score into [0, 1]."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number:  # NaN
        return 0.0
    return max(0.0, min(1.0, number))


# ---------------------------------------------------------------------------
# Research
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NewsArticle:
    title: str
    url: str
    date: str = ""
    source: Optional[str] = None


@dataclass(frozen=True)
class CompanyInfo:
    employees: str = ""
    founded: Optional[int] = None
    funding: str = ""
    industry: str = ""
    headquarters: Optional[Dict[str, Optional[str]]] = None


@dataclass(frozen=True)
class BrandContext:
    """Pre-research summary that biases every later phase. Read-only."""
    name: str
    domain: str
    business_type: str = "unknown"
    known_products: List[str] = field(default_factory=list)
    pricing_model: str = "unknown"
    competitors: List[str] = field(default_factory=list)
    recent_news: List[NewsArticle] = field(default_factory=list)
    company_info: Optional[CompanyInfo] = None

    @classmethod
    def unknown(cls, domain: str) -> "BrandContext":
        return cls(name=domain.split(".")[0], domain=domain)


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------

@dataclass
class PageInfo:
    url: str
    title: str
    markdown: str
    page_type: str
    html: Optional[str] = None
    scraped_at: float = field(default_factory=time.time)


@dataclass
class DiscoveredUrl:
    url: str
    page_type: str
    priority: int
    confidence: float


@dataclass
class SiteMap:
    homepage: PageInfo
    pricing: Optional[PageInfo] = None
    products: List[PageInfo] = field(default_factory=list)
    features: Optional[PageInfo] = None
    about: Optional[PageInfo] = None
    all_urls: List[str] = field(default_factory=list)

    @classmethod
    def homepage_only(cls, homepage: PageInfo) -> "SiteMap":
        return cls(homepage=homepage, all_urls=[homepage.url] if homepage.url else [])


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

@dataclass
class ProductVariant:
    name: str
    price: Optional[float] = None
    sku: Optional[str] = None
    available: Optional[bool] = None


@dataclass
class ProductExtraction:
    name: str
    type: str  # physical, saas, service
    source_url: str
    description: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    images: List[str] = field(default_factory=list)
    category: Optional[str] = None
    variants: Optional[List[ProductVariant]] = None
    confidence: float = 0.7


@dataclass
class PricingTier:
    name: str
    price: Optional[float] = None
    billing_period: str = "monthly"
    price_type: str = "flat"
    display_name: Optional[str] = None
    is_popular: bool = False
    features: List[str] = field(default_factory=list)


@dataclass
class PricingExtraction:
    model: str
    tiers: List[PricingTier]
    source_url: str
    has_free_tier: bool = False
    has_enterprise: bool = False
    billing_options: List[str] = field(default_factory=list)
    confidence: float = 0.7


@dataclass
class FeatureExtraction:
    name: str
    source_url: str
    description: Optional[str] = None
    category: Optional[str] = None
    status: str = "ga"
    included_in: Optional[List[str]] = None


@dataclass
class AssetExtraction:
    url: str
    source_url: str
    type: str = "image"
    alt: Optional[str] = None
    context: Optional[str] = None
    product_association: Optional[str] = None


@dataclass
class ExtractionResult:
    products: List[ProductExtraction] = field(default_factory=list)
    pricing: Optional[PricingExtraction] = None
    features: List[FeatureExtraction] = field(default_factory=list)
    assets: List[AssetExtraction] = field(default_factory=list)
    confidence: float = 0.0
    source_url: str = ""

    @classmethod
    def empty(cls, source_url: str = "") -> "ExtractionResult":
        return cls(source_url=source_url)

    @property
    def is_empty(self) -> bool:
        return not (self.products or self.pricing or self.features or self.assets)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

@dataclass
class ValidatedProduct(ProductExtraction):
    validation_score: float = 0.0
    validation_concerns: List[str] = field(default_factory=list)
    needs_review: bool = False
    cross_check_sources: List[str] = field(default_factory=list)


@dataclass
class ValidatedPricing(PricingExtraction):
    validation_score: float = 0.0
    validation_concerns: List[str] = field(default_factory=list)


@dataclass
class ValidatedFeature(FeatureExtraction):
    validation_score: float = 0.0


@dataclass
class ValidatedAsset(AssetExtraction):
    validation_score: float = 0.0
    is_junk: bool = False


@dataclass
class ValidationOutcome:
    products: List[ValidatedProduct] = field(default_factory=list)
    pricing: Optional[ValidatedPricing] = None
    features: List[ValidatedFeature] = field(default_factory=list)
    assets: List[ValidatedAsset] = field(default_factory=list)
    confidence: float = 0.0


# ---------------------------------------------------------------------------
# Scan
# ---------------------------------------------------------------------------

@dataclass
class ScanOptions:
    depth: str = "thorough"  # quick, thorough
    max_pages: Optional[int] = None
    brand_id: Optional[str] = None
    skip_sync: bool = False


@dataclass
class PhaseDurations:
    research: float = 0.0
    discovery: float = 0.0
    extraction: float = 0.0
    validation: float = 0.0
    sync: float = 0.0


@dataclass
class SyncSummary:
    brand_id: str
    products_inserted: int = 0
    products_skipped: int = 0
    pricing_inserted: bool = False
    features_inserted: int = 0
    assets_inserted: int = 0
    failures: int = 0


@dataclass(frozen=True)
class BrandScanResult:
    brand: BrandContext
    products: List[ValidatedProduct]
    pricing: Optional[ValidatedPricing]
    features: List[ValidatedFeature]
    assets: List[ValidatedAsset]
    site_map: SiteMap
    confidence: float
    duration: float
    errors: List[str]
    phase_durations: PhaseDurations
    sync: Optional[SyncSummary] = None
    progress: Optional[Any] = None

    def to_dict(self, include_html: bool = False) -> Dict[str, Any]:
        """JSON-ready representation; raw page HTML is dropped unless asked for."""
        data: Dict[str, Any] = {}
        for item in fields(self):
            if item.name == "progress":
                continue
            value = getattr(self, item.name)
            if is_dataclass(value):
                value = asdict(value)
            elif isinstance(value, list):
                value = [asdict(entry) if is_dataclass(entry) else entry for entry in value]
            data[item.name] = value
        if self.progress is not None:
            data["progress"] = self.progress.to_dict()
        if not include_html:
            site_map = data["site_map"]
            for key in ("homepage", "pricing", "features", "about"):
                if site_map.get(key):
                    site_map[key].pop("html", None)
            for page in site_map.get("products") or []:
                page.pop("html", None)
        return data
