"""Schema validation for LLM extraction output.

The raw completion text is first parsed into an untyped JSON value, then each
entry is validated against a pydantic item model. Entries that fail validation
are dropped individually; the rest of the payload survives.
"""

import json
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import (
    ASSET_TYPES,
    BILLING_PERIODS,
    DEFAULT_ITEM_CONFIDENCE,
    EXTRACTION_JUNK_IMAGE_PATTERNS,
    FEATURE_STATUSES,
    PRICE_TYPES,
    PRICING_MODELS,
    PRODUCT_TYPES,
)
from .models import (
    AssetExtraction,
    ExtractionResult,
    FeatureExtraction,
    PricingExtraction,
    PricingTier,
    ProductExtraction,
    ProductVariant,
    clamp_score,
)


class ExtractionSchemaError(ValueError):
    """Raised when a model response cannot be turned into a JSON object."""


def parse_json_payload(text: Any) -> Any:
    """Parse model output into an untyped JSON value.

    Tolerates code fences and prose around the object by falling back to the
    outermost ``{...}`` span.
    """
    if isinstance(text, (dict, list)):
        return text
    response_text = str(text or "").strip()
    if not response_text:
        raise ExtractionSchemaError("Empty model response")
    try:
        return json.loads(response_text)
    except json.JSONDecodeError:
        pass

    start_idx = response_text.find("{")
    end_idx = response_text.rfind("}") + 1
    if start_idx == -1 or end_idx == 0:
        raise ExtractionSchemaError("No JSON object found in model response")
    try:
        return json.loads(response_text[start_idx:end_idx])
    except json.JSONDecodeError as e:
        raise ExtractionSchemaError(f"Malformed JSON in model response: {e}") from e


def is_valid_image_url(url: Any) -> bool:
    """Absolute http(s) URL that does not look like a tracking pixel or social icon."""
    if not url or not isinstance(url, str):
        return False
    if not url.startswith("http"):
        return False
    return not any(pattern.search(url) for pattern in EXTRACTION_JUNK_IMAGE_PATTERNS)


_NUMBER_CLEANUP = re.compile(r"[^\d.\-]")


def coerce_number(value: Any) -> Optional[float]:
    """Numbers pass through, numeric strings like ``"$1,299.00"`` are coerced, anything else is None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = _NUMBER_CLEANUP.sub("", value.replace(",", ""))
        if not cleaned or cleaned in ("-", ".", "-."):
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _optional_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return None


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [text for text in (_optional_text(item) for item in value) if text]


def _choice(value: Any, allowed, default: str) -> str:
    text = value.strip().lower() if isinstance(value, str) else ""
    return text if text in allowed else default


def _confidence(value: Any, default: float = DEFAULT_ITEM_CONFIDENCE) -> float:
    number = coerce_number(value) if not isinstance(value, str) else None
    if number is None:
        return default
    return clamp_score(number)


ItemModel = TypeVar("ItemModel", bound=BaseModel)


def validate_items(model: Type[ItemModel], entries: Any) -> List[ItemModel]:
    """Validate each entry on its own; invalid entries are dropped."""
    if not isinstance(entries, list):
        return []
    items: List[ItemModel] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        try:
            items.append(model.model_validate(entry))
        except ValidationError:
            continue
    return items


class _LenientItem(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class VariantItem(_LenientItem):
    name: str
    price: Optional[float] = None
    sku: Optional[str] = None
    available: Optional[bool] = None

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, value: Any) -> str:
        text = _optional_text(value)
        if not text:
            raise ValueError("variant name is required")
        return text

    @field_validator("price", mode="before")
    @classmethod
    def clean_price(cls, value: Any) -> Optional[float]:
        return coerce_number(value)

    @field_validator("sku", mode="before")
    @classmethod
    def clean_sku(cls, value: Any) -> Optional[str]:
        return _optional_text(value)

    @field_validator("available", mode="before")
    @classmethod
    def clean_available(cls, value: Any) -> Optional[bool]:
        return value if isinstance(value, bool) else None


class ProductItem(_LenientItem):
    name: str
    type: str = "saas"
    description: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    variants: Optional[List[VariantItem]] = None
    confidence: float = DEFAULT_ITEM_CONFIDENCE

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("product name must be a non-empty string")
        return value.strip()

    @field_validator("type", mode="before")
    @classmethod
    def clean_type(cls, value: Any) -> str:
        return _choice(value, PRODUCT_TYPES, "saas")

    @field_validator("description", "currency", "category", mode="before")
    @classmethod
    def clean_text(cls, value: Any) -> Optional[str]:
        return _optional_text(value)

    @field_validator("price", mode="before")
    @classmethod
    def clean_price(cls, value: Any) -> Optional[float]:
        return coerce_number(value)

    @field_validator("images", mode="before")
    @classmethod
    def clean_images(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return [url.strip() for url in value if is_valid_image_url(url)]

    @field_validator("variants", mode="before")
    @classmethod
    def clean_variants(cls, value: Any) -> Optional[List[VariantItem]]:
        variants = validate_items(VariantItem, value)
        return variants or None

    @field_validator("confidence", mode="before")
    @classmethod
    def clean_confidence(cls, value: Any) -> float:
        return _confidence(value)


class TierItem(_LenientItem):
    name: str
    display_name: Optional[str] = Field(default=None, alias="displayName")
    price: Optional[float] = None
    billing_period: str = Field(default="monthly", alias="billingPeriod")
    price_type: str = Field(default="flat", alias="priceType")
    is_popular: bool = Field(default=False, alias="isPopular")
    features: List[str] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, value: Any) -> str:
        text = _optional_text(value)
        if not text:
            raise ValueError("tier name is required")
        return text

    @field_validator("display_name", mode="before")
    @classmethod
    def clean_display_name(cls, value: Any) -> Optional[str]:
        return _optional_text(value)

    @field_validator("price", mode="before")
    @classmethod
    def clean_price(cls, value: Any) -> Optional[float]:
        return coerce_number(value)

    @field_validator("billing_period", mode="before")
    @classmethod
    def clean_billing_period(cls, value: Any) -> str:
        return _choice(value, BILLING_PERIODS, "monthly")

    @field_validator("price_type", mode="before")
    @classmethod
    def clean_price_type(cls, value: Any) -> str:
        return _choice(value, PRICE_TYPES, "flat")

    @field_validator("is_popular", mode="before")
    @classmethod
    def clean_is_popular(cls, value: Any) -> bool:
        return value is True

    @field_validator("features", mode="before")
    @classmethod
    def clean_features(cls, value: Any) -> List[str]:
        return _string_list(value)


class PricingItem(_LenientItem):
    model: str = "unknown"
    tiers: List[TierItem] = Field(default_factory=list)
    has_free_tier: bool = Field(default=False, alias="hasFreeTier")
    has_enterprise: bool = Field(default=False, alias="hasEnterprise")
    billing_options: List[str] = Field(default_factory=list, alias="billingOptions")
    confidence: float = DEFAULT_ITEM_CONFIDENCE

    @field_validator("model", mode="before")
    @classmethod
    def clean_model(cls, value: Any) -> str:
        return _choice(value, PRICING_MODELS, "unknown")

    @field_validator("tiers", mode="before")
    @classmethod
    def clean_tiers(cls, value: Any) -> List[TierItem]:
        return validate_items(TierItem, value)

    @field_validator("has_free_tier", "has_enterprise", mode="before")
    @classmethod
    def clean_flags(cls, value: Any) -> bool:
        return value is True

    @field_validator("billing_options", mode="before")
    @classmethod
    def clean_billing_options(cls, value: Any) -> List[str]:
        return _string_list(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def clean_confidence(cls, value: Any) -> float:
        # A zero or missing pricing confidence reads as "not reported".
        if not value:
            return DEFAULT_ITEM_CONFIDENCE
        return _confidence(value)


class FeatureItem(_LenientItem):
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    status: str = "ga"
    included_in: Optional[List[str]] = Field(default=None, alias="includedIn")

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, value: Any) -> str:
        text = _optional_text(value)
        if not text:
            raise ValueError("feature name is required")
        return text

    @field_validator("description", "category", mode="before")
    @classmethod
    def clean_text(cls, value: Any) -> Optional[str]:
        return _optional_text(value)

    @field_validator("status", mode="before")
    @classmethod
    def clean_status(cls, value: Any) -> str:
        return _choice(value, FEATURE_STATUSES, "ga")

    @field_validator("included_in", mode="before")
    @classmethod
    def clean_included_in(cls, value: Any) -> Optional[List[str]]:
        return _string_list(value) or None


class AssetItem(_LenientItem):
    url: str
    type: str = "image"
    alt: Optional[str] = None
    context: Optional[str] = None
    product_association: Optional[str] = Field(default=None, alias="productAssociation")

    @field_validator("url", mode="before")
    @classmethod
    def clean_url(cls, value: Any) -> str:
        if not is_valid_image_url(value):
            raise ValueError("asset url must be an absolute, non-junk image url")
        return value.strip()

    @field_validator("type", mode="before")
    @classmethod
    def clean_type(cls, value: Any) -> str:
        return _choice(value, ASSET_TYPES, "image")

    @field_validator("alt", "context", "product_association", mode="before")
    @classmethod
    def clean_text(cls, value: Any) -> Optional[str]:
        return _optional_text(value)


@dataclass
class ExtractionParse:
    """Either a typed extraction result or the reason the payload was rejected."""
    result: Optional[ExtractionResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


def _product(item: ProductItem, source_url: str) -> ProductExtraction:
    variants = None
    if item.variants:
        variants = [ProductVariant(**variant.model_dump()) for variant in item.variants]
    return ProductExtraction(
        name=item.name,
        type=item.type,
        source_url=source_url,
        description=item.description,
        price=item.price,
        currency=item.currency,
        images=list(item.images),
        category=item.category,
        variants=variants,
        confidence=item.confidence,
    )


def _pricing(raw: Any, source_url: str) -> Optional[PricingExtraction]:
    if not isinstance(raw, dict):
        return None
    try:
        item = PricingItem.model_validate(raw)
    except ValidationError:
        return None
    if not item.tiers:
        return None
    return PricingExtraction(
        model=item.model,
        tiers=[
            PricingTier(
                name=tier.name,
                price=tier.price,
                billing_period=tier.billing_period,
                price_type=tier.price_type,
                display_name=tier.display_name,
                is_popular=tier.is_popular,
                features=list(tier.features),
            )
            for tier in item.tiers
        ],
        source_url=source_url,
        has_free_tier=item.has_free_tier,
        has_enterprise=item.has_enterprise,
        billing_options=list(item.billing_options),
        confidence=item.confidence,
    )


def build_extraction_result(data: Dict[str, Any], source_url: str) -> ExtractionResult:
    """Turn a parsed JSON object into an ExtractionResult, dropping invalid entries."""
    products = [_product(item, source_url) for item in validate_items(ProductItem, data.get("products"))]
    pricing = _pricing(data.get("pricing"), source_url)
    features = [
        FeatureExtraction(
            name=item.name,
            source_url=source_url,
            description=item.description,
            category=item.category,
            status=item.status,
            included_in=item.included_in,
        )
        for item in validate_items(FeatureItem, data.get("features"))
    ]
    assets = [
        AssetExtraction(
            url=item.url,
            source_url=source_url,
            type=item.type,
            alt=item.alt,
            context=item.context,
            product_association=item.product_association,
        )
        for item in validate_items(AssetItem, data.get("assets"))
    ]

    overall = coerce_number(data.get("overallConfidence"))
    confidences = [product.confidence for product in products]
    confidences.append(pricing.confidence if pricing else 0.0)
    confidences.append(clamp_score(overall) if overall is not None else 0.0)
    confidences = [value for value in confidences if value > 0]
    confidence = sum(confidences) / len(confidences) if confidences else 0.0

    return ExtractionResult(
        products=products,
        pricing=pricing,
        features=features,
        assets=assets,
        confidence=clamp_score(confidence),
        source_url=source_url,
    )


def parse_extraction_payload(text: Any, source_url: str) -> ExtractionParse:
    """Raw completion text -> ``ExtractionParse`` (result or error), never raises."""
    try:
        data = parse_json_payload(text)
    except ExtractionSchemaError as e:
        return ExtractionParse(error=str(e))
    if not isinstance(data, dict):
        return ExtractionParse(error=f"Expected a JSON object, got {type(data).__name__}")
    return ExtractionParse(result=build_extraction_result(data, source_url))
