"""Phase 4: Rule-based validation and confidence scoring.

Every extracted entity starts from a base score and picks up adjustments from
heuristics: known-product matches, type and price sanity, name quality,
image and description coverage. Findings are recorded as concerns on the
entity rather than raised; a low score marks the entity for review.
"""

import logging
import re
from collections import Counter
from dataclasses import fields
from typing import List, Optional, Sequence

from .constants import (
    BASE_SCORE,
    JUNK_IMAGE_PATTERNS,
    KNOWN_PRODUCT_MATCH_THRESHOLD,
    MAX_PRODUCT_NAME_LENGTH,
    MIN_DESCRIPTION_LENGTH,
    MIN_NAME_LENGTH,
    NAVIGATION_WORDS,
    PHYSICAL_MAX_PRICE,
    PHYSICAL_MIN_PRICE,
    REVIEW_MAX_CONCERNS,
    REVIEW_SCORE_THRESHOLD,
    SAAS_MAX_PRICE,
)
from .models import (
    AssetExtraction,
    BrandContext,
    ExtractionResult,
    FeatureExtraction,
    PricingExtraction,
    ProductExtraction,
    ValidatedAsset,
    ValidatedFeature,
    ValidatedPricing,
    ValidatedProduct,
    ValidationOutcome,
    clamp_score,
)

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_NUMERIC_NAME = re.compile(r"^\$?\d+(\.\d+)?$")


def _field_values(item) -> dict:
    """Shallow field copy, keeping nested dataclasses such as tiers intact."""
    return {f.name: getattr(item, f.name) for f in fields(item)}


def _normalize(text: str) -> str:
    return _NON_ALNUM.sub("", str(text or "").lower())


def fuzzy_match(a: str, b: str) -> float:
    """Similarity in [0, 1]: equal after normalization, containment, else character-set Jaccard."""
    a_norm = _normalize(a)
    b_norm = _normalize(b)
    if a_norm == b_norm:
        return 1.0
    if not a_norm or not b_norm:
        return 0.0
    if a_norm in b_norm or b_norm in a_norm:
        return 0.9
    a_chars = set(a_norm)
    b_chars = set(b_norm)
    union = a_chars | b_chars
    if not union:
        return 0.0
    return len(a_chars & b_chars) / len(union)


def is_junk_image(url: str) -> bool:
    return any(pattern.search(url or "") for pattern in JUNK_IMAGE_PATTERNS)


def is_type_consistent(product_type: str, business_type: str) -> bool:
    if business_type == "saas" and product_type == "physical":
        return False
    if business_type == "ecommerce" and product_type == "saas":
        return False
    return True


def check_price(price: float, product_type: str, context: BrandContext) -> Optional[str]:
    if price < 0:
        return "Negative price detected"
    if context.business_type == "saas" and price > SAAS_MAX_PRICE:
        return "Unusually high price for SaaS (over $50k/month?)"
    if product_type == "physical":
        if price > PHYSICAL_MAX_PRICE:
            return "Unusually high price for physical product"
        if 0 < price < PHYSICAL_MIN_PRICE:
            return "Suspiciously low price"
    return None


def check_product_name(name: str) -> List[str]:
    issues: List[str] = []
    if len(name) > MAX_PRODUCT_NAME_LENGTH:
        issues.append("Product name too long (might be description)")
    if "..." in name or "…" in name:
        issues.append("Product name appears truncated")
    if name.strip().lower() in NAVIGATION_WORDS:
        issues.append("Product name looks like navigation item")
    if _NUMERIC_NAME.match(name.strip()):
        issues.append("Product name appears to be just a price/number")
    if len(name) < MIN_NAME_LENGTH:
        issues.append("Product name too short")
    return issues


class Validator:
    """Scores extracted entities against the brand context."""

    def validate_product(self, product: ProductExtraction, context: BrandContext) -> ValidatedProduct:
        concerns: List[str] = []
        score = BASE_SCORE

        known_match = next(
            (
                known
                for known in context.known_products
                if fuzzy_match(known, product.name) >= KNOWN_PRODUCT_MATCH_THRESHOLD
            ),
            None,
        )
        if known_match:
            score += 0.1

        if not is_type_consistent(product.type, context.business_type):
            concerns.append(f'Product type "{product.type}" unusual for {context.business_type} business')
            score -= 0.1

        if product.price is not None:
            price_issue = check_price(product.price, product.type, context)
            if price_issue:
                concerns.append(price_issue)
                score -= 0.15

        name_issues = check_product_name(product.name)
        if name_issues:
            concerns.extend(name_issues)
            score -= 0.2 * len(name_issues)

        if not product.images:
            concerns.append("No images found")
            score -= 0.05
        else:
            junk = [url for url in product.images if is_junk_image(url)]
            if junk:
                concerns.append(f"{len(junk)} potentially junk images")
                score -= 0.05

        if not product.description or len(product.description) < MIN_DESCRIPTION_LENGTH:
            concerns.append("Missing or short description")
            score -= 0.05

        score = clamp_score(score)
        return ValidatedProduct(
            **_field_values(product),
            validation_score=score,
            validation_concerns=concerns,
            needs_review=score < REVIEW_SCORE_THRESHOLD or len(concerns) > REVIEW_MAX_CONCERNS,
            cross_check_sources=["pre-research"] if known_match else [],
        )

    def validate_pricing(self, pricing: PricingExtraction, context: BrandContext) -> ValidatedPricing:
        concerns: List[str] = []
        score = BASE_SCORE

        if not pricing.tiers:
            concerns.append("No pricing tiers found")
            score -= 0.3
        elif len(pricing.tiers) == 1:
            concerns.append("Only one pricing tier (might be incomplete)")
            score -= 0.1

        prices = [tier.price for tier in pricing.tiers if tier.price is not None]
        if len(prices) > 1 and any(later < earlier for earlier, later in zip(prices, prices[1:])):
            concerns.append("Pricing tiers not in ascending order")
            score -= 0.1

        names = [tier.name.lower() for tier in pricing.tiers]
        if len(set(names)) < len(names):
            concerns.append("Duplicate tier names detected")
            score -= 0.15

        if context.pricing_model != "unknown" and pricing.model != context.pricing_model:
            concerns.append(f'Extracted model "{pricing.model}" differs from research "{context.pricing_model}"')
            score -= 0.1

        if not any(tier.features for tier in pricing.tiers):
            concerns.append("No features extracted for any tier")
            score -= 0.1

        return ValidatedPricing(
            **_field_values(pricing),
            validation_score=clamp_score(score),
            validation_concerns=concerns,
        )

    def validate_feature(self, feature: FeatureExtraction, context: BrandContext) -> ValidatedFeature:
        score = BASE_SCORE
        if not feature.name or len(feature.name) < MIN_NAME_LENGTH:
            score -= 0.3
        if not feature.description:
            score -= 0.1

        name = (feature.name or "").lower()
        description = (feature.description or "").lower()
        for known in context.known_products:
            known = known.lower()
            if known and (known in name or known in description):
                score += 0.1
                break

        return ValidatedFeature(**_field_values(feature), validation_score=clamp_score(score))

    def validate_asset(self, asset: AssetExtraction, products: Sequence[ValidatedProduct]) -> ValidatedAsset:
        junk = is_junk_image(asset.url)
        score = 0.2 if junk else BASE_SCORE

        if asset.product_association and any(
            fuzzy_match(product.name, asset.product_association) >= KNOWN_PRODUCT_MATCH_THRESHOLD
            for product in products
        ):
            score += 0.1

        if asset.alt and len(asset.alt) > 5:
            score += 0.05

        return ValidatedAsset(**_field_values(asset), validation_score=clamp_score(score), is_junk=junk)

    def validate_product_batch(
        self,
        products: Sequence[ProductExtraction],
        context: BrandContext,
    ) -> List[ValidatedProduct]:
        """Per-product scoring plus a cross-product pass that flags duplicate names."""
        validated = [self.validate_product(product, context) for product in products]
        counts = Counter(product.name.lower() for product in validated)
        for product in validated:
            count = counts[product.name.lower()]
            if count > 1:
                product.validation_concerns.append(f"Duplicate product name (appears {count} times)")
                product.validation_score = clamp_score(product.validation_score - 0.1)
                product.needs_review = True
        return validated

    def validate(self, extraction: ExtractionResult, context: BrandContext) -> ValidationOutcome:
        products = self.validate_product_batch(extraction.products, context)
        pricing = self.validate_pricing(extraction.pricing, context) if extraction.pricing else None
        features = [self.validate_feature(feature, context) for feature in extraction.features]
        assets = [self.validate_asset(asset, products) for asset in extraction.assets]

        scores = [product.validation_score for product in products]
        scores.append(pricing.validation_score if pricing else 0.0)
        scores = [score for score in scores if score > 0]
        confidence = sum(scores) / len(scores) if scores else extraction.confidence

        logger.info(
            "Validation complete: %d products (%d need review), confidence %.2f",
            len(products),
            sum(1 for product in products if product.needs_review),
            confidence,
        )
        return ValidationOutcome(
            products=products,
            pricing=pricing,
            features=features,
            assets=assets,
            confidence=clamp_score(confidence),
        )


def validate_extraction(extraction: ExtractionResult, context: BrandContext) -> ValidationOutcome:
    return Validator().validate(extraction, context)
