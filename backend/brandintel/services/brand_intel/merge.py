"""Merging of per-page extraction results."""

from typing import List, Optional, Sequence, Set

from .models import (
    AssetExtraction,
    ExtractionResult,
    FeatureExtraction,
    PricingExtraction,
    ProductExtraction,
    clamp_score,
)


def name_key(name: str) -> str:
    return str(name or "").strip().lower()


class ExtractionMerger:
    """Deduplicates extraction results; the first-seen entry for a key wins."""

    def merge(self, results: Sequence[ExtractionResult]) -> ExtractionResult:
        products: List[ProductExtraction] = []
        features: List[FeatureExtraction] = []
        assets: List[AssetExtraction] = []
        pricing: Optional[PricingExtraction] = None

        seen_products: Set[str] = set()
        seen_features: Set[str] = set()
        seen_assets: Set[str] = set()

        for result in results:
            for product in result.products:
                key = name_key(product.name)
                if key not in seen_products:
                    seen_products.add(key)
                    products.append(product)

            # highest reported confidence wins, ties keep the earlier one
            if result.pricing and (pricing is None or result.pricing.confidence > pricing.confidence):
                pricing = result.pricing

            for feature in result.features:
                key = name_key(feature.name)
                if key not in seen_features:
                    seen_features.add(key)
                    features.append(feature)

            for asset in result.assets:
                if asset.url not in seen_assets:
                    seen_assets.add(asset.url)
                    assets.append(asset)

        confidences = [result.confidence for result in results if result.confidence > 0]
        confidence = sum(confidences) / len(confidences) if confidences else 0.0

        return ExtractionResult(
            products=products,
            pricing=pricing,
            features=features,
            assets=assets,
            confidence=clamp_score(confidence),
            source_url=results[0].source_url if results else "",
        )


def merge_extractions(results: Sequence[ExtractionResult]) -> ExtractionResult:
    return ExtractionMerger().merge(results)
