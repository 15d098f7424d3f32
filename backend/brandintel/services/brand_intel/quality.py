"""Post-scan quality gate over a BrandScanResult."""

from dataclasses import dataclass, field
from typing import List

from .constants import MIN_NAME_LENGTH
from .models import BrandScanResult

QUALITY_NAVIGATION_WORDS = ("menu", "home", "about", "contact", "login", "cart", "shop", "all")
PASSING_SCORE = 60


@dataclass
class QualityIssue:
    severity: str  # error, warning
    field: str
    message: str


@dataclass
class QualityReport:
    valid: bool
    score: int
    issues: List[QualityIssue] = field(default_factory=list)
    summary: str = ""


def assess_scan_quality(
    result: BrandScanResult,
    min_products: int = 5,
    min_with_images: int = 3,
    min_with_price: int = 0,
) -> QualityReport:
    """Score a scan out of 100; it passes at 60 or more with no error-level issue."""
    products = result.products
    issues: List[QualityIssue] = []
    score = 100

    if len(products) < min_products:
        issues.append(QualityIssue(
            "error", "products.total",
            f"Found {len(products)} products, need at least {min_products}",
        ))
        score -= 30

    with_images = sum(1 for product in products if product.images)
    if with_images < min_with_images:
        issues.append(QualityIssue(
            "warning", "products.with_images",
            f"Only {with_images} products have images, need at least {min_with_images}",
        ))
        score -= 15

    with_price = sum(1 for product in products if product.price is not None)
    if with_price < min_with_price:
        issues.append(QualityIssue(
            "warning", "products.with_price",
            f"Only {with_price} products have prices, need at least {min_with_price}",
        ))
        score -= 10

    names = [product.name.lower().strip() for product in products]
    duplicates = len(names) - len(set(names))
    if duplicates:
        issues.append(QualityIssue(
            "warning", "products.duplicates",
            f"Found {duplicates} duplicate product names",
        ))
        score -= 5 * min(duplicates, 5)

    invalid = [product for product in products if not product.name or len(product.name) < MIN_NAME_LENGTH]
    if invalid:
        issues.append(QualityIssue(
            "error", "products.junk",
            f"Found {len(invalid)} products with invalid names",
        ))
        score -= 10 * min(len(invalid), 3)

    nav_junk = [product.name for product in products if product.name.lower() in QUALITY_NAVIGATION_WORDS]
    if nav_junk:
        issues.append(QualityIssue(
            "error", "products.nav_junk",
            f"Found {len(nav_junk)} navigation items extracted as products: {', '.join(nav_junk)}",
        ))
        score -= 20

    score = max(0, score)
    errors = [issue for issue in issues if issue.severity == "error"]
    valid = score >= PASSING_SCORE and not errors

    if valid:
        summary = f"Validation passed with score {score}/100. Found {len(products)} products."
    else:
        summary = f"Validation failed with score {score}/100. {len(errors)} errors found."
    return QualityReport(valid=valid, score=score, issues=issues, summary=summary)
