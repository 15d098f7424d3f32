from brandintel.services.brand_intel.models import (
    BrandContext,
    BrandScanResult,
    PageInfo,
    PhaseDurations,
    SiteMap,
    ValidatedProduct,
)
from brandintel.services.brand_intel.quality import assess_scan_quality


def _result(products):
    return BrandScanResult(
        brand=BrandContext(name="Acme", domain="acme.test"),
        products=products,
        pricing=None,
        features=[],
        assets=[],
        site_map=SiteMap.homepage_only(PageInfo(url="https://acme.test", title="", markdown="", page_type="homepage")),
        confidence=0.8,
        duration=1.0,
        errors=[],
        phase_durations=PhaseDurations(),
    )


def _product(name, images=True, price=None):
    return ValidatedProduct(
        name=name,
        type="saas",
        source_url="https://acme.test/products",
        images=["https://cdn.acme.test/p.png"] if images else [],
        price=price,
    )


def test_healthy_scan_passes():
    products = [_product(f"Product {index}") for index in range(6)]

    report = assess_scan_quality(_result(products))

    assert report.valid is True
    assert report.score == 100
    assert report.issues == []
    assert report.summary == "Validation passed with score 100/100. Found 6 products."


def test_too_few_products_is_an_error():
    report = assess_scan_quality(_result([_product("Insights"), _product("Pipelines")]))

    assert report.valid is False
    assert report.score == 55
    assert [issue.field for issue in report.issues] == ["products.total", "products.with_images"]
    assert report.summary == "Validation failed with score 55/100. 1 errors found."


def test_navigation_items_and_duplicates_are_penalized():
    products = [_product(f"Product {index}") for index in range(5)]
    products += [_product("Cart"), _product("product 1")]

    report = assess_scan_quality(_result(products))

    fields = {issue.field for issue in report.issues}
    assert "products.nav_junk" in fields
    assert "products.duplicates" in fields
    assert report.score == 100 - 20 - 5
    assert report.valid is False


def test_price_coverage_threshold_is_optional():
    products = [_product(f"Product {index}") for index in range(5)]

    assert assess_scan_quality(_result(products)).valid is True
    strict = assess_scan_quality(_result(products), min_with_price=2)
    assert strict.score == 90
    assert strict.issues[0].field == "products.with_price"
    assert strict.valid is True
