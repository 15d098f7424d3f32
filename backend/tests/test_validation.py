import pytest

from brandintel.services.brand_intel.models import (
    AssetExtraction,
    BrandContext,
    ExtractionResult,
    FeatureExtraction,
    PricingExtraction,
    PricingTier,
    ProductExtraction,
)
from brandintel.services.brand_intel.validation import Validator, fuzzy_match, is_junk_image


SAAS = BrandContext(
    name="Acme",
    domain="acme.test",
    business_type="saas",
    known_products=["Acme Insights"],
    pricing_model="subscription",
)


def _product(name="Acme Insights", **kwargs):
    values = {
        "type": "saas",
        "source_url": "https://acme.test/products",
        "description": "Product analytics for modern growth teams",
        "images": ["https://cdn.acme.test/insights.png"],
    }
    values.update(kwargs)
    return ProductExtraction(name=name, **values)


def _pricing(prices, **kwargs):
    tiers = [
        PricingTier(name=f"Tier {index}", price=price, features=["Seats"])
        for index, price in enumerate(prices)
    ]
    values = {"model": "subscription", "source_url": "https://acme.test/pricing"}
    values.update(kwargs)
    return PricingExtraction(tiers=tiers, **values)


@pytest.mark.parametrize(
    "a,b",
    [
        ("Acme Insights", "acme-insights"),
        ("Pro", "Pro Plan"),
        ("Widget", "Gadget"),
        ("", "anything"),
        ("", ""),
    ],
)
def test_fuzzy_match_is_symmetric_and_bounded(a, b):
    score = fuzzy_match(a, b)
    assert score == fuzzy_match(b, a)
    assert 0 <= score <= 1


def test_fuzzy_match_identity_and_containment():
    assert fuzzy_match("Pro Plan", "Pro Plan") == 1
    assert fuzzy_match("Acme Insights", "ACME insights!") == 1
    assert fuzzy_match("Insights", "Acme Insights") == 0.9


def test_fuzzy_match_with_no_alphanumerics_on_one_side_is_zero():
    assert fuzzy_match("***", "Acme Insights") == 0
    assert fuzzy_match("Acme Insights", "---") == 0
    assert fuzzy_match("***", "!!!") == 1

    validated = Validator().validate_product(_product(name="***"), SAAS)
    assert validated.cross_check_sources == []


def test_known_product_match_boosts_score_and_records_source():
    validated = Validator().validate_product(_product(), SAAS)

    assert validated.validation_score == pytest.approx(0.9)
    assert validated.validation_concerns == []
    assert validated.cross_check_sources == ["pre-research"]
    assert validated.needs_review is False


def test_shop_is_flagged_as_navigation():
    baseline = Validator().validate_product(_product("Shopper Pro"), SAAS)
    flagged = Validator().validate_product(_product("Shop"), SAAS)

    assert "Product name looks like navigation item" in flagged.validation_concerns
    assert baseline.validation_score - flagged.validation_score >= 0.2 - 1e-9


def test_type_and_price_sanity():
    validated = Validator().validate_product(_product("Desk Lamp", type="physical", price=2_000_000), SAAS)

    assert 'Product type "physical" unusual for saas business' in validated.validation_concerns
    assert "Unusually high price for SaaS (over $50k/month?)" in validated.validation_concerns
    assert validated.validation_score == pytest.approx(0.8 - 0.1 - 0.15)


def test_physical_price_bounds_for_ecommerce():
    shop = BrandContext(name="Shopco", domain="shopco.test", business_type="ecommerce")
    validator = Validator()

    pricey = validator.validate_product(_product("Gold Statue", type="physical", price=2_000_000), shop)
    cheap = validator.validate_product(_product("Sticker Pack", type="physical", price=0.001), shop)

    assert "Unusually high price for physical product" in pricey.validation_concerns
    assert "Suspiciously low price" in cheap.validation_concerns


def test_scores_are_clamped_at_zero():
    weak = ProductExtraction(name="$49" + "." * 120, type="physical", source_url="u", price=-5)

    validated = Validator().validate_product_batch([weak, weak], SAAS)

    for product in validated:
        assert product.validation_score == 0
        assert product.needs_review is True


def test_missing_images_and_description_are_minor_concerns():
    validated = Validator().validate_product(_product("Acme Insights", images=[], description="short"), SAAS)

    assert "No images found" in validated.validation_concerns
    assert "Missing or short description" in validated.validation_concerns
    assert validated.validation_score == pytest.approx(0.8)


def test_descending_tier_prices_record_ascending_order_concern():
    validator = Validator()
    unsorted = validator.validate_pricing(_pricing([29, 19, 49]), SAAS)
    ascending = validator.validate_pricing(_pricing([19, 29, 49]), SAAS)

    assert "Pricing tiers not in ascending order" in unsorted.validation_concerns
    assert "Pricing tiers not in ascending order" not in ascending.validation_concerns
    assert ascending.validation_score - unsorted.validation_score >= 0.1 - 1e-9


def test_pricing_tier_count_duplicates_model_and_features():
    validator = Validator()
    single = validator.validate_pricing(_pricing([29]), SAAS)
    assert "Only one pricing tier (might be incomplete)" in single.validation_concerns

    duplicate = PricingExtraction(
        model="usage",
        tiers=[PricingTier(name="Pro", price=10), PricingTier(name="pro", price=20)],
        source_url="u",
    )
    result = validator.validate_pricing(duplicate, SAAS)
    assert "Duplicate tier names detected" in result.validation_concerns
    assert 'Extracted model "usage" differs from research "subscription"' in result.validation_concerns
    assert "No features extracted for any tier" in result.validation_concerns
    assert result.validation_score == pytest.approx(0.8 - 0.15 - 0.1 - 0.1)


def test_feature_scoring():
    validator = Validator()
    known = validator.validate_feature(
        FeatureExtraction(name="Dashboards", source_url="u", description="Built into Acme Insights"),
        SAAS,
    )
    bare = validator.validate_feature(FeatureExtraction(name="AI", source_url="u"), SAAS)

    assert known.validation_score == pytest.approx(0.9)
    assert bare.validation_score == pytest.approx(0.4)


def test_asset_scoring_and_junk_detection():
    validator = Validator()
    products = [validator.validate_product(_product(), SAAS)]

    good = validator.validate_asset(
        AssetExtraction(
            url="https://cdn.acme.test/hero.png",
            source_url="u",
            alt="Insights dashboard",
            product_association="Acme Insights",
        ),
        products,
    )
    junk = validator.validate_asset(AssetExtraction(url="https://cdn.acme.test/visa-logo.png", source_url="u"), products)

    assert good.validation_score == pytest.approx(0.95)
    assert good.is_junk is False
    assert junk.is_junk is True
    assert junk.validation_score == pytest.approx(0.2)
    assert is_junk_image("https://cdn.acme.test/ajax-loader.gif")


def test_batch_pass_flags_duplicate_names():
    validated = Validator().validate_product_batch([_product(), _product("acme insights")], SAAS)

    for product in validated:
        assert "Duplicate product name (appears 2 times)" in product.validation_concerns
        assert product.needs_review is True
        assert product.validation_score == pytest.approx(0.8)


def test_validate_overall_confidence():
    validator = Validator()
    extraction = ExtractionResult(
        products=[_product()],
        pricing=_pricing([19, 29]),
        features=[FeatureExtraction(name="Funnels", source_url="u", description="Conversion funnels")],
        confidence=0.42,
    )

    outcome = validator.validate(extraction, SAAS)

    assert outcome.confidence == pytest.approx((0.9 + 0.8) / 2)
    assert len(outcome.features) == 1


def test_validate_falls_back_to_extraction_confidence():
    outcome = Validator().validate(ExtractionResult(confidence=0.42), SAAS)
    assert outcome.confidence == pytest.approx(0.42)
