import asyncio

from brandintel.services.brand_intel.discovery import SiteDiscoverer, is_internal_url
from brandintel.services.brand_intel.models import BrandContext
from fakes import FakeGateway, long_markdown


def _discoverer(gateway, **kwargs):
    kwargs.setdefault("batch_delay", 0)
    return SiteDiscoverer(gateway, **kwargs)


def test_extract_internal_links_merges_markdown_and_html():
    markdown = (
        "[Pricing](/pricing) [Docs](https://docs.other.test/start) "
        "[Mail](mailto:hi@acme.test) [Top](#top) [Platform](https://www.acme.test/platform)"
    )
    html = (
        '<a href="/features">Features</a>'
        '<a href="tel:+123">Call</a>'
        '<a href="javascript:void(0)">JS</a>'
        '<a href="/pricing">Pricing again</a>'
        '<a href="/brochure.pdf">PDF</a>'
    )

    links = _discoverer(FakeGateway()).extract_internal_links(markdown, html, "acme.test")

    assert links == [
        "https://acme.test/pricing",
        "https://www.acme.test/platform",
        "https://acme.test/features",
    ]


def test_is_internal_url_ignores_www_prefix():
    assert is_internal_url("https://www.acme.test/about", "acme.test")
    assert is_internal_url("/about", "acme.test")
    assert not is_internal_url("https://acme.test.evil.test/about", "acme.test")
    assert not is_internal_url("//cdn.other.test/lib.js", "acme.test")


def test_prioritize_urls_rescoring_for_saas_and_known_products():
    context = BrandContext(
        name="Acme",
        domain="acme.test",
        business_type="saas",
        known_products=["Insights Cloud"],
    )
    urls = [
        "https://acme.test/about",
        "https://acme.test/blog/insights-cloud-launch",
        "https://acme.test/features",
        "https://acme.test/editions",
        "https://acme.test/careers",
    ]

    prioritized = _discoverer(FakeGateway()).prioritize_urls(urls, context)
    by_url = {item.url: item for item in prioritized}

    assert by_url["https://acme.test/editions"].priority == 1
    assert by_url["https://acme.test/editions"].confidence == 0.9
    assert by_url["https://acme.test/blog/insights-cloud-launch"].priority == 2
    assert by_url["https://acme.test/blog/insights-cloud-launch"].confidence == 0.85
    assert by_url["https://acme.test/careers"].priority == 5
    assert by_url["https://acme.test/careers"].confidence == 0.5
    # stable: equal priorities keep input order
    assert [item.url for item in prioritized] == [
        "https://acme.test/features",
        "https://acme.test/editions",
        "https://acme.test/blog/insights-cloud-launch",
        "https://acme.test/about",
        "https://acme.test/careers",
    ]


def test_ecommerce_product_pages_are_boosted():
    context = BrandContext(name="Shopco", domain="shopco.test", business_type="ecommerce")
    prioritized = _discoverer(FakeGateway()).prioritize_urls(["https://shopco.test/product/blue-mug"], context)
    assert prioritized[0].page_type == "product"
    assert prioritized[0].priority == 1


def test_probe_only_counts_pages_with_enough_content():
    gateway = FakeGateway(
        pages={
            "https://acme.test/pricing": {"markdown": long_markdown("Plans and pricing")},
            "https://acme.test/features": {"markdown": "Not found"},
        }
    )
    context = BrandContext(name="Acme", domain="acme.test", business_type="unknown")

    found = asyncio.run(_discoverer(gateway, batch_size=2).probe_common_paths("https://acme.test/", context))

    assert [item.url for item in found] == ["https://acme.test/pricing"]
    assert found[0].confidence == 0.8
    # common paths + the default business-type paths
    assert len(gateway.scrape_calls) == 7


def test_discover_builds_site_map():
    homepage_md = long_markdown("Welcome to Acme [Pricing](/pricing) [Product](/products/insights)")
    gateway = FakeGateway(
        pages={
            "https://acme.test": {"markdown": homepage_md, "html": '<a href="/about">About</a>'},
            "https://acme.test/pricing": {"markdown": long_markdown("Starter $29 Pro $49")},
            "https://acme.test/products/insights": {"markdown": long_markdown("Insights product page")},
            "https://acme.test/about": {"markdown": "tiny"},
        }
    )
    context = BrandContext(name="Acme", domain="acme.test", business_type="unknown")

    site_map = asyncio.run(_discoverer(gateway).discover("acme.test", context, max_pages=10))

    assert site_map.homepage.url == "https://acme.test"
    assert site_map.homepage.page_type == "homepage"
    assert site_map.pricing.url == "https://acme.test/pricing"
    assert [page.url for page in site_map.products] == ["https://acme.test/products/insights"]
    assert site_map.about is None  # too little content to select
    assert "https://acme.test/about" in site_map.all_urls
    assert site_map.all_urls[0] == "https://acme.test/pricing"


def test_discover_with_zero_pages_scrapes_only_homepage_and_probes():
    gateway = FakeGateway(pages={"https://acme.test": {"markdown": "[Pricing](/pricing)"}})
    context = BrandContext(name="Acme", domain="acme.test")

    site_map = asyncio.run(_discoverer(gateway).discover("acme.test", context, max_pages=0))

    assert site_map.pricing is None
    assert site_map.products == []
    assert gateway.scrape_calls.count("https://acme.test/pricing") == 1  # the probe only


def test_failed_scrape_yields_placeholder_page():
    gateway = FakeGateway(pages={"https://acme.test/pricing": RuntimeError("boom")})
    discoverer = _discoverer(gateway)

    page = asyncio.run(discoverer.scrape_page("https://acme.test/pricing"))

    assert page.url == "https://acme.test/pricing"
    assert page.markdown == ""
    assert page.page_type == "pricing"
