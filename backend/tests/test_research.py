import asyncio

from brandintel.services.brand_intel.research import (
    ContextResearcher,
    clean_domain,
    infer_business_type,
)
from fakes import FakeGateway


SEARCH_RESULTS = [
    {"title": "Acme raises Series B", "url": "https://techcrunch.com/acme", "snippet": "Funding news", "source": "techcrunch.com"},
    {"title": "Acme pricing", "url": "https://acme.test/pricing", "snippet": "Plans from $29", "source": "acme.test"},
]

COMPANY = {
    "name": "Acme Analytics",
    "domain": "acme.test",
    "industry": "Computer Software",
    "employee_range": "51-200",
    "founded_year": 2015,
    "funding": {"total": 25_000_000},
    "headquarters": {"city": "Berlin", "country": "DE"},
}


def test_clean_domain_strips_scheme_www_and_path():
    assert clean_domain("https://www.Acme.test/pricing") == "acme.test"
    assert clean_domain("acme.test") == "acme.test"


def test_research_builds_context_from_analysis():
    gateway = FakeGateway(
        search_results=SEARCH_RESULTS,
        company=COMPANY,
        chat={
            "research_analysis": [
                {
                    "businessType": "saas",
                    "products": ["Acme Insights", "Acme Pipelines"],
                    "pricingModel": "subscription",
                    "competitors": ["Mixpanel", "Amplitude"],
                }
            ]
        },
    )

    context = asyncio.run(ContextResearcher(gateway).research("https://www.acme.test", "thorough"))

    assert context.domain == "acme.test"
    assert context.name == "Acme Analytics"
    assert context.business_type == "saas"
    assert context.pricing_model == "subscription"
    assert context.known_products == ["Acme Insights", "Acme Pipelines"]
    assert context.competitors == ["Mixpanel", "Amplitude"]
    assert [article.url for article in context.recent_news] == ["https://techcrunch.com/acme"]
    assert context.company_info.funding == "$25.0M"
    assert context.company_info.founded == 2015
    assert gateway.search_calls[0] == {
        "query": "acme.test products pricing features",
        "max_results": 15,
        "search_type": "all",
    }


def test_quick_depth_requests_fewer_results():
    gateway = FakeGateway()
    asyncio.run(ContextResearcher(gateway).research("acme.test", "quick"))
    assert gateway.search_calls[0]["max_results"] == 8


def test_invalid_enumerations_become_unknown_and_lists_are_truncated():
    gateway = FakeGateway(
        chat={
            "research_analysis": [
                {
                    "businessType": "marketplace",
                    "pricingModel": "pay-what-you-want",
                    "products": [f"Product {i}" for i in range(30)],
                    "competitors": [f"Rival {i}" for i in range(15)],
                }
            ]
        },
    )
    context = asyncio.run(ContextResearcher(gateway).research("acme.test"))

    assert context.business_type == "unknown"
    assert context.pricing_model == "unknown"
    assert len(context.known_products) == 20
    assert len(context.competitors) == 10


def test_analysis_failure_falls_back_to_industry_inference():
    gateway = FakeGateway(company=COMPANY, chat={"research_analysis": [RuntimeError("llm down")]})

    context = asyncio.run(ContextResearcher(gateway).research("acme.test"))

    assert context.business_type == "saas"
    assert context.known_products == []
    assert context.competitors == []


def test_lookup_and_search_failures_are_absorbed():
    messages = []
    gateway = FakeGateway(
        search_error=RuntimeError("search offline"),
        company_error=RuntimeError("lookup offline"),
        chat={"research_analysis": ["not json at all"]},
    )

    context = asyncio.run(ContextResearcher(gateway, progress_callback=messages.append).research("acme.test"))

    assert context.name == "Acme"
    assert context.business_type == "unknown"
    assert context.company_info is None
    assert any("Company lookup failed" in message for message in messages)


def test_infer_business_type_from_industry():
    assert infer_business_type({"industry": "Retail"}) == "ecommerce"
    assert infer_business_type({"industry": "Management Consulting"}) == "service"
    assert infer_business_type({"industry": "Information Technology"}) == "saas"
    assert infer_business_type({"industry": "Mining"}) == "unknown"
    assert infer_business_type(None) == "unknown"
