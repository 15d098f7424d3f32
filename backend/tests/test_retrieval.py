import asyncio

import httpx
import pytest

from brandintel.config import get_settings
from brandintel.services.retrieval import company_connectors, crawl_connectors, search_connectors
from brandintel.services.retrieval.errors import RetrievalError

ARTICLE = (
    "Acme Insights gives growth teams product analytics without the setup. "
    "Starter costs $29 per month and includes five seats, funnels and retention charts. "
    "Pro costs $49 per month and adds cohorts, warehouse sync and priority support for larger teams. "
    "Enterprise plans include single sign-on, audit logs and a dedicated success manager."
)

PAGE_HTML = f"""<html><head><title>Acme Pricing</title></head>
<body><nav><a href="/">Home</a></nav><article><h1>Pricing</h1><p>{ARTICLE}</p><p>{ARTICLE}</p></article></body></html>"""


@pytest.fixture
def env(monkeypatch):
    """Settings built from a clean environment: no cache, no provider keys unless set."""

    def apply(**values):
        defaults = {
            "RETRIEVAL_CACHE_ENABLED": "false",
            "FIRECRAWL_API_KEY": "",
            "JINA_API_KEY": "",
            "TAVILY_API_KEY": "",
            "SERPAPI_API_KEY": "",
            "THECOMPANIES_API_KEY": "",
        }
        defaults.update(values)
        for key, value in defaults.items():
            monkeypatch.setenv(key, value)
        get_settings.cache_clear()

    yield apply
    get_settings.cache_clear()


def _mock_http(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def client(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", client)


def test_direct_scrape_returns_markdown_and_title(env, monkeypatch):
    env()
    _mock_http(monkeypatch, lambda request: httpx.Response(200, text=PAGE_HTML))

    result = asyncio.run(crawl_connectors.scrape_page("https://acme.test/pricing", {"include_html": False}))

    assert result["success"] is True
    assert result["provider"] == "direct"
    assert result["title"] == "Acme Pricing"
    assert result["html"] is None
    assert "Starter costs" in result["markdown"]


def test_scrape_keeps_html_when_asked(env, monkeypatch):
    env()
    _mock_http(monkeypatch, lambda request: httpx.Response(200, text=PAGE_HTML))

    result = asyncio.run(crawl_connectors.scrape_page("https://acme.test/pricing"))

    assert result["html"] == PAGE_HTML


def test_failed_scrape_is_reported_not_raised(env, monkeypatch):
    env()
    _mock_http(monkeypatch, lambda request: httpx.Response(503, text="unavailable"))

    result = asyncio.run(crawl_connectors.scrape_page("https://acme.test/pricing"))

    assert result["success"] is False
    assert result["markdown"] == ""
    assert "direct:" in result["error"]

    empty = asyncio.run(crawl_connectors.scrape_page("   "))
    assert empty["error"] == "empty_url"


def test_firecrawl_is_preferred_when_configured(env, monkeypatch):
    env(FIRECRAWL_API_KEY="fc-key")
    seen = []

    def handler(request):
        seen.append(request.url.host)
        return httpx.Response(
            200,
            json={"data": {"markdown": "# Pricing\nStarter $29", "metadata": {"title": "Pricing"}}},
        )

    _mock_http(monkeypatch, handler)

    result = asyncio.run(crawl_connectors.scrape_page("https://acme.test/pricing", {"include_html": False}))

    assert seen == ["api.firecrawl.dev"]
    assert result["provider"] == "firecrawl"
    assert result["markdown"].startswith("# Pricing")


def test_web_search_merges_providers_and_dedupes(env, monkeypatch):
    env(TAVILY_API_KEY="tv-key", SERPAPI_API_KEY="sp-key")

    def handler(request):
        if request.url.host == "api.tavily.com":
            return httpx.Response(
                200,
                json={
                    "results": [
                        {"title": "Acme pricing", "url": "https://www.acme.test/pricing", "content": "Plans from $29"},
                        {"title": "Acme raises", "url": "https://techcrunch.com/acme", "content": "Series B"},
                    ]
                },
            )
        return httpx.Response(
            200,
            json={
                "organic_results": [
                    {"title": "Acme pricing", "link": "https://WWW.acme.test/pricing", "snippet": "dup"},
                    {"title": "Acme review", "link": "https://g2.test/acme", "snippet": "Reviews"},
                ]
            },
        )

    _mock_http(monkeypatch, handler)

    output = asyncio.run(search_connectors.web_search("acme.test products", max_results=5))

    assert [row["url"] for row in output["results"]] == [
        "https://www.acme.test/pricing",
        "https://techcrunch.com/acme",
        "https://g2.test/acme",
    ]
    assert output["results"][0]["source"] == "acme.test"
    assert output["errors"] == []


def test_web_search_raises_when_every_provider_fails(env, monkeypatch):
    env(TAVILY_API_KEY="tv-key")
    _mock_http(monkeypatch, lambda request: httpx.Response(500, json={}))

    with pytest.raises(RetrievalError) as excinfo:
        asyncio.run(search_connectors.web_search("acme.test products"))

    assert excinfo.value.provider_errors[0].startswith("tavily:")


def test_lookup_company_normalizes_record(env, monkeypatch):
    env(THECOMPANIES_API_KEY="tc-key")
    body = {
        "company_name": "Acme Analytics",
        "domain": "acme.test",
        "primary_industry": "Computer Software",
        "employees_range": "51-200",
        "year_founded": 2015,
        "city": "Berlin",
        "country": "DE",
        "funding": {"total_funding": 25000000, "last_round_type": "series_b"},
    }
    _mock_http(monkeypatch, lambda request: httpx.Response(200, json=body))

    company = asyncio.run(company_connectors.lookup_company("ACME.test"))

    assert company["name"] == "Acme Analytics"
    assert company["industry"] == "Computer Software"
    assert company["employee_range"] == "51-200"
    assert company["founded_year"] == 2015
    assert company["headquarters"] == {"city": "Berlin", "state": None, "country": "DE"}
    assert company["funding"] == {"total": 25000000, "last_round": "series_b"}


def test_lookup_company_handles_missing_record_and_missing_key(env, monkeypatch):
    env(THECOMPANIES_API_KEY="tc-key")
    _mock_http(monkeypatch, lambda request: httpx.Response(404, json={}))
    assert asyncio.run(company_connectors.lookup_company("unknown.test")) is None

    env()
    with pytest.raises(RetrievalError):
        asyncio.run(company_connectors.lookup_company("acme.test"))
