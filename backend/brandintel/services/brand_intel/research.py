"""Phase 1: Pre-research - web search + company lookup reduced by one LLM analysis."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

from brandintel.services.llm import LLMStage

from .constants import (
    BUSINESS_TYPES,
    INDUSTRY_KEYWORDS,
    MAX_COMPETITORS,
    MAX_KNOWN_PRODUCTS,
    MAX_RECENT_NEWS,
    NEWS_SOURCES,
    PRICING_MODELS,
)
from .gateway import ServiceGateway
from .models import BrandContext, CompanyInfo, NewsArticle
from .schema import parse_json_payload

logger = logging.getLogger(__name__)


def clean_domain(domain: str) -> str:
    """Strip scheme, ``www.``, path and trailing dots from a domain or URL."""
    value = str(domain or "").strip().lower()
    if "://" in value:
        value = urlparse(value).netloc or value.split("://", 1)[1]
    value = value.split("/", 1)[0].rstrip(".")
    if value.startswith("www."):
        value = value[4:]
    return value


def brand_name_from_domain(domain: str) -> str:
    label = domain.split(".")[0]
    return label[:1].upper() + label[1:]


@dataclass
class SearchHit:
    title: str
    url: str
    snippet: str
    source: str


@dataclass
class WebResearch:
    sources: List[SearchHit] = field(default_factory=list)
    articles: List[NewsArticle] = field(default_factory=list)


@dataclass
class ResearchAnalysis:
    business_type: str = "unknown"
    products: List[str] = field(default_factory=list)
    pricing_model: str = "unknown"
    competitors: List[str] = field(default_factory=list)


def validate_business_type(value: Any) -> str:
    text = str(value or "").strip().lower()
    return text if text in BUSINESS_TYPES else "unknown"


def validate_pricing_model(value: Any) -> str:
    text = str(value or "").strip().lower()
    return text if text in PRICING_MODELS else "unknown"


def infer_business_type(company: Optional[Dict[str, Any]]) -> str:
    """Rule-based business type from the company's industry string."""
    industry = str((company or {}).get("industry") or "").lower()
    if not industry:
        return "unknown"
    for business_type, keywords in INDUSTRY_KEYWORDS.items():
        if any(keyword in industry for keyword in keywords):
            return business_type
    return "unknown"


def _string_list(value: Any, limit: int) -> List[str]:
    if not isinstance(value, list):
        return []
    items: List[str] = []
    for entry in value:
        text = str(entry).strip() if isinstance(entry, (str, int, float)) else ""
        if text:
            items.append(text)
    return items[:limit]


def is_news_source(source: str) -> bool:
    lowered = str(source or "").lower()
    return any(outlet in lowered for outlet in NEWS_SOURCES)


def _format_funding(total: Any) -> str:
    try:
        amount = float(total)
    except (TypeError, ValueError):
        return ""
    if amount <= 0:
        return ""
    return f"${amount / 1_000_000:.1f}M"


def build_company_info(company: Optional[Dict[str, Any]]) -> Optional[CompanyInfo]:
    if not company:
        return None
    founded = company.get("founded_year")
    try:
        founded = int(founded) if founded is not None else None
    except (TypeError, ValueError):
        founded = None
    funding = company.get("funding") or {}
    headquarters = company.get("headquarters")
    return CompanyInfo(
        employees=str(company.get("employee_range") or company.get("employee_count") or ""),
        founded=founded,
        funding=_format_funding(funding.get("total") if isinstance(funding, dict) else None),
        industry=str(company.get("industry") or ""),
        headquarters=dict(headquarters) if isinstance(headquarters, dict) else None,
    )


class ContextResearcher:
    """Builds the BrandContext that guides discovery, extraction and validation."""

    def __init__(
        self,
        gateway: ServiceGateway,
        progress_callback: Optional[Callable[[str], None]] = None,
    ):
        self.gateway = gateway
        self.progress_callback = progress_callback

    def _log(self, message: str) -> None:
        logger.info(message)
        if self.progress_callback:
            self.progress_callback(message)

    async def research(self, domain: str, depth: str = "thorough") -> BrandContext:
        domain = clean_domain(domain)
        self._log(f"Researching {domain} ({depth})...")

        web, company = await asyncio.gather(
            self.web_research(f"{domain} products pricing features", depth),
            self._lookup_company(domain),
        )

        analysis = await self.analyze(domain, web, company)

        context = BrandContext(
            name=str((company or {}).get("name") or brand_name_from_domain(domain)),
            domain=domain,
            business_type=analysis.business_type,
            known_products=analysis.products,
            pricing_model=analysis.pricing_model,
            competitors=analysis.competitors,
            recent_news=web.articles[:MAX_RECENT_NEWS],
            company_info=build_company_info(company),
        )
        self._log(
            f"Research complete: type={context.business_type}, "
            f"products={len(context.known_products)}, competitors={len(context.competitors)}"
        )
        return context

    async def web_research(self, query: str, depth: str) -> WebResearch:
        max_results = 15 if depth == "thorough" else 8
        try:
            response = await self.gateway.search(query, max_results, "all")
        except Exception as exc:
            self._log(f"Web research failed: {exc}")
            return WebResearch()

        sources: List[SearchHit] = []
        for item in (response or {}).get("results") or []:
            if not isinstance(item, dict) or not item.get("url"):
                continue
            url = str(item["url"])
            sources.append(
                SearchHit(
                    title=str(item.get("title") or ""),
                    url=url,
                    snippet=str(item.get("snippet") or item.get("description") or ""),
                    source=str(item.get("source") or urlparse(url).netloc),
                )
            )
        articles = [
            NewsArticle(title=hit.title, url=hit.url, source=hit.source)
            for hit in sources
            if is_news_source(hit.source)
        ]
        return WebResearch(sources=sources, articles=articles)

    async def _lookup_company(self, domain: str) -> Optional[Dict[str, Any]]:
        try:
            company = await self.gateway.lookup_company(domain)
        except Exception as exc:
            self._log(f"Company lookup failed: {exc}")
            return None
        if not isinstance(company, dict) or not company.get("name"):
            return None
        return company

    async def analyze(
        self,
        domain: str,
        web: WebResearch,
        company: Optional[Dict[str, Any]],
    ) -> ResearchAnalysis:
        prompt = build_analysis_prompt(domain, web, company)
        try:
            raw = await self.gateway.complete_chat(
                LLMStage.research_analysis,
                prompt,
                temperature=None,
                expect_json=True,
            )
            data = parse_json_payload(raw)
            if not isinstance(data, dict):
                raise ValueError("analysis response is not a JSON object")
        except Exception as exc:
            self._log(f"Analysis failed, inferring from company data: {exc}")
            return ResearchAnalysis(business_type=infer_business_type(company))

        return ResearchAnalysis(
            business_type=validate_business_type(data.get("businessType")),
            products=_string_list(data.get("products"), MAX_KNOWN_PRODUCTS),
            pricing_model=validate_pricing_model(data.get("pricingModel")),
            competitors=_string_list(data.get("competitors"), MAX_COMPETITORS),
        )


def build_analysis_prompt(domain: str, web: WebResearch, company: Optional[Dict[str, Any]]) -> str:
    company = company or {}
    results_text = "\n".join(f"- {hit.title}: {hit.snippet}" for hit in web.sources[:10]) or "none"
    return f"""Analyze this brand research and extract structured insights.

Domain: {domain}
Company name: {company.get("name") or "Unknown"}
Industry: {company.get("industry") or "Unknown"}
Description: {company.get("description") or "Unknown"}

Web search results:
{results_text}

Based on this research, provide a JSON analysis:

{{
  "businessType": "saas" | "ecommerce" | "service" | "hybrid" | "unknown",
  "products": ["list of known product names"],
  "pricingModel": "subscription" | "one-time" | "freemium" | "usage" | "enterprise" | "unknown",
  "competitors": ["list of competitor company names"]
}}

RULES:
1. businessType: Determine if this is a SaaS company, ecommerce store, service business, or hybrid
2. products: Extract ACTUAL product/service names mentioned in the research
3. pricingModel: Infer the pricing model from context clues
4. competitors: List 3-5 direct competitors if mentioned or can be inferred

Return ONLY valid JSON, no explanation."""
