from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from brandintel.config import get_settings
from brandintel.services.retrieval.cache import RetrievalCache
from brandintel.services.retrieval.errors import RetrievalError

logger = logging.getLogger(__name__)


def _first(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, "", [], {}):
            return value
    return None


def _normalize_company(data: Dict[str, Any], domain: str) -> Optional[Dict[str, Any]]:
    name = _first(data, "name", "company_name")
    if not name:
        return None
    headquarters = data.get("headquarters")
    if not isinstance(headquarters, dict):
        headquarters = {
            "city": data.get("city"),
            "state": data.get("state"),
            "country": data.get("country"),
        }
    funding_raw = data.get("funding")
    funding = None
    if isinstance(funding_raw, dict):
        funding = {
            "total": _first(funding_raw, "total_funding") or data.get("total_funding"),
            "last_round": _first(funding_raw, "last_round_type") or data.get("last_funding_type"),
        }
    return {
        "name": str(name),
        "domain": str(data.get("domain") or domain),
        "description": _first(data, "description", "short_description"),
        "industry": _first(data, "industry", "primary_industry"),
        "employee_count": _first(data, "employee_count", "employees"),
        "employee_range": _first(data, "employee_range", "employees_range"),
        "founded_year": _first(data, "founded_year", "year_founded"),
        "headquarters": headquarters,
        "funding": funding,
    }


async def lookup_company(domain: str) -> Optional[Dict[str, Any]]:
    """Company facts for a domain, or None when the provider has no record."""
    settings = get_settings()
    normalized = str(domain or "").strip().lower()
    if not normalized:
        return None
    if not settings.thecompanies_api_key:
        raise RetrievalError("THECOMPANIES_API_KEY not configured")

    cache = RetrievalCache()
    cached = await cache.get_json("company", normalized)
    if isinstance(cached, dict):
        return cached or None

    async with httpx.AsyncClient(timeout=15) as client:
        resp = await client.get(
            "https://api.thecompaniesapi.com/v2/companies/by-domain",
            params={"domain": normalized},
            headers={"Authorization": f"Basic {settings.thecompanies_api_key}"},
        )
    if resp.status_code == 404:
        company = None
    else:
        resp.raise_for_status()
        body = resp.json()
        company = _normalize_company(body, normalized) if isinstance(body, dict) else None

    await cache.set_json(
        "company",
        normalized,
        company or {},
        ttl_seconds=max(60, int(settings.retrieval_company_cache_ttl_seconds)),
    )
    if company is None:
        logger.info("No company record for %s", normalized)
    return company
