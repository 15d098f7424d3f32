from __future__ import annotations

import logging
from typing import Any, Dict, List
from urllib.parse import urlparse

import httpx

from brandintel.config import get_settings
from brandintel.services.retrieval.cache import RetrievalCache
from brandintel.services.retrieval.errors import RetrievalError

logger = logging.getLogger(__name__)


def _source_label(url: str) -> str:
    host = str(urlparse(url).netloc or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def _to_result_rows(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for item in items:
        url = str(item.get("url") or "").strip()
        if not url:
            continue
        rows.append(
            {
                "title": str(item.get("title") or "").strip()[:300],
                "url": url,
                "snippet": str(item.get("snippet") or "").strip()[:600],
                "source": str(item.get("source") or _source_label(url)),
            }
        )
    return rows


async def _search_tavily(client: httpx.AsyncClient, query: str, cap: int, search_type: str) -> List[Dict[str, Any]]:
    settings = get_settings()
    if not settings.tavily_api_key:
        return []
    payload = {
        "api_key": settings.tavily_api_key,
        "query": query,
        "max_results": max(1, min(cap, 20)),
        "topic": "news" if search_type == "news" else "general",
        "include_answer": False,
        "include_images": False,
    }
    resp = await client.post("https://api.tavily.com/search", json=payload)
    resp.raise_for_status()
    data = resp.json()
    results: List[Dict[str, Any]] = []
    for item in data.get("results", [])[:cap]:
        if not isinstance(item, dict):
            continue
        results.append(
            {
                "title": item.get("title"),
                "url": item.get("url"),
                "snippet": item.get("content"),
            }
        )
    return results


async def _search_serpapi(client: httpx.AsyncClient, query: str, cap: int, search_type: str) -> List[Dict[str, Any]]:
    settings = get_settings()
    if not settings.serpapi_api_key:
        return []
    params = {
        "engine": "google",
        "q": query,
        "api_key": settings.serpapi_api_key,
        "num": max(1, min(cap, 20)),
    }
    if search_type == "news":
        params["tbm"] = "nws"
    resp = await client.get("https://serpapi.com/search.json", params=params)
    resp.raise_for_status()
    data = resp.json()
    key = "news_results" if search_type == "news" else "organic_results"
    results: List[Dict[str, Any]] = []
    for item in data.get(key, [])[:cap]:
        if not isinstance(item, dict):
            continue
        source = item.get("source")
        if isinstance(source, dict):
            source = source.get("name")
        results.append(
            {
                "title": item.get("title"),
                "url": item.get("link"),
                "snippet": item.get("snippet"),
                "source": source,
            }
        )
    return results


async def web_search(query: str, max_results: int = 10, search_type: str = "all") -> Dict[str, Any]:
    """Run a web search across configured providers.

    Returns ``{"results": [{title, url, snippet, source}], "errors": [...]}``
    with results deduplicated by URL. Raises RetrievalError only when every
    configured provider failed.
    """
    settings = get_settings()
    cap = max(1, int(max_results))
    cache = RetrievalCache()
    cache_key = f"query={query}|cap={cap}|type={search_type}"
    cached = await cache.get_json("search", cache_key)
    if isinstance(cached, dict):
        return cached

    items: List[Dict[str, Any]] = []
    errors: List[str] = []
    attempted = 0
    async with httpx.AsyncClient(timeout=15) as client:
        for name, provider in (("tavily", _search_tavily), ("serpapi", _search_serpapi)):
            try:
                found = await provider(client, query, cap, search_type)
                if found:
                    attempted += 1
                items.extend(found)
            except Exception as exc:
                attempted += 1
                errors.append(f"{name}:{exc}")
                logger.warning("Search provider %s failed for %r: %s", name, query, exc)

    if errors and len(errors) == attempted:
        raise RetrievalError(f"All search providers failed for query={query!r}", provider_errors=errors)

    seen: set[str] = set()
    results: List[Dict[str, Any]] = []
    for row in _to_result_rows(items):
        key = row["url"].lower()
        if key in seen:
            continue
        seen.add(key)
        results.append(row)
        if len(results) >= cap:
            break

    output = {"results": results, "errors": errors[:8]}
    await cache.set_json(
        "search",
        cache_key,
        output,
        ttl_seconds=max(60, int(settings.retrieval_search_cache_ttl_seconds)),
    )
    return output
