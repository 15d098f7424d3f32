from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx
import trafilatura
from selectolax.parser import HTMLParser

from brandintel.config import get_settings
from brandintel.services.retrieval.cache import RetrievalCache

logger = logging.getLogger(__name__)

MAX_CONTENT_CHARS = 80000

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


def _empty_result(url: str, error: Optional[str] = None) -> Dict[str, Any]:
    return {"url": url, "success": False, "markdown": "", "html": None, "title": "", "provider": None, "error": error}


def _title_from_html(html: str) -> str:
    if not html:
        return ""
    try:
        node = HTMLParser(html).css_first("title")
    except Exception:
        return ""
    if node is None:
        return ""
    return str(node.text(strip=True) or "").strip()


def html_to_markdown(html: str) -> str:
    """Main-content markdown for an HTML document, links preserved."""
    if not html:
        return ""
    extracted = trafilatura.extract(
        html,
        output_format="markdown",
        include_links=True,
        include_images=True,
        include_tables=True,
        favor_recall=True,
    )
    return str(extracted or "")


async def _scrape_firecrawl(client: httpx.AsyncClient, url: str, include_html: bool) -> Optional[Dict[str, Any]]:
    settings = get_settings()
    if not settings.firecrawl_api_key:
        return None
    formats: List[str] = ["markdown"]
    if include_html:
        formats.append("rawHtml")
    resp = await client.post(
        "https://api.firecrawl.dev/v1/scrape",
        headers={
            "Authorization": f"Bearer {settings.firecrawl_api_key}",
            "Content-Type": "application/json",
        },
        json={"url": url, "formats": formats},
    )
    resp.raise_for_status()
    data = (resp.json() or {}).get("data") or {}
    metadata = data.get("metadata") or {}
    return {
        "markdown": str(data.get("markdown") or "")[:MAX_CONTENT_CHARS],
        "html": data.get("rawHtml") if include_html else None,
        "title": str(metadata.get("title") or ""),
        "provider": "firecrawl",
    }


async def _scrape_jina(client: httpx.AsyncClient, url: str) -> Optional[Dict[str, Any]]:
    settings = get_settings()
    if not settings.jina_api_key:
        return None
    bare = url.replace("https://", "").replace("http://", "")
    resp = await client.get(
        f"https://r.jina.ai/http://{bare}",
        headers={"Authorization": f"Bearer {settings.jina_api_key}"},
    )
    resp.raise_for_status()
    text = str(resp.text or "")
    title = ""
    for line in text.splitlines()[:5]:
        if line.startswith("Title:"):
            title = line.split(":", 1)[1].strip()
            break
    return {"markdown": text[:MAX_CONTENT_CHARS], "html": None, "title": title, "provider": "jina_reader"}


async def _scrape_direct(client: httpx.AsyncClient, url: str, include_html: bool) -> Optional[Dict[str, Any]]:
    resp = await client.get(url, headers=BROWSER_HEADERS)
    if resp.status_code != 200:
        raise httpx.HTTPStatusError(
            f"HTTP {resp.status_code} for {url}", request=resp.request, response=resp
        )
    html = resp.text
    return {
        "markdown": html_to_markdown(html)[:MAX_CONTENT_CHARS],
        "html": html if include_html else None,
        "title": _title_from_html(html),
        "provider": "direct",
    }


async def scrape_page(url: str, options: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Fetch one page as markdown (plus raw HTML when asked).

    Providers are tried in order: Firecrawl, Jina reader, direct fetch. The
    result always has ``success``/``markdown``/``html``/``title``; failures
    are reported through ``success=False`` and ``error`` rather than raised.
    """
    settings = get_settings()
    options = dict(options or {})
    include_html = bool(options.get("include_html", True))
    normalized = str(url or "").strip()
    if not normalized:
        return _empty_result(url, "empty_url")

    cache = RetrievalCache()
    cache_key = f"{normalized.lower()}|html={int(include_html)}"
    cached = await cache.get_json("url_content", cache_key)
    if isinstance(cached, dict) and cached.get("success"):
        return cached

    provider_errors: List[str] = []
    payload: Optional[Dict[str, Any]] = None
    async with httpx.AsyncClient(timeout=settings.scrape_timeout_seconds, follow_redirects=True) as client:
        for name, attempt in (
            ("firecrawl", lambda: _scrape_firecrawl(client, normalized, include_html)),
            ("jina", lambda: _scrape_jina(client, normalized)),
            ("direct", lambda: _scrape_direct(client, normalized, include_html)),
        ):
            try:
                candidate = await attempt()
            except Exception as exc:
                provider_errors.append(f"{name}:{exc}")
                continue
            if candidate and candidate.get("markdown"):
                payload = candidate
                break

    if payload is None:
        error = ";".join(provider_errors) or "no_content"
        logger.info("Scrape failed for %s: %s", normalized, error)
        return _empty_result(normalized, error)

    result = {"url": normalized, "success": True, "error": None, **payload}
    await cache.set_json(
        "url_content",
        cache_key,
        result,
        ttl_seconds=max(60, int(settings.retrieval_url_cache_ttl_seconds)),
    )
    return result
