"""Phase 2: Site discovery - homepage links, common path probes, prioritized scraping."""

import asyncio
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from urllib.parse import urldefrag, urlparse

from selectolax.parser import HTMLParser

from .classifier import UrlClassifier
from .constants import (
    BUSINESS_TYPE_PATHS,
    COMMON_PATHS,
    DEFAULT_BUSINESS_TYPE_PATHS,
    PAGE_MIN_CONTENT_LENGTH,
    PROBE_MIN_CONTENT_LENGTH,
    PRODUCT_PAGE_TYPES,
    SKIP_LINK_EXTENSIONS,
    SKIP_LINK_PREFIXES,
)
from .gateway import ServiceGateway
from .models import BrandContext, DiscoveredUrl, PageInfo, SiteMap
from .research import clean_domain

logger = logging.getLogger(__name__)

MARKDOWN_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)\s]+)[^)]*\)")

HOMEPAGE_SCRAPE_OPTIONS = {"include_html": True, "scroll_count": 3, "click_load_more": True}
PROBE_SCRAPE_OPTIONS = {"include_html": False, "scroll_count": 1, "click_load_more": False}
PAGE_SCRAPE_OPTIONS = {"include_html": True, "scroll_count": 3, "click_load_more": True}

PROBE_CONFIDENCE = 0.8
DEFAULT_CONFIDENCE = 0.5
BOOSTED_CONFIDENCE = 0.9
KNOWN_PRODUCT_CONFIDENCE = 0.85


def _bare_host(host: str) -> str:
    host = (host or "").lower().split(":", 1)[0]
    return host[4:] if host.startswith("www.") else host


def is_internal_url(url: str, domain: str) -> bool:
    """Relative links and links whose host (minus ``www.``) is the domain."""
    if not url:
        return False
    href = url.strip()
    lowered = href.lower()
    if not href or lowered.startswith(SKIP_LINK_PREFIXES):
        return False
    if urlparse(lowered).path.endswith(SKIP_LINK_EXTENSIONS):
        return False
    if href.startswith("/") and not href.startswith("//"):
        return True
    if "://" not in href and not href.startswith("//"):
        # Bare relative path like "pricing"
        return ":" not in href.split("/", 1)[0]
    try:
        parsed = urlparse(href if "://" in href else f"https:{href}")
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https"):
        return False
    return _bare_host(parsed.netloc) == _bare_host(domain)


def normalize_url(url: str, domain: str) -> str:
    href = urldefrag(url.strip())[0]
    if href.startswith("http"):
        return href
    if href.startswith("//"):
        return f"https:{href}"
    if href.startswith("/"):
        return f"https://{domain}{href}"
    return f"https://{domain}/{href}"


def is_homepage_url(url: str) -> bool:
    return urlparse(url).path in ("", "/")


def page_from_scrape(url: str, response: Optional[Dict[str, Any]], page_type: str) -> PageInfo:
    """Build a PageInfo from a scrape response; unsuccessful responses give a placeholder."""
    if not response or not response.get("success"):
        return PageInfo(url=url, title="", markdown="", page_type=page_type)
    return PageInfo(
        url=url,
        title=str(response.get("title") or ""),
        markdown=str(response.get("markdown") or ""),
        page_type=page_type,
        html=response.get("html") or None,
    )


class SiteDiscoverer:
    """Maps a brand's site into a SiteMap of the pages worth extracting."""

    def __init__(
        self,
        gateway: ServiceGateway,
        classifier: Optional[UrlClassifier] = None,
        batch_size: int = 5,
        batch_delay: float = 0.5,
        progress_callback: Optional[Callable[[str], None]] = None,
    ):
        self.gateway = gateway
        self.classifier = classifier or UrlClassifier()
        self.batch_size = max(1, int(batch_size))
        self.batch_delay = max(0.0, float(batch_delay))
        self.progress_callback = progress_callback

    def _log(self, message: str) -> None:
        logger.info(message)
        if self.progress_callback:
            self.progress_callback(message)

    async def discover(self, domain: str, context: BrandContext, max_pages: int = 20) -> SiteMap:
        domain = clean_domain(domain)
        base_url = f"https://{domain}"
        self._log(f"Discovering site structure for {domain}...")

        homepage = await self.scrape_page(base_url, HOMEPAGE_SCRAPE_OPTIONS)
        homepage_links = self.extract_internal_links(homepage.markdown, homepage.html or "", domain)
        self._log(f"Found {len(homepage_links)} internal links on homepage")

        probed = await self.probe_common_paths(base_url, context)

        candidates: Dict[str, None] = {}
        for url in homepage_links + [item.url for item in probed]:
            if not is_homepage_url(url):
                candidates[url] = None

        prioritized = self.prioritize_urls(list(candidates), context)
        self._log(f"Found {len(candidates)} URLs, prioritized {len(prioritized)}")

        to_scrape = prioritized[: max(0, max_pages)]
        pages = await self.scrape_in_batches(to_scrape)

        site_map = self.build_site_map(homepage, pages, prioritized)
        self._log(
            f"Site map complete: pricing {'found' if site_map.pricing else 'not found'}, "
            f"{len(site_map.products)} product pages, "
            f"features {'found' if site_map.features else 'not found'}"
        )
        return site_map

    async def scrape_page(
        self,
        url: str,
        options: Optional[Dict[str, Any]] = None,
        page_type: Optional[str] = None,
    ) -> PageInfo:
        """Scrape one URL; failures give a placeholder page, never an exception."""
        page_type = page_type or self.classifier.page_type(url)
        try:
            response = await self.gateway.scrape_page(url, options or PAGE_SCRAPE_OPTIONS)
        except Exception as exc:
            self._log(f"Failed to scrape {url}: {exc}")
            return page_from_scrape(url, None, page_type)
        if not response or not response.get("success"):
            self._log(f"Failed to scrape {url}: {(response or {}).get('error') or 'unsuccessful response'}")
        return page_from_scrape(url, response, page_type)

    def extract_internal_links(self, markdown: str, html: str, domain: str) -> List[str]:
        """Internal links from markdown ``[text](url)`` and HTML anchors, deduplicated in order."""
        domain = clean_domain(domain)
        links: Dict[str, None] = {}

        for match in MARKDOWN_LINK_RE.finditer(markdown or ""):
            href = match.group(2)
            if is_internal_url(href, domain):
                links[normalize_url(href, domain)] = None

        if html:
            try:
                tree = HTMLParser(html)
                anchors = tree.css("a[href]")
            except Exception as exc:
                logger.debug("Could not parse homepage HTML for %s: %s", domain, exc)
                anchors = []
            for anchor in anchors:
                href = anchor.attributes.get("href") or ""
                if is_internal_url(href, domain):
                    links[normalize_url(href, domain)] = None

        return list(links)

    def paths_for_business_type(self, business_type: str) -> List[Tuple[str, str, int]]:
        return list(COMMON_PATHS) + list(BUSINESS_TYPE_PATHS.get(business_type, DEFAULT_BUSINESS_TYPE_PATHS))

    async def _probe(self, url: str, page_type: str, priority: int) -> Optional[DiscoveredUrl]:
        response = await self.gateway.scrape_page(url, PROBE_SCRAPE_OPTIONS)
        markdown = (response or {}).get("markdown") or ""
        if (response or {}).get("success") and len(markdown) > PROBE_MIN_CONTENT_LENGTH:
            return DiscoveredUrl(url=url, page_type=page_type, priority=priority, confidence=PROBE_CONFIDENCE)
        return None

    async def probe_common_paths(self, base_url: str, context: BrandContext) -> List[DiscoveredUrl]:
        """Probe business-type-specific paths in bounded batches."""
        paths = self.paths_for_business_type(context.business_type)
        base_url = base_url.rstrip("/")
        self._log(f"Trying {len(paths)} common paths...")

        discovered: List[DiscoveredUrl] = []
        for i in range(0, len(paths), self.batch_size):
            batch = paths[i:i + self.batch_size]
            results = await asyncio.gather(
                *(self._probe(f"{base_url}{path}", page_type, priority) for path, page_type, priority in batch),
                return_exceptions=True,
            )
            for result in results:
                if isinstance(result, DiscoveredUrl):
                    discovered.append(result)
                    self._log(f"Found: {result.page_type} at {result.url}")

            if i + self.batch_size < len(paths) and self.batch_delay:
                await asyncio.sleep(self.batch_delay)

        return discovered

    def prioritize_urls(self, urls: Sequence[str], context: BrandContext) -> List[DiscoveredUrl]:
        """Classify and re-score URLs with the brand context; stable sort by priority."""
        product_slugs = [
            re.sub(r"\s+", "-", product.strip().lower())
            for product in context.known_products
            if product and product.strip()
        ]

        scored: List[DiscoveredUrl] = []
        for url in urls:
            page_type, priority = self.classifier.classify(url)
            confidence = DEFAULT_CONFIDENCE

            if context.business_type == "saas" and page_type in ("pricing", "platform", "features"):
                priority = min(priority, 1)
                confidence = BOOSTED_CONFIDENCE
            if context.business_type == "ecommerce" and page_type in ("products", "product"):
                priority = min(priority, 1)
                confidence = BOOSTED_CONFIDENCE

            lowered = url.lower()
            if any(slug in lowered for slug in product_slugs):
                priority = min(priority, 2)
                confidence = KNOWN_PRODUCT_CONFIDENCE

            scored.append(DiscoveredUrl(url=url, page_type=page_type, priority=priority, confidence=confidence))

        return sorted(scored, key=lambda item: item.priority)

    async def scrape_in_batches(self, urls: Sequence[DiscoveredUrl]) -> List[PageInfo]:
        """Scrape prioritized URLs in concurrent batches, keeping the discovered page type."""
        pages: List[PageInfo] = []
        total = len(urls)

        for i in range(0, total, self.batch_size):
            batch = urls[i:i + self.batch_size]
            results = await asyncio.gather(
                *(self.scrape_page(item.url, PAGE_SCRAPE_OPTIONS, page_type=item.page_type) for item in batch),
                return_exceptions=True,
            )
            for item, result in zip(batch, results):
                if isinstance(result, PageInfo):
                    pages.append(result)
                else:
                    pages.append(page_from_scrape(item.url, None, item.page_type))

            self._log(f"Scraped {min(i + self.batch_size, total)}/{total} pages")

            if i + self.batch_size < total and self.batch_delay:
                await asyncio.sleep(self.batch_delay)

        return pages

    @staticmethod
    def build_site_map(
        homepage: PageInfo,
        pages: Sequence[PageInfo],
        prioritized: Sequence[DiscoveredUrl],
    ) -> SiteMap:
        usable = [page for page in pages if len(page.markdown) > PAGE_MIN_CONTENT_LENGTH]

        def first_of(page_type: str) -> Optional[PageInfo]:
            return next((page for page in usable if page.page_type == page_type), None)

        return SiteMap(
            homepage=homepage,
            pricing=first_of("pricing"),
            products=[page for page in usable if page.page_type in PRODUCT_PAGE_TYPES],
            features=first_of("features"),
            about=first_of("about"),
            all_urls=[item.url for item in prioritized],
        )
