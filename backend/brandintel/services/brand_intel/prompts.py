"""Prompt builders for page extraction."""

from .constants import EXTRACTION_CONTENT_LIMIT, FOCUSED_CONTENT_LIMIT
from .models import BrandContext, PageInfo

PAGE_TYPE_HINTS = {
    "pricing": """Focus on extracting ALL pricing tiers, features included in each tier, and pricing model.
Look for: plan names, prices, billing periods, feature comparisons, enterprise options.
Extract the complete feature matrix if available.""",
    "platform": """Focus on extracting platform components, modules, and how they fit together.
Look for: platform pillars, product modules, add-ons, architectural diagrams described.""",
    "products": """Focus on extracting ALL products/services listed on this page.
Look for: product names, descriptions, key features, pricing if shown.
For ecommerce: include variants, SKUs, inventory status.
For SaaS: include plan differences, feature limits.""",
    "product": """Focus on the single product described on this page.
Look for: exact product name, description, price, variants, product images.""",
    "features": """Focus on extracting ALL features and capabilities.
Look for: feature names, descriptions, which plans include them, AI capabilities.
Group by category if the page does so.""",
    "integrations": """Focus on extracting ALL integrations and marketplace apps.
Look for: integration names, categories, native vs third-party, description of what they do.""",
    "services": """Focus on extracting professional services offerings.
Look for: service types (implementation, training, consulting), pricing, duration.""",
    "homepage": """Extract the main products/services and unique selling points.
Look for: hero section offerings, featured products, pricing CTAs.""",
}

DEFAULT_HINT = "Extract all products, services, and pricing from this page."


def page_type_hint(page_type: str) -> str:
    return PAGE_TYPE_HINTS.get(page_type, DEFAULT_HINT)


def _joined(values, fallback: str) -> str:
    return ", ".join(values) if values else fallback


def build_extraction_prompt(page: PageInfo, context: BrandContext) -> str:
    company_line = ""
    if context.company_info:
        info = context.company_info
        company_line = f"\n- Company: {info.employees or 'unknown'} employees, {info.industry or 'unknown industry'}"

    return f"""You are analyzing a {context.business_type} company's website page.

## What we already know about this brand:
- Name: {context.name}
- Business Type: {context.business_type}
- Known products: {_joined(context.known_products, "None identified yet")}
- Pricing model: {context.pricing_model}
- Competitors: {_joined(context.competitors, "Unknown")}{company_line}

## Page being analyzed:
- URL: {page.url}
- Type: {page.page_type}
- Title: {page.title}

## Your task:
{page_type_hint(page.page_type)}

Be thorough - describe everything you find.
If you see something that matches our known products, include extra details.
If you find NEW products not in our list, include those too.
DO NOT make up products - only extract what is ACTUALLY on this page.

## Page content:
{page.markdown[:EXTRACTION_CONTENT_LIMIT]}

## Output format:
Return a JSON object with this structure:
{{
  "products": [{{
    "name": "Product name (exact as shown)",
    "type": "physical" | "saas" | "service",
    "description": "Brief description",
    "price": 99.99 | null,
    "currency": "USD" | null,
    "images": ["image URL 1"],
    "category": "category if mentioned",
    "confidence": 0.0-1.0
  }}],
  "pricing": {{
    "model": "subscription" | "one-time" | "freemium" | "usage" | "enterprise" | null,
    "tiers": [{{
      "name": "Tier name",
      "price": 99.99 | null,
      "billingPeriod": "monthly" | "annually" | "one-time" | "custom",
      "priceType": "per_user" | "flat" | "usage" | "custom",
      "isPopular": true | false,
      "features": ["feature 1", "feature 2"]
    }}],
    "hasFreeTier": true | false,
    "hasEnterprise": true | false,
    "confidence": 0.0-1.0
  }} | null,
  "features": [{{
    "name": "Feature name",
    "description": "Brief description",
    "category": "Analytics" | "AI" | "Security" | "Collaboration" | "Other",
    "status": "ga" | "beta" | "coming_soon"
  }}],
  "assets": [{{
    "url": "image/video URL",
    "type": "image" | "video" | "logo" | "screenshot" | "lifestyle",
    "alt": "alt text if available",
    "context": "where/how it's used"
  }}],
  "overallConfidence": 0.0-1.0,
  "notes": "Any observations about the extraction"
}}

IMPORTANT:
- Only extract what is ACTUALLY present in the content
- Include confidence scores for each item
- If a field is not found, use null (not empty string)
- For prices, extract numeric values only (no currency symbols in the number)
- For images, only include absolute URLs that look like product/marketing images
- Skip navigation icons, social icons, decorative elements"""


def focus_for_page_type(page_type: str) -> str:
    """Dominant entity type a focused retry is scoped to."""
    if page_type == "pricing":
        return "pricing"
    if page_type in ("features", "integrations"):
        return "features"
    return "products"


def build_focused_prompt(page: PageInfo, context: BrandContext) -> str:
    focus = focus_for_page_type(page.page_type)
    content = page.markdown[:FOCUSED_CONTENT_LIMIT]

    if focus == "pricing":
        return f"""Extract ONLY pricing information from this {context.business_type} company's pricing page.

Company: {context.name}
Page: {page.url}

Content:
{content}

Return JSON with ONLY pricing tiers found:
{{
  "pricing": {{
    "model": "subscription" | "freemium" | "one-time" | "usage" | "enterprise",
    "tiers": [{{
      "name": "tier name",
      "price": number | null,
      "billingPeriod": "monthly" | "annually",
      "priceType": "per_user" | "flat",
      "features": ["feature1", "feature2"]
    }}],
    "hasFreeTier": boolean,
    "hasEnterprise": boolean,
    "confidence": 0.0-1.0
  }}
}}"""

    if focus == "features":
        return f"""Extract ONLY the features and capabilities described on this page.

Company: {context.name} ({context.business_type})
Known products: {_joined(context.known_products, "none")}
Page: {page.url}

Content:
{content}

Return JSON:
{{
  "features": [{{ "name": "...", "description": "...", "category": "...", "status": "ga" | "beta" | "coming_soon" }}],
  "overallConfidence": 0.0-1.0
}}"""

    return f"""Extract the main offerings from this page. Be concise and accurate.

Company: {context.name} ({context.business_type})
Page: {page.url}

Content:
{content}

Return JSON:
{{
  "products": [{{ "name": "...", "type": "saas"|"physical"|"service", "description": "...", "confidence": 0.9 }}],
  "features": [{{ "name": "...", "description": "..." }}],
  "overallConfidence": 0.0-1.0
}}"""
