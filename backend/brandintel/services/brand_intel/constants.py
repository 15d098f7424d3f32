"""Constants for the brand intelligence pipeline."""

import re

BUSINESS_TYPES = ("saas", "ecommerce", "service", "hybrid", "unknown")
PRICING_MODELS = ("subscription", "one-time", "freemium", "usage", "enterprise", "unknown")
PRODUCT_TYPES = ("physical", "saas", "service")
FEATURE_STATUSES = ("ga", "beta", "coming_soon")
ASSET_TYPES = ("image", "video", "logo", "screenshot", "lifestyle")
BILLING_PERIODS = ("monthly", "annually", "one-time", "custom")
PRICE_TYPES = ("per_user", "flat", "usage", "custom")

# Ordered (path pattern, page type, priority); first match wins, lower priority = more important.
PAGE_PATTERNS = [
    # Pricing
    (r"/pricing/?$", "pricing", 1),
    (r"/plans/?$", "pricing", 1),
    (r"/editions/?$", "pricing", 2),
    (r"/packages/?$", "pricing", 2),
    # Platform / products
    (r"/platform/?$", "platform", 1),
    (r"/products?/?$", "products", 1),
    (r"/solutions?/?$", "products", 2),
    (r"/overview/?$", "platform", 2),
    # Ecommerce catalogues
    (r"/shop/?$", "products", 1),
    (r"/collections?/?$", "products", 1),
    (r"/catalog/?$", "products", 2),
    # Features
    (r"/features?/?$", "features", 1),
    (r"/capabilities/?$", "features", 2),
    (r"/what-we-do/?$", "features", 3),
    # Integrations
    (r"/integrations?/?$", "integrations", 1),
    (r"/marketplace/?$", "integrations", 1),
    (r"/apps?/?$", "integrations", 2),
    (r"/exchange/?$", "integrations", 2),
    # Services
    (r"/services?/?$", "services", 1),
    (r"/professional-services?/?$", "services", 1),
    (r"/implementation/?$", "services", 2),
    (r"/support/?$", "services", 3),
    # About
    (r"/about/?$", "about", 3),
    (r"/company/?$", "about", 3),
    # Legal pages sometimes carry product descriptions
    (r"/legal/product-descriptions?/?$", "legal", 2),
    # Individual product pages
    (r"/products?/[^/]+/?$", "product", 3),
    (r"/collections?/[^/]+/?$", "products", 3),
]

COMPILED_PAGE_PATTERNS = [
    (re.compile(pattern, re.IGNORECASE), page_type, priority)
    for pattern, page_type, priority in PAGE_PATTERNS
]

LOWEST_PRIORITY = 5

PRODUCT_PAGE_TYPES = ("products", "product", "platform")

# Common paths probed per business type: (path, page type, priority)
COMMON_PATHS = [
    ("/pricing", "pricing", 1),
    ("/features", "features", 1),
    ("/about", "about", 3),
]

BUSINESS_TYPE_PATHS = {
    "saas": [
        ("/platform", "platform", 1),
        ("/product", "products", 1),
        ("/products", "products", 1),
        ("/integrations", "integrations", 2),
        ("/marketplace", "integrations", 2),
        ("/services", "services", 2),
        ("/solutions", "products", 2),
        ("/legal/product-descriptions", "legal", 2),
    ],
    "ecommerce": [
        ("/shop", "products", 1),
        ("/products", "products", 1),
        ("/collections", "products", 1),
        ("/catalog", "products", 2),
    ],
}

DEFAULT_BUSINESS_TYPE_PATHS = [
    ("/services", "services", 1),
    ("/products", "products", 2),
    ("/solutions", "products", 2),
    ("/what-we-do", "features", 2),
]

# A probed path only counts when it returns more content than this (filters soft 404s).
PROBE_MIN_CONTENT_LENGTH = 500
# Scraped pages at or below this length are placeholders, not site map candidates.
PAGE_MIN_CONTENT_LENGTH = 100

SKIP_LINK_PREFIXES = ("#", "mailto:", "tel:", "javascript:", "data:")
SKIP_LINK_EXTENSIONS = (
    ".pdf", ".jpg", ".jpeg", ".png", ".gif", ".svg", ".css", ".js", ".zip", ".mp4", ".webp", ".ico", ".xml",
)

NEWS_SOURCES = (
    "techcrunch", "forbes", "bloomberg", "reuters", "wsj", "nytimes",
    "theverge", "wired", "venturebeat", "businessinsider", "cnbc", "cnet",
)

INDUSTRY_KEYWORDS = {
    "saas": ("software", "saas", "technology"),
    "ecommerce": ("retail", "ecommerce", "e-commerce", "consumer goods"),
    "service": ("consulting", "agency", "professional services"),
}

MAX_KNOWN_PRODUCTS = 20
MAX_COMPETITORS = 10
MAX_RECENT_NEWS = 5

# Extraction
EXTRACTION_CONTENT_LIMIT = 25000
FOCUSED_CONTENT_LIMIT = 20000
BROAD_TEMPERATURE = 0.5
FOCUSED_TEMPERATURE = 0.3
RETRY_CONFIDENCE_THRESHOLD = 0.5
DEFAULT_ITEM_CONFIDENCE = 0.7
DEFAULT_MAX_RETRIES = 2

# Screened out at extraction time.
EXTRACTION_JUNK_IMAGE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"tracking", r"pixel", r"beacon", r"analytics", r"1x1", r"\.gif$", r"spacer", r"blank",
        r"facebook\.com", r"twitter\.com", r"linkedin\.com", r"google\.com/.*/ads",
    )
]

# Flagged at validation time.
JUNK_IMAGE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        # Tracking / analytics
        r"pixel", r"tracking", r"beacon", r"analytics", r"stat\.gif", r"1x1\.(png|gif|jpg)",
        r"spacer", r"blank\.(png|gif)",
        # Social icons
        r"facebook\.com.*icon", r"twitter\.com.*icon", r"linkedin\.com.*icon", r"instagram\.com.*icon",
        # Payment / trust badges
        r"visa", r"mastercard", r"amex", r"paypal.*badge", r"stripe.*badge", r"trustpilot",
        r"bbb\.org", r"mcafee.*seal", r"norton.*seal",
        # Generic junk
        r"placeholder", r"loading", r"spinner", r"ajax-loader", r"cookie.*banner", r"gdpr", r"consent",
    )
]

# Validation
BASE_SCORE = 0.8
KNOWN_PRODUCT_MATCH_THRESHOLD = 0.7
REVIEW_SCORE_THRESHOLD = 0.6
REVIEW_MAX_CONCERNS = 2
MIN_DESCRIPTION_LENGTH = 20
MAX_PRODUCT_NAME_LENGTH = 100
MIN_NAME_LENGTH = 3
SAAS_MAX_PRICE = 50000
PHYSICAL_MAX_PRICE = 1000000
PHYSICAL_MIN_PRICE = 0.01

NAVIGATION_WORDS = (
    "menu", "home", "about", "contact", "login", "cart", "shop", "all",
    "back", "next", "previous", "click here", "learn more", "read more",
)

# Sync
SYNC_MIN_PRODUCT_SCORE = 0.5
