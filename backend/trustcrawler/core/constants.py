"""
Shared constants for Trust Crawler.

Lookup tables used by the fetcher, extractor and scoring code:
- Browser identities for the fetcher
- Email deny-lists and role keywords
- Per-country tax identifier patterns
- Aggregation caps
"""

from typing import Literal


# =============================================================================
# Fetcher Identity
# =============================================================================

USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36 Edg/124.0.0.0",
)

ACCEPT_HEADER = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
ACCEPT_LANGUAGE_HEADER = "nb-NO,nb;q=0.9,no;q=0.8,en-US;q=0.7,en;q=0.6"

DEFAULT_TIMEOUTS: tuple[float, ...] = (20.0, 30.0, 40.0)


# =============================================================================
# Aggregation Caps
# =============================================================================

HEADING_CAPS: dict[str, int] = {"h1": 50, "h2": 100, "h3": 150}
META_DESCRIPTION_CAP = 20
IMAGE_CAP = 50
STRUCTURED_DATA_CAP = 20
MAX_EMAILS = 5
MAX_PHONES = 5
MAX_SITELINKS = 6
SITEMAP_URL_LIMIT = 50

UNKNOWN_INDUSTRY = "Unknown"


# =============================================================================
# Email Filtering
# =============================================================================

DENIED_EMAIL_LOCALPARTS = (
    "noreply", "no-reply", "no_reply", "donotreply", "do-not-reply",
    "mailer-daemon", "postmaster", "bounce", "bounces", "abuse",
)

DENIED_EMAIL_DOMAINS = frozenset({
    # Placeholders
    "example.com", "example.org", "example.net", "test.com", "domain.com",
    "email.com", "yourdomain.com", "yourcompany.com", "company.com",
    # Disposable
    "mailinator.com", "guerrillamail.com", "10minutemail.com", "tempmail.com",
    "yopmail.com", "trashmail.com",
    # Vendor infrastructure
    "sentry.io", "sentry.wixpress.com", "sentry-next.wixpress.com", "wixpress.com",
    "wix.com", "squarespace.com", "shopify.com", "wordpress.com", "godaddy.com",
    "cloudflare.com", "googlegroups.com",
})

# Asset filenames like logo@2x.png match the email pattern
DENIED_EMAIL_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".css", ".js")

# Rank 0: executive and general contact addresses
EXECUTIVE_EMAIL_KEYWORDS = (
    "ceo", "cfo", "cto", "coo", "founder", "owner", "director", "president",
    "daglig", "leder", "manager", "contact", "kontakt", "post", "info",
    "hello", "hei", "mail",
)

# Rank 1: department addresses
DEPARTMENT_EMAIL_KEYWORDS = (
    "sales", "salg", "support", "service", "kundeservice", "customer", "order",
    "ordre", "invoice", "faktura", "billing", "accounts", "regnskap", "hr",
    "jobb", "career", "careers", "marketing", "press", "presse", "office",
)

FREE_EMAIL_DOMAINS = frozenset({
    "gmail.com", "googlemail.com", "yahoo.com", "hotmail.com", "outlook.com",
    "live.com", "aol.com", "icloud.com", "mail.com", "protonmail.com", "proton.me",
    "msn.com", "online.no",
})


# =============================================================================
# Tax / Registration Identifiers
# =============================================================================

# Tried in order per country, first match wins. Group 1 is the identifier.
TAX_ID_PATTERNS: dict[str, tuple[str, ...]] = {
    "NO": (
        r"\b(NO\s?\d{3}\s?\d{3}\s?\d{3}\s?MVA)\b",
        r"(?:org\.?\s?(?:nr|nummer)\.?|organisasjonsnummer)[:\s]*(\d{3}\s?\d{3}\s?\d{3})\b",
    ),
    "SE": (
        r"\b(SE\s?\d{10}01)\b",
        r"(?:org\.?\s?nr\.?|organisationsnummer)[:\s]*(\d{6}-\d{4})\b",
    ),
    "DK": (
        r"\b(DK\s?\d{8})\b",
        r"(?:CVR(?:-nr\.?)?|CVR\s?nummer)[:\s]*(\d{8})\b",
    ),
    "FI": (
        r"\b(FI\s?\d{8})\b",
        r"(?:Y-tunnus|Business ID)[:\s]*(\d{7}-\d)\b",
    ),
    "DE": (
        r"\b(DE\s?\d{9})\b",
    ),
    "GB": (
        r"\b(GB\s?\d{3}\s?\d{4}\s?\d{2}(?:\s?\d{3})?)\b",
        r"(?:company\s(?:no|number|reg(?:istration)?\.?\s?no)\.?)[:\s]*([A-Z]{2}\d{6}|\d{8})\b",
    ),
}

# Generic EU VAT format, used when no country table matched
GENERIC_VAT_PATTERN = (
    r"\b((?:AT|BE|BG|CY|CZ|DE|DK|EE|EL|ES|FI|FR|HR|HU|IE|IT|LT|LU|LV|MT|NL|PL|PT|RO|SE|SI|SK)"
    r"U?\d{8,12}(?:B\d{2})?)\b"
)

EU_VAT_COUNTRIES = frozenset({
    "AT", "BE", "BG", "CY", "CZ", "DE", "DK", "EE", "EL", "ES",
    "FI", "FR", "HR", "HU", "IE", "IT", "LT", "LU", "LV", "MT",
    "NL", "PL", "PT", "RO", "SE", "SI", "SK", "XI",
})


# =============================================================================
# Social Profiles & Technologies
# =============================================================================

SocialNetwork = Literal["linkedin", "facebook", "twitter", "instagram", "youtube", "tiktok"]

SOCIAL_PATTERNS: dict[str, str] = {
    "linkedin": r"https?://(?:[a-z]{2,3}\.)?linkedin\.com/(?:company|in|school)/[\w\-%.]+",
    "facebook": r"https?://(?:www\.|m\.)?facebook\.com/(?!sharer|share|dialog|plugins|tr\b)[\w\-.]+",
    "twitter": r"https?://(?:www\.)?(?:twitter|x)\.com/(?!intent|share|home)\w+",
    "instagram": r"https?://(?:www\.)?instagram\.com/(?!p/|explore)[\w.]+",
    "youtube": r"https?://(?:www\.)?youtube\.com/(?:channel/|c/|user/|@)[\w\-]+",
    "tiktok": r"https?://(?:www\.)?tiktok\.com/@[\w.]+",
}

# Markup fingerprints, matched case-insensitively
TECHNOLOGY_SIGNATURES: dict[str, tuple[str, ...]] = {
    "WordPress": ("wp-content/", "wp-includes/", 'content="wordpress'),
    "Shopify": ("cdn.shopify.com", "shopify.theme", "myshopify.com"),
    "Wix": ("static.wixstatic.com", "wix.com website builder", "_wixcssimports"),
    "Squarespace": ("static1.squarespace.com", "squarespace.com"),
    "Next.js": ("/_next/static", "__next_data__"),
    "React": ("data-reactroot", "react-dom", "__react"),
    "Webflow": ("webflow.js", "data-wf-page"),
    "HubSpot": ("js.hs-scripts.com", "hs-analytics"),
}
