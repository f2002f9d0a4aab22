"""
User-Agent helpers for Trust Crawler.

Two identities are used:
- Website crawling rotates browser-like User-Agents per request
- Registry APIs get an identifying bot User-Agent with contact info
"""

import random

from trustcrawler.core.config import get_settings
from trustcrawler.core.constants import (
    ACCEPT_HEADER,
    ACCEPT_LANGUAGE_HEADER,
    USER_AGENTS,
)


def pick_user_agent(rng: random.Random | None = None) -> str:
    """Pick a browser User-Agent from the rotation pool."""
    return (rng or random).choice(USER_AGENTS)


def build_browser_headers(rng: random.Random | None = None) -> dict[str, str]:
    """Build identity headers for a single page request."""
    return {
        "User-Agent": pick_user_agent(rng),
        "Accept": ACCEPT_HEADER,
        "Accept-Language": ACCEPT_LANGUAGE_HEADER,
    }


def build_bot_user_agent() -> str:
    """
    Build User-Agent string for registry API calls.

    Priority:
    1. If CONTACT_EMAIL is configured → use email
    2. Otherwise → generic identification
    """
    settings = get_settings()

    if settings.has_contact_email:
        contact = f"contact: {settings.contact_email}"
    else:
        contact = "business verification"

    return f"TrustCrawler/{settings.app_version} ({contact})"
