"""
Single-page Fetcher for Trust Crawler.

Fetches one URL with:
- A rotated browser identity per attempt
- Escalating timeouts per attempt (20s, 30s, 40s by default)
- Retries on transport errors and 403/408/429/5xx
- Redirect following; the result carries the final URL

A page that exhausts its attempts yields None. Callers record it as failed.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

import httpx
import structlog

from trustcrawler.core.constants import DEFAULT_TIMEOUTS
from trustcrawler.services.retry_utils import (
    PAGE_RETRYABLE_STATUS_CODES,
    RETRYABLE_EXCEPTIONS,
    backoff_delay,
    retry_after_seconds,
)
from trustcrawler.services.user_agent import build_browser_headers

logger = structlog.get_logger()

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


@dataclass
class FetchResult:
    """Successful response for a single URL."""
    url: str
    final_url: str
    status_code: int
    content_type: str
    text: str
    attempts: int = 1

    @property
    def is_html(self) -> bool:
        content_type = self.content_type.lower()
        if not content_type:
            # Some servers omit the header on HTML pages
            return self.text.lstrip()[:200].lower().startswith(("<!doctype html", "<html"))
        return any(ct in content_type for ct in HTML_CONTENT_TYPES)


class Fetcher:
    """HTTP fetcher with identity rotation and timeout escalation."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeouts: Sequence[float] = DEFAULT_TIMEOUTS,
        backoff_base: float = 1.0,
        backoff_max: float = 10.0,
    ):
        """Initialize fetcher.

        Args:
            client: httpx AsyncClient for requests
            timeouts: Timeout per attempt; its length is the attempt budget
            backoff_base: Base delay between attempts in seconds
            backoff_max: Maximum delay between attempts
        """
        if not timeouts:
            raise ValueError("timeouts must contain at least one value")
        self.client = client
        self.timeouts = tuple(timeouts)
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.log = logger.bind(component="Fetcher")

    @property
    def max_attempts(self) -> int:
        return len(self.timeouts)

    async def fetch(self, url: str) -> FetchResult | None:
        """Fetch a URL, returning None once every attempt has failed."""
        for attempt, timeout in enumerate(self.timeouts, start=1):
            is_last = attempt == self.max_attempts
            try:
                response = await self.client.get(
                    url,
                    headers=build_browser_headers(),
                    timeout=timeout,
                    follow_redirects=True,
                )
            except RETRYABLE_EXCEPTIONS as e:
                self.log.debug(
                    "Fetch attempt failed",
                    url=url[:100],
                    attempt=attempt,
                    timeout=timeout,
                    error=type(e).__name__,
                )
                if is_last:
                    break
                await asyncio.sleep(backoff_delay(attempt, self.backoff_base, self.backoff_max))
                continue
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                # Invalid URLs, unsupported schemes, redirect loops
                self.log.debug("Fetch not retryable", url=url[:100], error=str(e))
                return None

            if response.status_code in PAGE_RETRYABLE_STATUS_CODES:
                self.log.debug(
                    "Retryable status",
                    url=url[:100],
                    attempt=attempt,
                    status=response.status_code,
                )
                if is_last:
                    break
                delay = retry_after_seconds(response)
                if delay is None:
                    delay = backoff_delay(attempt, self.backoff_base, self.backoff_max)
                await asyncio.sleep(min(delay, self.backoff_max))
                continue

            if response.status_code >= 400:
                self.log.debug("Fetch rejected", url=url[:100], status=response.status_code)
                return None

            return FetchResult(
                url=url,
                final_url=str(response.url),
                status_code=response.status_code,
                content_type=response.headers.get("content-type", ""),
                text=response.text,
                attempts=attempt,
            )

        self.log.info("Fetch exhausted retries", url=url[:100], attempts=self.max_attempts)
        return None
