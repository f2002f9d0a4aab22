"""
Retry policy shared by the page Fetcher and the registry clients.

Registry APIs get exponential backoff on transport errors and on
408/429/5xx. Website fetches additionally retry 403, since many sites
reject the first request from an unfamiliar client.
"""

import asyncio
import contextlib
import random
from typing import Any

import httpx
import structlog

logger = structlog.get_logger()

RETRYABLE_EXCEPTIONS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)

STATUS_FORBIDDEN = 403
STATUS_TOO_MANY_REQUESTS = 429

RETRYABLE_STATUS_CODES = frozenset({408, STATUS_TOO_MANY_REQUESTS, 500, 502, 503, 504})
PAGE_RETRYABLE_STATUS_CODES = RETRYABLE_STATUS_CODES | {STATUS_FORBIDDEN}


def backoff_delay(
    attempt: int,
    backoff_base: float = 1.0,
    backoff_max: float = 30.0,
    jitter: float = 0.1,
) -> float:
    """Delay after a failed 1-based attempt: base * 2^(attempt-1), capped, ±jitter."""
    delay = min(backoff_base * (2 ** (attempt - 1)), backoff_max)
    return delay * (1 + random.uniform(-jitter, jitter))


def retry_after_seconds(response: httpx.Response) -> float | None:
    """Numeric Retry-After of a 429 response, if any."""
    if response.status_code != STATUS_TOO_MANY_REQUESTS:
        return None
    with contextlib.suppress(TypeError, ValueError):
        return float(response.headers.get("retry-after"))
    return None


async def fetch_with_retries(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    max_attempts: int = 3,
    backoff_base: float = 1.0,
    **kwargs: Any,
) -> httpx.Response:
    """
    client.request() with retries.

    Returns the last response even if its status is still retryable, so the
    caller decides what a 503 means. Raises the last transport error when
    every attempt failed with one.
    """
    log = logger.bind(method=method, url=url[:120], max_attempts=max_attempts)

    for attempt in range(1, max_attempts + 1):
        last_attempt = attempt == max_attempts
        try:
            response = await client.request(method, url, **kwargs)
        except RETRYABLE_EXCEPTIONS as e:
            if last_attempt:
                log.warning("All retry attempts failed", error=str(e), attempts=attempt)
                raise
            delay = backoff_delay(attempt, backoff_base)
            log.debug("Retrying after transport error", error=str(e), attempt=attempt, delay=round(delay, 2))
            await asyncio.sleep(delay)
            continue

        if response.status_code not in RETRYABLE_STATUS_CODES or last_attempt:
            return response

        delay = retry_after_seconds(response) or backoff_delay(attempt, backoff_base)
        log.debug("Retrying due to HTTP status", status=response.status_code, attempt=attempt, delay=round(delay, 2))
        await asyncio.sleep(delay)

    raise RuntimeError("max_attempts must be >= 1")
