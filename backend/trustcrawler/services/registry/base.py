"""
Registry lookup base class.

Every national registry (or aggregator) implements RegistryLookup.lookup().
Lookups never raise: network errors, unexpected payloads and unknown
identifiers all return None. A found-but-inactive company is returned as
RegistryData with a non-Active status.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from trustcrawler.core.models import CompanyStatus, RegistryData
from trustcrawler.services.retry_utils import fetch_with_retries
from trustcrawler.services.user_agent import build_bot_user_agent

logger = structlog.get_logger()


class RegistryLookup(ABC):
    """Uniform lookup contract regardless of the underlying source."""

    source: str = "unknown"

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout: float = 15.0,
        max_attempts: int = 2,
        backoff_base: float = 1.0,
    ):
        self.client = client
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.log = logger.bind(component="RegistryLookup", source=self.source)

    @abstractmethod
    async def lookup(self, identifier: str) -> RegistryData | None:
        """Look up a registration identifier."""
        pass

    # =========================================================================
    # HTTP helpers
    # =========================================================================

    async def _get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        auth: tuple[str, str] | None = None,
    ) -> httpx.Response | None:
        """GET with retries; None on transport failure."""
        request_headers = {
            "User-Agent": build_bot_user_agent(),
            "Accept": "application/json",
            **(headers or {}),
        }
        try:
            return await fetch_with_retries(
                self.client,
                "GET",
                url,
                max_attempts=self.max_attempts,
                backoff_base=self.backoff_base,
                params=params,
                headers=request_headers,
                auth=auth,
                timeout=self.timeout,
                follow_redirects=True,
            )
        except httpx.HTTPError as e:
            self.log.warning("Registry request failed", url=url[:120], error=str(e))
            return None

    def _json(self, response: httpx.Response | None) -> dict[str, Any] | None:
        """Decode a 2xx JSON object body; None for anything else."""
        if response is None:
            return None
        if response.status_code in (400, 404):
            return None
        if response.status_code >= 400:
            self.log.warning("Registry API error", status=response.status_code, url=str(response.url)[:120])
            return None
        try:
            data = response.json()
        except ValueError:
            self.log.warning("Registry returned invalid JSON", url=str(response.url)[:120])
            return None
        return data if isinstance(data, dict) else None

    async def _get_json(self, url: str, **kwargs: Any) -> dict[str, Any] | None:
        return self._json(await self._get(url, **kwargs))

    # =========================================================================
    # Normalization helpers
    # =========================================================================

    def _snapshot(self, **fields: Any) -> RegistryData:
        """Build RegistryData stamped with source and verification time."""
        fields.setdefault("source", self.source)
        fields.setdefault("last_verified_registry", datetime.now(timezone.utc))
        return RegistryData(**fields)


def join_address(*parts: Any) -> str | None:
    """Join non-empty address parts with ", "."""
    cleaned = [str(p).strip() for p in parts if p is not None and str(p).strip()]
    return ", ".join(cleaned) or None


def status_from_keywords(
    raw: str | None,
    liquidation: tuple[str, ...],
    dissolved: tuple[str, ...],
    active: tuple[str, ...],
) -> CompanyStatus:
    """Map a free-text status onto the normalized vocabulary.

    Checked in the order liquidation, dissolved, active, so "inactive" is
    never read as "active".
    """
    if not raw:
        return CompanyStatus.UNKNOWN
    value = raw.lower()
    if any(k in value for k in liquidation):
        return CompanyStatus.LIQUIDATION
    if any(k in value for k in dissolved):
        return CompanyStatus.DISSOLVED
    if any(k in value for k in active):
        return CompanyStatus.ACTIVE
    return CompanyStatus.UNKNOWN
