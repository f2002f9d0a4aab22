"""
Registry Verifier - country-keyed dispatch over RegistryLookup strategies.

Lookups are registered per country at startup and tried in registration
order. The first lookup that returns RegistryData wins; results from
different sources are not reconciled. Override RegistryVerifier.verify()
to merge multiple sources instead.
"""

from typing import Any

import httpx
import structlog

from trustcrawler.core.config import Settings, settings as default_settings
from trustcrawler.core.constants import EU_VAT_COUNTRIES
from trustcrawler.core.models import CompanyStatus, RegistryData
from trustcrawler.services.registry.base import RegistryLookup
from trustcrawler.services.registry.brreg import BrregLookup
from trustcrawler.services.registry.companies_house import CompaniesHouseLookup
from trustcrawler.services.registry.cvr import CvrLookup
from trustcrawler.services.registry.opencorporates import OpenCorporatesLookup
from trustcrawler.services.registry.prh import PrhLookup
from trustcrawler.services.registry.vies import ViesLookup

logger = structlog.get_logger()

COUNTRY_ALIASES = {"UK": "GB", "EL": "GR"}


def normalize_country(country_code: str) -> str:
    code = (country_code or "").strip().upper()
    return COUNTRY_ALIASES.get(code, code)


class RegistryVerifier:
    """Resolve a registration identifier against the registries of a country."""

    def __init__(self):
        self._strategies: dict[str, list[RegistryLookup]] = {}
        self.log = logger.bind(component="RegistryVerifier")

    def register(self, country_code: str, lookup: RegistryLookup) -> None:
        """Append a lookup to the country's chain."""
        self._strategies.setdefault(normalize_country(country_code), []).append(lookup)

    def lookups_for(self, country_code: str) -> list[RegistryLookup]:
        return list(self._strategies.get(normalize_country(country_code), []))

    @property
    def countries(self) -> list[str]:
        return sorted(self._strategies)

    async def verify(self, country_code: str, identifier: str) -> RegistryData | None:
        """Return the first registry snapshot found, or None when no source knows the entity."""
        country = normalize_country(country_code)
        lookups = self._strategies.get(country)
        if not lookups:
            self.log.info("No registry registered for country", country=country)
            return None

        for lookup in lookups:
            try:
                data = await lookup.lookup(identifier)
            except Exception as e:
                # Lookups are expected to return None; anything else is a bug in one source
                self.log.error(
                    "Registry lookup raised",
                    country=country,
                    source=lookup.source,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            if data is not None:
                self.log.info(
                    "Registry match",
                    country=country,
                    source=data.source or lookup.source,
                    status=data.company_status.value,
                )
                return data

        self.log.info("Entity not found in any registry", country=country, identifier=identifier)
        return None

    async def quick_verify(self, country_code: str, identifier: str) -> dict[str, Any]:
        """Lightweight status check for the public API."""
        data = await self.verify(country_code, identifier)
        if data is None:
            return {"verified": False, "status": None, "source": None, "legal_name": None}
        return {
            "verified": data.company_status == CompanyStatus.ACTIVE,
            "status": data.company_status.value,
            "source": data.source,
            "legal_name": data.legal_name,
        }


def build_default_verifier(
    client: httpx.AsyncClient,
    settings: Settings | None = None,
) -> RegistryVerifier:
    """Register every built-in lookup.

    NO, GB, DK and FI get their national registry first. Every other EU
    member state falls back to VIES and then OpenCorporates.
    """
    settings = settings or default_settings
    common = {"timeout": settings.registry_timeout}
    token = settings.opencorporates_api_token

    verifier = RegistryVerifier()
    verifier.register("NO", BrregLookup(client, **common))
    verifier.register("NO", OpenCorporatesLookup(client, jurisdiction="no", api_token=token, **common))

    verifier.register(
        "GB", CompaniesHouseLookup(client, api_key=settings.companies_house_api_key, **common)
    )
    verifier.register("GB", OpenCorporatesLookup(client, jurisdiction="gb", api_token=token, **common))

    verifier.register("DK", CvrLookup(client, **common))
    verifier.register("DK", ViesLookup(client, country_code="DK", **common))

    verifier.register("FI", PrhLookup(client, **common))
    verifier.register("FI", ViesLookup(client, country_code="FI", **common))

    for vat_code in sorted(EU_VAT_COUNTRIES - {"DK", "FI", "XI"}):
        country = normalize_country(vat_code)
        verifier.register(country, ViesLookup(client, country_code=country, **common))
        verifier.register(
            country,
            OpenCorporatesLookup(client, jurisdiction=country.lower(), api_token=token, **common),
        )

    return verifier
