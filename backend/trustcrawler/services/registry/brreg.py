"""
Brønnøysund Register Centre (Norway) client.

API: https://data.brreg.no/enhetsregisteret/api/
- GET /enheter/{orgnr}: single entity (410 Gone for deleted entities)
- GET /enheter?page=&size=&...: paginated search, used by the import bot
"""

import re
from typing import Any

from trustcrawler.core.models import CompanyStatus, RegistryData
from trustcrawler.services.registry.base import RegistryLookup, join_address

BRREG_API_URL = "https://data.brreg.no/enhetsregisteret/api"

ORG_NUMBER_PATTERN = re.compile(r"^\d{9}$")


def normalize_org_number(identifier: str) -> str | None:
    """'912 676 951' / 'NO912676951MVA' -> '912676951'."""
    digits = re.sub(r"\D", "", identifier or "")
    return digits if ORG_NUMBER_PATTERN.match(digits) else None


def brreg_status(entity: dict[str, Any]) -> CompanyStatus:
    if entity.get("konkurs") or entity.get("slettedato"):
        return CompanyStatus.DISSOLVED
    if entity.get("underAvvikling") or entity.get("underTvangsavviklingEllerTvangsopplosning"):
        return CompanyStatus.LIQUIDATION
    return CompanyStatus.ACTIVE


class BrregLookup(RegistryLookup):
    """Norwegian Central Coordinating Register for Legal Entities."""

    source = "brreg"

    async def lookup(self, identifier: str) -> RegistryData | None:
        org_number = normalize_org_number(identifier)
        if not org_number:
            self.log.debug("Invalid Norwegian org number", identifier=identifier)
            return None

        response = await self._get(f"{BRREG_API_URL}/enheter/{org_number}")
        if response is not None and response.status_code == 410:
            # Deleted from the register
            return self._snapshot(
                org_nr=org_number,
                company_status=CompanyStatus.DISSOLVED,
            )

        entity = self._json(response)
        if entity is None:
            return None
        return self.parse_entity(entity)

    def parse_entity(self, entity: dict[str, Any]) -> RegistryData:
        org_number = str(entity.get("organisasjonsnummer", ""))
        in_vat_register = bool(entity.get("registrertIMvaregisteret"))

        industry_codes: list[str] = []
        for key in ("naeringskode1", "naeringskode2", "naeringskode3"):
            code = entity.get(key)
            if isinstance(code, dict) and code.get("kode"):
                industry_codes.append(str(code["kode"]))

        address = entity.get("forretningsadresse") or entity.get("postadresse") or {}
        street = ", ".join(address.get("adresse") or []) if isinstance(address, dict) else None

        return self._snapshot(
            org_nr=org_number,
            legal_name=entity.get("navn"),
            registration_date=entity.get("registreringsdatoEnhetsregisteret") or entity.get("stiftelsesdato"),
            company_status=brreg_status(entity),
            industry_codes=industry_codes,
            employee_count=entity.get("antallAnsatte"),
            vat_number=f"NO{org_number}MVA" if in_vat_register else None,
            vat_status="Active" if in_vat_register else None,
            registered_address=join_address(
                street,
                address.get("postnummer") if isinstance(address, dict) else None,
                address.get("poststed") if isinstance(address, dict) else None,
            ),
        )

    async def search_entities(
        self,
        page: int,
        size: int = 100,
        **filters: Any,
    ) -> list[dict[str, Any]] | None:
        """One page of the entity search; None on failure, [] past the last page."""
        params = {"page": page, "size": size, **filters}
        data = await self._get_json(f"{BRREG_API_URL}/enheter", params=params)
        if data is None:
            return None
        embedded = data.get("_embedded") or {}
        entities = embedded.get("enheter") or []
        return [e for e in entities if isinstance(e, dict)]
