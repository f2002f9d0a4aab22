"""
Verification routes.

- POST /api/verify: full verification with storage
- GET  /api/verify: quick registry check without storage
- GET  /api/businesses/{country_code}/{org_number}: stored record
"""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from trustcrawler.api.dependencies import get_orchestrator, get_store, get_verifier
from trustcrawler.api.middleware import add_business_to_wide_event
from trustcrawler.core.models import BusinessRecord
from trustcrawler.db.store import RecordStore
from trustcrawler.orchestrator import VerificationHints, VerificationOrchestrator
from trustcrawler.services.registry import RegistryVerifier, normalize_country
from trustcrawler.services.trust_engine import label_key, trust_level

logger = structlog.get_logger()

router = APIRouter()


# ==============================================================================
# Request/Response Schemas
# ==============================================================================


class VerifyRequest(BaseModel):
    """Fields are optional here so missing ones produce a 400, not a 422."""
    model_config = ConfigDict(populate_by_name=True)

    org_number: str | None = Field(None, alias="orgNumber", max_length=50)
    country_code: str | None = Field(None, alias="countryCode", max_length=5)
    website_url: str | None = Field(None, alias="websiteUrl", max_length=500)


class VerifyResponse(BaseModel):
    verified: bool
    business_id: UUID | None = None
    trust_score: int | None = None
    trust_level: str | None = None
    label_key: str | None = None
    source: str | None = None


class QuickVerifyResponse(BaseModel):
    verified: bool
    status: str | None = None
    source: str | None = None
    legal_name: str | None = None


class BusinessResponse(BusinessRecord):
    trust_level: str
    label_key: str


def _require(org_number: str | None, country_code: str | None) -> tuple[str, str]:
    if not org_number or not org_number.strip() or not country_code or not country_code.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="orgNumber and countryCode are required",
        )
    return org_number.strip(), normalize_country(country_code)


# ==============================================================================
# Endpoints
# ==============================================================================


@router.post(
    "/verify",
    response_model=VerifyResponse,
    summary="Verify and store a business",
)
async def verify_business(
    request: VerifyRequest,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
) -> VerifyResponse:
    org_number, country_code = _require(request.org_number, request.country_code)
    add_business_to_wide_event(org_number=org_number, country_code=country_code)

    outcome = await orchestrator.verify_and_store(
        org_number,
        country_code,
        VerificationHints(website_url=request.website_url),
    )

    if not outcome.success:
        if outcome.error_code == "store_error":
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Verification could not be stored",
            )
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=outcome.error or "Business not found",
        )

    add_business_to_wide_event(
        org_number=org_number,
        country_code=country_code,
        business_id=str(outcome.business_id),
        trust_score=outcome.trust_score,
    )
    return VerifyResponse(
        verified=True,
        business_id=outcome.business_id,
        trust_score=outcome.trust_score,
        trust_level=trust_level(outcome.trust_score or 0),
        label_key=label_key(outcome.trust_score or 0),
        source=outcome.source,
    )


@router.get(
    "/verify",
    response_model=QuickVerifyResponse,
    summary="Quick registry check",
)
async def quick_verify(
    org_number: str | None = Query(None, alias="orgNumber"),
    country_code: str | None = Query(None, alias="countryCode"),
    verifier: RegistryVerifier = Depends(get_verifier),
) -> QuickVerifyResponse:
    org_number, country_code = _require(org_number, country_code)
    result = await verifier.quick_verify(country_code, org_number)
    return QuickVerifyResponse(**result)


@router.get(
    "/businesses/{country_code}/{org_number}",
    response_model=BusinessResponse,
    summary="Get a stored business",
)
async def get_business(
    country_code: str,
    org_number: str,
    store: RecordStore = Depends(get_store),
) -> BusinessResponse:
    record = await store.get(org_number.strip(), normalize_country(country_code))
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Business {country_code.upper()}/{org_number} not found",
        )
    return BusinessResponse(
        **record.model_dump(),
        trust_level=trust_level(record.trust_score),
        label_key=label_key(record.trust_score),
    )
