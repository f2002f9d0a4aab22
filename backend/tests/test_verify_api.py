"""
Tests for the verification endpoints.
"""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from trustcrawler.core.exceptions import StoreError
from trustcrawler.core.models import BusinessRecord, WebsiteStatus
from trustcrawler.orchestrator import VerificationOutcome

pytestmark = pytest.mark.asyncio


def _orchestrator(outcome: VerificationOutcome) -> AsyncMock:
    orchestrator = AsyncMock()
    orchestrator.verify_and_store.return_value = outcome
    return orchestrator


class TestVerifyEndpoint:
    """POST /api/verify"""

    async def test_verified_business(self, api_client) -> None:
        business_id = uuid4()
        orchestrator = _orchestrator(
            VerificationOutcome(success=True, business_id=business_id, trust_score=72, source="brreg")
        )
        client = api_client(orchestrator=orchestrator)

        response = await client.post("/api/verify", json={
            "orgNumber": " 912676951 ",
            "countryCode": "no",
            "websiteUrl": "https://acme.no",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["verified"] is True
        assert data["business_id"] == str(business_id)
        assert data["trust_score"] == 72
        assert data["trust_level"] == "good"
        assert data["label_key"] == "trusted"

        args = orchestrator.verify_and_store.await_args.args
        assert args[0] == "912676951"
        assert args[1] == "NO"
        assert args[2].website_url == "https://acme.no"

    @pytest.mark.parametrize(
        "body",
        [{}, {"orgNumber": "912676951"}, {"countryCode": "NO"}, {"orgNumber": "  ", "countryCode": "NO"}],
    )
    async def test_missing_fields(self, api_client, body) -> None:
        orchestrator = _orchestrator(VerificationOutcome(success=True))
        client = api_client(orchestrator=orchestrator)

        response = await client.post("/api/verify", json=body)

        assert response.status_code == 400
        assert response.json()["detail"] == "orgNumber and countryCode are required"
        orchestrator.verify_and_store.assert_not_awaited()

    async def test_not_found(self, api_client) -> None:
        client = api_client(orchestrator=_orchestrator(VerificationOutcome(
            success=False, error="Business not found in registry", error_code="not_found",
        )))

        response = await client.post("/api/verify", json={"orgNumber": "999999999", "countryCode": "NO"})

        assert response.status_code == 404
        assert response.json()["detail"] == "Business not found in registry"

    async def test_store_failure(self, api_client) -> None:
        client = api_client(orchestrator=_orchestrator(VerificationOutcome(
            success=False, trust_score=35, error="Failed to store verification", error_code="store_error",
        )))

        response = await client.post("/api/verify", json={"orgNumber": "912676951", "countryCode": "NO"})

        assert response.status_code == 503


class TestQuickVerifyEndpoint:
    """GET /api/verify"""

    async def test_quick_verify(self, api_client) -> None:
        verifier = AsyncMock()
        verifier.quick_verify.return_value = {
            "verified": True,
            "status": "Active",
            "source": "brreg",
            "legal_name": "ACME RØR AS",
        }
        client = api_client(verifier=verifier)

        response = await client.get("/api/verify", params={"orgNumber": "912676951", "countryCode": "no"})

        assert response.status_code == 200
        assert response.json() == {
            "verified": True,
            "status": "Active",
            "source": "brreg",
            "legal_name": "ACME RØR AS",
        }
        verifier.quick_verify.assert_awaited_once_with("NO", "912676951")

    async def test_missing_params(self, api_client) -> None:
        client = api_client(verifier=AsyncMock())

        response = await client.get("/api/verify", params={"orgNumber": "912676951"})

        assert response.status_code == 400


class TestBusinessEndpoint:
    """GET /api/businesses/{country_code}/{org_number}"""

    async def test_stored_business(self, api_client, store) -> None:
        await store.upsert(BusinessRecord(
            org_number="912676951",
            country_code="NO",
            legal_name="ACME RØR AS",
            domain="acme.no",
            website_status=WebsiteStatus.ACTIVE,
            trust_score=83,
        ))
        client = api_client(store=store)

        response = await client.get("/api/businesses/no/912676951")

        assert response.status_code == 200
        data = response.json()
        assert data["legal_name"] == "ACME RØR AS"
        assert data["website_status"] == "active"
        assert data["trust_level"] == "excellent"
        assert data["label_key"] == "highlyTrusted"

    async def test_unknown_business(self, api_client, store) -> None:
        client = api_client(store=store)

        response = await client.get("/api/businesses/NO/999999999")

        assert response.status_code == 404

    async def test_store_unavailable(self, api_client) -> None:
        broken = AsyncMock()
        broken.get.side_effect = StoreError("database is locked")
        client = api_client(store=broken)

        response = await client.get("/api/businesses/NO/912676951")

        assert response.status_code == 503

    async def test_pipeline_not_ready(self, api_client) -> None:
        client = api_client()

        response = await client.get("/api/businesses/NO/912676951")

        assert response.status_code == 503
