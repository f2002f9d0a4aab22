"""
Unit tests for the Brønnøysund import bot.
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from trustcrawler.core.models import BusinessRecord, WebsiteStatus
from trustcrawler.scheduler.import_bot import ImportBot, domain_from_homepage
from trustcrawler.scheduler.state_store import InMemoryStateStore
from trustcrawler.services.registry.brreg import BrregLookup


def _entity(org_number: str, homepage: str | None = None) -> dict:
    entity = {
        "organisasjonsnummer": org_number,
        "navn": f"FIRMA {org_number} AS",
        "registrertIMvaregisteret": True,
    }
    if homepage:
        entity["hjemmeside"] = homepage
    return entity


# One page of three entities, then past the end
PAGES = {
    0: [_entity("900000001", "www.firma1.no"), _entity("900000002"), _entity("900000003", "firma3.no/")],
    1: [],
}


def _search(pages: dict[int, list[dict] | None]):
    async def search_entities(page: int, size: int, **filters):
        return pages.get(page, [])

    return search_entities


@pytest.mark.asyncio
class TestImportBot:
    """Test cursor handling and record creation."""

    @pytest.fixture
    def brreg(self, mock_client):
        return BrregLookup(mock_client(lambda request: httpx.Response(400, json={})))

    async def test_walks_pages_and_saves_cursor(self, store, settings, brreg) -> None:
        state = InMemoryStateStore()
        bot = ImportBot(store, brreg, state, settings=settings)

        with patch.object(brreg, "search_entities", side_effect=_search(PAGES)) as search:
            assert await bot.run_batch() == 2
            assert state.load("brreg_import")["offset"] == 2

            assert await bot.run_batch() == 1
            assert state.load("brreg_import")["offset"] == 3

            assert await bot.run_batch() == 0
            cursor = state.load("brreg_import")
            assert cursor["offset"] == 0
            assert cursor["passes"] == 1

        assert [c.kwargs["page"] for c in search.call_args_list] == [0, 0, 1]
        assert all(c.kwargs["registrertIMvaregisteret"] is True for c in search.call_args_list)
        assert await store.count() == 3

    async def test_records_are_unset_with_domain(self, store, settings, brreg) -> None:
        bot = ImportBot(store, brreg, InMemoryStateStore(), settings=settings)

        with patch.object(brreg, "search_entities", side_effect=_search(PAGES)):
            await bot.run_batch()

        first = await store.get("900000001", "NO")
        assert first.website_status == WebsiteStatus.UNSET
        assert first.domain == "firma1.no"
        assert first.legal_name == "FIRMA 900000001 AS"
        assert first.registry_data.org_nr == "900000001"
        assert (await store.get("900000002", "NO")).domain is None

    async def test_resumes_from_saved_offset(self, store, settings, brreg) -> None:
        state = InMemoryStateStore({"brreg_import": {"offset": 2, "passes": 4}})
        bot = ImportBot(store, brreg, state, settings=settings)

        with patch.object(brreg, "search_entities", side_effect=_search(PAGES)):
            assert await bot.run_batch() == 1

        assert await store.get("900000003", "NO") is not None
        assert await store.get("900000001", "NO") is None
        assert state.load("brreg_import")["passes"] == 4

    async def test_existing_records_are_skipped(self, store, settings, brreg) -> None:
        await store.upsert(BusinessRecord(
            org_number="900000001",
            country_code="NO",
            domain="kjent.no",
            website_status=WebsiteStatus.ACTIVE,
        ))
        bot = ImportBot(store, brreg, InMemoryStateStore(), settings=settings)

        with patch.object(brreg, "search_entities", side_effect=_search(PAGES)):
            assert await bot.run_batch() == 1

        existing = await store.get("900000001", "NO")
        assert existing.domain == "kjent.no"
        assert existing.website_status == WebsiteStatus.ACTIVE

    async def test_registry_outage_keeps_cursor(self, store, settings, brreg) -> None:
        state = InMemoryStateStore({"brreg_import": {"offset": 2}})
        bot = ImportBot(store, brreg, state, settings=settings)

        with patch.object(brreg, "search_entities", new_callable=AsyncMock, return_value=None):
            assert await bot.run_batch() is None

        assert state.load("brreg_import") == {"offset": 2}
        assert await store.count() == 0

    async def test_real_search_failure_keeps_cursor(self, store, settings, brreg) -> None:
        state = InMemoryStateStore()
        bot = ImportBot(store, brreg, state, settings=settings)

        assert await bot.run_cycle() is None

        assert state.load("brreg_import") == {}

    async def test_entities_without_number_are_skipped(self, store, settings, brreg) -> None:
        bot = ImportBot(store, brreg, InMemoryStateStore(), settings=settings)

        assert await bot.import_entity({"navn": "UTEN NUMMER AS"}) is False
        assert await store.count() == 0


class TestDomainFromHomepage:
    """Test domain normalization from registry homepages."""

    @pytest.mark.parametrize(
        "homepage,expected",
        [
            ("www.Example.no/", "example.no"),
            ("https://www.acme.no/om-oss", "acme.no"),
            ("http://butikk.acme.no", "butikk.acme.no"),
            ("", None),
            ("   ", None),
            (None, None),
        ],
    )
    def test_domains(self, homepage, expected):
        assert domain_from_homepage(homepage) == expected
