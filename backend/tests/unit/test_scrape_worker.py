"""
Unit tests for the continuous scrape worker.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from trustcrawler.core.models import (
    BusinessRecord,
    CompanyStatus,
    RegistryData,
    VerificationStatus,
    WebsiteStatus,
)
from trustcrawler.db.store import RecordFilter
from trustcrawler.jobs.enrich_business import SiteAnalysis
from trustcrawler.scheduler.scrape_worker import FAILED, SKIPPED, SUCCEEDED, ScrapeWorker
from trustcrawler.services.extraction.extractor import EnrichedData
from trustcrawler.services.trust_engine import TrustEngine

T0 = datetime(2026, 3, 1, 8, 0, tzinfo=UTC)


class Clock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


def _registry() -> RegistryData:
    return RegistryData(
        org_nr="912676951",
        legal_name="ACME RØR AS",
        company_status=CompanyStatus.ACTIVE,
        source="brreg",
        last_verified_registry=T0,
    )


def _verifier(result: RegistryData | None = None) -> MagicMock:
    verifier = MagicMock()
    verifier.verify = AsyncMock(return_value=result)
    return verifier


def _enricher(analysis: SiteAnalysis | None = None, error: Exception | None = None) -> MagicMock:
    enricher = MagicMock()
    enricher.analyze = AsyncMock(return_value=analysis, side_effect=error)
    return enricher


def _ok_analysis() -> SiteAnalysis:
    return SiteAnalysis(
        crawl_ok=True,
        enriched=EnrichedData(base_url="https://acme.no", has_ssl=True, indexed_pages_count=3),
    )


def _worker(store, settings, enricher, verifier, clock, **kwargs) -> ScrapeWorker:
    return ScrapeWorker(
        store,
        enricher,
        verifier,
        engine=TrustEngine(now=T0),
        settings=settings,
        worker_id=kwargs.pop("worker_id", 0),
        total_workers=kwargs.pop("total_workers", 1),
        sleep=AsyncMock(),
        clock=clock,
        **kwargs,
    )


@pytest.mark.asyncio
class TestRunCycle:
    """Test whole scheduler cycles against a real store."""

    async def test_empty_store_sleeps_long(self, store, settings) -> None:
        worker = _worker(store, settings, _enricher(), _verifier(), Clock())

        assert await worker.run_cycle() == settings.scheduler_empty_sleep

    async def test_dead_site_is_retired_after_four_attempts(self, store, settings) -> None:
        clock = Clock()
        enricher = _enricher(SiteAnalysis.failed(["https://nede.no/"]))
        worker = _worker(store, settings, enricher, _verifier(_registry()), clock)
        business_id = await store.upsert(BusinessRecord(org_number="912676951", country_code="NO", domain="nede.no"))

        for attempt in range(1, 5):
            assert await worker.run_cycle() == settings.scheduler_idle_sleep
            record = await store.get_by_id(business_id)
            assert record.scrape_count == attempt
            assert record.last_scraped_at == clock.now
            clock.advance(timedelta(hours=25))

        record = await store.get_by_id(business_id)
        assert record.website_status == WebsiteStatus.RESCUE_FAILED
        assert record.next_scrape_at is None
        assert enricher.analyze.await_count == 4
        assert await store.find(RecordFilter.eligible_for_scrape(clock.now)) == []
        assert await worker.run_cycle() == settings.scheduler_empty_sleep

    async def test_record_waits_out_freshness_window(self, store, settings) -> None:
        clock = Clock()
        enricher = _enricher(SiteAnalysis.failed())
        worker = _worker(store, settings, enricher, _verifier(), clock)
        await store.upsert(BusinessRecord(org_number="912676951", country_code="NO", domain="nede.no"))

        await worker.run_cycle()
        clock.advance(timedelta(hours=2))

        assert await worker.run_cycle() == settings.scheduler_empty_sleep
        assert enricher.analyze.await_count == 1

    async def test_other_shards_are_left_alone(self, store, settings) -> None:
        ids = [
            await store.upsert(BusinessRecord(org_number=f"90000000{i}", country_code="NO", domain=f"firma{i}.no"))
            for i in range(6)
        ]
        enrichers = [_enricher(_ok_analysis()), _enricher(_ok_analysis())]
        workers = [
            _worker(store, settings, enrichers[w], _verifier(_registry()), Clock(), worker_id=w, total_workers=2)
            for w in range(2)
        ]

        for worker in workers:
            await worker.run_cycle()

        assert sum(e.analyze.await_count for e in enrichers) == len(ids)

    async def test_store_failure_uses_error_sleep(self, settings) -> None:
        broken = MagicMock()
        broken.find = AsyncMock(side_effect=RuntimeError("database gone"))
        worker = _worker(broken, settings, _enricher(), _verifier(), Clock())

        assert await worker.run_cycle() == settings.scheduler_error_sleep


@pytest.mark.asyncio
class TestProcess:
    """Test per-record processing."""

    async def _stored(self, store, **fields) -> BusinessRecord:
        business_id = await store.upsert(
            BusinessRecord(org_number="912676951", country_code="NO", domain="acme.no", **fields)
        )
        return await store.get_by_id(business_id)

    async def test_success_resets_crawl_state(self, store, settings) -> None:
        clock = Clock()
        record = await self._stored(store, website_status=WebsiteStatus.NEEDS_RESCUE, scrape_count=2)
        worker = _worker(store, settings, _enricher(_ok_analysis()), _verifier(_registry()), clock)

        assert await worker.process(record) == SUCCEEDED

        updated = await store.get_by_id(record.id)
        assert updated.website_status == WebsiteStatus.ACTIVE
        assert updated.scrape_count == 0
        assert updated.next_scrape_at == T0 + timedelta(days=7)
        assert updated.verification_status == VerificationStatus.VERIFIED
        assert updated.trust_score == 40
        assert updated.trust_score_breakdown.total == updated.trust_score
        assert len(await store.list_verification_logs(record.id)) == 2

    async def test_failed_crawl_keeps_earlier_content(self, store, settings) -> None:
        record = await self._stored(store, logo_url="https://acme.no/logo.svg", company_description="Rørlegger")
        worker = _worker(store, settings, _enricher(SiteAnalysis.failed()), _verifier(_registry()), Clock())

        assert await worker.process(record) == FAILED

        updated = await store.get_by_id(record.id)
        assert updated.website_status == WebsiteStatus.NEEDS_RESCUE
        assert updated.next_scrape_at == T0 + timedelta(hours=24)
        assert updated.logo_url == "https://acme.no/logo.svg"
        assert updated.company_description == "Rørlegger"

    async def test_exhausted_record_is_marked_dead(self, store, settings) -> None:
        record = await self._stored(store, scrape_count=4)
        enricher = _enricher(_ok_analysis())
        worker = _worker(store, settings, enricher, _verifier(_registry()), Clock())

        assert await worker.process(record) == SKIPPED

        assert (await store.get_by_id(record.id)).website_status == WebsiteStatus.DEAD
        enricher.analyze.assert_not_awaited()

    async def test_unexpected_error_counts_as_attempt(self, store, settings) -> None:
        record = await self._stored(store)
        worker = _worker(store, settings, _enricher(error=RuntimeError("parser crashed")), _verifier(_registry()), Clock())

        assert await worker.process(record) == FAILED

        updated = await store.get_by_id(record.id)
        assert updated.scrape_count == 1
        assert updated.website_status == WebsiteStatus.NEEDS_RESCUE

    async def test_registry_outage_scores_last_snapshot(self, store, settings) -> None:
        record = await self._stored(store, registry_data=_registry())
        worker = _worker(store, settings, _enricher(_ok_analysis()), _verifier(None), Clock())

        await worker.process(record)

        updated = await store.get_by_id(record.id)
        assert updated.trust_score_breakdown.registry.score == 35
        assert updated.registry_data.source == "brreg"


class TestConfiguration:
    """Test worker identity validation."""

    @pytest.mark.parametrize("worker_id,total", [(2, 2), (-1, 1)])
    def test_worker_id_must_be_in_range(self, settings, worker_id, total):
        with pytest.raises(ValueError):
            ScrapeWorker(MagicMock(), MagicMock(), MagicMock(), settings=settings, worker_id=worker_id, total_workers=total)
