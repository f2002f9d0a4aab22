"""
Continuous scrape worker.

Each cycle:
1. Fetch the newest eligible candidates (domain set, not terminal, fewer than
   max attempts, not scraped in the freshness window)
2. Keep the ones this worker's shard owns, up to shard_take
3. For each: registry check, site analysis, scoring, one transactional write
4. Emit one wide event summarizing the cycle

A crawl failure increments scrape_count. The record moves to needs_rescue,
or rescue_failed once the count reaches max_attempts, which removes it from
eligibility. Successful scrapes reset the count.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta

import structlog

from trustcrawler.core.config import Settings, settings as default_settings
from trustcrawler.core.exceptions import StoreError
from trustcrawler.core.logging import (
    emit_cycle_event,
    enrich_event,
    finalize_cycle_event,
    increment_event,
    init_cycle_event,
)
from trustcrawler.core.models import BusinessRecord, WebsiteStatus
from trustcrawler.db.store import RecordFilter, RecordStore
from trustcrawler.jobs.enrich_business import (
    BusinessEnricher,
    merge_into_record,
    score_analysis,
    verification_log_entries,
)
from trustcrawler.scheduler.sharding import owns
from trustcrawler.services.registry.verifier import RegistryVerifier
from trustcrawler.services.trust_engine import TrustEngine

logger = structlog.get_logger()

BOT_NAME = "scrape_worker"

SUCCEEDED = "succeeded"
FAILED = "failed"
SKIPPED = "skipped"


class ScrapeWorker:
    """One shard of the continuous scrape scheduler."""

    def __init__(
        self,
        store: RecordStore,
        enricher: BusinessEnricher,
        verifier: RegistryVerifier,
        engine: TrustEngine | None = None,
        settings: Settings | None = None,
        worker_id: int | None = None,
        total_workers: int | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] | None = None,
    ):
        settings = settings or default_settings
        self.store = store
        self.enricher = enricher
        self.verifier = verifier
        self.engine = engine or TrustEngine()
        self.worker_id = settings.worker_id if worker_id is None else worker_id
        self.total_workers = settings.total_workers if total_workers is None else total_workers
        if not 0 <= self.worker_id < self.total_workers:
            raise ValueError(f"worker_id {self.worker_id} outside 0..{self.total_workers - 1}")

        self.candidate_limit = settings.scheduler_candidate_limit
        self.shard_take = settings.scheduler_shard_take
        self.max_attempts = settings.scheduler_max_attempts
        self.freshness = timedelta(hours=settings.scheduler_freshness_hours)
        self.rescrape_interval = timedelta(days=settings.scheduler_rescrape_days)
        self.empty_sleep = settings.scheduler_empty_sleep
        self.idle_sleep = settings.scheduler_idle_sleep
        self.item_delay = settings.scheduler_item_delay
        self.error_sleep = settings.scheduler_error_sleep

        self._sleep = sleep
        self._clock = clock or (lambda: datetime.now(UTC))
        self.log = logger.bind(
            component="ScrapeWorker",
            worker_id=self.worker_id,
            total_workers=self.total_workers,
        )

    # =========================================================================
    # Loop
    # =========================================================================

    async def run_forever(self, stop: asyncio.Event | None = None) -> None:
        self.log.info("Scrape worker started")
        while stop is None or not stop.is_set():
            delay = await self.run_cycle()
            await self._sleep(delay)
        self.log.info("Scrape worker stopped")

    async def run_cycle(self) -> float:
        """Process one batch; returns how long to sleep before the next."""
        init_cycle_event(BOT_NAME, worker_id=self.worker_id, total_workers=self.total_workers)
        error: Exception | None = None
        delay = self.idle_sleep

        try:
            now = self._clock()
            candidates = await self.store.find(
                RecordFilter.eligible_for_scrape(
                    now,
                    max_attempts=self.max_attempts,
                    freshness=self.freshness,
                    limit=self.candidate_limit,
                )
            )
            enrich_event(candidates=len(candidates))

            if not candidates:
                enrich_event(idle_reason="nothing_eligible")
                delay = self.empty_sleep
            else:
                mine = [
                    c for c in candidates
                    if c.id is not None and owns(str(c.id), self.worker_id, self.total_workers)
                ][: self.shard_take]
                enrich_event(shard_items=len(mine))

                if not mine:
                    enrich_event(idle_reason="nothing_for_shard")
                for index, record in enumerate(mine):
                    if index:
                        await self._sleep(self.item_delay)
                    outcome = await self.process(record)
                    increment_event("processed")
                    increment_event(outcome)
        except Exception as e:
            self.log.error("Scrape cycle failed", error=str(e), error_type=type(e).__name__)
            error = e
            delay = self.error_sleep
        finally:
            enrich_event(next_sleep_s=delay)
            emit_cycle_event(finalize_cycle_event(error))

        return delay

    # =========================================================================
    # Per-entity
    # =========================================================================

    async def process(self, record: BusinessRecord) -> str:
        """Scrape and score one record. Never raises."""
        log = self.log.bind(
            business_id=str(record.id),
            org_number=record.org_number,
            country=record.country_code,
            domain=record.domain,
        )

        try:
            if record.scrape_count >= self.max_attempts:
                await self.store.update_fields(record.id, {"website_status": WebsiteStatus.DEAD})
                log.info("Record exceeded scrape attempts, marked dead", scrape_count=record.scrape_count)
                return SKIPPED

            registry_data = await self.verifier.verify(record.country_code, record.org_number)
            # Keep scoring on the last known snapshot if the registry is unreachable right now
            effective_registry = registry_data or record.registry_data

            analysis = await self.enricher.analyze(
                record.domain,
                country_code=record.country_code,
                company_name=(effective_registry.legal_name if effective_registry else None) or record.legal_name,
                registry_status=effective_registry.company_status.value if effective_registry else None,
            )

            trust = score_analysis(self.engine, effective_registry, analysis, record.news_signals)
            now = self._clock()
            updated = merge_into_record(record, registry_data, analysis, trust, now)
            updated = self._apply_crawl_state(updated, analysis.crawl_ok, now)

            await self.store.save_verification(
                updated,
                verification_log_entries(registry_data, analysis, trust),
            )
        except StoreError as e:
            log.error("Failed to persist scrape result", error=e.message)
            enrich_event(last_error=e.message)
            return FAILED
        except Exception as e:
            log.error("Scrape failed", error=str(e), error_type=type(e).__name__)
            enrich_event(last_error=str(e)[:200])
            await self._record_failure(record, log)
            return FAILED

        log.info(
            "Record scraped",
            website_status=updated.website_status.value,
            scrape_count=updated.scrape_count,
            trust_score=trust.score,
        )
        return SUCCEEDED if analysis.crawl_ok else FAILED

    def _apply_crawl_state(self, record: BusinessRecord, crawl_ok: bool, now: datetime) -> BusinessRecord:
        if crawl_ok:
            return record.model_copy(update={
                "website_status": WebsiteStatus.ACTIVE,
                "scrape_count": 0,
                "last_scraped_at": now,
                "next_scrape_at": now + self.rescrape_interval,
            })

        attempts = record.scrape_count + 1
        exhausted = attempts >= self.max_attempts
        return record.model_copy(update={
            "website_status": WebsiteStatus.RESCUE_FAILED if exhausted else WebsiteStatus.NEEDS_RESCUE,
            "scrape_count": attempts,
            "last_scraped_at": now,
            "next_scrape_at": None if exhausted else now + self.freshness,
        })

    async def _record_failure(self, record: BusinessRecord, log) -> None:
        """Count an unexpected error as a failed attempt so the record cannot loop forever."""
        failed = self._apply_crawl_state(record, crawl_ok=False, now=self._clock())
        try:
            await self.store.update_fields(record.id, {
                "website_status": failed.website_status,
                "scrape_count": failed.scrape_count,
                "last_scraped_at": failed.last_scraped_at,
                "next_scrape_at": failed.next_scrape_at,
            })
        except StoreError as e:
            log.error("Failed to record scrape failure", error=e.message)
