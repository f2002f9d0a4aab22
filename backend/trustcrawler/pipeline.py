"""
Wiring of the verification pipeline.

Used by the API lifespan and the CLI so both build the same objects from
Settings: one shared httpx client, the record store, the registry verifier,
the website enricher and the orchestrator.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from trustcrawler.core.config import Settings, get_settings
from trustcrawler.db.store import RecordStore, SqlAlchemyRecordStore
from trustcrawler.jobs.enrich_business import BusinessEnricher
from trustcrawler.orchestrator import VerificationOrchestrator
from trustcrawler.services.ai import TextIntelligenceAdapter, create_provider
from trustcrawler.services.crawler import DeepCrawler
from trustcrawler.services.fetcher import Fetcher
from trustcrawler.services.registry import RegistryVerifier, build_default_verifier
from trustcrawler.services.trust_engine import TrustEngine


@dataclass
class Pipeline:
    client: httpx.AsyncClient
    store: RecordStore
    verifier: RegistryVerifier
    crawler: DeepCrawler
    enricher: BusinessEnricher
    engine: TrustEngine
    orchestrator: VerificationOrchestrator


def build_crawler(client: httpx.AsyncClient, settings: Settings) -> DeepCrawler:
    fetcher = Fetcher(
        client,
        timeouts=tuple(settings.crawler_timeouts),
        backoff_base=settings.crawler_backoff_base,
    )
    return DeepCrawler(
        client,
        fetcher=fetcher,
        concurrency=settings.crawler_concurrency,
        delay_range=(settings.crawler_min_delay, settings.crawler_max_delay),
        sitemap_limit=settings.crawler_sitemap_limit,
    )


@asynccontextmanager
async def build_pipeline(
    settings: Settings | None = None,
    store: RecordStore | None = None,
) -> AsyncGenerator[Pipeline, None]:
    """Build every pipeline component; closes the HTTP client on exit."""
    settings = settings or get_settings()

    async with httpx.AsyncClient() as client:
        crawler = build_crawler(client, settings)
        adapter = TextIntelligenceAdapter(
            create_provider(settings),
            max_content_chars=settings.ai_max_content_chars,
        )
        enricher = BusinessEnricher(crawler, adapter, max_pages=settings.crawler_max_pages)
        verifier = build_default_verifier(client, settings)
        engine = TrustEngine()
        store = store or SqlAlchemyRecordStore()

        yield Pipeline(
            client=client,
            store=store,
            verifier=verifier,
            crawler=crawler,
            enricher=enricher,
            engine=engine,
            orchestrator=VerificationOrchestrator(store, verifier, enricher, engine, settings=settings),
        )
