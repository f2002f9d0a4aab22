"""
Command line entry point.

    trustcrawler worker --worker-id 0 --total-workers 4
    trustcrawler import
    trustcrawler crawl https://example.no --max-pages 10
    trustcrawler verify 912676951 NO --website https://example.no
    trustcrawler api
"""

import argparse
import asyncio
import json
import signal
import sys

import httpx
import structlog

from trustcrawler.core.config import Settings, get_settings
from trustcrawler.core.logging import configure_logging
from trustcrawler.db import close_db, init_db
from trustcrawler.orchestrator import VerificationHints
from trustcrawler.pipeline import build_crawler, build_pipeline
from trustcrawler.scheduler import ImportBot, JsonFileStateStore, ScrapeWorker
from trustcrawler.services.extraction import data_extractor
from trustcrawler.services.registry import BrregLookup

logger = structlog.get_logger()


def _stop_event() -> asyncio.Event:
    """Event set on SIGINT/SIGTERM so loops finish their current cycle."""
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops
            pass
    return stop


async def run_worker(settings: Settings, worker_id: int, total_workers: int) -> int:
    await init_db()
    try:
        async with build_pipeline(settings) as pipeline:
            worker = ScrapeWorker(
                pipeline.store,
                pipeline.enricher,
                pipeline.verifier,
                pipeline.engine,
                settings=settings,
                worker_id=worker_id,
                total_workers=total_workers,
            )
            await worker.run_forever(_stop_event())
    finally:
        await close_db()
    return 0


async def run_import(settings: Settings, once: bool) -> int:
    await init_db()
    try:
        async with build_pipeline(settings) as pipeline:
            bot = ImportBot(
                pipeline.store,
                BrregLookup(pipeline.client, timeout=settings.registry_timeout),
                JsonFileStateStore(settings.state_file),
                settings=settings,
            )
            if once:
                created = await bot.run_cycle()
                return 0 if created is not None else 1
            await bot.run_forever(_stop_event())
    finally:
        await close_db()
    return 0


async def run_crawl(settings: Settings, url: str, max_pages: int, country_code: str | None) -> int:
    async with httpx.AsyncClient() as client:
        crawl = await build_crawler(client, settings).crawl(url, max_pages=max_pages)
    if crawl.is_empty:
        logger.error("Crawl returned no pages", url=url, failed_urls=crawl.failed_urls)
        return 1

    enriched = data_extractor.extract(crawl, country_code=country_code)
    print(json.dumps({
        "base_url": crawl.base_url,
        "pages": [page.url for page in crawl.pages],
        "failed_urls": crawl.failed_urls,
        "duration_ms": crawl.stats.duration_ms,
        "description": enriched.description,
        "organization_name": enriched.organization_name,
        "contact_info": enriched.contact_info.model_dump(),
        "social_media": enriched.social_media,
        "sitelinks": [s.model_dump(mode="json") for s in enriched.sitelinks],
        "logo_url": enriched.logo_url,
        "languages": enriched.languages,
        "technologies": enriched.technologies,
        "business_hours": enriched.business_hours,
        "has_ssl": enriched.has_ssl,
    }, indent=2, ensure_ascii=False))
    return 0


async def run_verify(settings: Settings, org_number: str, country_code: str, website: str | None) -> int:
    await init_db()
    try:
        async with build_pipeline(settings) as pipeline:
            outcome = await pipeline.orchestrator.verify_and_store(
                org_number,
                country_code,
                VerificationHints(website_url=website),
            )
    finally:
        await close_db()

    print(json.dumps({
        "success": outcome.success,
        "business_id": str(outcome.business_id) if outcome.business_id else None,
        "trust_score": outcome.trust_score,
        "source": outcome.source,
        "error": outcome.error,
    }, indent=2))
    return 0 if outcome.success else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trustcrawler",
        description="Business verification crawler and trust scoring",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument("--console-logs", action="store_true", help="Human-readable logs instead of JSON")
    sub = parser.add_subparsers(dest="command", required=True)

    worker = sub.add_parser("worker", help="Run the continuous scrape worker")
    worker.add_argument("--worker-id", type=int, default=None, help="Shard owned by this process")
    worker.add_argument("--total-workers", type=int, default=None, help="Number of worker processes")

    importer = sub.add_parser("import", help="Run the registry import bot")
    importer.add_argument("--once", action="store_true", help="Import a single batch and exit")

    crawl = sub.add_parser("crawl", help="Crawl one site and print the extracted data")
    crawl.add_argument("url")
    crawl.add_argument("--max-pages", type=int, default=None)
    crawl.add_argument("--country", default=None, help="Country code for tax id matching")

    verify = sub.add_parser("verify", help="Verify one business and store the result")
    verify.add_argument("org_number")
    verify.add_argument("country_code")
    verify.add_argument("--website", default=None, help="Website to crawl as part of verification")

    api = sub.add_parser("api", help="Serve the HTTP API")
    api.add_argument("--host", default=None)
    api.add_argument("--port", type=int, default=None)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(
        json_logs=settings.json_logs and not args.console_logs,
        log_level=args.log_level or settings.log_level,
    )

    if args.command == "worker":
        worker_id = settings.worker_id if args.worker_id is None else args.worker_id
        total = settings.total_workers if args.total_workers is None else args.total_workers
        return asyncio.run(run_worker(settings, worker_id, total))
    if args.command == "import":
        return asyncio.run(run_import(settings, args.once))
    if args.command == "crawl":
        max_pages = args.max_pages or settings.crawler_max_pages
        return asyncio.run(run_crawl(settings, args.url, max_pages, args.country))
    if args.command == "verify":
        return asyncio.run(run_verify(settings, args.org_number, args.country_code, args.website))
    if args.command == "api":
        import uvicorn

        uvicorn.run(
            "trustcrawler.api.main:app",
            host=args.host or settings.host,
            port=args.port or settings.port,
        )
        return 0
    return 2


if __name__ == "__main__":
    sys.exit(main())
