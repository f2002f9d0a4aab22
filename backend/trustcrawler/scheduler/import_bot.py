"""
Registry import bot.

Walks the Brønnøysund entity search (VAT-registered entities only) page by
page and creates an `unset` BusinessRecord for every entity not yet known,
with the domain taken from the registry's `hjemmeside` field.

The cursor {"offset": n} lives in a StateStore under the bot's name. It is
read at the start of each batch and saved after every successful batch, so a
restarted bot resumes where it stopped. A failed batch saves nothing and is
retried from the same offset.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

import structlog

from trustcrawler.core.config import Settings, settings as default_settings
from trustcrawler.core.logging import (
    emit_cycle_event,
    enrich_event,
    finalize_cycle_event,
    increment_event,
    init_cycle_event,
)
from trustcrawler.core.models import BusinessRecord, WebsiteStatus
from trustcrawler.db.store import RecordStore
from trustcrawler.scheduler.state_store import StateStore
from trustcrawler.services.registry.brreg import BrregLookup
from trustcrawler.services.url_utils import ensure_scheme, host_of

logger = structlog.get_logger()

BOT_NAME = "brreg_import"


def domain_from_homepage(homepage: Any) -> str | None:
    """'www.Example.no/' -> 'example.no'."""
    if not isinstance(homepage, str) or not homepage.strip():
        return None
    return host_of(ensure_scheme(homepage))


class ImportBot:
    """Creates records for VAT-registered Norwegian entities."""

    def __init__(
        self,
        store: RecordStore,
        registry: BrregLookup,
        state_store: StateStore,
        settings: Settings | None = None,
        bot_name: str = BOT_NAME,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        settings = settings or default_settings
        self.store = store
        self.registry = registry
        self.state_store = state_store
        self.bot_name = bot_name
        self.batch_size = settings.import_batch_size
        self.page_size = settings.import_page_size
        self.cycle_sleep = settings.import_cycle_sleep
        self._sleep = sleep
        self.log = logger.bind(component="ImportBot", bot=bot_name)

    async def run_forever(self, stop: asyncio.Event | None = None) -> None:
        self.log.info("Import bot started", cursor=self.state_store.load(self.bot_name))
        while stop is None or not stop.is_set():
            await self.run_cycle()
            await self._sleep(self.cycle_sleep)
        self.log.info("Import bot stopped")

    async def run_cycle(self) -> int | None:
        """One batch wrapped in a wide event."""
        init_cycle_event(self.bot_name)
        error: Exception | None = None
        created = None
        try:
            created = await self.run_batch()
        except Exception as e:
            self.log.error("Import cycle failed", error=str(e), error_type=type(e).__name__)
            error = e
        finally:
            emit_cycle_event(finalize_cycle_event(error))
        return created

    async def run_batch(self) -> int | None:
        """Import the next batch. Returns records created, or None if the registry was unreachable."""
        state = self.state_store.load(self.bot_name)
        offset = int(state.get("offset", 0))
        page, start = divmod(offset, self.page_size)
        enrich_event(**{"cursor.offset": offset, "cursor.page": page})

        entities = await self.registry.search_entities(
            page=page,
            size=self.page_size,
            registrertIMvaregisteret=True,
        )
        if entities is None:
            self.log.warning("Registry search failed, cursor not advanced", offset=offset)
            enrich_event(idle_reason="registry_unavailable")
            return None

        batch = entities[start:start + self.batch_size]
        if not batch:
            # Past the last page: start the next pass from the beginning
            self.log.info("Import pass complete", offset=offset)
            self.state_store.save(self.bot_name, {
                "offset": 0,
                "passes": int(state.get("passes", 0)) + 1,
                "updated_at": datetime.now(UTC).isoformat(),
            })
            enrich_event(idle_reason="pass_complete")
            return 0

        created = 0
        for entity in batch:
            increment_event("processed")
            if await self.import_entity(entity):
                created += 1
                increment_event("succeeded")
            else:
                increment_event("skipped")

        self.state_store.save(self.bot_name, {
            **state,
            "offset": offset + len(batch),
            "updated_at": datetime.now(UTC).isoformat(),
        })
        self.log.info("Import batch stored", offset=offset, batch=len(batch), created=created)
        return created

    async def import_entity(self, entity: dict[str, Any]) -> bool:
        """Create a record for one search hit; False if skipped."""
        org_number = str(entity.get("organisasjonsnummer") or "").strip()
        if not org_number:
            return False

        if await self.store.get(org_number, "NO") is not None:
            return False

        registry_data = self.registry.parse_entity(entity)
        record = BusinessRecord(
            org_number=org_number,
            country_code="NO",
            legal_name=entity.get("navn"),
            domain=domain_from_homepage(entity.get("hjemmeside")),
            website_status=WebsiteStatus.UNSET,
            registry_data=registry_data,
        )
        await self.store.upsert(record)
        return True
