"""
Pytest configuration and fixtures for Trust Crawler tests.
"""

from collections.abc import AsyncGenerator, Callable

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from trustcrawler.core.config import Settings
from trustcrawler.db.database import init_db
from trustcrawler.db.store import SqlAlchemyRecordStore
from trustcrawler.services.crawler import DeepCrawler
from trustcrawler.services.fetcher import Fetcher

BRREG_ENTITY_URL = "https://data.brreg.no/enhetsregisteret/api/enheter/"

ACME_ENTITY = {
    "organisasjonsnummer": "912676951",
    "navn": "ACME RØR AS",
    "registreringsdatoEnhetsregisteret": "2013-10-01",
    "registrertIMvaregisteret": True,
    "naeringskode1": {"kode": "43.221", "beskrivelse": "Rørleggerarbeid"},
    "antallAnsatte": 12,
    "hjemmeside": "www.acme.no",
    "forretningsadresse": {
        "adresse": ["Storgata 1"],
        "postnummer": "0155",
        "poststed": "OSLO",
    },
}

HOME_HTML = """
<html lang="nb-NO">
<head>
    <title>Acme Rør AS | Rørlegger i Oslo</title>
    <meta name="description" content="Acme Rør AS leverer rørleggertjenester til bedrifter og privatkunder i Oslo.">
    <link rel="icon" href="/favicon.ico">
</head>
<body>
    <header><img src="/img/acme-logo.svg" alt="Acme Rør"></header>
    <h1>Rørlegger i Oslo</h1>
    <nav>
        <a href="/kontakt">Kontakt</a>
        <a href="/om-oss">Om oss</a>
        <a href="#top">Til toppen</a>
    </nav>
    <p>Vi har levert rørleggertjenester siden 2013.</p>
    <a href="https://www.facebook.com/acmeror">Facebook</a>
    <a href="https://www.linkedin.com/company/acme-ror">LinkedIn</a>
    <footer>NO 912 676 951 MVA</footer>
</body>
</html>
"""

CONTACT_HTML = """
<html lang="nb">
<head><title>Kontakt oss - Acme Rør AS</title></head>
<body>
    <h1>Kontakt oss</h1>
    <p>Ring oss på +47 22 33 44 55 eller send en e-post.</p>
    <a href="mailto:post@acme.no">post@acme.no</a>
    <p>Man-Fre 08:00-16:00</p>
    <a href="/">Hjem</a>
</body>
</html>
"""

ABOUT_HTML = """
<html lang="nb">
<head><title>Om oss | Acme Rør AS</title></head>
<body>
    <h1>Om oss</h1>
    <h2>Historie</h2>
    <p>Familiebedrift med tolv ansatte.</p>
    <a href="/kontakt">Kontakt</a>
</body>
</html>
"""

ACME_SITE = {
    "https://acme.no/": HOME_HTML,
    "https://acme.no/kontakt": CONTACT_HTML,
    "https://acme.no/om-oss": ABOUT_HTML,
}


def _site_handler(
    pages: dict[str, str],
    extra: dict[str, httpx.Response] | None = None,
    entities: dict[str, dict] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """MockTransport handler serving static pages, fixed responses and Brreg entities."""
    extra = extra or {}
    entities = entities or {}

    def handler(request: httpx.Request) -> httpx.Response:
        url = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        if url in extra:
            return extra[url]
        if url.startswith(BRREG_ENTITY_URL):
            entity = entities.get(url[len(BRREG_ENTITY_URL):])
            if entity is None:
                return httpx.Response(404, json={"status": 404})
            return httpx.Response(200, json=entity)
        if url in pages:
            return httpx.Response(
                200,
                text=pages[url],
                headers={"content-type": "text/html; charset=utf-8"},
            )
        return httpx.Response(404, text="Not found")

    return handler


@pytest.fixture
def settings() -> Settings:
    """Settings with every sleep and delay zeroed."""
    return Settings(
        _env_file=None,
        crawler_timeouts=[5.0],
        crawler_min_delay=0.0,
        crawler_max_delay=0.0,
        scheduler_item_delay=0.0,
        scheduler_empty_sleep=300.0,
        scheduler_idle_sleep=120.0,
        scheduler_error_sleep=60.0,
        import_batch_size=2,
        import_page_size=3,
        ai_api_key=None,
    )


@pytest_asyncio.fixture
async def store(tmp_path) -> AsyncGenerator[SqlAlchemyRecordStore, None]:
    """Record store on a fresh SQLite file per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'records.db'}")
    await init_db(engine)
    yield SqlAlchemyRecordStore(async_sessionmaker(engine, expire_on_commit=False))
    await engine.dispose()


@pytest_asyncio.fixture
async def mock_client() -> AsyncGenerator[Callable[..., httpx.AsyncClient], None]:
    """Factory for httpx clients backed by a MockTransport handler."""
    clients: list[httpx.AsyncClient] = []

    def build(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield build

    for client in clients:
        await client.aclose()


@pytest.fixture
def make_crawler() -> Callable[[httpx.AsyncClient], DeepCrawler]:
    """Crawler with a single-attempt fetcher and no politeness delay."""

    def build(client: httpx.AsyncClient, **kwargs) -> DeepCrawler:
        return DeepCrawler(
            client,
            fetcher=Fetcher(client, timeouts=(5.0,)),
            delay_range=(0.0, 0.0),
            **kwargs,
        )

    return build


@pytest.fixture
def site_handler() -> Callable[..., Callable[[httpx.Request], httpx.Response]]:
    return _site_handler


@pytest.fixture
def acme_site() -> dict[str, str]:
    """Three-page Norwegian business site."""
    return dict(ACME_SITE)


@pytest.fixture
def acme_entity() -> dict:
    """Brreg entity payload for the Acme site."""
    return dict(ACME_ENTITY)


def _provide(value):
    def dependency():
        return value

    return dependency


@pytest_asyncio.fixture
async def api_client() -> AsyncGenerator[Callable[..., httpx.AsyncClient], None]:
    """Factory for clients against a fresh app with pipeline dependencies overridden.

    The lifespan does not run under ASGITransport, so nothing touches the
    configured database unless a test asks for it.
    """
    from trustcrawler.api.dependencies import get_orchestrator, get_store, get_verifier
    from trustcrawler.api.main import create_app

    clients: list[httpx.AsyncClient] = []

    def build(store=None, verifier=None, orchestrator=None) -> httpx.AsyncClient:
        app = create_app()
        for dependency, value in (
            (get_store, store),
            (get_verifier, verifier),
            (get_orchestrator, orchestrator),
        ):
            if value is not None:
                app.dependency_overrides[dependency] = _provide(value)
        client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield build

    for client in clients:
        await client.aclose()
