"""
FastAPI application factory and main entry point.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from trustcrawler.api.middleware import WideEventMiddleware
from trustcrawler.api.routes import health, verify
from trustcrawler.core.config import settings
from trustcrawler.core.exceptions import StoreError, TrustCrawlerError
from trustcrawler.core.logging import configure_logging
from trustcrawler.db import close_db, init_db
from trustcrawler.pipeline import build_pipeline

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info("Starting Trust Crawler API", version=settings.app_version)
    await init_db()
    logger.info("Database initialized")

    if not settings.has_contact_email:
        logger.warning(
            "CONTACT_EMAIL not configured. "
            "Registry requests will be sent without a contact address."
        )

    async with build_pipeline(settings) as pipeline:
        app.state.store = pipeline.store
        app.state.verifier = pipeline.verifier
        app.state.orchestrator = pipeline.orchestrator
        yield

    logger.info("Shutting down Trust Crawler API")
    await close_db()
    logger.info("Database connections closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(
        json_logs=settings.json_logs and not settings.debug,
        log_level="DEBUG" if settings.debug else settings.log_level,
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Business verification and trust scoring",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(WideEventMiddleware)

    app.include_router(health.router, tags=["Health"])
    app.include_router(verify.router, prefix="/api", tags=["Verification"])

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle FastAPI validation errors"""
        logger.warning("Validation error", url=str(request.url), errors=exc.errors())
        return JSONResponse(
            status_code=422,
            content={
                "error": {
                    "message": "Validation failed",
                    "type": "validation_error",
                    "details": jsonable_errors(exc),
                }
            },
        )

    @app.exception_handler(StoreError)
    async def store_exception_handler(request: Request, exc: StoreError):
        """Handle database errors"""
        logger.error("Store error", url=str(request.url), error=exc.message)
        return JSONResponse(
            status_code=503,
            content={"detail": "Database operation failed"},
        )

    @app.exception_handler(TrustCrawlerError)
    async def app_exception_handler(request: Request, exc: TrustCrawlerError):
        logger.error("Application error", url=str(request.url), error=exc.message, code=exc.code)
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "message": exc.message,
                    "type": exc.code,
                    "details": exc.details,
                }
            },
        )

    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors without the non-serializable ctx payloads."""
    return [{k: v for k, v in error.items() if k != "ctx"} for error in exc.errors()]


app = create_app()
