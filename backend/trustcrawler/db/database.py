"""
Database connection and session management.

The engine is created lazily from settings on first use so tests and the CLI
can point the package at another database with configure_database().
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from trustcrawler.core.config import settings
from trustcrawler.core.exceptions import StoreError

logger = structlog.get_logger()


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def _engine_options(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"echo": settings.debug}

    options: dict = {
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
        "echo": settings.debug,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }
    if "+asyncpg" in database_url:
        options["connect_args"] = {
            "command_timeout": 60,
            "server_settings": {
                "application_name": settings.app_name.lower().replace(" ", "_"),
                "jit": "off",
            },
        }
    return options


def configure_database(database_url: str | None = None) -> AsyncEngine:
    """(Re)create the engine and session factory."""
    global _engine, _session_maker

    url = database_url or settings.database_url
    try:
        _engine = create_async_engine(url, **_engine_options(url))
        logger.info("Database engine created", dialect=_engine.dialect.name)
    except Exception as e:
        logger.error("Failed to create database engine", error=str(e))
        raise

    _session_maker = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return _engine


def get_engine() -> AsyncEngine:
    if _engine is None:
        configure_database()
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    if _session_maker is None:
        configure_database()
    return _session_maker


@asynccontextmanager
async def get_db_session(
    session_maker: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Session scope used by the record store.

    SQLAlchemy failures are rolled back and re-raised as StoreError.
    """
    session = (session_maker or get_session_maker())()
    try:
        yield session
    except SQLAlchemyError as e:
        logger.error("Database error in session", error=str(e))
        await session.rollback()
        raise StoreError(f"Database operation failed: {e}", original_error=e) from e
    finally:
        await session.close()


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create tables that do not exist yet."""
    # Import models so they register on Base.metadata
    from trustcrawler.db import models  # noqa: F401

    engine = engine or get_engine()
    try:
        async with engine.begin() as conn:
            await conn.run_sync(lambda sync_conn: Base.metadata.create_all(sync_conn, checkfirst=True))
        logger.info("Database tables initialized")
    except Exception as e:
        error_str = str(e)
        # Another worker created the tables between our check and create
        if "already exists" in error_str or "duplicate key value violates unique constraint" in error_str:
            logger.info("Database tables already created by another worker")
        else:
            logger.error("Failed to initialize database", error=error_str)
            raise


async def close_db() -> None:
    """Close database connections."""
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_maker = None


async def check_database_health() -> bool:
    """Check database connectivity and health"""
    try:
        async with get_engine().begin() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        return False
