"""
Health check endpoints.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from trustcrawler.core.config import settings
from trustcrawler.db import check_database_health

router = APIRouter()


@router.get("/health")
async def health_check() -> JSONResponse:
    """Liveness plus database connectivity."""
    database_ok = await check_database_health()
    return JSONResponse(
        status_code=200 if database_ok else 503,
        content={
            "status": "healthy" if database_ok else "degraded",
            "version": settings.app_version,
            "database": "connected" if database_ok else "unavailable",
        },
    )
