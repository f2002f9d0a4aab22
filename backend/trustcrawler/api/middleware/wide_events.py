"""
Wide Events Middleware for FastAPI.

One canonical log line per request:
- Initializes a wide event at request start
- Handlers enrich it via trustcrawler.core.logging.enrich_event
- Finalized and emitted on request completion
"""

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from trustcrawler.core.logging import (
    emit_request_event,
    enrich_event,
    finalize_request_event,
    init_request_event,
)


class WideEventMiddleware(BaseHTTPMiddleware):
    """Captures a wide event for every request except health checks."""

    SKIP_PATHS = {"/health", "/favicon.ico"}

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        init_request_event(
            request_id=request.headers.get("x-request-id"),
            method=request.method,
            path=request.url.path,
            client_ip=self._get_client_ip(request),
            user_agent=request.headers.get("user-agent", ""),
        )
        if request.query_params:
            enrich_event(**{"http.query_params": dict(request.query_params)})

        error: Exception | None = None
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        except Exception as e:
            error = e
            status_code = getattr(e, "status_code", 500)
            raise
        finally:
            emit_request_event(finalize_request_event(status_code, error))

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP, respecting proxy headers."""
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host
        return "unknown"


def add_business_to_wide_event(
    org_number: str | None = None,
    country_code: str | None = None,
    business_id: str | None = None,
    trust_score: int | None = None,
) -> None:
    """Add business context to the wide event."""
    enrich_event(
        business={
            "org_number": org_number,
            "country_code": country_code,
            "id": business_id,
            "trust_score": trust_score,
        }
    )
