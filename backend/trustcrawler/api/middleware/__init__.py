"""
API Middleware package.

- Wide Events: canonical log line per request
"""

from trustcrawler.api.middleware.wide_events import WideEventMiddleware, add_business_to_wide_event

__all__ = [
    "WideEventMiddleware",
    "add_business_to_wide_event",
]
