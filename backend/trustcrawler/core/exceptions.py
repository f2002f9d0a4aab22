"""
Exception hierarchy for Trust Crawler.

Not-found outcomes (unknown registry entry, unreachable site) are returned as
values. Exceptions are reserved for failures a caller has to handle.
"""

from typing import Any


class TrustCrawlerError(Exception):
    """Base class for application errors."""

    code = "trust_crawler_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class StoreError(TrustCrawlerError):
    """Record store operation failed."""

    code = "store_error"

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.original_error = original_error
        super().__init__(message, details)


class StateStoreError(TrustCrawlerError):
    """Bot cursor state could not be read or written."""

    code = "state_store_error"
