"""
Logging configuration with Wide Events / Canonical Log Lines pattern.

Long-running bots emit one comprehensive event per work cycle:
- Initialize the event when a cycle starts (bot, worker shard)
- Enrich it while items are processed (counters, last error)
- Emit a single summary line when the cycle ends

The HTTP API uses the same helpers for one line per request.

References:
- https://charity.wtf/2019/02/05/logs-vs-structured-events/
- Stripe's "canonical log lines" pattern
"""

import logging
import os
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any

import structlog
from structlog.types import Processor

# Context variables for the current wide event (one cycle or one request)
_wide_event: ContextVar[dict[str, Any]] = ContextVar("wide_event")
_wide_start: ContextVar[float] = ContextVar("wide_start", default=0.0)


def get_cycle_event() -> dict[str, Any]:
    """Get the current cycle's wide event for enrichment."""
    return _wide_event.get({})


def enrich_event(**kwargs: Any) -> None:
    """
    Add fields to the current wide event.

        enrich_event(processed=12, **{"registry.source": "brreg"})

    Keys with dots are stored as nested objects.
    """
    event = _wide_event.get({})
    for key, value in kwargs.items():
        if "." in key:
            parts = key.split(".")
            target = event
            for part in parts[:-1]:
                if part not in target:
                    target[part] = {}
                target = target[part]
            target[parts[-1]] = value
        else:
            event[key] = value


def increment_event(key: str, amount: int = 1) -> None:
    """Increment a counter on the current wide event."""
    event = _wide_event.get({})
    event[key] = event.get(key, 0) + amount


def init_cycle_event(
    bot_name: str,
    worker_id: int | None = None,
    total_workers: int | None = None,
    cycle_id: str | None = None,
) -> dict[str, Any]:
    """Initialize a new wide event for a worker cycle."""
    event: dict[str, Any] = {
        "cycle_id": cycle_id or str(uuid.uuid4())[:8],
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%S.000Z", time.gmtime()),
        "bot": {
            "name": bot_name,
            "worker_id": worker_id,
            "total_workers": total_workers,
        },
        "service": {
            "name": "trust-crawler",
            "version": os.environ.get("APP_VERSION", "dev"),
            "environment": os.environ.get("ENVIRONMENT", "development"),
        },
        "processed": 0,
        "succeeded": 0,
        "failed": 0,
        "skipped": 0,
    }

    _wide_event.set(event)
    _wide_start.set(time.time())
    return event


def finalize_cycle_event(error: Exception | None = None) -> dict[str, Any]:
    """Finalize and return the wide event for emission."""
    event = _wide_event.get({})
    start_time = _wide_start.get()

    event["duration_ms"] = int((time.time() - start_time) * 1000)
    event["outcome"] = "error" if error else "success"

    if error:
        event["error"] = {
            "type": type(error).__name__,
            "message": str(error)[:500],
        }
        if hasattr(error, "code"):
            event["error"]["code"] = error.code
        if hasattr(error, "details"):
            event["error"]["details"] = error.details

    return event


def init_request_event(
    request_id: str | None = None,
    method: str = "",
    path: str = "",
    client_ip: str = "",
    user_agent: str = "",
) -> dict[str, Any]:
    """Initialize a new wide event for an API request."""
    event = {
        "request_id": request_id or str(uuid.uuid4())[:8],
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%S.000Z", time.gmtime()),
        "http": {
            "method": method,
            "path": path,
            "client_ip": client_ip,
            "user_agent": user_agent[:200] if user_agent else None,
        },
        "service": {
            "name": "trust-crawler-api",
            "version": os.environ.get("APP_VERSION", "dev"),
            "environment": os.environ.get("ENVIRONMENT", "development"),
        },
    }

    _wide_event.set(event)
    _wide_start.set(time.time())
    return event


def finalize_request_event(status_code: int, error: Exception | None = None) -> dict[str, Any]:
    event = _wide_event.get({})
    event.setdefault("http", {})["status_code"] = status_code
    event["duration_ms"] = int((time.time() - _wide_start.get()) * 1000)
    event["outcome"] = "success" if status_code < 400 else "error"

    if error:
        event["error"] = {
            "type": type(error).__name__,
            "message": str(error)[:500],
        }
        if hasattr(error, "code"):
            event["error"]["code"] = error.code
    return event


def emit_request_event(event: dict[str, Any]) -> None:
    """Emit the canonical log line for a request."""
    logger = structlog.get_logger("wide_event")
    status_code = event.get("http", {}).get("status_code", 200)

    if status_code >= 500:
        logger.error("request_completed", **event)
    elif status_code >= 400:
        logger.warning("request_completed", **event)
    else:
        logger.info("request_completed", **event)


def add_cycle_id(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Processor to tag every log entry with the current cycle or request id."""
    current_event = _wide_event.get({})
    for key in ("cycle_id", "request_id"):
        if current_event and key in current_event:
            event_dict.setdefault(key, current_event[key])
    return event_dict


def configure_logging(json_logs: bool = True, log_level: str = "INFO") -> None:
    """
    Configure structlog for wide events logging.

    Args:
        json_logs: If True, output JSON format (for production).
                   If False, output colored console format (for development).
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR).
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_cycle_id,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_logs:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def emit_cycle_event(event: dict[str, Any]) -> None:
    """
    Emit the canonical log line for a cycle.

    This is the single, comprehensive record of what happened.
    """
    logger = structlog.get_logger("wide_event")

    if event.get("outcome") == "error":
        logger.error("cycle_completed", **event)
    elif event.get("failed", 0) > 0:
        logger.warning("cycle_completed", **event)
    else:
        logger.info("cycle_completed", **event)
