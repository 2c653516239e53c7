from __future__ import annotations

import logging
import sys
import time
import uuid
from functools import partial
from typing import Any, Dict

import structlog
from fastapi import Request

SERVICE_NAME = "commission-feed"

# Access lines for these paths are logged at debug level.
QUIET_PATHS = frozenset({"/healthz"})


def _add_log_level(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    event_dict["level"] = method_name
    return event_dict


def add_service_context(
    logger: Any, method_name: str, event_dict: Dict[str, Any], *, env: str
) -> Dict[str, Any]:
    """Tag every line with the service name and environment."""
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("env", env)
    return event_dict


def configure_logging(env: str = "development", debug: bool = False) -> None:
    """Configure structlog for readable console logs to stdout.

    Development gets colored output; other environments get plain lines so
    log collectors do not have to strip escape codes.
    """
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _add_log_level,
        partial(add_service_context, env=env),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=env == "development"),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


async def request_id_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Bind request_id, method and path for the request and log its outcome.

    Feed log lines emitted while serving the request (refreshes, creations)
    carry the same request_id, so a submission can be followed from the API
    call through the refresh it triggers.
    """
    start = time.perf_counter()
    path = request.url.path

    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    structlog.contextvars.bind_contextvars(
        request_id=request_id, method=request.method, path=path
    )

    response = None
    try:
        response = await call_next(request)
    finally:
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        status = response.status_code if response is not None else 500
        logger = structlog.get_logger("request")
        log = logger.debug if path in QUIET_PATHS else logger.info
        log("request.completed", status=status, duration_ms=duration_ms)
        structlog.contextvars.clear_contextvars()

    response.headers["x-request-id"] = request_id
    return response
