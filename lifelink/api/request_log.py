"""
LifeLink — Request Logging Middleware

Emits one structured line per HTTP request:

    request method=GET path=/api/geolocation/nearby-camps query="latitude=..." status=200 duration_ms=4.2

Request bodies are never logged (they can carry contact details).
Unhandled exceptions are logged with their traceback and re-raised.
"""

from __future__ import annotations

import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import RequestResponseEndpoint

logger = logging.getLogger("lifelink.requests")


async def request_logging_middleware(
    request: Request, call_next: RequestResponseEndpoint
) -> Response:
    """Log method, path, query string, status and latency for every request."""
    t0 = time.monotonic()
    query = request.url.query

    try:
        response = await call_next(request)
    except Exception:
        duration_ms = round((time.monotonic() - t0) * 1000, 1)
        logger.exception(
            "request method=%s path=%s query=%r status=500 duration_ms=%s",
            request.method,
            request.url.path,
            query,
            duration_ms,
        )
        raise

    duration_ms = round((time.monotonic() - t0) * 1000, 1)
    level = logging.WARNING if response.status_code >= 500 else logging.INFO
    logger.log(
        level,
        "request method=%s path=%s query=%r status=%d duration_ms=%s",
        request.method,
        request.url.path,
        query,
        response.status_code,
        duration_ms,
    )
    return response
