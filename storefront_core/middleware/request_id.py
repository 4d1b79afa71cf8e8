from __future__ import annotations

import time
import uuid
from collections.abc import Callable

import sentry_sdk
import structlog
from fastapi import Request, Response

REQUEST_ID_HEADER = "X-Request-ID"


async def request_id_middleware(request: Request, call_next: Callable) -> Response:
    """Attach/propagate Request-ID and emit structured access log.

    - Prefer inbound X-Request-ID; generate UUID4 if absent
    - Bind request_id, path, method to contextvars so error logs include it
    - Emit one-line access log event="http_request" with basic metrics
    - Always set X-Request-ID on the response
    """
    logger = structlog.get_logger(__name__)

    rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request.state.request_id = rid

    tokens = structlog.contextvars.bind_contextvars(
        request_id=rid, path=request.url.path, method=request.method
    )

    try:
        sentry_sdk.set_tag("request_id", rid)
    except Exception:
        # Never let Sentry instrumentation break request processing
        pass

    start_ns = time.perf_counter_ns()
    try:
        response = await call_next(request)
    except Exception:
        duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000.0
        logger.error(
            "http_request",
            status=500,
            duration_ms=round(duration_ms, 3),
            exc_info=True,
        )
        structlog.contextvars.reset_contextvars(**tokens)
        raise

    duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000.0
    client_ip = (request.client.host if request.client else None) or "-"
    logger.info(
        "http_request",
        status=response.status_code,
        duration_ms=round(duration_ms, 3),
        client_ip=client_ip,
    )

    response.headers[REQUEST_ID_HEADER] = rid
    structlog.contextvars.reset_contextvars(**tokens)
    return response
