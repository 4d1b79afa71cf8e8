"""Translate failures of upstream HTTP calls into the service error taxonomy."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from storefront_core.core.exceptions import (
    AppError,
    RateLimitError,
    ServiceUnavailableError,
    UpstreamError,
    UpstreamTimeoutError,
)

logger = structlog.get_logger(__name__)

_UNAVAILABLE_STATUSES = frozenset({500, 502, 503, 504})


def translate_upstream_error(exc: Exception, *, service: str, operation: str) -> AppError:
    """Map an ``httpx`` failure from ``service`` to an :class:`AppError`.

    The original exception is kept as ``cause`` for the logs.
    """
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, httpx.TimeoutException):
        return UpstreamTimeoutError(
            f"{service} timed out ({operation})", service=service, cause=exc
        )
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status == 429:
            error: AppError = RateLimitError(
                f"{service} rate limit exceeded ({operation})", cause=exc
            )
            error.details["service"] = service
            return error
        if status == 401:
            return UpstreamError(
                f"{service} rejected the service credentials ({operation})",
                service=service,
                cause=exc,
            )
        if status in _UNAVAILABLE_STATUSES:
            return ServiceUnavailableError(
                f"{service} failed with status {status} ({operation})", service=service, cause=exc
            )
        return UpstreamError(
            f"{service} answered with status {status} ({operation})",
            service=service,
            status_code=status if 400 <= status <= 599 else None,
            cause=exc,
        )
    if isinstance(exc, httpx.TransportError):
        return ServiceUnavailableError(
            f"Could not connect to {service} ({operation})", service=service, cause=exc
        )
    logger.error("upstream_unexpected_error", service=service, operation=operation, exc_info=exc)
    return UpstreamError(
        f"{service} request failed ({operation})", service=service, status_code=500, cause=exc
    )


async def request_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    service: str,
    operation: str,
    **kwargs: Any,
) -> Any:
    """Send a request through ``client`` and return the decoded JSON body.

    Raises:
        AppError: translated failure (transport, status or malformed body).
    """
    try:
        response = await client.request(method, url, **kwargs)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise translate_upstream_error(exc, service=service, operation=operation) from exc
    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamError(
            f"{service} returned an invalid response format ({operation})",
            service=service,
            cause=exc,
        ) from exc
