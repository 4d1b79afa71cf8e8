"""Centralized error classification and the error responder.

Every error path of a service ends here: the handler wrapper, the framework's
HTTP exception hooks and the ASGI catch-all middleware all call
``ErrorResponder.respond``. Clients always receive
``{"error", "message", "statusCode"}``; internal details only reach the logs.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import sentry_sdk
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront_core.core.exceptions import (
    GENERIC_MESSAGE,
    AppError,
    InternalServerError,
    ValidationError,
    kind_for_status,
)
from storefront_core.middleware.error_responder import ErrorResponderMiddleware
from storefront_core.schemas.error import ErrorResponseBody

ERROR_CODE_HEADER = "X-Error-Code"
ERROR_TIMESTAMP_HEADER = "X-Error-Timestamp"
VALIDATION_MESSAGE = "Request validation failed"
_MAX_CAUSES = 10

logger = structlog.get_logger(__name__)


def _status_of(exc: BaseException) -> int:
    status = getattr(exc, "status_code", None)
    if isinstance(status, int) and not isinstance(status, bool) and 400 <= status <= 599:
        return status
    return 500


def _declared_kind(exc: BaseException) -> str | None:
    kind = getattr(exc, "kind", None)
    if isinstance(kind, str) and kind:
        return kind
    return None


def _message_of(exc: BaseException) -> str | None:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    if exc.args and isinstance(exc.args[0], str) and exc.args[0]:
        return exc.args[0]
    return None


def classify(exc: BaseException, *, expose_messages: bool = False) -> ErrorResponseBody:
    """Turn ``exc`` into the wire body.

    Unclassified exceptions map to 500 ``InternalServerError`` with a generic
    message unless ``expose_messages`` is set.
    """
    if isinstance(exc, RequestValidationError):
        return ErrorResponseBody(error=ValidationError.kind, message=VALIDATION_MESSAGE, status_code=422)

    if isinstance(exc, StarletteHTTPException):
        detail = exc.detail if isinstance(exc.detail, str) and exc.detail else None
        status = _status_of(exc)
        return ErrorResponseBody(
            error=kind_for_status(status),
            message=detail or GENERIC_MESSAGE,
            status_code=status,
        )

    status = _status_of(exc)
    kind = _declared_kind(exc)
    if kind is None:
        kind = InternalServerError.kind
        sensitive = True
    else:
        sensitive = bool(getattr(exc, "sensitive", kind == InternalServerError.kind))

    message = _message_of(exc)
    if message is None or (sensitive and not expose_messages):
        message = GENERIC_MESSAGE
    return ErrorResponseBody(error=kind, message=message, status_code=status)


def render(body: ErrorResponseBody) -> bytes:
    """Canonical JSON bytes of ``body``; identical input gives identical bytes."""
    return JSONResponse(content=body.to_wire()).body


def cause_chain(exc: BaseException) -> list[str]:
    """Describe ``exc``'s causes, innermost last."""
    chain: list[str] = []
    seen = {id(exc)}
    current: BaseException | None = exc
    while current is not None and len(chain) < _MAX_CAUSES:
        nxt = getattr(current, "cause", None) if isinstance(current, AppError) else None
        nxt = nxt or current.__cause__ or current.__context__
        if nxt is None or id(nxt) in seen:
            break
        seen.add(id(nxt))
        chain.append(f"{type(nxt).__name__}: {nxt}")
        current = nxt
    return chain


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def error_context(request: Request | None, occurred_at: str | None = None) -> dict[str, Any]:
    """Request facts attached to every error log."""
    context: dict[str, Any] = {"occurred_at": occurred_at or _now_iso()}
    if request is None:
        return context
    headers = request.headers
    forwarded = headers.get("x-forwarded-for")
    ip = (
        (forwarded.split(",")[0].strip() if forwarded else None)
        or headers.get("x-real-ip")
        or (request.client.host if request.client else None)
        or "unknown"
    )
    context.update(
        method=request.method,
        url=str(request.url),
        user_agent=headers.get("user-agent"),
        ip=ip,
    )
    return context


class ErrorResponder:
    """Single sink that classifies, logs and answers an error exactly once."""

    def __init__(self, *, expose_messages: bool = False) -> None:
        self.expose_messages = expose_messages

    def classify(self, exc: BaseException) -> ErrorResponseBody:
        return classify(exc, expose_messages=self.expose_messages)

    def respond(self, exc: BaseException, request: Request | None = None) -> JSONResponse:
        """Build the error response for ``request``.

        A request answered before gets the same response object back; no
        second body is produced.
        """
        if request is not None:
            previous = getattr(request.state, "error_response", None)
            if previous is not None:
                self._log_safely(
                    "error_response_already_sent", exc, request, status=previous.status_code
                )
                return previous

        body = self.classify(exc)
        occurred_at = _now_iso()
        self.report(exc, body, request, occurred_at=occurred_at)
        response = JSONResponse(
            status_code=body.status_code,
            content=body.to_wire(),
            headers=self._headers(exc, body, occurred_at),
        )
        if request is not None:
            request.state.error_response = response
        return response

    async def handle(self, request: Request, exc: Exception) -> JSONResponse:
        """Exception-handler signature expected by Starlette."""
        return self.respond(exc, request)

    def report(
        self,
        exc: BaseException,
        body: ErrorResponseBody,
        request: Request | None,
        *,
        occurred_at: str | None = None,
    ) -> None:
        """Log the full error and forward 5xx errors to Sentry."""
        level = "error" if body.status_code >= 500 else "warning"
        self._log_safely(
            "request_error",
            exc,
            request,
            level=level,
            occurred_at=occurred_at,
            error=body.error,
            status=body.status_code,
        )
        if body.status_code >= 500:
            try:
                sentry_sdk.capture_exception(exc)
            except Exception:
                # Never let Sentry instrumentation break request processing
                pass

    def log_late_error(self, exc: BaseException, request: Request | None) -> None:
        """Record an error raised after the response started streaming."""
        self._log_safely("error_after_response_started", exc, request)

    def _headers(
        self, exc: BaseException, body: ErrorResponseBody, occurred_at: str
    ) -> dict[str, str]:
        headers = {ERROR_CODE_HEADER: body.error, ERROR_TIMESTAMP_HEADER: occurred_at}
        extra = getattr(exc, "headers", None) if isinstance(exc, StarletteHTTPException) else None
        if extra:
            headers.update(extra)
        return headers

    def _log_safely(
        self,
        event: str,
        exc: BaseException,
        request: Request | None,
        *,
        level: str = "error",
        occurred_at: str | None = None,
        **fields: Any,
    ) -> None:
        try:
            details = getattr(exc, "details", None)
            getattr(logger, level)(
                event,
                exception_type=type(exc).__name__,
                exception_message=str(exc),
                causes=cause_chain(exc),
                details=dict(details) if isinstance(details, dict) and details else None,
                **error_context(request, occurred_at),
                **fields,
                exc_info=exc,
            )
        except Exception:
            # Logging must never block or fail the error response
            pass


def install(app: FastAPI, responder: ErrorResponder) -> None:
    """Make ``responder`` the terminal error handler of ``app``."""
    app.state.error_responder = responder
    app.add_exception_handler(StarletteHTTPException, responder.handle)
    app.add_exception_handler(RequestValidationError, responder.handle)
    app.add_middleware(ErrorResponderMiddleware, responder=responder)


__all__ = [
    "ERROR_CODE_HEADER",
    "ErrorResponder",
    "cause_chain",
    "classify",
    "error_context",
    "install",
    "render",
]
