"""Error taxonomy shared by every handler of a storefront service.

Each class carries a stable ``kind`` (the machine-readable ``error`` name on
the wire) and the HTTP status it maps to. The responder in
``storefront_core.api.errors`` is the only place that turns these into HTTP
responses.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

GENERIC_MESSAGE = "An internal server error occurred"


class AppError(Exception):
    """Base class for classified application failures.

    ``cause`` is kept for logging only and is never serialized to clients.
    ``sensitive`` errors never expose their message to clients. A bare
    ``AppError`` is a 500 and is sensitive like :class:`InternalServerError`;
    the client-facing subclasses below opt out.
    """

    kind: ClassVar[str] = "InternalServerError"
    default_status: ClassVar[int] = 500
    default_message: ClassVar[str] = GENERIC_MESSAGE
    default_sensitive: ClassVar[bool] = True

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        cause: BaseException | None = None,
        sensitive: bool | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        self.message = message if message is not None else self.default_message
        self.status_code = status_code if status_code is not None else self.default_status
        self.cause = cause
        self.sensitive = self.default_sensitive if sensitive is None else sensitive
        self.details: dict[str, Any] = dict(details or {})
        super().__init__(self.message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind!r}, status_code={self.status_code})"


class ValidationError(AppError):
    """Caller input is invalid."""

    kind = "ValidationError"
    default_status = 400
    default_message = "Validation failed"
    default_sensitive = False


class UnauthorizedError(AppError):
    kind = "UnauthorizedError"
    default_status = 401
    default_message = "Authentication failed"
    default_sensitive = False


class ForbiddenError(AppError):
    kind = "ForbiddenError"
    default_status = 403
    default_message = "Access denied"
    default_sensitive = False


class NotFoundError(AppError):
    """Requested resource does not exist."""

    kind = "NotFoundError"
    default_status = 404
    default_message = "Resource not found"
    default_sensitive = False


class ConflictError(AppError):
    """State conflict such as a duplicate entry."""

    kind = "ConflictError"
    default_status = 409
    default_message = "Resource conflict"
    default_sensitive = False


class RateLimitError(AppError):
    kind = "RateLimitError"
    default_status = 429
    default_message = "Rate limit exceeded"
    default_sensitive = False


class InternalServerError(AppError):
    """Unclassified failure. Its message is withheld from clients."""

    kind = "InternalServerError"
    default_status = 500
    default_sensitive = True


class UpstreamError(AppError):
    """An upstream service answered with an unusable response."""

    kind = "UpstreamError"
    default_status = 502
    default_message = "Upstream request failed"
    default_sensitive = False

    def __init__(self, message: str | None = None, *, service: str = "unknown", **kwargs: Any):
        super().__init__(message, **kwargs)
        self.service = service
        self.details.setdefault("service", service)


class ServiceUnavailableError(UpstreamError):
    kind = "ServiceUnavailableError"
    default_status = 503
    default_message = "Service unavailable"


class UpstreamTimeoutError(UpstreamError):
    kind = "UpstreamTimeoutError"
    default_status = 504
    default_message = "Upstream request timed out"


# Status -> taxonomy name, used for framework exceptions that carry a status
# but no kind of their own.
KIND_BY_STATUS: dict[int, str] = {
    400: ValidationError.kind,
    401: UnauthorizedError.kind,
    403: ForbiddenError.kind,
    404: NotFoundError.kind,
    409: ConflictError.kind,
    422: ValidationError.kind,
    429: RateLimitError.kind,
    500: InternalServerError.kind,
    502: UpstreamError.kind,
    503: ServiceUnavailableError.kind,
    504: UpstreamTimeoutError.kind,
}


def kind_for_status(status_code: int) -> str:
    """Return the taxonomy name for ``status_code``, falling back by class."""
    if status_code in KIND_BY_STATUS:
        return KIND_BY_STATUS[status_code]
    if 400 <= status_code < 500:
        return ValidationError.kind
    return InternalServerError.kind


__all__ = [
    "GENERIC_MESSAGE",
    "AppError",
    "ValidationError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "InternalServerError",
    "UpstreamError",
    "ServiceUnavailableError",
    "UpstreamTimeoutError",
    "KIND_BY_STATUS",
    "kind_for_status",
]
