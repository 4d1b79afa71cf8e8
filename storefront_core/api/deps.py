"""API dependency helpers backed by the application's resolver."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from fastapi import Request

from storefront_core.core.exceptions import InternalServerError
from storefront_core.core.resolver import Resolver

__all__ = ["get_resolver", "provide"]


def get_resolver(request: Request) -> Resolver:
    resolver = getattr(request.app.state, "resolver", None)
    if resolver is None:
        raise InternalServerError("Application has no resolver attached")
    return resolver


def provide(key: str) -> Callable[[Request], Any]:
    """FastAPI dependency returning the collaborator registered as ``key``.

    Usage: ``repo: MemberRepository = Depends(provide("memberRepository"))``
    """

    def _dependency(request: Request) -> Any:
        return get_resolver(request).resolve(key)

    _dependency.__name__ = f"provide_{key}"
    return _dependency
