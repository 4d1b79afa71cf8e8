"""Handler wrapper: funnels every handler failure to one error callback.

``InterceptorChain`` runs an ordered list of interceptors around a handler,
each shaped like the service's HTTP middleware (``request, call_next``). Any
exception raised by an interceptor or by the handler reaches ``on_error``
exactly once, after the handler has finished, and is not re-raised. A failure
inside ``on_error`` itself propagates.
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request

CallNext = Callable[[Request | None], Awaitable[Any]]
Interceptor = Callable[[Request | None, CallNext], Awaitable[Any]]
OnError = Callable[[Exception, Request | None], Any]


def _find_request(args: tuple, kwargs: dict) -> Request | None:
    candidate = kwargs.get("request")
    if isinstance(candidate, Request):
        return candidate
    for value in (*args, *kwargs.values()):
        if isinstance(value, Request):
            return value
    return None


def _link(interceptor: Interceptor, call_next: CallNext) -> CallNext:
    async def _call(request: Request | None) -> Any:
        return await interceptor(request, call_next)

    return _call


class InterceptorChain:
    """Ordered interceptors plus the single error path around a handler.

    The first interceptor is the outermost. Usable as a decorator.
    """

    def __init__(self, interceptors: Sequence[Interceptor] = (), *, on_error: OnError) -> None:
        self.interceptors = tuple(interceptors)
        self.on_error = on_error

    def __call__(self, handler: Callable[..., Any]) -> Callable[..., Any]:
        return self.bind(handler)

    def bind(self, handler: Callable[..., Any]) -> Callable[..., Any]:
        is_async = inspect.iscoroutinefunction(handler)
        if not is_async and not self.interceptors:
            return self._bind_sync(handler)

        @functools.wraps(handler)
        async def _adapter(*args: Any, **kwargs: Any) -> Any:
            request = _find_request(args, kwargs)

            async def _endpoint(_request: Request | None) -> Any:
                if is_async:
                    return await handler(*args, **kwargs)
                return await run_in_threadpool(handler, *args, **kwargs)

            call: CallNext = _endpoint
            for interceptor in reversed(self.interceptors):
                call = _link(interceptor, call)

            try:
                return await call(request)
            except Exception as exc:
                error = exc
            outcome = self.on_error(error, request)
            if inspect.isawaitable(outcome):
                outcome = await outcome
            return outcome

        return _adapter

    def _bind_sync(self, handler: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(handler)
        def _adapter(*args: Any, **kwargs: Any) -> Any:
            try:
                return handler(*args, **kwargs)
            except Exception as exc:
                error, request = exc, _find_request(args, kwargs)
            return self.on_error(error, request)

        return _adapter


def wrap(handler: Callable[..., Any], on_error: OnError) -> Callable[..., Any]:
    """Return ``handler`` guarded so its failures go to ``on_error``."""
    return InterceptorChain(on_error=on_error).bind(handler)


__all__ = ["CallNext", "Interceptor", "InterceptorChain", "OnError", "wrap"]
