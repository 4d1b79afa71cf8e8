from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

if TYPE_CHECKING:
    from storefront_core.api.errors import ErrorResponder


class ErrorResponderMiddleware:
    """Default handler for exceptions escaping every route and handler wrapper.

    Tracks whether the response already started. Once it has, a late error is
    only logged; a second response is never written.
    """

    def __init__(self, app: ASGIApp, responder: ErrorResponder) -> None:
        self.app = app
        self.responder = responder

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def _send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, _send)
        except Exception as exc:
            request = Request(scope)
            if response_started:
                self.responder.log_late_error(exc, request)
                return
            response = self.responder.respond(exc, request)
            await response(scope, receive, send)
