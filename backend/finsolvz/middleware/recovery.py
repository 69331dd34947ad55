"""
Finsolvz Backend — Recovery Middleware
=======================================

What:  Last line of defence for exceptions no handler claimed.
How:   Pure ASGI wrapper. An exception escaping the inner chain is logged with
       its traceback and answered with INTERNAL_SERVER_ERROR (500). Internal
       error text reaches the client only when APP_ENV=development.

If the response has already started streaming the exception is re-raised,
since a second status line cannot be sent; the server then closes the
connection.
"""

import logging
from typing import Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from finsolvz.exceptions import FinsolvzError
from finsolvz.middleware.request_id import request_id_var
from finsolvz.responses import error_response

logger = logging.getLogger(__name__)


class RecoveryMiddleware:
    def __init__(self, app: ASGIApp, debug: Optional[bool] = None):
        self.app = app
        self.debug = debug

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            logger.error(
                "[%s] Unhandled %s on %s %s: %s",
                request_id_var.get(""),
                type(exc).__name__,
                scope.get("method", ""),
                scope.get("path", ""),
                exc,
                exc_info=True,
            )
            if response_started:
                raise
            response = error_response(FinsolvzError(cause=exc), include_internal=self.debug)
            await response(scope, receive, send)
