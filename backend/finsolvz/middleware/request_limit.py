"""
Finsolvz Backend — Request Limit Middleware
============================================

What:  Caps request bodies (default 10 MiB) and bounds processing time
       (default 30 s) for every request.
How:   Pure ASGI wrapper:
       - a declared Content-Length above the cap is rejected up front (413)
       - `receive` is wrapped to count streamed body bytes; crossing the cap
         aborts the read, whatever the inner app replies is discarded and
         a 413 REQUEST_TOO_LARGE is sent instead
       - the downstream app runs under `asyncio.wait_for`; on expiry the
         task is cancelled (cancelling in-flight queries with it) and a 408
         is sent if no response has started
       Every response carries `X-Request-Timeout: <n>s`.
"""

import asyncio
import logging

from fastapi import HTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from finsolvz.exceptions import RequestTimeoutError, RequestTooLargeError
from finsolvz.responses import error_response

logger = logging.getLogger(__name__)


def format_timeout(seconds: float) -> str:
    return f"{seconds:g}s"


class RequestLimitMiddleware:
    def __init__(self, app: ASGIApp, max_body_bytes: int, timeout_seconds: float):
        self.app = app
        self.max_body_bytes = max_body_bytes
        self.timeout_seconds = timeout_seconds
        self._timeout_header = format_timeout(timeout_seconds).encode("latin-1")

    def _too_large(self) -> RequestTooLargeError:
        return RequestTooLargeError(
            message=f"Request body exceeds the maximum allowed size of {self.max_body_bytes} bytes",
            details={"max_bytes": self.max_body_bytes},
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False
        overflowed = False

        async def send_with_header(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
                headers = list(message.get("headers", []))
                headers.append((b"x-request-timeout", self._timeout_header))
                message = {**message, "headers": headers}
            await send(message)

        async def send_wrapper(message: Message) -> None:
            # After an overflow the inner reply (often a generic 400 from body
            # parsing) is dropped; the 413 below replaces it
            if overflowed and not response_started:
                return
            await send_with_header(message)

        declared = _content_length(scope)
        if declared is not None and declared > self.max_body_bytes:
            await error_response(self._too_large())(scope, receive, send_with_header)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received, overflowed
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    overflowed = True
                    raise HTTPException(status_code=413, detail=self._too_large().message)
            return message

        try:
            await asyncio.wait_for(
                self.app(scope, limited_receive, send_wrapper),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Request %s %s exceeded %s deadline",
                scope.get("method", ""),
                scope.get("path", ""),
                format_timeout(self.timeout_seconds),
            )
            if response_started:
                raise
            await error_response(RequestTimeoutError())(scope, receive, send_with_header)
            return
        except Exception:
            if not overflowed or response_started:
                raise
            logger.debug("Inner error after body overflow replaced by 413", exc_info=True)

        if overflowed and not response_started:
            logger.warning(
                "Request %s %s body exceeded %d bytes",
                scope.get("method", ""),
                scope.get("path", ""),
                self.max_body_bytes,
            )
            await error_response(self._too_large())(scope, receive, send_with_header)


def _content_length(scope: Scope):
    for name, value in scope.get("headers", []):
        if name == b"content-length":
            try:
                return int(value)
            except ValueError:
                return None
    return None
