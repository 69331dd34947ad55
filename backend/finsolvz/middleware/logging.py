"""
Finsolvz Backend — Request Logging Middleware
==============================================

What:  One access-log line per request on the `finsolvz.access` logger.
How:   Measures wall time around the downstream chain and logs method, path,
       status, duration, request id and client address.

Log level follows the status class so alerting can key on severity:
    5xx → ERROR, 4xx → WARNING, everything else → INFO

What we log vs what we DON'T log (privacy):
    ✅ method, path, status, duration, client address, request id
    ❌ request bodies (passwords, financial payloads), Authorization headers
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from finsolvz.middleware.request_id import request_id_var

logger = logging.getLogger("finsolvz.access")


def client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        rid = request_id_var.get("")
        client_ip = client_address(request)
        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            request.url.path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
