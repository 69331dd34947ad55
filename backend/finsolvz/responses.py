"""
Finsolvz Backend — Error Response Shaping
==========================================

What:  The single function that turns a FinsolvzError into an HTTP response.
Why:   Exception handlers and the pure-ASGI middlewares (recovery, request
       limits) must emit byte-identical error bodies.

Body:
    {
        "code": "COMPANY_ALREADY_EXISTS",
        "message": "Company already exists",
        "details": {...},          # 4xx: per-field/context map, when present
                                   # 5xx: internal error text, development only
        "request_id": "a1b2c3d4"
    }
"""

from typing import Any, Dict, Optional

from starlette.responses import JSONResponse

from finsolvz.config import settings
from finsolvz.exceptions import FinsolvzError
from finsolvz.middleware.request_id import request_id_var


def error_payload(exc: FinsolvzError, include_internal: Optional[bool] = None) -> Dict[str, Any]:
    if include_internal is None:
        include_internal = settings.is_development

    payload: Dict[str, Any] = {"code": exc.code, "message": exc.message}
    if exc.status_code >= 500:
        if include_internal:
            payload["details"] = str(exc.cause) if exc.cause is not None else exc.message
    elif exc.details:
        payload["details"] = exc.details
    payload["request_id"] = request_id_var.get("")
    return payload


def error_response(
    exc: FinsolvzError,
    include_internal: Optional[bool] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(exc, include_internal),
        headers=headers,
    )
