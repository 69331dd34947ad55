"""
Finsolvz Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes configuration, middleware registration, route mounting,
       shared-state construction and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (`uvicorn finsolvz.main:app`) or the `finsolvz-server` script.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                         FastAPI App                          │
    │                                                              │
    │  Middleware Chain (outermost first):                         │
    │  Request ID → Logging → Recovery → GZip → Request Limit      │
    │             → Rate Limit → CORS → router                     │
    │                                                              │
    │  Routes:                                                     │
    │  /api/login …  /api/users …  /api/company …                  │
    │  /api/reportTypes …  /api/reports …  GET /                   │
    │                                                              │
    │  Shared state (app.state):                                   │
    │  cache (TTLCache) · rate_limiter · mongo_client · database   │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config validation → MongoDB connect + indexes
              → cache and rate-limiter sweep tasks
    Shutdown: cancel sweep tasks → close MongoDB client
"""

import asyncio
import contextlib
import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from finsolvz import __version__, database
from finsolvz.cache import TTLCache
from finsolvz.config import settings
from finsolvz.exceptions import ConfigurationError, FinsolvzError, ValidationError
from finsolvz.middleware.logging import RequestLoggingMiddleware
from finsolvz.middleware.rate_limit import FixedWindowRateLimiter, RateLimitMiddleware
from finsolvz.middleware.recovery import RecoveryMiddleware
from finsolvz.middleware.request_id import RequestIDMiddleware, request_id_var
from finsolvz.middleware.request_limit import RequestLimitMiddleware
from finsolvz.responses import error_response
from finsolvz.routes import auth, companies, health, report_types, reports, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once at startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # finsolvz.access already logs every request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup sequence:
        1. Setup logging
        2. Validate critical configuration (fatal in production)
        3. Connect to MongoDB and ensure indexes
        4. Start the cache and rate-limiter sweep tasks

    Shutdown sequence:
        1. Cancel sweep tasks
        2. Close the MongoDB client

    With APP_ENV=production a missing MONGO_URI/JWT_SECRET or an unreachable
    MongoDB aborts startup. In other environments the server still starts;
    data routes then answer DATABASE_UNAVAILABLE (500) and the health check
    keeps responding.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Finsolvz Backend starting up (env=%s)...", settings.app_env)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        if settings.is_production:
            raise ConfigurationError(message=str(e), code="CONFIG_INVALID") from e

    try:
        client = await database.connect()
    except FinsolvzError as e:
        logger.error("MongoDB unavailable [%s]: %s (cause: %s)", e.code, e.message, e.cause)
        if settings.is_production:
            raise
    else:
        app.state.mongo_client = client
        app.state.database = client[settings.mongo_db_name]
        await database.ensure_indexes(app.state.database)

    interval = settings.cache_sweep_interval_seconds
    sweepers: List[asyncio.Task] = [
        asyncio.create_task(app.state.cache.run_sweeper(interval), name="cache-sweeper"),
        asyncio.create_task(app.state.rate_limiter.run_sweeper(interval), name="rate-limit-sweeper"),
    ]

    logger.info("Server ready at http://%s:%d", settings.host, settings.port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Finsolvz Backend shutting down...")
    for task in sweepers:
        task.cancel()
    for task in sweepers:
        with contextlib.suppress(asyncio.CancelledError):
            await task

    await database.close(getattr(app.state, "mongo_client", None))
    app.state.database = None
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

FIELD_MESSAGES = {
    "missing": "This field is required",
    "string_too_short": "This field is too short",
    "too_short": "This field is too short",
    "string_too_long": "This field is too long",
    "too_long": "This field is too long",
}

HTTP_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    408: "REQUEST_TIMEOUT",
    413: "REQUEST_TOO_LARGE",
    429: "TOO_MANY_REQUESTS",
}


def field_message(error: Dict[str, Any]) -> str:
    error_type = error.get("type", "")
    if error_type in FIELD_MESSAGES:
        return FIELD_MESSAGES[error_type]
    if "email" in str(error.get("msg", "")).lower():
        return "Please provide a valid email address"
    return "Invalid value provided"


def field_name(loc: Any) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "body"


def validation_failure(errors: List[Dict[str, Any]]) -> ValidationError:
    """Collapse pydantic errors into one VALIDATION_ERROR (or INVALID_JSON) error."""
    if any(e.get("type") == "json_invalid" for e in errors):
        return ValidationError(message="Invalid JSON format", code="INVALID_JSON")
    details = {field_name(e.get("loc", ())): field_message(e) for e in errors}
    return ValidationError(message="Validation failed", code="VALIDATION_ERROR", details=details)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers.

    Handler hierarchy:
        FinsolvzError (all subclasses)  → exc.status_code, exc.code
        RequestValidationError          → 400 VALIDATION_ERROR / INVALID_JSON
        HTTPException (routing, limits) → status-derived code
        anything else                   → RecoveryMiddleware → 500
    """

    @app.exception_handler(FinsolvzError)
    async def handle_app_error(request: Request, exc: FinsolvzError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | cause: %r", rid, exc.code, exc.message, exc.cause)
        else:
            logger.warning("[%s] %s: %s", rid, exc.code, exc.message)
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        error = validation_failure(list(exc.errors()))
        logger.warning("[%s] %s on %s %s", request_id_var.get(""), error.code, request.method, request.url.path)
        return error_response(error)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        error = FinsolvzError(
            message=str(exc.detail),
            code=HTTP_STATUS_CODES.get(exc.status_code, "HTTP_ERROR"),
            status_code=exc.status_code,
        )
        return error_response(error, headers=getattr(exc, "headers", None))


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    cache: Optional[TTLCache] = None,
    rate_limiter: Optional[FixedWindowRateLimiter] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        cache:        TTL cache shared by services (built from settings if omitted)
        rate_limiter: Limiter used by RateLimitMiddleware (built from settings if omitted)
    """
    app = FastAPI(
        title="Finsolvz API",
        description="Multi-tenant financial reporting: users, companies, report types and reports.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Shared State ──────────────────────────────────────────────────────
    # Both define __len__, so an empty injected instance is falsy
    if cache is None:
        cache = TTLCache(default_ttl=settings.cache_ttl_seconds)
    if rate_limiter is None:
        rate_limiter = FixedWindowRateLimiter(
            limit=settings.rate_limit_requests,
            window=settings.rate_limit_window,
        )
    app.state.cache = cache
    app.state.rate_limiter = rate_limiter
    app.state.mongo_client = None
    app.state.database = None

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = outermost. Added innermost-first so requests flow:
    # RequestID → Logging → Recovery → GZip → RequestLimit → RateLimit → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "Retry-After",
        ],
    )
    app.add_middleware(RateLimitMiddleware, limiter=app.state.rate_limiter)
    app.add_middleware(
        RequestLimitMiddleware,
        max_body_bytes=settings.max_request_body_bytes,
        timeout_seconds=settings.request_timeout_seconds,
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RecoveryMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(companies.router)
    app.include_router(report_types.router)
    app.include_router(reports.router)

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn on HOST:PORT."""
    uvicorn.run("finsolvz.main:app", host=settings.host, port=settings.port)


# uvicorn expects `finsolvz.main:app` to be importable
app = create_app()
