"""
Finsolvz Backend — Custom Exception Hierarchy
==============================================

What:  Defines application-specific exceptions for every error class the API
       can return.
Why:   Every failure leaves the service as the same JSON shape
       (`code`, `message`, `details`, `request_id`) produced by one handler
       in main.py; routes never build error responses by hand.
How:   Each exception carries a stable machine code, a human message, an HTTP
       status, optional per-field details and the underlying cause.
Who:   Raised by repositories, services, security helpers and middleware.

Exception Hierarchy:
    FinsolvzError (base)                → 500 INTERNAL_SERVER_ERROR
    ├── ValidationError                 → 400 BAD_REQUEST
    ├── AuthenticationError             → 401 UNAUTHORIZED
    ├── PermissionDeniedError           → 403 FORBIDDEN
    ├── NotFoundError                   → 404 NOT_FOUND
    ├── RequestTimeoutError             → 408 REQUEST_TIMEOUT
    ├── ConflictError                   → 409 CONFLICT
    ├── RequestTooLargeError            → 413 REQUEST_TOO_LARGE
    ├── DatabaseError                   → 500 DATABASE_ERROR
    ├── ConfigurationError              → 500 CONFIGURATION_ERROR
    └── EmailDeliveryError              → 500 EMAIL_SEND_ERROR

Services narrow the code (e.g. COMPANY_ALREADY_EXISTS) while the class fixes
the status, so a store-level duplicate key and a pre-check hit produce the
same response.
"""

from typing import Any, Dict, Optional


class FinsolvzError(Exception):
    """
    Base exception for all Finsolvz application errors.

    Attributes:
        code:         Stable machine-readable code (e.g. REPORT_NOT_FOUND)
        message:      User-facing description (safe to return in API response)
        status_code:  HTTP status returned to the client
        details:      Per-field or contextual details returned for 4xx errors
        cause:        Underlying exception; logged, and only exposed to
                      clients when APP_ENV=development
    """

    status_code: int = 500
    default_code: str = "INTERNAL_SERVER_ERROR"
    default_message: str = "An unexpected internal server error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details or {}
        self.cause = cause
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, status={self.status_code}, message={self.message!r})"


class ValidationError(FinsolvzError):
    """
    Raised when client input fails validation or a business rule.

    When:  Malformed object ids, empty names after trimming, fewer than two
           companies in a comparison request, mismatched passwords.
    HTTP:  400 Bad Request

    Example response:
        {
            "code": "INSUFFICIENT_COMPANIES",
            "message": "Need 2 or more companies",
            "details": {"field": "companyIds"}
        }
    """

    status_code = 400
    default_code = "BAD_REQUEST"
    default_message = "Bad request"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        ctx = details or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, code=code, details=ctx, cause=cause)
        self.field = field


class AuthenticationError(FinsolvzError):
    """Missing, malformed, expired or invalid credentials. HTTP 401."""

    status_code = 401
    default_code = "UNAUTHORIZED"
    default_message = "Authentication required"


class PermissionDeniedError(FinsolvzError):
    """Valid session but the caller's role is below the route's minimum. HTTP 403."""

    status_code = 403
    default_code = "FORBIDDEN"
    default_message = "Access denied"


class NotFoundError(FinsolvzError):
    """
    Raised when a requested entity does not exist.

    The driver returns None (or an empty aggregation) for missing documents;
    repositories convert that into NotFoundError with the entity's code.
    """

    status_code = 404
    default_code = "NOT_FOUND"
    default_message = "Resource not found"


class RequestTimeoutError(FinsolvzError):
    status_code = 408
    default_code = "REQUEST_TIMEOUT"
    default_message = "Request processing exceeded the allowed time"


class ConflictError(FinsolvzError):
    """
    Raised on uniqueness violations (email, company name, report-type name).

    Both detection paths raise it: the service pre-check and the unique index
    rejecting a concurrent insert with DuplicateKeyError.
    """

    status_code = 409
    default_code = "CONFLICT"
    default_message = "Resource already exists"


class RequestTooLargeError(FinsolvzError):
    status_code = 413
    default_code = "REQUEST_TOO_LARGE"
    default_message = "Request body exceeds the maximum allowed size"


class DatabaseError(FinsolvzError):
    """
    Raised when a MongoDB operation fails unexpectedly.

    Security Note:
        The raw driver error is kept in `cause` and logged server-side; it is
        only echoed to the client in development mode.
    """

    default_code = "DATABASE_ERROR"
    default_message = "A database error occurred. Please try again later."


class ConfigurationError(FinsolvzError):
    """Required server configuration (JWT secret, Mongo URI, SMTP credentials) is missing."""

    default_code = "CONFIGURATION_ERROR"
    default_message = "Server is not configured correctly"


class EmailDeliveryError(FinsolvzError):
    default_code = "EMAIL_SEND_ERROR"
    default_message = "Failed to send email"
