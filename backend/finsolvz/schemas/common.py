"""
Finsolvz Backend — Shared Schema Types
=======================================

What:  Field types and envelope models reused across entity schemas.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, Optional

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, Field

from finsolvz.models.report import coerce_year


def stringify_object_id(value: Any) -> Any:
    """ObjectIds leave the service as 24-char hex strings, never raw."""
    if isinstance(value, ObjectId):
        return str(value)
    return value


# A hex id on the wire; accepts an ObjectId or an already-stringified id
ObjectIdStr = Annotated[str, BeforeValidator(stringify_object_id)]

# Year is a string end to end; legacy integers are coerced on the way out
YearStr = Annotated[str, BeforeValidator(coerce_year)]


class APIModel(BaseModel):
    model_config = {"populate_by_name": True}


class Timestamps(APIModel):
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class MessageResponse(APIModel):
    message: str


class ErrorResponse(BaseModel):
    """
    What:  Standard error envelope for every 4xx/5xx the API returns.

    Example:
        {"code": "REPORT_NOT_FOUND", "message": "Report not found",
         "request_id": "a1b2c3d4"}
    """

    code: str = Field(description="Stable machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Any] = Field(
        default=None,
        description="Per-field map for validation errors; internal detail in development mode",
    )
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    message: str = Field(description="Service greeting")
    status: str = Field(description="Always 'healthy' when the process is serving")


class PaginationMeta(BaseModel):
    page: int
    limit: int
    skip: int
    total: int


# Reused by route decorators
ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
    403: {"description": "Role not permitted", "model": ErrorResponse},
    404: {"description": "Not found", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


def error_responses(*codes: int) -> Dict[int, Dict[str, Any]]:
    return {code: ERROR_RESPONSES.get(code, {"model": ErrorResponse}) for code in codes}
