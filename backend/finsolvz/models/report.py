"""
Raw report documents.

Only the four references (reportType, company, createdBy, userAccess) are
persisted; the populated read shape is produced by the report assembler.

Year migration note:
    `year` is a string everywhere. Documents written by older deployments
    may hold an integer; it is coerced to its decimal string on read and
    rewritten as a string by the next update of that report.
"""

from datetime import datetime
from typing import Any, List, Optional

from bson import ObjectId
from pydantic import Field, field_validator

from finsolvz.models.base import MongoDocument, utcnow


def coerce_year(value: Any) -> Any:
    """Legacy integer years become strings; everything else passes through."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(int(value))
    return value


class Report(MongoDocument):
    report_name: str = Field(alias="reportName")
    report_type: ObjectId = Field(alias="reportType")
    year: str
    company: ObjectId
    currency: Optional[str] = None
    created_by: ObjectId = Field(alias="createdBy")
    user_access: List[ObjectId] = Field(default_factory=list, alias="userAccess")
    report_data: Any = Field(default_factory=list, alias="reportData")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    @field_validator("year", mode="before")
    @classmethod
    def normalize_year(cls, v: Any) -> Any:
        return coerce_year(v)

    @field_validator("user_access", mode="before")
    @classmethod
    def default_user_access(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("report_data", mode="before")
    @classmethod
    def default_report_data(cls, v: Any) -> Any:
        return [] if v is None else v
