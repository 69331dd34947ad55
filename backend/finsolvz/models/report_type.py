from datetime import datetime

from pydantic import Field

from finsolvz.models.base import MongoDocument, utcnow


class ReportType(MongoDocument):
    """A `reporttypes` document: a flat, uniquely named lookup entity."""

    name: str
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")
