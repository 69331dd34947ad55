"""Shared configuration for MongoDB document models."""

from datetime import datetime, timezone
from typing import Any, Dict

from bson import ObjectId
from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MongoDocument(BaseModel):
    """
    Base for documents read from a collection.

    `_id` is exposed as `id`; every other field keeps its stored camelCase
    name through an alias so `model_validate(raw)` works on driver output.
    """

    id: ObjectId = Field(alias="_id")

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
        "extra": "ignore",
    }

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="python")
