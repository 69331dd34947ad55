from datetime import datetime
from typing import List, Optional

from bson import ObjectId
from pydantic import Field

from finsolvz.models.base import MongoDocument, utcnow


class Company(MongoDocument):
    """A `companies` document; `user` lists the associated user ids."""

    name: str
    profile_picture: Optional[str] = Field(default=None, alias="profilePicture")
    user: List[ObjectId] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")
