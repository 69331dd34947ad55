"""User accounts and the role ladder."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import Field

from finsolvz.models.base import MongoDocument, utcnow


class Role(str, Enum):
    """
    Account roles, highest first: SUPER_ADMIN > ADMIN > CLIENT.

    `rank` gives the ordering used by the route guard's minimum-role checks.
    """

    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    CLIENT = "CLIENT"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def satisfies(self, minimum: "Role") -> bool:
        return self.rank >= minimum.rank


_ROLE_RANK = {Role.CLIENT: 1, Role.ADMIN: 2, Role.SUPER_ADMIN: 3}


class User(MongoDocument):
    """A `users` document. `password` holds the bcrypt hash and is never serialized outward."""

    name: str
    email: str
    password: str = ""
    role: Role = Role.CLIENT
    company: List[ObjectId] = Field(default_factory=list)
    reset_password_token: Optional[str] = Field(default=None, alias="resetPasswordToken")
    reset_password_expires: Optional[datetime] = Field(default=None, alias="resetPasswordExpires")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    def to_document(self) -> Dict[str, Any]:
        doc = super().to_document()
        doc["role"] = self.role.value
        return doc
