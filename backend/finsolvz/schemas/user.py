"""
User schemas.

`UserResponse` is the only outward representation of a user and has no
password field, so a hash can never be serialized by accident.
"""

from typing import List, Optional

from pydantic import EmailStr, Field

from finsolvz.models.user import Role, User
from finsolvz.schemas.common import APIModel, ObjectIdStr, Timestamps


class UserResponse(Timestamps):
    id: ObjectIdStr = Field(alias="_id")
    name: str
    email: str
    role: Role
    company: List[ObjectIdStr] = Field(default_factory=list)

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            company=list(user.company),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserSummary(Timestamps):
    """Projection embedded in populated reports (creator, userAccess)."""

    id: ObjectIdStr = Field(alias="_id")
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None


class RegisterRequest(APIModel):
    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Role
    company: List[str] = Field(default_factory=list)


class RegisterResponse(APIModel):
    message: str
    new_user: UserResponse = Field(alias="newUser")


class UpdateUserRequest(APIModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6)
    role: Optional[Role] = None
    company: Optional[List[str]] = None


class UpdateUserResponse(APIModel):
    message: str
    updated_user: UserResponse = Field(alias="updatedUser")


class UpdateRoleRequest(APIModel):
    user_id: str = Field(alias="userId", min_length=1)
    new_role: Role = Field(alias="newRole")


class UserEnvelope(APIModel):
    message: str
    user: UserResponse
