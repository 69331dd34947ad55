"""
Finsolvz Backend — User Service
================================

What:  Registration, user reads, profile and role updates, deletion and
       self-service password change.

Uniqueness:
    Email is checked before insert/update (USER_ALREADY_EXISTS on register,
    EMAIL_ALREADY_EXISTS on update). The unique index on users.email is the
    real guarantee; a concurrent duplicate surfaces from the repository with
    the same code.
"""

import logging
from typing import List

from bson import ObjectId

from finsolvz.auth import Principal
from finsolvz.exceptions import ConflictError, ValidationError
from finsolvz.models.user import Role, User
from finsolvz.repositories.base import parse_object_id, parse_object_ids
from finsolvz.repositories.user_repository import UserRepository
from finsolvz.schemas.user import RegisterRequest, UpdateUserRequest, UserResponse
from finsolvz.security import hash_password

logger = logging.getLogger(__name__)


def parse_user_id(user_id: str) -> ObjectId:
    return parse_object_id(user_id, "INVALID_USER_ID", "user")


class UserService:
    def __init__(self, users: UserRepository):
        self.users = users

    async def list_users(self) -> List[UserResponse]:
        return [UserResponse.from_user(u) for u in await self.users.list_all()]

    async def get_user(self, user_id: str) -> UserResponse:
        user = await self.users.get_by_id(parse_user_id(user_id))
        return UserResponse.from_user(user)

    async def get_login_user(self, principal: Principal) -> UserResponse:
        return await self.get_user(principal.user_id)

    async def register(self, request: RegisterRequest) -> UserResponse:
        email = str(request.email)
        if await self.users.find_by_email(email) is not None:
            raise ConflictError(message="User already exists", code="USER_ALREADY_EXISTS")

        user = User(
            id=ObjectId(),
            name=request.name.strip(),
            email=email,
            password=hash_password(request.password),
            role=request.role,
            company=parse_object_ids(request.company, "INVALID_COMPANY_ID", "company"),
        )
        await self.users.create(user)
        logger.info("Registered user %s with role %s", user.id, user.role.value)
        return UserResponse.from_user(user)

    async def update_user(self, user_id: str, request: UpdateUserRequest) -> UserResponse:
        user = await self.users.get_by_id(parse_user_id(user_id))

        if request.name is not None:
            user.name = request.name.strip()
        if request.email is not None and str(request.email) != user.email:
            existing = await self.users.find_by_email(str(request.email))
            if existing is not None and existing.id != user.id:
                raise ConflictError(message="Email already exists", code="EMAIL_ALREADY_EXISTS")
            user.email = str(request.email)
        if request.role is not None:
            user.role = request.role
        if request.company is not None:
            user.company = parse_object_ids(request.company, "INVALID_COMPANY_ID", "company")

        password_hash = hash_password(request.password) if request.password else None
        await self.users.update(user, password_hash=password_hash)
        return UserResponse.from_user(user)

    async def delete_user(self, user_id: str) -> UserResponse:
        oid = parse_user_id(user_id)
        user = await self.users.get_by_id(oid)
        await self.users.delete(oid)
        logger.info("Deleted user %s", oid)
        return UserResponse.from_user(user)

    async def update_role(self, user_id: str, role: Role) -> UserResponse:
        user = await self.users.get_by_id(parse_user_id(user_id))
        user.role = role
        await self.users.update(user)
        return UserResponse.from_user(user)

    async def change_password(self, principal: Principal, new_password: str, confirm_password: str) -> None:
        if new_password != confirm_password:
            raise ValidationError(
                message="Passwords do not match",
                code="PASSWORD_MISMATCH",
                field="confirmPassword",
            )
        await self.users.update_password(principal.object_id, hash_password(new_password))
