"""
Finsolvz Backend — User Repository
===================================

What:  CRUD and lookups over the `users` collection.
Notes:
    - Listing projects the password hash out at the query level
    - Create/update duplicate-key failures on the unique email index map to
      the same conflict codes the service pre-checks raise
    - Reset tokens are only matched while `resetPasswordExpires` is in the future
"""

from datetime import datetime
from typing import List, Optional

from bson import ObjectId
from pymongo.asynchronous.database import AsyncDatabase

from finsolvz.database import USERS
from finsolvz.exceptions import NotFoundError, ValidationError
from finsolvz.models.base import utcnow
from finsolvz.models.user import User
from finsolvz.repositories.base import store_errors

_NO_PASSWORD = {"password": 0}


def user_not_found() -> NotFoundError:
    return NotFoundError(message="User not found", code="USER_NOT_FOUND")


class UserRepository:
    def __init__(self, db: AsyncDatabase):
        self.collection = db[USERS]

    async def find_by_id(self, user_id: ObjectId) -> Optional[User]:
        with store_errors("find user by id"):
            doc = await self.collection.find_one({"_id": user_id})
        return User.model_validate(doc) if doc else None

    async def get_by_id(self, user_id: ObjectId) -> User:
        user = await self.find_by_id(user_id)
        if user is None:
            raise user_not_found()
        return user

    async def find_by_email(self, email: str) -> Optional[User]:
        with store_errors("find user by email"):
            doc = await self.collection.find_one({"email": email})
        return User.model_validate(doc) if doc else None

    async def get_by_email(self, email: str) -> User:
        user = await self.find_by_email(email)
        if user is None:
            raise user_not_found()
        return user

    async def list_all(self) -> List[User]:
        with store_errors("list users"):
            docs = await self.collection.find({}, _NO_PASSWORD).to_list(length=None)
        return [User.model_validate(d) for d in docs]

    async def list_by_ids(self, user_ids: List[ObjectId]) -> List[User]:
        """One `$in` query for a batch of ids; missing ids are simply absent."""
        if not user_ids:
            return []
        with store_errors("list users by ids"):
            docs = await self.collection.find({"_id": {"$in": list(user_ids)}}, _NO_PASSWORD).to_list(length=None)
        return [User.model_validate(d) for d in docs]

    async def create(self, user: User) -> User:
        with store_errors("create user", conflict=("USER_ALREADY_EXISTS", "User already exists")):
            await self.collection.insert_one(user.to_document())
        return user

    async def update(self, user: User, password_hash: Optional[str] = None) -> User:
        """Persist profile fields; the password is only written when a new hash is given."""
        user.updated_at = utcnow()
        fields = {
            "name": user.name,
            "email": user.email,
            "role": user.role.value,
            "company": user.company,
            "updatedAt": user.updated_at,
        }
        if password_hash:
            fields["password"] = password_hash
            user.password = password_hash

        with store_errors("update user", conflict=("EMAIL_ALREADY_EXISTS", "Email already exists")):
            result = await self.collection.update_one({"_id": user.id}, {"$set": fields})
        if result.matched_count == 0:
            raise user_not_found()
        return user

    async def update_password(self, user_id: ObjectId, password_hash: str) -> None:
        with store_errors("update password"):
            result = await self.collection.update_one(
                {"_id": user_id},
                {"$set": {"password": password_hash, "updatedAt": utcnow()}},
            )
        if result.matched_count == 0:
            raise user_not_found()

    async def set_reset_token(self, user_id: ObjectId, token: str, expires: datetime) -> None:
        with store_errors("set reset token"):
            result = await self.collection.update_one(
                {"_id": user_id},
                {"$set": {"resetPasswordToken": token, "resetPasswordExpires": expires}},
            )
        if result.matched_count == 0:
            raise user_not_found()

    async def get_by_reset_token(self, token: str) -> User:
        with store_errors("find user by reset token"):
            doc = await self.collection.find_one(
                {"resetPasswordToken": token, "resetPasswordExpires": {"$gt": utcnow()}}
            )
        if not doc:
            raise ValidationError(message="Invalid or expired reset token", code="INVALID_TOKEN")
        return User.model_validate(doc)

    async def reset_password(self, user_id: ObjectId, password_hash: str) -> None:
        """Set a new password and consume the reset token."""
        with store_errors("reset password"):
            result = await self.collection.update_one(
                {"_id": user_id},
                {
                    "$set": {"password": password_hash, "updatedAt": utcnow()},
                    "$unset": {"resetPasswordToken": "", "resetPasswordExpires": ""},
                },
            )
        if result.matched_count == 0:
            raise user_not_found()

    async def delete(self, user_id: ObjectId) -> None:
        with store_errors("delete user"):
            result = await self.collection.delete_one({"_id": user_id})
        if result.deleted_count == 0:
            raise user_not_found()
