"""CRUD and lookups over the `companies` collection."""

from typing import List, Optional

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.asynchronous.database import AsyncDatabase

from finsolvz.database import COMPANIES, NAME_COLLATION
from finsolvz.exceptions import NotFoundError
from finsolvz.models.base import utcnow
from finsolvz.models.company import Company
from finsolvz.repositories.base import store_errors

LIST_LIMIT = 100
_CONFLICT = ("COMPANY_ALREADY_EXISTS", "Company already exists")


def company_not_found() -> NotFoundError:
    return NotFoundError(message="Company not found", code="COMPANY_NOT_FOUND")


class CompanyRepository:
    def __init__(self, db: AsyncDatabase):
        self.collection = db[COMPANIES]

    async def find_by_id(self, company_id: ObjectId) -> Optional[Company]:
        with store_errors("find company by id"):
            doc = await self.collection.find_one({"_id": company_id})
        return Company.model_validate(doc) if doc else None

    async def get_by_id(self, company_id: ObjectId) -> Company:
        company = await self.find_by_id(company_id)
        if company is None:
            raise company_not_found()
        return company

    async def find_by_name(self, name: str) -> Optional[Company]:
        """Exact match first, then a case-insensitive match on the collated index."""
        with store_errors("find company by name"):
            doc = await self.collection.find_one({"name": name})
            if doc is None:
                doc = await self.collection.find_one({"name": name}, collation=NAME_COLLATION)
        return Company.model_validate(doc) if doc else None

    async def get_by_name(self, name: str) -> Company:
        company = await self.find_by_name(name)
        if company is None:
            raise company_not_found()
        return company

    async def list_all(self, limit: int = LIST_LIMIT) -> List[Company]:
        with store_errors("list companies"):
            cursor = self.collection.find({}).sort("createdAt", DESCENDING).limit(limit)
            docs = await cursor.to_list(length=None)
        return [Company.model_validate(d) for d in docs]

    async def list_for_user(self, user_id: ObjectId) -> List[Company]:
        with store_errors("list companies for user"):
            docs = await self.collection.find({"user": user_id}).to_list(length=None)
        return [Company.model_validate(d) for d in docs]

    async def create(self, company: Company) -> Company:
        with store_errors("create company", conflict=_CONFLICT):
            await self.collection.insert_one(company.to_document())
        return company

    async def update(self, company: Company) -> Company:
        company.updated_at = utcnow()
        fields = {
            "name": company.name,
            "profilePicture": company.profile_picture,
            "user": company.user,
            "updatedAt": company.updated_at,
        }
        with store_errors("update company", conflict=_CONFLICT):
            result = await self.collection.update_one({"_id": company.id}, {"$set": fields})
        if result.matched_count == 0:
            raise company_not_found()
        return company

    async def delete(self, company_id: ObjectId) -> None:
        with store_errors("delete company"):
            result = await self.collection.delete_one({"_id": company_id})
        if result.deleted_count == 0:
            raise company_not_found()
