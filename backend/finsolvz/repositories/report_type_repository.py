"""CRUD and lookups over the `reporttypes` collection."""

from typing import List, Optional

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.asynchronous.database import AsyncDatabase

from finsolvz.database import REPORT_TYPES
from finsolvz.exceptions import NotFoundError
from finsolvz.models.base import utcnow
from finsolvz.models.report_type import ReportType
from finsolvz.repositories.base import store_errors

_CONFLICT = ("REPORT_TYPE_ALREADY_EXISTS", "Report type already exists")


def report_type_not_found() -> NotFoundError:
    return NotFoundError(message="Report type not found", code="REPORT_TYPE_NOT_FOUND")


class ReportTypeRepository:
    def __init__(self, db: AsyncDatabase):
        self.collection = db[REPORT_TYPES]

    async def find_by_id(self, report_type_id: ObjectId) -> Optional[ReportType]:
        with store_errors("find report type by id"):
            doc = await self.collection.find_one({"_id": report_type_id})
        return ReportType.model_validate(doc) if doc else None

    async def get_by_id(self, report_type_id: ObjectId) -> ReportType:
        report_type = await self.find_by_id(report_type_id)
        if report_type is None:
            raise report_type_not_found()
        return report_type

    async def find_by_name(self, name: str) -> Optional[ReportType]:
        with store_errors("find report type by name"):
            doc = await self.collection.find_one({"name": name})
        return ReportType.model_validate(doc) if doc else None

    async def get_by_name(self, name: str) -> ReportType:
        report_type = await self.find_by_name(name)
        if report_type is None:
            raise report_type_not_found()
        return report_type

    async def list_all(self) -> List[ReportType]:
        with store_errors("list report types"):
            docs = await self.collection.find({}).sort("name", ASCENDING).to_list(length=None)
        return [ReportType.model_validate(d) for d in docs]

    async def create(self, report_type: ReportType) -> ReportType:
        with store_errors("create report type", conflict=_CONFLICT):
            await self.collection.insert_one(report_type.to_document())
        return report_type

    async def update(self, report_type: ReportType) -> ReportType:
        report_type.updated_at = utcnow()
        with store_errors("update report type", conflict=_CONFLICT):
            result = await self.collection.update_one(
                {"_id": report_type.id},
                {"$set": {"name": report_type.name, "updatedAt": report_type.updated_at}},
            )
        if result.matched_count == 0:
            raise report_type_not_found()
        return report_type

    async def delete(self, report_type_id: ObjectId) -> None:
        with store_errors("delete report type"):
            result = await self.collection.delete_one({"_id": report_type_id})
        if result.deleted_count == 0:
            raise report_type_not_found()
