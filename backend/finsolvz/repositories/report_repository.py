"""
Finsolvz Backend — Report Repository
=====================================

What:  Writes raw report documents and serves every read through the
       ReportAssembler.
Why:   Writes store only the four references; callers that need the joined
       shape read it back, which gives read-your-writes within a request.

Filters:
    by id            {"_id": id}
    by name          {"reportName": name}
    by company       {"company": id}
    by companies     {"company": {"$in": ids}}
    by report type   {"reportType": id}
    by user access   {"userAccess": id}        (array membership)
    by creator       {"createdBy": id}
"""

from typing import List, Optional, Tuple

from bson import ObjectId
from pymongo.asynchronous.database import AsyncDatabase

from finsolvz.database import REPORTS
from finsolvz.models.base import utcnow
from finsolvz.models.report import Report
from finsolvz.repositories.base import store_errors
from finsolvz.repositories.report_assembler import ReportAssembler, report_not_found
from finsolvz.schemas.report import ReportResponse


class ReportRepository:
    def __init__(self, db: AsyncDatabase, assembler: Optional[ReportAssembler] = None):
        self.collection = db[REPORTS]
        self.assembler = assembler or ReportAssembler(self.collection)

    # ── Writes (raw shape) ────────────────────────────────────────────────

    async def create(self, report: Report) -> ObjectId:
        with store_errors("create report", conflict=("REPORT_ALREADY_EXISTS", "Report already exists")):
            await self.collection.insert_one(report.to_document())
        return report.id

    async def get_raw(self, report_id: ObjectId) -> Report:
        with store_errors("find report"):
            doc = await self.collection.find_one({"_id": report_id})
        if not doc:
            raise report_not_found()
        return Report.model_validate(doc)

    async def update(self, report: Report) -> None:
        """`$set` every stored field; concurrent updates are last-write-wins."""
        report.updated_at = utcnow()
        fields = report.to_document()
        fields.pop("_id", None)
        fields.pop("createdAt", None)
        with store_errors("update report"):
            result = await self.collection.update_one({"_id": report.id}, {"$set": fields})
        if result.matched_count == 0:
            raise report_not_found()

    async def delete(self, report_id: ObjectId) -> None:
        with store_errors("delete report"):
            result = await self.collection.delete_one({"_id": report_id})
        if result.deleted_count == 0:
            raise report_not_found()

    # ── Reads (populated shape) ───────────────────────────────────────────

    async def get_by_id(self, report_id: ObjectId) -> ReportResponse:
        return await self.assembler.fetch_one({"_id": report_id})

    async def get_by_name(self, name: str) -> ReportResponse:
        return await self.assembler.fetch_one({"reportName": name})

    async def list_all(self) -> List[ReportResponse]:
        return await self.assembler.fetch()

    async def list_paginated(self, skip: int, limit: int) -> Tuple[List[ReportResponse], int]:
        with store_errors("count reports"):
            total = await self.collection.count_documents({})
        reports = await self.assembler.fetch(skip=skip, limit=limit)
        return reports, total

    async def list_by_company(self, company_id: ObjectId) -> List[ReportResponse]:
        return await self.assembler.fetch({"company": company_id})

    async def list_by_companies(self, company_ids: List[ObjectId]) -> List[ReportResponse]:
        return await self.assembler.fetch({"company": {"$in": list(company_ids)}})

    async def list_by_report_type(self, report_type_id: ObjectId) -> List[ReportResponse]:
        return await self.assembler.fetch({"reportType": report_type_id})

    async def list_by_user_access(self, user_id: ObjectId) -> List[ReportResponse]:
        return await self.assembler.fetch({"userAccess": user_id})

    async def list_by_created_by(self, user_id: ObjectId) -> List[ReportResponse]:
        return await self.assembler.fetch({"createdBy": user_id})
