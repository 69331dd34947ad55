"""
Finsolvz Backend — Report Read-Model Assembler
===============================================

What:  Produces populated reports: each report with its company, report type,
       creator and user-access list embedded instead of referenced by id.
Why:   Every report read needs all four joins; doing them in one aggregation
       avoids N+1 round trips.
How:   One pipeline per read:

    $match (filter)
      → [$sort / $skip / $limit]                       (list reads)
      → $lookup companies   as company     (_id, name, profilePicture, timestamps)
      → $lookup reporttypes as reportType  (_id, name)
      → $lookup users       as createdBy   (_id, name, email, role, timestamps)
      → $lookup users       as userAccess  (same projection, stays a list)
      → $project flattening company/reportType/createdBy with $arrayElemAt 0

Dangling references:
    A lookup that matches nothing yields an empty array; $arrayElemAt on an
    empty array drops the field, which the response model reads as null.
    The report itself is still returned.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from pymongo.asynchronous.collection import AsyncCollection

from finsolvz.database import COMPANIES, REPORT_TYPES, USERS
from finsolvz.exceptions import NotFoundError
from finsolvz.repositories.base import store_errors
from finsolvz.schemas.report import ReportResponse

logger = logging.getLogger(__name__)

COMPANY_PROJECTION = {"_id": 1, "name": 1, "profilePicture": 1, "createdAt": 1, "updatedAt": 1}
REPORT_TYPE_PROJECTION = {"_id": 1, "name": 1}
# Password is never part of the user projection
USER_PROJECTION = {"_id": 1, "name": 1, "email": 1, "role": 1, "createdAt": 1, "updatedAt": 1}

LIST_SORT = {"createdAt": -1}


def lookup_stage(source: str, local_field: str, projection: Mapping[str, int], as_field: Optional[str] = None) -> Dict[str, Any]:
    return {
        "$lookup": {
            "from": source,
            "localField": local_field,
            "foreignField": "_id",
            "as": as_field or local_field,
            "pipeline": [{"$project": dict(projection)}],
        }
    }


def flatten_stage() -> Dict[str, Any]:
    return {
        "$project": {
            "_id": 1,
            "reportName": 1,
            "year": 1,
            "currency": 1,
            "reportData": 1,
            "createdAt": 1,
            "updatedAt": 1,
            "userAccess": 1,
            "company": {"$arrayElemAt": ["$company", 0]},
            "reportType": {"$arrayElemAt": ["$reportType", 0]},
            "createdBy": {"$arrayElemAt": ["$createdBy", 0]},
        }
    }


def build_pipeline(
    match: Optional[Mapping[str, Any]] = None,
    sort: Optional[Mapping[str, int]] = None,
    skip: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Build the population pipeline for a report filter.

    Paging stages run before the lookups so only the requested page is joined.
    """
    pipeline: List[Dict[str, Any]] = [{"$match": dict(match or {})}]
    if sort:
        pipeline.append({"$sort": dict(sort)})
    if skip:
        pipeline.append({"$skip": skip})
    if limit:
        pipeline.append({"$limit": limit})
    pipeline.extend(
        [
            lookup_stage(COMPANIES, "company", COMPANY_PROJECTION),
            lookup_stage(REPORT_TYPES, "reportType", REPORT_TYPE_PROJECTION),
            lookup_stage(USERS, "createdBy", USER_PROJECTION),
            lookup_stage(USERS, "userAccess", USER_PROJECTION),
            flatten_stage(),
        ]
    )
    return pipeline


def report_not_found() -> NotFoundError:
    return NotFoundError(message="Report not found", code="REPORT_NOT_FOUND")


class ReportAssembler:
    """Runs population pipelines against the `reports` collection."""

    def __init__(self, collection: AsyncCollection):
        self.collection = collection

    async def fetch(
        self,
        match: Optional[Mapping[str, Any]] = None,
        skip: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[ReportResponse]:
        pipeline = build_pipeline(match, sort=LIST_SORT, skip=skip, limit=limit)
        with store_errors("assemble reports"):
            cursor = await self.collection.aggregate(pipeline)
            docs = await cursor.to_list(length=None)
        return [ReportResponse.model_validate(doc) for doc in docs]

    async def fetch_one(self, match: Mapping[str, Any]) -> ReportResponse:
        """First populated report matching `match`; REPORT_NOT_FOUND when none."""
        pipeline = build_pipeline(match, limit=1)
        with store_errors("assemble report"):
            cursor = await self.collection.aggregate(pipeline)
            docs = await cursor.to_list(length=None)
        if not docs:
            raise report_not_found()
        return ReportResponse.model_validate(docs[0])
