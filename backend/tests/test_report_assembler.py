"""
Report Population Tests

What we test:
    ✅ Pipeline shape: $match → paging → four lookups → flatten
    ✅ Paging stages precede the lookups
    ✅ User projections never include the password
    ✅ ReportResponse from aggregation output: ids as hex, embedded objects
    ✅ Missing references become null; the report is still returned
    ✅ Null/absent reportData and userAccess become []
    ✅ Legacy integer years become strings
    ✅ fetch_one raises REPORT_NOT_FOUND on an empty result

Strategy:
    The collection is an AsyncMock whose aggregate() returns a cursor mock,
    so no MongoDB is needed.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from finsolvz.exceptions import NotFoundError
from finsolvz.repositories.report_assembler import (
    USER_PROJECTION,
    ReportAssembler,
    build_pipeline,
)
from finsolvz.schemas.report import ReportResponse


def make_collection(docs):
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=docs)
    collection = MagicMock()
    collection.aggregate = AsyncMock(return_value=cursor)
    return collection


class TestBuildPipeline:
    def test_stage_order(self):
        pipeline = build_pipeline({"company": "x"})
        stages = [next(iter(stage)) for stage in pipeline]
        assert stages == ["$match", "$lookup", "$lookup", "$lookup", "$lookup", "$project"]

    def test_lookups_target_expected_collections(self):
        lookups = [s["$lookup"] for s in build_pipeline() if "$lookup" in s]
        assert [(l["from"], l["localField"], l["as"]) for l in lookups] == [
            ("companies", "company", "company"),
            ("reporttypes", "reportType", "reportType"),
            ("users", "createdBy", "createdBy"),
            ("users", "userAccess", "userAccess"),
        ]

    def test_paging_runs_before_lookups(self):
        pipeline = build_pipeline({}, sort={"createdAt": -1}, skip=20, limit=10)
        assert pipeline[1] == {"$sort": {"createdAt": -1}}
        assert pipeline[2] == {"$skip": 20}
        assert pipeline[3] == {"$limit": 10}
        assert "$lookup" in pipeline[4]

    def test_zero_skip_is_omitted(self):
        pipeline = build_pipeline({}, skip=0, limit=10)
        assert {"$skip": 0} not in pipeline

    def test_user_projection_excludes_password(self):
        assert "password" not in USER_PROJECTION
        user_lookups = [s["$lookup"] for s in build_pipeline() if s.get("$lookup", {}).get("from") == "users"]
        for lookup in user_lookups:
            assert "password" not in lookup["pipeline"][0]["$project"]

    def test_flatten_unwraps_single_references(self):
        flatten = build_pipeline()[-1]["$project"]
        assert flatten["company"] == {"$arrayElemAt": ["$company", 0]}
        assert flatten["userAccess"] == 1


class TestReportResponse:
    def test_populated_document(self, populated_report_doc):
        report = ReportResponse.model_validate(populated_report_doc)
        body = report.model_dump(by_alias=True)

        assert body["_id"] == "65f0a1b2c3d4e5f6a7b8c9d0"
        assert body["company"]["_id"] == "65f0a1b2c3d4e5f6a7b8c9d1"
        assert body["company"]["name"] == "Acme Corp"
        assert body["reportType"] == {"_id": "65f0a1b2c3d4e5f6a7b8c9d2", "name": "Balance Sheet"}
        assert body["createdBy"]["email"] == "ana@example.com"
        assert [u["_id"] for u in body["userAccess"]] == ["65f0a1b2c3d4e5f6a7b8c9d4"]
        assert body["reportData"] == [{"account": "Cash", "amount": 1500}]

    def test_password_never_embedded(self, populated_report_doc):
        populated_report_doc["createdBy"]["password"] = "$2b$12$hash"
        body = ReportResponse.model_validate(populated_report_doc).model_dump(by_alias=True)
        assert "password" not in body["createdBy"]

    def test_dangling_references_become_null(self, populated_report_doc):
        for field in ("company", "reportType", "createdBy"):
            del populated_report_doc[field]
        report = ReportResponse.model_validate(populated_report_doc)
        assert report.company is None
        assert report.report_type is None
        assert report.created_by is None
        assert report.report_name == "Q1 Balance Sheet"

    def test_null_collections_become_empty_lists(self, populated_report_doc):
        populated_report_doc["reportData"] = None
        del populated_report_doc["userAccess"]
        body = ReportResponse.model_validate(populated_report_doc).model_dump(by_alias=True)
        assert body["reportData"] == []
        assert body["userAccess"] == []

    def test_integer_year_is_string(self, populated_report_doc):
        populated_report_doc["year"] = 2023
        assert ReportResponse.model_validate(populated_report_doc).year == "2023"


class TestReportAssembler:
    @pytest.mark.asyncio
    async def test_fetch_sorts_newest_first(self, populated_report_doc):
        collection = make_collection([populated_report_doc])
        reports = await ReportAssembler(collection).fetch({"company": ObjectId()}, skip=10, limit=10)

        pipeline = collection.aggregate.await_args.args[0]
        assert pipeline[1] == {"$sort": {"createdAt": -1}}
        assert len(reports) == 1
        assert reports[0].company.name == "Acme Corp"

    @pytest.mark.asyncio
    async def test_fetch_one(self, populated_report_doc):
        collection = make_collection([populated_report_doc])
        oid = populated_report_doc["_id"]
        report = await ReportAssembler(collection).fetch_one({"_id": oid})

        pipeline = collection.aggregate.await_args.args[0]
        assert pipeline[0] == {"$match": {"_id": oid}}
        assert {"$limit": 1} in pipeline
        assert report.id == str(oid)

    @pytest.mark.asyncio
    async def test_fetch_one_not_found(self):
        with pytest.raises(NotFoundError) as exc_info:
            await ReportAssembler(make_collection([])).fetch_one({"_id": ObjectId()})
        assert exc_info.value.code == "REPORT_NOT_FOUND"
