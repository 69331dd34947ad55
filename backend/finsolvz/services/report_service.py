"""
Finsolvz Backend — Report Service
==================================

What:  Report CRUD and every filtered populated read.

Write path:
    request ids → ObjectIds (entity-specific INVALID_*_ID on bad input)
    → raw Report document persisted → read back through the assembler,
    so the caller always receives the fully populated report it just wrote.

Business rules:
    - reportName and year are trimmed and must be non-empty
    - reportData defaults to [] when omitted
    - reports-by-companies needs two or more company ids
      (INSUFFICIENT_COMPANIES); comparison views are meaningless otherwise
"""

import logging
from typing import Any, List, Optional

from bson import ObjectId

from finsolvz.exceptions import ValidationError
from finsolvz.models.report import Report
from finsolvz.repositories.base import parse_object_id, parse_object_ids
from finsolvz.repositories.report_repository import ReportRepository
from finsolvz.schemas.common import PaginationMeta
from finsolvz.schemas.report import (
    CreateReportRequest,
    PaginatedReports,
    ReportResponse,
    UpdateReportRequest,
)

logger = logging.getLogger(__name__)

MIN_COMPARISON_COMPANIES = 2
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def _report_id(value: str) -> ObjectId:
    return parse_object_id(value, "INVALID_REPORT_ID", "report")


def _company_id(value: str) -> ObjectId:
    return parse_object_id(value, "INVALID_COMPANY_ID", "company")


def _report_type_id(value: str) -> ObjectId:
    return parse_object_id(value, "INVALID_REPORT_TYPE_ID", "report type")


def _user_id(value: str) -> ObjectId:
    return parse_object_id(value, "INVALID_USER_ID", "user")


def _required_text(value: Optional[str], code: str, field: str) -> str:
    trimmed = (value or "").strip()
    if not trimmed:
        raise ValidationError(message=f"{field} cannot be empty", code=code, field=field)
    return trimmed


def _report_data(value: Any) -> Any:
    return [] if value is None else value


def page_window(page: Optional[int], limit: Optional[int]) -> PaginationMeta:
    """Clamp page/limit and compute the skip offset (total filled in later)."""
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else DEFAULT_PAGE_SIZE
    limit = min(limit, MAX_PAGE_SIZE)
    return PaginationMeta(page=page, limit=limit, skip=(page - 1) * limit, total=0)


class ReportService:
    def __init__(self, reports: ReportRepository):
        self.reports = reports

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_report(self, request: CreateReportRequest) -> ReportResponse:
        report = Report(
            id=ObjectId(),
            report_name=_required_text(request.report_name, "INVALID_REPORT_NAME", "reportName"),
            report_type=_report_type_id(request.report_type),
            year=_required_text(request.year, "INVALID_YEAR", "year"),
            company=_company_id(request.company),
            currency=request.currency,
            created_by=_user_id(request.created_by),
            user_access=parse_object_ids(request.user_access, "INVALID_USER_ACCESS_ID", "user access", field="userAccess"),
            report_data=_report_data(request.report_data),
        )
        report_id = await self.reports.create(report)
        logger.info("Created report %s", report_id)
        return await self.reports.get_by_id(report_id)

    async def update_report(self, report_id: str, request: UpdateReportRequest) -> ReportResponse:
        """Merge the provided fields into the stored report, then read it back."""
        oid = _report_id(report_id)
        report = await self.reports.get_raw(oid)

        if request.report_name is not None:
            report.report_name = _required_text(request.report_name, "INVALID_REPORT_NAME", "reportName")
        if request.report_type is not None:
            report.report_type = _report_type_id(request.report_type)
        if request.year is not None:
            report.year = _required_text(request.year, "INVALID_YEAR", "year")
        if request.company is not None:
            report.company = _company_id(request.company)
        if request.currency is not None:
            report.currency = request.currency
        if request.created_by is not None:
            report.created_by = _user_id(request.created_by)
        if request.user_access is not None:
            report.user_access = parse_object_ids(
                request.user_access, "INVALID_USER_ACCESS_ID", "user access", field="userAccess"
            )
        if request.report_data is not None:
            report.report_data = request.report_data

        await self.reports.update(report)
        return await self.reports.get_by_id(oid)

    async def delete_report(self, report_id: str) -> None:
        oid = _report_id(report_id)
        await self.reports.delete(oid)
        logger.info("Deleted report %s", oid)

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get_report(self, report_id: str) -> ReportResponse:
        return await self.reports.get_by_id(_report_id(report_id))

    async def get_report_by_name(self, name: str) -> ReportResponse:
        return await self.reports.get_by_name(_required_text(name, "INVALID_REPORT_NAME", "reportName"))

    async def list_reports(self) -> List[ReportResponse]:
        return await self.reports.list_all()

    async def list_reports_paginated(self, page: Optional[int], limit: Optional[int]) -> PaginatedReports:
        window = page_window(page, limit)
        reports, total = await self.reports.list_paginated(window.skip, window.limit)
        window.total = total
        return PaginatedReports(data=reports, pagination=window)

    async def list_by_company(self, company_id: str) -> List[ReportResponse]:
        return await self.reports.list_by_company(_company_id(company_id))

    async def list_by_companies(self, company_ids: List[str]) -> List[ReportResponse]:
        if len(company_ids) < MIN_COMPARISON_COMPANIES:
            raise ValidationError(
                message="Need 2 or more companies",
                code="INSUFFICIENT_COMPANIES",
                field="companyIds",
            )
        return await self.reports.list_by_companies([_company_id(c) for c in company_ids])

    async def list_by_report_type(self, report_type_id: str) -> List[ReportResponse]:
        return await self.reports.list_by_report_type(_report_type_id(report_type_id))

    async def list_by_user_access(self, user_id: str) -> List[ReportResponse]:
        return await self.reports.list_by_user_access(_user_id(user_id))

    async def list_by_created_by(self, user_id: str) -> List[ReportResponse]:
        return await self.reports.list_by_created_by(_user_id(user_id))
