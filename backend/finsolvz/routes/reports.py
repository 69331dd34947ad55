"""
Finsolvz Backend — Report Routes
=================================

All routes require a session and return populated reports.

    GET    /api/reports                         [Report]
    GET    /api/reports/paginated?page=&limit=  {"data", "pagination"}
    POST   /api/reports                         201 Report (read back after insert)
    GET    /api/reports/{id}                    Report
    PUT    /api/reports/{id}                    Report (read back after update)
    DELETE /api/reports/{id}                    {"message"}
    GET    /api/reports/name/{name}             Report
    GET    /api/reports/company/{companyId}     [Report]
    POST   /api/reports/companies               [Report]   body {"companyIds": [≥2 ids]}
    GET    /api/reports/reportType/{id}         [Report]
    GET    /api/reports/userAccess/{id}         [Report]
    GET    /api/reports/createdBy/{id}          [Report]

Static segments are registered before /{report_id} so they are never
captured as ids.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from finsolvz.auth import Principal, require_role
from finsolvz.dependencies import get_report_service
from finsolvz.schemas.common import MessageResponse, error_responses
from finsolvz.schemas.report import (
    CreateReportRequest,
    PaginatedReports,
    ReportResponse,
    ReportsByCompaniesRequest,
    UpdateReportRequest,
)
from finsolvz.services.report_service import MAX_PAGE_SIZE, ReportService

router = APIRouter(prefix="/api/reports", tags=["Reports"])

READ = "reports:read"
WRITE = "reports:write"


@router.get(
    "",
    response_model=List[ReportResponse],
    responses=error_responses(401, 500),
    summary="List all reports",
)
async def list_reports(
    principal: Principal = Depends(require_role(READ)),
    service: ReportService = Depends(get_report_service),
) -> List[ReportResponse]:
    return await service.list_reports()


@router.get(
    "/paginated",
    response_model=PaginatedReports,
    responses=error_responses(401, 500),
    summary="List reports one page at a time",
)
async def list_reports_paginated(
    page: Optional[int] = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=10, ge=1, le=MAX_PAGE_SIZE),
    principal: Principal = Depends(require_role(READ)),
    service: ReportService = Depends(get_report_service),
) -> PaginatedReports:
    return await service.list_reports_paginated(page, limit)


@router.post(
    "",
    response_model=ReportResponse,
    status_code=201,
    responses=error_responses(400, 401, 500),
    summary="Create a report",
)
async def create_report(
    body: CreateReportRequest,
    principal: Principal = Depends(require_role(WRITE)),
    service: ReportService = Depends(get_report_service),
) -> ReportResponse:
    return await service.create_report(body)


@router.post(
    "/companies",
    response_model=List[ReportResponse],
    responses=error_responses(400, 401, 500),
    summary="Reports for two or more companies",
)
async def list_reports_by_companies(
    body: ReportsByCompaniesRequest,
    principal: Principal = Depends(require_role(READ)),
    service: ReportService = Depends(get_report_service),
) -> List[ReportResponse]:
    return await service.list_by_companies(body.company_ids)


@router.get(
    "/name/{name}",
    response_model=ReportResponse,
    responses=error_responses(400, 401, 404, 500),
    summary="Get a report by name",
)
async def get_report_by_name(
    name: str,
    principal: Principal = Depends(require_role(READ)),
    service: ReportService = Depends(get_report_service),
) -> ReportResponse:
    return await service.get_report_by_name(name)


@router.get(
    "/company/{company_id}",
    response_model=List[ReportResponse],
    responses=error_responses(400, 401, 500),
    summary="Reports of one company",
)
async def list_reports_by_company(
    company_id: str,
    principal: Principal = Depends(require_role(READ)),
    service: ReportService = Depends(get_report_service),
) -> List[ReportResponse]:
    return await service.list_by_company(company_id)


@router.get(
    "/reportType/{report_type_id}",
    response_model=List[ReportResponse],
    responses=error_responses(400, 401, 500),
    summary="Reports of one report type",
)
async def list_reports_by_report_type(
    report_type_id: str,
    principal: Principal = Depends(require_role(READ)),
    service: ReportService = Depends(get_report_service),
) -> List[ReportResponse]:
    return await service.list_by_report_type(report_type_id)


@router.get(
    "/userAccess/{user_id}",
    response_model=List[ReportResponse],
    responses=error_responses(400, 401, 500),
    summary="Reports a user has access to",
)
async def list_reports_by_user_access(
    user_id: str,
    principal: Principal = Depends(require_role(READ)),
    service: ReportService = Depends(get_report_service),
) -> List[ReportResponse]:
    return await service.list_by_user_access(user_id)


@router.get(
    "/createdBy/{user_id}",
    response_model=List[ReportResponse],
    responses=error_responses(400, 401, 500),
    summary="Reports created by a user",
)
async def list_reports_by_created_by(
    user_id: str,
    principal: Principal = Depends(require_role(READ)),
    service: ReportService = Depends(get_report_service),
) -> List[ReportResponse]:
    return await service.list_by_created_by(user_id)


@router.get(
    "/{report_id}",
    response_model=ReportResponse,
    responses=error_responses(400, 401, 404, 500),
    summary="Get a report by id",
)
async def get_report(
    report_id: str,
    principal: Principal = Depends(require_role(READ)),
    service: ReportService = Depends(get_report_service),
) -> ReportResponse:
    return await service.get_report(report_id)


@router.put(
    "/{report_id}",
    response_model=ReportResponse,
    responses=error_responses(400, 401, 404, 500),
    summary="Update a report",
)
async def update_report(
    report_id: str,
    body: UpdateReportRequest,
    principal: Principal = Depends(require_role(WRITE)),
    service: ReportService = Depends(get_report_service),
) -> ReportResponse:
    return await service.update_report(report_id, body)


@router.delete(
    "/{report_id}",
    response_model=MessageResponse,
    responses=error_responses(400, 401, 404, 500),
    summary="Delete a report",
)
async def delete_report(
    report_id: str,
    principal: Principal = Depends(require_role(WRITE)),
    service: ReportService = Depends(get_report_service),
) -> MessageResponse:
    await service.delete_report(report_id)
    return MessageResponse(message="Report deleted successfully")
