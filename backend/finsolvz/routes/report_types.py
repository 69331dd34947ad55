"""
Finsolvz Backend — Report Type Routes
======================================

    GET    /api/reportTypes              [ReportType]
    POST   /api/reportTypes              201 {"message", "reportType"}
    GET    /api/reportTypes/{idOrName}   ReportType (24-char hex → id, else name)
    PUT    /api/reportTypes/{id}         {"message", "reportType"}
    DELETE /api/reportTypes/{id}         204
"""

from typing import List

from fastapi import APIRouter, Depends, Response

from finsolvz.auth import Principal, require_role
from finsolvz.dependencies import get_report_type_service
from finsolvz.schemas.common import error_responses
from finsolvz.schemas.report_type import ReportTypeEnvelope, ReportTypeRequest, ReportTypeResponse
from finsolvz.services.report_type_service import ReportTypeService

router = APIRouter(prefix="/api/reportTypes", tags=["Report Types"])


@router.get(
    "",
    response_model=List[ReportTypeResponse],
    responses=error_responses(401, 500),
    summary="List report types",
)
async def list_report_types(
    principal: Principal = Depends(require_role("report_types:read")),
    service: ReportTypeService = Depends(get_report_type_service),
) -> List[ReportTypeResponse]:
    return await service.list_report_types()


@router.post(
    "",
    response_model=ReportTypeEnvelope,
    status_code=201,
    responses=error_responses(400, 401, 409, 500),
    summary="Create a report type",
)
async def create_report_type(
    body: ReportTypeRequest,
    principal: Principal = Depends(require_role("report_types:write")),
    service: ReportTypeService = Depends(get_report_type_service),
) -> ReportTypeEnvelope:
    report_type = await service.create_report_type(body.name)
    return ReportTypeEnvelope(message="Report type added successfully", report_type=report_type)


@router.get(
    "/{id_or_name}",
    response_model=ReportTypeResponse,
    responses=error_responses(401, 404, 500),
    summary="Get a report type by id or by name",
)
async def get_report_type(
    id_or_name: str,
    principal: Principal = Depends(require_role("report_types:read")),
    service: ReportTypeService = Depends(get_report_type_service),
) -> ReportTypeResponse:
    return await service.get_report_type(id_or_name)


@router.put(
    "/{report_type_id}",
    response_model=ReportTypeEnvelope,
    responses=error_responses(400, 401, 404, 409, 500),
    summary="Rename a report type",
)
async def update_report_type(
    report_type_id: str,
    body: ReportTypeRequest,
    principal: Principal = Depends(require_role("report_types:write")),
    service: ReportTypeService = Depends(get_report_type_service),
) -> ReportTypeEnvelope:
    report_type = await service.update_report_type(report_type_id, body.name)
    return ReportTypeEnvelope(message="Report Type updated successfully", report_type=report_type)


@router.delete(
    "/{report_type_id}",
    status_code=204,
    response_class=Response,
    responses=error_responses(400, 401, 404, 500),
    summary="Delete a report type",
)
async def delete_report_type(
    report_type_id: str,
    principal: Principal = Depends(require_role("report_types:write")),
    service: ReportTypeService = Depends(get_report_type_service),
) -> Response:
    await service.delete_report_type(report_type_id)
    return Response(status_code=204)
