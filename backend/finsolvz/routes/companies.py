"""
Finsolvz Backend — Company Routes
==================================

    GET    /api/company              any session   [Company] (cached)
    POST   /api/company              any session   201 {"message", "company"}
    GET    /api/company/{idOrName}   any session   Company
    PUT    /api/company/{id}         SUPER_ADMIN   {"message", "company"}
    DELETE /api/company/{id}         SUPER_ADMIN   {"message", "company"}
    GET    /api/user/companies       any session   companies the caller belongs to

`idOrName` dispatch:
    /api/company/507f1f77bcf86cd799439011  → lookup by id (24-char hex)
    /api/company/Acme%20Corp               → lookup by name
"""

from typing import List

from fastapi import APIRouter, Depends

from finsolvz.auth import Principal, require_role
from finsolvz.dependencies import get_company_service
from finsolvz.schemas.common import error_responses
from finsolvz.schemas.company import (
    CompanyEnvelope,
    CompanyResponse,
    CreateCompanyRequest,
    UpdateCompanyRequest,
)
from finsolvz.services.company_service import CompanyService

router = APIRouter(prefix="/api", tags=["Companies"])


@router.get(
    "/company",
    response_model=List[CompanyResponse],
    responses=error_responses(401, 500),
    summary="List companies (newest first, max 100)",
)
async def list_companies(
    principal: Principal = Depends(require_role("companies:read")),
    service: CompanyService = Depends(get_company_service),
) -> List[CompanyResponse]:
    return await service.list_companies()


@router.post(
    "/company",
    response_model=CompanyEnvelope,
    status_code=201,
    responses=error_responses(400, 401, 404, 409, 500),
    summary="Create a company",
)
async def create_company(
    body: CreateCompanyRequest,
    principal: Principal = Depends(require_role("companies:create")),
    service: CompanyService = Depends(get_company_service),
) -> CompanyEnvelope:
    company = await service.create_company(body)
    return CompanyEnvelope(message="Company created successfully", company=company)


@router.get(
    "/company/{id_or_name}",
    response_model=CompanyResponse,
    responses=error_responses(400, 401, 404, 500),
    summary="Get a company by id or by name",
)
async def get_company(
    id_or_name: str,
    principal: Principal = Depends(require_role("companies:read")),
    service: CompanyService = Depends(get_company_service),
) -> CompanyResponse:
    return await service.get_company(id_or_name)


@router.put(
    "/company/{company_id}",
    response_model=CompanyEnvelope,
    responses=error_responses(400, 401, 403, 404, 409, 500),
    summary="Update a company",
)
async def update_company(
    company_id: str,
    body: UpdateCompanyRequest,
    principal: Principal = Depends(require_role("companies:update")),
    service: CompanyService = Depends(get_company_service),
) -> CompanyEnvelope:
    company = await service.update_company(company_id, body)
    return CompanyEnvelope(message="Success", company=company)


@router.delete(
    "/company/{company_id}",
    response_model=CompanyEnvelope,
    responses=error_responses(400, 401, 403, 404, 500),
    summary="Delete a company",
)
async def delete_company(
    company_id: str,
    principal: Principal = Depends(require_role("companies:delete")),
    service: CompanyService = Depends(get_company_service),
) -> CompanyEnvelope:
    company = await service.delete_company(company_id)
    return CompanyEnvelope(message="Company deleted successfully", company=company)


@router.get(
    "/user/companies",
    response_model=List[CompanyResponse],
    responses=error_responses(401, 500),
    summary="Companies the authenticated user belongs to",
)
async def list_user_companies(
    principal: Principal = Depends(require_role("companies:read")),
    service: CompanyService = Depends(get_company_service),
) -> List[CompanyResponse]:
    return await service.list_for_principal(principal)
