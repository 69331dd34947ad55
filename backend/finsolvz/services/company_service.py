"""
Finsolvz Backend — Company Service
===================================

What:  Company CRUD, id-or-name dispatch, caller-scoped listing and a cached
       full listing.

Caching:
    GET /api/company is memoized in the process TTL cache under
    COMPANIES_CACHE_KEY. Every create/update/delete drops the key, so a write
    is visible to the next listing in this process.

Response shaping:
    - `user` ids are populated as {_id, name} with one batched user query
    - a profilePicture stored as a relative path is returned prefixed with
      ASSET_BASE_URL
"""

import logging
from typing import Dict, Iterable, List, Optional

from bson import ObjectId

from finsolvz.auth import Principal
from finsolvz.cache import TTLCache
from finsolvz.exceptions import ConflictError, NotFoundError, ValidationError
from finsolvz.models.company import Company
from finsolvz.models.user import User
from finsolvz.repositories.base import is_object_id, parse_object_id, parse_object_ids
from finsolvz.repositories.company_repository import CompanyRepository
from finsolvz.repositories.user_repository import UserRepository
from finsolvz.schemas.company import (
    CompanyResponse,
    CompanyUser,
    CreateCompanyRequest,
    UpdateCompanyRequest,
)

logger = logging.getLogger(__name__)

COMPANIES_CACHE_KEY = "companies:all"


def absolute_picture_url(picture: Optional[str], base_url: str) -> Optional[str]:
    if not picture or picture.startswith("http"):
        return picture
    return f"{base_url.rstrip('/')}/{picture.lstrip('/')}"


def normalize_company_name(name: Optional[str]) -> str:
    trimmed = (name or "").strip()
    if not trimmed:
        raise ValidationError(message="Company name cannot be empty", code="INVALID_COMPANY_NAME", field="name")
    return trimmed


def company_exists() -> ConflictError:
    return ConflictError(message="Company already exists", code="COMPANY_ALREADY_EXISTS")


class CompanyService:
    def __init__(
        self,
        companies: CompanyRepository,
        users: UserRepository,
        cache: TTLCache,
        asset_base_url: str,
        cache_ttl: Optional[float] = None,
    ):
        self.companies = companies
        self.users = users
        self.cache = cache
        self.asset_base_url = asset_base_url
        self.cache_ttl = cache_ttl

    # ── Response shaping ──────────────────────────────────────────────────

    async def _load_users(self, companies: Iterable[Company]) -> Dict[ObjectId, User]:
        ids = {uid for company in companies for uid in company.user}
        users = await self.users.list_by_ids(list(ids))
        return {u.id: u for u in users}

    def _to_response(self, company: Company, users_by_id: Dict[ObjectId, User]) -> CompanyResponse:
        return CompanyResponse(
            id=company.id,
            name=company.name,
            profile_picture=absolute_picture_url(company.profile_picture, self.asset_base_url),
            user=[
                CompanyUser(id=uid, name=users_by_id[uid].name)
                for uid in company.user
                if uid in users_by_id
            ],
            created_at=company.created_at,
            updated_at=company.updated_at,
        )

    async def _respond(self, companies: List[Company]) -> List[CompanyResponse]:
        users_by_id = await self._load_users(companies)
        return [self._to_response(c, users_by_id) for c in companies]

    async def _respond_one(self, company: Company) -> CompanyResponse:
        return (await self._respond([company]))[0]

    async def _validated_user_ids(self, user_ids: List[str]) -> List[ObjectId]:
        """Parse and check that every associated user exists."""
        oids = parse_object_ids(user_ids, "INVALID_USER_ID", "user", field="user")
        unique = list(dict.fromkeys(oids))
        found = await self.users.list_by_ids(unique)
        if len(found) != len(unique):
            missing = sorted(str(oid) for oid in set(unique) - {u.id for u in found})
            raise NotFoundError(
                message="User not found",
                code="USER_NOT_FOUND",
                details={"user": missing},
            )
        return unique

    def _invalidate(self) -> None:
        self.cache.delete(COMPANIES_CACHE_KEY)

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_companies(self) -> List[CompanyResponse]:
        cached, found = self.cache.get(COMPANIES_CACHE_KEY)
        if found:
            return cached
        result = await self._respond(await self.companies.list_all())
        self.cache.set(COMPANIES_CACHE_KEY, result, self.cache_ttl)
        return result

    async def get_by_id(self, company_id: str) -> CompanyResponse:
        oid = parse_object_id(company_id, "INVALID_COMPANY_ID", "company")
        return await self._respond_one(await self.companies.get_by_id(oid))

    async def get_by_name(self, name: str) -> CompanyResponse:
        return await self._respond_one(await self.companies.get_by_name(name))

    async def get_company(self, id_or_name: str) -> CompanyResponse:
        """A 24-char hex segment is an id; anything else is a name."""
        if is_object_id(id_or_name):
            return await self.get_by_id(id_or_name)
        return await self.get_by_name(id_or_name)

    async def list_for_principal(self, principal: Principal) -> List[CompanyResponse]:
        return await self._respond(await self.companies.list_for_user(principal.object_id))

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_company(self, request: CreateCompanyRequest) -> CompanyResponse:
        name = normalize_company_name(request.name)
        if await self.companies.find_by_name(name) is not None:
            raise company_exists()

        company = Company(
            id=ObjectId(),
            name=name,
            profile_picture=request.profile_picture,
            user=await self._validated_user_ids(request.user),
        )
        # A concurrent insert of the same name loses on the unique index and
        # surfaces as the same COMPANY_ALREADY_EXISTS conflict
        await self.companies.create(company)
        self._invalidate()
        logger.info("Created company %s (%s)", company.id, company.name)
        return await self._respond_one(company)

    async def update_company(self, company_id: str, request: UpdateCompanyRequest) -> CompanyResponse:
        oid = parse_object_id(company_id, "INVALID_COMPANY_ID", "company")
        company = await self.companies.get_by_id(oid)

        if request.name is not None:
            name = normalize_company_name(request.name)
            if name != company.name:
                existing = await self.companies.find_by_name(name)
                if existing is not None and existing.id != company.id:
                    raise company_exists()
                company.name = name
        if request.profile_picture is not None:
            company.profile_picture = request.profile_picture
        if request.user is not None:
            company.user = await self._validated_user_ids(request.user)

        await self.companies.update(company)
        self._invalidate()
        return await self._respond_one(company)

    async def delete_company(self, company_id: str) -> CompanyResponse:
        oid = parse_object_id(company_id, "INVALID_COMPANY_ID", "company")
        company = await self.companies.get_by_id(oid)
        response = await self._respond_one(company)
        await self.companies.delete(oid)
        self._invalidate()
        logger.info("Deleted company %s", oid)
        return response
