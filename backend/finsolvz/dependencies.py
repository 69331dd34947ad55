"""
Finsolvz Backend — Request-Scoped Dependencies
===============================================

What:  FastAPI providers that hand routes their services.
How:   Process-wide objects (database handle, TTL cache) are created by the
       application factory/lifespan and stored on `app.state`; the providers
       read them from the request and build lightweight repositories and
       services per request.
Why:   Nothing here is a module-level global, so tests can swap any provider
       with `app.dependency_overrides`.
"""

from fastapi import Depends, Request
from pymongo.asynchronous.database import AsyncDatabase

from finsolvz.cache import TTLCache
from finsolvz.config import settings
from finsolvz.exceptions import DatabaseError
from finsolvz.repositories.company_repository import CompanyRepository
from finsolvz.repositories.report_repository import ReportRepository
from finsolvz.repositories.report_type_repository import ReportTypeRepository
from finsolvz.repositories.user_repository import UserRepository
from finsolvz.services.auth_service import AuthService
from finsolvz.services.company_service import CompanyService
from finsolvz.services.email_service import EmailService
from finsolvz.services.report_service import ReportService
from finsolvz.services.report_type_service import ReportTypeService
from finsolvz.services.user_service import UserService


def get_database(request: Request) -> AsyncDatabase:
    db = getattr(request.app.state, "database", None)
    if db is None:
        raise DatabaseError(message="Database is not connected", code="DATABASE_UNAVAILABLE")
    return db


def get_cache(request: Request) -> TTLCache:
    return request.app.state.cache


def get_user_repository(db: AsyncDatabase = Depends(get_database)) -> UserRepository:
    return UserRepository(db)


def get_auth_service(users: UserRepository = Depends(get_user_repository)) -> AuthService:
    return AuthService(users, EmailService())


def get_user_service(users: UserRepository = Depends(get_user_repository)) -> UserService:
    return UserService(users)


def get_company_service(
    db: AsyncDatabase = Depends(get_database),
    users: UserRepository = Depends(get_user_repository),
    cache: TTLCache = Depends(get_cache),
) -> CompanyService:
    return CompanyService(
        CompanyRepository(db),
        users,
        cache,
        asset_base_url=settings.asset_base_url,
        cache_ttl=settings.cache_ttl_seconds,
    )


def get_report_type_service(
    db: AsyncDatabase = Depends(get_database),
    cache: TTLCache = Depends(get_cache),
) -> ReportTypeService:
    return ReportTypeService(ReportTypeRepository(db), cache, cache_ttl=settings.cache_ttl_seconds)


def get_report_service(db: AsyncDatabase = Depends(get_database)) -> ReportService:
    return ReportService(ReportRepository(db))
