"""Report-type CRUD with a cached listing and id-or-name dispatch."""

import logging
from typing import List, Optional

from bson import ObjectId

from finsolvz.cache import TTLCache
from finsolvz.exceptions import ConflictError, ValidationError
from finsolvz.models.report_type import ReportType
from finsolvz.repositories.base import is_object_id, parse_object_id
from finsolvz.repositories.report_type_repository import ReportTypeRepository
from finsolvz.schemas.report_type import ReportTypeResponse

logger = logging.getLogger(__name__)

REPORT_TYPES_CACHE_KEY = "report_types:all"


def normalize_report_type_name(name: Optional[str]) -> str:
    trimmed = (name or "").strip()
    if not trimmed:
        raise ValidationError(
            message="Report type name cannot be empty",
            code="INVALID_REPORT_TYPE_NAME",
            field="name",
        )
    return trimmed


def report_type_exists() -> ConflictError:
    return ConflictError(message="Report type already exists", code="REPORT_TYPE_ALREADY_EXISTS")


def to_response(report_type: ReportType) -> ReportTypeResponse:
    return ReportTypeResponse(id=report_type.id, name=report_type.name)


class ReportTypeService:
    def __init__(self, report_types: ReportTypeRepository, cache: TTLCache, cache_ttl: Optional[float] = None):
        self.report_types = report_types
        self.cache = cache
        self.cache_ttl = cache_ttl

    async def list_report_types(self) -> List[ReportTypeResponse]:
        cached, found = self.cache.get(REPORT_TYPES_CACHE_KEY)
        if found:
            return cached
        result = [to_response(rt) for rt in await self.report_types.list_all()]
        self.cache.set(REPORT_TYPES_CACHE_KEY, result, self.cache_ttl)
        return result

    async def get_report_type(self, id_or_name: str) -> ReportTypeResponse:
        if is_object_id(id_or_name):
            report_type = await self.report_types.get_by_id(ObjectId(id_or_name))
        else:
            report_type = await self.report_types.get_by_name(id_or_name)
        return to_response(report_type)

    async def create_report_type(self, name: str) -> ReportTypeResponse:
        normalized = normalize_report_type_name(name)
        if await self.report_types.find_by_name(normalized) is not None:
            raise report_type_exists()
        report_type = ReportType(id=ObjectId(), name=normalized)
        await self.report_types.create(report_type)
        self.cache.delete(REPORT_TYPES_CACHE_KEY)
        return to_response(report_type)

    async def update_report_type(self, report_type_id: str, name: str) -> ReportTypeResponse:
        oid = parse_object_id(report_type_id, "INVALID_REPORT_TYPE_ID", "report type")
        report_type = await self.report_types.get_by_id(oid)
        normalized = normalize_report_type_name(name)
        if normalized != report_type.name:
            existing = await self.report_types.find_by_name(normalized)
            if existing is not None and existing.id != report_type.id:
                raise report_type_exists()
            report_type.name = normalized
            await self.report_types.update(report_type)
            self.cache.delete(REPORT_TYPES_CACHE_KEY)
        return to_response(report_type)

    async def delete_report_type(self, report_type_id: str) -> None:
        oid = parse_object_id(report_type_id, "INVALID_REPORT_TYPE_ID", "report type")
        await self.report_types.delete(oid)
        self.cache.delete(REPORT_TYPES_CACHE_KEY)
        logger.info("Deleted report type %s", oid)
