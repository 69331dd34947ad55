"""
Company Service Tests

What we test:
    ✅ Sequential duplicate names (any case) → 409 COMPANY_ALREADY_EXISTS
    ✅ Concurrent creates of one name: exactly one wins, the loser gets the
       same COMPANY_ALREADY_EXISTS from the unique index
    ✅ The same race with names differing only in case has one winner too
    ✅ Driver error translation in store_errors
    ✅ id-or-name dispatch
    ✅ Relative profile pictures are absolutized
    ✅ Associated users are validated and populated as {_id, name}
    ✅ Listing is cached and invalidated by writes

Strategy:
    The race test runs the real CompanyRepository against an in-memory
    collection that enforces a case-insensitive unique name the way the
    collated index does and yields to the event loop between reads, so both
    creates pass the pre-check.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, OperationFailure

from finsolvz.cache import TTLCache
from finsolvz.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from finsolvz.models.company import Company
from finsolvz.models.user import User
from finsolvz.repositories.base import store_errors
from finsolvz.repositories.company_repository import CompanyRepository
from finsolvz.schemas.company import CreateCompanyRequest
from finsolvz.services.company_service import (
    COMPANIES_CACHE_KEY,
    CompanyService,
    absolute_picture_url,
)

BASE_URL = "https://api.finsolvz.test"


class InMemoryCompanies:
    """Just enough of a collection for CompanyRepository.create/find_by_name."""

    def __init__(self):
        self.docs = []
        self.insert_attempts = 0

    def _match(self, query, collation=None):
        for doc in self.docs:
            if "_id" in query and doc["_id"] == query["_id"]:
                return doc
            name = query.get("name")
            if name is None:
                continue
            if doc["name"] == name or (collation and doc["name"].casefold() == name.casefold()):
                return doc
        return None

    async def find_one(self, query, collation=None):
        result = self._match(query, collation)
        await asyncio.sleep(0)
        return result

    async def insert_one(self, doc):
        self.insert_attempts += 1
        # The name index is collated case-insensitively
        if any(d["name"].casefold() == doc["name"].casefold() for d in self.docs):
            raise DuplicateKeyError("E11000 duplicate key error collection: companies index: name_ci_unique")
        self.docs.append(doc)


@pytest.fixture
def users():
    repository = MagicMock()
    repository.list_by_ids = AsyncMock(return_value=[])
    return repository


@pytest.fixture
def cache():
    return TTLCache(default_ttl=300)


@pytest.fixture
def collection():
    return InMemoryCompanies()


@pytest.fixture
def service(collection, users, cache):
    return CompanyService(CompanyRepository({"companies": collection}), users, cache, asset_base_url=BASE_URL)


class TestCreateCompany:
    @pytest.mark.asyncio
    async def test_create(self, service, collection):
        company = await service.create_company(CreateCompanyRequest(name="  Acme Corp "))
        assert company.name == "Acme Corp"
        assert len(collection.docs) == 1

    @pytest.mark.asyncio
    async def test_sequential_duplicate_any_case(self, service, collection):
        await service.create_company(CreateCompanyRequest(name="Acme Corp"))
        with pytest.raises(ConflictError) as exc_info:
            await service.create_company(CreateCompanyRequest(name="acme corp"))

        assert exc_info.value.code == "COMPANY_ALREADY_EXISTS"
        assert exc_info.value.status_code == 409
        assert collection.insert_attempts == 1

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_has_one_winner(self, service, collection):
        results = await asyncio.gather(
            service.create_company(CreateCompanyRequest(name="Globex")),
            service.create_company(CreateCompanyRequest(name="Globex")),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], ConflictError)
        assert errors[0].code == "COMPANY_ALREADY_EXISTS"
        # Both passed the pre-check; the index decided
        assert collection.insert_attempts == 2
        assert len(collection.docs) == 1

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_differing_case_has_one_winner(self, service, collection):
        results = await asyncio.gather(
            service.create_company(CreateCompanyRequest(name="Acme")),
            service.create_company(CreateCompanyRequest(name="acme")),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], ConflictError)
        assert errors[0].code == "COMPANY_ALREADY_EXISTS"
        assert collection.insert_attempts == 2
        assert len(collection.docs) == 1

    @pytest.mark.asyncio
    async def test_lookup_by_name_ignores_case(self, service):
        await service.create_company(CreateCompanyRequest(name="Acme Corp"))
        company = await service.get_company("ACME CORP")
        assert company.name == "Acme Corp"

    @pytest.mark.asyncio
    async def test_blank_name(self, service):
        with pytest.raises(ValidationError) as exc_info:
            await service.create_company(CreateCompanyRequest(name="   "))
        assert exc_info.value.code == "INVALID_COMPANY_NAME"

    @pytest.mark.asyncio
    async def test_invalid_user_id(self, service):
        with pytest.raises(ValidationError) as exc_info:
            await service.create_company(CreateCompanyRequest(name="Initech", user=["nope"]))
        assert exc_info.value.code == "INVALID_USER_ID"

    @pytest.mark.asyncio
    async def test_unknown_user(self, service, collection):
        missing = str(ObjectId())
        with pytest.raises(NotFoundError) as exc_info:
            await service.create_company(CreateCompanyRequest(name="Initech", user=[missing]))
        assert exc_info.value.code == "USER_NOT_FOUND"
        assert exc_info.value.details == {"user": [missing]}
        assert collection.docs == []

    @pytest.mark.asyncio
    async def test_users_are_populated(self, service, users):
        member = User(id=ObjectId(), name="Ana", email="ana@example.com")
        users.list_by_ids.return_value = [member]

        company = await service.create_company(CreateCompanyRequest(name="Initech", user=[str(member.id)]))

        body = company.model_dump(by_alias=True)
        assert body["user"] == [{"_id": str(member.id), "name": "Ana"}]


class TestStoreErrors:
    def test_duplicate_key_with_conflict(self):
        with pytest.raises(ConflictError) as exc_info:
            with store_errors("create", conflict=("COMPANY_ALREADY_EXISTS", "Company already exists")):
                raise DuplicateKeyError("E11000")
        assert exc_info.value.code == "COMPANY_ALREADY_EXISTS"

    def test_duplicate_key_without_conflict(self):
        with pytest.raises(DatabaseError):
            with store_errors("update"):
                raise DuplicateKeyError("E11000")

    def test_other_driver_errors(self):
        with pytest.raises(DatabaseError) as exc_info:
            with store_errors("list companies"):
                raise OperationFailure("boom")
        assert exc_info.value.code == "DATABASE_ERROR"
        assert exc_info.value.details == {"operation": "list companies"}


class TestLookupAndListing:
    @pytest.fixture
    def companies(self):
        repository = MagicMock()
        company = Company(id=ObjectId(), name="Acme Corp", profile_picture="uploads/acme.png")
        repository.get_by_id = AsyncMock(return_value=company)
        repository.get_by_name = AsyncMock(return_value=company)
        repository.list_all = AsyncMock(return_value=[company])
        repository.find_by_name = AsyncMock(return_value=None)
        repository.create = AsyncMock(side_effect=lambda c: c)
        return repository

    @pytest.fixture
    def mocked_service(self, companies, users, cache):
        return CompanyService(companies, users, cache, asset_base_url=BASE_URL)

    @pytest.mark.asyncio
    async def test_hex_segment_is_an_id(self, mocked_service, companies):
        oid = "65f0a1b2c3d4e5f6a7b8c9d1"
        await mocked_service.get_company(oid)
        companies.get_by_id.assert_awaited_once_with(ObjectId(oid))
        companies.get_by_name.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("segment", ["Acme Corp", "65f0a1b2c3d4e5f6a7b8c9d", "zzzzzzzzzzzzzzzzzzzzzzzz"])
    async def test_other_segments_are_names(self, mocked_service, companies, segment):
        await mocked_service.get_company(segment)
        companies.get_by_name.assert_awaited_once_with(segment)
        companies.get_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_relative_picture_is_absolutized(self, mocked_service):
        company = await mocked_service.get_company("Acme Corp")
        assert company.profile_picture == "https://api.finsolvz.test/uploads/acme.png"

    def test_absolute_picture_untouched(self):
        assert absolute_picture_url("https://cdn/x.png", BASE_URL) == "https://cdn/x.png"
        assert absolute_picture_url(None, BASE_URL) is None
        assert absolute_picture_url("/a.png", BASE_URL + "/") == "https://api.finsolvz.test/a.png"

    @pytest.mark.asyncio
    async def test_listing_is_cached(self, mocked_service, companies):
        first = await mocked_service.list_companies()
        second = await mocked_service.list_companies()
        assert first == second
        companies.list_all.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_invalidates_listing(self, mocked_service, cache):
        await mocked_service.list_companies()
        assert cache.get(COMPANIES_CACHE_KEY)[1]

        await mocked_service.create_company(CreateCompanyRequest(name="Initech"))

        assert cache.get(COMPANIES_CACHE_KEY) == (None, False)
