"""
API Route Tests

What we test:
    ✅ GET / health greeting (no auth)
    ✅ Bearer handling: missing header, bad scheme, garbage token
    ✅ Role policy: CLIENT cannot register users or list them
    ✅ SUPER_ADMIN register → 201 without any password field
    ✅ Validation errors → 400 VALIDATION_ERROR with per-field details
    ✅ Malformed JSON → 400 INVALID_JSON
    ✅ Reports-by-companies with one id → 400 INSUFFICIENT_COMPANIES
    ✅ /api/company/{idOrName} dispatch
    ✅ Report types serialize "id", reports serialize "_id"
    ✅ Database not connected → 500 DATABASE_UNAVAILABLE
    ✅ Every response carries X-Request-ID

Strategy:
    Services are swapped in with app.dependency_overrides and backed by
    mocked repositories, so no MongoDB is needed. The app's lifespan does
    not run under ASGITransport.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from finsolvz.cache import TTLCache
from finsolvz.dependencies import (
    get_auth_service,
    get_company_service,
    get_report_service,
    get_report_type_service,
    get_user_service,
)
from finsolvz.models.company import Company
from finsolvz.models.report_type import ReportType
from finsolvz.models.user import Role, User
from finsolvz.schemas.report import ReportResponse
from finsolvz.security import hash_password
from finsolvz.services.auth_service import AuthService
from finsolvz.services.company_service import CompanyService
from finsolvz.services.report_service import ReportService
from finsolvz.services.report_type_service import ReportTypeService
from finsolvz.services.user_service import UserService

HEX_ID = "65f0a1b2c3d4e5f6a7b8c9d1"


@pytest.fixture
def users_repo():
    repository = MagicMock()
    repository.find_by_email = AsyncMock(return_value=None)
    repository.create = AsyncMock(side_effect=lambda user: user)
    repository.list_all = AsyncMock(return_value=[])
    repository.list_by_ids = AsyncMock(return_value=[])
    return repository


@pytest.fixture
def use_user_service(app, users_repo):
    app.dependency_overrides[get_user_service] = lambda: UserService(users_repo)
    return users_repo


# ── Health ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_health_check(test_client):
    response = await test_client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "✨ Finsolvz Backend API ✨", "status": "healthy"}
    assert response.headers["X-Request-ID"]
    assert response.headers["X-Request-Timeout"] == "30s"


# ── Authentication ────────────────────────────────────────────────────────

class TestBearerAuth:
    @pytest.mark.asyncio
    async def test_missing_header(self, test_client):
        response = await test_client.get("/api/users")
        body = response.json()
        assert response.status_code == 401
        assert body["code"] == "MISSING_AUTH_HEADER"
        assert body["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_wrong_scheme(self, test_client):
        response = await test_client.get("/api/users", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_AUTH_FORMAT"

    @pytest.mark.asyncio
    async def test_garbage_token(self, test_client):
        response = await test_client.get("/api/users", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.json()["code"] == "JWT_INVALID"

    @pytest.mark.asyncio
    async def test_login(self, app, test_client):
        user = User(id=ObjectId(), name="Ana", email="ana@example.com", password=hash_password("pw1234"))
        repo = MagicMock()
        repo.find_by_email = AsyncMock(return_value=user)
        app.dependency_overrides[get_auth_service] = lambda: AuthService(repo, MagicMock())

        ok = await test_client.post("/api/login", json={"email": "ana@example.com", "password": "pw1234"})
        bad = await test_client.post("/api/login", json={"email": "ana@example.com", "password": "nope"})

        assert ok.status_code == 200
        assert ok.json()["access_token"]
        assert bad.status_code == 401
        assert bad.json()["code"] == "INVALID_CREDENTIALS"


# ── Role policy ───────────────────────────────────────────────────────────

class TestRolePolicy:
    @pytest.mark.asyncio
    async def test_client_cannot_register(self, test_client, token_for, use_user_service):
        response = await test_client.post(
            "/api/register",
            headers=token_for(Role.CLIENT),
            json={"name": "New User", "email": "new@example.com", "password": "secret1", "role": "CLIENT"},
        )
        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"
        use_user_service.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_client_cannot_list_users(self, test_client, token_for, use_user_service):
        response = await test_client.get("/api/users", headers=token_for(Role.CLIENT))
        assert response.status_code == 403
        assert response.json()["details"]["required_role"] == "ADMIN"

    @pytest.mark.asyncio
    async def test_admin_can_list_users(self, test_client, token_for, use_user_service):
        response = await test_client.get("/api/users", headers=token_for(Role.ADMIN))
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_super_admin_registers_user(self, test_client, token_for, use_user_service):
        response = await test_client.post(
            "/api/register",
            headers=token_for(Role.SUPER_ADMIN),
            json={"name": "New User", "email": "new@example.com", "password": "secret1", "role": "ADMIN"},
        )
        body = response.json()
        assert response.status_code == 201
        assert body["message"] == "Success"
        assert body["newUser"]["email"] == "new@example.com"
        assert body["newUser"]["role"] == "ADMIN"
        assert len(body["newUser"]["_id"]) == 24
        assert "password" not in body["newUser"]


# ── Validation ────────────────────────────────────────────────────────────

class TestValidation:
    @pytest.mark.asyncio
    async def test_field_errors(self, test_client, token_for, use_user_service):
        response = await test_client.post(
            "/api/register",
            headers=token_for(Role.SUPER_ADMIN),
            json={"name": "A", "email": "not-an-email", "password": "123", "role": "CLIENT"},
        )
        body = response.json()
        assert response.status_code == 400
        assert body["code"] == "VALIDATION_ERROR"
        assert set(body["details"]) == {"name", "email", "password"}
        assert body["details"]["email"] == "Please provide a valid email address"

    @pytest.mark.asyncio
    async def test_malformed_json(self, test_client, token_for, use_user_service):
        response = await test_client.post(
            "/api/register",
            headers={**token_for(Role.SUPER_ADMIN), "Content-Type": "application/json"},
            content=b'{"name": ',
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_JSON"

    @pytest.mark.asyncio
    async def test_unknown_route(self, test_client):
        response = await test_client.get("/api/nowhere")
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"


# ── Companies ─────────────────────────────────────────────────────────────

class TestCompanies:
    @pytest.fixture
    def companies_repo(self, app, users_repo):
        repo = MagicMock()
        company = Company(id=ObjectId(HEX_ID), name="Acme Corp")
        repo.get_by_id = AsyncMock(return_value=company)
        repo.get_by_name = AsyncMock(return_value=company)
        app.dependency_overrides[get_company_service] = lambda: CompanyService(
            repo, users_repo, TTLCache(), asset_base_url="http://localhost:8787"
        )
        return repo

    @pytest.mark.asyncio
    async def test_lookup_by_id(self, test_client, token_for, companies_repo):
        response = await test_client.get(f"/api/company/{HEX_ID}", headers=token_for(Role.CLIENT))
        assert response.status_code == 200
        assert response.json()["_id"] == HEX_ID
        companies_repo.get_by_id.assert_awaited_once_with(ObjectId(HEX_ID))

    @pytest.mark.asyncio
    async def test_lookup_by_name(self, test_client, token_for, companies_repo):
        response = await test_client.get("/api/company/Acme%20Corp", headers=token_for(Role.CLIENT))
        assert response.status_code == 200
        companies_repo.get_by_name.assert_awaited_once_with("Acme Corp")

    @pytest.mark.asyncio
    async def test_delete_requires_super_admin(self, test_client, token_for, companies_repo):
        response = await test_client.delete(f"/api/company/{HEX_ID}", headers=token_for(Role.ADMIN))
        assert response.status_code == 403


# ── Report types ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_report_types_serialize_id(app, test_client, token_for):
    repo = MagicMock()
    repo.list_all = AsyncMock(return_value=[ReportType(id=ObjectId(HEX_ID), name="Balance Sheet")])
    app.dependency_overrides[get_report_type_service] = lambda: ReportTypeService(repo, TTLCache())

    response = await test_client.get("/api/reportTypes", headers=token_for(Role.CLIENT))

    assert response.status_code == 200
    assert response.json() == [{"id": HEX_ID, "name": "Balance Sheet"}]


# ── Reports ───────────────────────────────────────────────────────────────

class TestReports:
    @pytest.fixture
    def reports_repo(self, app, populated_report_doc):
        repo = MagicMock()
        repo.get_by_id = AsyncMock(return_value=ReportResponse.model_validate(populated_report_doc))
        repo.list_by_companies = AsyncMock(return_value=[])
        app.dependency_overrides[get_report_service] = lambda: ReportService(repo)
        return repo

    @pytest.mark.asyncio
    async def test_by_companies_needs_two(self, test_client, token_for, reports_repo):
        response = await test_client.post(
            "/api/reports/companies",
            headers=token_for(Role.CLIENT),
            json={"companyIds": [HEX_ID]},
        )
        body = response.json()
        assert response.status_code == 400
        assert body["code"] == "INSUFFICIENT_COMPANIES"
        assert body["message"] == "Need 2 or more companies"

    @pytest.mark.asyncio
    async def test_get_populated_report(self, test_client, token_for, reports_repo):
        response = await test_client.get(
            "/api/reports/65f0a1b2c3d4e5f6a7b8c9d0", headers=token_for(Role.CLIENT)
        )
        body = response.json()
        assert response.status_code == 200
        assert body["_id"] == "65f0a1b2c3d4e5f6a7b8c9d0"
        assert body["company"]["name"] == "Acme Corp"
        assert body["userAccess"][0]["name"] == "Cory Client"
        assert "password" not in body["createdBy"]

    @pytest.mark.asyncio
    async def test_invalid_report_id(self, test_client, token_for, reports_repo):
        response = await test_client.get("/api/reports/xyz", headers=token_for(Role.CLIENT))
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_REPORT_ID"


@pytest.mark.asyncio
async def test_database_unavailable(test_client, token_for):
    response = await test_client.get("/api/reports", headers=token_for(Role.CLIENT))
    body = response.json()
    assert response.status_code == 500
    assert body["code"] == "DATABASE_UNAVAILABLE"
    assert "details" not in body
