"""
Finsolvz Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    ├── app: fresh FastAPI app per test (no lifespan → no MongoDB)
    ├── test_client: HTTPX AsyncClient bound to `app`
    ├── token_for: mints bearer headers for a given role
    ├── clock: manually advanced time source
    └── sample ids / populated report documents
"""

import os

# Override settings for testing BEFORE any finsolvz imports
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["MONGO_URI"] = ""
os.environ["APP_ENV"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "1000"

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient

from finsolvz.models.user import Role
from finsolvz.security import create_access_token


class FakeClock:
    """Manually advanced monotonic clock for TTL and rate-window tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app():
    """A fresh application instance; dependency overrides never leak between tests."""
    from finsolvz.main import create_app
    return create_app()


@pytest_asyncio.fixture
async def test_client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def token_for():
    """
    Returns a function building an Authorization header for a role.

    Usage:
        headers = token_for(Role.CLIENT)
    """
    def _make(role: Role, user_id: str = None) -> dict:
        uid = user_id or str(ObjectId())
        return {"Authorization": f"Bearer {create_access_token(uid, role.value)}"}
    return _make


@pytest.fixture
def now():
    return datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def populated_report_doc(now):
    """A document as produced by the population pipeline (all references resolved)."""
    return {
        "_id": ObjectId("65f0a1b2c3d4e5f6a7b8c9d0"),
        "reportName": "Q1 Balance Sheet",
        "year": "2024",
        "currency": "IDR",
        "reportData": [{"account": "Cash", "amount": 1500}],
        "createdAt": now,
        "updatedAt": now,
        "company": {
            "_id": ObjectId("65f0a1b2c3d4e5f6a7b8c9d1"),
            "name": "Acme Corp",
            "profilePicture": "https://cdn.example.com/acme.png",
            "createdAt": now,
            "updatedAt": now,
        },
        "reportType": {"_id": ObjectId("65f0a1b2c3d4e5f6a7b8c9d2"), "name": "Balance Sheet"},
        "createdBy": {
            "_id": ObjectId("65f0a1b2c3d4e5f6a7b8c9d3"),
            "name": "Ana Admin",
            "email": "ana@example.com",
            "role": "ADMIN",
            "createdAt": now,
            "updatedAt": now,
        },
        "userAccess": [
            {
                "_id": ObjectId("65f0a1b2c3d4e5f6a7b8c9d4"),
                "name": "Cory Client",
                "email": "cory@example.com",
                "role": "CLIENT",
                "createdAt": now,
                "updatedAt": now,
            }
        ],
    }
