"""
Application Factory & Lifespan Tests

What we test:
    ✅ Injected cache and rate limiter are used even while empty
    ✅ Oversize chunked body through the full middleware chain → 413
       REQUEST_TOO_LARGE (not the body parser's generic 400)
    ✅ APP_ENV=production: missing configuration aborts startup
    ✅ APP_ENV=production: unreachable MongoDB aborts startup
    ✅ Other environments start without a database

Strategy:
    Lifespan tests enter `lifespan(app)` directly; ASGITransport never runs
    it. Settings are patched on the shared singleton with monkeypatch.
"""

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from finsolvz import database
from finsolvz.cache import TTLCache
from finsolvz.config import settings
from finsolvz.exceptions import ConfigurationError, DatabaseError
from finsolvz.main import create_app, lifespan
from finsolvz.middleware.rate_limit import FixedWindowRateLimiter
from finsolvz.models.user import Role


class TestSharedState:
    def test_empty_rate_limiter_is_kept(self):
        limiter = FixedWindowRateLimiter(limit=3)
        assert len(limiter) == 0
        assert create_app(rate_limiter=limiter).state.rate_limiter is limiter

    def test_empty_cache_is_kept(self):
        cache = TTLCache(1)
        assert len(cache) == 0
        assert create_app(cache=cache).state.cache is cache

    def test_defaults_built_from_settings(self):
        app = create_app()
        assert isinstance(app.state.cache, TTLCache)
        assert isinstance(app.state.rate_limiter, FixedWindowRateLimiter)


class TestBodyLimitThroughFullChain:
    @pytest.mark.asyncio
    async def test_chunked_body_over_cap(self, monkeypatch, token_for):
        monkeypatch.setattr(settings, "max_request_body_bytes", 2048)
        app = create_app()

        async def chunks():
            yield b'{"companyIds": ["'
            for _ in range(10):
                yield b"a" * 1024
            yield b'"]}'

        headers = {**token_for(Role.CLIENT), "Content-Type": "application/json"}
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/api/reports/companies", content=chunks(), headers=headers)

        assert response.status_code == 413
        assert response.json()["code"] == "REQUEST_TOO_LARGE"
        assert response.headers["X-Request-Timeout"]
        assert response.headers["X-Request-ID"]


class TestLifespan:
    @pytest.mark.asyncio
    async def test_production_refuses_missing_config(self, monkeypatch):
        monkeypatch.setattr(settings, "app_env", "production")
        monkeypatch.setattr(settings, "mongo_uri", "")
        app = create_app()

        with pytest.raises(ConfigurationError) as exc_info:
            async with lifespan(app):
                pass
        assert exc_info.value.code == "CONFIG_INVALID"
        assert "MONGO_URI" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_production_refuses_unreachable_database(self, monkeypatch):
        monkeypatch.setattr(settings, "app_env", "production")
        monkeypatch.setattr(settings, "mongo_uri", "mongodb://db.invalid:27017")
        failure = DatabaseError(message="Failed to connect to MongoDB", code="DATABASE_CONNECTION_ERROR")
        monkeypatch.setattr(database, "connect", AsyncMock(side_effect=failure))
        app = create_app()

        with pytest.raises(DatabaseError) as exc_info:
            async with lifespan(app):
                pass
        assert exc_info.value.code == "DATABASE_CONNECTION_ERROR"

    @pytest.mark.asyncio
    async def test_other_environments_start_without_database(self):
        assert not settings.is_production
        app = create_app()

        async with lifespan(app):
            assert app.state.database is None
        assert app.state.database is None
