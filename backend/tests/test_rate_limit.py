"""
Fixed-Window Rate Limiter Tests

What we test:
    ✅ With limit=3, three hits are admitted and the fourth is rejected
    ✅ Rejections carry remaining=0 and retry_after=60
    ✅ The counter resets once the window has passed
    ✅ Clients are counted independently
    ✅ sweep() drops stale clients only
    ✅ Middleware: X-RateLimit-* headers, 429 body, Retry-After, X-Forwarded-For keying
"""

import pytest
from httpx import ASGITransport, AsyncClient

from finsolvz.main import create_app
from finsolvz.middleware.rate_limit import FixedWindowRateLimiter


class TestFixedWindowRateLimiter:
    @pytest.fixture(autouse=True)
    def _limiter(self, clock):
        self.clock = clock
        self.limiter = FixedWindowRateLimiter(limit=3, window=60, clock=clock)

    def test_admits_up_to_limit(self):
        remaining = [self.limiter.hit("1.2.3.4").remaining for _ in range(3)]
        assert remaining == [2, 1, 0]

    def test_rejects_request_over_limit(self):
        for _ in range(3):
            assert self.limiter.hit("1.2.3.4").allowed
        decision = self.limiter.hit("1.2.3.4")
        assert not decision.allowed
        assert decision.remaining == 0
        assert decision.retry_after == 60

    def test_window_rollover_resets_counter(self):
        for _ in range(4):
            self.limiter.hit("1.2.3.4")
        self.clock.advance(61)
        decision = self.limiter.hit("1.2.3.4")
        assert decision.allowed
        assert decision.remaining == 2

    def test_window_boundary_is_strictly_greater(self):
        for _ in range(3):
            self.limiter.hit("1.2.3.4")
        self.clock.advance(60)
        assert not self.limiter.hit("1.2.3.4").allowed

    def test_clients_are_independent(self):
        for _ in range(3):
            self.limiter.hit("a")
        assert not self.limiter.hit("a").allowed
        assert self.limiter.hit("b").allowed

    def test_sweep_removes_stale_clients(self):
        self.limiter.hit("old")
        self.clock.advance(45)
        self.limiter.hit("fresh")
        self.clock.advance(20)
        assert self.limiter.sweep() == 1
        assert len(self.limiter) == 1


class TestRateLimitMiddleware:
    @pytest.mark.asyncio
    async def test_fourth_request_gets_429(self):
        app = create_app(rate_limiter=FixedWindowRateLimiter(limit=3))
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            for expected_remaining in ("2", "1", "0"):
                response = await client.get("/")
                assert response.status_code == 200
                assert response.headers["X-RateLimit-Limit"] == "3"
                assert response.headers["X-RateLimit-Remaining"] == expected_remaining

            response = await client.get("/")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert response.json() == {
            "error": "Rate limit exceeded",
            "message": "Too many requests, please try again later",
        }

    @pytest.mark.asyncio
    async def test_forwarded_for_identifies_client(self):
        app = create_app(rate_limiter=FixedWindowRateLimiter(limit=1))
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            first = await client.get("/", headers={"X-Forwarded-For": "10.0.0.1, 172.16.0.1"})
            other = await client.get("/", headers={"X-Forwarded-For": "10.0.0.2"})
            again = await client.get("/", headers={"X-Forwarded-For": "10.0.0.1"})

        assert first.status_code == 200
        assert other.status_code == 200
        assert again.status_code == 429

    @pytest.mark.asyncio
    async def test_docs_are_not_limited(self):
        app = create_app(rate_limiter=FixedWindowRateLimiter(limit=1))
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            statuses = [(await client.get("/openapi.json")).status_code for _ in range(3)]
        assert statuses == [200, 200, 200]
