"""Unit tests for the rate limiter and request-log middleware."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from src.bs_gateway.middleware.rate_limit import RateLimitMiddleware
from src.bs_gateway.middleware.request_log import RequestLogMiddleware


class FakeRedis:
    def __init__(self) -> None:
        self.counts: dict[str, int] = {}
        self.ttls: dict[str, int] = {}

    async def incr(self, key: str) -> int:
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    async def expire(self, key: str, seconds: int) -> None:
        self.ttls[key] = seconds


class BrokenRedis:
    async def incr(self, key: str) -> int:
        raise RedisConnectionError("down")


def _app(redis: object, limit: int = 2) -> FastAPI:
    async def factory() -> object:
        return redis

    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, limit=limit, window_seconds=60, redis_factory=factory)
    app.add_middleware(RequestLogMiddleware)

    @app.get("/api/v1/ping")
    async def ping() -> dict[str, str]:
        return {"pong": "ok"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


async def _client(app: FastAPI) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestRateLimit:
    async def test_blocks_after_limit(self) -> None:
        redis = FakeRedis()
        async with await _client(_app(redis, limit=2)) as client:
            assert (await client.get("/api/v1/ping")).status_code == 200
            assert (await client.get("/api/v1/ping")).status_code == 200
            resp = await client.get("/api/v1/ping")

        assert resp.status_code == 429
        body = resp.json()
        assert body["success"] is False
        assert body["code"] == 9001
        assert resp.headers["Retry-After"] == "60"
        assert list(redis.ttls.values()) == [60]

    async def test_counts_per_forwarded_ip(self) -> None:
        redis = FakeRedis()
        async with await _client(_app(redis, limit=1)) as client:
            first = await client.get("/api/v1/ping", headers={"X-Forwarded-For": "1.1.1.1"})
            second = await client.get("/api/v1/ping", headers={"X-Forwarded-For": "2.2.2.2, 10.0.0.1"})
        assert first.status_code == 200
        assert second.status_code == 200
        assert set(redis.counts) == {"ratelimit:1.1.1.1", "ratelimit:2.2.2.2"}

    async def test_non_api_paths_not_limited(self) -> None:
        redis = FakeRedis()
        async with await _client(_app(redis, limit=0)) as client:
            resp = await client.get("/health")
        assert resp.status_code == 200
        assert redis.counts == {}

    async def test_fails_open_when_redis_down(self) -> None:
        async with await _client(_app(BrokenRedis(), limit=0)) as client:
            resp = await client.get("/api/v1/ping")
        assert resp.status_code == 200


class TestRequestLog:
    @pytest.mark.parametrize("path", ["/api/v1/ping", "/health"])
    async def test_request_id_header(self, path: str) -> None:
        async with await _client(_app(FakeRedis(), limit=10)) as client:
            resp = await client.get(path)
        assert resp.headers["X-Request-ID"].startswith("req_")

    async def test_client_request_id_is_echoed(self) -> None:
        async with await _client(_app(FakeRedis(), limit=10)) as client:
            resp = await client.get("/api/v1/ping", headers={"X-Request-ID": "web-7f3a"})
        assert resp.headers["X-Request-ID"] == "web-7f3a"

    async def test_oversized_client_request_id_is_replaced(self) -> None:
        async with await _client(_app(FakeRedis(), limit=10)) as client:
            resp = await client.get("/api/v1/ping", headers={"X-Request-ID": "x" * 200})
        assert resp.headers["X-Request-ID"].startswith("req_")

    async def test_rate_limited_envelope_carries_request_id(self) -> None:
        async with await _client(_app(FakeRedis(), limit=0)) as client:
            resp = await client.get("/api/v1/ping")
        assert resp.json()["request_id"] == resp.headers["X-Request-ID"]
