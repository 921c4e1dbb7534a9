"""Rate limiting middleware — Redis fixed window per client IP.

Rule: RATE_LIMIT_REQUESTS requests per RATE_LIMIT_WINDOW_SECONDS (default
100 per 15 minutes) on everything under /api/. /health is never limited.

Redis logic:
    count = await redis.incr(key)
    if count == 1:
        await redis.expire(key, window)
    if count > limit:
        -> 429 (RateLimitError, 9001) with Retry-After

The response is built here rather than raised: exceptions escaping a
BaseHTTPMiddleware never reach the AppError handler. If Redis is down the
request is let through and a warning is logged.
"""

import logging
from collections.abc import Awaitable, Callable

from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from config.settings import settings
from src.bs_common.errors import RateLimitError
from src.bs_common.redis_client import get_redis
from src.bs_common.response import error_response

logger = logging.getLogger("bs.ratelimit")

_KEY_PREFIX = "ratelimit"


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop when behind a proxy, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        limit: int | None = None,
        window_seconds: int | None = None,
        redis_factory: Callable[[], Awaitable[object]] = get_redis,
    ) -> None:
        super().__init__(app)
        self._limit = limit if limit is not None else settings.RATE_LIMIT_REQUESTS
        self._window = (
            window_seconds if window_seconds is not None else settings.RATE_LIMIT_WINDOW_SECONDS
        )
        self._redis_factory = redis_factory

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not request.url.path.startswith("/api/"):
            return await call_next(request)

        key = f"{_KEY_PREFIX}:{client_ip(request)}"
        try:
            redis = await self._redis_factory()
            count = await redis.incr(key)  # type: ignore[attr-defined]
            if count == 1:
                await redis.expire(key, self._window)  # type: ignore[attr-defined]
        except RedisError:
            logger.warning("Rate limiter unavailable, letting %s through", key)
            return await call_next(request)

        if count > self._limit:
            err = RateLimitError()
            resp = error_response(err.code, err.message, request)
            return JSONResponse(
                status_code=err.http_status,
                content=resp.model_dump(),
                headers={"Retry-After": str(self._window)},
            )
        return await call_next(request)
