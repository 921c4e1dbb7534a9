"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator, Callable, Mapping
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import settings
from src.bs_account.api.router import router as account_router
from src.bs_appointment.api.router import router as appointment_router
from src.bs_catalog.api.router import router as catalog_router
from src.bs_comment.api.router import router as comment_router
from src.bs_common.database import engine
from src.bs_common.errors import (
    AppError,
    InternalError,
    MethodNotAllowedError,
    RequestValidationFailedError,
    RouteNotFoundError,
    StoreFailureError,
)
from src.bs_common.redis_client import close_redis, get_redis
from src.bs_common.response import error_response
from src.bs_gateway.api.router import router as auth_router
from src.bs_gateway.middleware.rate_limit import RateLimitMiddleware
from src.bs_gateway.middleware.request_log import RequestLogMiddleware
from src.bs_ledger.api.router import router as ledger_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("bs.app")

_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    if settings.RATE_LIMIT_ENABLED:
        redis = await get_redis()
        await redis.ping()
    logger.info("%s started", settings.APP_NAME)
    yield
    # Shutdown
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version=_VERSION,
    lifespan=lifespan,
)

# Starlette runs the last-added middleware first: request logging wraps everything,
# so rate-limited responses are logged with their request_id too.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
if settings.RATE_LIMIT_ENABLED:
    app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


def _error_json(
    request: Request, exc: AppError, headers: Mapping[str, str] | None = None
) -> JSONResponse:
    resp = error_response(exc.code, exc.message, request)
    return JSONResponse(status_code=exc.http_status, content=resp.model_dump(), headers=headers)


def _describe_validation_error(exc: RequestValidationError) -> str:
    """First offending field only, e.g. "body.items: List should have at least 1 item"."""
    errors = exc.errors()
    if not errors:
        return "Validation failed"
    first = errors[0]
    where = ".".join(str(part) for part in first.get("loc", ()))
    return f"{where}: {first.get('msg', 'invalid value')}" if where else str(first.get("msg"))


_HTTP_STATUS_ERRORS: dict[int, Callable[[str], AppError]] = {
    404: RouteNotFoundError,
    405: MethodNotAllowedError,
}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _error_json(request, exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error_json(request, RequestValidationFailedError(_describe_validation_error(exc)))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework-raised HTTP errors: unknown routes, wrong methods and the bearer-token 401."""
    detail = str(exc.detail)
    if exc.status_code == 401:
        err: AppError = AppError(1003, detail, 401)
    elif exc.status_code in _HTTP_STATUS_ERRORS:
        err = _HTTP_STATUS_ERRORS[exc.status_code](detail)
    else:
        err = AppError(9000 if exc.status_code < 500 else 9002, detail, exc.status_code)
    return _error_json(request, err, exc.headers)


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Unhandled store error on %s %s", request.method, request.url.path)
    return _error_json(request, StoreFailureError())


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_json(request, InternalError())


# Gateway first: its static POST paths must not be shadowed by /users/{user_id}.
app.include_router(auth_router, prefix="/api/v1")
app.include_router(account_router, prefix="/api/v1")
app.include_router(catalog_router, prefix="/api/v1")
app.include_router(ledger_router, prefix="/api/v1")
app.include_router(appointment_router, prefix="/api/v1")
app.include_router(comment_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": _VERSION}


@app.get("/api")
async def api_index() -> dict[str, object]:
    """Entry point listing the resource roots."""
    return {
        "name": settings.APP_NAME,
        "version": _VERSION,
        "endpoints": {
            "users": "/api/v1/users",
            "books": "/api/v1/books",
            "transactions": "/api/v1/transactions",
            "appointments": "/api/v1/appointments",
            "comments": "/api/v1/comments",
        },
    }
