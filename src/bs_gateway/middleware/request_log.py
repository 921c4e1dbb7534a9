"""Access log + request correlation.

Every request gets a request_id on request.state (read back by routers and
the error handlers when they build an ApiResponse) and the same value in the
X-Request-ID response header. A caller-supplied X-Request-ID is honoured so a
frontend can correlate its own logs with ours.

One line per request on the "bs.request" logger:
    [POST] /api/v1/transactions/checkout → 201 (23ms) req_a1b2c3d4e5f6 user=-
Server errors (5xx) are logged at WARNING, everything else at INFO.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.bs_common.response import new_request_id

logger = logging.getLogger("bs.request")

_HEADER = "X-Request-ID"
_MAX_CLIENT_ID_LEN = 64


def _pick_request_id(request: Request) -> str:
    supplied = request.headers.get(_HEADER, "").strip()
    if supplied and len(supplied) <= _MAX_CLIENT_ID_LEN and supplied.isprintable():
        return supplied
    return new_request_id()


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _pick_request_id(request)
        request.state.request_id = request_id

        started = time.perf_counter()
        response = await call_next(request)
        took_ms = (time.perf_counter() - started) * 1000
        response.headers[_HEADER] = request_id

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "[%s] %s → %d (%.0fms) %s user=%s",
            request.method,
            request.url.path,
            response.status_code,
            took_ms,
            request_id,
            getattr(request.state, "user_id", "-"),
        )
        return response
