"""Response envelope shared by every bookstore endpoint.

Success (POST /api/v1/transactions/checkout):
    {"success": true, "code": 0, "message": "success",
     "data": {"transaction": {...}, "reference": "ORDER_...", "total_amount_cents": 1999},
     "timestamp": "2026-03-01T12:00:00+00:00", "request_id": "req_a1b2c3d4e5f6"}

Failure (same shape, data is always null):
    {"success": false, "code": 3004, "message": "Book book_1 was taken by a concurrent checkout",
     "data": null, ...}
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request


def new_request_id() -> str:
    """Short correlation id, also used by RequestLogMiddleware."""
    return f"req_{uuid.uuid4().hex[:12]}"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ApiResponse(BaseModel):
    success: bool = True
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=_utc_now_iso)
    request_id: str = Field(default_factory=new_request_id)


def _stamp(resp: ApiResponse, request: Request | None) -> ApiResponse:
    # reuse the id RequestLogMiddleware put on the request, so body and X-Request-ID agree
    if request is not None:
        resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


def success_response(
    data: Any = None, message: str = "success", request: Request | None = None
) -> ApiResponse:
    return _stamp(ApiResponse(data=data, message=message), request)


def error_response(code: int, message: str, request: Request | None = None) -> ApiResponse:
    # code 0 is reserved for success; an error envelope must never claim it
    return _stamp(ApiResponse(success=False, code=code or 9002, message=message), request)
