"""Unit tests for bs_common: errors, response envelope, pagination, cents, datetimes."""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import pytest

from src.bs_common.cents import cents_to_display
from src.bs_common.datetime_utils import days_after, parse_iso, to_iso
from src.bs_common.errors import (
    AppError,
    BookAlreadyReturnedError,
    BookNotFoundError,
    BorrowNotFoundError,
    IdempotencyKeyReusedError,
    MethodNotAllowedError,
    RateLimitError,
    RequestValidationFailedError,
    RouteNotFoundError,
    StockConflictError,
    StoreFailureError,
)
from src.bs_common.pagination import Pagination, page_offset
from src.bs_common.response import error_response, success_response


class TestErrors:
    def test_all_errors_are_app_errors(self) -> None:
        assert isinstance(BookNotFoundError("b1"), AppError)

    @pytest.mark.parametrize(
        ("error", "code", "status"),
        [
            (BookNotFoundError("b1"), 3001, 404),
            (StockConflictError("b1"), 3004, 409),
            (IdempotencyKeyReusedError("k"), 4003, 409),
            (BorrowNotFoundError("b1"), 4004, 404),
            (BookAlreadyReturnedError("b1"), 4005, 404),
            (RateLimitError(), 9001, 429),
            (StoreFailureError(), 9003, 503),
            (RequestValidationFailedError(), 9004, 400),
            (RouteNotFoundError(), 9005, 404),
            (MethodNotAllowedError(), 9006, 405),
        ],
    )
    def test_codes_and_statuses(self, error: AppError, code: int, status: int) -> None:
        assert error.code == code
        assert error.http_status == status

    def test_message_names_the_book(self) -> None:
        assert "b42" in BookNotFoundError("b42").message


class TestResponse:
    def test_success_envelope(self) -> None:
        resp = success_response({"a": 1}, "done")
        assert resp.success is True
        assert resp.code == 0
        assert resp.message == "done"
        assert resp.data == {"a": 1}
        assert resp.request_id.startswith("req_")

    def test_error_envelope(self) -> None:
        resp = error_response(3001, "missing")
        assert resp.success is False
        assert resp.code == 3001
        assert resp.data is None

    def test_error_envelope_never_reports_code_zero(self) -> None:
        assert error_response(0, "boom").code == 9002

    def test_request_id_copied_from_request_state(self) -> None:
        request = SimpleNamespace(state=SimpleNamespace(request_id="req_fromlogmw"))
        assert success_response({}, request=request).request_id == "req_fromlogmw"  # type: ignore[arg-type]
        assert error_response(3001, "missing", request).request_id == "req_fromlogmw"  # type: ignore[arg-type]

    def test_request_without_id_keeps_generated_one(self) -> None:
        request = SimpleNamespace(state=SimpleNamespace())
        assert success_response(None, request=request).request_id.startswith("req_")  # type: ignore[arg-type]


class TestPagination:
    def test_middle_page(self) -> None:
        p = Pagination.build(page=2, limit=10, total=35)
        assert p.total_pages == 4
        assert p.has_next is True
        assert p.has_prev is True

    def test_last_page(self) -> None:
        p = Pagination.build(page=4, limit=10, total=35)
        assert p.has_next is False

    def test_empty(self) -> None:
        p = Pagination.build(page=1, limit=12, total=0)
        assert p.total_pages == 0
        assert p.has_next is False
        assert p.has_prev is False

    def test_offset(self) -> None:
        assert page_offset(1, 12) == 0
        assert page_offset(3, 12) == 24


class TestCents:
    def test_display(self) -> None:
        assert cents_to_display(1999) == "$19.99"
        assert cents_to_display(5) == "$0.05"
        assert cents_to_display(123456) == "$1,234.56"
        assert cents_to_display(-1200) == "-$12.00"


class TestDatetimes:
    def test_parse_naive_assumes_utc(self) -> None:
        parsed = parse_iso("2026-01-02T03:04:05")
        assert parsed == datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)

    def test_round_trip_keeps_offset(self) -> None:
        value = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)
        assert parse_iso(to_iso(value)) == value

    def test_none_passes_through(self) -> None:
        assert parse_iso(None) is None
        assert to_iso(None) is None

    def test_days_after(self) -> None:
        start = datetime(2026, 1, 1, tzinfo=UTC)
        assert days_after(start, 14) == start + timedelta(days=14)
