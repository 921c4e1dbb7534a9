"""bs_ledger REST API — checkout, return, transaction views. All require JWT."""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_common.database import get_db_session
from src.bs_common.response import ApiResponse, success_response
from src.bs_gateway.auth.dependencies import get_current_user, require_admin
from src.bs_gateway.user.db_models import UserModel
from src.bs_ledger.application.schemas import (
    CheckoutRequest,
    ReturnBookRequest,
    UpdateStatusRequest,
)
from src.bs_ledger.application.service import LedgerApplicationService

router = APIRouter(prefix="/transactions", tags=["transactions"])

_service = LedgerApplicationService()


@router.post("/checkout", status_code=status.HTTP_201_CREATED)
async def checkout(
    body: CheckoutRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    idempotency_key: Annotated[str | None, Header(alias="Idempotency-Key", max_length=64)] = None,
) -> ApiResponse:
    data = await _service.checkout(db, current_user.id, body, idempotency_key)
    return success_response(data.model_dump(), "Transaction completed successfully", request=request)


@router.post("/return-book")
async def return_book(
    body: ReturnBookRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.return_book(db, current_user.id, body.book_id)
    return success_response(data.model_dump(), "Book returned successfully", request=request)


@router.get("")
async def list_transactions(
    _admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status_filter: str | None = Query(None, alias="status", description="Filter by status"),
    user_id: str | None = Query(None, description="Filter by user"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_transactions(db, status_filter, user_id, page, limit)
    return success_response(data.model_dump(), request=request)


@router.get("/my-transactions")
async def my_transactions(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_transactions(db, None, current_user.id, page, limit)
    return success_response(data.model_dump(), request=request)


@router.get("/stats/overview")
async def transaction_stats(
    _admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.stats(db)
    return success_response(data.model_dump(), request=request)


@router.get("/{transaction_id}")
async def get_transaction(
    transaction_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_transaction(
        db, transaction_id, current_user.id, current_user.is_admin
    )
    return success_response(data.model_dump(), request=request)


@router.put("/{transaction_id}/status")
async def update_transaction_status(
    transaction_id: str,
    body: UpdateStatusRequest,
    _admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.update_status(db, transaction_id, body.status)
    return success_response(data.model_dump(), "Transaction status updated successfully", request=request)
