"""bs_comment REST API — all endpoints require JWT."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_comment.application.schemas import CreateCommentRequest, UpdateCommentRequest
from src.bs_comment.application.service import CommentApplicationService
from src.bs_common.database import get_db_session
from src.bs_common.response import ApiResponse, success_response
from src.bs_gateway.auth.dependencies import get_current_user, require_admin
from src.bs_gateway.user.db_models import UserModel

router = APIRouter(prefix="/comments", tags=["comments"])

_service = CommentApplicationService()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_comment(
    body: CreateCommentRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    author_name = current_user.full_name
    data = await _service.create(db, current_user.id, author_name, body)
    return success_response(data.model_dump(), "Comment created successfully", request=request)


@router.get("")
async def list_comments(
    _admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    book_id: str | None = Query(None),
    user_id: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_comments(db, book_id, user_id, page, limit)
    return success_response(data.model_dump(), request=request)


@router.get("/my-comments")
async def my_comments(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_comments(db, None, current_user.id, page, limit)
    return success_response(data.model_dump(), request=request)


@router.get("/{comment_id}")
async def get_comment(
    comment_id: str,
    _user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get(db, comment_id)
    return success_response(data.model_dump(), request=request)


@router.put("/{comment_id}")
async def update_comment(
    comment_id: str,
    body: UpdateCommentRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.update(db, comment_id, current_user.id, body)
    return success_response(data.model_dump(), "Comment updated successfully", request=request)


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    await _service.delete(db, comment_id, current_user.id, current_user.is_admin)
    return success_response(None, "Comment deleted successfully", request=request)
