"""bs_catalog REST API.

Browsing is public; create/update/delete need an admin token; posting a
comment needs any valid token.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_catalog.application.schemas import BookCreateRequest, BookUpdateRequest
from src.bs_catalog.application.service import CatalogApplicationService
from src.bs_comment.application.schemas import CommentBody, CreateCommentRequest
from src.bs_comment.application.service import CommentApplicationService
from src.bs_common.database import get_db_session
from src.bs_common.response import ApiResponse, success_response
from src.bs_gateway.auth.dependencies import get_current_user, require_admin
from src.bs_gateway.user.db_models import UserModel

router = APIRouter(prefix="/books", tags=["books"])

_service = CatalogApplicationService()
_comments = CommentApplicationService()


@router.get("")
async def list_books(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    category: str | None = Query(None, description="Category, or 'all'"),
    search: str | None = Query(None, max_length=100, description="Title/author/description"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_books(db, category, search, page, limit)
    return success_response(data.model_dump(), "Books retrieved successfully", request=request)


@router.get("/meta/categories")
async def list_categories(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_categories(db)
    return success_response(data, "Categories retrieved successfully", request=request)


@router.get("/meta/popular")
async def list_popular(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    books = await _service.list_popular(db)
    data = [b.model_dump() for b in books]
    return success_response(data, "Popular books retrieved successfully", request=request)


@router.get("/{book_id}")
async def get_book(
    book_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_book(db, book_id)
    return success_response(data.model_dump(), "Book retrieved successfully", request=request)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_book(
    body: BookCreateRequest,
    _admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_book(db, body)
    return success_response(data.model_dump(), "Book created successfully", request=request)


@router.put("/{book_id}")
async def update_book(
    book_id: str,
    body: BookUpdateRequest,
    _admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.update_book(db, book_id, body)
    return success_response(data.model_dump(), "Book updated successfully", request=request)


@router.delete("/{book_id}")
async def delete_book(
    book_id: str,
    _admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    await _service.delete_book(db, book_id)
    return success_response(None, "Book deleted successfully", request=request)


@router.post("/{book_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_book_comment(
    book_id: str,
    body: CommentBody,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    req = CreateCommentRequest(book_id=book_id, content=body.content, rating=body.rating)
    author_name = current_user.full_name
    data = await _comments.create(db, current_user.id, author_name, req)
    return success_response(data.model_dump(), "Comment added successfully", request=request)


@router.get("/{book_id}/comments")
async def get_book_comments(
    book_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_comments(db, book_id)
    return success_response(data.model_dump(), "Comments retrieved successfully", request=request)
