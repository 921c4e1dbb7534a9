"""bs_account REST API — profile, user admin, cart and library. All require JWT.

Mounted under /users next to the auth router. Static paths are declared
before /{user_id} so they are never captured as an id.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_account.application.schemas import AddToCartRequest, UpdateProfileRequest
from src.bs_account.application.service import AccountApplicationService
from src.bs_common.database import get_db_session
from src.bs_common.enums import ItemType
from src.bs_common.response import ApiResponse, success_response
from src.bs_gateway.auth.dependencies import get_current_user, require_admin
from src.bs_gateway.user.db_models import UserModel

router = APIRouter(prefix="/users", tags=["users"])

_service = AccountApplicationService()


@router.get("/profile")
async def get_profile(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_profile(db, current_user.id)
    return success_response(data.model_dump(), "Profile retrieved successfully", request=request)


@router.put("/profile")
async def update_profile(
    body: UpdateProfileRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.update_profile(db, current_user.id, body)
    return success_response(data.model_dump(), "Profile updated successfully", request=request)


@router.post("/cart/add")
async def add_to_cart(
    body: AddToCartRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.add_to_cart(db, current_user.id, body)
    return success_response(data.model_dump(), "Item added to cart successfully", request=request)


@router.delete("/cart/remove/{book_id}/{item_type}")
async def remove_from_cart(
    book_id: str,
    item_type: Annotated[ItemType, Path()],
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    removed = await _service.remove_from_cart(db, current_user.id, book_id, item_type.value)
    return success_response({"removed": removed}, "Item removed from cart successfully", request=request)


@router.get("/cart/items")
async def get_cart(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_cart(db, current_user.id)
    return success_response(data.model_dump(), "Cart retrieved successfully", request=request)


@router.delete("/cart/clear")
async def clear_cart(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    await _service.clear_cart(db, current_user.id)
    return success_response(None, "Cart cleared successfully", request=request)


@router.get("/library")
async def get_library(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_library(db, current_user.id)
    return success_response(data.model_dump(), "Library retrieved successfully", request=request)


@router.get("")
async def list_users(
    _admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    users = await _service.list_users(db)
    return success_response([u.model_dump() for u in users], "Users retrieved successfully", request=request)


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_user(db, user_id, current_user.id, current_user.is_admin)
    return success_response(data.model_dump(), "User retrieved successfully", request=request)
