"""Identity endpoints under /api/v1/users: register, login, refresh.

Profile, cart and library endpoints share the /users prefix but live in
bs_account's router; this router is mounted first so its fixed POST paths win
over /users/{user_id}.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_common.database import get_db_session
from src.bs_common.response import ApiResponse, success_response
from src.bs_gateway.auth.jwt_handler import access_token_ttl_seconds
from src.bs_gateway.user.schemas import (
    AuthResponse,
    LoginRequest,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
)
from src.bs_gateway.user.service import UserService, issue_tokens

router = APIRouter(prefix="/users", tags=["auth"])
_service = UserService()


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    summary="Create a reader account and sign it in",
)
async def register(
    request: Request,
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    # the users row and its empty embedded lists land in one commit
    async with db.begin():
        user = await _service.register(body, db)

    data = AuthResponse.for_user(user, *issue_tokens(user))
    return success_response(data.model_dump(), "User registered successfully", request=request)


@router.post("/login", response_model=ApiResponse, summary="Exchange email + password for tokens")
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    user, access_token, refresh_token = await _service.login(body.email, body.password, db)
    data = AuthResponse.for_user(user, access_token, refresh_token)
    return success_response(data.model_dump(), "Login successful", request=request)


@router.post("/refresh", response_model=ApiResponse, summary="Mint a new access token")
async def refresh(
    request: Request,
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    access_token = await _service.refresh(body.refresh_token, db)
    data = RefreshResponse(access_token=access_token, expires_in=access_token_ttl_seconds())
    return success_response(data.model_dump(), "Token refreshed", request=request)
