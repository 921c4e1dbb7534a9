"""Authentication dependencies shared by every protected router.

    @router.post("/checkout")
    async def checkout(current_user: UserModel = Depends(get_current_user)): ...

    @router.post("/books")
    async def create_book(admin: UserModel = Depends(require_admin)): ...

A missing, forged, expired or wrong-type token is a plain 401 with
WWW-Authenticate (so OAuth2 clients and Swagger's "Authorize" button behave);
a valid token for a deactivated account is AccountDisabledError (1004, 403).
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_common.database import get_db_session
from src.bs_common.errors import AccountDisabledError, ForbiddenError, InvalidCredentialsError
from src.bs_gateway.auth.jwt_handler import ACCESS, decode_token
from src.bs_gateway.user.db_models import UserModel

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/users/login")


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _load_user(db: AsyncSession, user_id: str) -> UserModel | None:
    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    return result.scalar_one_or_none()


async def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """Resolve the bearer token to a live users row.

    The role is taken from the row, not from the token claims.
    """
    try:
        claims = decode_token(token, ACCESS)
    except InvalidCredentialsError:
        raise _unauthorized() from None

    user = await _load_user(db, str(claims["sub"]))
    if user is None:
        # token outlived its account
        raise _unauthorized()
    if not user.is_active:
        raise AccountDisabledError()

    request.state.user_id = user.id  # picked up by the access log
    return user


async def require_admin(current_user: UserModel = Depends(get_current_user)) -> UserModel:
    """Admin-only routes: catalog writes, transaction/appointment administration."""
    if not current_user.is_admin:
        raise ForbiddenError("Admin access required")
    return current_user
