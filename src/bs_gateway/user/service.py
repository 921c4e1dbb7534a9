"""User identity service: register, login, refresh.

All DB operations use the injected AsyncSession. Transactions are managed
by the caller (router layer) via `async with db.begin()`.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bs_common.enums import UserRole
from src.bs_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
)
from src.bs_common.id_generator import generate_user_id
from src.bs_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.bs_gateway.auth.password import hash_password, verify_password
from src.bs_gateway.user.db_models import UserModel
from src.bs_gateway.user.schemas import RegisterRequest

logger = logging.getLogger("bs.auth")


class UserService:
    """Stateless service — instantiate once, reuse across requests."""

    async def register(self, req: RegisterRequest, db: AsyncSession) -> UserModel:
        """Create the users row; the embedded account lists start empty via column defaults.

        The caller must wrap this in `async with db.begin()`.
        """
        if req.role == UserRole.ADMIN and not settings.ALLOW_ADMIN_REGISTRATION:
            raise ForbiddenError("Admin accounts cannot be self-registered")

        email = req.email.lower()
        # DB UNIQUE constraint is the final guard
        result = await db.execute(select(UserModel).where(UserModel.email == email))
        if result.scalar_one_or_none() is not None:
            raise EmailExistsError()

        user = UserModel(
            id=generate_user_id(),
            first_name=req.first_name,
            last_name=req.last_name,
            email=email,
            phone_number=req.phone_number,
            password_hash=hash_password(req.password),
            role=req.role,
            is_active=True,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            raise EmailExistsError() from None
        await db.refresh(user)
        logger.info("Registered user %s (%s)", user.id, user.role)
        return user

    async def login(
        self,
        email: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Authenticate user and return (user, access_token, refresh_token).

        Note: "User not found" and "Wrong password" both raise InvalidCredentialsError
        intentionally — prevents email enumeration attacks.
        """
        result = await db.execute(select(UserModel).where(UserModel.email == email.lower()))
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        return user, *issue_tokens(user)

    async def refresh(self, refresh_token: str, db: AsyncSession) -> str:
        """Validate refresh token and return a new access token with the current role."""
        payload = decode_token(refresh_token, expected_type="refresh")
        user_id = str(payload["sub"])
        result = await db.execute(select(UserModel).where(UserModel.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise InvalidRefreshTokenError()
        if not user.is_active:
            raise AccountDisabledError()
        return create_access_token(user.id, user.email, user.role)


def issue_tokens(user: UserModel) -> tuple[str, str]:
    return (
        create_access_token(user.id, user.email, user.role),
        create_refresh_token(user.id),
    )
