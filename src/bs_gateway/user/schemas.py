"""Pydantic request/response schemas for bs_gateway.

All responses are wrapped in ApiResponse at the router layer.
"""

from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.bs_gateway.auth.jwt_handler import access_token_ttl_seconds
from src.bs_gateway.user.db_models import UserModel


class RegisterRequest(BaseModel):
    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    phone_number: str = Field(..., min_length=5, max_length=32)
    password: str = Field(..., min_length=6, max_length=128)
    role: Literal["user", "admin"] = "user"

    @field_validator("phone_number")
    @classmethod
    def digits_only(cls, v: str) -> str:
        """Accept common separators but store digits (and a leading +) only."""
        cleaned = v.strip().replace(" ", "").replace("-", "")
        body = cleaned[1:] if cleaned.startswith("+") else cleaned
        if not body.isdigit():
            raise ValueError("phone_number must contain digits only")
        return cleaned

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str


class UserInfo(BaseModel):
    """Sanitized identity: never carries the password hash."""

    id: str
    first_name: str
    last_name: str
    email: str
    phone_number: str
    role: str
    is_active: bool
    created_at: str | None = None

    @classmethod
    def from_model(cls, user: UserModel) -> "UserInfo":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            phone_number=user.phone_number,
            role=user.role,
            is_active=user.is_active,
            created_at=user.created_at.isoformat() if user.created_at else None,
        )


class AuthResponse(BaseModel):
    user: UserInfo
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int

    @classmethod
    def for_user(cls, user: UserModel, access_token: str, refresh_token: str) -> "AuthResponse":
        return cls(
            user=UserInfo.from_model(user),
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=access_token_ttl_seconds(),
        )


class RefreshResponse(BaseModel):
    access_token: str
    expires_in: int
