"""Access and refresh tokens for bookstore users (python-jose, HS256).

Access tokens carry email and role so clients can render admin screens
without another round trip; authorization itself always re-reads the users
row (see dependencies.get_current_user), so a demoted admin loses access on
the next request. Refresh tokens carry only the subject.

There is no revocation list: a token stays valid until it expires.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from config.settings import settings
from src.bs_common.errors import AppError, InvalidCredentialsError, InvalidRefreshTokenError

ACCESS = "access"
REFRESH = "refresh"

_TTL: dict[str, timedelta] = {
    ACCESS: timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    REFRESH: timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS),
}
_REJECTION: dict[str, type[AppError]] = {
    ACCESS: InvalidCredentialsError,
    REFRESH: InvalidRefreshTokenError,
}


def access_token_ttl_seconds() -> int:
    """The `expires_in` value returned next to every access token."""
    return int(_TTL[ACCESS].total_seconds())


def _sign(user_id: str, kind: str, **claims: Any) -> str:
    issued_at = datetime.now(UTC)
    payload = {"sub": user_id, "type": kind, "iat": issued_at, "exp": issued_at + _TTL[kind]}
    payload.update(claims)
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM))


def create_access_token(user_id: str, email: str = "", role: str = "user") -> str:
    return _sign(user_id, ACCESS, email=email, role=role)


def create_refresh_token(user_id: str) -> str:
    """Long-lived; not rotated when used."""
    return _sign(user_id, REFRESH)


def decode_token(token: str, expected_type: str) -> dict[str, Any]:
    """Verify signature, expiry and token type; return the claims.

    A refresh token presented as an access token (or the reverse) is rejected
    like a forged one. The error raised depends on what the caller expected:
    InvalidCredentialsError (1003) for access, InvalidRefreshTokenError (1005)
    for refresh.
    """
    rejection = _REJECTION[expected_type]
    try:
        claims: dict[str, Any] = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise rejection() from None

    if claims.get("type") != expected_type or not claims.get("sub"):
        raise rejection()
    return claims
