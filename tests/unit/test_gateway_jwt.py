"""Token issuing and verification used by login, refresh and get_current_user."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from jose import jwt

from config.settings import settings
from src.bs_common.errors import InvalidCredentialsError, InvalidRefreshTokenError
from src.bs_gateway.auth.jwt_handler import (
    ACCESS,
    REFRESH,
    access_token_ttl_seconds,
    create_access_token,
    create_refresh_token,
    decode_token,
)


class TestIssue:
    def test_access_token_carries_role_and_email(self) -> None:
        claims = jwt.get_unverified_claims(create_access_token("user_1", "ada@example.com", "admin"))
        assert claims["sub"] == "user_1"
        assert claims["email"] == "ada@example.com"
        assert claims["role"] == "admin"
        assert claims["type"] == ACCESS

    def test_refresh_token_carries_subject_only(self) -> None:
        claims = jwt.get_unverified_claims(create_refresh_token("user_1"))
        assert claims["type"] == REFRESH
        assert "role" not in claims
        assert "email" not in claims

    def test_expires_in_matches_configured_minutes(self) -> None:
        assert access_token_ttl_seconds() == settings.JWT_EXPIRE_MINUTES * 60


class TestDecode:
    def test_round_trip(self) -> None:
        assert decode_token(create_access_token("user_1"), ACCESS)["sub"] == "user_1"
        assert decode_token(create_refresh_token("user_1"), REFRESH)["sub"] == "user_1"

    @pytest.mark.parametrize(
        ("token_factory", "expected_type", "error"),
        [
            (create_access_token, REFRESH, InvalidRefreshTokenError),
            (create_refresh_token, ACCESS, InvalidCredentialsError),
        ],
    )
    def test_token_type_confusion_rejected(self, token_factory, expected_type, error) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(error):
            decode_token(token_factory("user_1"), expected_type)

    def test_expired_access_token(self) -> None:
        with patch.dict("src.bs_gateway.auth.jwt_handler._TTL", {ACCESS: timedelta(seconds=-1)}):
            token = create_access_token("user_1")
        with pytest.raises(InvalidCredentialsError):
            decode_token(token, ACCESS)

    def test_foreign_signature_rejected(self) -> None:
        forged = jwt.encode({"sub": "user_1", "type": ACCESS}, "someone-elses-secret", algorithm="HS256")
        with pytest.raises(InvalidCredentialsError):
            decode_token(forged, ACCESS)

    def test_token_without_subject_rejected(self) -> None:
        blank = jwt.encode({"type": REFRESH}, settings.JWT_SECRET, algorithm="HS256")
        with pytest.raises(InvalidRefreshTokenError):
            decode_token(blank, REFRESH)
