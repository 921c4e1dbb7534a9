"""Unit tests for registration/login request validation."""

import pytest
from pydantic import ValidationError

from src.bs_gateway.user.schemas import LoginRequest, RegisterRequest


def _register(**kwargs) -> RegisterRequest:  # type: ignore[no-untyped-def]
    data = dict(
        first_name="Ada",
        last_name="Lovelace",
        email="ada@example.com",
        phone_number="+1 555-123-4567",
        password="secret1",
    )
    data.update(kwargs)
    return RegisterRequest(**data)


def test_phone_separators_are_stripped() -> None:
    assert _register().phone_number == "+15551234567"


def test_phone_with_letters_rejected() -> None:
    with pytest.raises(ValidationError):
        _register(phone_number="555-CALL-NOW")


def test_short_password_rejected() -> None:
    with pytest.raises(ValidationError):
        _register(password="12345")


def test_invalid_email_rejected() -> None:
    with pytest.raises(ValidationError):
        _register(email="not-an-email")


def test_role_defaults_to_user() -> None:
    assert _register().role == "user"


def test_unknown_role_rejected() -> None:
    with pytest.raises(ValidationError):
        _register(role="superuser")


def test_login_requires_password() -> None:
    with pytest.raises(ValidationError):
        LoginRequest(email="ada@example.com", password="")
