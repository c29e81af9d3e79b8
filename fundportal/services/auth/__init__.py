"""Authentication services package."""

from fundportal.services.auth.auth_service import (
    AuthError,
    AuthService,
    InvalidCredentialsError,
    InvalidFieldError,
    InvalidTokenError,
    MissingFieldsError,
    UserAlreadyExistsError,
    parse_login_form,
    parse_register_form,
)

__all__ = [
    "AuthError",
    "AuthService",
    "InvalidCredentialsError",
    "InvalidFieldError",
    "InvalidTokenError",
    "MissingFieldsError",
    "UserAlreadyExistsError",
    "parse_login_form",
    "parse_register_form",
]
