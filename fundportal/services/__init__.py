"""Services package."""

from fundportal.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsUserStorage,
    InMemoryAuditStorage,
    InMemoryUserStorage,
    StorageError,
    UserStorageInterface,
)
from fundportal.services.auth import (
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
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsUserStorage",
    "InMemoryAuditStorage",
    "InMemoryUserStorage",
    "StorageError",
    "UserStorageInterface",
    # Auth services
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
