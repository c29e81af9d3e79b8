"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets backs production; the in-memory implementation backs tests
and local runs.
"""

from fundportal.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    StorageError,
    UserStorageInterface,
)
from fundportal.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsUserStorage,
)
from fundportal.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryUserStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "UserStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "StorageError",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsUserStorage",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryUserStorage",
]
