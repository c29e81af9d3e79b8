"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Use Google Sheets for a small deployment
2. Use in-memory storage for testing and local runs
3. Swap in a real database later

The interface is intentionally simple - we're not building a full ORM.
Just the operations we need for accounts and the audit trail.
Calculation results are never stored.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from fundportal.models.audit import AuditEvent
from fundportal.models.user import UserRecord


class UserStorageInterface(ABC):
    """
    Abstract interface for user account storage.

    Any storage implementation (Google Sheets, in-memory, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def create_user(self, user: UserRecord) -> bool:
        """
        Store a new user.

        Args:
            user: The user record, password already hashed

        Returns:
            True if saved successfully

        Raises:
            DuplicateError: If the email or username is taken
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_user_by_id(self, user_id: UUID) -> Optional[UserRecord]:
        """
        Retrieve a user by ID.

        Returns:
            The user if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        """
        Retrieve a user by username (exact match).

        Returns:
            The user if found, None otherwise
        """
        pass

    @abstractmethod
    async def user_exists(self, email: str, username: str) -> bool:
        """
        Check whether an account uses this email OR this username.

        Args:
            email: Email address from the registration form
            username: Username from the registration form

        Returns:
            True if either is already registered
        """
        pass

    @abstractmethod
    async def count_users(self) -> int:
        """Number of registered users."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one login attempt).

        Args:
            correlation_id: The correlation identifier

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
