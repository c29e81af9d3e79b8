"""
In-Memory Storage Implementation

Used by the test-suite and by local runs without Google Sheets
(AppSettings.use_google_sheets = False). Data lives for the lifetime
of the process only.
"""

from typing import Optional
from uuid import UUID

from fundportal.models.audit import AuditEvent
from fundportal.models.user import UserRecord
from fundportal.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    UserStorageInterface,
)


class InMemoryUserStorage(UserStorageInterface):
    """Users keyed by id, in insertion order."""

    def __init__(self):
        self._users: dict[UUID, UserRecord] = {}

    async def create_user(self, user: UserRecord) -> bool:
        if await self.user_exists(user.email, user.username):
            raise DuplicateError(f"User already exists: {user.username}")
        self._users[user.id] = user
        return True

    async def get_user_by_id(self, user_id: UUID) -> Optional[UserRecord]:
        return self._users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        for user in self._users.values():
            if user.username == username:
                return user
        return None

    async def user_exists(self, email: str, username: str) -> bool:
        return any(
            user.email == email or user.username == username
            for user in self._users.values()
        )

    async def count_users(self) -> int:
        return len(self._users)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return sorted(self._events, key=lambda e: e.timestamp, reverse=True)[:limit]
