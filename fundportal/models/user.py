"""
User and Authentication Models

CRITICAL: Password hashes live ONLY on UserRecord.
Anything returned to the UI or embedded in a token uses PublicUser.
"""

from datetime import datetime, timezone
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


USERNAME_MAX_LENGTH = 50


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RegisterRequest(BaseModel):
    """
    Registration form payload.

    Fields default to empty strings so an incomplete form can still be
    represented; AuthService rejects it with "All fields are required".
    The password is kept exactly as typed.
    """

    name: str = Field(default="", max_length=200)
    mobile: str = Field(default="", max_length=20)
    email: str = Field(default="", max_length=254)
    username: str = Field(default="", max_length=USERNAME_MAX_LENGTH)
    password: str = Field(default="", max_length=128)

    @field_validator("name", "mobile", "email", "username", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @property
    def is_complete(self) -> bool:
        return all([self.name, self.mobile, self.email, self.username, self.password])


class LoginRequest(BaseModel):
    """Login form payload."""

    username: str = Field(default="", max_length=USERNAME_MAX_LENGTH)
    password: str = Field(default="", max_length=128)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v):
        return v.strip() if isinstance(v, str) else v


class PublicUser(BaseModel):
    """User fields safe to show in the UI."""
    id: UUID
    name: str
    mobile: str
    email: str
    username: str


class UserRecord(BaseModel):
    """A stored user, including the bcrypt password hash."""

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1)
    mobile: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    password_hash: str = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=_utcnow)

    def to_public(self) -> PublicUser:
        return PublicUser(
            id=self.id,
            name=self.name,
            mobile=self.mobile,
            email=self.email,
            username=self.username,
        )


class TokenClaims(BaseModel):
    """Decoded contents of an access token."""
    user_id: UUID
    username: str
    expires_at: datetime


class AuthSession(BaseModel):
    """Result of a successful register or login."""
    user: PublicUser
    token: str
    token_type: str = "bearer"


class PortalStats(BaseModel):
    """Dashboard counters."""
    users: int = Field(ge=0)
    calculators: int = Field(ge=0)
    generated_at: datetime = Field(default_factory=_utcnow)
