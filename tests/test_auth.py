"""
Tests for the authentication service.

Uses in-memory storage and a low bcrypt cost so hashing stays fast.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from jose import jwt

from fundportal.config import AdminSettings, AuthSettings
from fundportal.models.user import LoginRequest, RegisterRequest, UserRecord
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
from fundportal.services.storage import InMemoryUserStorage


SECRET = "test-secret-key-0123456789"


@pytest.fixture
def auth_settings():
    return AuthSettings(jwt_secret_key=SECRET, bcrypt_rounds=4)


@pytest.fixture
def storage():
    return InMemoryUserStorage()


@pytest.fixture
def service(storage, auth_settings):
    return AuthService(storage, auth_settings)


def register_request(**overrides):
    values = dict(
        name="Asha Rao",
        mobile="9876543210",
        email="asha@example.com",
        username="asha",
        password="s3cret-pass",
    )
    values.update(overrides)
    return RegisterRequest(**values)


class TestPasswords:
    """Tests for password hashing."""

    def test_hash_is_not_the_password(self, service):
        password_hash = service.hash_password("s3cret-pass")
        assert password_hash != "s3cret-pass"
        assert password_hash.startswith("$2b$04$")

    def test_verify_password(self, service):
        password_hash = service.hash_password("s3cret-pass")
        assert service.verify_password("s3cret-pass", password_hash) is True
        assert service.verify_password("wrong", password_hash) is False

    def test_verify_against_garbage_hash(self, service):
        assert service.verify_password("s3cret-pass", "not-a-hash") is False


class TestRegister:
    """Tests for registration."""

    def test_register_returns_session(self, service, storage):
        session = asyncio.run(service.register(register_request()))

        assert session.user.username == "asha"
        assert session.token_type == "bearer"
        assert asyncio.run(storage.count_users()) == 1

        stored = asyncio.run(storage.get_user_by_username("asha"))
        assert stored.password_hash != "s3cret-pass"

    def test_register_missing_field(self, service):
        with pytest.raises(MissingFieldsError, match="All fields are required"):
            asyncio.run(service.register(register_request(mobile="  ")))

    def test_register_duplicate_username(self, service):
        asyncio.run(service.register(register_request()))
        with pytest.raises(UserAlreadyExistsError, match="User already exists"):
            asyncio.run(service.register(register_request(email="other@example.com")))

    def test_register_duplicate_email(self, service):
        asyncio.run(service.register(register_request()))
        with pytest.raises(UserAlreadyExistsError):
            asyncio.run(service.register(register_request(username="asha2")))


class TestLogin:
    """Tests for login."""

    def test_login_success(self, service):
        registered = asyncio.run(service.register(register_request()))
        session = asyncio.run(service.login(LoginRequest(username="asha", password="s3cret-pass")))
        assert session.user.id == registered.user.id

    def test_login_missing_fields(self, service):
        with pytest.raises(MissingFieldsError, match="Username and password are required"):
            asyncio.run(service.login(LoginRequest(username="asha")))

    def test_unknown_user_and_wrong_password_look_the_same(self, service):
        """Test both failures give the same message but keep their reason."""
        asyncio.run(service.register(register_request()))

        with pytest.raises(InvalidCredentialsError) as unknown:
            asyncio.run(service.login(LoginRequest(username="nobody", password="x")))
        with pytest.raises(InvalidCredentialsError) as wrong:
            asyncio.run(service.login(LoginRequest(username="asha", password="x")))

        assert str(unknown.value) == str(wrong.value) == "Invalid credentials"
        assert unknown.value.reason == "unknown username"
        assert wrong.value.reason == "wrong password"

    def test_password_whitespace_is_significant(self, service):
        asyncio.run(service.register(register_request(password="  s3cret  ")))

        with pytest.raises(InvalidCredentialsError):
            asyncio.run(service.login(LoginRequest(username="asha", password="s3cret")))
        session = asyncio.run(service.login(LoginRequest(username=" asha ", password="  s3cret  ")))
        assert session.user.username == "asha"


class TestFormParsing:
    """Tests for turning raw form values into requests."""

    def test_overlong_mobile_is_an_auth_error(self):
        with pytest.raises(InvalidFieldError) as exc_info:
            parse_register_form({
                "name": "a", "mobile": "1" * 21, "email": "e", "username": "u", "password": "p",
            })
        assert isinstance(exc_info.value, AuthError)
        assert exc_info.value.field == "mobile"
        assert str(exc_info.value) == "Mobile must be at most 20 characters"

    def test_overlong_password(self):
        with pytest.raises(InvalidFieldError, match="Password must be at most 128 characters"):
            parse_register_form({"password": "x" * 129})
        with pytest.raises(InvalidFieldError, match="Password must be at most 128 characters"):
            parse_login_form({"username": "asha", "password": "x" * 129})

    def test_non_text_field(self):
        with pytest.raises(InvalidFieldError, match="Username is invalid"):
            parse_login_form({"username": 42, "password": "pw"})

    def test_valid_form(self):
        request = parse_register_form({
            "name": " Asha Rao ", "mobile": "9876543210", "email": "asha@example.com",
            "username": "asha", "password": "s3cret-pass",
        })
        assert request == register_request()


class TestTokens:
    """Tests for access tokens."""

    def test_token_round_trip(self, service):
        session = asyncio.run(service.register(register_request()))
        claims = service.verify_token(session.token)

        assert claims.user_id == session.user.id
        assert claims.username == "asha"
        assert claims.expires_at > datetime.now(timezone.utc) + timedelta(hours=23)

    def test_missing_token(self, service):
        with pytest.raises(InvalidTokenError) as exc_info:
            service.verify_token(None)
        assert exc_info.value.reason == "missing token"

    def test_expired_token(self, service):
        token = jwt.encode(
            {
                "sub": str(uuid4()),
                "username": "asha",
                "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
            },
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError) as exc_info:
            service.verify_token(token)
        assert exc_info.value.reason == "token expired"

    def test_token_signed_with_other_key(self, service):
        token = jwt.encode(
            {
                "sub": str(uuid4()),
                "username": "asha",
                "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
            },
            "another-secret-key-000000",
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            service.verify_token(token)

    def test_token_without_username(self, service):
        token = jwt.encode(
            {"sub": str(uuid4()), "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError) as exc_info:
            service.verify_token(token)
        assert exc_info.value.reason.startswith("malformed claims")

    def test_current_user(self, service):
        session = asyncio.run(service.register(register_request()))
        user = asyncio.run(service.get_current_user(session.token))
        assert user == session.user

    def test_current_user_deleted(self, service):
        ghost = UserRecord(
            name="Ghost",
            mobile="1",
            email="ghost@example.com",
            username="ghost",
            password_hash="x",
        )
        token = service.create_access_token(ghost.to_public())
        with pytest.raises(InvalidTokenError) as exc_info:
            asyncio.run(service.get_current_user(token))
        assert exc_info.value.reason == "user no longer exists"


class TestStatsAndAdmin:
    """Tests for dashboard stats and the seeded admin."""

    def test_stats_require_token(self, service):
        with pytest.raises(InvalidTokenError):
            asyncio.run(service.get_stats("garbage", calculators=6))

    def test_stats_count_users(self, service):
        session = asyncio.run(service.register(register_request()))
        asyncio.run(service.register(register_request(username="ravi", email="ravi@example.com")))

        stats = asyncio.run(service.get_stats(session.token, calculators=6))
        assert stats.users == 2
        assert stats.calculators == 6

    def test_admin_seeded_once(self, service):
        admin = AdminSettings(password="admin-password")

        created = asyncio.run(service.ensure_admin_user(admin))
        assert created is not None
        assert created.username == "admin"
        assert asyncio.run(service.ensure_admin_user(admin)) is None

        session = asyncio.run(service.login(LoginRequest(username="admin", password="admin-password")))
        assert session.user.name == "Administrator"

    def test_admin_not_seeded_without_password(self, service, storage):
        assert asyncio.run(service.ensure_admin_user(AdminSettings(password=None))) is None
        assert asyncio.run(storage.count_users()) == 0

    def test_admin_from_injected_settings(self, storage, auth_settings):
        service = AuthService(
            storage, auth_settings, admin_settings=AdminSettings(password="injected-password")
        )

        created = asyncio.run(service.ensure_admin_user())
        assert created is not None
        session = asyncio.run(service.login(LoginRequest(username="admin", password="injected-password")))
        assert session.user.id == created.id
