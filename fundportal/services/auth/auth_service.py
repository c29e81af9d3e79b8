"""
Authentication Service

Registration, login and access tokens for the portal.

DESIGN DECISION: Passwords are hashed with bcrypt (passlib) and never
leave this module in clear text. Tokens are HS256 JWTs (python-jose)
carrying the user id (`sub`), the username and an expiry one day out.

CRITICAL: Login failures are indistinguishable to the caller.
An unknown username and a wrong password both raise
InvalidCredentialsError("Invalid credentials"). The real reason is
only recorded in the audit trail by the caller.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional
from uuid import UUID

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError

from fundportal.config import AdminSettings, AuthSettings, get_settings
from fundportal.models.user import (
    AuthSession,
    LoginRequest,
    PortalStats,
    PublicUser,
    RegisterRequest,
    TokenClaims,
    UserRecord,
)
from fundportal.services.storage import DuplicateError, UserStorageInterface


class AuthError(Exception):
    """Base exception for authentication errors."""
    pass


class MissingFieldsError(AuthError):
    """A required form field was left empty."""
    pass


class UserAlreadyExistsError(AuthError):
    """Email or username is already registered."""

    def __init__(self, message: str = "User already exists"):
        super().__init__(message)


class InvalidCredentialsError(AuthError):
    """
    Username/password did not match.

    `reason` is for the audit trail only; str(error) is always
    "Invalid credentials".
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__("Invalid credentials")


class InvalidTokenError(AuthError):
    """Access token is missing, malformed, tampered with or expired."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid token: {reason}")


class InvalidFieldError(AuthError):
    """A form field was rejected before reaching the service (too long, wrong type)."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


_FIELD_LABELS = {
    "name": "Name",
    "mobile": "Mobile",
    "email": "Email",
    "username": "Username",
    "password": "Password",
}


def _field_error(error: ValidationError) -> InvalidFieldError:
    """Turn the first pydantic error into a message fit for the form."""
    first = error.errors()[0]
    field = str(first["loc"][0]) if first["loc"] else "form"
    label = _FIELD_LABELS.get(field, field)
    if first["type"] == "string_too_long":
        message = f"{label} must be at most {first['ctx']['max_length']} characters"
    else:
        message = f"{label} is invalid"
    return InvalidFieldError(field, message)


def parse_register_form(form: Mapping[str, Any]) -> RegisterRequest:
    """
    Build a RegisterRequest from raw form values.

    Raises:
        InvalidFieldError: a field is too long or not text
    """
    try:
        return RegisterRequest.model_validate(dict(form))
    except ValidationError as e:
        raise _field_error(e) from e


def parse_login_form(form: Mapping[str, Any]) -> LoginRequest:
    """
    Build a LoginRequest from raw form values.

    Raises:
        InvalidFieldError: a field is too long or not text
    """
    try:
        return LoginRequest.model_validate(dict(form))
    except ValidationError as e:
        raise _field_error(e) from e


class AuthService:
    """
    Account and token operations over a UserStorageInterface.

    IMPORTANT BOUNDARIES:
    1. This service does NOT write audit events - the orchestrator does
    2. Returned users are always PublicUser (no password hash)
    """

    def __init__(
        self,
        user_storage: UserStorageInterface,
        settings: Optional[AuthSettings] = None,
        admin_settings: Optional[AdminSettings] = None,
    ):
        self._storage = user_storage
        self._settings = settings or get_settings().auth
        self._admin_settings = admin_settings
        self._pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=self._settings.bcrypt_rounds,
        )

    # =========================================================================
    # PASSWORDS AND TOKENS
    # =========================================================================

    def hash_password(self, password: str) -> str:
        return self._pwd_context.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        try:
            return self._pwd_context.verify(password, password_hash)
        except ValueError:
            # Not a bcrypt hash
            return False

    def create_access_token(self, user: PublicUser) -> str:
        """Sign a token for this user, valid for token_expire_minutes."""
        expire = datetime.now(timezone.utc) + timedelta(minutes=self._settings.token_expire_minutes)
        payload = {
            "sub": str(user.id),
            "username": user.username,
            "exp": expire,
        }
        return jwt.encode(payload, self._settings.jwt_secret_key, algorithm=self._settings.jwt_algorithm)

    def verify_token(self, token: Optional[str]) -> TokenClaims:
        """
        Decode and check an access token.

        Raises:
            InvalidTokenError: token missing, expired, badly signed or malformed
        """
        if not token:
            raise InvalidTokenError("missing token")

        try:
            payload = jwt.decode(
                token,
                self._settings.jwt_secret_key,
                algorithms=[self._settings.jwt_algorithm],
            )
        except ExpiredSignatureError:
            raise InvalidTokenError("token expired")
        except JWTError as e:
            raise InvalidTokenError(str(e))

        try:
            return TokenClaims(
                user_id=UUID(payload["sub"]),
                username=payload["username"],
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (KeyError, ValueError, TypeError) as e:
            raise InvalidTokenError(f"malformed claims: {e}")

    def _session_for(self, user: UserRecord) -> AuthSession:
        public = user.to_public()
        return AuthSession(user=public, token=self.create_access_token(public))

    # =========================================================================
    # ACCOUNT OPERATIONS
    # =========================================================================

    async def register(self, request: RegisterRequest) -> AuthSession:
        """
        Create an account and log it in.

        Raises:
            MissingFieldsError: any of the five fields is empty
            UserAlreadyExistsError: email or username already taken
            StorageError: storage backend failure
        """
        if not request.is_complete:
            raise MissingFieldsError("All fields are required")

        if await self._storage.user_exists(request.email, request.username):
            raise UserAlreadyExistsError()

        user = UserRecord(
            name=request.name,
            mobile=request.mobile,
            email=request.email,
            username=request.username,
            password_hash=self.hash_password(request.password),
        )
        try:
            await self._storage.create_user(user)
        except DuplicateError:
            raise UserAlreadyExistsError()

        return self._session_for(user)

    async def login(self, request: LoginRequest) -> AuthSession:
        """
        Check credentials and issue a token.

        Raises:
            MissingFieldsError: username or password empty
            InvalidCredentialsError: unknown user or wrong password
        """
        if not request.username or not request.password:
            raise MissingFieldsError("Username and password are required")

        user = await self._storage.get_user_by_username(request.username)
        if user is None:
            raise InvalidCredentialsError("unknown username")

        if not self.verify_password(request.password, user.password_hash):
            raise InvalidCredentialsError("wrong password")

        return self._session_for(user)

    async def get_current_user(self, token: Optional[str]) -> PublicUser:
        """Resolve a token to its (still existing) user."""
        claims = self.verify_token(token)
        user = await self._storage.get_user_by_id(claims.user_id)
        if user is None:
            raise InvalidTokenError("user no longer exists")
        return user.to_public()

    async def get_stats(self, token: Optional[str], calculators: int) -> PortalStats:
        """
        Dashboard counters. Requires a valid token.

        Raises:
            InvalidTokenError: token missing or invalid
        """
        self.verify_token(token)
        return PortalStats(
            users=await self._storage.count_users(),
            calculators=calculators,
        )

    async def ensure_admin_user(self, admin: Optional[AdminSettings] = None) -> Optional[UserRecord]:
        """
        Seed the administrator account once.

        Returns the created record, or None when no admin password is
        configured or the admin username already exists.
        """
        admin = admin or self._admin_settings or get_settings().admin
        if not admin.password:
            return None

        if await self._storage.get_user_by_username(admin.username) is not None:
            return None

        user = UserRecord(
            name=admin.name,
            mobile=admin.mobile,
            email=admin.email,
            username=admin.username,
            password_hash=self.hash_password(admin.password),
        )
        try:
            await self._storage.create_user(user)
        except DuplicateError:
            # Email taken by a regular account
            return None
        return user
