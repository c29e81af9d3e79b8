"""
Main Orchestrator for Fund Portal

This module ties together all the components and defines the
end-to-end flows for:
1. Accounts (register / login → token → dashboard stats)
2. Calculators (form → validate → calculate → results)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No calculator runs on a form that failed validation
- Protected data (stats) only with a valid token
- Every step is audited

The engine and the services stay free of audit logging; this is the
only place where audit events are written.
"""

from typing import Any, Mapping, Optional
from uuid import UUID

import structlog

from fundportal.audit import AuditLogger, create_correlation_id
from fundportal.catalog import CALCULATORS, CalculatorDefinition
from fundportal.config import Settings, get_settings
from fundportal.engine import calculate
from fundportal.models.calculation import CalculationResult
from fundportal.models.profile import BasicInfo
from fundportal.models.user import (
    USERNAME_MAX_LENGTH,
    AuthSession,
    LoginRequest,
    PortalStats,
    PublicUser,
    RegisterRequest,
)
from fundportal.models.validation import ValidationResult
from fundportal.services.auth import (
    AuthError,
    AuthService,
    InvalidCredentialsError,
    InvalidFieldError,
    InvalidTokenError,
    parse_login_form,
    parse_register_form,
)
from fundportal.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsUserStorage,
    InMemoryAuditStorage,
    InMemoryUserStorage,
    StorageError,
    UserStorageInterface,
)
from fundportal.validation import CalculatorFormValidator


logger = structlog.get_logger("fundportal.orchestrator")


def _submitted_username(form: Mapping[str, Any]) -> str:
    username = form.get("username")
    if not isinstance(username, str):
        return ""
    return username.strip()[:USERNAME_MAX_LENGTH]


class AuthFlow:
    """
    Orchestrates account flows.

    Flow:
    1. Register or login → AuthService checks and stores
    2. Token issued → kept by the UI session
    3. Protected calls → token verified on every call
    """

    def __init__(
        self,
        auth_service: AuthService,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._auth = auth_service
        self._audit_logger = audit_logger

    async def _storage_failed(self, error: StorageError, correlation_id: UUID) -> None:
        logger.error("user_storage_failed", error=str(error))
        if self._audit_logger:
            await self._audit_logger.log_external_service_error(
                service="user_storage",
                error_message=str(error),
                correlation_id=correlation_id,
            )

    async def register(
        self,
        request: RegisterRequest,
        correlation_id: Optional[UUID] = None,
    ) -> AuthSession:
        """
        Register a new user and return their session.

        Raises the AuthService and storage errors unchanged after
        auditing them.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            session = await self._auth.register(request)
        except AuthError as e:
            if self._audit_logger:
                await self._audit_logger.log_registration_rejected(
                    username=request.username,
                    reason=str(e),
                    correlation_id=correlation_id,
                )
            raise
        except StorageError as e:
            await self._storage_failed(e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_user_registered(
                user_id=session.user.id,
                username=session.user.username,
                correlation_id=correlation_id,
            )
        return session

    async def login(
        self,
        request: LoginRequest,
        correlation_id: Optional[UUID] = None,
    ) -> AuthSession:
        """Log a user in. Failures are audited with their real reason."""
        correlation_id = correlation_id or create_correlation_id()

        try:
            session = await self._auth.login(request)
        except AuthError as e:
            if self._audit_logger:
                reason = e.reason if isinstance(e, InvalidCredentialsError) else str(e)
                await self._audit_logger.log_login_failed(
                    username=request.username,
                    reason=reason,
                    correlation_id=correlation_id,
                )
            raise
        except StorageError as e:
            await self._storage_failed(e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_login_succeeded(
                user_id=session.user.id,
                username=session.user.username,
                correlation_id=correlation_id,
            )
        return session

    async def register_form(
        self,
        form: Mapping[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuthSession:
        """
        Register from raw form values.

        A field the request model refuses (too long, not text) raises
        InvalidFieldError and is audited like any other rejection.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            request = parse_register_form(form)
        except InvalidFieldError as e:
            if self._audit_logger:
                await self._audit_logger.log_registration_rejected(
                    username=_submitted_username(form),
                    reason=str(e),
                    correlation_id=correlation_id,
                )
            raise

        return await self.register(request, correlation_id=correlation_id)

    async def login_form(
        self,
        form: Mapping[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuthSession:
        """Log in from raw form values. Refused fields are audited as failed logins."""
        correlation_id = correlation_id or create_correlation_id()

        try:
            request = parse_login_form(form)
        except InvalidFieldError as e:
            if self._audit_logger:
                await self._audit_logger.log_login_failed(
                    username=_submitted_username(form),
                    reason=str(e),
                    correlation_id=correlation_id,
                )
            raise

        return await self.login(request, correlation_id=correlation_id)

    async def current_user(self, token: Optional[str]) -> PublicUser:
        try:
            return await self._auth.get_current_user(token)
        except InvalidTokenError as e:
            if self._audit_logger:
                await self._audit_logger.log_token_rejected(reason=e.reason)
            raise

    async def get_stats(self, token: Optional[str]) -> PortalStats:
        """Dashboard counters (protected)."""
        try:
            return await self._auth.get_stats(token, calculators=len(CALCULATORS))
        except InvalidTokenError as e:
            if self._audit_logger:
                await self._audit_logger.log_token_rejected(reason=e.reason)
            raise

    async def ensure_admin_user(self) -> bool:
        """Seed the configured admin once. Returns True if it was created now."""
        user = await self._auth.ensure_admin_user()
        if user is None:
            return False
        if self._audit_logger:
            await self._audit_logger.log_admin_seeded(user_id=user.id, username=user.username)
        return True


class CalculatorFlow:
    """
    Orchestrates a calculator submission.

    Flow:
    1. Form → two-stage validation (uses the profile's current age)
    2. Invalid → issues returned to the user, engine NOT called
    3. Valid → engine calculates → result returned for display

    Results are transient: they are shown and never stored.
    """

    def __init__(
        self,
        validator: Optional[CalculatorFormValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._validator = validator or CalculatorFormValidator()
        self._audit_logger = audit_logger

    def list_calculators(self) -> tuple[CalculatorDefinition, ...]:
        return CALCULATORS

    async def run(
        self,
        calculator_id: str,
        form: Mapping[str, Any],
        basic_info: Optional[BasicInfo] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[ValidationResult, Optional[CalculationResult], str]:
        """
        Validate a submitted form and, if valid, calculate.

        Returns:
            (validation_result, calculation_result or None, user_message)
        """
        correlation_id = correlation_id or create_correlation_id()

        validation = self._validator.validate(calculator_id, form, basic_info)
        message = self._validator.get_user_friendly_summary(validation)

        if not validation.is_valid:
            if self._audit_logger:
                issues = [
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in validation.issues
                ]
                await self._audit_logger.log_form_validation_failed(
                    calculator=validation.calculator,
                    issues=issues,
                    correlation_id=correlation_id,
                )
            return validation, None, message

        calculation_input = self._validator.to_calculation_input(calculator_id, form, basic_info)
        result = calculate(calculation_input)

        if self._audit_logger:
            await self._audit_logger.log_calculation_completed(
                calculator=validation.calculator,
                table_rows=sum(len(table.rows) for table in result.tables),
                correlation_id=correlation_id,
            )

        return validation, result, message


def create_app_components(
    use_google_sheets: Optional[bool] = None,
    settings: Optional[Settings] = None,
) -> tuple[AuthFlow, CalculatorFlow]:
    """
    Factory function to create all application components.

    Args:
        use_google_sheets: Override AppSettings.use_google_sheets.
                           False keeps users and audit events in memory.
        settings: Settings to use (defaults to get_settings())

    Returns:
        (auth_flow, calculator_flow)
    """
    settings = settings or get_settings()
    if use_google_sheets is None:
        use_google_sheets = settings.app.use_google_sheets

    user_storage: UserStorageInterface
    audit_storage: AuditStorageInterface

    if use_google_sheets:
        try:
            sheets_client = GoogleSheetsClient()
            user_storage = GoogleSheetsUserStorage(sheets_client)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("google_sheets_unavailable", error=str(e))
            user_storage = InMemoryUserStorage()
            audit_storage = InMemoryAuditStorage()
    else:
        user_storage = InMemoryUserStorage()
        audit_storage = InMemoryAuditStorage()

    audit_logger = AuditLogger(audit_storage)

    auth_flow = AuthFlow(
        auth_service=AuthService(user_storage, settings.auth, admin_settings=settings.admin),
        audit_logger=audit_logger,
    )
    calculator_flow = CalculatorFlow(audit_logger=audit_logger)

    return auth_flow, calculator_flow
