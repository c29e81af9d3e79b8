"""
Integration tests for the account and calculator flows.

Everything runs against in-memory storage; audit events are read back
from InMemoryAuditStorage.
"""

import asyncio
from datetime import date

import pytest

from fundportal.audit import AuditLogger, create_correlation_id
from fundportal.config import AdminSettings, AuthSettings, Settings
from fundportal.models.audit import AuditEventBuilder, AuditEventType, AuditSeverity
from fundportal.models.calculation import CalculatorKind
from fundportal.models.profile import BasicInfo, Gender, MaritalStatus
from fundportal.models.user import LoginRequest, RegisterRequest
from fundportal.orchestrator import AuthFlow, CalculatorFlow, create_app_components
from fundportal.services.auth import (
    AuthError,
    AuthService,
    InvalidCredentialsError,
    InvalidFieldError,
    InvalidTokenError,
    UserAlreadyExistsError,
)
from fundportal.services.storage import (
    ConnectionError as StorageConnectionError,
    InMemoryAuditStorage,
    InMemoryUserStorage,
)


SECRET = "test-secret-key-0123456789"


class UnreachableUserStorage(InMemoryUserStorage):
    """User storage whose backend is down."""

    async def user_exists(self, email, username):
        raise StorageConnectionError("Sheets API unreachable")

    async def get_user_by_username(self, username):
        raise StorageConnectionError("Sheets API unreachable")


class FailingAuditStorage(InMemoryAuditStorage):
    async def append_event(self, event):
        raise StorageConnectionError("Sheets API unreachable")


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def auth_flow(audit_storage):
    service = AuthService(
        InMemoryUserStorage(),
        AuthSettings(jwt_secret_key=SECRET, bcrypt_rounds=4),
    )
    return AuthFlow(service, AuditLogger(audit_storage))


@pytest.fixture
def calculator_flow(audit_storage):
    return CalculatorFlow(audit_logger=AuditLogger(audit_storage))


@pytest.fixture
def basic_info():
    return BasicInfo(
        name="Asha",
        occupation="Engineer",
        dob=date(1993, 5, 1),
        age=32,
        gender=Gender.FEMALE,
        marital_status=MaritalStatus.SINGLE,
        dependents=0,
    )


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


def event_types(storage):
    return [event.event_type for event in storage.events]


class TestAuthFlow:
    """Tests for the account flow and its audit trail."""

    def test_register_and_login_are_audited(self, auth_flow, audit_storage):
        correlation_id = create_correlation_id()
        session = asyncio.run(auth_flow.register(register_request(), correlation_id=correlation_id))
        asyncio.run(auth_flow.login(LoginRequest(username="asha", password="s3cret-pass")))

        assert event_types(audit_storage) == [
            AuditEventType.USER_REGISTERED,
            AuditEventType.LOGIN_SUCCEEDED,
        ]
        registered = audit_storage.events[0]
        assert registered.correlation_id == correlation_id
        assert registered.entity_id == session.user.id

    def test_duplicate_registration_is_audited(self, auth_flow, audit_storage):
        asyncio.run(auth_flow.register(register_request()))
        with pytest.raises(UserAlreadyExistsError):
            asyncio.run(auth_flow.register(register_request()))

        rejected = audit_storage.events[-1]
        assert rejected.event_type == AuditEventType.REGISTRATION_REJECTED
        assert rejected.details["reason"] == "User already exists"

    def test_failed_login_records_real_reason(self, auth_flow, audit_storage):
        asyncio.run(auth_flow.register(register_request()))

        with pytest.raises(InvalidCredentialsError) as exc_info:
            asyncio.run(auth_flow.login(LoginRequest(username="asha", password="nope")))
        assert str(exc_info.value) == "Invalid credentials"

        failed = audit_storage.events[-1]
        assert failed.event_type == AuditEventType.LOGIN_FAILED
        assert failed.details["reason"] == "wrong password"
        assert "wrong password" not in failed.description

    def test_overlong_form_field_is_audited(self, auth_flow, audit_storage):
        form = {"name": "a", "mobile": "1" * 21, "email": "e", "username": "u", "password": "p"}

        with pytest.raises(InvalidFieldError, match="Mobile must be at most 20 characters"):
            asyncio.run(auth_flow.register_form(form))

        rejected = audit_storage.events[-1]
        assert rejected.event_type == AuditEventType.REGISTRATION_REJECTED
        assert rejected.details["reason"] == "Mobile must be at most 20 characters"

    def test_login_form_rejection_is_audited(self, auth_flow, audit_storage):
        with pytest.raises(AuthError):
            asyncio.run(auth_flow.login_form({"username": "asha", "password": "x" * 129}))

        assert event_types(audit_storage) == [AuditEventType.LOGIN_FAILED]

    def test_form_entry_points_reach_the_service(self, auth_flow):
        form = register_request().model_dump()
        session = asyncio.run(auth_flow.register_form(form))
        login = asyncio.run(auth_flow.login_form({"username": "asha", "password": "s3cret-pass"}))
        assert login.user.id == session.user.id

    def test_stats_with_valid_token(self, auth_flow):
        session = asyncio.run(auth_flow.register(register_request()))
        stats = asyncio.run(auth_flow.get_stats(session.token))
        assert stats.users == 1
        assert stats.calculators == 6

    def test_rejected_token_is_audited(self, auth_flow, audit_storage):
        with pytest.raises(InvalidTokenError):
            asyncio.run(auth_flow.get_stats(None))
        with pytest.raises(InvalidTokenError):
            asyncio.run(auth_flow.current_user("not-a-jwt"))

        assert event_types(audit_storage) == [
            AuditEventType.TOKEN_REJECTED,
            AuditEventType.TOKEN_REJECTED,
        ]
        assert audit_storage.events[0].details["reason"] == "missing token"

    def test_current_user(self, auth_flow):
        session = asyncio.run(auth_flow.register(register_request()))
        assert asyncio.run(auth_flow.current_user(session.token)) == session.user

    def test_storage_failure_is_audited_and_raised(self, audit_storage):
        service = AuthService(
            UnreachableUserStorage(),
            AuthSettings(jwt_secret_key=SECRET, bcrypt_rounds=4),
        )
        flow = AuthFlow(service, AuditLogger(audit_storage))

        with pytest.raises(StorageConnectionError):
            asyncio.run(flow.register(register_request()))
        with pytest.raises(StorageConnectionError):
            asyncio.run(flow.login(LoginRequest(username="asha", password="x")))

        assert event_types(audit_storage) == [
            AuditEventType.EXTERNAL_SERVICE_ERROR,
            AuditEventType.EXTERNAL_SERVICE_ERROR,
        ]
        assert audit_storage.events[0].details["service"] == "user_storage"

    def test_admin_seeding(self, auth_flow, audit_storage, monkeypatch):
        monkeypatch.setenv("ADMIN_PASSWORD", "admin-password")

        assert asyncio.run(auth_flow.ensure_admin_user()) is True
        assert asyncio.run(auth_flow.ensure_admin_user()) is False
        assert event_types(audit_storage) == [AuditEventType.ADMIN_SEEDED]


class TestCalculatorFlow:
    """Tests for the calculator flow."""

    def test_valid_form_is_calculated(self, calculator_flow, audit_storage, basic_info):
        validation, result, message = asyncio.run(calculator_flow.run(
            "lifeline",
            {"retirementAge": "62", "currentMonthlyExpense": "39500"},
            basic_info,
        ))

        assert validation.is_valid is True
        assert result.kind == CalculatorKind.LIFELINE
        assert result.tables[0].column("Age") == [32, 42, 52, 62]
        assert message == "✅ All inputs look good."

        completed = audit_storage.events[-1]
        assert completed.event_type == AuditEventType.CALCULATION_COMPLETED
        assert completed.details == {"calculator": "lifeline", "table_rows": 4}

    def test_invalid_form_is_not_calculated(self, calculator_flow, audit_storage, basic_info):
        validation, result, message = asyncio.run(calculator_flow.run(
            "corpusNeeded",
            {
                "currentWealth": "500000",
                "ror": "0",
                "nominalRate": "0",
                "activeSIP": "5000",
                "years": "15",
                "targetWealth": "20000000",
            },
            basic_info,
        ))

        assert result is None
        assert validation.is_valid is False
        assert "Rate of Return must be greater than zero" in message

        rejected = audit_storage.events[-1]
        assert rejected.event_type == AuditEventType.FORM_VALIDATION_FAILED
        assert rejected.severity == AuditSeverity.WARNING
        assert rejected.details["issues"][0]["field"] == "ror"

    def test_missing_profile_warns_but_calculates(self, calculator_flow):
        validation, result, message = asyncio.run(calculator_flow.run(
            "lifeline",
            {"retirementAge": "20", "currentMonthlyExpense": "10000"},
        ))
        assert result is not None
        assert result.tables[0].column("Age") == [0, 10, 20]
        assert "current age defaults to 0" in message

    def test_list_calculators(self, calculator_flow):
        assert len(calculator_flow.list_calculators()) == 6


class TestAuditLogger:
    """Tests for the audit logger itself."""

    def test_storage_failure_does_not_raise(self):
        """Test a failing backend never breaks the flow being audited."""
        audit_logger = AuditLogger(FailingAuditStorage())
        written = asyncio.run(audit_logger.log(AuditEventBuilder.token_rejected(reason="x")))
        assert written is False

    def test_log_without_storage(self):
        written = asyncio.run(AuditLogger().log(AuditEventBuilder.token_rejected(reason="x")))
        assert written is True

    def test_events_by_correlation_id(self, audit_storage):
        audit_logger = AuditLogger(audit_storage)
        correlation_id = create_correlation_id()

        asyncio.run(audit_logger.log_form_validation_failed(
            calculator="swp", issues=[], correlation_id=correlation_id
        ))
        asyncio.run(audit_logger.log_calculation_completed(
            calculator="swp", table_rows=79, correlation_id=correlation_id
        ))
        asyncio.run(audit_logger.log_calculation_completed(
            calculator="lifeline", table_rows=4, correlation_id=create_correlation_id()
        ))

        related = asyncio.run(audit_storage.get_events_by_correlation_id(correlation_id))
        assert [e.event_type for e in related] == [
            AuditEventType.FORM_VALIDATION_FAILED,
            AuditEventType.CALCULATION_COMPLETED,
        ]
        assert len(asyncio.run(audit_storage.get_recent_events(limit=2))) == 2


class TestAppComponents:
    """Tests for the component factory."""

    def test_in_memory_components(self, monkeypatch):
        monkeypatch.setenv("AUTH_JWT_SECRET_KEY", SECRET)
        monkeypatch.setenv("AUTH_BCRYPT_ROUNDS", "4")

        auth_flow, calculator_flow = create_app_components(
            use_google_sheets=False, settings=Settings()
        )
        session = asyncio.run(auth_flow.register(register_request()))
        stats = asyncio.run(auth_flow.get_stats(session.token))
        assert stats.users == 1
        assert isinstance(calculator_flow, CalculatorFlow)

    def test_unconfigured_sheets_fall_back_to_memory(self, monkeypatch):
        monkeypatch.setenv("AUTH_JWT_SECRET_KEY", SECRET)
        monkeypatch.setenv("AUTH_BCRYPT_ROUNDS", "4")
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)

        auth_flow, _ = create_app_components(use_google_sheets=True, settings=Settings())
        session = asyncio.run(auth_flow.register(register_request()))
        assert session.user.username == "asha"

    def test_injected_admin_settings_are_used(self, monkeypatch):
        monkeypatch.setenv("AUTH_JWT_SECRET_KEY", SECRET)
        monkeypatch.setenv("AUTH_BCRYPT_ROUNDS", "4")
        monkeypatch.delenv("ADMIN_PASSWORD", raising=False)

        class InjectedSettings(Settings):
            @property
            def admin(self):
                return AdminSettings(password="injected-password")

        auth_flow, _ = create_app_components(use_google_sheets=False, settings=InjectedSettings())
        assert asyncio.run(auth_flow.ensure_admin_user()) is True
        session = asyncio.run(auth_flow.login(LoginRequest(username="admin", password="injected-password")))
        assert session.user.username == "admin"
