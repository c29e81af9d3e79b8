"""
Data Models Package

This package contains all Pydantic models used in the Fund Portal.
All data flowing through the system must conform to these schemas.
"""

from fundportal.models.calculation import (
    CalculationInput,
    CalculationResult,
    CalculatorKind,
    CashSurplusInput,
    CorpusNeededInput,
    LifelineInput,
    Projection70Input,
    ResultTable,
    SalarySavingInput,
    SummaryCard,
    SWPInput,
)
from fundportal.models.profile import BasicInfo, Gender, MaritalStatus
from fundportal.models.user import (
    AuthSession,
    LoginRequest,
    PortalStats,
    PublicUser,
    RegisterRequest,
    TokenClaims,
    UserRecord,
)
from fundportal.models.validation import ValidationIssue, ValidationResult
from fundportal.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Calculation models
    "CalculationInput",
    "CalculationResult",
    "CalculatorKind",
    "CashSurplusInput",
    "CorpusNeededInput",
    "LifelineInput",
    "Projection70Input",
    "ResultTable",
    "SalarySavingInput",
    "SummaryCard",
    "SWPInput",
    # Profile
    "BasicInfo",
    "Gender",
    "MaritalStatus",
    # Users
    "AuthSession",
    "LoginRequest",
    "PortalStats",
    "PublicUser",
    "RegisterRequest",
    "TokenClaims",
    "UserRecord",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
