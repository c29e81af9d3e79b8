"""
Audit Logger

DESIGN DECISION: Every significant action in the portal is logged.
This provides:
1. Traceability of account activity (registrations, logins)
2. Debugging capability for rejected calculator forms
3. Usage history of the calculators

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from fundportal.models.audit import AuditEvent, AuditEventBuilder
from fundportal.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route structlog's JSON lines to stderr at the given level.

    Safe to call more than once (Streamlit reruns the script on every
    interaction); only the level is updated after the first call.
    """
    root = logging.getLogger()
    if not any(getattr(h, "_fundportal", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler._fundportal = True
        root.addHandler(handler)
    root.setLevel(level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when configured (Google Sheets in production)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("fundportal.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        # Always log locally
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        # Persist to storage if available
        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_user_registered(
        self,
        user_id: UUID,
        username: str,
        correlation_id: UUID,
    ) -> None:
        """Log a new account."""
        await self.log(AuditEventBuilder.user_registered(
            user_id=user_id,
            username=username,
            correlation_id=correlation_id,
        ))

    async def log_registration_rejected(
        self,
        username: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.registration_rejected(
            username=username,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_login_succeeded(
        self,
        user_id: UUID,
        username: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.login_succeeded(
            user_id=user_id,
            username=username,
            correlation_id=correlation_id,
        ))

    async def log_login_failed(
        self,
        username: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        """Log a failed login. The reason stays in the audit trail only."""
        await self.log(AuditEventBuilder.login_failed(
            username=username,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_token_rejected(
        self,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.token_rejected(
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_admin_seeded(self, user_id: UUID, username: str) -> None:
        await self.log(AuditEventBuilder.admin_seeded(user_id=user_id, username=username))

    async def log_form_validation_failed(
        self,
        calculator: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log a calculator form that was sent back to the user."""
        await self.log(AuditEventBuilder.form_validation_failed(
            calculator=calculator,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_calculation_completed(
        self,
        calculator: str,
        table_rows: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.calculation_completed(
            calculator=calculator,
            table_rows=table_rows,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a login or a
    calculator submission). Pass it through all subsequent operations.
    """
    return uuid4()
