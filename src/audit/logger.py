"""
Audit Logger

DESIGN DECISION: Every history read, write and clear is logged.
Callers only ever see a generic error message, so this log is
where operators find out what actually went wrong.

The audit logger:
- Is async so it fits the request flow
- Gracefully handles failures (a broken audit store never fails a request)
- Supports correlation IDs to trace the events of one request
"""

import logging
from typing import Any, Callable, Optional
from uuid import UUID, uuid4

import structlog
from pydantic import ValidationError

from src.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from src.services.storage import AuditStorageInterface


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog (JSON lines through the stdlib logging bridge)."""
    logging.basicConfig(format="%(message)s", level=level.upper())
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


configure_logging()


_LOG_METHODS = {
    AuditSeverity.DEBUG: "debug",
    AuditSeverity.INFO: "info",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.ERROR: "error",
    AuditSeverity.CRITICAL: "critical",
}


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for operators)
    2. An audit store, when one is configured
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
        self._logger = structlog.get_logger("audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        getattr(self._logger, _LOG_METHODS[event.severity])(
            "audit_event", **event.to_log_dict()
        )

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def _build_and_log(self, build: Callable[..., AuditEvent], **fields: Any) -> bool:
        """Build an event and log it; a field that fails validation is logged, not raised."""
        try:
            event = build(**fields)
        except ValidationError as e:
            self._logger.error(
                "audit_event_invalid",
                builder=build.__name__,
                error=str(e),
            )
            return False
        return await self.log(event)

    async def log_history_exported(
        self,
        user_id: str,
        assistant_id: str,
        message_count: int,
        correlation_id: UUID,
    ) -> None:
        await self._build_and_log(
            AuditEventBuilder.history_exported,
            user_id=user_id,
            assistant_id=assistant_id,
            message_count=message_count,
            correlation_id=correlation_id,
        )

    async def log_history_cleared(
        self,
        user_id: str,
        assistant_id: str,
        deleted_count: int,
        correlation_id: UUID,
    ) -> None:
        await self._build_and_log(
            AuditEventBuilder.history_cleared,
            user_id=user_id,
            assistant_id=assistant_id,
            deleted_count=deleted_count,
            correlation_id=correlation_id,
        )

    async def log_message_saved(
        self,
        user_id: str,
        assistant_id: str,
        message_id: UUID,
        role: str,
        correlation_id: UUID,
    ) -> None:
        await self._build_and_log(
            AuditEventBuilder.message_saved,
            user_id=user_id,
            assistant_id=assistant_id,
            message_id=message_id,
            role=role,
            correlation_id=correlation_id,
        )

    async def log_view_invalidated(
        self,
        user_id: str,
        assistant_id: str,
        path: str,
        correlation_id: UUID,
    ) -> None:
        await self._build_and_log(
            AuditEventBuilder.view_invalidated,
            user_id=user_id,
            assistant_id=assistant_id,
            path=path,
            correlation_id=correlation_id,
        )

    async def log_authentication_failed(
        self,
        operation: str,
        correlation_id: UUID,
    ) -> None:
        await self._build_and_log(
            AuditEventBuilder.authentication_failed,
            operation=operation,
            correlation_id=correlation_id,
        )

    async def log_unknown_assistant(
        self,
        user_id: str,
        requested_id: str,
        operation: str,
        correlation_id: UUID,
    ) -> None:
        await self._build_and_log(
            AuditEventBuilder.unknown_assistant,
            user_id=user_id,
            requested_id=requested_id,
            operation=operation,
            correlation_id=correlation_id,
        )

    async def log_message_rejected(
        self,
        user_id: str,
        assistant_id: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        await self._build_and_log(
            AuditEventBuilder.message_rejected,
            user_id=user_id,
            assistant_id=assistant_id,
            reason=reason,
            correlation_id=correlation_id,
        )

    async def log_storage_failure(
        self,
        user_id: str,
        assistant_id: str,
        operation: str,
        error: Exception,
        correlation_id: UUID,
    ) -> None:
        """Record the raw store error that the caller never sees."""
        await self._build_and_log(
            AuditEventBuilder.storage_failure,
            user_id=user_id,
            assistant_id=assistant_id,
            operation=operation,
            error=error,
            correlation_id=correlation_id,
        )

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self._build_and_log(
            AuditEventBuilder.system_error,
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of each request and pass it through
    all subsequent operations.
    """
    return uuid4()
