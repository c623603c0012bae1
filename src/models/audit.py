"""
Audit Models for the Chat Assistants

Every history read, write and clear is logged for audit purposes.
This provides:
1. Traceability of who touched which conversation
2. Operator diagnostics when a store call fails
3. The raw error detail that is deliberately hidden from callers

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


# Caller-supplied ids are echoed into descriptions only up to this length
MAX_ECHOED_ID_LENGTH = 64


def _shorten(value: str, limit: int = MAX_ECHOED_ID_LENGTH) -> str:
    return value if len(value) <= limit else value[:limit] + "..."


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # History operations
    HISTORY_EXPORTED = "history_exported"
    HISTORY_CLEARED = "history_cleared"
    MESSAGE_SAVED = "message_saved"
    VIEW_INVALIDATED = "view_invalidated"

    # Rejections
    AUTHENTICATION_FAILED = "authentication_failed"
    UNKNOWN_ASSISTANT = "unknown_assistant"
    MESSAGE_REJECTED = "message_rejected"

    # Failures
    STORAGE_FAILURE = "storage_failure"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action on chat history creates one of these.
    """

    # Identity
    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Who and which conversation
    user_id: Optional[str] = None
    assistant_id: Optional[str] = None

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one request"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (operator eyes only)
    error_type: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "assistant_id": self.assistant_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_type": self.error_type,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, user_id, assistant_id,
         correlation_id, description, details_json, error_type, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            self.assistant_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_type or "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.history_cleared(user_id, "income", 3, correlation_id)
    """

    @staticmethod
    def history_exported(
        user_id: str,
        assistant_id: str,
        message_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HISTORY_EXPORTED,
            user_id=user_id,
            assistant_id=assistant_id,
            correlation_id=correlation_id,
            description=f"Chat history exported: {message_count} messages",
            details={"message_count": message_count},
        )

    @staticmethod
    def history_cleared(
        user_id: str,
        assistant_id: str,
        deleted_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HISTORY_CLEARED,
            user_id=user_id,
            assistant_id=assistant_id,
            correlation_id=correlation_id,
            description=f"Chat history cleared: {deleted_count} messages removed",
            details={"deleted_count": deleted_count},
        )

    @staticmethod
    def message_saved(
        user_id: str,
        assistant_id: str,
        message_id: UUID,
        role: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MESSAGE_SAVED,
            user_id=user_id,
            assistant_id=assistant_id,
            correlation_id=correlation_id,
            description=f"Saved {role} message",
            details={"message_id": str(message_id), "role": role},
        )

    @staticmethod
    def view_invalidated(
        user_id: str,
        assistant_id: str,
        path: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VIEW_INVALIDATED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            assistant_id=assistant_id,
            correlation_id=correlation_id,
            description=f"Cached chat view marked stale: {path}",
            details={"path": path},
        )

    @staticmethod
    def authentication_failed(
        operation: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTHENTICATION_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Unauthenticated call to {operation}",
            details={"operation": operation},
        )

    @staticmethod
    def unknown_assistant(
        user_id: str,
        requested_id: str,
        operation: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UNKNOWN_ASSISTANT,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Unknown assistant requested: {_shorten(requested_id)!r}",
            details={
                "requested_id": _shorten(requested_id, 256),
                "requested_id_length": len(requested_id),
                "operation": operation,
            },
        )

    @staticmethod
    def message_rejected(
        user_id: str,
        assistant_id: str,
        reason: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MESSAGE_REJECTED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            assistant_id=assistant_id,
            correlation_id=correlation_id,
            description="Message failed validation",
            details={"reason": reason},
        )

    @staticmethod
    def storage_failure(
        user_id: str,
        assistant_id: str,
        operation: str,
        error: Exception,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_FAILURE,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            assistant_id=assistant_id,
            correlation_id=correlation_id,
            description=f"Storage failure during {operation}",
            details={"operation": operation},
            error_type=type(error).__name__,
            error_message=str(error),
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_type=error_type,
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
