"""
Data Models Package

This package contains all Pydantic models used by the chat assistants.
All data flowing through the session manager must conform to these schemas.
"""

from src.models.chat import (
    ActionResult,
    AssistantId,
    AssistantPersona,
    ChatMessage,
    ErrorKind,
    FinancialContext,
    FinancialProfile,
    FinancialSummary,
    MessageRole,
    MonthlyTrend,
    Principal,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Chat models
    "ActionResult",
    "AssistantId",
    "AssistantPersona",
    "ChatMessage",
    "ErrorKind",
    "FinancialContext",
    "FinancialProfile",
    "FinancialSummary",
    "MessageRole",
    "MonthlyTrend",
    "Principal",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
