"""
Tests for the chat assistants' models

Test strategy:
1. Unit tests for individual components (models, registry, validators)
2. Flow tests for the session manager against in-memory fakes
3. No real API calls in tests (HTTP and Sheets clients are mocked)
"""

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from src.models.chat import (
    ActionResult,
    AssistantId,
    AssistantPersona,
    ChatMessage,
    ErrorKind,
    FinancialProfile,
    MessageRole,
    MonthlyTrend,
    Principal,
)


class TestChatModels:
    """Tests for chat-related Pydantic models."""

    def test_chat_message_creation(self):
        """Test ChatMessage model creation with defaults."""
        message = ChatMessage(
            user_id="user-1",
            assistant_id="income",
            role="user",
            content="How can I grow my income?",
        )
        assert message.assistant_id == AssistantId.INCOME
        assert message.role == MessageRole.USER
        assert message.metadata == {}
        assert isinstance(message.created_at, datetime)

    def test_chat_message_keeps_content_verbatim(self):
        """Content is stored exactly as written."""
        message = ChatMessage(
            user_id="user-1",
            assistant_id="income",
            role="assistant",
            content="  indented\n",
        )
        assert message.content == "  indented\n"

    def test_chat_message_rejects_unknown_assistant(self):
        """Test that assistant ids outside the enum are rejected."""
        with pytest.raises(ValueError):
            ChatMessage(user_id="u", assistant_id="savings", role="user", content="hi")

    def test_chat_message_rejects_system_role(self):
        """Only user and assistant turns are stored."""
        with pytest.raises(ValueError):
            ChatMessage(user_id="u", assistant_id="income", role="system", content="hi")

    def test_chat_message_null_metadata(self):
        """Rows with NULL metadata load as an empty dict."""
        message = ChatMessage(
            user_id="u", assistant_id="income", role="user", content="hi", metadata=None
        )
        assert message.metadata == {}

    def test_chat_message_allows_empty_stored_content(self):
        """Empty rows exist in the store; only new messages are validated."""
        message = ChatMessage(user_id="u", assistant_id="income", role="assistant", content="")
        assert message.content == ""

    def test_default_timestamps_are_utc_aware(self):
        message = ChatMessage(user_id="u", assistant_id="income", role="user", content="hi")
        event = AuditEvent(event_type=AuditEventType.HISTORY_EXPORTED, description="x")

        assert message.created_at.utcoffset() == timedelta(0)
        assert event.timestamp.utcoffset() == timedelta(0)

    def test_to_prompt_dict(self):
        message = ChatMessage(user_id="u", assistant_id="expenditure", role="assistant", content="ok")
        assert message.to_prompt_dict() == {"role": "assistant", "content": "ok"}

    def test_principal_is_frozen(self):
        """Principals are request-scoped values and cannot be altered."""
        principal = Principal(user_id="user-1")
        with pytest.raises(ValueError):
            principal.user_id = "user-2"

    def test_persona_is_frozen(self):
        persona = AssistantPersona(
            id=AssistantId.INCOME,
            name="Income Assistant",
            description="d",
            system_prompt="p",
        )
        with pytest.raises(ValueError):
            persona.system_prompt = "something else"

    def test_financial_profile_rejects_negative_income(self):
        with pytest.raises(ValueError):
            FinancialProfile(monthly_income=Decimal("-1"))

    def test_monthly_trend_month_format(self):
        assert MonthlyTrend(month="2025-07", total=Decimal("12.5")).total == Decimal("12.50")
        with pytest.raises(ValueError):
            MonthlyTrend(month="July 2025", total=Decimal("1"))


class TestActionResult:
    """Tests for the caller-facing tagged result."""

    def test_ok_response_shape(self):
        assert ActionResult.ok().to_response() == {"success": True}
        assert ActionResult.ok({"deleted": 2}).to_response() == {
            "success": True,
            "data": {"deleted": 2},
        }

    def test_fail_response_shape(self):
        result = ActionResult.fail(ErrorKind.STORAGE_FAILURE, "Failed to fetch chat history")
        assert result.to_response() == {
            "success": False,
            "error": "Failed to fetch chat history",
        }

    def test_message_list_serializes_to_json(self):
        message = ChatMessage(user_id="u", assistant_id="income", role="user", content="hi")
        data = ActionResult.ok([message]).to_response()["data"]

        assert data[0]["assistant_id"] == "income"
        assert data[0]["id"] == str(message.id)
        assert isinstance(data[0]["created_at"], str)


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.HISTORY_EXPORTED,
            description="Exported",
        )
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        event = AuditEventBuilder.history_cleared(
            user_id="user-1",
            assistant_id="income",
            deleted_count=4,
            correlation_id=uuid4(),
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "history_cleared"
        assert log_dict["user_id"] == "user-1"
        assert log_dict["details"]["deleted_count"] == 4

    def test_audit_event_to_sheets_row(self):
        event = AuditEventBuilder.authentication_failed(
            operation="export_history",
            correlation_id=uuid4(),
        )
        row = event.to_sheets_row()
        assert len(row) == 11
        assert row[2] == "authentication_failed"
        assert row[3] == "warning"
        assert row[4] == ""  # no user

    def test_storage_failure_keeps_raw_error(self):
        event = AuditEventBuilder.storage_failure(
            user_id="user-1",
            assistant_id="expenditure",
            operation="clear_history",
            error=TimeoutError("read timed out"),
            correlation_id=uuid4(),
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.error_type == "TimeoutError"
        assert event.error_message == "read timed out"


class TestEnums:
    """Tests for the closed enumerations."""

    def test_assistant_ids(self):
        assert {a.value for a in AssistantId} == {"income", "expenditure"}

    def test_message_roles(self):
        assert {r.value for r in MessageRole} == {"user", "assistant"}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
