"""Tests for the AuditLogger."""

from unittest.mock import AsyncMock, Mock

import pytest

from src.audit import AuditLogger, create_correlation_id
from src.models.audit import AuditEventBuilder, AuditEventType
from src.services.storage import AuditStorageInterface, InMemoryAuditStorage


class TestAuditLogger:
    """Tests for local logging and store persistence."""

    @pytest.mark.asyncio
    async def test_events_reach_the_store(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        correlation_id = create_correlation_id()

        await logger.log_history_exported("user-1", "income", 3, correlation_id)
        await logger.log_history_cleared("user-1", "income", 3, correlation_id)

        events = await storage.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [
            AuditEventType.HISTORY_EXPORTED,
            AuditEventType.HISTORY_CLEARED,
        ]

    @pytest.mark.asyncio
    async def test_no_store_still_succeeds(self):
        event = AuditEventBuilder.authentication_failed(
            operation="save_message",
            correlation_id=create_correlation_id(),
        )
        assert await AuditLogger().log(event) is True

    @pytest.mark.asyncio
    async def test_failing_store_is_swallowed(self):
        storage = Mock(spec=AuditStorageInterface)
        storage.append_event = AsyncMock(side_effect=RuntimeError("sheet locked"))
        logger = AuditLogger(storage)

        await logger.log_storage_failure(
            user_id="user-1",
            assistant_id="expenditure",
            operation="export_history",
            error=TimeoutError("read timed out"),
            correlation_id=create_correlation_id(),
        )

        event = storage.append_event.call_args.args[0]
        assert event.event_type == AuditEventType.STORAGE_FAILURE
        assert event.error_message == "read timed out"

    @pytest.mark.asyncio
    async def test_unknown_assistant_event(self):
        storage = InMemoryAuditStorage()
        await AuditLogger(storage).log_unknown_assistant(
            user_id="user-1",
            requested_id="savings",
            operation="clear_history",
            correlation_id=create_correlation_id(),
        )

        assert storage.events[0].event_type == AuditEventType.UNKNOWN_ASSISTANT
        assert storage.events[0].user_id == "user-1"

    @pytest.mark.asyncio
    async def test_event_that_fails_validation_is_not_raised(self):
        """A bad field is logged as an audit problem; the caller carries on."""
        storage = InMemoryAuditStorage()

        await AuditLogger(storage).log_view_invalidated(
            user_id=["not", "a", "string"],
            assistant_id="income",
            path="/dashboard/chat/income",
            correlation_id=create_correlation_id(),
        )

        assert storage.events == []

    def test_unknown_assistant_description_is_bounded(self):
        event = AuditEventBuilder.unknown_assistant(
            user_id="user-1",
            requested_id="y" * 5000,
            operation="export_history",
            correlation_id=create_correlation_id(),
        )

        assert event.description.endswith("...'")
        assert len(event.details["requested_id"]) < 300
        assert event.details["requested_id_length"] == 5000
