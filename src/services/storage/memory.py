"""
In-Memory Storage Implementation

Used for tests and local development. Keeps messages in a dict keyed
by (user_id, assistant_id) and counts calls so callers can verify
that a rejected request never reached storage.
"""

from collections import Counter
from typing import Optional
from uuid import UUID

from src.models.audit import AuditEvent
from src.models.chat import AssistantId, ChatMessage
from src.services.storage.interface import (
    AuditStorageInterface,
    MessageStorageInterface,
)


class InMemoryMessageStorage(MessageStorageInterface):
    """
    Dict-backed message storage.

    Set `fail_with` to make every call raise, to exercise failure paths.
    """

    def __init__(self, fail_with: Optional[Exception] = None):
        self._conversations: dict[tuple[str, AssistantId], list[ChatMessage]] = {}
        self.calls: Counter = Counter()
        self.fail_with = fail_with

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    def _check_failure(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def append_message(self, message: ChatMessage) -> ChatMessage:
        self.calls["append_message"] += 1
        self._check_failure()
        key = (message.user_id, message.assistant_id)
        self._conversations.setdefault(key, []).append(message)
        return message

    async def list_messages(
        self,
        user_id: str,
        assistant_id: AssistantId,
    ) -> list[ChatMessage]:
        self.calls["list_messages"] += 1
        self._check_failure()
        messages = self._conversations.get((user_id, assistant_id), [])
        # sorted() is stable, so ties keep insertion order
        return sorted(messages, key=lambda m: m.created_at)

    async def delete_messages(
        self,
        user_id: str,
        assistant_id: AssistantId,
    ) -> int:
        self.calls["delete_messages"] += 1
        self._check_failure()
        removed = self._conversations.pop((user_id, assistant_id), [])
        return len(removed)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self.events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events
