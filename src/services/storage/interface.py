"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for history storage.
This allows us to:
1. Swap the managed Postgres service for Google Sheets or anything else
2. Use in-memory storage for testing
3. Keep the session manager decoupled from any query builder or RPC

Every method takes the user id as a mandatory argument.
Implementations MUST filter on it; there is no "all users" query.

Atomicity of `delete_messages` is whatever the backend provides.
The interface adds no transaction of its own.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from src.models.audit import AuditEvent
from src.models.chat import AssistantId, ChatMessage


class MessageStorageInterface(ABC):
    """
    Abstract interface for chat history storage.

    Any storage implementation (Supabase, Google Sheets, in-memory)
    must implement these methods.
    """

    @abstractmethod
    async def append_message(self, message: ChatMessage) -> ChatMessage:
        """
        Persist a single message.

        Returns:
            The stored message (backends may assign id/timestamps)

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def list_messages(
        self,
        user_id: str,
        assistant_id: AssistantId,
    ) -> list[ChatMessage]:
        """
        List every message of one user's conversation with one assistant.

        Returns:
            Messages ordered by created_at ascending (oldest first).
            Empty list when there is no history.

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def delete_messages(
        self,
        user_id: str,
        assistant_id: AssistantId,
    ) -> int:
        """
        Delete one user's conversation with one assistant.

        Returns:
            Number of messages removed (zero is fine)

        Raises:
            StorageError: If the delete fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (one request).

        Returns:
            List of related events in chronological order
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
