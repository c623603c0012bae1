"""
Chat Session Manager

This module ties together the identity resolver, the assistant
registry and the history store, and defines the request flows for:
1. Clear history (auth → validate assistant → bulk delete → invalidate view)
2. Export history (auth → validate assistant → ordered read)
3. Save message (auth → validate assistant → validate content → append)

DESIGN DECISION: The manager enforces the boundaries:
- The user id always comes from the resolved principal, never the caller
- No store call happens before both auth and assistant validation pass
- Nothing raised below this layer reaches the caller; every failure
  becomes an ActionResult with a short, safe message, and the raw
  error goes to the audit log

Each call is an independent request. The manager holds no per-user
state, takes no locks and adds no transactions or retries; concurrent
clear/export races are settled by the store.
"""

from typing import Any, Optional
from uuid import UUID

import structlog

from src.assistants import AssistantRegistry, UnknownAssistantError, build_system_prompt
from src.audit import AuditLogger, create_correlation_id
from src.config import get_settings
from src.models.chat import (
    ActionResult,
    AssistantId,
    ChatMessage,
    ErrorKind,
    FinancialContext,
    MessageRole,
    Principal,
)
from src.services.identity import (
    IdentityResolverInterface,
    StaticIdentityResolver,
    SupabaseIdentityResolver,
)
from src.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsMessageStorage,
    InMemoryMessageStorage,
    MessageStorageInterface,
    SupabaseMessageStorage,
)
from src.services.views import PathViewInvalidator, ViewInvalidatorInterface
from src.validation import MessageValidator


logger = structlog.get_logger(__name__)


NOT_AUTHENTICATED = "Not authenticated"
INVALID_ASSISTANT = "Invalid assistant ID"
INVALID_ROLE = "Each message must have a valid role (user or assistant)"

STORAGE_FAILURE_MESSAGES = {
    "clear_history": "Failed to clear chat history",
    "export_history": "Failed to fetch chat history",
    "build_conversation": "Failed to fetch chat history",
    "save_message": "Failed to save message",
}


class ChatSessionManager:
    """
    Orchestrates chat history operations for one assistant at a time.

    Every public operation returns an ActionResult and never raises.
    """

    def __init__(
        self,
        identity_resolver: IdentityResolverInterface,
        message_storage: MessageStorageInterface,
        registry: Optional[AssistantRegistry] = None,
        audit_logger: Optional[AuditLogger] = None,
        view_invalidator: Optional[ViewInvalidatorInterface] = None,
        validator: Optional[MessageValidator] = None,
        history_limit: Optional[int] = None,
    ):
        self._identity = identity_resolver
        self._storage = message_storage
        self._registry = registry or AssistantRegistry()
        # Local-only audit log when no store is given
        self._audit_logger = audit_logger or AuditLogger()
        self._view_invalidator = view_invalidator or PathViewInvalidator()
        self._validator = validator or MessageValidator()
        self._history_limit = history_limit or get_settings().chat.max_conversation_messages

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    async def _authenticate(
        self,
        credential: Optional[str],
        operation: str,
        correlation_id: UUID,
    ) -> Optional[Principal]:
        """Resolve the principal; None means the request is unauthenticated."""
        try:
            principal = await self._identity.resolve_current_principal(credential)
        except Exception as e:
            # Resolvers should not raise, but a broken one must not leak either
            await self._audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"operation": operation, "stage": "identity"},
                correlation_id=correlation_id,
            )
            principal = None

        if principal is None or not principal.is_authenticated:
            await self._audit_logger.log_authentication_failed(
                operation=operation,
                correlation_id=correlation_id,
            )
            return None
        return principal

    async def _authorize(
        self,
        assistant_id: Any,
        credential: Optional[str],
        operation: str,
        correlation_id: UUID,
    ) -> tuple[Optional[Principal], Optional[AssistantId], Optional[ActionResult]]:
        """
        Run both guards in order: identity first, then the assistant id.

        Returns:
            (principal, assistant_id, None) when the request may proceed,
            (None, None, failure) otherwise
        """
        principal = await self._authenticate(credential, operation, correlation_id)
        if principal is None:
            return None, None, ActionResult.fail(ErrorKind.UNAUTHENTICATED, NOT_AUTHENTICATED)

        try:
            parsed = self._registry.parse(assistant_id)
        except UnknownAssistantError:
            await self._audit_logger.log_unknown_assistant(
                user_id=principal.user_id,
                requested_id=str(assistant_id),
                operation=operation,
                correlation_id=correlation_id,
            )
            return None, None, ActionResult.fail(ErrorKind.UNKNOWN_ASSISTANT, INVALID_ASSISTANT)

        return principal, parsed, None

    async def _storage_failed(
        self,
        principal: Principal,
        assistant_id: AssistantId,
        operation: str,
        error: Exception,
        correlation_id: UUID,
    ) -> ActionResult:
        await self._audit_logger.log_storage_failure(
            user_id=principal.user_id,
            assistant_id=assistant_id.value,
            operation=operation,
            error=error,
            correlation_id=correlation_id,
        )
        return ActionResult.fail(
            ErrorKind.STORAGE_FAILURE, STORAGE_FAILURE_MESSAGES[operation]
        )

    async def _invalidate_view(
        self,
        principal: Principal,
        assistant_id: AssistantId,
        correlation_id: UUID,
    ) -> None:
        # The write already succeeded; a failing cache hook must not undo that
        try:
            path = self._view_invalidator.invalidate(principal.user_id, assistant_id)
        except Exception as e:
            logger.error(
                "view_invalidation_failed",
                user_id=principal.user_id,
                assistant_id=assistant_id.value,
                error=str(e),
            )
            return

        await self._audit_logger.log_view_invalidated(
            user_id=principal.user_id,
            assistant_id=assistant_id.value,
            path=path,
            correlation_id=correlation_id,
        )

    async def _load_history(
        self,
        principal: Principal,
        assistant_id: AssistantId,
    ) -> list[ChatMessage]:
        messages = await self._storage.list_messages(principal.user_id, assistant_id)

        # The store filters already; this only guards against a broken adapter
        owned = [
            m for m in messages
            if m.user_id == principal.user_id and m.assistant_id == assistant_id
        ]
        if len(owned) != len(messages):
            logger.error(
                "foreign_messages_dropped",
                user_id=principal.user_id,
                assistant_id=assistant_id.value,
                dropped=len(messages) - len(owned),
            )
        return owned

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def clear_history(
        self,
        assistant_id: Any,
        credential: Optional[str],
    ) -> ActionResult:
        """
        Delete the caller's conversation with one assistant.

        Success with zero deletions is still success. If the store fails
        mid-delete, what remains is whatever the store's own atomicity
        leaves behind; no rollback is attempted here.

        Returns:
            ActionResult with data={"deleted": count} on success
        """
        operation = "clear_history"
        correlation_id = create_correlation_id()

        principal, parsed, failure = await self._authorize(
            assistant_id, credential, operation, correlation_id
        )
        if failure:
            return failure

        logger.info("clearing_chat_history", user_id=principal.user_id, assistant_id=parsed.value)

        try:
            deleted = await self._storage.delete_messages(principal.user_id, parsed)
        except Exception as e:
            return await self._storage_failed(principal, parsed, operation, e, correlation_id)

        await self._audit_logger.log_history_cleared(
            user_id=principal.user_id,
            assistant_id=parsed.value,
            deleted_count=deleted,
            correlation_id=correlation_id,
        )
        await self._invalidate_view(principal, parsed, correlation_id)

        return ActionResult.ok({"deleted": deleted})

    async def export_history(
        self,
        assistant_id: Any,
        credential: Optional[str],
    ) -> ActionResult:
        """
        Return the caller's conversation with one assistant, oldest first.

        The order comes from the store and is final; callers render it as-is.

        Returns:
            ActionResult with data=list[ChatMessage] (possibly empty)
        """
        operation = "export_history"
        correlation_id = create_correlation_id()

        principal, parsed, failure = await self._authorize(
            assistant_id, credential, operation, correlation_id
        )
        if failure:
            return failure

        try:
            messages = await self._load_history(principal, parsed)
        except Exception as e:
            return await self._storage_failed(principal, parsed, operation, e, correlation_id)

        await self._audit_logger.log_history_exported(
            user_id=principal.user_id,
            assistant_id=parsed.value,
            message_count=len(messages),
            correlation_id=correlation_id,
        )
        return ActionResult.ok(messages)

    async def save_message(
        self,
        assistant_id: Any,
        credential: Optional[str],
        role: Any,
        content: Any,
        metadata: Optional[dict[str, Any]] = None,
    ) -> ActionResult:
        """
        Append one turn to the caller's conversation.

        Returns:
            ActionResult with data=ChatMessage as stored
        """
        operation = "save_message"
        correlation_id = create_correlation_id()

        principal, parsed, failure = await self._authorize(
            assistant_id, credential, operation, correlation_id
        )
        if failure:
            return failure

        try:
            message_role = MessageRole(role)
        except (ValueError, TypeError):
            await self._audit_logger.log_message_rejected(
                user_id=principal.user_id,
                assistant_id=parsed.value,
                reason=INVALID_ROLE,
                correlation_id=correlation_id,
            )
            return ActionResult.fail(ErrorKind.INVALID_MESSAGE, INVALID_ROLE)

        validation = self._validator.validate_message(content)
        if not validation.valid:
            await self._audit_logger.log_message_rejected(
                user_id=principal.user_id,
                assistant_id=parsed.value,
                reason=validation.reason,
                correlation_id=correlation_id,
            )
            return ActionResult.fail(ErrorKind.INVALID_MESSAGE, validation.reason)

        message = ChatMessage(
            user_id=principal.user_id,
            assistant_id=parsed,
            role=message_role,
            content=content,
            metadata=metadata or {},
        )

        try:
            stored = await self._storage.append_message(message)
        except Exception as e:
            return await self._storage_failed(principal, parsed, operation, e, correlation_id)

        await self._audit_logger.log_message_saved(
            user_id=principal.user_id,
            assistant_id=parsed.value,
            message_id=stored.id,
            role=message_role.value,
            correlation_id=correlation_id,
        )
        await self._invalidate_view(principal, parsed, correlation_id)

        return ActionResult.ok(stored)

    async def build_conversation(
        self,
        assistant_id: Any,
        credential: Optional[str],
        context: Optional[FinancialContext] = None,
    ) -> ActionResult:
        """
        Assemble the input for the external completion service.

        Returns:
            ActionResult with data={"assistant", "system_prompt", "messages"},
            where messages are the most recent turns, oldest first
        """
        operation = "build_conversation"
        correlation_id = create_correlation_id()

        principal, parsed, failure = await self._authorize(
            assistant_id, credential, operation, correlation_id
        )
        if failure:
            return failure

        try:
            history = await self._load_history(principal, parsed)
        except Exception as e:
            return await self._storage_failed(principal, parsed, operation, e, correlation_id)

        persona = self._registry.get(parsed)
        recent = history[-self._history_limit:]

        return ActionResult.ok({
            "assistant": persona.name,
            "system_prompt": build_system_prompt(persona, context),
            "messages": [m.to_prompt_dict() for m in recent],
        })

    def get_assistant(self, assistant_id: Any) -> ActionResult:
        """Look up one persona; unknown ids are a routing error."""
        try:
            return ActionResult.ok(self._registry.get(assistant_id))
        except UnknownAssistantError:
            return ActionResult.fail(ErrorKind.UNKNOWN_ASSISTANT, INVALID_ASSISTANT)

    def list_assistants(self) -> ActionResult:
        return ActionResult.ok(self._registry.list_all())


def create_app_components(
    backend: Optional[str] = None,
) -> ChatSessionManager:
    """
    Factory function to wire a ChatSessionManager from settings.

    Args:
        backend: Override for CHAT_STORAGE_BACKEND
                 ("memory", "google_sheets" or "supabase")

    Returns:
        A ready ChatSessionManager
    """
    settings = get_settings()
    backend = backend or settings.chat.storage_backend

    message_storage: MessageStorageInterface
    audit_storage: Optional[AuditStorageInterface] = None

    if backend == "google_sheets":
        sheets_client = GoogleSheetsClient()
        message_storage = GoogleSheetsMessageStorage(sheets_client)
        audit_storage = GoogleSheetsAuditStorage(sheets_client)
    elif backend == "supabase":
        message_storage = SupabaseMessageStorage()
    elif backend == "memory":
        message_storage = InMemoryMessageStorage()
    else:
        raise ValueError(f"Unknown storage backend: {backend!r}")

    identity_resolver: IdentityResolverInterface
    try:
        identity_resolver = SupabaseIdentityResolver()
    except Exception as e:
        # Auth not configured - nobody can sign in, every call is unauthenticated
        logger.warning("identity_provider_not_configured", error=str(e))
        identity_resolver = StaticIdentityResolver()

    return ChatSessionManager(
        identity_resolver=identity_resolver,
        message_storage=message_storage,
        audit_logger=AuditLogger(audit_storage),
    )
