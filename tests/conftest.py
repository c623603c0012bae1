"""Shared fixtures: an in-memory store, a static resolver and two users."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from src.audit import AuditLogger
from src.models.chat import AssistantId, ChatMessage, MessageRole, Principal
from src.orchestrator import ChatSessionManager
from src.services.identity import StaticIdentityResolver
from src.services.storage import InMemoryAuditStorage, InMemoryMessageStorage


ALICE_TOKEN = "token-alice"
BOB_TOKEN = "token-bob"
ADMIN_TOKEN = "token-admin"

T0 = datetime(2025, 7, 4, 10, 0, 0, tzinfo=timezone.utc)


def make_message(
    user_id: str,
    assistant_id: AssistantId,
    content: str,
    minutes: int,
    role: MessageRole = MessageRole.USER,
) -> ChatMessage:
    return ChatMessage(
        user_id=user_id,
        assistant_id=assistant_id,
        role=role,
        content=content,
        created_at=T0 + timedelta(minutes=minutes),
        updated_at=T0 + timedelta(minutes=minutes),
    )


@pytest.fixture
def alice() -> Principal:
    return Principal(user_id="user-alice", email="alice@example.com")


@pytest.fixture
def bob() -> Principal:
    return Principal(user_id="user-bob", email="bob@example.com")


@pytest.fixture
def resolver(alice: Principal, bob: Principal) -> StaticIdentityResolver:
    return StaticIdentityResolver({
        ALICE_TOKEN: alice,
        BOB_TOKEN: bob,
        ADMIN_TOKEN: Principal(user_id="user-admin", is_admin=True),
    })


@pytest.fixture
def storage() -> InMemoryMessageStorage:
    return InMemoryMessageStorage()


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def manager(
    resolver: StaticIdentityResolver,
    storage: InMemoryMessageStorage,
    audit_storage: InMemoryAuditStorage,
) -> ChatSessionManager:
    return ChatSessionManager(
        identity_resolver=resolver,
        message_storage=storage,
        audit_logger=AuditLogger(audit_storage),
    )


@pytest_asyncio.fixture
async def seeded_storage(
    storage: InMemoryMessageStorage,
    alice: Principal,
    bob: Principal,
) -> InMemoryMessageStorage:
    """
    Alice: 3 income messages (t1 < t2 < t3, inserted out of order)
    and 2 expenditure messages. Bob: 2 income messages.
    """
    rows = [
        make_message(alice.user_id, AssistantId.INCOME, "second", 2, MessageRole.ASSISTANT),
        make_message(alice.user_id, AssistantId.INCOME, "first", 1),
        make_message(alice.user_id, AssistantId.INCOME, "third", 3),
        make_message(alice.user_id, AssistantId.EXPENDITURE, "budget?", 1),
        make_message(alice.user_id, AssistantId.EXPENDITURE, "cut dining", 5, MessageRole.ASSISTANT),
        make_message(bob.user_id, AssistantId.INCOME, "bob one", 0),
        make_message(bob.user_id, AssistantId.INCOME, "bob two", 4),
    ]
    for row in rows:
        await storage.append_message(row)
    storage.calls.clear()
    return storage
