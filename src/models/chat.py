"""
Core Data Models for the Chat Assistants

These models define the schemas for everything that flows between
the session manager, the identity resolver and the history store.

DESIGN DECISION: The set of assistants is a closed enum.
Any identifier outside it is rejected before it can become a
store filter, so "no history" and "invalid assistant" never look alike.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AssistantId(str, Enum):
    """Identifiers of the available assistant personas."""
    INCOME = "income"
    EXPENDITURE = "expenditure"


class MessageRole(str, Enum):
    """Who authored a chat message."""
    USER = "user"
    ASSISTANT = "assistant"


class ErrorKind(str, Enum):
    """
    Failure kinds surfaced to callers.

    The caller decides what to do with each:
    - UNAUTHENTICATED: redirect to sign-in
    - UNKNOWN_ASSISTANT: routing error (not found)
    - INVALID_MESSAGE: show the reason next to the input
    - STORAGE_FAILURE: generic, retryable failure
    """
    UNAUTHENTICATED = "unauthenticated"
    UNKNOWN_ASSISTANT = "unknown_assistant"
    INVALID_MESSAGE = "invalid_message"
    STORAGE_FAILURE = "storage_failure"


# =============================================================================
# PERSONAS & IDENTITY
# =============================================================================

class AssistantPersona(BaseModel):
    """
    A named chat personality with a fixed system prompt.

    Frozen: personas are loaded once and shared read-only.
    """
    model_config = ConfigDict(frozen=True)

    id: AssistantId
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., max_length=300)
    system_prompt: str = Field(..., min_length=1)


class Principal(BaseModel):
    """The authenticated identity making a request."""
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1, description="Opaque user identifier")
    is_authenticated: bool = True
    email: Optional[str] = None
    is_admin: bool = Field(
        default=False,
        description="Elevated-privilege flag, as reported by the auth provider"
    )


# =============================================================================
# CHAT HISTORY
# =============================================================================

class ChatMessage(BaseModel):
    """
    One turn in a conversation.

    Tied to exactly one user and exactly one assistant persona.
    """

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    assistant_id: AssistantId
    role: MessageRole
    # Stored rows may hold empty strings; non-empty is enforced on write
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("metadata", mode="before")
    @classmethod
    def default_metadata(cls, v: Any) -> Any:
        return {} if v is None else v

    def to_prompt_dict(self) -> dict[str, str]:
        """Shape expected by chat-completion APIs."""
        return {"role": self.role.value, "content": self.content}


class ActionResult(BaseModel):
    """
    Tagged result returned to the UI layer.

    `error` is a short operator-safe message. Raw store or provider
    errors never end up here.
    """

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "ActionResult":
        return cls(success=False, error=message, error_kind=kind)

    def to_response(self) -> dict[str, Any]:
        """Serialize to the `{success, data?, error?}` wire shape."""
        response: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            if isinstance(self.data, list):
                response["data"] = [
                    item.model_dump(mode="json") if isinstance(item, BaseModel) else item
                    for item in self.data
                ]
            elif isinstance(self.data, BaseModel):
                response["data"] = self.data.model_dump(mode="json")
            else:
                response["data"] = self.data
        if self.error is not None:
            response["error"] = self.error
        return response


# =============================================================================
# FINANCIAL CONTEXT (fed into assistant prompts)
# =============================================================================

class FinancialProfile(BaseModel):
    """The user's self-declared financial targets."""
    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: Optional[str] = None
    email: Optional[str] = None
    monthly_income: Optional[Decimal] = Field(default=None, ge=0)
    monthly_expense: Optional[Decimal] = Field(default=None, ge=0)
    savings_goal: Optional[Decimal] = Field(default=None, ge=0)


class MonthlyTrend(BaseModel):
    """Total spending for one calendar month (YYYY-MM)."""

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    total: Decimal

    @field_validator("total")
    @classmethod
    def round_total(cls, v: Decimal) -> Decimal:
        return v.quantize(Decimal("0.01"))


class FinancialSummary(BaseModel):
    """Aggregates computed from the user's recent transactions."""

    total_spending: Decimal = Decimal("0")
    top_categories: list[str] = Field(default_factory=list)
    monthly_trends: list[MonthlyTrend] = Field(default_factory=list)
    recent_transaction_count: int = Field(default=0, ge=0)


class FinancialContext(BaseModel):
    """Everything the assistant may know about the user's finances."""

    profile: Optional[FinancialProfile] = None
    summary: Optional[FinancialSummary] = None
