"""
Chat Message Validation

Checks user-supplied content before it is stored or forwarded to the
completion service. Rejections carry a short reason that is safe to
show to the user as-is.

IMPORTANT: Validation NEVER silently fixes content.
It reports the first problem found.
"""

import re
from typing import Any, Optional

from pydantic import BaseModel

from src.config import ChatSettings, get_settings


VALID_ROLES = ("user", "assistant", "system")


class MessageValidationResult(BaseModel):
    """Outcome of validating one message or a whole conversation."""

    valid: bool
    reason: Optional[str] = None

    @classmethod
    def passed(cls) -> "MessageValidationResult":
        return cls(valid=True)

    @classmethod
    def rejected(cls, reason: str) -> "MessageValidationResult":
        return cls(valid=False, reason=reason)


class MessageValidationError(ValueError):
    """Raised by `ensure_valid` when content is rejected."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class MessageValidator:
    """
    Validates single messages and message lists.

    Thresholds come from ChatSettings so they can be tuned per deployment.
    """

    def __init__(self, settings: Optional[ChatSettings] = None):
        self._settings = settings or get_settings().chat
        self._repeated_chars = re.compile(
            r"(.)\1{%d,}" % self._settings.max_repeated_chars
        )

    def validate_message(self, content: Any) -> MessageValidationResult:
        """Validate a single message body."""
        if not content or not isinstance(content, str):
            return MessageValidationResult.rejected(
                "Message content is required and must be a string"
            )

        max_length = self._settings.max_message_length
        if len(content) > max_length:
            return MessageValidationResult.rejected(
                f"Message is too long (maximum {max_length} characters)"
            )

        if not content.strip():
            return MessageValidationResult.rejected("Message cannot be empty")

        if self._repeated_chars.search(content):
            return MessageValidationResult.rejected(
                "Message contains excessive repeated characters"
            )

        caps = sum(1 for ch in content if "A" <= ch <= "Z")
        if len(content) > 50 and caps / len(content) > self._settings.max_caps_ratio:
            return MessageValidationResult.rejected(
                "Message contains excessive capitalization"
            )

        return MessageValidationResult.passed()

    def validate_messages(self, messages: Any) -> MessageValidationResult:
        """Validate a conversation payload: a list of {role, content} mappings."""
        if not isinstance(messages, list):
            return MessageValidationResult.rejected("Messages must be an array")

        if not messages:
            return MessageValidationResult.rejected("At least one message is required")

        max_messages = self._settings.max_conversation_messages
        if len(messages) > max_messages:
            return MessageValidationResult.rejected(
                f"Too many messages in conversation (maximum {max_messages})"
            )

        for message in messages:
            if not isinstance(message, dict):
                return MessageValidationResult.rejected("Each message must be an object")

            if message.get("role") not in VALID_ROLES:
                return MessageValidationResult.rejected(
                    "Each message must have a valid role (user, assistant, or system)"
                )

            if not message.get("content"):
                return MessageValidationResult.rejected("Each message must have content")

            result = self.validate_message(message["content"])
            if not result.valid:
                return result

        return MessageValidationResult.passed()

    def ensure_valid(self, content: Any) -> str:
        """Return the content unchanged, or raise MessageValidationError."""
        result = self.validate_message(content)
        if not result.valid:
            raise MessageValidationError(result.reason)
        return content
