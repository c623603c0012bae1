"""Message validation package."""

from src.validation.validator import (
    MessageValidationError,
    MessageValidationResult,
    MessageValidator,
)

__all__ = [
    "MessageValidationError",
    "MessageValidationResult",
    "MessageValidator",
]
