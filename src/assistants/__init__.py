"""Assistant personas package."""

from src.assistants.registry import (
    ASSISTANTS,
    AssistantRegistry,
    UnknownAssistantError,
)
from src.assistants.prompts import (
    build_context_prompt,
    build_system_prompt,
    summarize_transactions,
)

__all__ = [
    "ASSISTANTS",
    "AssistantRegistry",
    "UnknownAssistantError",
    "build_context_prompt",
    "build_system_prompt",
    "summarize_transactions",
]
