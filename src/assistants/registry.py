"""
Assistant Registry

Static mapping from assistant identifier to persona metadata.

DESIGN DECISION: The registry is built once at import time and exposed
through a read-only mapping. There is no runtime mutation path, so it
can be shared across concurrent requests without locking.

The registry is also the ONLY domain validation in the system:
an assistant id must pass through here before it is used as a store filter.
"""

from types import MappingProxyType
from typing import Any, Mapping, Optional

from src.models.chat import AssistantId, AssistantPersona


class UnknownAssistantError(LookupError):
    """Assistant identifier is not one of the registered personas."""

    def __init__(self, assistant_id: Any):
        self.assistant_id = assistant_id
        super().__init__(f"Unknown assistant: {assistant_id!r}")


_INCOME_PROMPT = """You are a financial income advisor. Your role is to:
- Analyze income patterns and suggest optimization strategies
- Provide actionable advice for income growth based on current income level
- Focus on career development and side income opportunities
- Use transaction history AND financial profile data to make personalized recommendations
- Compare actual income against monthly income targets
- Help users set realistic income goals based on their expenses and savings targets
- Consider the user's savings goals when suggesting income strategies

IMPORTANT: Always reference the user's financial profile (monthly income target, expenses, savings goal) when available. If profile data is missing, encourage the user to complete their financial profile for better personalized advice.

Only discuss income-related topics. Redirect expenditure questions to the Expenditure Assistant."""

_EXPENDITURE_PROMPT = """You are a financial expenditure advisor. Your role is to:
- Analyze spending patterns and identify areas for optimization
- Provide practical budgeting advice based on income and expense targets
- Compare actual spending against monthly expense budgets
- Suggest ways to reduce unnecessary expenses while maintaining quality of life
- Use transaction history AND financial profile data to make personalized recommendations
- Help users align spending with their savings goals
- Provide budget variance analysis and actionable improvements

IMPORTANT: Always reference the user's financial profile (monthly income, expense targets, savings goal) when available. Compare actual spending against targets and provide specific recommendations. If profile data is missing, encourage the user to complete their financial profile for better personalized advice.

Only discuss expenditure-related topics. Redirect income questions to the Income Assistant."""


ASSISTANTS: Mapping[AssistantId, AssistantPersona] = MappingProxyType({
    AssistantId.INCOME: AssistantPersona(
        id=AssistantId.INCOME,
        name="Income Assistant",
        description="Expert guidance on managing and growing your income",
        system_prompt=_INCOME_PROMPT,
    ),
    AssistantId.EXPENDITURE: AssistantPersona(
        id=AssistantId.EXPENDITURE,
        name="Expenditure Assistant",
        description="Smart budgeting and spending control advisor",
        system_prompt=_EXPENDITURE_PROMPT,
    ),
})


class AssistantRegistry:
    """
    Lookup and validation over the assistant personas.

    Usage:
        registry = AssistantRegistry()
        persona = registry.get("income")
    """

    def __init__(
        self,
        assistants: Optional[Mapping[AssistantId, AssistantPersona]] = None,
    ):
        self._assistants = MappingProxyType(dict(assistants or ASSISTANTS))

    def parse(self, assistant_id: Any) -> AssistantId:
        """
        Validate a raw identifier and return it as an AssistantId.

        Matching is exact: "Income" or " income" are rejected rather
        than silently normalized.

        Raises:
            UnknownAssistantError: If the id is not registered
        """
        if isinstance(assistant_id, AssistantId):
            parsed = assistant_id
        elif isinstance(assistant_id, str):
            try:
                parsed = AssistantId(assistant_id)
            except ValueError:
                raise UnknownAssistantError(assistant_id) from None
        else:
            raise UnknownAssistantError(assistant_id)

        if parsed not in self._assistants:
            raise UnknownAssistantError(assistant_id)
        return parsed

    def get(self, assistant_id: Any) -> AssistantPersona:
        """Return the persona for an id, or raise UnknownAssistantError."""
        return self._assistants[self.parse(assistant_id)]

    def list_all(self) -> list[AssistantPersona]:
        """All personas in enumeration order."""
        return [
            self._assistants[assistant_id]
            for assistant_id in AssistantId
            if assistant_id in self._assistants
        ]

    def __contains__(self, assistant_id: Any) -> bool:
        try:
            self.parse(assistant_id)
        except UnknownAssistantError:
            return False
        return True
