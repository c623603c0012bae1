"""Tests for the assistant registry and system prompt composition."""

from datetime import date
from decimal import Decimal

import pytest

from src.assistants import (
    ASSISTANTS,
    AssistantRegistry,
    UnknownAssistantError,
    build_context_prompt,
    build_system_prompt,
    summarize_transactions,
)
from src.assistants.prompts import NO_CONTEXT_PROMPT
from src.models.chat import (
    AssistantId,
    FinancialContext,
    FinancialProfile,
    FinancialSummary,
)


class TestAssistantRegistry:
    """Tests for AssistantRegistry."""

    def test_get_by_string(self):
        persona = AssistantRegistry().get("income")
        assert persona.id == AssistantId.INCOME
        assert persona.name == "Income Assistant"

    def test_get_by_enum(self):
        persona = AssistantRegistry().get(AssistantId.EXPENDITURE)
        assert persona.description == "Smart budgeting and spending control advisor"

    @pytest.mark.parametrize("bad_id", ["savings", "INCOME", "income ", "", None, 1, ["income"]])
    def test_unknown_ids_raise(self, bad_id):
        with pytest.raises(UnknownAssistantError) as exc_info:
            AssistantRegistry().get(bad_id)
        assert exc_info.value.assistant_id == bad_id

    def test_list_all_in_enum_order(self):
        personas = AssistantRegistry().list_all()
        assert [p.id for p in personas] == list(AssistantId)

    def test_contains(self):
        registry = AssistantRegistry()
        assert "expenditure" in registry
        assert "retirement" not in registry

    def test_restricted_registry_rejects_missing_persona(self):
        """A registry built with a subset only accepts that subset."""
        registry = AssistantRegistry({AssistantId.INCOME: ASSISTANTS[AssistantId.INCOME]})
        with pytest.raises(UnknownAssistantError):
            registry.parse("expenditure")

    def test_module_mapping_is_read_only(self):
        with pytest.raises(TypeError):
            ASSISTANTS[AssistantId.INCOME] = ASSISTANTS[AssistantId.EXPENDITURE]

    def test_prompts_redirect_to_each_other(self):
        assert "Expenditure Assistant" in ASSISTANTS[AssistantId.INCOME].system_prompt
        assert "Income Assistant" in ASSISTANTS[AssistantId.EXPENDITURE].system_prompt


class TestSummarizeTransactions:
    """Tests for summarize_transactions."""

    def test_summary_totals_and_months(self):
        summary = summarize_transactions([
            {"amount": 40, "category": "food", "date": "2025-07-03"},
            {"amount": "10.50", "category": "food", "date": date(2025, 7, 1)},
            {"amount": 100, "category": "rent", "date": "2025-06-28"},
        ])

        assert summary.total_spending == Decimal("150.50")
        assert summary.top_categories == ["food", "rent"]
        assert [(t.month, t.total) for t in summary.monthly_trends] == [
            ("2025-06", Decimal("100.00")),
            ("2025-07", Decimal("50.50")),
        ]
        assert summary.recent_transaction_count == 3

    def test_recent_count_is_capped(self):
        rows = [{"amount": 1, "category": "x", "date": "2025-01-01"}] * 8
        assert summarize_transactions(rows).recent_transaction_count == 5

    def test_empty(self):
        summary = summarize_transactions([])
        assert summary.total_spending == Decimal("0")
        assert summary.top_categories == []


class TestPromptComposition:
    """Tests for build_context_prompt / build_system_prompt."""

    def test_no_context(self):
        assert build_context_prompt(None) == NO_CONTEXT_PROMPT

    def test_missing_profile_values(self):
        prompt = build_context_prompt(FinancialContext())
        assert "- Name: User" in prompt
        assert "- Monthly Income: Not specified" in prompt
        assert "Cannot calculate surplus" in prompt
        assert "No budget comparison available" in prompt

    def test_budget_and_surplus(self):
        context = FinancialContext(
            profile=FinancialProfile(
                full_name="Dana",
                monthly_income=Decimal("4200"),
                monthly_expense=Decimal("3000"),
                savings_goal=Decimal("10000"),
            ),
            summary=FinancialSummary(
                total_spending=Decimal("3250.75"),
                top_categories=["groceries", "rent"],
            ),
        )
        prompt = build_context_prompt(context)

        assert "- Name: Dana" in prompt
        assert "- Savings Goal: $10,000.00" in prompt
        assert "- Top spending categories: groceries, rent" in prompt
        assert "Target $3,000.00/month, Actual spending $3,250.75 total" in prompt
        assert "- Expected monthly surplus: $1,200.00" in prompt

    def test_system_prompt_starts_with_persona(self):
        persona = ASSISTANTS[AssistantId.EXPENDITURE]
        prompt = build_system_prompt(persona)
        assert prompt.startswith(persona.system_prompt)
        assert prompt.endswith(NO_CONTEXT_PROMPT)
