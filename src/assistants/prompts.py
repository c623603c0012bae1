"""
System prompt composition.

Combines a persona's fixed prompt with whatever financial context we
have about the user. The result is handed to the external completion
service as the system message; nothing here calls a model.
"""

from collections import Counter, defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from src.models.chat import (
    AssistantPersona,
    FinancialContext,
    FinancialSummary,
    MonthlyTrend,
)


NO_CONTEXT_PROMPT = (
    "No financial context available yet. Encourage the user to add "
    "transactions and complete their financial profile."
)


def _money(value: Optional[Decimal]) -> str:
    if value is None:
        return "Not specified"
    return f"${value:,.2f}"


def summarize_transactions(
    transactions: Iterable[Mapping[str, Any]],
    recent_limit: int = 5,
) -> FinancialSummary:
    """
    Build a FinancialSummary from raw transaction rows.

    Each row needs `amount`, `category` and `date` (date, datetime or
    ISO string). Rows are expected newest first, as the store returns them.
    Top categories are ranked by number of transactions, not by amount.
    """
    rows = list(transactions)

    total = sum((Decimal(str(row["amount"])) for row in rows), Decimal("0"))
    category_counts = Counter(row.get("category") or "uncategorized" for row in rows)

    by_month: dict[str, Decimal] = defaultdict(Decimal)
    for row in rows:
        raw_date = row["date"]
        if isinstance(raw_date, (date, datetime)):
            month = raw_date.strftime("%Y-%m")
        else:
            month = str(raw_date)[:7]
        by_month[month] += Decimal(str(row["amount"]))

    return FinancialSummary(
        total_spending=total,
        top_categories=[name for name, _ in category_counts.most_common(3)],
        monthly_trends=[
            MonthlyTrend(month=month, total=amount)
            for month, amount in sorted(by_month.items())
        ],
        recent_transaction_count=min(len(rows), recent_limit),
    )


def build_context_prompt(context: Optional[FinancialContext]) -> str:
    """Render the financial context block appended to the persona prompt."""
    if context is None:
        return NO_CONTEXT_PROMPT

    profile = context.profile
    summary = context.summary or FinancialSummary()

    income = profile.monthly_income if profile else None
    expense = profile.monthly_expense if profile else None

    lines = [
        "Here's the user's financial context:",
        "",
        "PROFILE INFORMATION:",
        f"- Name: {(profile.full_name if profile else None) or 'User'}",
        f"- Email: {(profile.email if profile else None) or 'Not specified'}",
        f"- Monthly Income: {_money(income)}",
        f"- Monthly Expense Target: {_money(expense)}",
        f"- Savings Goal: {_money(profile.savings_goal if profile else None)}",
        "",
        "TRANSACTION DATA:",
        f"- Total actual spending: {_money(summary.total_spending)}",
        f"- Top spending categories: {', '.join(summary.top_categories) or 'None'}",
        f"- Recent transactions: {summary.recent_transaction_count} available",
        f"- Monthly spending trends: {len(summary.monthly_trends)} months of data",
        "",
        "KEY INSIGHTS:",
    ]

    if expense and summary.total_spending:
        lines.append(
            f"- Budget vs Actual: Target {_money(expense)}/month, "
            f"Actual spending {_money(summary.total_spending)} total"
        )
    else:
        lines.append(
            "- No budget comparison available (user should set monthly expense target)"
        )

    if income is not None and expense is not None:
        lines.append(f"- Expected monthly surplus: {_money(income - expense)}")
    else:
        lines.append("- Cannot calculate surplus (income/expense targets needed)")

    lines.extend([
        "",
        "Use this information to provide personalized financial advice. "
        "If profile data is missing, encourage the user to complete their "
        "financial profile for better recommendations.",
    ])
    return "\n".join(lines)


def build_system_prompt(
    persona: AssistantPersona,
    context: Optional[FinancialContext] = None,
) -> str:
    """Persona prompt followed by the financial context block."""
    return f"{persona.system_prompt}\n\n{build_context_prompt(context)}"
