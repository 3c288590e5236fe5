"""
Budget Projection

Projects a month's closing balance from its cash-flow plan:

    expense_total = loan + sum(card amounts)
    balance       = opening_balance + income_total - expense_total

DESIGN DECISION: The card amounts come from exactly ONE source per
deployment (LedgerSettings.card_amount_source):
- "manual":    the amounts typed into the budget's credit_cards list
- "statement": each card's reconciled total for the month, computed by
               the reconciliation aggregator with the shared cycle definition
The two are never mixed within a month.
"""

from decimal import Decimal
from typing import Iterable, Mapping, Optional

from ledger.billing.aggregator import aggregate
from ledger.models.budget import BudgetProjection, IncomeSource, MonthlyBudget
from ledger.models.card import CardSetting
from ledger.models.transaction import CARD_SENTINEL, Transaction


CARD_AMOUNT_SOURCES = ("manual", "statement")


def resolve_card_amounts(
    budget: MonthlyBudget,
    mode: str,
    transactions: Optional[Iterable[Transaction]] = None,
    card_settings: Optional[Mapping[str, CardSetting]] = None,
    card_banks: Optional[Iterable[str]] = None,
) -> dict[str, Decimal]:
    """
    Per-card bill amounts for budget.month.

    Args:
        budget: The month's plan
        mode: "manual" or "statement"
        transactions, card_settings, card_banks: Required for "statement"
    """
    if mode == "manual":
        return {entry.card_name: entry.amount for entry in budget.credit_cards}

    if mode == "statement":
        if transactions is None or card_settings is None or card_banks is None:
            raise ValueError("Statement mode needs transactions, card settings and card banks")

        transactions = list(transactions)
        amounts = {}
        for bank in card_banks:
            if bank == CARD_SENTINEL:
                continue
            summary = aggregate(transactions, bank, card_settings.get(bank), budget.month)
            amounts[bank] = summary.reconciled_total_in_cycle
        return amounts

    raise ValueError(f"Unknown card amount source: {mode!r} (expected one of {CARD_AMOUNT_SOURCES})")


def project_month(
    budget: MonthlyBudget,
    income_sources: Iterable[IncomeSource],
    per_card_totals: Mapping[str, Decimal],
) -> BudgetProjection:
    """Closing balance and totals for one month."""
    income_total = sum((entry.amount for entry in budget.incomes), Decimal("0"))
    card_total = sum(per_card_totals.values(), Decimal("0"))
    expense_total = budget.loan + card_total
    balance = budget.opening_balance + income_total - expense_total

    return BudgetProjection(
        month=budget.month,
        income_total=income_total,
        card_total=card_total,
        expense_total=expense_total,
        balance=balance,
        card_amounts=dict(per_card_totals),
        income_by_source={
            source.name: budget.income_for(source.id)
            for source in income_sources
        },
    )
