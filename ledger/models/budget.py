"""
Budget Models

A MonthlyBudget records the manual cash-flow plan for one month:
what was carried over, what came in, and the fixed outgoings.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from ledger.models.transaction import Amount, LedgerModel, Money, MonthKey


class IncomeSource(LedgerModel):
    """A configured source of monthly income (salary, family support...)."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    default_day: Optional[int] = Field(
        default=None,
        ge=1,
        le=31,
        description="Usual day of month the income arrives"
    )


class IncomeEntry(LedgerModel):
    source_id: str
    amount: Amount = Decimal("0")


class CreditCardEntry(LedgerModel):
    card_name: str
    amount: Amount = Decimal("0")


class MonthlyBudget(LedgerModel):
    """
    Cash-flow plan for a single month.

    Created lazily with zero values on first read and persisted only once
    the user edits a field.
    """

    month: MonthKey
    opening_balance: Money = Field(
        default=Decimal("0"),
        description="Balance carried over from the previous month (may be negative)"
    )
    incomes: list[IncomeEntry] = Field(default_factory=list)
    loan: Amount = Decimal("0")
    credit_cards: list[CreditCardEntry] = Field(
        default_factory=list,
        description="Manually entered card bill amounts"
    )

    def income_for(self, source_id: str) -> Decimal:
        for entry in self.incomes:
            if entry.source_id == source_id:
                return entry.amount
        return Decimal("0")

    def card_amount(self, card_name: str) -> Decimal:
        for entry in self.credit_cards:
            if entry.card_name == card_name:
                return entry.amount
        return Decimal("0")


class BudgetProjection(BaseModel):
    """Result of projecting a month's cash flow."""

    month: str
    income_total: Decimal
    card_total: Decimal
    expense_total: Decimal
    balance: Decimal
    card_amounts: dict[str, Decimal] = Field(default_factory=dict)
    income_by_source: dict[str, Decimal] = Field(default_factory=dict)

    @property
    def is_deficit(self) -> bool:
        return self.balance < 0
