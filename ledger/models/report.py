"""
Dashboard Report Models

Read-only views computed on demand from the stores. Nothing here is
persisted.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from ledger.models.card import CycleRange


class SpendingOverview(BaseModel):
    """Totals for one reporting period."""

    period: str = Field(..., description="'YYYY-MM', 'YYYY' or 'all'")
    total: Decimal
    cash_total: Decimal
    credit_total: Decimal
    effective_budget: Decimal = Field(
        ...,
        description="Monthly budget, x12 for a year period"
    )
    budget_used_percent: Decimal = Field(
        ...,
        description="total / effective_budget * 100, uncapped"
    )
    budget_progress: Decimal = Field(
        ...,
        ge=0,
        le=100,
        description="budget_used_percent capped at 100 for progress bars"
    )
    transaction_count: int = 0

    @property
    def cash_share_percent(self) -> Decimal:
        if self.total == 0:
            return Decimal("0")
        return self.cash_total / self.total * 100

    @property
    def is_over_budget(self) -> bool:
        return self.budget_used_percent > 100


class CategoryTotal(BaseModel):
    name: str
    amount: Decimal


class CardStatus(BaseModel):
    """
    Dashboard tile for one card.

    unbilled / billed are all-time totals; current_bill is the candidate
    total of the selected billing month's cycle.
    """

    bank: str
    unbilled: Decimal
    billed: Decimal
    issued: bool
    transaction_count: int
    current_bill: Decimal
    cycle: Optional[CycleRange] = None
